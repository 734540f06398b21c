"""
Statistics Aggregator - read-only rollups for employer dashboards.

Everything here is computed from application rows at query time; nothing
reads or writes the denormalized counters.
"""

from datetime import timedelta
from typing import Dict, List

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.db.postgres import get_db_session
from app.db.tables import applications, jobs
from app.schemas.schemas import ApplicationStatus
from app.utils.clock import utcnow

settings = get_settings()

STATUSES = [s.value for s in ApplicationStatus]


def status_breakdown_by_job(db: Session, job_ids: List[int]) -> Dict[int, Dict[str, int]]:
    """{job_id: {status: count}} for the given jobs. Statuses with no rows are omitted."""
    breakdown = {job_id: {} for job_id in job_ids}
    if not job_ids:
        return breakdown
    rows = db.execute(
        select(applications.c.job_id, applications.c.status, func.count().label("count"))
        .where(applications.c.job_id.in_(job_ids))
        .group_by(applications.c.job_id, applications.c.status)
    )
    for r in rows:
        breakdown[r.job_id][r.status] = r.count
    return breakdown


def employer_statistics(employer: dict) -> dict:
    """
    Application totals across every job the employer owns.

    Returns {"total", "recent", "by_status"} where recent counts
    applications from the last recent_window_days (wall clock) and
    by_status lists all five statuses, zero-filled.
    """
    owned = select(jobs.c.job_id).where(jobs.c.employer_id == employer["user_id"])
    since = utcnow() - timedelta(days=settings.recent_window_days)

    with get_db_session() as db:
        by_status = dict.fromkeys(STATUSES, 0)
        for r in db.execute(
            select(applications.c.status, func.count().label("count"))
            .where(applications.c.job_id.in_(owned))
            .group_by(applications.c.status)
        ):
            by_status[r.status] = r.count

        recent = db.execute(
            select(func.count())
            .select_from(applications)
            .where(applications.c.job_id.in_(owned), applications.c.applied_at >= since)
        ).scalar_one()

    return {"total": sum(by_status.values()), "recent": recent, "by_status": by_status}
