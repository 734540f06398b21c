"""
Counter Service - the only writer of denormalized counters.

Counters:
- jobs.application_count   number of applications referencing the job
- companies.job_count      number of ACTIVE jobs referencing the company
- jobs.views               detail reads (best effort)

Every adjustment is a single atomic UPDATE (c = c + delta) evaluated by the
database, floored at zero. Counters are caches: reconcile_counters()
rebuilds them from the rows they summarise.
"""

from typing import Callable, Dict, List

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import StoreUnavailable
from app.db.postgres import get_db_session
from app.db.tables import applications, companies, jobs
from app.utils.clock import utcnow
from app.utils.logger import get_logger

logger = get_logger(__name__)


def _floored(column, delta: int):
    """column + delta, never below zero."""
    return case((column + delta < 0, 0), else_=column + delta)


def adjust_application_count(db: Session, job_id: int, delta: int) -> bool:
    result = db.execute(
        update(jobs)
        .where(jobs.c.job_id == job_id)
        .values(application_count=_floored(jobs.c.application_count, delta))
    )
    return result.rowcount == 1


def adjust_job_count(db: Session, company_id: int, delta: int) -> bool:
    result = db.execute(
        update(companies)
        .where(companies.c.company_id == company_id)
        .values(job_count=_floored(companies.c.job_count, delta), updated_at=utcnow())
    )
    return result.rowcount == 1


def increment_views(db: Session, job_id: int) -> bool:
    result = db.execute(
        update(jobs).where(jobs.c.job_id == job_id).values(views=jobs.c.views + 1)
    )
    return result.rowcount == 1


def apply_counter_delta(adjust: Callable[[Session, int, int], bool], entity_id: int, delta: int) -> bool:
    """
    Run one counter adjustment in its own transaction, after the primary
    write has committed.

    A failure here does not undo the primary write. It is logged as drift
    and left for reconcile_counters() to repair.
    """
    try:
        with get_db_session() as db:
            applied = adjust(db, entity_id, delta)
    except (SQLAlchemyError, StoreUnavailable) as e:
        logger.warning(
            "Consistency drift: %s(%s, %+d) failed: %s", adjust.__name__, entity_id, delta, e,
            extra={"delta": delta, "error_type": type(e).__name__},
        )
        return False

    if not applied:
        logger.warning(
            "Consistency drift: %s(%s, %+d) matched no row", adjust.__name__, entity_id, delta,
            extra={"delta": delta},
        )
    return applied


def reconcile_counters() -> Dict[str, List[dict]]:
    """
    Recompute application_count and job_count from the authoritative rows.

    Returns the corrected entities:
        {"jobs": [{"job_id", "stored", "actual"}],
         "companies": [{"company_id", "stored", "actual"}]}
    """
    app_count = (
        select(func.count(applications.c.application_id))
        .where(applications.c.job_id == jobs.c.job_id)
        .scalar_subquery()
    )
    active_job_count = (
        select(func.count(jobs.c.job_id))
        .where(jobs.c.company_id == companies.c.company_id, jobs.c.is_active.is_(True))
        .scalar_subquery()
    )

    corrected = {"jobs": [], "companies": []}
    with get_db_session() as db:
        for row in db.execute(
            select(jobs.c.job_id, jobs.c.application_count, app_count.label("actual"))
            .where(jobs.c.application_count != app_count)
        ).mappings():
            corrected["jobs"].append(
                {"job_id": row["job_id"], "stored": row["application_count"], "actual": row["actual"]}
            )

        for row in db.execute(
            select(companies.c.company_id, companies.c.job_count, active_job_count.label("actual"))
            .where(companies.c.job_count != active_job_count)
        ).mappings():
            corrected["companies"].append(
                {"company_id": row["company_id"], "stored": row["job_count"], "actual": row["actual"]}
            )

        if corrected["jobs"]:
            db.execute(
                update(jobs)
                .where(jobs.c.job_id.in_([j["job_id"] for j in corrected["jobs"]]))
                .values(application_count=app_count)
            )
        if corrected["companies"]:
            db.execute(
                update(companies)
                .where(companies.c.company_id.in_([c["company_id"] for c in corrected["companies"]]))
                .values(job_count=active_job_count)
            )

    for j in corrected["jobs"]:
        logger.warning(
            "Reconciled job %s application_count %s -> %s", j["job_id"], j["stored"], j["actual"],
            extra={"job_id": j["job_id"]},
        )
    for c in corrected["companies"]:
        logger.warning(
            "Reconciled company %s job_count %s -> %s", c["company_id"], c["stored"], c["actual"],
            extra={"company_id": c["company_id"]},
        )
    return corrected
