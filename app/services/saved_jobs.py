"""
Saved jobs and recommendations for students.

A student keeps at most saved_jobs_limit bookmarks; saving past the limit
evicts the oldest ones.
"""

from sqlalchemy import delete, insert, or_, select
from sqlalchemy.exc import IntegrityError

from app.core.config import get_settings
from app.core.errors import Conflict, NotFound
from app.db.postgres import get_db_session, rows_to_dicts
from app.db.tables import companies, jobs, saved_jobs, users
from app.services.job_registry import job_summary
from app.utils.clock import utcnow
from app.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)

# Newest postings considered when matching recommendations
RECOMMENDATION_SCAN_LIMIT = 500


def _summary_select():
    return (
        select(
            jobs,
            companies.c.name.label("company_name"),
            companies.c.logo.label("company_logo"),
            companies.c.industry.label("company_industry"),
        )
        .select_from(jobs.join(companies, jobs.c.company_id == companies.c.company_id))
    )


def save_job(student: dict, job_id: int):
    with get_db_session() as db:
        exists = db.execute(
            select(jobs.c.job_id).where(jobs.c.job_id == job_id, jobs.c.is_active.is_(True))
        ).first()
        if not exists:
            raise NotFound("Job not found")

    try:
        with get_db_session() as db:
            db.execute(insert(saved_jobs).values(user_id=student["user_id"], job_id=job_id, saved_at=utcnow()))

            keep = (
                select(saved_jobs.c.id)
                .where(saved_jobs.c.user_id == student["user_id"])
                .order_by(saved_jobs.c.saved_at.desc(), saved_jobs.c.id.desc())
                .limit(settings.saved_jobs_limit)
            )
            kept_ids = [r.id for r in db.execute(keep)]
            evicted = db.execute(
                delete(saved_jobs).where(
                    saved_jobs.c.user_id == student["user_id"], saved_jobs.c.id.not_in(kept_ids)
                )
            ).rowcount
    except IntegrityError:
        raise Conflict("Job already saved")

    if evicted:
        logger.info("Saved-jobs limit reached for student %s, evicted %s", student["user_id"], evicted,
                    extra={"user_id": student["user_id"], "job_id": job_id})


def remove_saved_job(student: dict, job_id: int):
    with get_db_session() as db:
        db.execute(
            delete(saved_jobs).where(saved_jobs.c.user_id == student["user_id"], saved_jobs.c.job_id == job_id)
        )


def list_saved_jobs(student: dict) -> list:
    """Saved postings that are still active, most recently saved first."""
    with get_db_session() as db:
        rows = rows_to_dicts(db.execute(
            _summary_select()
            .join(saved_jobs, saved_jobs.c.job_id == jobs.c.job_id)
            .where(saved_jobs.c.user_id == student["user_id"], jobs.c.is_active.is_(True))
            .order_by(saved_jobs.c.saved_at.desc(), saved_jobs.c.id.desc())
        ))
    return [job_summary(r) for r in rows]


def recommended_jobs(student: dict) -> list:
    """
    Active postings matching the student's profile.

    A posting matches when its category or one of its skills is among the
    student's skills, or its title/description mentions the student's major
    or school. Featured postings first, then newest.
    """
    with get_db_session() as db:
        profile = db.execute(
            select(users.c.skills, users.c.major, users.c.school).where(users.c.user_id == student["user_id"])
        ).first()
        if profile is None:
            raise NotFound("User not found")

        skills = {s.lower() for s in (profile.skills or [])}
        keyword = (profile.major or profile.school or "").strip().lower()

        query = _summary_select().where(jobs.c.is_active.is_(True))
        if not skills:
            # Skill overlap needs the JSON list, so only the keyword-only
            # case can be narrowed in SQL
            if not keyword:
                return []
            query = query.where(or_(
                jobs.c.title.icontains(keyword, autoescape=True),
                jobs.c.description.icontains(keyword, autoescape=True),
            ))

        rows = rows_to_dicts(db.execute(
            query
            .order_by(jobs.c.is_featured.desc(), jobs.c.created_at.desc(), jobs.c.job_id.desc())
            .limit(RECOMMENDATION_SCAN_LIMIT)
        ))

    matches = []
    for r in rows:
        job_skills = {s.lower() for s in (r["skills"] or [])}
        text = f"{r['title']} {r['description']}".lower()
        if r["category"] in skills or job_skills & skills or (keyword and keyword in text):
            matches.append(job_summary(r))
        if len(matches) >= settings.recommended_jobs_limit:
            break
    return matches
