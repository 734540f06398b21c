"""
Job Registry - postings and their lifecycle.

Create:  employer only; provisions a company on first posting; fills every
         optional attribute with its default; company job_count +1.
Update:  owner only; patch is merged over the stored row and the merged
         record is re-validated. Flipping is_active moves job_count.
Delete:  owner only; cascades to the job's applications and saved-job
         entries; job_count -1 if the job was active.
Read:    public; every detail read adds one view.

Company job_count changes happen in the same transaction as the job write.
"""

import re
from typing import List, Optional

from sqlalchemy import and_, delete, func, insert, or_, select, update
from sqlalchemy.exc import IntegrityError

from app.core.config import get_settings
from app.core.errors import Conflict, Forbidden, NotFound, ValidationFailed
from app.core.permissions import can_mutate_job, has_role
from app.db.postgres import get_db_session, row_to_dict, rows_to_dicts
from app.db.tables import applications, companies, jobs, saved_jobs, users
from app.services import counters, identity_store
from app.services.statistics import status_breakdown_by_job
from app.utils.clock import utcnow
from app.utils.logger import get_logger
from app.utils.pagination import page_offset, pagination_meta

settings = get_settings()
logger = get_logger(__name__)

REQUIRED_FIELDS = ("title", "description", "location", "contact_email", "is_active", "is_featured")
SORTABLE_FIELDS = {
    "created_at", "views", "application_count", "salary_min", "title", "application_deadline",
}
JOINED_KEYS = {"company_name", "company_logo", "company_industry", "employer_name", "employer_email"}


def job_defaults() -> dict:
    return {
        "requirements": "",
        "benefits": "",
        "salary": "Negotiable",
        "salary_type": "hourly",
        "address": "",
        "job_type": "part-time",
        "category": "other",
        "contact_phone": "",
        "work_hours": "Flexible",
        "vacancies": 1,
        "experience": "none",
        "education": "none",
        "skills": [],
    }


def validate_job_record(record: dict) -> List[dict]:
    """Business checks on a complete job record. Returns every failure."""
    errors = []
    for field in REQUIRED_FIELDS:
        value = record.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            errors.append({"field": field, "message": f"{field} is required"})

    salary_min, salary_max = record.get("salary_min"), record.get("salary_max")
    if salary_min is not None and salary_max is not None and salary_min > salary_max:
        errors.append({"field": "salary_max", "message": "salary_max must be greater than or equal to salary_min"})

    vacancies = record.get("vacancies")
    if vacancies is not None and vacancies < 1:
        errors.append({"field": "vacancies", "message": "Vacancies must be at least 1"})
    return errors


# ============================================================
# SERIALIZATION
# ============================================================

def _joined_select():
    return (
        select(
            jobs,
            companies.c.name.label("company_name"),
            companies.c.logo.label("company_logo"),
            companies.c.industry.label("company_industry"),
            users.c.name.label("employer_name"),
            users.c.email.label("employer_email"),
        )
        .select_from(
            jobs.join(companies, jobs.c.company_id == companies.c.company_id)
            .join(users, jobs.c.employer_id == users.c.user_id)
        )
    )


def serialize_job(row: dict, now=None) -> dict:
    """Job row (optionally joined) to response dict with computed flags."""
    now = now or utcnow()
    job = {k: v for k, v in row.items() if k not in JOINED_KEYS}
    deadline = job.get("application_deadline")
    job["is_expired"] = bool(deadline and now > deadline)
    job["is_accepting_applications"] = bool(job["is_active"]) and not job["is_expired"]
    job["skills"] = job.get("skills") or []

    if "company_name" in row:
        job["company"] = {
            "company_id": row["company_id"], "name": row["company_name"],
            "logo": row["company_logo"], "industry": row["company_industry"],
        }
    if "employer_name" in row:
        job["employer"] = {
            "user_id": row["employer_id"], "name": row["employer_name"], "email": row["employer_email"],
        }
    return job


def _fetch_joined(db, job_id: int) -> Optional[dict]:
    return row_to_dict(db.execute(_joined_select().where(jobs.c.job_id == job_id)))


def job_summary(row: dict) -> dict:
    """Short job view for application and saved-job listings."""
    return {
        "job_id": row["job_id"],
        "title": row["title"],
        "salary": row.get("salary"),
        "location": row.get("location"),
        "job_type": row.get("job_type"),
        "category": row.get("category"),
        "is_active": row.get("is_active"),
        "is_featured": row.get("is_featured"),
        "application_deadline": row.get("application_deadline"),
        "created_at": row.get("created_at"),
        "company": {
            "company_id": row["company_id"], "name": row["company_name"],
            "logo": row.get("company_logo"), "industry": row.get("company_industry"),
        } if row.get("company_name") is not None else None,
    }


# ============================================================
# MUTATIONS
# ============================================================

def create_job(employer: dict, fields: dict) -> dict:
    """Create a posting for the employer, provisioning a company if needed."""
    if not has_role(employer, "employer"):
        raise Forbidden("Only employers can post jobs")

    fields = dict(fields)
    company_name = fields.pop("company_name", None)

    record = job_defaults()
    record.update({k: v for k, v in fields.items() if v is not None})
    record.setdefault("contact_email", employer["email"])
    record.setdefault("is_active", True)
    record.setdefault("is_featured", False)

    errors = validate_job_record(record)
    if errors:
        raise ValidationFailed(errors)

    company_id = identity_store.ensure_company(employer, company_name, city=record["location"])

    now = utcnow()
    with get_db_session() as db:
        job_id = db.execute(
            insert(jobs)
            .values(**record, employer_id=employer["user_id"], company_id=company_id,
                    views=0, application_count=0, created_at=now, updated_at=now)
            .returning(jobs.c.job_id)
        ).scalar_one()
        counters.adjust_job_count(db, company_id, +1)
        job = serialize_job(_fetch_joined(db, job_id))

    logger.info("Job %s created by employer %s", job_id, employer["user_id"],
                extra={"job_id": job_id, "user_id": employer["user_id"]})
    return job


def update_job(job_id: int, employer: dict, patch: dict) -> dict:
    """
    Apply the supplied fields to a posting owned by the employer.

    A field supplied as null resets to its default where one exists.
    """
    defaults = job_defaults()
    values = {k: (defaults[k] if v is None and k in defaults else v) for k, v in patch.items()}
    new_active = values.pop("is_active", None)

    with get_db_session() as db:
        job = row_to_dict(db.execute(select(jobs).where(jobs.c.job_id == job_id)))
        if not job:
            raise NotFound("Job not found")
        if not can_mutate_job(employer, job):
            raise Forbidden("Not authorized to update this job")

        merged = {**job, **values}
        if "is_active" in patch:
            merged["is_active"] = new_active
        errors = validate_job_record(merged)
        if errors:
            raise ValidationFailed(errors)

        now = utcnow()
        if values:
            db.execute(update(jobs).where(jobs.c.job_id == job_id).values(**values, updated_at=now))

        if new_active is not None and new_active != job["is_active"]:
            # Compare-and-set so two concurrent toggles move job_count once
            flipped = db.execute(
                update(jobs)
                .where(jobs.c.job_id == job_id, jobs.c.is_active == job["is_active"])
                .values(is_active=new_active, updated_at=now)
            )
            if flipped.rowcount == 1:
                counters.adjust_job_count(db, job["company_id"], +1 if new_active else -1)

        updated = serialize_job(_fetch_joined(db, job_id))

    logger.info("Job %s updated", job_id, extra={"job_id": job_id, "user_id": employer["user_id"]})
    return updated


def delete_job(job_id: int, employer: dict) -> int:
    """
    Delete a posting owned by the employer together with its applications.

    Returns the number of applications removed. The DELETE ... RETURNING
    decides which request removed the row, so job_count moves at most once.
    """
    try:
        with get_db_session() as db:
            job = row_to_dict(db.execute(select(jobs).where(jobs.c.job_id == job_id)))
            if not job:
                raise NotFound("Job not found")
            if not can_mutate_job(employer, job):
                raise Forbidden("Not authorized to delete this job")

            removed = db.execute(delete(applications).where(applications.c.job_id == job_id)).rowcount
            db.execute(delete(saved_jobs).where(saved_jobs.c.job_id == job_id))
            deleted = db.execute(
                delete(jobs)
                .where(jobs.c.job_id == job_id)
                .returning(jobs.c.company_id, jobs.c.is_active)
            ).first()
            if deleted is None:
                raise NotFound("Job not found")

            if deleted.is_active:
                counters.adjust_job_count(db, deleted.company_id, -1)
    except IntegrityError:
        # an application committed between the cascade and the job delete
        raise Conflict("Job received a new application while being deleted, please retry")

    logger.info("Job %s deleted with %s applications", job_id, removed,
                extra={"job_id": job_id, "user_id": employer["user_id"]})
    return removed


# ============================================================
# READS
# ============================================================

def get_job(job_id: int) -> dict:
    """Public detail read. Counts one view per call."""
    with get_db_session() as db:
        if not counters.increment_views(db, job_id):
            raise NotFound("Job not found")
        row = _fetch_joined(db, job_id)
    if row is None:
        raise NotFound("Job not found")
    return serialize_job(row)


def get_job_row(job_id: int) -> Optional[dict]:
    with get_db_session() as db:
        return row_to_dict(db.execute(select(jobs).where(jobs.c.job_id == job_id)))


def _contains(column, value: str):
    return func.lower(column).contains(value.lower(), autoescape=True)


def build_job_filters(filters: dict) -> list:
    """
    WHERE clauses for the public listing.

    salary_min matches numerically (salary_min >= n) OR textually against
    the free-text salary field.
    """
    conditions = [jobs.c.is_active.is_(True)]

    search = (filters.get("search") or "").split()
    if search:
        conditions.append(or_(*[
            or_(_contains(jobs.c.title, term), _contains(jobs.c.description, term),
                _contains(jobs.c.requirements, term), _contains(jobs.c.location, term))
            for term in search
        ]))

    if filters.get("location"):
        conditions.append(_contains(jobs.c.location, filters["location"]))
    for field in ("job_type", "category", "experience", "education"):
        if filters.get(field):
            conditions.append(jobs.c[field] == filters[field])

    salary = filters.get("salary_min")
    if salary:
        salary = str(salary).strip()
        text_match = _contains(jobs.c.salary, salary)
        # "5000000 VND" still compares numerically on its leading digits
        amount = re.match(r"\d+", salary)
        if amount:
            conditions.append(or_(jobs.c.salary_min >= int(amount.group()), text_match))
        else:
            conditions.append(text_match)

    return conditions


def list_jobs(filters: dict, page: int = 1, limit: int = 10,
              sort_by: str = "created_at", sort_order: str = "desc") -> dict:
    conditions = build_job_filters(filters)
    if sort_by not in SORTABLE_FIELDS:
        sort_by = "created_at"
    sort_column = jobs.c[sort_by]
    order = sort_column.desc() if sort_order == "desc" else sort_column.asc()

    with get_db_session() as db:
        total = db.execute(select(func.count()).select_from(jobs).where(and_(*conditions))).scalar_one()
        rows = rows_to_dicts(db.execute(
            _joined_select()
            .where(*conditions)
            .order_by(order, jobs.c.job_id.desc())
            .limit(limit)
            .offset(page_offset(page, limit))
        ))

    now = utcnow()
    return {
        "jobs": [serialize_job(r, now) for r in rows],
        "pagination": pagination_meta(page, limit, total),
    }


def list_employer_jobs(employer: dict, status: str = "all", page: int = 1, limit: int = 10) -> dict:
    """
    The employer's own postings, each with a fresh application count by
    status (computed from application rows, not from application_count).
    """
    conditions = [jobs.c.employer_id == employer["user_id"]]
    if status == "active":
        conditions.append(jobs.c.is_active.is_(True))
    elif status == "inactive":
        conditions.append(jobs.c.is_active.is_(False))

    with get_db_session() as db:
        total = db.execute(select(func.count()).select_from(jobs).where(*conditions)).scalar_one()
        rows = rows_to_dicts(db.execute(
            _joined_select()
            .where(*conditions)
            .order_by(jobs.c.created_at.desc(), jobs.c.job_id.desc())
            .limit(limit)
            .offset(page_offset(page, limit))
        ))
        breakdown = status_breakdown_by_job(db, [r["job_id"] for r in rows])

    now = utcnow()
    result = []
    for r in rows:
        job = serialize_job(r, now)
        job["application_stats"] = breakdown[r["job_id"]]
        result.append(job)

    return {"jobs": result, "pagination": pagination_meta(page, limit, total)}


def list_featured(limit: int = None) -> List[dict]:
    limit = limit or settings.featured_jobs_limit
    with get_db_session() as db:
        rows = rows_to_dicts(db.execute(
            _joined_select()
            .where(jobs.c.is_active.is_(True), jobs.c.is_featured.is_(True))
            .order_by(jobs.c.created_at.desc(), jobs.c.job_id.desc())
            .limit(limit)
        ))
    now = utcnow()
    return [serialize_job(r, now) for r in rows]
