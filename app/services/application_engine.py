"""
Application Engine - a student's application to a job.

Lifecycle:
    apply        student creates it (status=pending)
    update_status  the job's employer moves it between any two statuses
    withdraw     the applicant deletes it, unless shortlisted/accepted

Invariants:
- One application per (job, applicant). The unique index decides, so two
  concurrent applies produce exactly one row and one Conflict.
- reviewed_at/reviewed_by are stamped once, the first time the status
  leaves pending. Later changes (including back to pending) keep them.
- jobs.application_count moves by exactly one per successful apply and per
  successful withdraw, and never on a failed one. The adjustment runs after
  the application write has committed; see counters.apply_counter_delta.
"""

from sqlalchemy import case, delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError

from app.core.errors import Conflict, DeadlinePassed, Forbidden, InvalidState, NotFound
from app.core.permissions import (
    LOCKED_APPLICATION_STATUSES, can_mutate_application_status, can_withdraw, has_role,
)
from app.db.postgres import get_db_session, row_to_dict, rows_to_dicts
from app.db.tables import applications, companies, jobs, users
from app.services import counters
from app.services.job_registry import job_summary
from app.utils.clock import utcnow
from app.utils.logger import get_logger
from app.utils.pagination import page_offset, pagination_meta

logger = get_logger(__name__)

OPTIONAL_STATUS_FIELDS = ("notes", "interview_date", "interview_location")
SORTABLE_FIELDS = {"applied_at", "updated_at", "status"}


def _listing_select():
    """Applications joined with job, company and applicant columns."""
    return (
        select(
            applications,
            jobs.c.title, jobs.c.salary, jobs.c.location, jobs.c.job_type, jobs.c.category,
            jobs.c.is_active, jobs.c.is_featured, jobs.c.application_deadline,
            jobs.c.created_at.label("job_created_at"), jobs.c.company_id,
            companies.c.name.label("company_name"),
            companies.c.logo.label("company_logo"),
            companies.c.industry.label("company_industry"),
            users.c.name.label("applicant_name"),
            users.c.email.label("applicant_email"),
            users.c.phone.label("applicant_phone"),
            users.c.school.label("applicant_school"),
            users.c.major.label("applicant_major"),
            users.c.skills.label("applicant_skills"),
            users.c.resume.label("applicant_resume"),
        )
        .select_from(
            applications
            .join(jobs, applications.c.job_id == jobs.c.job_id)
            .join(companies, jobs.c.company_id == companies.c.company_id)
            .join(users, applications.c.applicant_id == users.c.user_id)
        )
    )


def serialize_application(row: dict, with_applicant: bool = True) -> dict:
    application = {c.name: row[c.name] for c in applications.c}
    application["job"] = job_summary({**row, "created_at": row["job_created_at"]})
    if with_applicant:
        application["applicant"] = {
            "user_id": row["applicant_id"],
            "name": row["applicant_name"],
            "email": row["applicant_email"],
            "phone": row["applicant_phone"],
            "school": row["applicant_school"],
            "major": row["applicant_major"],
            "skills": row["applicant_skills"] or [],
            "resume": row["applicant_resume"],
        }
    return application


def _fetch_one(db, application_id: int) -> dict:
    row = row_to_dict(db.execute(_listing_select().where(applications.c.application_id == application_id)))
    return serialize_application(row)


# ============================================================
# MUTATIONS
# ============================================================

def apply(student: dict, job_id: int, cover_letter: str = None) -> dict:
    """
    Submit an application.

    Raises NotFound (missing or inactive job), DeadlinePassed (checked
    before the active flag) or Conflict (already applied).
    """
    if not has_role(student, "student"):
        raise Forbidden("Only students can apply for jobs")

    now = utcnow()
    try:
        with get_db_session() as db:
            job = db.execute(
                select(jobs.c.job_id, jobs.c.is_active, jobs.c.application_deadline)
                .where(jobs.c.job_id == job_id)
            ).first()
            if job is None:
                raise NotFound("Job not found or no longer available")
            if job.application_deadline and now > job.application_deadline:
                raise DeadlinePassed("Application deadline has passed")
            if not job.is_active:
                raise NotFound("Job not found or no longer available")

            resume = db.execute(
                select(users.c.resume).where(users.c.user_id == student["user_id"])
            ).scalar_one_or_none()

            application_id = db.execute(
                insert(applications)
                .values(
                    job_id=job_id, applicant_id=student["user_id"], cover_letter=cover_letter,
                    resume=resume, status="pending", applied_at=now, updated_at=now,
                )
                .returning(applications.c.application_id)
            ).scalar_one()
    except IntegrityError:
        raise Conflict("You have already applied for this job")

    counters.apply_counter_delta(counters.adjust_application_count, job_id, +1)
    logger.info("Application %s submitted for job %s", application_id, job_id,
                extra={"application_id": application_id, "job_id": job_id, "user_id": student["user_id"]})

    with get_db_session() as db:
        return _fetch_one(db, application_id)


def update_status(application_id: int, employer: dict, status: str, changes: dict = None) -> dict:
    """
    Set the status of an application to one of the five statuses.

    `changes` holds only the optional fields the caller supplied
    (notes, interview_date, interview_location); omitted ones are kept.
    """
    changes = {k: v for k, v in (changes or {}).items() if k in OPTIONAL_STATUS_FIELDS}

    with get_db_session() as db:
        row = row_to_dict(db.execute(
            select(applications, jobs.c.employer_id)
            .select_from(applications.join(jobs, applications.c.job_id == jobs.c.job_id))
            .where(applications.c.application_id == application_id)
        ))
        if row is None:
            raise NotFound("Application not found")
        if not can_mutate_application_status(employer, row, {"employer_id": row["employer_id"]}):
            raise Forbidden("Not authorized to update this application")

        now = utcnow()
        values = dict(changes, status=status, updated_at=now)
        if status != "pending":
            # Stamp only if never stamped, decided by the database row itself
            values["reviewed_at"] = case(
                (applications.c.reviewed_at.is_(None), now), else_=applications.c.reviewed_at
            )
            values["reviewed_by"] = case(
                (applications.c.reviewed_at.is_(None), employer["user_id"]),
                else_=applications.c.reviewed_by,
            )

        db.execute(update(applications).where(applications.c.application_id == application_id).values(**values))
        updated = _fetch_one(db, application_id)

    logger.info("Application %s status %s -> %s", application_id, row["status"], status,
                extra={"application_id": application_id, "user_id": employer["user_id"]})
    return updated


def withdraw(application_id: int, student: dict):
    """
    Delete the student's own application.

    NotFound if the student has no application with this id, InvalidState
    while it is shortlisted or accepted.
    """
    with get_db_session() as db:
        application = row_to_dict(db.execute(
            select(applications).where(
                applications.c.application_id == application_id,
                applications.c.applicant_id == student["user_id"],
            )
        ))
        if not application:
            raise NotFound("Application not found")
        if not can_withdraw(student, application):
            raise InvalidState("Cannot withdraw application in current status")

        # The status guard is repeated in the DELETE so a concurrent
        # shortlisting between read and delete still blocks the withdrawal
        deleted = db.execute(
            delete(applications).where(
                applications.c.application_id == application_id,
                applications.c.applicant_id == student["user_id"],
                applications.c.status.not_in(sorted(LOCKED_APPLICATION_STATUSES)),
            )
        )
        if deleted.rowcount != 1:
            # Lost a race: either another withdrawal removed it or it was just locked
            still_there = db.execute(
                select(applications.c.application_id).where(applications.c.application_id == application_id)
            ).first()
            if not still_there:
                raise NotFound("Application not found")
            raise InvalidState("Cannot withdraw application in current status")

    counters.apply_counter_delta(counters.adjust_application_count, application["job_id"], -1)
    logger.info("Application %s withdrawn", application_id,
                extra={"application_id": application_id, "job_id": application["job_id"],
                       "user_id": student["user_id"]})


# ============================================================
# READS
# ============================================================

def list_for_student(student: dict, status: str = None, page: int = 1, limit: int = 10) -> dict:
    conditions = [applications.c.applicant_id == student["user_id"]]
    if status:
        conditions.append(applications.c.status == status)

    with get_db_session() as db:
        total = db.execute(select(func.count()).select_from(applications).where(*conditions)).scalar_one()
        rows = rows_to_dicts(db.execute(
            _listing_select()
            .where(*conditions)
            .order_by(applications.c.applied_at.desc(), applications.c.application_id.desc())
            .limit(limit)
            .offset(page_offset(page, limit))
        ))

    return {
        "applications": [serialize_application(r, with_applicant=False) for r in rows],
        "pagination": pagination_meta(page, limit, total),
    }


def list_for_employer(employer: dict, job_id: int = None, status: str = None,
                      sort_by: str = "applied_at", sort_order: str = "desc",
                      page: int = 1, limit: int = 10) -> dict:
    """Applications to the employer's jobs, with applicant profile fields."""
    owned = select(jobs.c.job_id).where(jobs.c.employer_id == employer["user_id"])
    if job_id:
        owned = owned.where(jobs.c.job_id == job_id)

    conditions = [applications.c.job_id.in_(owned)]
    if status:
        conditions.append(applications.c.status == status)

    if sort_by not in SORTABLE_FIELDS:
        sort_by = "applied_at"
    sort_column = applications.c[sort_by]
    order = sort_column.desc() if sort_order == "desc" else sort_column.asc()

    with get_db_session() as db:
        total = db.execute(select(func.count()).select_from(applications).where(*conditions)).scalar_one()
        rows = rows_to_dicts(db.execute(
            _listing_select()
            .where(*conditions)
            .order_by(order, applications.c.application_id.desc())
            .limit(limit)
            .offset(page_offset(page, limit))
        ))

    return {
        "applications": [serialize_application(r) for r in rows],
        "pagination": pagination_meta(page, limit, total),
    }
