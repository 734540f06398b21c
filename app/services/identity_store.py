"""
Identity Store - users and companies.

Users carry their role (student | employer) and role-specific profile
fields. An employer is linked to at most one company through
users.company_id; every write of that link is a compare-and-set
(WHERE company_id IS NULL) so concurrent requests cannot attach two.
"""

from typing import Optional

from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import IntegrityError

from app.core.auth import hash_password, verify_password
from app.core.errors import AuthError, Conflict, Forbidden, NotFound
from app.db.postgres import get_db_session, row_to_dict
from app.db.tables import applications, companies, jobs, users
from app.utils.clock import utcnow
from app.utils.logger import get_logger

logger = get_logger(__name__)

STUDENT_FIELDS = {"school", "major", "year", "skills"}
EMPLOYER_FIELDS = {"position"}
COMMON_FIELDS = {"name", "phone", "bio", "address", "date_of_birth"}
REQUIRED_PROFILE_FIELDS = {"name"}
REQUIRED_COMPANY_FIELDS = {"name", "city", "email"}
MAX_SKILLS = 20
MAX_SKILL_LENGTH = 50


def _public(user: dict) -> dict:
    user = dict(user)
    user.pop("password_hash", None)
    return user


def company_summary(row: Optional[dict]) -> Optional[dict]:
    if not row:
        return None
    return {
        "company_id": row["company_id"],
        "name": row["name"],
        "logo": row.get("logo"),
        "industry": row.get("industry"),
    }


def clean_skills(skills: list) -> list:
    cleaned = [s.strip() for s in skills if s and s.strip()]
    return [s for s in cleaned if len(s) <= MAX_SKILL_LENGTH][:MAX_SKILLS]


# ============================================================
# USERS
# ============================================================

def register(name: str, email: str, password: str, user_type: str, phone: str = None) -> dict:
    """Create a user. Email uniqueness is enforced by the unique index."""
    now = utcnow()
    try:
        with get_db_session() as db:
            user = row_to_dict(db.execute(
                insert(users)
                .values(
                    name=name, email=email.lower(), password_hash=hash_password(password),
                    role=user_type, phone=phone, skills=[], is_verified=False,
                    is_active=True, created_at=now, updated_at=now,
                )
                .returning(*users.c)
            ))
    except IntegrityError:
        raise Conflict("Email already registered")

    logger.info("Registered %s %s", user_type, user["user_id"], extra={"user_id": user["user_id"]})
    return _public(user)


def authenticate_credentials(email: str, password: str) -> dict:
    """Verify email/password, stamp last_login and return the user."""
    with get_db_session() as db:
        user = row_to_dict(db.execute(select(users).where(users.c.email == email.lower())))

        if not user or not verify_password(password, user["password_hash"]):
            raise AuthError("Invalid email or password")
        if not user["is_active"]:
            raise Forbidden("Account deactivated")

        now = utcnow()
        db.execute(update(users).where(users.c.user_id == user["user_id"]).values(last_login=now))
        user["last_login"] = now

    return _public(user)


def get_user(user_id: int) -> dict:
    with get_db_session() as db:
        user = row_to_dict(db.execute(select(users).where(users.c.user_id == user_id)))
    if not user:
        raise NotFound("User not found")
    return _public(user)


def get_profile(user_id: int) -> dict:
    """User with company joined in, plus role-specific statistics."""
    with get_db_session() as db:
        user = row_to_dict(db.execute(select(users).where(users.c.user_id == user_id)))
        if not user:
            raise NotFound("User not found")

        user = _public(user)
        if user["company_id"]:
            user["company"] = company_summary(row_to_dict(db.execute(
                select(companies).where(companies.c.company_id == user["company_id"])
            )))

        if user["role"] == "student":
            rows = db.execute(
                select(applications.c.status, func.count().label("count"))
                .where(applications.c.applicant_id == user_id)
                .group_by(applications.c.status)
            )
            user["application_stats"] = {r.status: r.count for r in rows}
        else:
            rows = db.execute(
                select(jobs.c.is_active, func.count().label("count"))
                .where(jobs.c.employer_id == user_id)
                .group_by(jobs.c.is_active)
            )
            stats = {"active": 0, "total": 0}
            for r in rows:
                stats["total"] += r.count
                if r.is_active:
                    stats["active"] = r.count
            user["job_stats"] = stats

    return user


def update_profile(user: dict, patch: dict) -> dict:
    """
    Apply the supplied profile fields.

    Fields that do not belong to the caller's role are ignored.
    """
    allowed = set(COMMON_FIELDS)
    allowed |= STUDENT_FIELDS if user["role"] == "student" else EMPLOYER_FIELDS
    values = {k: v for k, v in patch.items() if k in allowed}
    # a name cannot be cleared
    values = {k: v for k, v in values.items() if v is not None or k not in REQUIRED_PROFILE_FIELDS}

    if "skills" in values:
        values["skills"] = clean_skills(values["skills"] or [])

    if values:
        values["updated_at"] = utcnow()
        with get_db_session() as db:
            db.execute(update(users).where(users.c.user_id == user["user_id"]).values(**values))

    return get_profile(user["user_id"])


def change_password(user: dict, current_password: str, new_password: str):
    with get_db_session() as db:
        password_hash = db.execute(
            select(users.c.password_hash).where(users.c.user_id == user["user_id"])
        ).scalar_one()
        if not verify_password(current_password, password_hash):
            raise AuthError("Current password is incorrect")
        db.execute(
            update(users)
            .where(users.c.user_id == user["user_id"])
            .values(password_hash=hash_password(new_password), updated_at=utcnow())
        )


def _replace_user_file(user_id: int, column: str, reference: str) -> Optional[str]:
    """Point users.<column> at a new blob and return the reference it replaced."""
    with get_db_session() as db:
        previous = db.execute(select(users.c[column]).where(users.c.user_id == user_id)).scalar_one_or_none()
        db.execute(update(users).where(users.c.user_id == user_id).values(**{column: reference}, updated_at=utcnow()))
    return previous


def set_resume(user_id: int, reference: str) -> Optional[str]:
    """
    Replace the student's resume. Returns the old reference when nothing
    else points at it; applications keep the resume they were sent with.
    """
    previous = _replace_user_file(user_id, "resume", reference)
    if previous:
        with get_db_session() as db:
            in_use = db.execute(
                select(applications.c.application_id).where(applications.c.resume == previous).limit(1)
            ).first()
        if in_use:
            return None
    return previous


def set_avatar(user_id: int, reference: str) -> Optional[str]:
    return _replace_user_file(user_id, "avatar", reference)


# ============================================================
# COMPANIES
# ============================================================

def _company_of(db, employer_id: int) -> Optional[int]:
    return db.execute(select(users.c.company_id).where(users.c.user_id == employer_id)).scalar_one_or_none()


def get_company(company_id: int) -> dict:
    with get_db_session() as db:
        company = row_to_dict(db.execute(select(companies).where(companies.c.company_id == company_id)))
    if not company:
        raise NotFound("Company not found")
    return company


def get_employer_company(employer: dict) -> dict:
    with get_db_session() as db:
        company_id = _company_of(db, employer["user_id"])
    if not company_id:
        raise NotFound("Company profile not found. Create one first.")
    return get_company(company_id)


def create_company(employer: dict, fields: dict) -> dict:
    """Create a company and attach it to the employer, atomically."""
    now = utcnow()
    try:
        with get_db_session() as db:
            company = row_to_dict(db.execute(
                insert(companies)
                .values(**fields, is_verified=False, is_active=True, job_count=0,
                        created_by=employer["user_id"], created_at=now, updated_at=now)
                .returning(*companies.c)
            ))
            attached = db.execute(
                update(users)
                .where(users.c.user_id == employer["user_id"], users.c.company_id.is_(None))
                .values(company_id=company["company_id"], updated_at=now)
            )
            if attached.rowcount != 1:
                raise Conflict("Employer already has a company")
    except IntegrityError:
        raise Conflict("Tax code already registered")

    logger.info("Company %s created by employer %s", company["company_id"], employer["user_id"],
                extra={"company_id": company["company_id"], "user_id": employer["user_id"]})
    return company


def update_company(employer: dict, patch: dict) -> dict:
    company = get_employer_company(employer)
    # name, city and email cannot be cleared
    patch = {k: v for k, v in patch.items() if v is not None or k not in REQUIRED_COMPANY_FIELDS}
    if patch:
        try:
            with get_db_session() as db:
                db.execute(
                    update(companies)
                    .where(companies.c.company_id == company["company_id"])
                    .values(**patch, updated_at=utcnow())
                )
        except IntegrityError:
            raise Conflict("Tax code already registered")
    return get_company(company["company_id"])


def set_company_logo(employer: dict, reference: str) -> dict:
    company = get_employer_company(employer)
    with get_db_session() as db:
        db.execute(
            update(companies)
            .where(companies.c.company_id == company["company_id"])
            .values(logo=reference, updated_at=utcnow())
        )
    return get_company(company["company_id"])


def ensure_company(employer: dict, company_name: str = None, city: str = None) -> int:
    """
    Return the employer's company id, creating one on first use.

    The provisioned row is keyed by companies.provisioned_for (unique) and
    attached with a compare-and-set on users.company_id, both in one
    transaction. A concurrent request for the same employer either hits the
    unique index or loses the compare-and-set; either way it rolls back
    and adopts the winner's company.
    """
    employer_id = employer["user_id"]
    with get_db_session() as db:
        row = db.execute(
            select(users.c.name, users.c.email, users.c.company_id).where(users.c.user_id == employer_id)
        ).first()
    if row is None:
        raise NotFound("Employer not found")
    if row.company_id:
        return row.company_id

    now = utcnow()
    try:
        with get_db_session() as db:
            company_id = db.execute(
                insert(companies)
                .values(
                    name=(company_name or row.name)[:100], email=row.email, city=city or "",
                    is_verified=False, is_active=True, job_count=0,
                    provisioned_for=employer_id, created_by=employer_id,
                    created_at=now, updated_at=now,
                )
                .returning(companies.c.company_id)
            ).scalar_one()
            attached = db.execute(
                update(users)
                .where(users.c.user_id == employer_id, users.c.company_id.is_(None))
                .values(company_id=company_id, updated_at=now)
            )
            if attached.rowcount != 1:
                db.rollback()
                company_id = None
    except IntegrityError:
        company_id = None

    if company_id is None:
        with get_db_session() as db:
            company_id = _company_of(db, employer_id)
        if company_id is None:
            raise Conflict("Could not provision a company for this employer, retry")
        return company_id

    logger.info("Auto-provisioned company %s for employer %s", company_id, employer_id,
                extra={"company_id": company_id, "user_id": employer_id})
    return company_id
