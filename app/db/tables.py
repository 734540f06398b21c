"""
Relational schema (SQLAlchemy Core).

Tables:
- users         students and employers (one table, role column)
- companies     employer organisations, carries the job_count counter
- jobs          postings, carries views and application_count counters
- applications  one row per (job, applicant), enforced by a unique index
- saved_jobs    a student's bookmarked postings

Counters are caches. app.services.counters owns every write to them.
"""

from sqlalchemy import (
    JSON, Boolean, Column, DateTime, ForeignKey, Index, Integer, MetaData,
    String, Table, Text, UniqueConstraint,
)

metadata = MetaData()


users = Table(
    "users", metadata,
    Column("user_id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(50), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
    Column("role", String(20), nullable=False),
    Column("phone", String(20)),
    Column("avatar", String(64)),
    Column("date_of_birth", DateTime),
    Column("address", String(200)),
    Column("bio", String(500)),
    # student profile
    Column("school", String(100)),
    Column("major", String(100)),
    Column("year", String(20)),
    Column("skills", JSON, nullable=False, default=list),
    Column("resume", String(64)),
    # employer profile
    Column("company_id", Integer, ForeignKey("companies.company_id")),
    Column("position", String(100)),
    Column("is_verified", Boolean, nullable=False, default=False),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("last_login", DateTime),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
)


companies = Table(
    "companies", metadata,
    Column("company_id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False),
    Column("description", String(2000)),
    Column("logo", String(64)),
    Column("website", String(255)),
    Column("industry", String(100)),
    Column("size", String(20)),
    Column("founded", Integer),
    Column("address", String(200)),
    Column("city", String(100), nullable=False),
    Column("district", String(100)),
    Column("phone", String(20)),
    Column("email", String(255), nullable=False),
    Column("tax_code", String(50), unique=True),
    Column("is_verified", Boolean, nullable=False, default=False),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("job_count", Integer, nullable=False, default=0),
    # Set to the employer's user_id for companies created on first job
    # posting. Unique, so concurrent first postings cannot create two.
    Column("provisioned_for", Integer, unique=True),
    Column("created_by", Integer, nullable=False),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
)


jobs = Table(
    "jobs", metadata,
    Column("job_id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(100), nullable=False),
    Column("description", Text, nullable=False),
    Column("requirements", Text, nullable=False, default=""),
    Column("benefits", Text, nullable=False, default=""),
    Column("salary", String(100), nullable=False),
    Column("salary_min", Integer),
    Column("salary_max", Integer),
    Column("salary_type", String(20), nullable=False),
    Column("location", String(200), nullable=False),
    Column("address", String(200), nullable=False, default=""),
    Column("job_type", String(20), nullable=False),
    Column("category", String(20), nullable=False),
    Column("employer_id", Integer, ForeignKey("users.user_id"), nullable=False),
    Column("company_id", Integer, ForeignKey("companies.company_id"), nullable=False),
    Column("contact_email", String(255), nullable=False),
    Column("contact_phone", String(20), nullable=False, default=""),
    Column("application_deadline", DateTime),
    Column("work_hours", String(100), nullable=False),
    Column("vacancies", Integer, nullable=False, default=1),
    Column("experience", String(20), nullable=False),
    Column("education", String(20), nullable=False),
    Column("skills", JSON, nullable=False, default=list),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("is_featured", Boolean, nullable=False, default=False),
    Column("views", Integer, nullable=False, default=0),
    Column("application_count", Integer, nullable=False, default=0),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
)

Index("ix_jobs_employer_created", jobs.c.employer_id, jobs.c.created_at)
Index("ix_jobs_company_active", jobs.c.company_id, jobs.c.is_active)
Index("ix_jobs_type_category_active", jobs.c.job_type, jobs.c.category, jobs.c.is_active)


applications = Table(
    "applications", metadata,
    Column("application_id", Integer, primary_key=True, autoincrement=True),
    Column("job_id", Integer, ForeignKey("jobs.job_id"), nullable=False),
    Column("applicant_id", Integer, ForeignKey("users.user_id"), nullable=False),
    Column("cover_letter", String(1000)),
    Column("resume", String(64)),
    Column("status", String(20), nullable=False, default="pending"),
    Column("applied_at", DateTime, nullable=False),
    Column("reviewed_at", DateTime),
    Column("reviewed_by", Integer, ForeignKey("users.user_id")),
    Column("notes", String(500)),
    Column("interview_date", DateTime),
    Column("interview_location", String(200)),
    Column("updated_at", DateTime, nullable=False),
    # At most one application per student per job
    UniqueConstraint("job_id", "applicant_id", name="uq_applications_job_applicant"),
)

Index("ix_applications_applicant_applied", applications.c.applicant_id, applications.c.applied_at)


saved_jobs = Table(
    "saved_jobs", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.user_id"), nullable=False),
    Column("job_id", Integer, ForeignKey("jobs.job_id"), nullable=False),
    Column("saved_at", DateTime, nullable=False),
    UniqueConstraint("user_id", "job_id", name="uq_saved_jobs_user_job"),
)
