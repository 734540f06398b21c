"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.

Update schemas are partial: only the fields a client actually sends are
applied (read them with model_dump(exclude_unset=True)). A field sent as
null is applied as null; an omitted field is left unchanged.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional, List, Dict
from datetime import datetime
from enum import Enum

from app.utils.clock import to_naive_utc

PHONE_PATTERN = r"^(03|05|07|08|09|01[2689])[0-9]{8}$"
WEBSITE_PATTERN = r"^https?://.+"


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    student = "student"
    employer = "employer"


class StudentYear(str, Enum):
    first = "1"
    second = "2"
    third = "3"
    fourth = "4"
    graduate = "Graduate"


class JobType(str, Enum):
    part_time = "part-time"
    full_time = "full-time"
    internship = "internship"
    freelance = "freelance"


class JobCategory(str, Enum):
    service = "service"
    sales = "sales"
    tutoring = "tutoring"
    technology = "technology"
    delivery = "delivery"
    office = "office"
    other = "other"


class SalaryType(str, Enum):
    hourly = "hourly"
    daily = "daily"
    monthly = "monthly"
    project = "project"


class ExperienceLevel(str, Enum):
    none = "none"
    under_1_year = "under-1-year"
    one_to_two_years = "1-2-years"
    over_2_years = "over-2-years"


class EducationLevel(str, Enum):
    none = "none"
    high_school = "high-school"
    vocational = "vocational"
    college = "college"
    university = "university"


class ApplicationStatus(str, Enum):
    pending = "pending"
    reviewed = "reviewed"
    shortlisted = "shortlisted"
    rejected = "rejected"
    accepted = "accepted"


class CompanySize(str, Enum):
    tiny = "1-10"
    small = "11-50"
    medium = "51-200"
    large = "201-500"
    xlarge = "501-1000"
    enterprise = "1000+"


class JobListingStatus(str, Enum):
    all = "all"
    active = "active"
    inactive = "inactive"


class SortOrder(str, Enum):
    asc = "asc"
    desc = "desc"


class JobSortField(str, Enum):
    created_at = "created_at"
    views = "views"
    application_count = "application_count"
    salary_min = "salary_min"
    title = "title"
    application_deadline = "application_deadline"


class ApplicationSortField(str, Enum):
    applied_at = "applied_at"
    updated_at = "updated_at"
    status = "status"


# ============================================================
# SHARED
# ============================================================

class Pagination(BaseModel):
    current: int
    pages: int
    total: int


class CompanySummary(BaseModel):
    company_id: int
    name: str
    logo: Optional[str] = None
    industry: Optional[str] = None


class EmployerSummary(BaseModel):
    user_id: int
    name: str
    email: str


# ============================================================
# AUTH SCHEMAS
# ============================================================

class RegisterRequest(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)
    user_type: UserRole
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: int
    role: str


# ============================================================
# USER SCHEMAS
# ============================================================

class ProfileUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: Optional[str] = Field(None, min_length=2, max_length=50)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    bio: Optional[str] = Field(None, max_length=500)
    address: Optional[str] = Field(None, max_length=200)
    date_of_birth: Optional[datetime] = None
    # students
    school: Optional[str] = Field(None, max_length=100)
    major: Optional[str] = Field(None, max_length=100)
    year: Optional[StudentYear] = None
    skills: Optional[List[str]] = None
    # employers
    position: Optional[str] = Field(None, max_length=100)

    @field_validator("date_of_birth")
    @classmethod
    def normalize_dob(cls, v):
        return to_naive_utc(v)


class JobStats(BaseModel):
    active: int = 0
    total: int = 0


class UserResponse(BaseModel):
    user_id: int
    name: str
    email: str
    role: str
    phone: Optional[str] = None
    avatar: Optional[str] = None
    date_of_birth: Optional[datetime] = None
    address: Optional[str] = None
    bio: Optional[str] = None
    school: Optional[str] = None
    major: Optional[str] = None
    year: Optional[str] = None
    skills: List[str] = []
    resume: Optional[str] = None
    company_id: Optional[int] = None
    position: Optional[str] = None
    is_verified: bool = False
    is_active: bool = True
    last_login: Optional[datetime] = None
    created_at: datetime
    company: Optional[CompanySummary] = None
    application_stats: Optional[Dict[str, int]] = None
    job_stats: Optional[JobStats] = None


# ============================================================
# COMPANY SCHEMAS
# ============================================================

class CompanyCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    website: Optional[str] = Field(None, pattern=WEBSITE_PATTERN)
    industry: Optional[str] = Field(None, max_length=100)
    size: Optional[CompanySize] = None
    founded: Optional[int] = Field(None, ge=1900)
    address: Optional[str] = Field(None, max_length=200)
    city: str = Field(..., min_length=1, max_length=100)
    district: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    email: EmailStr
    tax_code: Optional[str] = Field(None, max_length=50)

    @field_validator("founded")
    @classmethod
    def founded_not_in_future(cls, v):
        if v is not None and v > datetime.now().year:
            raise ValueError("Founded year cannot be in the future")
        return v


class CompanyUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    website: Optional[str] = Field(None, pattern=WEBSITE_PATTERN)
    industry: Optional[str] = Field(None, max_length=100)
    size: Optional[CompanySize] = None
    founded: Optional[int] = Field(None, ge=1900)
    address: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    district: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    email: Optional[EmailStr] = None
    tax_code: Optional[str] = Field(None, max_length=50)

    @field_validator("founded")
    @classmethod
    def founded_not_in_future(cls, v):
        if v is not None and v > datetime.now().year:
            raise ValueError("Founded year cannot be in the future")
        return v


class CompanyResponse(BaseModel):
    company_id: int
    name: str
    description: Optional[str] = None
    logo: Optional[str] = None
    website: Optional[str] = None
    industry: Optional[str] = None
    size: Optional[str] = None
    founded: Optional[int] = None
    address: Optional[str] = None
    city: str
    district: Optional[str] = None
    phone: Optional[str] = None
    email: str
    tax_code: Optional[str] = None
    is_verified: bool = False
    is_active: bool = True
    job_count: int = 0
    created_at: datetime


# ============================================================
# JOB SCHEMAS
# ============================================================

class JobCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    title: str = Field(..., min_length=5, max_length=100)
    description: str = Field(..., min_length=50, max_length=5000)
    requirements: Optional[str] = Field(None, max_length=2000)
    benefits: Optional[str] = Field(None, max_length=2000)
    salary: Optional[str] = Field(None, max_length=100)
    salary_min: Optional[int] = Field(None, ge=0)
    salary_max: Optional[int] = Field(None, ge=0)
    salary_type: Optional[SalaryType] = None
    location: str = Field(..., min_length=1, max_length=200)
    address: Optional[str] = Field(None, max_length=200)
    job_type: Optional[JobType] = None
    category: Optional[JobCategory] = None
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    application_deadline: Optional[datetime] = None
    work_hours: Optional[str] = Field(None, max_length=100)
    vacancies: Optional[int] = Field(None, ge=1)
    experience: Optional[ExperienceLevel] = None
    education: Optional[EducationLevel] = None
    skills: Optional[List[str]] = None
    is_featured: bool = False
    # Used only when the employer has no company yet
    company_name: Optional[str] = Field(None, max_length=100)

    @field_validator("title", "location")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    @field_validator("application_deadline")
    @classmethod
    def normalize_deadline(cls, v):
        return to_naive_utc(v)

    @field_validator("skills")
    @classmethod
    def skill_length(cls, v):
        if v is not None and any(len(s) > 50 for s in v):
            raise ValueError("Skill cannot be more than 50 characters")
        return v


class JobUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    title: Optional[str] = Field(None, min_length=5, max_length=100)
    description: Optional[str] = Field(None, min_length=50, max_length=5000)
    requirements: Optional[str] = Field(None, max_length=2000)
    benefits: Optional[str] = Field(None, max_length=2000)
    salary: Optional[str] = Field(None, max_length=100)
    salary_min: Optional[int] = Field(None, ge=0)
    salary_max: Optional[int] = Field(None, ge=0)
    salary_type: Optional[SalaryType] = None
    location: Optional[str] = Field(None, min_length=1, max_length=200)
    address: Optional[str] = Field(None, max_length=200)
    job_type: Optional[JobType] = None
    category: Optional[JobCategory] = None
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    application_deadline: Optional[datetime] = None
    work_hours: Optional[str] = Field(None, max_length=100)
    vacancies: Optional[int] = Field(None, ge=1)
    experience: Optional[ExperienceLevel] = None
    education: Optional[EducationLevel] = None
    skills: Optional[List[str]] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None

    @field_validator("application_deadline")
    @classmethod
    def normalize_deadline(cls, v):
        return to_naive_utc(v)

    @field_validator("skills")
    @classmethod
    def skill_length(cls, v):
        if v is not None and any(len(s) > 50 for s in v):
            raise ValueError("Skill cannot be more than 50 characters")
        return v


class JobResponse(BaseModel):
    job_id: int
    title: str
    description: str
    requirements: str = ""
    benefits: str = ""
    salary: str
    salary_min: Optional[int] = None
    salary_max: Optional[int] = None
    salary_type: str
    location: str
    address: str = ""
    job_type: str
    category: str
    employer_id: int
    company_id: int
    contact_email: str
    contact_phone: str = ""
    application_deadline: Optional[datetime] = None
    work_hours: str
    vacancies: int
    experience: str
    education: str
    skills: List[str] = []
    is_active: bool
    is_featured: bool
    views: int
    application_count: int
    is_expired: bool
    is_accepting_applications: bool
    created_at: datetime
    updated_at: datetime
    company: Optional[CompanySummary] = None
    employer: Optional[EmployerSummary] = None
    application_stats: Optional[Dict[str, int]] = None


class JobListResponse(BaseModel):
    jobs: List[JobResponse]
    pagination: Pagination


class FeaturedJobsResponse(BaseModel):
    jobs: List[JobResponse]


class JobSummary(BaseModel):
    job_id: int
    title: str
    salary: Optional[str] = None
    location: Optional[str] = None
    job_type: Optional[str] = None
    category: Optional[str] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    application_deadline: Optional[datetime] = None
    created_at: Optional[datetime] = None
    company: Optional[CompanySummary] = None


class SavedJobsResponse(BaseModel):
    saved_jobs: List[JobSummary]


class RecommendedJobsResponse(BaseModel):
    recommended_jobs: List[JobSummary]


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class ApplicationCreate(BaseModel):
    job_id: int
    cover_letter: Optional[str] = Field(None, max_length=1000)

    @field_validator("cover_letter")
    @classmethod
    def strip_cover_letter(cls, v):
        return v.strip() if v is not None else v


class ApplicationStatusUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    status: ApplicationStatus
    notes: Optional[str] = Field(None, max_length=500)
    interview_date: Optional[datetime] = None
    interview_location: Optional[str] = Field(None, max_length=200)

    @field_validator("interview_date")
    @classmethod
    def normalize_interview_date(cls, v):
        return to_naive_utc(v)


class ApplicantSummary(BaseModel):
    user_id: int
    name: str
    email: str
    phone: Optional[str] = None
    school: Optional[str] = None
    major: Optional[str] = None
    skills: List[str] = []
    resume: Optional[str] = None


class ApplicationResponse(BaseModel):
    application_id: int
    job_id: int
    applicant_id: int
    cover_letter: Optional[str] = None
    resume: Optional[str] = None
    status: ApplicationStatus
    applied_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[int] = None
    notes: Optional[str] = None
    interview_date: Optional[datetime] = None
    interview_location: Optional[str] = None
    updated_at: datetime
    job: Optional[JobSummary] = None
    applicant: Optional[ApplicantSummary] = None


class ApplicationListResponse(BaseModel):
    applications: List[ApplicationResponse]
    pagination: Pagination


class StatisticsResponse(BaseModel):
    total: int
    recent: int
    by_status: Dict[str, int]


# ============================================================
# FILE SCHEMAS
# ============================================================

class FileUploadResponse(BaseModel):
    success: bool = True
    message: str
    reference: str


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True


class ErrorResponse(BaseModel):
    detail: str
    error: str
