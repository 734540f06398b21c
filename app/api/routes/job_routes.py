"""
Job Routes

GET /jobs - List active jobs with filters, sorting and pagination
GET /jobs/featured - Featured active jobs
GET /jobs/employer/my-jobs - Employer's own jobs with application counts
GET /jobs/{job_id} - Get job details (counts a view)
POST /jobs - Create job posting (employer only)
PUT /jobs/{job_id} - Update job (owning employer only)
DELETE /jobs/{job_id} - Delete job and its applications (owning employer only)
"""

from fastapi import APIRouter, Depends, Query
from typing import Optional

from app.core.auth import get_current_employer
from app.core.config import get_settings
from app.services import job_registry
from app.schemas.schemas import (
    JobCreate, JobUpdate, JobResponse, JobListResponse, FeaturedJobsResponse, MessageResponse,
    JobType, JobCategory, ExperienceLevel, EducationLevel, JobListingStatus, JobSortField, SortOrder
)

settings = get_settings()

router = APIRouter(prefix="/jobs", tags=["Jobs"])


@router.get("", response_model=JobListResponse)
async def list_jobs(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    search: Optional[str] = Query(None, description="Words matched in title, description, requirements or location"),
    location: Optional[str] = Query(None),
    job_type: Optional[JobType] = Query(None),
    category: Optional[JobCategory] = Query(None),
    experience: Optional[ExperienceLevel] = Query(None),
    education: Optional[EducationLevel] = Query(None),
    salary_min: Optional[str] = Query(None, description="Minimum salary, or text matched against the salary field"),
    sort_by: JobSortField = Query(JobSortField.created_at),
    sort_order: SortOrder = Query(SortOrder.desc),
):
    """List active job postings with filters and pagination."""
    filters = {
        "search": search,
        "location": location,
        "job_type": job_type.value if job_type else None,
        "category": category.value if category else None,
        "experience": experience.value if experience else None,
        "education": education.value if education else None,
        "salary_min": salary_min,
    }
    return job_registry.list_jobs(filters, page, limit, sort_by.value, sort_order.value)


@router.get("/featured", response_model=FeaturedJobsResponse)
async def get_featured_jobs(limit: int = Query(settings.featured_jobs_limit, ge=1, le=settings.max_page_size)):
    return FeaturedJobsResponse(jobs=job_registry.list_featured(limit))


@router.get("/employer/my-jobs", response_model=JobListResponse)
async def get_my_jobs(
    status: JobListingStatus = Query(JobListingStatus.all),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    employer: dict = Depends(get_current_employer),
):
    """Employer's postings, each with its applications counted by status."""
    return job_registry.list_employer_jobs(employer, status.value, page, limit)


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(job_id: int):
    """Get details of a specific job. Every call adds one view."""
    return job_registry.get_job(job_id)


@router.post("", response_model=JobResponse, status_code=201)
async def create_job(job: JobCreate, employer: dict = Depends(get_current_employer)):
    """
    Create a new job posting.

    An employer without a company gets one provisioned from company_name
    (or the employer's name) on the first posting.
    """
    return job_registry.create_job(employer, job.model_dump(exclude_unset=True))


@router.put("/{job_id}", response_model=JobResponse)
async def update_job(job_id: int, update: JobUpdate, employer: dict = Depends(get_current_employer)):
    """Update a job posting. Only provided fields are changed."""
    return job_registry.update_job(job_id, employer, update.model_dump(exclude_unset=True))


@router.delete("/{job_id}", response_model=MessageResponse)
async def delete_job(job_id: int, employer: dict = Depends(get_current_employer)):
    """Delete a job posting. Cascades to its applications."""
    removed = job_registry.delete_job(job_id, employer)
    return MessageResponse(message=f"Job deleted successfully along with {removed} application(s)")
