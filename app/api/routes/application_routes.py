"""
Application Routes

POST /applications - Apply to a job (student only)
GET /applications/student/my-applications - Student's own applications
DELETE /applications/{application_id} - Withdraw an application (student only)
GET /applications/employer/job-applications - Applications to the employer's jobs
GET /applications/employer/statistics - Application counts for the employer
PUT /applications/{application_id}/status - Change an application's status (employer only)
"""

from fastapi import APIRouter, Depends, Query
from typing import Optional

from app.core.auth import get_current_student, get_current_employer
from app.core.config import get_settings
from app.services import application_engine, statistics
from app.schemas.schemas import (
    ApplicationCreate, ApplicationStatusUpdate, ApplicationResponse, ApplicationListResponse,
    StatisticsResponse, MessageResponse, ApplicationStatus, ApplicationSortField, SortOrder
)

settings = get_settings()

router = APIRouter(prefix="/applications", tags=["Applications"])


@router.post("", response_model=ApplicationResponse, status_code=201)
async def apply_for_job(application: ApplicationCreate, student: dict = Depends(get_current_student)):
    """Apply to a job. Students only. Cannot apply twice to the same job."""
    return application_engine.apply(student, application.job_id, application.cover_letter)


@router.get("/student/my-applications", response_model=ApplicationListResponse)
async def get_my_applications(
    status: Optional[ApplicationStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    student: dict = Depends(get_current_student),
):
    return application_engine.list_for_student(student, status.value if status else None, page, limit)


@router.delete("/{application_id}", response_model=MessageResponse)
async def withdraw_application(application_id: int, student: dict = Depends(get_current_student)):
    """Withdraw an application. Not allowed once shortlisted or accepted."""
    application_engine.withdraw(application_id, student)
    return MessageResponse(message="Application withdrawn successfully")


@router.get("/employer/job-applications", response_model=ApplicationListResponse)
async def get_job_applications(
    job_id: Optional[int] = Query(None, description="Only applications to this job"),
    status: Optional[ApplicationStatus] = Query(None),
    sort_by: ApplicationSortField = Query(ApplicationSortField.applied_at),
    sort_order: SortOrder = Query(SortOrder.desc),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    employer: dict = Depends(get_current_employer),
):
    """Applications received for the employer's jobs, with applicant details."""
    return application_engine.list_for_employer(
        employer,
        job_id=job_id,
        status=status.value if status else None,
        sort_by=sort_by.value,
        sort_order=sort_order.value,
        page=page,
        limit=limit,
    )


@router.get("/employer/statistics", response_model=StatisticsResponse)
async def get_statistics(employer: dict = Depends(get_current_employer)):
    return statistics.employer_statistics(employer)


@router.put("/{application_id}/status", response_model=ApplicationResponse)
async def update_application_status(
    application_id: int,
    update: ApplicationStatusUpdate,
    employer: dict = Depends(get_current_employer),
):
    """
    Change the status of an application to one of the employer's jobs.

    notes, interview_date and interview_location are changed only when sent.
    """
    changes = update.model_dump(exclude_unset=True)
    status = changes.pop("status")
    return application_engine.update_status(application_id, employer, status, changes)
