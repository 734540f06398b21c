"""
User Routes

GET /users/profile - Get own profile
GET /users/profile/{user_id} - Get another user's profile
PUT /users/profile - Update profile (only provided fields)
POST /users/upload-resume - Upload resume PDF (student only)
POST /users/upload-avatar - Upload avatar image
GET /users/saved-jobs - List saved jobs (student only)
POST /users/saved-jobs/{job_id} - Save a job (student only)
DELETE /users/saved-jobs/{job_id} - Remove a saved job (student only)
GET /users/recommended-jobs - Jobs matching the student's profile
"""

from fastapi import APIRouter, Depends, UploadFile, File

from app.core.auth import get_current_user, get_current_student
from app.services import identity_store, saved_jobs
from app.services.blob_store import BlobStore, get_blob_store
from app.utils.file_upload import read_resume, read_image
from app.schemas.schemas import (
    ProfileUpdate, UserResponse, FileUploadResponse, SavedJobsResponse,
    RecommendedJobsResponse, MessageResponse
)

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/profile", response_model=UserResponse)
async def get_profile(user: dict = Depends(get_current_user)):
    return identity_store.get_profile(user["user_id"])


@router.get("/profile/{user_id}", response_model=UserResponse)
async def get_user_profile(user_id: int, user: dict = Depends(get_current_user)):
    """Profile of any user, e.g. an employer looking at an applicant."""
    return identity_store.get_profile(user_id)


@router.put("/profile", response_model=UserResponse)
async def update_profile(data: ProfileUpdate, user: dict = Depends(get_current_user)):
    """Update profile. Only provided fields are updated; fields of the other role are ignored."""
    return identity_store.update_profile(user, data.model_dump(exclude_unset=True))


@router.post("/upload-resume", response_model=FileUploadResponse)
async def upload_resume(
    file: UploadFile = File(...),
    student: dict = Depends(get_current_student),
    blobs: BlobStore = Depends(get_blob_store),
):
    """
    Upload resume (PDF, max 10MB).

    The file goes to the blob store; the profile keeps only its reference.
    Later applications carry this reference.
    """
    content, filename, content_type = await read_resume(file)
    reference = blobs.store(content, filename, content_type, kind="resume", owner_id=student["user_id"])
    previous = identity_store.set_resume(student["user_id"], reference)
    if previous:
        blobs.discard(previous)
    return FileUploadResponse(message="Resume uploaded successfully", reference=reference)


@router.post("/upload-avatar", response_model=FileUploadResponse)
async def upload_avatar(
    file: UploadFile = File(...),
    user: dict = Depends(get_current_user),
    blobs: BlobStore = Depends(get_blob_store),
):
    content, filename, content_type = await read_image(file)
    reference = blobs.store(content, filename, content_type, kind="avatar", owner_id=user["user_id"])
    previous = identity_store.set_avatar(user["user_id"], reference)
    if previous:
        blobs.discard(previous)
    return FileUploadResponse(message="Avatar uploaded successfully", reference=reference)


@router.get("/saved-jobs", response_model=SavedJobsResponse)
async def get_saved_jobs(student: dict = Depends(get_current_student)):
    return SavedJobsResponse(saved_jobs=saved_jobs.list_saved_jobs(student))


@router.post("/saved-jobs/{job_id}", response_model=MessageResponse)
async def save_job(job_id: int, student: dict = Depends(get_current_student)):
    saved_jobs.save_job(student, job_id)
    return MessageResponse(message="Job saved successfully")


@router.delete("/saved-jobs/{job_id}", response_model=MessageResponse)
async def remove_saved_job(job_id: int, student: dict = Depends(get_current_student)):
    saved_jobs.remove_saved_job(student, job_id)
    return MessageResponse(message="Job removed from saved list")


@router.get("/recommended-jobs", response_model=RecommendedJobsResponse)
async def get_recommended_jobs(student: dict = Depends(get_current_student)):
    return RecommendedJobsResponse(recommended_jobs=saved_jobs.recommended_jobs(student))
