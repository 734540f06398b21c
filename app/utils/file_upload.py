"""
File Upload Utility - validate uploads before they reach the blob store.

Supported uploads:
- Resume: PDF (.pdf), max 10MB
- Avatar / company logo: JPEG or PNG, max 5MB
"""

from typing import Tuple
from fastapi import UploadFile, HTTPException

from app.core.config import get_settings

settings = get_settings()

RESUME_TYPES = {'.pdf': 'application/pdf'}
IMAGE_TYPES = {'.jpg': 'image/jpeg', '.jpeg': 'image/jpeg', '.png': 'image/png'}


def get_file_extension(filename: str) -> str:
    """Get lowercase file extension."""
    if '.' not in filename:
        return ''
    return '.' + filename.rsplit('.', 1)[1].lower()


async def read_upload(file: UploadFile, allowed: dict, max_mb: int, label: str) -> Tuple[bytes, str, str]:
    """
    Read and validate an uploaded file.

    Args:
        file: FastAPI UploadFile
        allowed: extension -> MIME type accepted for this upload
        max_mb: size limit in megabytes
        label: human name used in error messages

    Returns:
        Tuple of (content, filename, content_type)

    Raises:
        HTTPException on validation errors
    """
    if not file.filename:
        raise HTTPException(status_code=400, detail=f"Please upload a {label} file")

    ext = get_file_extension(file.filename)
    if ext not in allowed or (file.content_type and file.content_type not in allowed.values()):
        names = ', '.join(sorted(e.lstrip('.').upper() for e in allowed))
        raise HTTPException(status_code=400, detail=f"Unsupported file type. Allowed for {label}: {names}")

    content = await file.read()

    if len(content) > max_mb * 1024 * 1024:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size: {max_mb}MB"
        )
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    return content, file.filename, allowed[ext]


async def read_resume(file: UploadFile) -> Tuple[bytes, str, str]:
    return await read_upload(file, RESUME_TYPES, settings.resume_max_mb, "resume")


async def read_image(file: UploadFile) -> Tuple[bytes, str, str]:
    return await read_upload(file, IMAGE_TYPES, settings.image_max_mb, "image")
