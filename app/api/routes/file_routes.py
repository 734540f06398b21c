"""
File Routes

GET /files/{reference} - Download an uploaded resume, avatar or logo
"""

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from urllib.parse import quote

from app.core.auth import get_current_user
from app.services.blob_store import BlobStore, get_blob_store

router = APIRouter(prefix="/files", tags=["Files"])


@router.get("/{reference}")
async def download_file(
    reference: str,
    user: dict = Depends(get_current_user),
    blobs: BlobStore = Depends(get_blob_store),
):
    content, content_type, filename = blobs.open(reference)
    return Response(
        content=content,
        media_type=content_type,
        headers={"Content-Disposition": f"inline; filename*=UTF-8''{quote(filename or reference)}"},
    )
