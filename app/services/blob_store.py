"""
Blob Store - uploaded files in MongoDB GridFS.

store() returns the GridFS file id as a string. That opaque reference is
all the relational side ever keeps (users.resume, users.avatar,
companies.logo).
"""

from typing import Tuple

from bson import ObjectId
from bson.errors import InvalidId
from gridfs import GridFSBucket
from gridfs.errors import NoFile
from pymongo.errors import PyMongoError

from app.core.errors import NotFound, StoreUnavailable
from app.db.mongodb import get_bucket
from app.utils.clock import utcnow
from app.utils.logger import get_logger

logger = get_logger(__name__)


class BlobStore:
    """Thin wrapper over a GridFS bucket."""

    def __init__(self, bucket: GridFSBucket = None):
        self.bucket = bucket or get_bucket()

    def store(self, content: bytes, filename: str, content_type: str, kind: str, owner_id: int = None) -> str:
        """
        Store a file and return its reference.

        Args:
            content: raw bytes
            filename: original filename
            content_type: MIME type, returned again by open()
            kind: resume | avatar | logo
            owner_id: uploading user
        """
        try:
            file_id = self.bucket.upload_from_stream(
                filename,
                content,
                metadata={
                    "content_type": content_type,
                    "kind": kind,
                    "owner_id": owner_id,
                    "uploaded_at": utcnow(),
                },
            )
        except PyMongoError as e:
            logger.error("Blob upload failed: %s", e, extra={"error_type": type(e).__name__})
            raise StoreUnavailable() from e
        return str(file_id)

    def open(self, reference: str) -> Tuple[bytes, str, str]:
        """Return (content, content_type, filename) for a reference."""
        try:
            stream = self.bucket.open_download_stream(ObjectId(reference))
            content = stream.read()
        except (InvalidId, NoFile):
            raise NotFound("File not found")
        except PyMongoError as e:
            logger.error("Blob download failed: %s", e, extra={"error_type": type(e).__name__})
            raise StoreUnavailable() from e
        metadata = stream.metadata or {}
        return content, metadata.get("content_type", "application/octet-stream"), stream.filename

    def delete(self, reference: str):
        try:
            self.bucket.delete(ObjectId(reference))
        except (InvalidId, NoFile):
            raise NotFound("File not found")
        except PyMongoError as e:
            logger.error("Blob delete failed: %s", e, extra={"error_type": type(e).__name__})
            raise StoreUnavailable() from e

    def discard(self, reference: str):
        """
        Delete a blob that has just been replaced.

        The new reference is already persisted, so a failure here only
        leaves an orphaned file behind and is logged instead of raised.
        """
        try:
            self.delete(reference)
        except NotFound:
            pass
        except StoreUnavailable:
            logger.warning("Replaced blob %s left orphaned", reference, extra={"reference": reference})


_blob_store: BlobStore = None


def get_blob_store() -> BlobStore:
    """FastAPI dependency - process-wide BlobStore."""
    global _blob_store
    if _blob_store is None:
        _blob_store = BlobStore()
    return _blob_store
