"""
MongoDB Connection Utility

MongoDB stores uploaded files through GridFS:
- Resumes (PDF)
- Avatars (JPEG/PNG)
- Company logos (JPEG/PNG)

The relational rows only keep the GridFS file id as an opaque string.
"""
from gridfs import GridFSBucket
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError
from app.core.config import get_settings
from app.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(
            settings.mongodb_uri,
            serverSelectionTimeoutMS=settings.mongodb_timeout_ms
        )
    return _client


def get_mongo_db() -> Database:
    """Get the file storage database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[settings.mongodb_db]
    return _db


def get_bucket() -> GridFSBucket:
    return GridFSBucket(get_mongo_db(), bucket_name=settings.blob_bucket)


def test_mongo_connection() -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        client = get_mongo_client()
        # ping command checks connection
        client.admin.command('ping')
        return True
    except PyMongoError as e:
        logger.warning("MongoDB connection failed: %s", e)
        return False


def init_mongo_indexes():
    """
    Create indexes for file metadata lookups.
    Call this once during app startup.
    """
    files = get_mongo_db()[f"{settings.blob_bucket}.files"]
    files.create_index([("metadata.kind", 1), ("uploadDate", -1)])
    logger.info("MongoDB indexes created successfully")
