"""
Database module - relational store (SQLAlchemy) and file store (MongoDB).
"""
from app.db.postgres import get_db_session, init_schema, test_postgres_connection
from app.db.mongodb import get_bucket, test_mongo_connection

__all__ = [
    "get_db_session",
    "init_schema",
    "test_postgres_connection",
    "get_bucket",
    "test_mongo_connection"
]
