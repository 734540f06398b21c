from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from contextlib import contextmanager
from app.core.config import get_settings
from app.core.errors import StoreUnavailable
from app.db.tables import metadata
from app.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # One connection per thread, writers wait on the file lock
        return {"connect_args": {"check_same_thread": False, "timeout": 30}}
    # pool_size=5: maintain 5 connections ready
    # max_overflow=10: allow 10 extra connections under load
    return {"pool_size": 5, "max_overflow": 10, "pool_pre_ping": True}


engine = create_engine(
    settings.sqlalchemy_url,
    echo=settings.debug,  # Log SQL queries in debug mode
    **_engine_options(settings.sqlalchemy_url)
)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_db_session():
    """
    Context manager for database sessions.
    Usage:
        with get_db_session() as db:
            db.execute(select(jobs))

    Commits on success, rolls back on any exception. A lost connection is
    logged and re-raised as StoreUnavailable.
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except OperationalError as e:
        session.rollback()
        logger.error("Database unavailable: %s", e, extra={"error_type": type(e).__name__})
        raise StoreUnavailable() from e
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_schema():
    """Create all tables and indexes that do not exist yet."""
    metadata.create_all(engine)


def test_postgres_connection() -> bool:
    """
    Test if the relational store is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        with get_db_session() as db:
            result = db.execute(text("SELECT 1 as test"))
            row = result.fetchone()
            return row[0] == 1
    except StoreUnavailable:
        return False


def rows_to_dicts(result) -> list:
    """Convert a result's rows to a list of plain dicts."""
    return [dict(row) for row in result.mappings().all()]


def row_to_dict(result):
    row = result.mappings().first()
    return dict(row) if row is not None else None
