"""
Logging setup.

Console output is human readable by default. Set LOG_FORMAT=json to get one
JSON object per line (for log drains).
"""

import json
import logging
import sys
from datetime import datetime, timezone

from app.core.config import get_settings

ROOT_LOGGER_NAME = "jobboard"

# Extra fields copied into structured output when passed via extra={...}
EXTRA_FIELDS = (
    "method", "path", "status", "user_id", "job_id", "company_id",
    "application_id", "delta", "error", "error_type", "reference",
)


class StructuredFormatter(logging.Formatter):
    """JSON structured log formatter"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        for key in EXTRA_FIELDS:
            if hasattr(record, key):
                entry[key] = getattr(record, key)

        if record.levelno >= logging.WARNING:
            entry["source"] = f"{record.filename}:{record.lineno}"

        if record.exc_info and record.exc_info[1]:
            entry["exception"] = {
                "type": type(record.exc_info[1]).__name__,
                "message": str(record.exc_info[1]),
            }

        return json.dumps(entry, default=str)


class SimpleFormatter(logging.Formatter):
    """Human-readable formatter for local development"""

    def __init__(self):
        super().__init__(
            '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
            datefmt='%H:%M:%S'
        )


def setup_logger(name: str = ROOT_LOGGER_NAME, level: str = None) -> logging.Logger:
    """
    Configure the application root logger once.

    Child loggers (jobboard.services.jobs, ...) propagate here, so only the
    root gets a handler.
    """
    settings = get_settings()
    logger = logging.getLogger(name)

    # Don't add handlers if they already exist
    if logger.handlers:
        return logger

    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    logger.setLevel(log_level)

    console_handler = logging.StreamHandler(sys.stdout)
    if settings.log_format == "json":
        console_handler.setFormatter(StructuredFormatter())
    else:
        console_handler.setFormatter(SimpleFormatter())
    logger.addHandler(console_handler)

    return logger


logger = setup_logger()


def get_logger(name: str = None) -> logging.Logger:
    """Get a child logger of the application logger"""
    if not name:
        return logger
    if name.startswith("app."):
        name = name[len("app."):]
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
