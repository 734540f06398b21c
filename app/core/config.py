"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # PostgreSQL
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "jobboard_user"
    postgres_password: str = "password"
    postgres_db: str = "jobboard_db"

    # Full SQLAlchemy URL, overrides the postgres_* fields when set
    database_url: Optional[str] = None

    # MongoDB (GridFS blob storage)
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "jobboard_files"
    mongodb_timeout_ms: int = 5000
    blob_bucket: str = "uploads"

    # JWT Auth
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 1440
    bcrypt_rounds: int = 12

    # Marketplace rules
    saved_jobs_limit: int = 50
    featured_jobs_limit: int = 6
    recommended_jobs_limit: int = 10
    recent_window_days: int = 7
    default_page_size: int = 10
    max_page_size: int = 50

    # Uploads
    resume_max_mb: int = 10
    image_max_mb: int = 5

    # App
    debug: bool = False
    log_level: str = "INFO"
    log_format: str = "text"

    @property
    def postgres_url(self) -> str:
        """Construct PostgreSQL connection URL"""
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def sqlalchemy_url(self) -> str:
        return self.database_url or self.postgres_url

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
