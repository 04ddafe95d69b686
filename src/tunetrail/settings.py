"""Application settings loaded from environment variables."""

import functools

from pydantic_settings import BaseSettings

from tunetrail.aggregation.engine import DEFAULT_TOP_N
from tunetrail.constants import (
    DEFAULT_DEDUP_WINDOW_SIZE,
    DEFAULT_MAX_UPLOAD_SIZE_MB,
    DEFAULT_SYNC_INTER_USER_DELAY_SECONDS,
    DEFAULT_SYNC_MAX_TRACKS,
    DEFAULT_SYNC_RATE_LIMIT_RETRIES,
)
from tunetrail.db.operations import DEFAULT_MAX_ROWS_PER_REQUEST
from tunetrail.ingest.batch_writer import DEFAULT_WRITE_CONCURRENCY
from tunetrail.ingest.job_tracking import (
    DEFAULT_JOB_LOST_AFTER_SECONDS,
    DEFAULT_JOB_RETENTION_SECONDS,
    DEFAULT_JOB_STUCK_AFTER_SECONDS,
)
from tunetrail.records.models import ArtistMode
from tunetrail.zip_import.constants import DEFAULT_MAX_RECORDS


class AppSettings(BaseSettings):
    """Service configuration."""

    # Uploads
    MAX_UPLOAD_SIZE_MB: int = DEFAULT_MAX_UPLOAD_SIZE_MB
    IMPORT_MAX_RECORDS: int = DEFAULT_MAX_RECORDS

    # Store writes
    STORE_MAX_ROWS_PER_REQUEST: int = DEFAULT_MAX_ROWS_PER_REQUEST
    WRITE_CONCURRENCY: int = DEFAULT_WRITE_CONCURRENCY

    # Aggregation
    AGGREGATION_TOP_N: int = DEFAULT_TOP_N

    # Upload jobs
    JOB_RETENTION_SECONDS: int = DEFAULT_JOB_RETENTION_SECONDS
    JOB_STUCK_AFTER_SECONDS: int = DEFAULT_JOB_STUCK_AFTER_SECONDS
    JOB_LOST_AFTER_SECONDS: int = DEFAULT_JOB_LOST_AFTER_SECONDS

    # Live sync
    DEDUP_WINDOW_SIZE: int = DEFAULT_DEDUP_WINDOW_SIZE  # larger = fewer missed duplicates, slower sync
    SYNC_MAX_TRACKS: int = DEFAULT_SYNC_MAX_TRACKS
    SYNC_ARTIST_MODE: ArtistMode = ArtistMode.PRIMARY
    SYNC_INTER_USER_DELAY_SECONDS: float = DEFAULT_SYNC_INTER_USER_DELAY_SECONDS
    SYNC_RATE_LIMIT_RETRIES: int = DEFAULT_SYNC_RATE_LIMIT_RETRIES
    SYNC_SECRET_KEY: str = ""  # Bearer secret for the scheduled multi-user sync

    # Database
    DB_CREATE_SCHEMA: bool = False  # create tables at startup (local development)

    # Logging
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ALLOWED_ORIGINS: str = "http://localhost:3000"  # comma-separated origins

    model_config = {"env_prefix": ""}


@functools.lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return cached application settings singleton."""
    return AppSettings()
