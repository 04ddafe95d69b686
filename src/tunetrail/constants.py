"""Centralized constants for the service."""

import enum
from dataclasses import dataclass

# --- Service identity ---


class ServiceName(enum.StrEnum):
    """Service names used for logging and identification."""

    API = "api"


# --- Application metadata ---

APP_TITLE = "tunetrail"
APP_DESCRIPTION = "Listening-history uploads, incremental sync, and pre-computed analytics"
APP_VERSION = "0.1.0"


# --- Route configuration ---


@dataclass(frozen=True, slots=True)
class _Route:
    """A route prefix paired with its OpenAPI tag."""

    prefix: str
    tag: str


class Routes:
    """API route prefixes and tags: single source of truth."""

    UPLOADS = _Route("/uploads", "uploads")
    ANALYTICS = _Route("/analytics", "analytics")
    SYNC = _Route("/sync", "sync")
    HISTORY = _Route("/history", "history")
    HEALTH = "/healthz"


# --- Request headers ---

USER_ID_HEADER = "X-User-Id"
REQUEST_ID_HEADER = "X-Request-ID"

# --- Default configuration values ---

DEFAULT_MAX_UPLOAD_SIZE_MB = 200
DEFAULT_SYNC_MAX_TRACKS = 1000
DEFAULT_SYNC_INTER_USER_DELAY_SECONDS = 0.5
DEFAULT_SYNC_RATE_LIMIT_RETRIES = 3
DEFAULT_DEDUP_WINDOW_SIZE = 1000
# Top lists returned by the combined analytics view
ANALYTICS_TOP_LIMIT = 10
