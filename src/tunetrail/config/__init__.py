"""Service configuration."""

from tunetrail.config.constants import DEFAULT_DATABASE_URL
from tunetrail.config.database import DatabaseSettings

__all__ = [
    "DEFAULT_DATABASE_URL",
    "DatabaseSettings",
]
