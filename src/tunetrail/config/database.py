"""Connection settings for the listening store."""

from typing import Any

from pydantic_settings import BaseSettings
from sqlalchemy.pool import NullPool

from tunetrail.config.constants import (
    DEFAULT_CONNECT_TIMEOUT_SECONDS,
    DEFAULT_DATABASE_URL,
    DEFAULT_MAX_OVERFLOW,
    DEFAULT_POOL_RECYCLE_SECONDS,
    DEFAULT_POOL_SIZE,
)


class DatabaseSettings(BaseSettings):
    """Where the listening store lives and how its connections are pooled.

    An upload writes ``WRITE_CONCURRENCY`` chunks at once, each in its own
    session, so a pooled engine needs ``pool_size + max_overflow`` at least that
    large or the writers queue on the pool.
    """

    database_url: str = DEFAULT_DATABASE_URL
    echo: bool = False
    use_null_pool: bool = True
    pool_pre_ping: bool = True
    pool_size: int = DEFAULT_POOL_SIZE
    max_overflow: int = DEFAULT_MAX_OVERFLOW
    pool_recycle_seconds: int = DEFAULT_POOL_RECYCLE_SECONDS
    connect_timeout_seconds: float = DEFAULT_CONNECT_TIMEOUT_SECONDS

    model_config = {"env_prefix": ""}

    def engine_options(self) -> dict[str, Any]:
        """Keyword arguments for ``create_async_engine``."""
        options: dict[str, Any] = {
            "echo": self.echo,
            "pool_pre_ping": self.pool_pre_ping,
            "connect_args": {"timeout": self.connect_timeout_seconds},
        }
        if self.use_null_pool:
            options["poolclass"] = NullPool
        else:
            options["pool_size"] = self.pool_size
            options["max_overflow"] = self.max_overflow
            options["pool_recycle"] = self.pool_recycle_seconds
        return options
