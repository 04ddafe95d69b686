"""Database session management via DatabaseManager class."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Self

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tunetrail.config.database import DatabaseSettings
from tunetrail.db.base import Base


class DatabaseManager:
    """Owns the engine for the listening store and hands out sessions.

    The API process keeps one instance in ``tunetrail.dependencies``; tests
    build their own against a SQLite file and swap it in through
    ``dependency_overrides[get_db_manager]``. Upload writers open one
    :meth:`session` per chunk, so concurrent chunks never share a transaction.
    """

    def __init__(self, settings: DatabaseSettings) -> None:
        self._settings = settings
        self._engine = create_async_engine(settings.database_url, **settings.engine_options())
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_env(cls) -> Self:
        """Create a DatabaseManager from environment variables."""
        return cls(DatabaseSettings())

    @classmethod
    def from_url(cls, database_url: str) -> Self:
        """Create a DatabaseManager for an explicit URL (scripts and tests)."""
        return cls(DatabaseSettings(database_url=database_url))

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession]:
        """Get a database session with automatic commit/rollback.

        Commits on success, rolls back on exception.
        """
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def dependency(self) -> AsyncGenerator[AsyncSession]:
        """FastAPI Depends() compatible session provider."""
        async with self.session() as session:
            yield session

    async def create_all(self) -> None:
        """Create every table registered on Base.metadata (local development only)."""
        # Registers the models with Base.metadata.
        import tunetrail.db.models  # noqa: F401

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Dispose of the engine and release all connections."""
        await self._engine.dispose()
