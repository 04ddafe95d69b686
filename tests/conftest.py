"""Shared test configuration and fixtures."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from sqlalchemy import BigInteger
from sqlalchemy.ext.compiler import compiles

from tunetrail.db.session import DatabaseManager
from tunetrail.settings import AppSettings


# Register a compilation rule so BigInteger renders as INTEGER on SQLite,
# which enables autoincrement on primary key columns during tests.
@compiles(BigInteger, "sqlite")  # type: ignore[misc]
def _compile_big_integer_sqlite(type_: BigInteger, compiler: object, **kw: object) -> str:
    return "INTEGER"


@pytest.fixture
async def db_manager(tmp_path: Path) -> AsyncGenerator[DatabaseManager]:
    # File-backed so every connection (and every event loop) sees the same data
    manager = DatabaseManager.from_url(f"sqlite+aiosqlite:///{tmp_path / 'tunetrail.db'}")
    await manager.create_all()
    yield manager
    await manager.dispose()


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        WRITE_CONCURRENCY=1,
        SYNC_INTER_USER_DELAY_SECONDS=0,
        SYNC_SECRET_KEY="sync-secret",
    )
