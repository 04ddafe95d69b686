"""Fixtures for API tests: the app wired to a SQLite store and fresh job state."""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from tunetrail.db.session import DatabaseManager
from tunetrail.dependencies import get_db_manager, get_job_tracker, get_task_runner
from tunetrail.ingest.job_tracking import UploadJobTracker
from tunetrail.ingest.tasks import BackgroundTaskRunner
from tunetrail.main import app
from tunetrail.settings import AppSettings, get_settings


@pytest.fixture
def job_tracker() -> UploadJobTracker:
    return UploadJobTracker()


@pytest.fixture
def client(
    db_manager: DatabaseManager, settings: AppSettings, job_tracker: UploadJobTracker
) -> Generator[TestClient]:
    runner = BackgroundTaskRunner()
    app.dependency_overrides[get_db_manager] = lambda: db_manager
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_job_tracker] = lambda: job_tracker
    app.dependency_overrides[get_task_runner] = lambda: runner
    # Entering the client keeps its event loop alive so queued uploads can finish
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
