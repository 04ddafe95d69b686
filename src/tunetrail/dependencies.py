"""Process-wide singletons and their FastAPI dependency providers."""

from tunetrail.db.session import DatabaseManager
from tunetrail.ingest.job_tracking import UploadJobTracker
from tunetrail.ingest.tasks import BackgroundTaskRunner
from tunetrail.settings import get_settings

db_manager = DatabaseManager.from_env()
job_tracker = UploadJobTracker(retention_seconds=get_settings().JOB_RETENTION_SECONDS)
task_runner = BackgroundTaskRunner()


def get_db_manager() -> DatabaseManager:
    return db_manager


def get_job_tracker() -> UploadJobTracker:
    return job_tracker


def get_task_runner() -> BackgroundTaskRunner:
    return task_runner
