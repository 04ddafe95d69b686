"""Upload endpoints: accept an export and report job status, class-based router."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile

from tunetrail.auth.dependencies import CurrentUser
from tunetrail.db.operations import ListeningRepository
from tunetrail.db.session import DatabaseManager
from tunetrail.dependencies import get_db_manager, get_job_tracker, get_task_runner
from tunetrail.ingest.job_tracking import JobStatusResolver, UploadJob, UploadJobTracker
from tunetrail.ingest.tasks import BackgroundTaskRunner
from tunetrail.ingest.upload import UploadPipeline
from tunetrail.settings import AppSettings, get_settings
from tunetrail.uploads.schemas import UploadAccepted
from tunetrail.zip_import.constants import JSON_SUFFIX, ZIP_SUFFIX

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 1024 * 1024


class UploadsRouter:
    """Class-based router for export uploads."""

    def __init__(self) -> None:
        self.router = APIRouter()
        self._register_routes()

    def _register_routes(self) -> None:
        r = self.router
        r.add_api_route("", self.upload, methods=["POST"], response_model=UploadAccepted, status_code=202)
        r.add_api_route("/status", self.status, methods=["GET"], response_model=UploadJob)

    async def upload(
        self,
        file: UploadFile,
        user_id: CurrentUser,
        settings: Annotated[AppSettings, Depends(get_settings)],
        db_manager: Annotated[DatabaseManager, Depends(get_db_manager)],
        tracker: Annotated[UploadJobTracker, Depends(get_job_tracker)],
        runner: Annotated[BackgroundTaskRunner, Depends(get_task_runner)],
    ) -> UploadAccepted:
        """Queue a listening-history export (.zip archive or .json file) for ingestion."""
        filename = file.filename or ""
        if not filename.lower().endswith((ZIP_SUFFIX, JSON_SUFFIX)):
            raise HTTPException(status_code=400, detail="File must be a .zip archive or a .json file")

        max_bytes = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
        chunks: list[bytes] = []
        total_size = 0
        while True:
            chunk = await file.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            total_size += len(chunk)
            if total_size > max_bytes:
                raise HTTPException(
                    status_code=413,
                    detail=f"File exceeds maximum size of {settings.MAX_UPLOAD_SIZE_MB}MB",
                )
            chunks.append(chunk)
        if total_size == 0:
            raise HTTPException(status_code=400, detail="Uploaded file is empty")

        job = tracker.create(user_id)
        pipeline = UploadPipeline(settings, db_manager, tracker)
        runner.submit(f"upload-{job.id}", pipeline.run(job.id, user_id, b"".join(chunks), filename))
        logger.info(
            "Queued upload %s (%d bytes)", filename, total_size, extra={"job_id": job.id, "user_id": user_id}
        )
        return UploadAccepted(job_id=job.id, status=job.status, message="Upload started. Processing in background.")

    async def status(
        self,
        user_id: CurrentUser,
        settings: Annotated[AppSettings, Depends(get_settings)],
        db_manager: Annotated[DatabaseManager, Depends(get_db_manager)],
        tracker: Annotated[UploadJobTracker, Depends(get_job_tracker)],
        job_id: str | None = Query(default=None),
    ) -> UploadJob:
        """Current state of an upload job, reconstructed when the job record is gone."""
        if not job_id:
            raise HTTPException(status_code=400, detail="job_id is required")

        resolver = JobStatusResolver(
            tracker,
            db_manager,
            ListeningRepository(max_rows=settings.STORE_MAX_ROWS_PER_REQUEST),
            stuck_after_seconds=settings.JOB_STUCK_AFTER_SECONDS,
            lost_after_seconds=settings.JOB_LOST_AFTER_SECONDS,
        )
        job = await resolver.resolve(job_id)
        if job is None:
            raise HTTPException(status_code=404, detail="Job not found")
        if job.user_id != user_id:
            raise HTTPException(status_code=403, detail="Job belongs to another user")
        return job


_instance = UploadsRouter()
router = _instance.router
