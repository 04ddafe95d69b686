"""Upload pipeline: extract, normalize, purge-and-write, verify, summarize, aggregate."""

import logging
import math
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from tunetrail.aggregation.service import AggregationService
from tunetrail.aggregation.storage import AggregationStore
from tunetrail.aggregation.summary import SummaryCalculator
from tunetrail.db.base import utc_now
from tunetrail.db.operations import ListeningRepository
from tunetrail.db.session import DatabaseManager
from tunetrail.ingest.batch_writer import BatchWriter, RepositorySink
from tunetrail.ingest.errors import ExtractionError, IngestionError, StorageError, VerificationError
from tunetrail.ingest.job_tracking import DateRange, UploadJobTracker, UploadResult, UploadStatus
from tunetrail.records.normalizers import normalize_export_records
from tunetrail.settings import AppSettings
from tunetrail.zip_import.parser import ArchiveExtractor

logger = logging.getLogger(__name__)

# Progress checkpoints reported to the job tracker
PROGRESS_EXTRACTING = 15
PROGRESS_PROCESSING = 25
PROGRESS_STORING = 30
PROGRESS_STORING_SPAN = 60  # batch writer progress maps onto 30..90
PROGRESS_SUMMARY = 90
PROGRESS_AGGREGATING = 95

MAX_ERROR_LENGTH = 1000


class UploadPipeline:
    """Runs one upload job end to end, reporting every stage to the job tracker.

    Any failure marks the job failed with a readable message; nothing is
    raised to the caller, which is usually a detached background task.
    """

    def __init__(
        self,
        settings: AppSettings,
        db_manager: DatabaseManager,
        tracker: UploadJobTracker,
    ) -> None:
        self._db_manager = db_manager
        self._tracker = tracker
        self._repository = ListeningRepository(max_rows=settings.STORE_MAX_ROWS_PER_REQUEST)
        self._extractor = ArchiveExtractor(max_records=settings.IMPORT_MAX_RECORDS)
        self._writer = BatchWriter(
            chunk_size=settings.STORE_MAX_ROWS_PER_REQUEST,
            concurrency=settings.WRITE_CONCURRENCY,
        )
        self._summaries = SummaryCalculator(db_manager, self._repository)
        self._aggregations = AggregationService(
            db_manager,
            self._repository,
            AggregationStore(db_manager),
            top_n=settings.AGGREGATION_TOP_N,
        )

    async def run(self, job_id: str, user_id: str, payload: bytes, filename: str) -> None:
        log_extra = {"job_id": job_id, "user_id": user_id}
        try:
            await self._run(job_id, user_id, payload, filename)
        except IngestionError as exc:
            self._tracker.fail(job_id, str(exc)[:MAX_ERROR_LENGTH])
        except Exception as exc:
            logger.exception("Upload job %s crashed", job_id, extra=log_extra)
            self._tracker.fail(job_id, f"Upload failed: {exc}"[:MAX_ERROR_LENGTH])

    async def _run(self, job_id: str, user_id: str, payload: bytes, filename: str) -> None:
        log_extra = {"job_id": job_id, "user_id": user_id}

        self._tracker.advance(job_id, UploadStatus.EXTRACTING, PROGRESS_EXTRACTING, "Extracting files...")
        raw_records = await self._extractor.extract(payload, filename)
        logger.info("Extracted %d raw records from %s", len(raw_records), filename, extra=log_extra)

        self._tracker.advance(
            job_id, UploadStatus.PROCESSING, PROGRESS_PROCESSING, f"Processing {len(raw_records)} tracks..."
        )
        events, dropped = normalize_export_records(raw_records)
        if not events:
            raise ExtractionError("The upload contains no playable tracks")
        logger.info("Normalized %d events (%d dropped)", len(events), dropped, extra=log_extra)

        self._tracker.advance(job_id, UploadStatus.STORING, PROGRESS_STORING, "Storing data...")
        await self._purge_overlap(user_id, max(e.played_at for e in events))

        async def on_progress(percent: int, message: str) -> None:
            scaled = PROGRESS_STORING + math.floor(percent * PROGRESS_STORING_SPAN / 100)
            self._tracker.advance(job_id, UploadStatus.STORING, scaled, message)

        written = await self._writer.write(
            events, RepositorySink(self._db_manager, self._repository, user_id), on_progress
        )
        await self._verify(user_id)

        self._tracker.advance(job_id, UploadStatus.STORING, PROGRESS_SUMMARY, "Calculating summary...")
        summary = await self._summaries.refresh(user_id, uploaded_at=utc_now())

        self._tracker.advance(job_id, UploadStatus.STORING, PROGRESS_AGGREGATING, "Computing analytics...")
        await self._aggregations.recompute(user_id)

        self._tracker.complete(
            job_id,
            UploadResult(
                total_tracks=summary.total_tracks,
                uploaded_tracks=written,
                date_range=DateRange(start=summary.date_range_start, end=summary.date_range_end),
            ),
        )

    async def _purge_overlap(self, user_id: str, newest: datetime) -> None:
        """Drop stored events up to the newest uploaded play so a re-upload replaces them.

        Live-synced events newer than the upload are kept.
        """
        try:
            async with self._db_manager.session() as session:
                await self._repository.delete_events(user_id, session, up_to=newest)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to clear previous upload: {exc}") from exc

    async def _verify(self, user_id: str) -> None:
        try:
            async with self._db_manager.session() as session:
                stored = await self._repository.count_events(user_id, session)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to verify stored data: {exc}") from exc
        if stored == 0:
            raise VerificationError("Data verification failed: no rows were stored")
