"""Upload job lifecycle: an ordered state machine over an injectable job store."""

import enum
import logging
import math
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Protocol

from pydantic import BaseModel, ConfigDict

from tunetrail.db.base import utc_now
from tunetrail.db.operations import ListeningRepository
from tunetrail.db.session import DatabaseManager

logger = logging.getLogger(__name__)

DEFAULT_JOB_RETENTION_SECONDS = 3600
DEFAULT_JOB_STUCK_AFTER_SECONDS = 600
DEFAULT_JOB_LOST_AFTER_SECONDS = 900
# Reconstructed in-flight jobs are assumed to take about this long
ESTIMATED_UPLOAD_DURATION = timedelta(minutes=5)
MAX_ESTIMATED_PROGRESS = 95

COMPLETED_MESSAGE = "Upload complete!"
STUCK_ERROR = "Upload appears to be stuck. Please try again."
LOST_ERROR = "Upload job expired or was lost. Please check your data or try again."


class UploadStatus(enum.StrEnum):
    """Upload job states, in pipeline order (FAILED is reachable from any non-terminal state)."""

    PENDING = "pending"
    EXTRACTING = "extracting"
    PROCESSING = "processing"
    STORING = "storing"
    COMPLETED = "completed"
    FAILED = "failed"


_PIPELINE_ORDER = (
    UploadStatus.PENDING,
    UploadStatus.EXTRACTING,
    UploadStatus.PROCESSING,
    UploadStatus.STORING,
    UploadStatus.COMPLETED,
)
TERMINAL_STATUSES = frozenset({UploadStatus.COMPLETED, UploadStatus.FAILED})


class InvalidJobTransition(ValueError):
    """A job update skipped a state, moved backwards, or touched a terminal job."""


class DateRange(BaseModel):
    start: datetime | None = None
    end: datetime | None = None


class UploadResult(BaseModel):
    """Outcome of a completed upload."""

    total_tracks: int
    uploaded_tracks: int
    date_range: DateRange


class UploadJob(BaseModel):
    """Snapshot of an upload job. Updates produce a new snapshot."""

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    status: UploadStatus = UploadStatus.PENDING
    progress: int = 0
    message: str = ""
    result: UploadResult | None = None
    error: str | None = None
    created_at: datetime
    reconstructed: bool = False


class JobStore(Protocol):
    """Backing store for upload jobs."""

    def get(self, job_id: str) -> UploadJob | None: ...

    def put(self, job: UploadJob) -> None: ...

    def delete(self, job_id: str) -> None: ...

    def all(self) -> list[UploadJob]: ...


class InMemoryJobStore:
    """Process-local job store. Records do not survive a restart."""

    def __init__(self) -> None:
        self._jobs: dict[str, UploadJob] = {}

    def get(self, job_id: str) -> UploadJob | None:
        return self._jobs.get(job_id)

    def put(self, job: UploadJob) -> None:
        self._jobs[job.id] = job

    def delete(self, job_id: str) -> None:
        self._jobs.pop(job_id, None)

    def all(self) -> list[UploadJob]:
        return list(self._jobs.values())


def make_job_id(user_id: str, created_at: datetime) -> str:
    """Build ``"{user_id}-{created_epoch_ms}"`` from a naive-UTC creation time."""
    epoch_ms = int(created_at.replace(tzinfo=UTC).timestamp() * 1000)
    return f"{user_id}-{epoch_ms}"


def parse_job_id(job_id: str) -> tuple[str, datetime] | None:
    """Split a job id into (user_id, created_at). Returns None when unparseable.

    User ids may contain dashes, so only the last segment is the timestamp.
    """
    user_id, sep, epoch_part = job_id.rpartition("-")
    if not sep or not user_id or not epoch_part.isdigit():
        return None
    try:
        created_at = datetime.fromtimestamp(int(epoch_part) / 1000, tz=UTC).replace(tzinfo=None)
    except (OverflowError, OSError, ValueError):
        return None
    return user_id, created_at


class UploadJobTracker:
    """Creates and advances upload jobs.

    Transitions may stay in the current state (progress/message update) or
    move exactly one step along the pipeline; FAILED is reachable from any
    non-terminal state. Progress never decreases. Terminal jobs are frozen.
    """

    def __init__(
        self,
        store: JobStore | None = None,
        *,
        retention_seconds: int = DEFAULT_JOB_RETENTION_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store: JobStore = store if store is not None else InMemoryJobStore()
        self._retention = timedelta(seconds=retention_seconds)
        self._clock = clock

    def create(self, user_id: str) -> UploadJob:
        """Register a new pending job, pruning expired jobs first."""
        now = self._clock()
        self.prune(now)

        job_id = make_job_id(user_id, now)
        # Two uploads in the same millisecond: nudge forward to keep ids unique
        while self._store.get(job_id) is not None:
            now += timedelta(milliseconds=1)
            job_id = make_job_id(user_id, now)

        job = UploadJob(id=job_id, user_id=user_id, created_at=now, message="Upload received")
        self._store.put(job)
        logger.info("Created upload job %s", job_id, extra={"job_id": job_id, "user_id": user_id})
        return job

    def get(self, job_id: str) -> UploadJob | None:
        return self._store.get(job_id)

    def prune(self, now: datetime | None = None) -> int:
        """Drop jobs older than the retention window. Returns how many were dropped."""
        cutoff = (now or self._clock()) - self._retention
        expired = [job.id for job in self._store.all() if job.created_at < cutoff]
        for job_id in expired:
            self._store.delete(job_id)
        if expired:
            logger.info("Pruned %d expired upload jobs", len(expired))
        return len(expired)

    def advance(self, job_id: str, status: UploadStatus, progress: int, message: str) -> UploadJob:
        """Move a job to ``status`` (or stay) with new progress and message."""
        if status in TERMINAL_STATUSES:
            raise InvalidJobTransition(f"Use complete() or fail() to move a job to {status}")
        job = self._require(job_id)
        self._check_transition(job, status)
        return self._save(job, status=status, progress=self._clamp(job, progress), message=message)

    def complete(self, job_id: str, result: UploadResult, message: str = COMPLETED_MESSAGE) -> UploadJob:
        job = self._require(job_id)
        self._check_transition(job, UploadStatus.COMPLETED)
        logger.info(
            "Upload job %s completed: %d tracks uploaded",
            job_id,
            result.uploaded_tracks,
            extra={"job_id": job_id, "user_id": job.user_id},
        )
        return self._save(job, status=UploadStatus.COMPLETED, progress=100, message=message, result=result)

    def fail(self, job_id: str, error: str) -> UploadJob:
        job = self._require(job_id)
        self._check_transition(job, UploadStatus.FAILED)
        logger.error("Upload job %s failed: %s", job_id, error, extra={"job_id": job_id, "user_id": job.user_id})
        return self._save(job, status=UploadStatus.FAILED, message=error, error=error)

    def _require(self, job_id: str) -> UploadJob:
        job = self._store.get(job_id)
        if job is None:
            raise KeyError(job_id)
        return job

    def _save(self, job: UploadJob, **changes: object) -> UploadJob:
        updated = job.model_copy(update=changes)
        self._store.put(updated)
        return updated

    @staticmethod
    def _clamp(job: UploadJob, progress: int) -> int:
        return max(job.progress, min(100, max(0, progress)))

    @staticmethod
    def _check_transition(job: UploadJob, target: UploadStatus) -> None:
        if job.status in TERMINAL_STATUSES:
            raise InvalidJobTransition(f"Job {job.id} is already {job.status}")
        if target is UploadStatus.FAILED:
            return
        current = _PIPELINE_ORDER.index(job.status)
        wanted = _PIPELINE_ORDER.index(target)
        if wanted not in (current, current + 1):
            raise InvalidJobTransition(f"Job {job.id} cannot move from {job.status} to {target}")


class JobStatusResolver:
    """Answers status queries, reconstructing jobs the tracker no longer holds.

    A job id embeds its user and creation time. When the job record is gone
    (process restart, retention sweep) the user's summary row acts as the
    durable completion marker; without it the status is inferred from age.
    """

    def __init__(
        self,
        tracker: UploadJobTracker,
        db_manager: DatabaseManager,
        repository: ListeningRepository,
        *,
        stuck_after_seconds: int = DEFAULT_JOB_STUCK_AFTER_SECONDS,
        lost_after_seconds: int = DEFAULT_JOB_LOST_AFTER_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._tracker = tracker
        self._db_manager = db_manager
        self._repository = repository
        self._stuck_after = timedelta(seconds=stuck_after_seconds)
        self._lost_after = timedelta(seconds=lost_after_seconds)
        self._clock = clock

    async def resolve(self, job_id: str) -> UploadJob | None:
        """Return the job, a reconstruction of it, or None for an unparseable id."""
        job = self._tracker.get(job_id)
        if job is not None:
            return job

        parsed = parse_job_id(job_id)
        if parsed is None:
            return None
        user_id, created_at = parsed

        async with self._db_manager.session() as session:
            summary = await self._repository.get_summary(user_id, session)

        if summary is not None and summary.uploaded_at is not None and summary.uploaded_at >= created_at:
            return UploadJob(
                id=job_id,
                user_id=user_id,
                status=UploadStatus.COMPLETED,
                progress=100,
                message=COMPLETED_MESSAGE,
                result=UploadResult(
                    total_tracks=summary.total_tracks,
                    uploaded_tracks=summary.total_tracks,
                    date_range=DateRange(start=summary.date_range_start, end=summary.date_range_end),
                ),
                created_at=created_at,
                reconstructed=True,
            )

        age = self._clock() - created_at
        if age < self._stuck_after:
            estimate = math.floor(max(age, timedelta(0)) / ESTIMATED_UPLOAD_DURATION * 100)
            return UploadJob(
                id=job_id,
                user_id=user_id,
                status=UploadStatus.STORING,
                progress=min(MAX_ESTIMATED_PROGRESS, estimate),
                message="Upload in progress...",
                created_at=created_at,
                reconstructed=True,
            )

        error = STUCK_ERROR if age < self._lost_after else LOST_ERROR
        return UploadJob(
            id=job_id,
            user_id=user_id,
            status=UploadStatus.FAILED,
            message=error,
            error=error,
            created_at=created_at,
            reconstructed=True,
        )
