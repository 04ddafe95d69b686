"""Incremental sync from the streaming service's recently-played endpoint."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

from pydantic import BaseModel

from tunetrail.aggregation.service import AggregationService
from tunetrail.aggregation.storage import AggregationStore
from tunetrail.aggregation.summary import SummaryCalculator
from tunetrail.db.operations import ListeningRepository
from tunetrail.db.session import DatabaseManager
from tunetrail.ingest.batch_writer import BatchWriter, RepositorySink
from tunetrail.ingest.dedup import filter_new_events
from tunetrail.records.normalizers import normalize_play_history
from tunetrail.settings import AppSettings
from tunetrail.spotify.client import SpotifyClient
from tunetrail.spotify.constants import RECENTLY_PLAYED_PAGE_LIMIT
from tunetrail.spotify.exceptions import SpotifyAuthError, SpotifyClientError, SpotifyRateLimitError
from tunetrail.spotify.models import RecentlyPlayedResponse, SpotifyPlayHistoryItem

logger = logging.getLogger(__name__)

DEFAULT_RATE_LIMIT_WAIT_SECONDS = 1.0


def _datetime_to_unix_ms(dt: datetime) -> int:
    """Convert a datetime to Unix epoch milliseconds."""
    epoch = datetime(1970, 1, 1, tzinfo=UTC)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return int((dt - epoch).total_seconds() * 1000)


def _naive_utc(dt: datetime) -> datetime:
    return dt if dt.tzinfo is None else dt.astimezone(UTC).replace(tzinfo=None)


class SyncResult(BaseModel):
    """Outcome of one user's sync."""

    user_id: str
    new_tracks_count: int
    total_tracks: int
    fetched: int = 0
    stop_reason: str = ""


class SyncService:
    """Fetches plays newer than the user's latest stored play and stores the new ones.

    The boundary is the newest stored play, read from the store whatever the
    window size; the duplicate check runs against a bounded window of recent
    events (``DEDUP_WINDOW_SIZE``).
    """

    def __init__(
        self,
        settings: AppSettings,
        db_manager: DatabaseManager,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._settings = settings
        self._db_manager = db_manager
        self._sleep = sleep
        self._repository = ListeningRepository(max_rows=settings.STORE_MAX_ROWS_PER_REQUEST)
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

    async def sync_user(self, user_id: str, client: SpotifyClient) -> SyncResult:
        log_extra = {"user_id": user_id}

        async with self._db_manager.session() as session:
            since = await self._repository.latest_played_at(user_id, session)
            window = await self._repository.recent_events(user_id, session, self._settings.DEDUP_WINDOW_SIZE)

        items, stop_reason = await self.fetch_since(client, since)
        events, dropped = normalize_play_history(items, artist_mode=self._settings.SYNC_ARTIST_MODE)
        new_events = filter_new_events(events, window)
        logger.info(
            "Sync for user %s: fetched=%d dropped=%d new=%d since=%s stop_reason=%s",
            user_id,
            len(items),
            dropped,
            len(new_events),
            since,
            stop_reason,
            extra=log_extra,
        )

        if new_events:
            await self._writer.write(new_events, RepositorySink(self._db_manager, self._repository, user_id))
            await self._aggregations.recompute(user_id)
            summary = await self._summaries.refresh(user_id)
            total_tracks = summary.total_tracks
        else:
            async with self._db_manager.session() as session:
                total_tracks = await self._repository.count_events(user_id, session)

        return SyncResult(
            user_id=user_id,
            new_tracks_count=len(new_events),
            total_tracks=total_tracks,
            fetched=len(items),
            stop_reason=stop_reason,
        )

    async def fetch_since(
        self, client: SpotifyClient, since: datetime | None
    ) -> tuple[list[SpotifyPlayHistoryItem], str]:
        """Page backwards through recently-played until reaching ``since``.

        Returns (items strictly newer than ``since``, stop_reason). Client
        errors other than auth end the fetch with what was collected.
        """
        collected: list[SpotifyPlayHistoryItem] = []
        cursor: int | None = None
        previous_oldest: datetime | None = None
        max_tracks = self._settings.SYNC_MAX_TRACKS

        while True:
            if len(collected) >= max_tracks:
                return collected[:max_tracks], "max_tracks"

            try:
                response = await self._fetch_page(client, cursor)
            except SpotifyAuthError:
                raise
            except SpotifyClientError as exc:
                logger.warning("Recently-played fetch stopped early: %s", exc)
                return collected, "client_error"

            if not response.items:
                return collected, "empty_batch"

            reached_boundary = False
            for item in response.items:
                if since is not None and _naive_utc(item.played_at) <= since:
                    reached_boundary = True
                    continue
                collected.append(item)
            if reached_boundary:
                return collected[:max_tracks], "reached_boundary"

            batch_oldest = min(item.played_at for item in response.items)
            if previous_oldest is not None and batch_oldest >= previous_oldest:
                return collected[:max_tracks], "no_progress"
            previous_oldest = batch_oldest

            # Advance cursor: before = oldest_played_at - 1ms
            cursor = _datetime_to_unix_ms(batch_oldest) - 1

    async def _fetch_page(self, client: SpotifyClient, cursor: int | None) -> RecentlyPlayedResponse:
        attempts = 0
        while True:
            try:
                return await client.get_recently_played(limit=RECENTLY_PLAYED_PAGE_LIMIT, before=cursor)
            except SpotifyRateLimitError as exc:
                attempts += 1
                if attempts > self._settings.SYNC_RATE_LIMIT_RETRIES:
                    raise
                wait = exc.retry_after if exc.retry_after is not None else DEFAULT_RATE_LIMIT_WAIT_SECONDS
                logger.warning("Rate limited while syncing, waiting %.1fs (attempt %d)", wait, attempts)
                await self._sleep(wait)
