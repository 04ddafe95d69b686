"""Database operations for listening events and per-user summaries."""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tunetrail.db.models.listening import ListeningEventRow, UserDataSummary
from tunetrail.records.models import ListeningEvent

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROWS_PER_REQUEST = 1000


@dataclass(frozen=True, slots=True)
class SummaryStats:
    """Totals over a user's stored history."""

    total_tracks: int
    total_artists: int
    total_listening_time_ms: int
    date_range_start: datetime | None
    date_range_end: datetime | None


class RowCeilingExceeded(ValueError):
    """A single write or read asked for more rows than the store accepts."""


class ListeningRepository:
    """Reads and writes listening events and summaries for one user at a time.

    Every request is capped at ``max_rows`` rows, matching the store's
    per-request ceiling.
    """

    def __init__(self, max_rows: int = DEFAULT_MAX_ROWS_PER_REQUEST) -> None:
        self.max_rows = max_rows

    # -------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------

    async def insert_events(self, user_id: str, events: list[ListeningEvent], session: AsyncSession) -> int:
        """Append events for a user. Returns the number of rows inserted."""
        if len(events) > self.max_rows:
            raise RowCeilingExceeded(f"Cannot insert {len(events)} rows in one request (max {self.max_rows})")
        session.add_all(
            ListeningEventRow(
                user_id=user_id,
                track_name=e.track_name,
                artist_name=e.artist_name,
                played_at=e.played_at,
                duration_ms=e.duration_ms,
                source=e.source,
            )
            for e in events
        )
        await session.flush()
        return len(events)

    async def delete_events(self, user_id: str, session: AsyncSession, *, up_to: datetime | None = None) -> int:
        """Delete a user's events, optionally only those played at or before ``up_to``."""
        stmt = delete(ListeningEventRow).where(ListeningEventRow.user_id == user_id)
        if up_to is not None:
            stmt = stmt.where(ListeningEventRow.played_at <= up_to)
        result = await session.execute(stmt)
        deleted = result.rowcount or 0  # type: ignore[attr-defined]
        logger.info("Deleted %d listening events for user %s (up_to=%s)", deleted, user_id, up_to)
        return deleted

    async def fetch_events_page(
        self,
        user_id: str,
        session: AsyncSession,
        *,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[ListeningEvent]:
        """Return one page of a user's events, newest first."""
        limit = self.max_rows if limit is None else limit
        if limit > self.max_rows:
            raise RowCeilingExceeded(f"Cannot read {limit} rows in one request (max {self.max_rows})")
        result = await session.execute(
            select(ListeningEventRow)
            .where(ListeningEventRow.user_id == user_id)
            .order_by(ListeningEventRow.played_at.desc(), ListeningEventRow.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return [_to_event(row) for row in result.scalars()]

    async def fetch_all_events(self, user_id: str, session: AsyncSession) -> list[ListeningEvent]:
        """Read a user's whole history by paging at the row ceiling."""
        events: list[ListeningEvent] = []
        offset = 0
        while True:
            page = await self.fetch_events_page(user_id, session, offset=offset)
            events.extend(page)
            if len(page) < self.max_rows:
                return events
            offset += len(page)

    async def recent_events(self, user_id: str, session: AsyncSession, limit: int) -> list[ListeningEvent]:
        """Return up to ``limit`` most recent events (paged when above the ceiling)."""
        events: list[ListeningEvent] = []
        while len(events) < limit:
            page = await self.fetch_events_page(
                user_id, session, offset=len(events), limit=min(self.max_rows, limit - len(events))
            )
            events.extend(page)
            if not page:
                break
        return events

    async def latest_played_at(self, user_id: str, session: AsyncSession) -> datetime | None:
        result = await session.execute(
            select(func.max(ListeningEventRow.played_at)).where(ListeningEventRow.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def count_events(self, user_id: str, session: AsyncSession) -> int:
        result = await session.execute(
            select(func.count()).select_from(ListeningEventRow).where(ListeningEventRow.user_id == user_id)
        )
        return int(result.scalar_one())

    async def summary_stats(self, user_id: str, session: AsyncSession) -> SummaryStats:
        """Compute totals store-side in a single query."""
        result = await session.execute(
            select(
                func.count(),
                func.count(distinct(ListeningEventRow.artist_name)),
                func.coalesce(func.sum(ListeningEventRow.duration_ms), 0),
                func.min(ListeningEventRow.played_at),
                func.max(ListeningEventRow.played_at),
            ).where(ListeningEventRow.user_id == user_id)
        )
        count, artists, total_ms, start, end = result.one()
        return SummaryStats(
            total_tracks=int(count),
            total_artists=int(artists),
            total_listening_time_ms=int(total_ms),
            date_range_start=start,
            date_range_end=end,
        )

    # -------------------------------------------------------------------
    # Summaries
    # -------------------------------------------------------------------

    async def upsert_summary(
        self,
        user_id: str,
        stats: SummaryStats,
        session: AsyncSession,
        *,
        uploaded_at: datetime | None = None,
    ) -> UserDataSummary:
        """Insert or replace the user's summary row.

        ``uploaded_at`` is the upload completion marker. Only uploads pass it;
        every other refresh keeps the stored value.
        """
        summary = await session.get(UserDataSummary, user_id)
        if summary is None:
            summary = UserDataSummary(user_id=user_id)
            session.add(summary)

        summary.total_tracks = stats.total_tracks
        summary.total_artists = stats.total_artists
        summary.total_listening_time_ms = stats.total_listening_time_ms
        summary.date_range_start = stats.date_range_start
        summary.date_range_end = stats.date_range_end
        if uploaded_at is not None:
            summary.uploaded_at = uploaded_at
        await session.flush()
        return summary

    async def get_summary(self, user_id: str, session: AsyncSession) -> UserDataSummary | None:
        return await session.get(UserDataSummary, user_id)

    async def delete_summary(self, user_id: str, session: AsyncSession) -> None:
        await session.execute(delete(UserDataSummary).where(UserDataSummary.user_id == user_id))


def _to_event(row: ListeningEventRow) -> ListeningEvent:
    return ListeningEvent(
        track_name=row.track_name,
        artist_name=row.artist_name,
        played_at=row.played_at,
        duration_ms=row.duration_ms,
        source=row.source,
    )
