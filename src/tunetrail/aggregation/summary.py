"""Per-user summary: totals, distinct artists, and date range."""

import logging
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from tunetrail.aggregation.schemas import SummaryData
from tunetrail.db.operations import ListeningRepository, SummaryStats
from tunetrail.db.session import DatabaseManager
from tunetrail.records.models import ListeningEvent

logger = logging.getLogger(__name__)


def summarize_events(events: Sequence[ListeningEvent]) -> SummaryStats:
    """In-memory reduce over a full history."""
    if not events:
        return SummaryStats(0, 0, 0, None, None)
    played = [e.played_at for e in events]
    return SummaryStats(
        total_tracks=len(events),
        total_artists=len({e.artist_name for e in events}),
        total_listening_time_ms=sum(e.duration_ms for e in events),
        date_range_start=min(played),
        date_range_end=max(played),
    )


class SummaryCalculator:
    """Computes totals store-side, falling back to a paginated in-memory reduce."""

    def __init__(self, db_manager: DatabaseManager, repository: ListeningRepository) -> None:
        self._db_manager = db_manager
        self._repository = repository

    async def calculate(self, user_id: str) -> SummaryStats:
        try:
            async with self._db_manager.session() as session:
                return await self._repository.summary_stats(user_id, session)
        except SQLAlchemyError:
            logger.warning("Store-side summary failed for user %s, reducing in memory", user_id, exc_info=True)

        async with self._db_manager.session() as session:
            events = await self._repository.fetch_all_events(user_id, session)
        return summarize_events(events)

    async def refresh(self, user_id: str, *, uploaded_at: datetime | None = None) -> SummaryData:
        """Recalculate and upsert the user's summary row.

        Pass ``uploaded_at`` only when an upload has just completed.
        """
        stats = await self.calculate(user_id)
        async with self._db_manager.session() as session:
            row = await self._repository.upsert_summary(user_id, stats, session, uploaded_at=uploaded_at)
            summary = SummaryData(
                total_tracks=row.total_tracks,
                total_artists=row.total_artists,
                total_listening_time_ms=row.total_listening_time_ms,
                date_range_start=row.date_range_start,
                date_range_end=row.date_range_end,
                uploaded_at=row.uploaded_at,
            )
        logger.info(
            "Summary for user %s: %d tracks, %d artists",
            user_id,
            summary.total_tracks,
            summary.total_artists,
            extra={"user_id": user_id},
        )
        return summary

    async def get(self, user_id: str) -> SummaryData | None:
        async with self._db_manager.session() as session:
            row = await self._repository.get_summary(user_id, session)
            if row is None:
                return None
            return SummaryData.model_validate(row, from_attributes=True)
