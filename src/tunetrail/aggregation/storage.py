"""Aggregation persistence: wholesale replace on write, null-tolerant reads."""

import logging
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tunetrail.aggregation.schemas import AggregationRecord
from tunetrail.db.base import utc_now
from tunetrail.db.enums import AggregationKind, Grouping
from tunetrail.db.models.aggregation import ListeningAggregation
from tunetrail.db.session import DatabaseManager
from tunetrail.ingest.errors import AggregationStorageError

logger = logging.getLogger(__name__)


class AggregationStore:
    """Stores one row per (user, kind, grouping).

    ``replace_all`` deletes every prior row for the user and inserts the new
    set inside one transaction, so readers see either the old or the new set.
    """

    def __init__(self, db_manager: DatabaseManager) -> None:
        self._db_manager = db_manager

    async def replace_all(self, user_id: str, records: list[AggregationRecord]) -> None:
        computed_at = utc_now()
        try:
            async with self._db_manager.session() as session:
                await self.delete_for_user(user_id, session)
                session.add_all(
                    ListeningAggregation(
                        user_id=user_id,
                        kind=record.kind,
                        grouping=record.grouping,
                        payload=record.payload,
                        computed_at=computed_at,
                    )
                    for record in records
                )
        except SQLAlchemyError as exc:
            raise AggregationStorageError(f"Failed to store aggregations for user {user_id}: {exc}") from exc
        logger.info("Stored %d aggregations for user %s", len(records), user_id)

    async def get(
        self,
        user_id: str,
        kind: AggregationKind,
        grouping: Grouping | None = None,
    ) -> list[dict[str, Any]] | None:
        """Return a stored payload, or None when absent or unreadable."""
        stmt = select(ListeningAggregation.payload).where(
            ListeningAggregation.user_id == user_id,
            ListeningAggregation.kind == kind,
        )
        if grouping is None:
            stmt = stmt.where(ListeningAggregation.grouping.is_(None))
        else:
            stmt = stmt.where(ListeningAggregation.grouping == grouping)

        try:
            async with self._db_manager.session() as session:
                result = await session.execute(stmt.limit(1))
                return result.scalar_one_or_none()
        except SQLAlchemyError:
            logger.warning("Could not read %s aggregation for user %s", kind, user_id, exc_info=True)
            return None

    async def delete_for_user(self, user_id: str, session: AsyncSession) -> None:
        await session.execute(delete(ListeningAggregation).where(ListeningAggregation.user_id == user_id))
