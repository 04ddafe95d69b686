"""Recomputes and stores a user's aggregations from their full history."""

import logging

from sqlalchemy.exc import SQLAlchemyError

from tunetrail.aggregation.engine import DEFAULT_TOP_N, compute_aggregations
from tunetrail.aggregation.storage import AggregationStore
from tunetrail.db.operations import ListeningRepository
from tunetrail.db.session import DatabaseManager
from tunetrail.ingest.errors import AggregationStorageError

logger = logging.getLogger(__name__)


class AggregationService:
    """Recompute is best-effort: a failure is logged and never reaches the caller."""

    def __init__(
        self,
        db_manager: DatabaseManager,
        repository: ListeningRepository,
        store: AggregationStore,
        top_n: int = DEFAULT_TOP_N,
    ) -> None:
        self._db_manager = db_manager
        self._repository = repository
        self._store = store
        self._top_n = top_n

    async def recompute(self, user_id: str) -> bool:
        """Rebuild every aggregation for ``user_id``. Returns False on failure."""
        try:
            try:
                async with self._db_manager.session() as session:
                    events = await self._repository.fetch_all_events(user_id, session)
            except SQLAlchemyError as exc:
                raise AggregationStorageError(f"Failed to read history for user {user_id}: {exc}") from exc

            records = compute_aggregations(events, self._top_n)
            await self._store.replace_all(user_id, records)
        except AggregationStorageError:
            logger.exception("Aggregation recompute failed for user %s", user_id, extra={"user_id": user_id})
            return False

        logger.info(
            "Recomputed aggregations for user %s from %d events",
            user_id,
            len(events),
            extra={"user_id": user_id},
        )
        return True
