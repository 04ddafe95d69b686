"""History endpoints: user-scoped purge of stored listening events."""

import logging
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from tunetrail.aggregation.service import AggregationService
from tunetrail.aggregation.storage import AggregationStore
from tunetrail.aggregation.summary import SummaryCalculator
from tunetrail.auth.dependencies import CurrentUser
from tunetrail.db.operations import ListeningRepository
from tunetrail.db.session import DatabaseManager
from tunetrail.dependencies import get_db_manager
from tunetrail.history.schemas import PurgeResponse
from tunetrail.settings import AppSettings, get_settings

logger = logging.getLogger(__name__)


class HistoryRouter:
    """Class-based router for stored history."""

    def __init__(self) -> None:
        self.router = APIRouter()
        self._register_routes()

    def _register_routes(self) -> None:
        self.router.add_api_route("", self.purge, methods=["DELETE"], response_model=PurgeResponse)

    async def purge(
        self,
        user_id: CurrentUser,
        settings: Annotated[AppSettings, Depends(get_settings)],
        db_manager: Annotated[DatabaseManager, Depends(get_db_manager)],
        before: datetime | None = Query(default=None),
    ) -> PurgeResponse:
        """Delete the current user's events, all of them or those played at or before ``before``.

        A full purge also clears aggregations and the summary; a partial purge
        recomputes them from what is left.
        """
        if before is not None and before.tzinfo is not None:
            before = before.astimezone(UTC).replace(tzinfo=None)

        repository = ListeningRepository(max_rows=settings.STORE_MAX_ROWS_PER_REQUEST)
        store = AggregationStore(db_manager)

        async with db_manager.session() as session:
            deleted = await repository.delete_events(user_id, session, up_to=before)
            if before is None:
                await store.delete_for_user(user_id, session)
                await repository.delete_summary(user_id, session)

        if before is not None:
            await AggregationService(db_manager, repository, store, top_n=settings.AGGREGATION_TOP_N).recompute(
                user_id
            )
            await SummaryCalculator(db_manager, repository).refresh(user_id)

        logger.info("Purged %d events for user %s", deleted, user_id, extra={"user_id": user_id})
        return PurgeResponse(deleted=deleted, before=before)


_instance = HistoryRouter()
router = _instance.router
