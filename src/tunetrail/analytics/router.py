"""Analytics REST endpoints: class-based router."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from tunetrail.aggregation.schemas import SummaryData
from tunetrail.aggregation.service import AggregationService
from tunetrail.aggregation.storage import AggregationStore
from tunetrail.analytics.schemas import AggregationView, AnalyticsData, RecomputeResponse
from tunetrail.analytics.service import AnalyticsService
from tunetrail.auth.dependencies import CurrentUser
from tunetrail.db.enums import AggregationKind, Grouping
from tunetrail.db.operations import ListeningRepository
from tunetrail.db.session import DatabaseManager
from tunetrail.dependencies import get_db_manager
from tunetrail.settings import AppSettings, get_settings


class AnalyticsRouter:
    """Class-based router for pre-computed analytics."""

    def __init__(self) -> None:
        self.router = APIRouter()
        self._register_routes()

    def _register_routes(self) -> None:
        r = self.router
        r.add_api_route("/summary", self.summary, methods=["GET"], response_model=SummaryData | None)
        r.add_api_route(
            "/aggregations/{kind}",
            self.aggregation,
            methods=["GET"],
            response_model=AggregationView,
        )
        r.add_api_route("/data", self.data, methods=["GET"], response_model=AnalyticsData)
        r.add_api_route("/recompute", self.recompute, methods=["POST"], response_model=RecomputeResponse)

    @staticmethod
    def _service(settings: AppSettings, db_manager: DatabaseManager) -> AnalyticsService:
        return AnalyticsService(db_manager, ListeningRepository(max_rows=settings.STORE_MAX_ROWS_PER_REQUEST))

    async def summary(
        self,
        user_id: CurrentUser,
        settings: Annotated[AppSettings, Depends(get_settings)],
        db_manager: Annotated[DatabaseManager, Depends(get_db_manager)],
    ) -> SummaryData | None:
        """Totals for the current user, or null before the first ingestion."""
        return await self._service(settings, db_manager).get_summary(user_id)

    async def aggregation(
        self,
        kind: AggregationKind,
        user_id: CurrentUser,
        settings: Annotated[AppSettings, Depends(get_settings)],
        db_manager: Annotated[DatabaseManager, Depends(get_db_manager)],
        grouping: Grouping | None = Query(default=None),
        limit: int | None = Query(default=None, ge=1),
    ) -> AggregationView:
        """One stored aggregation view."""
        return await self._service(settings, db_manager).get_view(user_id, kind, grouping, limit)

    async def data(
        self,
        user_id: CurrentUser,
        settings: Annotated[AppSettings, Depends(get_settings)],
        db_manager: Annotated[DatabaseManager, Depends(get_db_manager)],
        group_by: Grouping = Query(default=Grouping.DAY),
    ) -> AnalyticsData:
        """Summary plus every aggregation view, top lists trimmed."""
        return await self._service(settings, db_manager).get_data(user_id, group_by)

    async def recompute(
        self,
        user_id: CurrentUser,
        settings: Annotated[AppSettings, Depends(get_settings)],
        db_manager: Annotated[DatabaseManager, Depends(get_db_manager)],
    ) -> RecomputeResponse:
        """Rebuild the current user's aggregations from their stored history."""
        repository = ListeningRepository(max_rows=settings.STORE_MAX_ROWS_PER_REQUEST)
        service = AggregationService(
            db_manager, repository, AggregationStore(db_manager), top_n=settings.AGGREGATION_TOP_N
        )
        return RecomputeResponse(recomputed=await service.recompute(user_id))


_instance = AnalyticsRouter()
router = _instance.router
