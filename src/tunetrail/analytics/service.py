"""Analytics read service: serves stored aggregations and summaries."""

import logging

from sqlalchemy.exc import SQLAlchemyError

from tunetrail.aggregation.schemas import SummaryData
from tunetrail.aggregation.storage import AggregationStore
from tunetrail.aggregation.summary import SummaryCalculator
from tunetrail.analytics.schemas import AggregationView, AnalyticsData
from tunetrail.constants import ANALYTICS_TOP_LIMIT
from tunetrail.db.enums import AggregationKind, Grouping
from tunetrail.db.operations import ListeningRepository
from tunetrail.db.session import DatabaseManager

logger = logging.getLogger(__name__)


class AnalyticsService:
    """Reads never fail: a missing or unreadable aggregation is an empty list."""

    def __init__(self, db_manager: DatabaseManager, repository: ListeningRepository) -> None:
        self._store = AggregationStore(db_manager)
        self._summaries = SummaryCalculator(db_manager, repository)

    async def get_summary(self, user_id: str) -> SummaryData | None:
        try:
            return await self._summaries.get(user_id)
        except SQLAlchemyError:
            logger.warning("Could not read summary for user %s", user_id, exc_info=True)
            return None

    async def get_view(
        self,
        user_id: str,
        kind: AggregationKind,
        grouping: Grouping | None = None,
        limit: int | None = None,
    ) -> AggregationView:
        if kind is AggregationKind.DATE_FREQUENCY:
            grouping = grouping or Grouping.DAY
        else:
            grouping = None
        data = await self._store.get(user_id, kind, grouping) or []
        if limit is not None:
            data = data[:limit]
        return AggregationView(kind=kind, grouping=grouping, data=data)

    async def get_data(self, user_id: str, group_by: Grouping = Grouping.DAY) -> AnalyticsData:
        summary = await self.get_summary(user_id)
        if summary is None:
            return AnalyticsData()

        frequency = await self.get_view(user_id, AggregationKind.DATE_FREQUENCY, group_by)
        hours = await self.get_view(user_id, AggregationKind.TIME_OF_DAY)
        days = await self.get_view(user_id, AggregationKind.DAY_OF_WEEK)
        tracks = await self.get_view(user_id, AggregationKind.TOP_TRACKS, limit=ANALYTICS_TOP_LIMIT)
        artists = await self.get_view(user_id, AggregationKind.TOP_ARTISTS, limit=ANALYTICS_TOP_LIMIT)
        return AnalyticsData(
            summary=summary,
            frequency=frequency.data,
            time_of_day=hours.data,
            day_of_week=days.data,
            top_tracks=tracks.data,
            top_artists=artists.data,
        )
