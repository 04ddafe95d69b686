"""Pydantic response models for analytics endpoints."""

from typing import Any

from pydantic import BaseModel, Field

from tunetrail.aggregation.schemas import SummaryData
from tunetrail.db.enums import AggregationKind, Grouping


class AggregationView(BaseModel):
    """One stored aggregation; ``data`` is empty when nothing has been computed yet."""

    kind: AggregationKind
    grouping: Grouping | None = None
    data: list[dict[str, Any]] = Field(default_factory=list)


class AnalyticsData(BaseModel):
    """Every view a dashboard needs in one response."""

    summary: SummaryData | None = None
    frequency: list[dict[str, Any]] = Field(default_factory=list)
    time_of_day: list[dict[str, Any]] = Field(default_factory=list)
    day_of_week: list[dict[str, Any]] = Field(default_factory=list)
    top_tracks: list[dict[str, Any]] = Field(default_factory=list)
    top_artists: list[dict[str, Any]] = Field(default_factory=list)


class RecomputeResponse(BaseModel):
    recomputed: bool
