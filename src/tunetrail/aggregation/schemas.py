"""Pydantic models for aggregation payloads and summaries."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from tunetrail.db.enums import AggregationKind, Grouping


class DateFrequency(BaseModel):
    """Plays and listening time in one calendar bucket."""

    date: str  # YYYY-MM-DD, YYYY-MM or YYYY
    play_count: int
    total_duration_ms: int


class HourBucket(BaseModel):
    hour: int  # 0-23, UTC
    play_count: int


class DayBucket(BaseModel):
    day: int  # 0=Sunday .. 6=Saturday
    day_name: str
    play_count: int


class TrackPlayCount(BaseModel):
    track_name: str
    artist_name: str
    play_count: int
    total_duration_ms: int


class ArtistPlayCount(BaseModel):
    artist_name: str
    play_count: int
    total_duration_ms: int


class AggregationRecord(BaseModel):
    """One computed view, as stored: ``grouping`` is set only for date frequency."""

    kind: AggregationKind
    grouping: Grouping | None = None
    payload: list[dict[str, Any]]


class SummaryData(BaseModel):
    """Per-user totals."""

    total_tracks: int
    total_artists: int
    total_listening_time_ms: int
    date_range_start: datetime | None = None
    date_range_end: datetime | None = None
    uploaded_at: datetime | None = None
