"""Database enums for listening-history models."""

import enum


class EventSource(enum.StrEnum):
    """Where a listening event came from."""

    BULK_EXPORT = "bulk-export"
    LIVE_SYNC = "live-sync"


class AggregationKind(enum.StrEnum):
    """Pre-computed aggregation views."""

    DATE_FREQUENCY = "date_frequency"
    TIME_OF_DAY = "time_of_day"
    DAY_OF_WEEK = "day_of_week"
    TOP_TRACKS = "top_tracks"
    TOP_ARTISTS = "top_artists"


class Grouping(enum.StrEnum):
    """Calendar grouping for date-frequency aggregations."""

    DAY = "day"
    MONTH = "month"
    YEAR = "year"
