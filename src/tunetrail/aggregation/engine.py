"""Pure aggregation functions over listening events.

All buckets are computed in UTC. Top lists use a stable sort, so among
equal play counts the entry seen first in the input wins.
"""

from collections.abc import Iterable, Sequence

from tunetrail.aggregation.schemas import (
    AggregationRecord,
    ArtistPlayCount,
    DateFrequency,
    DayBucket,
    HourBucket,
    TrackPlayCount,
)
from tunetrail.db.enums import AggregationKind, Grouping
from tunetrail.records.models import ListeningEvent

DEFAULT_TOP_N = 50
UNKNOWN_ARTIST = "Unknown"

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

_DATE_KEY_FORMATS = {
    Grouping.DAY: "%Y-%m-%d",
    Grouping.MONTH: "%Y-%m",
    Grouping.YEAR: "%Y",
}


def aggregate_by_date(events: Iterable[ListeningEvent], grouping: Grouping) -> list[DateFrequency]:
    """Play count and total duration per calendar bucket, ascending by bucket."""
    fmt = _DATE_KEY_FORMATS[grouping]
    buckets: dict[str, list[int]] = {}
    for event in events:
        key = event.played_at.strftime(fmt)
        bucket = buckets.setdefault(key, [0, 0])
        bucket[0] += 1
        bucket[1] += event.duration_ms
    return [
        DateFrequency(date=key, play_count=count, total_duration_ms=duration)
        for key, (count, duration) in sorted(buckets.items())
    ]


def time_of_day(events: Iterable[ListeningEvent]) -> list[HourBucket]:
    """Exactly 24 hour-of-day buckets."""
    counts = [0] * 24
    for event in events:
        counts[event.played_at.hour] += 1
    return [HourBucket(hour=hour, play_count=count) for hour, count in enumerate(counts)]


def day_of_week(events: Iterable[ListeningEvent]) -> list[DayBucket]:
    """Exactly 7 day-of-week buckets, Sunday first."""
    counts = [0] * 7
    for event in events:
        # datetime.weekday() is Monday=0
        counts[(event.played_at.weekday() + 1) % 7] += 1
    return [DayBucket(day=day, day_name=DAY_NAMES[day], play_count=count) for day, count in enumerate(counts)]


def top_tracks(events: Iterable[ListeningEvent], limit: int = DEFAULT_TOP_N) -> list[TrackPlayCount]:
    totals: dict[tuple[str, str], list[int]] = {}
    for event in events:
        total = totals.setdefault((event.track_name, event.artist_name), [0, 0])
        total[0] += 1
        total[1] += event.duration_ms
    ranked = sorted(totals.items(), key=lambda item: item[1][0], reverse=True)
    return [
        TrackPlayCount(track_name=track, artist_name=artist, play_count=count, total_duration_ms=duration)
        for (track, artist), (count, duration) in ranked[:limit]
    ]


def top_artists(events: Iterable[ListeningEvent], limit: int = DEFAULT_TOP_N) -> list[ArtistPlayCount]:
    totals: dict[str, list[int]] = {}
    for event in events:
        total = totals.setdefault(event.artist_name or UNKNOWN_ARTIST, [0, 0])
        total[0] += 1
        total[1] += event.duration_ms
    ranked = sorted(totals.items(), key=lambda item: item[1][0], reverse=True)
    return [
        ArtistPlayCount(artist_name=artist, play_count=count, total_duration_ms=duration)
        for artist, (count, duration) in ranked[:limit]
    ]


def compute_aggregations(events: Sequence[ListeningEvent], top_n: int = DEFAULT_TOP_N) -> list[AggregationRecord]:
    """Every stored view for one user's full history."""
    records = [
        AggregationRecord(
            kind=AggregationKind.DATE_FREQUENCY,
            grouping=grouping,
            payload=[row.model_dump() for row in aggregate_by_date(events, grouping)],
        )
        for grouping in Grouping
    ]
    records.append(
        AggregationRecord(kind=AggregationKind.TIME_OF_DAY, payload=[b.model_dump() for b in time_of_day(events)])
    )
    records.append(
        AggregationRecord(kind=AggregationKind.DAY_OF_WEEK, payload=[b.model_dump() for b in day_of_week(events)])
    )
    records.append(
        AggregationRecord(
            kind=AggregationKind.TOP_TRACKS, payload=[t.model_dump() for t in top_tracks(events, top_n)]
        )
    )
    records.append(
        AggregationRecord(
            kind=AggregationKind.TOP_ARTISTS, payload=[a.model_dump() for a in top_artists(events, top_n)]
        )
    )
    return records
