"""Tests for natural-key deduplication."""

from datetime import datetime, timedelta

from tunetrail.db.enums import EventSource
from tunetrail.ingest.dedup import filter_new_events
from tunetrail.records.models import ListeningEvent

BASE = datetime(2024, 5, 1, 12, 0)


def _event(track: str, minutes: int, artist: str = "Artist") -> ListeningEvent:
    return ListeningEvent(
        track_name=track,
        artist_name=artist,
        played_at=BASE + timedelta(minutes=minutes),
        duration_ms=180000,
        source=EventSource.LIVE_SYNC,
    )


def test_filters_events_present_in_window() -> None:
    existing = [_event("A", 0), _event("B", 5)]
    candidates = [_event("B", 5), _event("C", 10)]
    assert filter_new_events(candidates, existing) == [_event("C", 10)]


def test_same_track_different_time_is_new() -> None:
    existing = [_event("A", 0)]
    assert filter_new_events([_event("A", 1)], existing) == [_event("A", 1)]


def test_same_time_different_artist_is_new() -> None:
    existing = [_event("A", 0, artist="X")]
    assert len(filter_new_events([_event("A", 0, artist="Y")], existing)) == 1


def test_idempotent() -> None:
    existing = [_event("A", 0)]
    candidates = [_event("A", 0), _event("B", 1), _event("C", 2)]
    once = filter_new_events(candidates, existing)
    twice = filter_new_events(once, existing)
    assert once == twice
    assert filter_new_events(candidates, existing + once) == []


def test_duplicates_within_candidates_collapse() -> None:
    assert filter_new_events([_event("A", 0), _event("A", 0)], []) == [_event("A", 0)]
