"""Normalizers that convert raw export records and live-sync items into ListeningEvent."""

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from decimal import Decimal

from tunetrail.db.enums import EventSource
from tunetrail.records.models import ArtistMode, ListeningEvent
from tunetrail.spotify.models import SpotifyPlayHistoryItem

logger = logging.getLogger(__name__)

ACCOUNT_DATA_TIME_FORMAT = "%Y-%m-%d %H:%M"


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def _coerce_ms(value: object) -> int:
    # ijson yields Decimal for non-integral numbers
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        return int(value)
    return 0


def normalize_extended_record(raw: dict[str, object]) -> ListeningEvent | None:
    """Normalize a record from Extended Streaming History (Streaming_History_Audio_*.json).

    Expected fields:
        ts: str (ISO 8601 datetime, e.g. "2023-01-15T10:30:00Z")
        ms_played: int
        master_metadata_track_name: str | None
        master_metadata_album_artist_name: str | None

    Returns None for episodes/audiobooks (no track name), unparseable
    timestamps and zero-duration plays.
    """
    track_name = raw.get("master_metadata_track_name")
    if not track_name:
        return None

    ts_str = raw.get("ts")
    if not isinstance(ts_str, str):
        return None

    try:
        played_at = datetime.fromisoformat(ts_str.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Skipping record with unparseable timestamp: %s", ts_str)
        return None

    duration_ms = _coerce_ms(raw.get("ms_played", 0))
    if duration_ms <= 0:
        return None

    artist_name = raw.get("master_metadata_album_artist_name")
    return ListeningEvent(
        track_name=str(track_name),
        artist_name=str(artist_name) if artist_name else "",
        played_at=_to_naive_utc(played_at),
        duration_ms=duration_ms,
        source=EventSource.BULK_EXPORT,
    )


def normalize_account_data_record(raw: dict[str, object]) -> ListeningEvent | None:
    """Normalize a record from Account Data format (StreamingHistory*.json).

    Expected fields:
        endTime: str (e.g. "2023-01-15 10:30", UTC)
        msPlayed: int
        trackName: str
        artistName: str
    """
    track_name = raw.get("trackName")
    if not track_name:
        return None

    end_time_str = raw.get("endTime")
    if not isinstance(end_time_str, str):
        return None

    try:
        played_at = datetime.strptime(end_time_str, ACCOUNT_DATA_TIME_FORMAT)
    except ValueError:
        logger.warning("Skipping record with unparseable endTime: %s", end_time_str)
        return None

    duration_ms = _coerce_ms(raw.get("msPlayed", 0))
    if duration_ms <= 0:
        return None

    artist_name = raw.get("artistName")
    return ListeningEvent(
        track_name=str(track_name),
        artist_name=str(artist_name) if artist_name else "",
        played_at=played_at,
        duration_ms=duration_ms,
        source=EventSource.BULK_EXPORT,
    )


def normalize_export_record(raw: dict[str, object]) -> ListeningEvent | None:
    """Normalize a bulk-export record of either known shape."""
    if "ts" in raw or "master_metadata_track_name" in raw:
        return normalize_extended_record(raw)
    return normalize_account_data_record(raw)


def normalize_export_records(raws: Iterable[dict[str, object]]) -> tuple[list[ListeningEvent], int]:
    """Normalize a batch of export records.

    Returns (events, dropped_count).
    """
    events: list[ListeningEvent] = []
    dropped = 0
    for raw in raws:
        event = normalize_export_record(raw)
        if event is None:
            dropped += 1
            continue
        events.append(event)
    return events, dropped


def normalize_play_history_item(item: SpotifyPlayHistoryItem, *, artist_mode: ArtistMode) -> ListeningEvent | None:
    """Normalize a recently-played item from the streaming API.

    ``artist_mode`` has no default: the caller decides whether a
    multi-artist track is attributed to its first artist or to all of them.
    """
    track = item.track
    duration_ms = track.duration_ms or 0
    if not track.name or duration_ms <= 0:
        return None

    names = [a.name for a in track.artists if a.name]
    if artist_mode is ArtistMode.PRIMARY:
        artist_name = names[0] if names else ""
    else:
        artist_name = ", ".join(names)

    return ListeningEvent(
        track_name=track.name,
        artist_name=artist_name,
        played_at=_to_naive_utc(item.played_at),
        duration_ms=duration_ms,
        source=EventSource.LIVE_SYNC,
    )


def normalize_play_history(
    items: Iterable[SpotifyPlayHistoryItem], *, artist_mode: ArtistMode
) -> tuple[list[ListeningEvent], int]:
    """Normalize a batch of recently-played items. Returns (events, dropped_count)."""
    events: list[ListeningEvent] = []
    dropped = 0
    for item in items:
        event = normalize_play_history_item(item, artist_mode=artist_mode)
        if event is None:
            dropped += 1
            continue
        events.append(event)
    return events, dropped
