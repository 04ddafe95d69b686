"""Natural-key deduplication for incremental sync."""

from collections.abc import Iterable

from tunetrail.records.models import ListeningEvent, NaturalKey


def natural_key(event: ListeningEvent) -> NaturalKey:
    return event.natural_key


def filter_new_events(candidates: Iterable[ListeningEvent], existing: Iterable[ListeningEvent]) -> list[ListeningEvent]:
    """Return candidates whose natural key is absent from ``existing``.

    Exact equality on (track_name, artist_name, played_at); no fuzzy
    matching. ``existing`` is a bounded window of recent stored events, so a
    duplicate older than the window is not caught. Duplicates within
    ``candidates`` itself are also collapsed.
    """
    seen = {natural_key(e) for e in existing}
    fresh: list[ListeningEvent] = []
    for event in candidates:
        key = natural_key(event)
        if key in seen:
            continue
        seen.add(key)
        fresh.append(event)
    return fresh
