"""Listening-event model and normalizers."""

from tunetrail.records.models import ArtistMode, ListeningEvent, NaturalKey
from tunetrail.records.normalizers import (
    normalize_export_record,
    normalize_export_records,
    normalize_play_history,
    normalize_play_history_item,
)

__all__ = [
    "ArtistMode",
    "ListeningEvent",
    "NaturalKey",
    "normalize_export_record",
    "normalize_export_records",
    "normalize_play_history",
    "normalize_play_history_item",
]
