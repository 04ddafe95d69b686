"""Normalized listening-event model shared by every ingestion path."""

import enum
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from tunetrail.db.enums import EventSource

type NaturalKey = tuple[str, str, datetime]


class ArtistMode(enum.StrEnum):
    """How a multi-artist live-sync track is reduced to one artist name."""

    PRIMARY = "primary"  # first-listed artist only
    JOINED = "joined"  # every artist, joined with ", "


class ListeningEvent(BaseModel):
    """A single play, normalized from any source.

    ``played_at`` is naive UTC. Events are immutable; identity is the
    natural key ``(track_name, artist_name, played_at)``.
    """

    model_config = ConfigDict(frozen=True)

    track_name: str
    artist_name: str = ""
    played_at: datetime
    duration_ms: int = Field(ge=0)
    source: EventSource

    @property
    def natural_key(self) -> NaturalKey:
        return (self.track_name, self.artist_name, self.played_at)
