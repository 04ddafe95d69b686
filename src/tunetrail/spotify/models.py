"""Pydantic models for the Spotify Web API responses the sync path reads.

Pure data models matching Spotify's JSON structure.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class SpotifyArtistSimplified(BaseModel):
    """Simplified artist object (embedded in tracks)."""

    id: str | None = None
    name: str


class SpotifyTrack(BaseModel):
    """Track object as embedded in a play-history item."""

    id: str | None = None
    name: str
    duration_ms: int | None = None
    is_local: bool = False
    artists: list[SpotifyArtistSimplified] = Field(default_factory=list)


class SpotifyPlayHistoryItem(BaseModel):
    """Single item from /me/player/recently-played."""

    track: SpotifyTrack
    played_at: datetime


class SpotifyCursors(BaseModel):
    """Cursor-based pagination for recently-played."""

    after: str | None = None
    before: str | None = None


class RecentlyPlayedResponse(BaseModel):
    """Response from /me/player/recently-played."""

    items: list[SpotifyPlayHistoryItem] = Field(default_factory=list)
    next: str | None = None
    cursors: SpotifyCursors | None = None
    limit: int | None = None


class SpotifyUserProfile(BaseModel):
    """Subset of /me used to resolve the current user id."""

    id: str
    display_name: str | None = None
