"""Pydantic request/response models for sync endpoints."""

from pydantic import BaseModel, Field

from tunetrail.ingest.runloop import SyncTarget


class SyncResponse(BaseModel):
    new_tracks_count: int
    total_tracks: int


class RunAllRequest(BaseModel):
    """Users to sync in one scheduled pass."""

    targets: list[SyncTarget] = Field(default_factory=list)
