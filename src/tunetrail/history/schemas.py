"""Pydantic response models for history endpoints."""

from datetime import datetime

from pydantic import BaseModel


class PurgeResponse(BaseModel):
    deleted: int
    before: datetime | None = None
