"""Pydantic request/response models for upload endpoints."""

from pydantic import BaseModel

from tunetrail.ingest.job_tracking import UploadStatus


class UploadAccepted(BaseModel):
    """Returned as soon as an upload is queued."""

    job_id: str
    status: UploadStatus
    message: str
