"""Ingestion error hierarchy.

Fatal errors stop the pipeline and are recorded on the upload job; per-file
parse errors and aggregation storage errors are logged and absorbed.
"""


class IngestionError(Exception):
    """Base exception for ingestion failures."""


class ExtractionError(IngestionError):
    """The upload is unreadable or yielded no listening records."""


class ParseError(IngestionError):
    """A single export file could not be parsed."""

    def __init__(self, filename: str, reason: str) -> None:
        self.filename = filename
        self.reason = reason
        super().__init__(f"Could not parse {filename}: {reason}")


class StorageError(IngestionError):
    """A chunk (or the purge before writing) failed to persist."""

    def __init__(self, message: str, *, chunk_index: int | None = None) -> None:
        self.chunk_index = chunk_index
        super().__init__(message)


class VerificationError(StorageError):
    """Post-write verification found no rows for a user that should have some."""


class AggregationStorageError(IngestionError):
    """Aggregations could not be recomputed or stored. Never fatal."""
