"""Chunked, bounded-concurrency writer with progress reporting."""

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable, Sequence

from tunetrail.db.operations import ListeningRepository
from tunetrail.db.session import DatabaseManager
from tunetrail.ingest.errors import StorageError
from tunetrail.records.models import ListeningEvent

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_WRITE_CONCURRENCY = 3

type ChunkSink = Callable[[Sequence[ListeningEvent]], Awaitable[None]]
type ProgressCallback = Callable[[int, str], Awaitable[None]]


def split_chunks[T](items: Sequence[T], size: int) -> list[Sequence[T]]:
    if size <= 0:
        raise ValueError("chunk size must be positive")
    return [items[i : i + size] for i in range(0, len(items), size)]


class RepositorySink:
    """Writes each chunk for one user in its own session (one transaction per chunk)."""

    def __init__(self, db_manager: DatabaseManager, repository: ListeningRepository, user_id: str) -> None:
        self._db_manager = db_manager
        self._repository = repository
        self._user_id = user_id

    async def __call__(self, chunk: Sequence[ListeningEvent]) -> None:
        async with self._db_manager.session() as session:
            await self._repository.insert_events(self._user_id, list(chunk), session)


class BatchWriter:
    """Splits events at the store's row ceiling and writes groups of chunks concurrently.

    Chunks inside a group are written in parallel; groups run one after the
    other. After each group the progress callback receives
    ``floor(done / total * 100)`` and a human-readable message. A failing
    chunk raises StorageError for the lowest failing index of its group;
    chunks already written stay written.
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        concurrency: int = DEFAULT_WRITE_CONCURRENCY,
    ) -> None:
        if concurrency <= 0:
            raise ValueError("concurrency must be positive")
        self._chunk_size = chunk_size
        self._concurrency = concurrency

    async def write(
        self,
        events: Sequence[ListeningEvent],
        sink: ChunkSink,
        on_progress: ProgressCallback | None = None,
    ) -> int:
        """Write every event through ``sink``. Returns the number of events written."""
        chunks = split_chunks(events, self._chunk_size)
        total_chunks = len(chunks)
        total_events = len(events)
        done_chunks = 0
        done_events = 0

        for group_start in range(0, total_chunks, self._concurrency):
            group = chunks[group_start : group_start + self._concurrency]
            results = await asyncio.gather(*(sink(chunk) for chunk in group), return_exceptions=True)

            for offset, result in enumerate(results):
                if isinstance(result, BaseException):
                    index = group_start + offset
                    logger.error("Chunk %d/%d failed to write: %s", index + 1, total_chunks, result)
                    raise StorageError(
                        f"Failed to store chunk {index + 1} of {total_chunks}", chunk_index=index
                    ) from result

            done_chunks += len(group)
            done_events += sum(len(chunk) for chunk in group)
            if on_progress is not None:
                percent = math.floor(done_chunks / total_chunks * 100)
                message = (
                    f"Storing data... {done_chunks}/{total_chunks} batches ({done_events}/{total_events} tracks)"
                )
                await on_progress(percent, message)

        logger.info("Wrote %d events in %d chunks", done_events, total_chunks)
        return done_events
