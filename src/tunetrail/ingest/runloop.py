"""Scheduled multi-user sync pass."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from pydantic import BaseModel

from tunetrail.ingest.sync import SyncResult, SyncService
from tunetrail.settings import AppSettings
from tunetrail.spotify.client import SpotifyClient

logger = logging.getLogger(__name__)


class SyncTarget(BaseModel):
    """A user to sync and the bearer credential to sync them with."""

    user_id: str
    access_token: str


class SyncFailure(BaseModel):
    user_id: str
    error: str


class SyncPassReport(BaseModel):
    results: list[SyncResult]
    failures: list[SyncFailure]


class SyncRunLoop:
    """Syncs users one at a time with a fixed delay between them.

    A failure for one user is logged and reported; it never aborts the pass.
    """

    def __init__(
        self,
        settings: AppSettings,
        sync_service: SyncService,
        *,
        client_factory: Callable[[str], SpotifyClient] = SpotifyClient,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._settings = settings
        self._sync_service = sync_service
        self._client_factory = client_factory
        self._sleep = sleep

    async def sync_all(self, targets: list[SyncTarget]) -> SyncPassReport:
        logger.info("Starting sync pass for %d user(s)", len(targets))
        results: list[SyncResult] = []
        failures: list[SyncFailure] = []

        for index, target in enumerate(targets):
            if index > 0:
                await self._sleep(self._settings.SYNC_INTER_USER_DELAY_SECONDS)
            try:
                result = await self._sync_service.sync_user(target.user_id, self._client_factory(target.access_token))
            except Exception as exc:
                logger.exception("Error syncing user %s", target.user_id, extra={"user_id": target.user_id})
                failures.append(SyncFailure(user_id=target.user_id, error=str(exc)))
                continue
            results.append(result)

        logger.info("Sync pass complete: %d succeeded, %d failed", len(results), len(failures))
        return SyncPassReport(results=results, failures=failures)
