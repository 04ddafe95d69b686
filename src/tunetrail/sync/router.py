"""Sync endpoints: per-user recently-played sync and the scheduled multi-user pass."""

import hmac
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException

from tunetrail.auth.dependencies import BearerToken, CurrentUser, parse_bearer
from tunetrail.db.session import DatabaseManager
from tunetrail.dependencies import get_db_manager
from tunetrail.ingest.runloop import SyncPassReport, SyncRunLoop
from tunetrail.ingest.sync import SyncService
from tunetrail.settings import AppSettings, get_settings
from tunetrail.spotify.client import SpotifyClient
from tunetrail.spotify.exceptions import SpotifyAuthError
from tunetrail.sync.schemas import RunAllRequest, SyncResponse

logger = logging.getLogger(__name__)


async def require_sync_secret(
    settings: Annotated[AppSettings, Depends(get_settings)],
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    """Guard for scheduler-only endpoints: ``Authorization: Bearer <SYNC_SECRET_KEY>``."""
    token = parse_bearer(authorization)
    if not settings.SYNC_SECRET_KEY or token is None or not hmac.compare_digest(token, settings.SYNC_SECRET_KEY):
        raise HTTPException(status_code=401, detail="Unauthorized")


class SyncRouter:
    """Class-based router for live sync."""

    def __init__(self) -> None:
        self.router = APIRouter()
        self._register_routes()

    def _register_routes(self) -> None:
        r = self.router
        r.add_api_route("/recently-played", self.recently_played, methods=["POST"], response_model=SyncResponse)
        r.add_api_route(
            "/run-all",
            self.run_all,
            methods=["POST"],
            response_model=SyncPassReport,
            dependencies=[Depends(require_sync_secret)],
        )

    async def recently_played(
        self,
        user_id: CurrentUser,
        token: BearerToken,
        settings: Annotated[AppSettings, Depends(get_settings)],
        db_manager: Annotated[DatabaseManager, Depends(get_db_manager)],
    ) -> SyncResponse:
        """Fetch and store the current user's plays since their latest stored play."""
        service = SyncService(settings, db_manager)
        try:
            result = await service.sync_user(user_id, SpotifyClient(token))
        except SpotifyAuthError as exc:
            raise HTTPException(status_code=401, detail="Invalid or expired access token") from exc
        return SyncResponse(new_tracks_count=result.new_tracks_count, total_tracks=result.total_tracks)

    async def run_all(
        self,
        body: RunAllRequest,
        settings: Annotated[AppSettings, Depends(get_settings)],
        db_manager: Annotated[DatabaseManager, Depends(get_db_manager)],
    ) -> SyncPassReport:
        """Sync every posted user, one after another."""
        runloop = SyncRunLoop(settings, SyncService(settings, db_manager))
        return await runloop.sync_all(body.targets)


_instance = SyncRouter()
router = _instance.router
