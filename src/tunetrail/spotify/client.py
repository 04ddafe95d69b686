"""Spotify Web API async client with retry and rate-limit handling."""

import asyncio
import logging

import httpx

from tunetrail.spotify.constants import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_RETRY_BASE_DELAY,
    ME_URL,
    RECENTLY_PLAYED_PAGE_LIMIT,
    RECENTLY_PLAYED_URL,
)
from tunetrail.spotify.exceptions import (
    SpotifyAuthError,
    SpotifyRateLimitError,
    SpotifyRequestError,
    SpotifyServerError,
)
from tunetrail.spotify.models import RecentlyPlayedResponse, SpotifyUserProfile

logger = logging.getLogger(__name__)


class SpotifyClient:
    """Async Spotify Web API client.

    Takes an access_token per-instance; the token is opaque here and never
    refreshed. Handles 429 backoff and 5xx retries internally.
    """

    def __init__(
        self,
        access_token: str,
        *,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self._access_token = access_token
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._request_timeout = request_timeout

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str | int] | None = None,
    ) -> httpx.Response:
        """Send an HTTP request with retry logic for 429/5xx.

        Retry loop:
        1. Send request with Bearer token
        2. If 2xx: return response
        3. If 401: raise SpotifyAuthError
        4. If 429: sleep(Retry-After header or exponential backoff), continue
        5. If 5xx: sleep(exponential backoff), continue
        6. If other 4xx: raise SpotifyRequestError immediately
        """
        last_status = 0
        last_retry_after: float | None = None

        for attempt in range(self._max_retries + 1):
            async with httpx.AsyncClient(timeout=self._request_timeout) as client:
                response = await client.request(
                    method,
                    url,
                    params=params,
                    headers={"Authorization": f"Bearer {self._access_token}"},
                )

            last_status = response.status_code

            if 200 <= response.status_code < 300:
                return response

            if response.status_code == 401:
                raise SpotifyAuthError("Spotify returned 401 Unauthorized")

            if response.status_code == 429:
                retry_after_header = response.headers.get("Retry-After")
                if retry_after_header:
                    delay = float(retry_after_header)
                else:
                    delay = self._retry_base_delay * (2**attempt)
                last_retry_after = delay

                if attempt < self._max_retries:
                    logger.warning(
                        "Spotify rate limited (429), sleeping %.1fs (attempt %d/%d)",
                        delay,
                        attempt + 1,
                        self._max_retries,
                    )
                    await asyncio.sleep(delay)
                    continue

            elif response.status_code >= 500:
                if attempt < self._max_retries:
                    delay = self._retry_base_delay * (2**attempt)
                    logger.warning(
                        "Spotify server error %d, sleeping %.1fs (attempt %d/%d)",
                        response.status_code,
                        delay,
                        attempt + 1,
                        self._max_retries,
                    )
                    await asyncio.sleep(delay)
                    continue

            else:
                detail = f"HTTP {response.status_code}"
                try:
                    error = response.json().get("error")
                    if isinstance(error, dict):
                        detail = error.get("message", detail)
                except (AttributeError, ValueError):
                    if response.text:
                        detail = response.text[:200]
                raise SpotifyRequestError(status_code=response.status_code, detail=detail)

        if last_status == 429:
            raise SpotifyRateLimitError(retry_after=last_retry_after)
        raise SpotifyServerError(status_code=last_status, detail="Max retries exhausted")

    async def get_recently_played(
        self,
        *,
        limit: int = RECENTLY_PLAYED_PAGE_LIMIT,
        before: int | None = None,
        after: int | None = None,
    ) -> RecentlyPlayedResponse:
        """GET /me/player/recently-played."""
        params: dict[str, str | int] = {"limit": min(limit, RECENTLY_PLAYED_PAGE_LIMIT)}
        if before is not None:
            params["before"] = before
        if after is not None:
            params["after"] = after

        response = await self._request("GET", RECENTLY_PLAYED_URL, params=params)
        return RecentlyPlayedResponse.model_validate(response.json())

    async def get_current_user(self) -> SpotifyUserProfile:
        """GET /me."""
        response = await self._request("GET", ME_URL)
        return SpotifyUserProfile.model_validate(response.json())
