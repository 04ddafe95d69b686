"""Tests for SpotifyClient using respx to mock HTTP."""

import httpx
import pytest
import respx

from tunetrail.spotify.client import SpotifyClient
from tunetrail.spotify.constants import ME_URL, RECENTLY_PLAYED_URL
from tunetrail.spotify.exceptions import (
    SpotifyAuthError,
    SpotifyRateLimitError,
    SpotifyRequestError,
    SpotifyServerError,
)

PLAY = {
    "track": {"id": "t1", "name": "Song", "duration_ms": 200000, "artists": [{"id": "a1", "name": "Band"}]},
    "played_at": "2024-05-01T12:00:00.123Z",
}


def _client() -> SpotifyClient:
    return SpotifyClient("token", max_retries=2, retry_base_delay=0)


@respx.mock
async def test_recently_played_parses_items_and_sends_params() -> None:
    route = respx.get(RECENTLY_PLAYED_URL).mock(
        return_value=httpx.Response(200, json={"items": [PLAY], "cursors": {"before": "1714564800123"}, "limit": 50})
    )

    response = await _client().get_recently_played(limit=500, before=1714564800999)

    assert len(response.items) == 1
    assert response.items[0].track.artists[0].name == "Band"
    assert response.cursors is not None and response.cursors.before == "1714564800123"
    params = route.calls[0].request.url.params
    assert params["limit"] == "50"
    assert params["before"] == "1714564800999"
    assert "after" not in params


@respx.mock
async def test_get_current_user() -> None:
    respx.get(ME_URL).mock(return_value=httpx.Response(200, json={"id": "alice", "display_name": "Alice"}))
    profile = await _client().get_current_user()
    assert profile.id == "alice"


@respx.mock
async def test_unauthorized_raises_auth_error() -> None:
    respx.get(ME_URL).mock(return_value=httpx.Response(401))
    with pytest.raises(SpotifyAuthError):
        await _client().get_current_user()


@respx.mock
async def test_rate_limit_then_success() -> None:
    route = respx.get(RECENTLY_PLAYED_URL)
    route.side_effect = [
        httpx.Response(429, headers={"Retry-After": "0"}),
        httpx.Response(200, json={"items": []}),
    ]

    response = await _client().get_recently_played()

    assert response.items == []
    assert route.call_count == 2


@respx.mock
async def test_rate_limit_exhausted() -> None:
    route = respx.get(RECENTLY_PLAYED_URL).mock(return_value=httpx.Response(429, headers={"Retry-After": "0"}))
    with pytest.raises(SpotifyRateLimitError) as exc_info:
        await _client().get_recently_played()
    assert exc_info.value.retry_after == 0
    assert "next attempt allowed in 0" in str(exc_info.value)
    assert route.call_count == 3


@respx.mock
async def test_server_errors_are_retried_then_raised() -> None:
    route = respx.get(RECENTLY_PLAYED_URL).mock(return_value=httpx.Response(503))
    with pytest.raises(SpotifyServerError) as exc_info:
        await _client().get_recently_played()
    assert exc_info.value.status_code == 503
    assert route.call_count == 3


@respx.mock
async def test_other_client_errors_are_not_retried() -> None:
    route = respx.get(RECENTLY_PLAYED_URL).mock(
        return_value=httpx.Response(403, json={"error": {"status": 403, "message": "Insufficient client scope"}})
    )
    with pytest.raises(SpotifyRequestError) as exc_info:
        await _client().get_recently_played()
    assert exc_info.value.detail == "Insufficient client scope"
    assert str(exc_info.value) == "Streaming service refused the request [403]: Insufficient client scope"
    assert route.call_count == 1
