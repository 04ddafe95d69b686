"""Tests for app-level routes and middleware."""

import httpx
import respx
from fastapi.testclient import TestClient

from tunetrail.spotify.constants import ME_URL


def test_health(client: TestClient) -> None:
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy"}


def test_request_id_is_generated(client: TestClient) -> None:
    resp = client.get("/healthz")
    assert len(resp.headers["X-Request-ID"]) == 32


def test_request_id_is_propagated(client: TestClient) -> None:
    resp = client.get("/", headers={"X-Request-ID": "abc-123"})
    assert resp.headers["X-Request-ID"] == "abc-123"
    assert resp.json()["message"] == "tunetrail"


def test_user_resolved_from_profile_when_header_missing(client: TestClient) -> None:
    with respx.mock(assert_all_called=False) as mock:
        mock.get(ME_URL).mock(return_value=httpx.Response(200, json={"id": "carol"}))
        resp = client.get("/analytics/data", headers={"Authorization": "Bearer carol-token"})
    assert resp.status_code == 200


def test_invalid_token_without_user_header_is_401(client: TestClient) -> None:
    with respx.mock(assert_all_called=False) as mock:
        mock.get(ME_URL).mock(return_value=httpx.Response(401))
        resp = client.get("/analytics/summary", headers={"Authorization": "Bearer stale"})
    assert resp.status_code == 401


def test_profile_lookup_failure_is_502(client: TestClient) -> None:
    with respx.mock(assert_all_called=False) as mock:
        mock.get(ME_URL).mock(return_value=httpx.Response(404))
        resp = client.get("/analytics/summary", headers={"Authorization": "Bearer whatever"})
    assert resp.status_code == 502
