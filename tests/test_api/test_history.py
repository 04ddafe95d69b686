"""Tests for history purge endpoints."""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from tunetrail.aggregation.service import AggregationService
from tunetrail.aggregation.storage import AggregationStore
from tunetrail.aggregation.summary import SummaryCalculator
from tunetrail.db.enums import EventSource
from tunetrail.db.operations import ListeningRepository
from tunetrail.db.session import DatabaseManager
from tunetrail.records.models import ListeningEvent

AUTH_HEADERS = {"Authorization": "Bearer user-token", "X-User-Id": "alice"}
BASE = datetime(2024, 1, 1, 12, 0)
UPLOADED_AT = datetime(2024, 1, 10, 0, 0)


@pytest.fixture
async def seeded(db_manager: DatabaseManager) -> None:
    repository = ListeningRepository()
    for user_id in ("alice", "bob"):
        events = [
            ListeningEvent(
                track_name=f"Track {i}",
                artist_name="Artist",
                played_at=BASE + timedelta(days=i),
                duration_ms=1000,
                source=EventSource.BULK_EXPORT,
            )
            for i in range(5)
        ]
        async with db_manager.session() as session:
            await repository.insert_events(user_id, events, session)
        await AggregationService(db_manager, repository, AggregationStore(db_manager)).recompute(user_id)
        await SummaryCalculator(db_manager, repository).refresh(user_id, uploaded_at=UPLOADED_AT)


def test_full_purge_clears_events_summary_and_aggregations(client: TestClient, seeded: None) -> None:
    resp = client.delete("/history", headers=AUTH_HEADERS)

    assert resp.status_code == 200
    assert resp.json() == {"deleted": 5, "before": None}
    assert client.get("/analytics/summary", headers=AUTH_HEADERS).json() is None
    assert client.get("/analytics/aggregations/top_tracks", headers=AUTH_HEADERS).json()["data"] == []

    bob = {"Authorization": "Bearer user-token", "X-User-Id": "bob"}
    assert client.get("/analytics/summary", headers=bob).json()["total_tracks"] == 5


def test_partial_purge_recomputes_and_keeps_upload_marker(client: TestClient, seeded: None) -> None:
    resp = client.delete("/history", params={"before": "2024-01-02T12:00:00"}, headers=AUTH_HEADERS)

    assert resp.status_code == 200
    assert resp.json()["deleted"] == 2

    summary = client.get("/analytics/summary", headers=AUTH_HEADERS).json()
    assert summary["total_tracks"] == 3
    assert summary["date_range_start"] == "2024-01-03T12:00:00"
    assert summary["uploaded_at"] == "2024-01-10T00:00:00"

    tracks = client.get("/analytics/aggregations/top_tracks", headers=AUTH_HEADERS).json()["data"]
    assert {t["track_name"] for t in tracks} == {"Track 2", "Track 3", "Track 4"}


def test_purge_with_offset_timestamp_is_normalized_to_utc(client: TestClient, seeded: None) -> None:
    resp = client.delete("/history", params={"before": "2024-01-01T14:00:00+02:00"}, headers=AUTH_HEADERS)
    assert resp.json() == {"deleted": 1, "before": "2024-01-01T12:00:00"}


def test_purge_requires_authentication(client: TestClient) -> None:
    assert client.delete("/history").status_code == 401
