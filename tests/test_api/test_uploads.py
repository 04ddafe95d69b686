"""Tests for upload endpoints."""

import io
import json
import time
import zipfile
from datetime import datetime

from fastapi.testclient import TestClient

from tunetrail.ingest.job_tracking import UploadJobTracker, UploadStatus, make_job_id
from tunetrail.settings import AppSettings

AUTH_HEADERS = {"Authorization": "Bearer user-token", "X-User-Id": "alice"}

HISTORY = json.dumps(
    [
        {
            "ts": "2024-03-01T08:00:00Z",
            "ms_played": 1000,
            "master_metadata_track_name": "Song A",
            "master_metadata_album_artist_name": "Artist X",
        },
        {
            "ts": "2024-03-02T21:30:00Z",
            "ms_played": 2000,
            "master_metadata_track_name": "Song C",
            "master_metadata_album_artist_name": "Artist Y",
        },
    ]
)


def _zip(files: dict[str, str]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return buf.getvalue()


def _wait_for_terminal(client: TestClient, job_id: str) -> dict[str, object]:
    for _ in range(200):
        resp = client.get("/uploads/status", params={"job_id": job_id}, headers=AUTH_HEADERS)
        assert resp.status_code == 200
        body = resp.json()
        if body["status"] in (UploadStatus.COMPLETED, UploadStatus.FAILED):
            return body
        time.sleep(0.05)
    raise AssertionError(f"job {job_id} never finished")


def test_upload_archive_then_poll_until_complete(client: TestClient) -> None:
    payload = _zip({"Spotify Extended Streaming History/Streaming_History_Audio_2024.json": HISTORY})

    resp = client.post(
        "/uploads",
        files={"file": ("my_spotify_data.zip", payload, "application/zip")},
        headers=AUTH_HEADERS,
    )

    assert resp.status_code == 202
    accepted = resp.json()
    assert accepted["status"] == "pending"
    assert accepted["job_id"].startswith("alice-")

    final = _wait_for_terminal(client, accepted["job_id"])
    assert final["status"] == "completed", final
    assert final["progress"] == 100
    assert final["result"]["total_tracks"] == 2

    summary = client.get("/analytics/summary", headers=AUTH_HEADERS).json()
    assert summary["total_tracks"] == 2
    assert summary["total_listening_time_ms"] == 3000


def test_upload_json_with_no_history_fails_job(client: TestClient) -> None:
    resp = client.post(
        "/uploads",
        files={"file": ("StreamingHistory0.json", b"[]", "application/json")},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 202

    final = _wait_for_terminal(client, resp.json()["job_id"])
    assert final["status"] == "failed"
    assert final["error"] == "No listening history found in the upload"


def test_upload_rejects_unknown_extension(client: TestClient) -> None:
    resp = client.post("/uploads", files={"file": ("history.csv", b"a,b", "text/csv")}, headers=AUTH_HEADERS)
    assert resp.status_code == 400


def test_upload_rejects_empty_file(client: TestClient) -> None:
    resp = client.post("/uploads", files={"file": ("export.zip", b"", "application/zip")}, headers=AUTH_HEADERS)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Uploaded file is empty"


def test_upload_rejects_oversized_file(client: TestClient, settings: AppSettings) -> None:
    settings.MAX_UPLOAD_SIZE_MB = 1
    big = b"0" * (1024 * 1024 + 1)
    resp = client.post("/uploads", files={"file": ("export.zip", big, "application/zip")}, headers=AUTH_HEADERS)
    assert resp.status_code == 413


def test_upload_requires_bearer(client: TestClient) -> None:
    resp = client.post("/uploads", files={"file": ("export.zip", b"x", "application/zip")})
    assert resp.status_code == 401


def test_status_requires_job_id(client: TestClient) -> None:
    assert client.get("/uploads/status", headers=AUTH_HEADERS).status_code == 400


def test_status_unparseable_job_is_404(client: TestClient) -> None:
    resp = client.get("/uploads/status", params={"job_id": "nonsense"}, headers=AUTH_HEADERS)
    assert resp.status_code == 404


def test_status_of_another_users_job_is_403(client: TestClient, job_tracker: UploadJobTracker) -> None:
    job = job_tracker.create("bob")
    resp = client.get("/uploads/status", params={"job_id": job.id}, headers=AUTH_HEADERS)
    assert resp.status_code == 403


def test_status_reconstructs_forgotten_job(client: TestClient) -> None:
    # Created long ago and unknown to this process: reported as lost
    job_id = make_job_id("alice", datetime(2020, 1, 1))
    resp = client.get("/uploads/status", params={"job_id": job_id}, headers=AUTH_HEADERS)

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "failed"
    assert body["reconstructed"] is True
    assert "expired" in body["error"]
