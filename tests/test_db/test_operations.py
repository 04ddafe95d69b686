"""Tests for ListeningRepository against SQLite."""

from datetime import datetime, timedelta

import pytest

from tunetrail.db.enums import EventSource
from tunetrail.db.operations import ListeningRepository, RowCeilingExceeded, SummaryStats
from tunetrail.db.session import DatabaseManager
from tunetrail.records.models import ListeningEvent

BASE = datetime(2024, 1, 1, 0, 0)


def _events(n: int, user_tag: str = "", artist_every: int = 1) -> list[ListeningEvent]:
    return [
        ListeningEvent(
            track_name=f"{user_tag}Track {i}",
            artist_name=f"Artist {i // artist_every}",
            played_at=BASE + timedelta(minutes=i),
            duration_ms=100 * (i + 1),
            source=EventSource.BULK_EXPORT,
        )
        for i in range(n)
    ]


async def test_insert_rejects_more_than_ceiling(db_manager: DatabaseManager) -> None:
    repo = ListeningRepository(max_rows=5)
    async with db_manager.session() as session:
        with pytest.raises(RowCeilingExceeded):
            await repo.insert_events("alice", _events(6), session)


async def test_page_read_rejects_more_than_ceiling(db_manager: DatabaseManager) -> None:
    repo = ListeningRepository(max_rows=5)
    async with db_manager.session() as session:
        with pytest.raises(RowCeilingExceeded):
            await repo.fetch_events_page("alice", session, limit=6)


async def test_pages_are_newest_first_and_user_scoped(db_manager: DatabaseManager) -> None:
    repo = ListeningRepository(max_rows=4)
    async with db_manager.session() as session:
        await repo.insert_events("alice", _events(4), session)
        await repo.insert_events("alice", _events(10)[4:8], session)
        await repo.insert_events("bob", _events(3, user_tag="b-"), session)

    async with db_manager.session() as session:
        first = await repo.fetch_events_page("alice", session)
        second = await repo.fetch_events_page("alice", session, offset=4)
        everything = await repo.fetch_all_events("alice", session)

    assert [e.track_name for e in first] == ["Track 7", "Track 6", "Track 5", "Track 4"]
    assert [e.track_name for e in second] == ["Track 3", "Track 2", "Track 1", "Track 0"]
    assert len(everything) == 8
    assert all(not e.track_name.startswith("b-") for e in everything)


async def test_recent_events_pages_to_limit(db_manager: DatabaseManager) -> None:
    repo = ListeningRepository(max_rows=3)
    async with db_manager.session() as session:
        for start in range(0, 9, 3):
            await repo.insert_events("alice", _events(9)[start : start + 3], session)

    async with db_manager.session() as session:
        recent = await repo.recent_events("alice", session, limit=7)
        short = await repo.recent_events("nobody", session, limit=7)

    assert len(recent) == 7
    assert recent[0].track_name == "Track 8"
    assert short == []


async def test_delete_up_to_is_inclusive(db_manager: DatabaseManager) -> None:
    repo = ListeningRepository()
    async with db_manager.session() as session:
        await repo.insert_events("alice", _events(5), session)
        await repo.insert_events("bob", _events(5), session)

    async with db_manager.session() as session:
        deleted = await repo.delete_events("alice", session, up_to=BASE + timedelta(minutes=2))

    async with db_manager.session() as session:
        remaining = await repo.fetch_all_events("alice", session)
        assert await repo.count_events("bob", session) == 5

    assert deleted == 3
    assert [e.track_name for e in remaining] == ["Track 4", "Track 3"]


async def test_delete_everything(db_manager: DatabaseManager) -> None:
    repo = ListeningRepository()
    async with db_manager.session() as session:
        await repo.insert_events("alice", _events(5), session)
    async with db_manager.session() as session:
        assert await repo.delete_events("alice", session) == 5
        assert await repo.count_events("alice", session) == 0
        assert await repo.latest_played_at("alice", session) is None


async def test_summary_stats(db_manager: DatabaseManager) -> None:
    repo = ListeningRepository()
    async with db_manager.session() as session:
        await repo.insert_events("alice", _events(4, artist_every=2), session)

    async with db_manager.session() as session:
        stats = await repo.summary_stats("alice", session)
        latest = await repo.latest_played_at("alice", session)

    assert stats == SummaryStats(
        total_tracks=4,
        total_artists=2,
        total_listening_time_ms=100 + 200 + 300 + 400,
        date_range_start=BASE,
        date_range_end=BASE + timedelta(minutes=3),
    )
    assert latest == BASE + timedelta(minutes=3)


async def test_summary_stats_for_empty_history(db_manager: DatabaseManager) -> None:
    async with db_manager.session() as session:
        stats = await ListeningRepository().summary_stats("nobody", session)
    assert stats == SummaryStats(0, 0, 0, None, None)


async def test_upsert_summary_replaces_row(db_manager: DatabaseManager) -> None:
    repo = ListeningRepository()
    async with db_manager.session() as session:
        await repo.upsert_summary("alice", SummaryStats(1, 1, 10, BASE, BASE), session, uploaded_at=BASE)
    async with db_manager.session() as session:
        await repo.upsert_summary("alice", SummaryStats(2, 1, 30, BASE, BASE), session)

    async with db_manager.session() as session:
        row = await repo.get_summary("alice", session)
        assert row is not None
        assert row.total_tracks == 2
        assert row.total_listening_time_ms == 30
        assert row.uploaded_at == BASE

        await repo.delete_summary("alice", session)
    async with db_manager.session() as session:
        assert await repo.get_summary("alice", session) is None


async def test_summary_without_upload_has_no_marker(db_manager: DatabaseManager) -> None:
    repo = ListeningRepository()
    async with db_manager.session() as session:
        row = await repo.upsert_summary("alice", SummaryStats(1, 1, 10, BASE, BASE), session)
        assert row.uploaded_at is None
