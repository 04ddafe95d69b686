"""Tests for BackgroundTaskRunner."""

import asyncio
import logging

import pytest

from tunetrail.ingest.tasks import BackgroundTaskRunner


async def test_submitted_task_runs_to_completion() -> None:
    runner = BackgroundTaskRunner()
    done: list[str] = []

    async def work() -> None:
        await asyncio.sleep(0)
        done.append("ok")

    runner.submit("work", work())
    assert runner.active == 1
    await runner.wait()

    assert done == ["ok"]
    assert runner.active == 0


async def test_task_exception_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    runner = BackgroundTaskRunner()

    async def boom() -> None:
        raise RuntimeError("kaboom")

    with caplog.at_level(logging.ERROR, logger="tunetrail.ingest.tasks"):
        runner.submit("boom", boom())
        await runner.wait()
        await asyncio.sleep(0)

    assert runner.active == 0
    assert any("boom failed" in record.getMessage() for record in caplog.records)


async def test_shutdown_cancels_outstanding_tasks() -> None:
    runner = BackgroundTaskRunner()
    started = asyncio.Event()

    async def forever() -> None:
        started.set()
        await asyncio.Event().wait()

    task = runner.submit("forever", forever())
    await started.wait()
    await runner.shutdown()
    await asyncio.sleep(0)

    assert task.cancelled()
    assert runner.active == 0
