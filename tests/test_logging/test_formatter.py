"""Tests for JSONLogFormatter."""

import json
import logging
import sys

from tunetrail.logging.formatter import JSONLogFormatter


def _record(msg: str, *args: object, exc_info: object = None, **extra: object) -> logging.LogRecord:
    record = logging.LogRecord("tunetrail.ingest.upload", logging.INFO, __file__, 1, msg, args, exc_info)  # type: ignore[arg-type]
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formats_single_line_json() -> None:
    line = JSONLogFormatter(service="sync").format(_record("Wrote %d events", 3))
    entry = json.loads(line)

    assert "\n" not in line
    assert entry["level"] == "INFO"
    assert entry["service"] == "sync"
    assert entry["logger"] == "tunetrail.ingest.upload"
    assert entry["message"] == "Wrote 3 events"
    assert entry["timestamp"].endswith("+00:00")


def test_includes_context_fields_when_set() -> None:
    entry = json.loads(JSONLogFormatter().format(_record("x", job_id="alice-1", user_id="alice", request_id="")))
    assert entry["job_id"] == "alice-1"
    assert entry["user_id"] == "alice"
    assert "request_id" not in entry


def test_includes_exception_text() -> None:
    try:
        raise ValueError("bad chunk")
    except ValueError:
        record = _record("failed", exc_info=sys.exc_info())

    entry = json.loads(JSONLogFormatter().format(record))
    assert "ValueError: bad chunk" in entry["exception"]
