"""Streaming export extractor: finds history files in an archive and parses them."""

import asyncio
import io
import logging
import zipfile
from collections.abc import Iterable
from typing import IO

import anyio
import ijson  # type: ignore[import-untyped]

from tunetrail.ingest.errors import ExtractionError, ParseError
from tunetrail.zip_import.constants import (
    DEFAULT_MAX_RECORDS,
    EXCLUDED_FILE_MARKERS,
    HISTORY_FILE_MARKERS,
    JSON_SUFFIX,
    SENSITIVE_FIELDS,
    TOP_LEVEL_ARRAY_PREFIX,
    WRAPPED_ARRAY_KEY,
    WRAPPED_ARRAY_PREFIX,
)

logger = logging.getLogger(__name__)

type RawRecord = dict[str, object]

_WHITESPACE = b" \t\r\n"


def _is_video(name: str) -> bool:
    return any(x in name.lower() for x in EXCLUDED_FILE_MARKERS)


def select_history_entries(names: Iterable[str]) -> list[str]:
    """Pick the archive entries that hold listening history.

    Falls back to every non-video JSON entry when no name matches a
    history marker, to tolerate renamed exports.
    """
    json_entries = sorted(
        n for n in names if not n.endswith("/") and n.lower().endswith(JSON_SUFFIX) and not _is_video(n)
    )
    matching = [n for n in json_entries if any(m in n.lower() for m in HISTORY_FILE_MARKERS)]
    if matching:
        return matching
    if json_entries:
        logger.info("No history-named entries found, falling back to %d JSON entries", len(json_entries))
    return json_entries


def _first_significant_byte(stream: IO[bytes]) -> bytes:
    while True:
        chunk = stream.read(64)
        if not chunk:
            return b""
        chunk = chunk.lstrip(_WHITESPACE)
        if chunk:
            return chunk[:1]


def _has_wrapped_array(stream: IO[bytes]) -> bool:
    for prefix, event, _ in ijson.parse(stream):
        if prefix == WRAPPED_ARRAY_KEY and event == "start_array":
            return True
    return False


class ArchiveExtractor:
    """Extracts raw play records from an export archive or a single JSON file.

    Each archive entry is parsed in its own worker thread with ijson, so a
    multi-gigabyte export is never materialized as one JSON document.
    """

    def __init__(self, max_records: int = DEFAULT_MAX_RECORDS) -> None:
        self._max_records = max_records

    async def extract(self, payload: bytes, filename: str) -> list[RawRecord]:
        """Return every raw record in the upload.

        Raises ExtractionError for an unreadable upload or when no records
        are found. A ParseError in one archive entry is logged and skipped.
        """
        if filename.lower().endswith(JSON_SUFFIX):
            try:
                records = await anyio.to_thread.run_sync(self._parse_json_bytes, payload, filename)
            except ParseError as exc:
                raise ExtractionError(str(exc)) from exc
        else:
            records = await self._extract_archive(payload)

        if not records:
            raise ExtractionError("No listening history found in the upload")
        if len(records) > self._max_records:
            logger.warning("Reached max records cap (%d), dropping %d", self._max_records, len(records) - self._max_records)
            records = records[: self._max_records]
        return records

    async def _extract_archive(self, payload: bytes) -> list[RawRecord]:
        try:
            with zipfile.ZipFile(io.BytesIO(payload)) as zf:
                names = zf.namelist()
        except zipfile.BadZipFile as exc:
            raise ExtractionError(f"Upload is not a readable archive: {exc}") from exc

        entries = select_history_entries(names)
        if not entries:
            raise ExtractionError("Archive contains no JSON files")

        logger.info("Parsing %d archive entries", len(entries))
        results = await asyncio.gather(*(self._parse_entry_safe(payload, name) for name in entries))

        records: list[RawRecord] = []
        for entry_records in results:
            records.extend(entry_records)
        return records

    async def _parse_entry_safe(self, payload: bytes, name: str) -> list[RawRecord]:
        try:
            return await anyio.to_thread.run_sync(self._parse_archive_entry, payload, name)
        except ParseError as exc:
            logger.warning("Skipping archive entry: %s", exc)
            return []

    def _parse_archive_entry(self, payload: bytes, name: str) -> list[RawRecord]:
        # One ZipFile per thread; instances are not safe to share across threads.
        with zipfile.ZipFile(io.BytesIO(payload)) as zf:
            with zf.open(name) as f:
                first = _first_significant_byte(f)
            with zf.open(name) as f:
                records = self._parse_stream(f, first, name)
            if first == b"{" and not records:
                with zf.open(name) as f:
                    self._require_wrapped_array(f, name)
        logger.info("Parsed %d records from %s", len(records), name)
        return records

    def _parse_json_bytes(self, payload: bytes, name: str) -> list[RawRecord]:
        first = _first_significant_byte(io.BytesIO(payload))
        records = self._parse_stream(io.BytesIO(payload), first, name)
        if first == b"{" and not records:
            self._require_wrapped_array(io.BytesIO(payload), name)
        return records

    def _parse_stream(self, stream: IO[bytes], first: bytes, name: str) -> list[RawRecord]:
        if first == b"[":
            prefix = TOP_LEVEL_ARRAY_PREFIX
        elif first == b"{":
            prefix = WRAPPED_ARRAY_PREFIX
        else:
            raise ParseError(name, "expected a JSON array or an object with a 'data' array")

        records: list[RawRecord] = []
        try:
            for item in ijson.items(stream, prefix):
                if not isinstance(item, dict):
                    continue
                for field in SENSITIVE_FIELDS:
                    item.pop(field, None)
                records.append(item)
                if len(records) >= self._max_records:
                    logger.warning("Reached max records cap (%d) in %s, stopping", self._max_records, name)
                    break
        except (ijson.JSONError, UnicodeDecodeError) as exc:
            raise ParseError(name, str(exc) or "malformed JSON") from exc
        return records

    @staticmethod
    def _require_wrapped_array(stream: IO[bytes], name: str) -> None:
        try:
            found = _has_wrapped_array(stream)
        except ijson.JSONError as exc:
            raise ParseError(name, str(exc) or "malformed JSON") from exc
        if not found:
            raise ParseError(name, f"object has no '{WRAPPED_ARRAY_KEY}' array")
