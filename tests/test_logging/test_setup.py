"""Tests for configure_logging."""

import logging
from collections.abc import Iterator

import pytest

from tunetrail.constants import ServiceName
from tunetrail.logging.formatter import JSONLogFormatter
from tunetrail.logging.setup import QUIET_LOGGERS, configure_logging


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    quiet_levels = {name: logging.getLogger(name).level for name in QUIET_LOGGERS}
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, quiet_level in quiet_levels.items():
        logging.getLogger(name).setLevel(quiet_level)


def test_level_name_is_accepted() -> None:
    configure_logging(ServiceName.API, "debug")
    assert logging.getLogger().level == logging.DEBUG


def test_reconfiguring_keeps_a_single_json_handler() -> None:
    configure_logging()
    configure_logging()
    handlers = logging.getLogger().handlers
    assert len(handlers) == 1
    assert isinstance(handlers[0].formatter, JSONLogFormatter)


def test_http_client_chatter_is_quieted() -> None:
    configure_logging(ServiceName.API, logging.DEBUG)
    assert logging.getLogger("httpx").getEffectiveLevel() == logging.WARNING
