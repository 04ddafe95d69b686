"""JSON logging to stdout for the API process."""

import logging
import sys

from tunetrail.constants import ServiceName
from tunetrail.logging.formatter import JSONLogFormatter

# Per-request chatter from the HTTP client and the server access log
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def configure_logging(service: ServiceName = ServiceName.API, level: int | str = logging.INFO) -> None:
    """Route every record through one stdout handler as a JSON line.

    ``level`` accepts a name such as ``"DEBUG"`` so it can come straight from
    ``LOG_LEVEL``. Calling this again replaces the handler instead of stacking.
    """
    root = logging.getLogger()
    root.setLevel(level.upper() if isinstance(level, str) else level)
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONLogFormatter(service=service))
    root.addHandler(handler)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
