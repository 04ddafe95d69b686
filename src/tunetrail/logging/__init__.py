"""Structured logging: JSON formatter and setup."""

from tunetrail.logging.formatter import JSONLogFormatter
from tunetrail.logging.setup import configure_logging

__all__ = ["JSONLogFormatter", "configure_logging"]
