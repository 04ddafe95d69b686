"""Export archive extraction package."""

from tunetrail.zip_import.parser import ArchiveExtractor, select_history_entries

__all__ = ["ArchiveExtractor", "select_history_entries"]
