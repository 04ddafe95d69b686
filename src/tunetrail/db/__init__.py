"""Database package: convenience re-exports.

Importing this module registers all models with Base.metadata.
"""

from tunetrail.db.base import Base
from tunetrail.db.enums import AggregationKind, EventSource, Grouping
from tunetrail.db.models import ListeningAggregation, ListeningEventRow, UserDataSummary
from tunetrail.db.session import DatabaseManager

__all__ = [
    # Base
    "Base",
    # Enums
    "AggregationKind",
    "EventSource",
    "Grouping",
    # Models
    "ListeningAggregation",
    "ListeningEventRow",
    "UserDataSummary",
    # Session
    "DatabaseManager",
]
