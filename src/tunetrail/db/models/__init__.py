"""Re-export all model classes."""

from tunetrail.db.models.aggregation import ListeningAggregation
from tunetrail.db.models.listening import ListeningEventRow, UserDataSummary

__all__ = [
    "ListeningAggregation",
    "ListeningEventRow",
    "UserDataSummary",
]
