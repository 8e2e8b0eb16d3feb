"""
Exception types raised and reported by the Vinted Alerts engine.
"""


class AlertEngineError(Exception):
    """Base class for engine errors."""


class FetchFailure(AlertEngineError):
    """The listing fetch failed (network, HTTP status or payload parsing)."""


class MatchEvaluationFailure(AlertEngineError):
    """Matching or merging a fetched batch failed."""


class SchedulerMisuse(AlertEngineError, ValueError):
    """The scheduler was called with invalid arguments or in an invalid state."""


class NotificationFailure(AlertEngineError):
    """A match notification callback or sink failed."""


class PersistenceFailure(AlertEngineError):
    """Reading or writing persisted state failed."""
