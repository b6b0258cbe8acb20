"""
Error taxonomy for the finance tracker core.

All errors are raised synchronously from the operation that detected them.
Nothing here is retried automatically; callers decide.
"""

from typing import Optional


class FinanceTrackerError(Exception):
    """Base exception for all finance tracker errors."""
    pass


class ValidationError(FinanceTrackerError):
    """
    Malformed input (bad date, installment count out of range,
    unknown recurrence type, invalid patch).

    Carries the individual issues so the caller can show them per field.
    """

    def __init__(self, message: str, issues: Optional[list] = None):
        super().__init__(message)
        self.issues = issues or []


class InvalidScopeError(FinanceTrackerError):
    """A series-scoped mutation was requested on a record with no series."""
    pass


class NotFoundError(FinanceTrackerError):
    """Target record does not exist at mutation time."""
    pass


class PersistenceError(FinanceTrackerError):
    """Underlying store operation failed."""
    pass


class ConnectionError(PersistenceError):
    """Could not connect to storage backend."""
    pass
