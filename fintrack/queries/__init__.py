"""Transaction queries and dashboard totals."""

from fintrack.queries.executor import (
    PaymentStatus,
    Period,
    PeriodOption,
    QueryExecutor,
    TransactionQuery,
    TransactionSummary,
    resolve_period,
    summarize,
)

__all__ = [
    "PaymentStatus",
    "Period",
    "PeriodOption",
    "QueryExecutor",
    "TransactionQuery",
    "TransactionSummary",
    "resolve_period",
    "summarize",
]
