"""
Transaction Query Execution

DESIGN DECISION: Queries are DETERMINISTIC reads over the store.
A TransactionQuery is translated into a TransactionFilter and handed to
the store as-is; totals are then computed from exactly the records the
store returned. Nothing is cached between calls.

Listing order is always newest first, so "recent" simply means the
head of the list.
"""

from datetime import date
from enum import Enum
from typing import Optional
from uuid import UUID

import structlog
from pydantic import BaseModel, Field

from fintrack.errors import ValidationError
from fintrack.models.filters import TransactionFilter
from fintrack.models.transaction import SeriesType, Transaction, TransactionType
from fintrack.services.storage import TransactionStoreInterface
from fintrack.utils.dates import add_months, format_date, month_bounds

logger = structlog.get_logger(__name__)

RECENT_LIMIT = 5


class PaymentStatus(str, Enum):
    PAID = "paid"
    PENDING = "pending"


class PeriodOption(str, Enum):
    TODAY = "today"
    CURRENT = "current"
    LAST = "last"
    ALL = "all"
    CUSTOM = "custom"


class TransactionQuery(BaseModel):
    """What the transaction list screen can filter on."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    type: Optional[TransactionType] = None
    category_id: Optional[UUID] = None
    status: Optional[PaymentStatus] = None
    series_type: Optional[SeriesType] = None
    account_id: Optional[UUID] = None
    search: Optional[str] = Field(default=None, max_length=200)

    def to_filter(self) -> TransactionFilter:
        is_paid = None
        if self.status is not None:
            is_paid = self.status == PaymentStatus.PAID

        search = self.search.strip() if self.search else None

        return TransactionFilter(
            date_from=self.start_date,
            date_to=self.end_date,
            type=self.type,
            category_id=self.category_id,
            is_paid=is_paid,
            series_type=self.series_type,
            account_id=self.account_id,
            search=search or None,
        )


class Period(BaseModel):
    """Inclusive date bounds; both None means no bounds at all."""

    option: PeriodOption
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @property
    def label(self) -> Optional[str]:
        if self.start_date and self.end_date:
            return f"Período: {format_date(self.start_date)} → {format_date(self.end_date)}"
        if self.option == PeriodOption.ALL:
            return "Período: Todos"
        return None


class TransactionSummary(BaseModel):
    """Dashboard totals over one list of transactions."""

    income_cents: int = 0
    expense_cents: int = 0
    balance_cents: int = 0
    pending_count: int = 0
    transaction_count: int = 0
    recent: list[Transaction] = Field(default_factory=list)


def resolve_period(
    option: PeriodOption,
    today: date,
    custom_from: Optional[date] = None,
    custom_to: Optional[date] = None,
) -> Period:
    """
    Turn a dashboard period choice into date bounds.

    Raises:
        ValidationError: custom period without both bounds, or with
            bounds in the wrong order
    """
    option = PeriodOption(option)

    if option == PeriodOption.TODAY:
        return Period(option=option, start_date=today, end_date=today)

    if option == PeriodOption.CURRENT:
        start, end = month_bounds(today)
        return Period(option=option, start_date=start, end_date=end)

    if option == PeriodOption.LAST:
        start, end = month_bounds(add_months(today, -1))
        return Period(option=option, start_date=start, end_date=end)

    if option == PeriodOption.CUSTOM:
        if custom_from is None or custom_to is None:
            raise ValidationError("Custom period needs both a start and an end date")
        if custom_from > custom_to:
            raise ValidationError("Custom period starts after it ends")
        return Period(option=option, start_date=custom_from, end_date=custom_to)

    return Period(option=PeriodOption.ALL)


def summarize(transactions: list[Transaction]) -> TransactionSummary:
    """
    Totals for a list that is already ordered newest first.

    balance = income - expense; paid and pending records both count.
    """
    income = sum(t.amount_cents for t in transactions if t.type == TransactionType.INCOME)
    expense = sum(t.amount_cents for t in transactions if t.type == TransactionType.EXPENSE)

    return TransactionSummary(
        income_cents=income,
        expense_cents=expense,
        balance_cents=income - expense,
        pending_count=sum(1 for t in transactions if not t.is_paid),
        transaction_count=len(transactions),
        recent=transactions[:RECENT_LIMIT],
    )


class QueryExecutor:
    """
    Runs transaction queries against a store.

    GUARANTEES:
    - Only returns real data from storage
    - Results are ordered by date, newest first
    - An empty result is an empty list, never an error
    """

    def __init__(self, store: TransactionStoreInterface):
        self._store = store

    def list_transactions(self, query: Optional[TransactionQuery] = None) -> list[Transaction]:
        query = query or TransactionQuery()
        results = self._store.select_where(query.to_filter(), order_by="date", descending=True)
        logger.debug("transactions_listed", count=len(results))
        return results

    def summarize_period(
        self,
        option: PeriodOption,
        today: date,
        custom_from: Optional[date] = None,
        custom_to: Optional[date] = None,
    ) -> tuple[Period, TransactionSummary]:
        """Resolve a dashboard period and summarize the records inside it."""
        period = resolve_period(option, today, custom_from, custom_to)
        transactions = self.list_transactions(TransactionQuery(
            start_date=period.start_date,
            end_date=period.end_date,
        ))
        return period, summarize(transactions)
