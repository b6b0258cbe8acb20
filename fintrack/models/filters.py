"""
Record store filters.

A filter is a conjunction of equality and comparison predicates. Every
field left as None is simply not applied. Stores that can push filters
down to their backend read the fields directly; the rest call matches().
"""

from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from fintrack.models.transaction import SeriesType, Transaction, TransactionType


class TransactionFilter(BaseModel):
    """Filter over transactions. All set predicates must hold."""

    id: Optional[UUID] = None
    series_id: Optional[UUID] = None
    series_sequence_gte: Optional[int] = Field(default=None, ge=1)
    account_id: Optional[UUID] = None
    account_ids: Optional[list[UUID]] = None
    category_id: Optional[UUID] = None
    type: Optional[TransactionType] = None
    is_paid: Optional[bool] = None
    series_type: Optional[SeriesType] = None
    date_from: Optional[date] = Field(default=None, description="date >= date_from")
    date_to: Optional[date] = Field(default=None, description="date <= date_to")
    date_after: Optional[date] = Field(default=None, description="date > date_after")
    search: Optional[str] = Field(
        default=None,
        description="Case-insensitive substring of the description"
    )

    @classmethod
    def by_id(cls, transaction_id: UUID) -> "TransactionFilter":
        return cls(id=transaction_id)

    @classmethod
    def series_from(cls, series_id: UUID, sequence: int) -> "TransactionFilter":
        """The given occurrence and every later one in its series."""
        return cls(series_id=series_id, series_sequence_gte=sequence)

    @property
    def is_empty(self) -> bool:
        return not any(
            value is not None for value in self.model_dump().values()
        )

    def matches(self, txn: Transaction) -> bool:
        if self.id is not None and txn.id != self.id:
            return False
        if self.series_id is not None and txn.series_id != self.series_id:
            return False
        if self.series_sequence_gte is not None and txn.series_sequence < self.series_sequence_gte:
            return False
        if self.account_id is not None and txn.account_id != self.account_id:
            return False
        if self.account_ids is not None and txn.account_id not in self.account_ids:
            return False
        if self.category_id is not None and txn.category_id != self.category_id:
            return False
        if self.type is not None and txn.type != self.type:
            return False
        if self.is_paid is not None and txn.is_paid != self.is_paid:
            return False
        if self.series_type is not None and txn.series_type != self.series_type:
            return False
        if self.date_from is not None and txn.date < self.date_from:
            return False
        if self.date_to is not None and txn.date > self.date_to:
            return False
        if self.date_after is not None and txn.date <= self.date_after:
            return False
        if self.search and self.search.lower() not in txn.description.lower():
            return False
        return True
