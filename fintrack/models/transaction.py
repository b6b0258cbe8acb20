"""
Core Data Models for Finance Tracker

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Keep every amount in integer cents
3. Be serializable for storage and logging
4. Make the shape of a series explicit (type, id, sequence, total)

DESIGN DECISION: A transaction never changes its series_type after
creation. Changing recurrence means creating a new transaction, so the
series structure fields are not part of any update payload.
"""

import datetime as dt
from enum import Enum
from typing import Any, ClassVar, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from fintrack.errors import ValidationError
from fintrack.utils.dates import parse_date


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money. The sign lives here, never in the amount."""
    INCOME = "income"
    EXPENSE = "expense"


class SeriesType(str, Enum):
    """
    How a transaction was expanded at creation time.

    SINGLE      - one record, no series id
    INSTALLMENT - total split across N monthly records
    MONTHLY     - same amount repeated for 12 months
    """
    SINGLE = "single"
    INSTALLMENT = "installment"
    MONTHLY = "monthly"


# The recurrence the user asks for and the series type that gets stored
# are the same vocabulary.
RecurrenceType = SeriesType


class ApplyMode(str, Enum):
    """Scope of an update or delete."""
    SINGLE = "single"                      # Only the target record
    SERIES_FROM_HERE = "series_from_here"  # Target plus all later occurrences


# =============================================================================
# CORE TRANSACTION MODEL
# =============================================================================

class Transaction(BaseModel):
    """
    A persisted income/expense record.

    For series records, series_amount_total_cents keeps the amount the
    user originally typed (the installment total, or amount x 12 for
    monthly), not the amount of this occurrence.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    # Identity
    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    created_at: dt.datetime = Field(
        default_factory=_utcnow,
        description="When the record was created"
    )

    # What happened
    type: TransactionType
    amount_cents: int = Field(
        ...,
        ge=0,
        description="Value of this occurrence in cents"
    )
    date: dt.date = Field(
        ...,
        description="Calendar date of this occurrence"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    notes: Optional[str] = Field(default=None, max_length=1000)
    payment_method: Optional[str] = Field(default=None, max_length=100)

    # References (dangling references are tolerated)
    account_id: Optional[UUID] = None
    category_id: Optional[UUID] = None

    # Settlement
    is_paid: bool = False

    # Series structure
    series_type: SeriesType = SeriesType.SINGLE
    series_id: Optional[UUID] = None
    series_sequence: int = Field(default=1, ge=1)
    series_total: int = Field(default=1, ge=1)
    series_amount_total_cents: int = Field(
        ...,
        ge=0,
        description="Original total entered before splitting"
    )

    @model_validator(mode='before')
    @classmethod
    def default_series_total_amount(cls, data: Any) -> Any:
        """A single record's series total is its own amount unless given."""
        if isinstance(data, dict) and data.get("series_amount_total_cents") is None:
            if "amount_cents" in data:
                data = {**data, "series_amount_total_cents": data["amount_cents"]}
        return data

    @model_validator(mode='after')
    def validate_series_shape(self) -> 'Transaction':
        """Validate the series fields agree with the series type."""
        if self.series_type == SeriesType.SINGLE:
            if self.series_id is not None:
                raise ValueError("Single transactions cannot have a series id")
            if self.series_sequence != 1 or self.series_total != 1:
                raise ValueError("Single transactions must be 1/1")
        else:
            if self.series_id is None:
                raise ValueError("Series transactions require a series id")
            if self.series_sequence > self.series_total:
                raise ValueError("Series sequence cannot exceed series total")
        return self

    @property
    def is_series(self) -> bool:
        return self.series_type != SeriesType.SINGLE

    @property
    def signed_amount_cents(self) -> int:
        """Amount with the sign implied by the type."""
        if self.type == TransactionType.EXPENSE:
            return -self.amount_cents
        return self.amount_cents


# =============================================================================
# REFERENCE ENTITIES
# =============================================================================

class Category(BaseModel):
    """Simple reference entity for grouping transactions."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1, max_length=100)
    type: TransactionType
    color: str = Field(
        default="#6366f1",
        pattern=r"^#[0-9a-fA-F]{6}$",
    )


# =============================================================================
# INPUT MODELS - what callers hand to the core
# =============================================================================

class TransactionIntent(BaseModel):
    """
    What the user submitted in the transaction form.

    This is PROPOSED data. It goes through the validation pipeline and
    the series generator before anything becomes a Transaction.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    type: TransactionType
    amount_cents: int = Field(..., ge=0)
    date: dt.date
    description: str = Field(
        ...,
        min_length=3,
        max_length=200,
        description="Minimum 3 characters, same rule as the form"
    )
    account_id: Optional[UUID] = None
    category_id: Optional[UUID] = None
    payment_method: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=1000)
    is_paid: bool = False
    recurrence_type: RecurrenceType = RecurrenceType.SINGLE
    installments_count: Optional[int] = None

    @field_validator('date', mode='before')
    @classmethod
    def parse_any_date(cls, v: Any) -> dt.date:
        # pydantic only collects ValueError/AssertionError
        try:
            return parse_date(v)
        except ValidationError as e:
            raise ValueError(str(e)) from e

    @field_validator('payment_method', 'notes', mode='before')
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class TransactionPatch(BaseModel):
    """
    Field changes for an update.

    DESIGN DECISION: Key presence carries meaning. A field that was never
    set is left untouched; a field explicitly set to None is cleared.
    pydantic tracks this in model_fields_set, so nothing is lost when the
    patch is turned into store changes.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    type: Optional[TransactionType] = None
    amount_cents: Optional[int] = Field(default=None, ge=0)
    date: Optional[dt.date] = None
    description: Optional[str] = Field(default=None, min_length=3, max_length=200)
    notes: Optional[str] = Field(default=None, max_length=1000)
    payment_method: Optional[str] = Field(default=None, max_length=100)
    account_id: Optional[UUID] = None
    category_id: Optional[UUID] = None
    is_paid: Optional[bool] = None
    series_amount_total_cents: Optional[int] = Field(default=None, ge=0)

    NON_NULLABLE: ClassVar[tuple[str, ...]] = (
        "type",
        "amount_cents",
        "date",
        "description",
        "is_paid",
        "series_amount_total_cents",
    )

    @field_validator('date', mode='before')
    @classmethod
    def parse_any_date(cls, v: Any) -> Optional[dt.date]:
        # None is left for reject_cleared_required_fields
        if v is None:
            return None
        try:
            return parse_date(v)
        except ValidationError as e:
            raise ValueError(str(e)) from e

    @model_validator(mode='after')
    def reject_cleared_required_fields(self) -> 'TransactionPatch':
        cleared = [
            name for name in self.NON_NULLABLE
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if cleared:
            raise ValueError(f"Fields cannot be cleared: {', '.join(cleared)}")
        return self

    def store_changes(self) -> dict[str, Any]:
        """Fields to write, explicit None values included."""
        return self.model_dump(exclude_unset=True)

    @property
    def is_empty(self) -> bool:
        return not self.model_fields_set


class SeriesMeta(BaseModel):
    """Where in its series the target of a scoped mutation sits."""

    series_id: UUID
    series_sequence: int = Field(default=1, ge=1)


class UpdateRequest(BaseModel):
    """Update one record, or that record and every later one in its series."""

    id: UUID
    apply_mode: ApplyMode = ApplyMode.SINGLE
    series_meta: Optional[SeriesMeta] = None
    changes: TransactionPatch


class DeleteRequest(BaseModel):
    """Delete one record, or that record and every later one in its series."""

    id: UUID
    mode: ApplyMode = ApplyMode.SINGLE
    series_meta: Optional[SeriesMeta] = None


class CloneRequest(BaseModel):
    """Copy an existing transaction as a new single record on another date."""

    source_id: UUID
    date: dt.date
    is_paid: bool = False
