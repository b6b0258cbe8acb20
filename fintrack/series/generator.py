"""
Series Generator

Turns one submitted transaction into the concrete records to persist:

- single:      one record, no series id
- installment: the total split cent-exactly across N monthly records
- monthly:     the same amount on 12 consecutive months

DESIGN DECISION: Building the records is a pure function
(build_series). The generator class only adds validation in front and
one batch insert behind, so a validation failure can never leave a
half-written series in the store.
"""

from datetime import datetime, timezone
from typing import Any, Optional, Union
from uuid import UUID

import structlog

from fintrack.audit import AuditLogger
from fintrack.models.transaction import (
    Category,
    RecurrenceType,
    SeriesType,
    Transaction,
    TransactionIntent,
)
from fintrack.series.recurrence import (
    MONTHLY_OCCURRENCES,
    calculate_installments,
    generate_monthly_dates,
    generate_series_id,
    occurrence_count,
)
from fintrack.services.storage import TransactionStoreInterface
from fintrack.validation import TransactionValidator

logger = structlog.get_logger(__name__)


def build_series(
    intent: TransactionIntent,
    series_id: Optional[UUID] = None,
    created_at: Optional[datetime] = None,
) -> list[Transaction]:
    """
    Expand an intent into ordered, dated, amount-assigned records.

    Args:
        intent: A validated transaction intent
        series_id: Use this id instead of a fresh one (series modes only)
        created_at: Creation timestamp shared by the whole batch

    Raises:
        ValidationError: If the recurrence cannot be expanded
    """
    created_at = created_at or datetime.now(timezone.utc)
    count = occurrence_count(intent.recurrence_type, intent.installments_count)

    if intent.recurrence_type == RecurrenceType.INSTALLMENT:
        amounts = calculate_installments(intent.amount_cents, count)
        series_total_amount = intent.amount_cents
    elif intent.recurrence_type == RecurrenceType.MONTHLY:
        amounts = [intent.amount_cents] * MONTHLY_OCCURRENCES
        series_total_amount = intent.amount_cents * MONTHLY_OCCURRENCES
    else:
        amounts = [intent.amount_cents]
        series_total_amount = intent.amount_cents

    series_type = intent.recurrence_type
    if series_type == SeriesType.SINGLE:
        series_id = None
    else:
        series_id = series_id or generate_series_id()

    dates = generate_monthly_dates(intent.date, count)

    return [
        Transaction(
            created_at=created_at,
            type=intent.type,
            amount_cents=amount,
            date=occurrence_date,
            description=intent.description,
            notes=intent.notes,
            payment_method=intent.payment_method,
            account_id=intent.account_id,
            category_id=intent.category_id,
            is_paid=intent.is_paid,
            series_type=series_type,
            series_id=series_id,
            series_sequence=position,
            series_total=count,
            series_amount_total_cents=series_total_amount,
        )
        for position, (amount, occurrence_date) in enumerate(zip(amounts, dates), start=1)
    ]


class SeriesGenerator:
    """
    Validates an intent, expands it and persists the result.

    Flow:
    1. Validate → two-stage validation, raises before any store call
    2. Expand   → build_series
    3. Persist  → one insert_batch call (all-or-nothing is the store's job)
    4. Audit    → one "created" event for the whole batch
    """

    def __init__(
        self,
        store: TransactionStoreInterface,
        validator: Optional[TransactionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._validator = validator or TransactionValidator()
        self._audit_logger = audit_logger

    def preview(
        self,
        data: Union[TransactionIntent, dict[str, Any]],
        category: Optional[Category] = None,
    ) -> list[Transaction]:
        """Validate and expand without persisting anything."""
        intent = self._validator.validate_or_raise(data, category)
        return build_series(intent)

    def generate(
        self,
        data: Union[TransactionIntent, dict[str, Any]],
        category: Optional[Category] = None,
        correlation_id: Optional[UUID] = None,
    ) -> list[Transaction]:
        """
        Create the records for one submitted transaction.

        Returns:
            The persisted records, ordered by series_sequence

        Raises:
            ValidationError: Bad input (nothing was written)
            PersistenceError: The batch insert failed
        """
        records = self.preview(data, category)
        first = records[0]

        inserted = self._store.insert_batch(records)

        logger.info(
            "series_generated",
            series_type=first.series_type.value,
            series_id=str(first.series_id) if first.series_id else None,
            count=len(inserted),
            total_cents=first.series_amount_total_cents,
        )
        if self._audit_logger:
            self._audit_logger.log_series_created(
                entity_id=first.id,
                series_type=first.series_type.value,
                series_id=first.series_id,
                count=len(inserted),
                correlation_id=correlation_id,
            )

        return inserted
