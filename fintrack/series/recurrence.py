"""
Recurrence arithmetic.

Pure helpers: how a total is split into installments, which dates a
series lands on, and how a series position is labelled.
"""

from typing import Optional
from uuid import UUID, uuid4

from fintrack.errors import ValidationError
from fintrack.models.transaction import RecurrenceType, SeriesType
from fintrack.utils.dates import generate_monthly_dates

MONTHLY_OCCURRENCES = 12


def calculate_installments(total_cents: int, quantity: int) -> list[int]:
    """
    Split total_cents into quantity integer parts.

    The remainder goes one cent at a time to the first installments, so
    the parts always sum to the total, differ by at most one cent, and
    never grow from one installment to the next.

        >>> calculate_installments(10000, 3)
        [3334, 3333, 3333]
    """
    if quantity < 2:
        raise ValidationError("Minimum 2 installments")
    if total_cents < 0:
        raise ValidationError("Installment total cannot be negative")

    base, remainder = divmod(total_cents, quantity)
    return [base + (1 if index < remainder else 0) for index in range(quantity)]


def generate_series_id() -> UUID:
    return uuid4()


def is_series_type(series_type: SeriesType) -> bool:
    return series_type != SeriesType.SINGLE


def occurrence_count(recurrence_type: RecurrenceType, installments_count: Optional[int]) -> int:
    """How many records a recurrence expands into."""
    if recurrence_type == RecurrenceType.SINGLE:
        return 1
    if recurrence_type == RecurrenceType.MONTHLY:
        return MONTHLY_OCCURRENCES
    if recurrence_type == RecurrenceType.INSTALLMENT:
        if installments_count is None:
            raise ValidationError("Installment count is required")
        return installments_count
    raise ValidationError(f"Unknown recurrence type: {recurrence_type!r}")


def format_series_label(
    series_type: SeriesType,
    series_sequence: Optional[int] = None,
    series_total: Optional[int] = None,
) -> str:
    """Short label shown next to a transaction, e.g. 'Parcelada 2/10'."""
    sequence = series_sequence or 1
    if series_type == SeriesType.INSTALLMENT:
        return f"Parcelada {sequence}/{series_total or 0}"
    if series_type == SeriesType.MONTHLY:
        return f"Mensal {sequence}/{series_total or MONTHLY_OCCURRENCES}"
    return "Única"


__all__ = [
    "MONTHLY_OCCURRENCES",
    "calculate_installments",
    "format_series_label",
    "generate_monthly_dates",
    "generate_series_id",
    "is_series_type",
    "occurrence_count",
]
