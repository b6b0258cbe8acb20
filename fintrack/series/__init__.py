"""
Series package.

Generation of installment/monthly series and scoped mutation of them.
"""

from fintrack.series.recurrence import (
    MONTHLY_OCCURRENCES,
    calculate_installments,
    format_series_label,
    generate_monthly_dates,
    generate_series_id,
    is_series_type,
    occurrence_count,
)
from fintrack.series.generator import SeriesGenerator, build_series
from fintrack.series.mutator import SeriesMutator, resolve_scope

__all__ = [
    "MONTHLY_OCCURRENCES",
    "SeriesGenerator",
    "SeriesMutator",
    "build_series",
    "calculate_installments",
    "format_series_label",
    "generate_monthly_dates",
    "generate_series_id",
    "is_series_type",
    "occurrence_count",
    "resolve_scope",
]
