"""Money and date helpers shared by every component."""

from fintrack.utils.currency import (
    format_cents_to_brl,
    parse_brl_to_cents,
)
from fintrack.utils.dates import (
    add_months,
    clamp_day_to_month,
    format_date,
    generate_monthly_dates,
    month_bounds,
    parse_date,
)

__all__ = [
    "add_months",
    "clamp_day_to_month",
    "format_cents_to_brl",
    "format_date",
    "generate_monthly_dates",
    "month_bounds",
    "parse_brl_to_cents",
    "parse_date",
]
