"""Calendar helpers. Month arithmetic always clamps to the month's last day."""

import calendar
from datetime import date, datetime
from typing import Union

from fintrack.errors import ValidationError

DateLike = Union[date, datetime]

DISPLAY_FORMAT = "%d/%m/%Y"


def clamp_day_to_month(year: int, month: int, day: int) -> int:
    """Clamp day to valid range for the given year/month."""
    max_day = calendar.monthrange(year, month)[1]
    return min(day, max_day)


def add_months(d: DateLike, n: int) -> DateLike:
    """
    Add n months to d, clamping day to month end.

    Works for both date and datetime; a datetime keeps its time of day
    and tzinfo because only year/month/day are replaced.
    """
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    day = clamp_day_to_month(year, month, d.day)
    return d.replace(year=year, month=month, day=day)


def generate_monthly_dates(start: DateLike, occurrences: int) -> list[DateLike]:
    """
    One date per calendar month, starting at start.

    Every occurrence is computed from the original start, not from the
    previous occurrence, so Jan 31 gives Feb 28/29 and then Mar 31.
    """
    if occurrences < 0:
        raise ValidationError("Occurrences cannot be negative")
    return [add_months(start, index) for index in range(occurrences)]


def parse_date(value) -> date:
    """
    Parse a calendar date.

    Accepts date, datetime (time dropped) or an ISO string, with or
    without a time component ('2024-01-31', '2024-01-31T10:00:00').

    Raises:
        ValidationError: If the value is not a recognizable date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) > 10:
                return datetime.fromisoformat(text).date()
            return date.fromisoformat(text)
        except ValueError:
            pass
    raise ValidationError(f"Invalid date: {value!r}")


def format_date(value) -> str:
    """Format for display, e.g. '25/03/2024'."""
    return parse_date(value).strftime(DISPLAY_FORMAT)


def month_bounds(d: DateLike) -> tuple[date, date]:
    """Return (first_day, last_day) of the month containing d."""
    last_day = calendar.monthrange(d.year, d.month)[1]
    return (
        date(d.year, d.month, 1),
        date(d.year, d.month, last_day),
    )
