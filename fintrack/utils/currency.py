"""
BRL currency formatting and parsing.

Amounts travel through the system as integer cents. Conversion to and
from text goes through Decimal so no float rounding ever leaks in.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from fintrack.errors import ValidationError

CURRENCY_SYMBOL = "R$"

_NON_AMOUNT_CHARS = re.compile(r"[^\d,]")


def format_cents_to_brl(cents: int) -> str:
    """Format cents as Brazilian reais, e.g. 123456 -> 'R$ 1.234,56'."""
    sign = "-" if cents < 0 else ""
    reais, centavos = divmod(abs(int(cents)), 100)
    # Python groups with ',' - swap to the pt-BR '.'
    grouped = f"{reais:,}".replace(",", ".")
    return f"{sign}{CURRENCY_SYMBOL} {grouped},{centavos:02d}"


def parse_brl_to_cents(value: str) -> int:
    """
    Convert a typed BRL amount to cents.

    Everything except digits and the comma is dropped, so both
    'R$ 1.234,56' and '1234,56' give 123456. The comma is the decimal
    separator; half a cent rounds up.

    Raises:
        ValidationError: If no digits are present
    """
    clean = _NON_AMOUNT_CHARS.sub("", value or "")
    if not any(ch.isdigit() for ch in clean):
        raise ValidationError(f"Invalid amount: {value!r}")

    # Only the first comma is a decimal separator; anything after a
    # second comma is ignored
    whole, _, fraction = clean.partition(",")
    fraction = fraction.split(",")[0]
    normalized = f"{whole or '0'}.{fraction or '0'}"
    try:
        reais = Decimal(normalized)
    except InvalidOperation as e:
        raise ValidationError(f"Invalid amount: {value!r}") from e

    cents = (reais * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(cents)
