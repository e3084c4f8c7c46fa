"""Decimal money helpers and display formatting."""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "CAD": "C$", "AUD": "A$"}


def to_decimal(value: Decimal | int | float | str | None) -> Decimal:
    """Convert a numeric value to Decimal without binary float artifacts.

    NaN and infinities are rejected with ValueError.
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation as exc:
            raise ValueError(f"Not a monetary amount: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"Not a monetary amount: {value!r}")
    return result


def money(value: Decimal | int | float | str | None) -> Decimal:
    """Round to the cent, half-up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_currency(amount: Decimal | int | float | None, currency: str = "USD") -> str:
    """Format amount with currency symbol, e.g. ``$1,234.50``."""
    value = money(amount)
    sym = CURRENCY_SYMBOLS.get(currency, currency + " ")
    sign = "-" if value < 0 else ""
    return f"{sign}{sym}{abs(value):,.2f}"


def format_date(value: date) -> str:
    """Format a date for display, e.g. ``Jan 15, 2024``."""
    return f"{value:%b} {value.day}, {value.year}"
