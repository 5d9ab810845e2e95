"""Currency, percent and date-bucket formatting helpers.

Amounts are shown the way the dashboards render them: a currency symbol
prefix followed by digits grouped in the Indian style (``en-IN``), where the
last three integer digits form one group and every group before it has two
digits (``12,34,567``).
"""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from fintrack.records import coerce_amount

DEFAULT_CURRENCY_SYMBOL = "₹"

CURRENCY_SYMBOLS: dict[str, str] = {
    "INR": "₹",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CNY": "¥",
    "AUD": "A$",
    "CAD": "C$",
    "SGD": "S$",
    "AED": "د.إ",
}

LAKH = Decimal("100000")
CRORE = Decimal("10000000")


def get_currency_symbol(currency_code: Optional[str]) -> str:
    """Return the display symbol for an ISO 4217 code.

    Unknown codes are shown as the code itself; a missing code falls back to
    the rupee symbol.
    """
    if not currency_code:
        return DEFAULT_CURRENCY_SYMBOL
    normalized = currency_code.strip().upper()
    return CURRENCY_SYMBOLS.get(normalized, normalized)


def round_half_up(value: Decimal | int | float | str, places: int = 0) -> Decimal:
    exponent = Decimal(1).scaleb(-places)
    return coerce_amount(value).quantize(exponent, rounding=ROUND_HALF_UP)


def group_indian_digits(digits: str) -> str:
    """Group a string of integer digits as ``en-IN`` does.

    Example:
        >>> group_indian_digits("1234567")
        '12,34,567'
    """
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_number_en_in(value: Decimal | int | float | str, decimals: int = 0) -> str:
    rounded = round_half_up(value, decimals)
    sign = "-" if rounded < 0 else ""
    text = f"{abs(rounded):.{decimals}f}"
    integer_part, _, fraction = text.partition(".")
    grouped = group_indian_digits(integer_part)
    return f"{sign}{grouped}.{fraction}" if fraction else f"{sign}{grouped}"


def format_currency(
    amount: Decimal | int | float | str | None,
    symbol: str = DEFAULT_CURRENCY_SYMBOL,
    decimals: int = 0,
) -> str:
    """Format an amount as ``₹1,23,456`` with the sign ahead of the symbol."""
    if amount is None:
        return f"{symbol}0"
    formatted = format_number_en_in(amount, decimals)
    if formatted.startswith("-"):
        return f"-{symbol}{formatted[1:]}"
    return f"{symbol}{formatted}"


def format_indian_currency(
    amount: Decimal | int | float | str | None,
    symbol: str = DEFAULT_CURRENCY_SYMBOL,
) -> str:
    """Abbreviate large amounts to lakhs (``L``) and crores (``Cr``).

    Example:
        >>> format_indian_currency(1500000)
        '₹15 L'
        >>> format_indian_currency(25000000)
        '₹2.5 Cr'
    """
    if amount is None:
        return f"{symbol}0"
    value = coerce_amount(amount)
    magnitude = abs(value)
    if magnitude >= CRORE:
        return _short_form(value / CRORE, "Cr", symbol)
    if magnitude >= LAKH:
        return _short_form(value / LAKH, "L", symbol)
    return format_currency(value, symbol)


def format_percent(value: Decimal | int | float | str | None, decimals: int = 2) -> str:
    if value is None:
        value = 0
    return f"{round_half_up(value, decimals):.{decimals}f}%"


def day_key(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def month_key(value: date) -> str:
    return value.strftime("%Y-%m")


def month_label(value: date) -> str:
    return value.strftime("%b %Y")


def _short_form(scaled: Decimal, unit: str, symbol: str) -> str:
    rounded = round_half_up(scaled, 2)
    text = f"{abs(rounded):.2f}".rstrip("0").rstrip(".")
    sign = "-" if rounded < 0 else ""
    return f"{sign}{symbol}{text} {unit}"
