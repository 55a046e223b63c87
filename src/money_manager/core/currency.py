#!/usr/bin/env python3
"""
Currency Parsing and Conversion Utilities

Turns the many shapes a money value arrives in (form input, legacy text,
JSON numbers, integer cents) into exact ``Decimal`` values, and back.

Key Principles:
- Never route a money value through binary floating point arithmetic
- Floats are accepted only at the boundary, via their shortest repr
- Everything stored or displayed is rounded to cents (see ``money``)
"""

from decimal import Decimal, InvalidOperation
from typing import Union

AmountLike = Union[Decimal, int, float, str, None]

# Characters stripped from textual amounts before parsing
_STRIP_CHARS = ("¥", "￥", "$", ",", " ")

# Largest accepted exponent (amounts below 10 trillion). At cent precision
# that is at most 15 significant digits, which survive a JSON float exactly.
MAX_AMOUNT_EXPONENT = 12


def _check_magnitude(amount: Decimal, original: object) -> Decimal:
    if not amount.is_zero() and amount.adjusted() > MAX_AMOUNT_EXPONENT:
        raise ValueError(f"Amount out of range: {original!r}")
    return amount


def to_decimal(value: AmountLike) -> Decimal:
    """
    Convert an amount-like value to an exact Decimal.

    Args:
        value: Decimal, int, float, numeric string, or None

    Returns:
        Exact Decimal value; None and "" become zero

    Raises:
        ValueError: If the value is not numeric, or its magnitude exceeds
            10 ** (MAX_AMOUNT_EXPONENT + 1)

    Examples:
        to_decimal("12.34") -> Decimal("12.34")
        to_decimal(0.1) -> Decimal("0.1")
        to_decimal(None) -> Decimal("0")
    """
    if value is None:
        return Decimal(0)
    if isinstance(value, bool):
        raise ValueError(f"Not a money amount: {value!r}")
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"Not a finite amount: {value!r}")
        return _check_magnitude(value, value)
    if isinstance(value, int):
        return _check_magnitude(Decimal(value), value)
    if isinstance(value, float):
        # repr gives the shortest string that round-trips, e.g. 0.1 -> "0.1"
        return to_decimal(repr(value))
    if isinstance(value, str):
        return parse_amount(value)
    raise ValueError(f"Not a money amount: {value!r}")


def parse_amount(text: str) -> Decimal:
    """
    Parse a textual amount such as "-3.00", "¥1,234.50" or "12".

    Args:
        text: Amount string, optionally signed and with currency symbols

    Returns:
        Exact Decimal value ("" parses to zero)

    Raises:
        ValueError: If the text is not a finite number or is out of range
    """
    clean = text.strip()
    for char in _STRIP_CHARS:
        clean = clean.replace(char, "")

    if not clean:
        return Decimal(0)

    try:
        amount = Decimal(clean)
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {text!r}") from e

    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {text!r}")
    return _check_magnitude(amount, text)


def safe_parse_amount(text: str) -> Decimal | None:
    """Parse an amount, returning None instead of raising on bad input."""
    try:
        return parse_amount(text)
    except ValueError:
        return None


def decimal_to_cents(value: AmountLike) -> int:
    """
    Convert an amount to integer cents (round-half-up).

    Example:
        decimal_to_cents("45.995") -> 4600
    """
    from .money import round_to_cents

    return int(round_to_cents(value) * 100)


def cents_to_decimal(cents: int) -> Decimal:
    """
    Convert integer cents to a two-place Decimal.

    Example:
        cents_to_decimal(4599) -> Decimal("45.99")
    """
    return Decimal(cents).scaleb(-2)


def to_json_number(value: AmountLike) -> int | float:
    """
    Render an amount as a JSON number.

    The value is rounded to cents first; whole amounts become ints so the
    output stays free of trailing ".0" noise. In-range amounts have at most
    15 significant digits, so reading the float back through ``to_decimal``
    returns the same value.
    """
    cents = decimal_to_cents(value)
    if cents % 100 == 0:
        return cents // 100
    return float(cents_to_decimal(cents))


def format_amount(value: AmountLike, symbol: str = "¥") -> str:
    """
    Format an amount for display with currency symbol.

    Examples:
        format_amount("-3") -> "-¥3.00"
        format_amount("1234.5") -> "¥1,234.50"
    """
    from .money import round_to_cents

    rounded = round_to_cents(value)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{symbol}{abs(rounded):,.2f}"
