#!/usr/bin/env python3
"""
Decimal Money Arithmetic

Exact arithmetic for every money value in the ledger. Balances, import sums
and statistics totals are all produced through these functions; native
``+``/``-`` on float money fields is never used.

Rounding is round-half-up to two places (not banker's rounding), so
``round_to_cents("0.125") == Decimal("0.13")``.

Examples:
    >>> add("0.1", "0.2")
    Decimal('0.3')
    >>> subtract(100, "10.5")
    Decimal('89.5')
    >>> round_to_cents("2.675")
    Decimal('2.68')
    >>> format_cents(3)
    '3.00'
"""

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Context, Decimal

from .currency import AmountLike, to_decimal

CENT = Decimal("0.01")

# Dedicated context: results never depend on the caller's decimal context.
_CONTEXT = Context(prec=60, rounding=ROUND_HALF_UP)


def add(a: AmountLike = None, b: AmountLike = None) -> Decimal:
    """Exact sum of two amounts; a missing operand counts as zero."""
    return _CONTEXT.add(to_decimal(a), to_decimal(b))


def subtract(a: AmountLike = None, b: AmountLike = None) -> Decimal:
    """Exact difference ``a - b``; a missing operand counts as zero."""
    return _CONTEXT.subtract(to_decimal(a), to_decimal(b))


def multiply(a: AmountLike = None, b: AmountLike = None) -> Decimal:
    """Exact product of two amounts; a missing operand counts as zero."""
    return _CONTEXT.multiply(to_decimal(a), to_decimal(b))


def negate(value: AmountLike) -> Decimal:
    """Return ``-value``."""
    return subtract(0, value)


def sum_amounts(values: Iterable[AmountLike]) -> Decimal:
    """Exact sum of any number of amounts."""
    total = Decimal(0)
    for value in values:
        total = add(total, value)
    return total


def round_to_cents(value: AmountLike) -> Decimal:
    """
    Round to exactly two fractional digits, half-up.

    Idempotent: ``round_to_cents(round_to_cents(x)) == round_to_cents(x)``.
    Negative zero is normalized to ``0.00``.
    """
    rounded = to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP, context=_CONTEXT)
    if rounded.is_zero():
        return abs(rounded)
    return rounded


def format_cents(value: AmountLike) -> str:
    """Canonical two-decimal string, e.g. ``"-3.00"``."""
    return f"{round_to_cents(value):f}"


def is_positive(value: AmountLike) -> bool:
    """True when the amount is strictly greater than zero."""
    return to_decimal(value) > 0
