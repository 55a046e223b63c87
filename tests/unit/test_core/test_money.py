#!/usr/bin/env python3
"""Tests for exact Decimal money arithmetic."""

from decimal import Decimal

import pytest

from money_manager.core.money import (
    add,
    format_cents,
    is_positive,
    multiply,
    negate,
    round_to_cents,
    subtract,
    sum_amounts,
)


class TestArithmetic:
    """Test add/subtract/multiply."""

    @pytest.mark.currency
    def test_float_inputs_are_exact(self):
        """0.1 + 0.2 is exactly 0.3, not 0.30000000000000004."""
        assert add(0.1, 0.2) == Decimal("0.3")
        assert add("0.1", "0.2") == Decimal("0.3")

    @pytest.mark.currency
    def test_missing_operands_default_to_zero(self):
        assert add() == Decimal(0)
        assert add(None, "5") == Decimal(5)
        assert subtract("5") == Decimal(5)
        assert multiply("5") == Decimal(0)

    @pytest.mark.currency
    def test_multiply(self):
        assert multiply("19.99", 3) == Decimal("59.97")
        assert multiply("92", "0.025") == Decimal("2.3")

    @pytest.mark.currency
    @pytest.mark.parametrize(
        "a,b",
        [("100.00", "10.50"), ("0.01", "0.02"), ("-3.00", "12.34"), ("99999999.99", "0.01")],
    )
    def test_subtract_undoes_add(self, a, b):
        assert subtract(add(a, b), b) == Decimal(a)

    @pytest.mark.currency
    def test_negate_and_sum(self):
        assert negate("3") == Decimal(-3)
        assert sum_amounts(["0.1"] * 10) == Decimal("1")
        assert sum_amounts([]) == Decimal(0)


class TestRounding:
    """Test half-up cent rounding."""

    @pytest.mark.currency
    def test_half_up_not_bankers(self):
        assert round_to_cents("2.345") == Decimal("2.35")
        assert round_to_cents("2.335") == Decimal("2.34")
        assert round_to_cents("2.344") == Decimal("2.34")
        assert round_to_cents("-2.345") == Decimal("-2.35")

    @pytest.mark.currency
    def test_negative_zero_is_normalized(self):
        assert str(round_to_cents("-0.001")) == "0.00"

    @pytest.mark.currency
    @pytest.mark.parametrize("value", ["0", "1.005", "-7.125", "123456.789", 0.1, 10.5, "1e-9"])
    def test_idempotent(self, value):
        once = round_to_cents(value)
        assert round_to_cents(once) == once
        assert once.as_tuple().exponent == -2

    @pytest.mark.currency
    def test_format_cents(self):
        assert format_cents("3") == "3.00"
        assert format_cents(-3) == "-3.00"
        assert format_cents("1234.5") == "1234.50"
        assert format_cents(10.555) == "10.56"

    @pytest.mark.currency
    def test_is_positive(self):
        assert is_positive("0.01")
        assert not is_positive("0")
        assert not is_positive("-1")
