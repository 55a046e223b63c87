#!/usr/bin/env python3
"""
Stats Aggregator

Read-only summaries of the ledger over a date range:

- income/expense totals and their difference
- a daily income/expense series (zero-filled for ranges up to about five
  years, activity days only beyond that)
- per-category breakdowns with long-tail folding: categories below 2.5%
  of their type's total are merged into one "other" slice, and kept aside
  so a caller can expand it

Transfers move money between the user's own accounts and count toward
neither totals nor breakdowns.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

import pandas as pd

from ..core.events import ALL_TABLES, LiveQuery
from ..core.models import Category, Transaction, TransactionType
from ..core.money import add, multiply, round_to_cents, subtract, sum_amounts
from ..ledger.store import LedgerStore
from .ranges import DateRange, TimeDimension, get_date_range

logger = logging.getLogger(__name__)

DEFAULT_LONG_TAIL_RATIO = Decimal("0.025")
DEFAULT_SPARSE_SERIES_DAYS = 365 * 5

OTHER_ID = "__other__"
OTHER_NAME = "Other"
UNCATEGORIZED_ID = "__uncategorized__"
UNCATEGORIZED_NAME = "Uncategorized"


def slice_color(index: int) -> str:
    """Evenly spread chart color for the ``index``-th slice."""
    return f"hsl({(index * 137.5) % 360:g}, 70%, 50%)"


@dataclass(frozen=True)
class DailyBucket:
    date: date
    income: Decimal = Decimal(0)
    expense: Decimal = Decimal(0)


@dataclass(frozen=True)
class CategorySlice:
    """One category's share of a breakdown."""

    id: str
    name: str
    value: Decimal
    color: str | None = None


@dataclass
class CategoryBreakdown:
    """
    Category totals for one transaction type.

    ``primary`` holds the categories at or above the fold threshold, largest
    first. ``other`` is the synthetic slice summing ``folded`` (None when
    nothing was folded), so ``sum(primary) + other.value == total``.
    """

    type: TransactionType
    total: Decimal
    primary: list[CategorySlice] = field(default_factory=list)
    other: CategorySlice | None = None
    folded: list[CategorySlice] = field(default_factory=list)

    @property
    def slices(self) -> list[CategorySlice]:
        """Display list: primary slices then the "other" slice."""
        return self.primary + ([self.other] if self.other is not None else [])

    def expanded(self) -> list[CategorySlice]:
        """Every category with "other" opened up, largest first."""
        return sorted(self.primary + self.folded, key=lambda s: s.value, reverse=True)


@dataclass
class StatsSummary:
    """Everything shown for one date range."""

    range: DateRange
    total_income: Decimal
    total_expense: Decimal
    balance: Decimal
    daily: list[DailyBucket]
    expense_breakdown: CategoryBreakdown
    income_breakdown: CategoryBreakdown
    transaction_count: int = 0

    def daily_frame(self) -> pd.DataFrame:
        """Daily series as a DataFrame indexed by date."""
        df = pd.DataFrame(
            [(b.date, b.income, b.expense) for b in self.daily],
            columns=["date", "income", "expense"],
        )
        return df.set_index("date")

    def to_dict(self) -> dict[str, Any]:
        def slices(items: Iterable[CategorySlice]) -> list[dict[str, Any]]:
            return [{"id": s.id, "name": s.name, "value": str(s.value)} for s in items]

        def breakdown(b: CategoryBreakdown) -> dict[str, Any]:
            return {
                "total": str(b.total),
                "slices": slices(b.slices),
                "folded": slices(b.folded),
            }

        return {
            "range": str(self.range),
            "totalIncome": str(self.total_income),
            "totalExpense": str(self.total_expense),
            "balance": str(self.balance),
            "transactionCount": self.transaction_count,
            "expenseBreakdown": breakdown(self.expense_breakdown),
            "incomeBreakdown": breakdown(self.income_breakdown),
        }


def fold_long_tail(
    slices: list[CategorySlice], total: Decimal, ratio: Decimal = DEFAULT_LONG_TAIL_RATIO
) -> tuple[list[CategorySlice], CategorySlice | None, list[CategorySlice]]:
    """
    Split slices into (primary, other, folded).

    A slice folds when its value is strictly below ``total * ratio``. Input
    order is kept within equal values.

    Args:
        slices: Category slices in first-seen order
        total: Sum of all slice values
        ratio: Fold threshold as a share of ``total``
    """
    ordered = sorted(slices, key=lambda s: s.value, reverse=True)
    threshold = multiply(total, ratio)

    primary = [s for s in ordered if s.value >= threshold]
    folded = [s for s in ordered if s.value < threshold]
    if not folded:
        return primary, None, []

    other = CategorySlice(id=OTHER_ID, name=OTHER_NAME, value=sum_amounts(s.value for s in folded))
    return primary, other, folded


class StatsAggregator:
    """
    Computes StatsSummary objects from a ledger store.

    Args:
        store: Ledger to read
        long_tail_ratio: Share of a type's total below which categories fold
        sparse_series_days: Ranges longer than this get an activity-only daily series
    """

    def __init__(
        self,
        store: LedgerStore,
        long_tail_ratio: Decimal | str = DEFAULT_LONG_TAIL_RATIO,
        sparse_series_days: int = DEFAULT_SPARSE_SERIES_DAYS,
    ):
        self.store = store
        self.long_tail_ratio = Decimal(long_tail_ratio)
        self.sparse_series_days = sparse_series_days

    @classmethod
    def from_config(cls, store: LedgerStore, config: Any) -> "StatsAggregator":
        return cls(
            store,
            long_tail_ratio=config.stats.long_tail_ratio,
            sparse_series_days=config.stats.sparse_series_days,
        )

    def summarize(self, dimension: TimeDimension | str, when: date | datetime) -> StatsSummary:
        """Summary for the ``dimension`` period containing ``when``."""
        return self.compute(get_date_range(dimension, when))

    def live(self, date_range: DateRange) -> LiveQuery[StatsSummary]:
        """Summary of ``date_range`` that recomputes on every ledger change."""
        return self.store.subscribe(lambda: self.compute(date_range), tables=ALL_TABLES)

    def compute(self, date_range: DateRange) -> StatsSummary:
        """Aggregate every transaction dated within ``date_range``."""
        transactions = self.store.transactions_between(date_range.start, date_range.end)
        categories = {c.id: c for c in self.store.categories()}

        total_income = Decimal(0)
        total_expense = Decimal(0)
        days: dict[date, tuple[Decimal, Decimal]] = {}
        by_category: dict[TransactionType, dict[str, Decimal]] = {
            TransactionType.INCOME: {},
            TransactionType.EXPENSE: {},
        }

        for tx in transactions:
            if tx.type is TransactionType.TRANSFER:
                continue

            income, expense = days.get(tx.date.date(), (Decimal(0), Decimal(0)))
            if tx.type is TransactionType.INCOME:
                total_income = add(total_income, tx.amount)
                income = add(income, tx.amount)
            else:
                total_expense = add(total_expense, tx.amount)
                expense = add(expense, tx.amount)
            days[tx.date.date()] = (income, expense)

            bucket = self._category_bucket(tx, categories)
            sums = by_category[tx.type]
            sums[bucket] = add(sums.get(bucket), tx.amount)

        summary = StatsSummary(
            range=date_range,
            total_income=round_to_cents(total_income),
            total_expense=round_to_cents(total_expense),
            balance=round_to_cents(subtract(total_income, total_expense)),
            daily=self._daily_series(date_range, days),
            expense_breakdown=self._breakdown(TransactionType.EXPENSE, by_category, categories),
            income_breakdown=self._breakdown(TransactionType.INCOME, by_category, categories),
            transaction_count=len(transactions),
        )
        logger.debug(f"Computed stats for {date_range}: {len(transactions)} transactions")
        return summary

    @staticmethod
    def _category_bucket(tx: Transaction, categories: dict[str, Category]) -> str:
        if tx.category_id is not None and tx.category_id in categories:
            return tx.category_id
        return UNCATEGORIZED_ID

    def _daily_series(self, date_range: DateRange, days: dict[date, tuple[Decimal, Decimal]]) -> list[DailyBucket]:
        if date_range.span_days > self.sparse_series_days:
            return [DailyBucket(day, *days[day]) for day in sorted(days)]

        buckets = []
        for stamp in pd.date_range(date_range.start.date(), date_range.end.date(), freq="D"):
            day = stamp.date()
            income, expense = days.get(day, (Decimal(0), Decimal(0)))
            buckets.append(DailyBucket(day, income, expense))
        return buckets

    def _breakdown(
        self,
        tx_type: TransactionType,
        by_category: dict[TransactionType, dict[str, Decimal]],
        categories: dict[str, Category],
    ) -> CategoryBreakdown:
        sums = by_category[tx_type]
        slices = []
        for index, (category_id, value) in enumerate(sums.items()):
            category = categories.get(category_id)
            slices.append(
                CategorySlice(
                    id=category_id,
                    name=category.name if category is not None else UNCATEGORIZED_NAME,
                    value=round_to_cents(value),
                    color=(category.color if category is not None else None) or slice_color(index),
                )
            )

        total = round_to_cents(sum_amounts(sums.values()))
        primary, other, folded = fold_long_tail(slices, total, self.long_tail_ratio)
        return CategoryBreakdown(type=tx_type, total=total, primary=primary, other=other, folded=folded)
