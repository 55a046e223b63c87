#!/usr/bin/env python3
"""
Secondary Transaction Indexes

Mirrors the persisted schema's indexes on ``transactions``: date, type,
accountId, categoryId and the composite (date, type). Range queries bisect
a date-sorted key list instead of scanning every record.
"""

from bisect import bisect_left, bisect_right
from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime

from ..core.models import Transaction, TransactionType


class TransactionIndex:
    """Immutable index over one version of the transactions collection."""

    def __init__(self, transactions: Iterable[Transaction]):
        ordered = sorted(transactions, key=lambda t: (t.date, t.id))

        self._ordered: list[Transaction] = ordered
        self._dates: list[datetime] = [t.date for t in ordered]
        self._by_account: dict[str, list[Transaction]] = defaultdict(list)
        self._by_category: dict[str, list[Transaction]] = defaultdict(list)
        self._by_type: dict[TransactionType, list[Transaction]] = defaultdict(list)

        for tx in ordered:
            for account_id in dict.fromkeys(tx.account_ids):
                self._by_account[account_id].append(tx)
            if tx.category_id is not None:
                self._by_category[tx.category_id].append(tx)
            self._by_type[tx.type].append(tx)

    def __len__(self) -> int:
        return len(self._ordered)

    def ordered(self) -> list[Transaction]:
        """All transactions sorted by (date, id)."""
        return list(self._ordered)

    def between(
        self, start: datetime, end: datetime, tx_type: TransactionType | None = None
    ) -> list[Transaction]:
        """
        Transactions with ``start <= date <= end``, date ordered.

        Args:
            start: Inclusive lower bound
            end: Inclusive upper bound
            tx_type: Restrict to one type (the composite date+type index)
        """
        lo = bisect_left(self._dates, start)
        hi = bisect_right(self._dates, end)
        window = self._ordered[lo:hi]
        if tx_type is None:
            return window
        return [t for t in window if t.type is tx_type]

    def for_account(self, account_id: str) -> list[Transaction]:
        """Transactions using the account as source or destination."""
        return list(self._by_account.get(account_id, ()))

    def for_category(self, category_id: str) -> list[Transaction]:
        return list(self._by_category.get(category_id, ()))

    def for_type(self, tx_type: TransactionType) -> list[Transaction]:
        return list(self._by_type.get(tx_type, ()))

    def date_bounds(self) -> tuple[datetime, datetime] | None:
        """Earliest and latest transaction dates, or None when empty."""
        if not self._dates:
            return None
        return self._dates[0], self._dates[-1]
