#!/usr/bin/env python3
"""
Legacy TXT Exporter

Writes transactions in the legacy text format, oldest first. Expense
amounts are written negative and everything else positive; the sign is
for display only since the importer reads direction from the type label.
"""

import logging
from collections.abc import Iterable
from pathlib import Path

from ..core.dates import format_legacy_datetime
from ..core.models import Category, Transaction, TransactionType
from ..core.money import format_cents, negate
from ..ledger.store import LedgerStore
from .format import DELIMITER, FALLBACK_CATEGORY, HEADER, type_to_label

logger = logging.getLogger(__name__)


def format_record(tx: Transaction, category_names: dict[str, str]) -> str:
    """Format one transaction as a legacy line (no trailing newline)."""
    category_name = category_names.get(tx.category_id or "") or FALLBACK_CATEGORY
    amount = negate(tx.amount) if tx.type is TransactionType.EXPENSE else tx.amount
    # Notes are single-line in this format
    note = " ".join((tx.note or "").split())
    return DELIMITER.join(
        [format_legacy_datetime(tx.date), type_to_label(tx.type), category_name, format_cents(amount), note]
    )


def export_legacy_txt(transactions: Iterable[Transaction], categories: Iterable[Category]) -> str:
    """
    Render transactions as legacy text, header first.

    Args:
        transactions: Transactions in any order
        categories: Categories used to resolve names

    Returns:
        Text with one line per transaction, sorted by date
    """
    category_names = {category.id: category.name for category in categories}
    ordered = sorted(transactions, key=lambda t: (t.date, t.id))
    lines = [HEADER] + [format_record(tx, category_names) for tx in ordered]
    return "\n".join(lines) + "\n"


def export_file(store: LedgerStore, filepath: str | Path, encoding: str = "utf-8") -> int:
    """
    Export the whole ledger to a legacy text file.

    Returns:
        Number of transactions written
    """
    filepath = Path(filepath)
    transactions = store.transactions()
    filepath.parent.mkdir(parents=True, exist_ok=True)
    filepath.write_text(export_legacy_txt(transactions, store.categories()), encoding=encoding)
    logger.info(f"Exported {len(transactions)} transactions to {filepath}")
    return len(transactions)
