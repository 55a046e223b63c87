#!/usr/bin/env python3
"""
Legacy TXT Importer

Merges parsed legacy records into one target account:

1. Match each record's (type, category name) to an existing category,
   creating exactly one new category per unknown key.
2. Optionally drop records whose duplicate signature
   ``(minute, amount, type, category id)`` is already present, either in the
   account's existing transactions or earlier in the same run.
3. Insert the new categories and transactions, then recompute the account
   balance from scratch, all in one transactional scope.

Two genuinely distinct entries in the same minute with the same amount and
category are indistinguishable to the signature and import as one.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from ..core.dates import minute_bucket, now_ms
from ..core.events import ACCOUNTS, CATEGORIES, TRANSACTIONS
from ..core.ids import generate_id
from ..core.models import Category, Transaction, TransactionType
from ..core.money import format_cents
from ..ledger.store import LedgerStore
from .parser import ParsedRecord, parse_legacy_txt

logger = logging.getLogger(__name__)

Signature = tuple[int, str, str, str | None]
CategoryKey = tuple[TransactionType, str]


def signature(date: datetime, amount: Decimal, tx_type: TransactionType, category_id: str | None) -> Signature:
    """Duplicate-detection signature at minute granularity."""
    return (minute_bucket(date), format_cents(amount), tx_type.value, category_id)


@dataclass
class ImportResult:
    """Outcome of one import run."""

    imported_count: int = 0
    categories_created_count: int = 0
    skipped_count: int = 0
    parsed_count: int = 0
    dropped_lines: list[int] = field(default_factory=list)

    def summary_text(self) -> str:
        text = (
            f"Imported {self.imported_count} transactions, "
            f"created {self.categories_created_count} categories, "
            f"skipped {self.skipped_count} duplicates"
        )
        if self.dropped_lines:
            text += f", dropped {len(self.dropped_lines)} malformed lines"
        return text


class LegacyImporter:
    """
    Imports legacy records into a ledger store.

    Args:
        store: Target ledger
        skip_duplicates: Default for runs that don't say otherwise
        encoding: Text encoding of imported files
    """

    def __init__(self, store: LedgerStore, skip_duplicates: bool = True, encoding: str = "utf-8"):
        self.store = store
        self.skip_duplicates = skip_duplicates
        self.encoding = encoding

    def _category_map(self) -> dict[CategoryKey, str]:
        return {category.key: category.id for category in self.store.categories()}

    def _existing_signatures(self, account_id: str) -> set[Signature]:
        return {
            signature(tx.date, tx.amount, tx.type, tx.category_id)
            for tx in self.store.transactions_for_account(account_id)
        }

    def count_duplicates(self, records: Iterable[ParsedRecord], account_id: str) -> int:
        """
        Preview how many records an import would skip, without writing.

        Only records whose category already exists can match an existing
        transaction; duplicates within the batch itself are not counted.
        """
        categories = self._category_map()
        existing = self._existing_signatures(account_id)

        duplicates = 0
        for record in records:
            category_id = categories.get((record.type, record.category_name))
            if category_id is None:
                continue
            if signature(record.date, record.amount, record.type, category_id) in existing:
                duplicates += 1
        return duplicates

    def import_records(
        self, records: Iterable[ParsedRecord], account_id: str, skip_duplicates: bool | None = None
    ) -> ImportResult:
        """
        Import parsed records into ``account_id``.

        Raises:
            ReferentialError: If the account does not exist
            StorageError: If the write fails; nothing is imported
        """
        records = list(records)
        skip = self.skip_duplicates if skip_duplicates is None else skip_duplicates
        account = self.store.require_account(account_id)

        categories = self._category_map()
        seen = self._existing_signatures(account_id) if skip else set()
        now = now_ms()

        new_categories: list[Category] = []
        new_transactions: list[Transaction] = []
        result = ImportResult(parsed_count=len(records))

        for i, record in enumerate(records):
            key = (record.type, record.category_name)
            if key not in categories:
                category = Category(
                    id=generate_id(now, len(new_categories)),
                    name=record.category_name,
                    type=record.type,
                    created_at=now,
                    updated_at=now,
                )
                new_categories.append(category)
                categories[key] = category.id
            category_id = categories[key]

            if skip:
                sig = signature(record.date, record.amount, record.type, category_id)
                if sig in seen:
                    result.skipped_count += 1
                    continue
                seen.add(sig)

            new_transactions.append(
                Transaction(
                    # Offset by position so records sharing a minute keep file order
                    id=generate_id(record.date, i),
                    amount=record.amount,
                    type=record.type,
                    account_id=account_id,
                    date=record.date,
                    category_id=category_id,
                    note=record.note or None,
                    created_at=now,
                    updated_at=now,
                )
            )

        if new_categories or new_transactions:
            with self.store.transaction(ACCOUNTS, CATEGORIES, TRANSACTIONS):
                self.store.bulk_add_categories(new_categories)
                self.store.bulk_add_transactions(new_transactions)
                self.store.recompute_balance(account_id)

        result.imported_count = len(new_transactions)
        result.categories_created_count = len(new_categories)
        logger.info(f"Import into '{account.name}': {result.summary_text()}")
        return result

    def import_text(self, text: str, account_id: str, skip_duplicates: bool | None = None) -> ImportResult:
        """Parse legacy text and import it."""
        parsed = parse_legacy_txt(text)
        result = self.import_records(parsed.records, account_id, skip_duplicates)
        result.dropped_lines = list(parsed.dropped_lines)
        return result

    def import_file(
        self, filepath: str | Path, account_id: str, skip_duplicates: bool | None = None
    ) -> ImportResult:
        """Read a legacy export file and import it."""
        filepath = Path(filepath)
        logger.info(f"Importing legacy file {filepath}")
        text = filepath.read_text(encoding=self.encoding)
        return self.import_text(text, account_id, skip_duplicates)
