#!/usr/bin/env python3
"""Tests for the legacy TXT exporter."""

from datetime import datetime
from decimal import Decimal

import pytest

from money_manager.legacy.exporter import export_file, export_legacy_txt
from money_manager.legacy.format import HEADER
from money_manager.legacy.importer import LegacyImporter
from money_manager.ledger.store import LedgerStore
from tests.fixtures.synthetic_data import build_legacy_text


@pytest.mark.importer
class TestExportLegacyTxt:
    """Test exported text layout."""

    def test_layout(self, ledger):
        store, cash, bank = ledger["store"], ledger["cash"], ledger["bank"]
        store.add_transaction(
            type="expense", amount="3", account_id=cash.id, category_id=ledger["food"].id,
            date=datetime(2023, 12, 31, 8, 5), note="早饭",
        )
        store.add_transaction(
            type="transfer", amount="20", account_id=cash.id, to_account_id=bank.id, date=datetime(2024, 2, 1, 10, 0)
        )

        lines = export_legacy_txt(store.transactions(), store.categories()).splitlines()

        assert lines[0] == HEADER
        assert lines[1] == "2023-12-31 08:05 \u0001 支出 \u0001 Food \u0001 -3.00 \u0001 早饭"
        assert lines[2] == "2024-01-01 09:00 \u0001 收入 \u0001 Salary \u0001 100.00 \u0001 "
        assert lines[-1] == "2024-02-01 10:00 \u0001 转账 \u0001 其他 \u0001 20.00 \u0001 "

    def test_sorted_by_date(self, ledger):
        store = ledger["store"]
        for day in (9, 3, 6):
            store.add_transaction(
                type="expense", amount=day, account_id=ledger["cash"].id,
                category_id=ledger["food"].id, date=datetime(2024, 3, day),
            )
        shuffled = list(reversed(store.transactions()))

        lines = export_legacy_txt(shuffled, store.categories()).splitlines()[1:]
        dates = [line.split(" \u0001 ")[0] for line in lines]
        assert dates == sorted(dates)

    def test_dangling_category_exports_as_fallback(self, ledger):
        store, food = ledger["store"], ledger["food"]
        store.add_transaction(
            type="expense", amount="3", account_id=ledger["cash"].id, category_id=food.id, date=datetime(2024, 5, 1)
        )
        store.delete_category(food.id)

        text = export_legacy_txt(store.transactions(), store.categories())
        assert "2024-05-01 00:00 \u0001 支出 \u0001 其他 \u0001 -3.00" in text

    def test_round_trip_through_importer(self, temp_dir):
        source = LedgerStore()
        account = source.add_account("A")
        LegacyImporter(source).import_text(build_legacy_text(), account.id)

        path = temp_dir / "out" / "export.txt"
        assert export_file(source, path) == 5

        target = LedgerStore()
        other = target.add_account("B")
        result = LegacyImporter(target).import_file(path, other.id)

        assert result.imported_count == 5
        assert target.get_account(other.id).balance == Decimal("4890.70")
        assert path.read_text(encoding="utf-8") == export_legacy_txt(target.transactions(), target.categories())
