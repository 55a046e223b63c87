#!/usr/bin/env python3
"""Tests for importing legacy records into the ledger."""

from datetime import datetime
from decimal import Decimal

import pytest

from money_manager.core.errors import ReferentialError
from money_manager.core.models import TransactionType
from money_manager.legacy.importer import LegacyImporter, signature
from money_manager.legacy.parser import parse_legacy_txt
from tests.fixtures.synthetic_data import SAMPLE_LINES, build_legacy_text, generate_legacy_lines, write_legacy_file

SAMPLE_BALANCE = Decimal("4890.70")


@pytest.fixture
def account(store):
    return store.add_account("默认账户")


@pytest.fixture
def importer(store):
    return LegacyImporter(store)


@pytest.mark.importer
class TestImport:
    """Test category resolution, writes and balance reconciliation."""

    def test_first_import(self, store, account, importer):
        result = importer.import_text(build_legacy_text(), account.id)

        assert result.imported_count == 5
        assert result.categories_created_count == 4
        assert result.skipped_count == 0
        assert result.parsed_count == 5
        assert store.get_account(account.id).balance == SAMPLE_BALANCE
        assert {c.name for c in store.categories()} == {"餐饮", "交通", "工资", "购物"}
        assert all(not c.is_builtin for c in store.categories())

    def test_second_import_is_a_no_op(self, store, account, importer):
        importer.import_text(build_legacy_text(), account.id)
        again = importer.import_text(build_legacy_text(), account.id)

        assert again.imported_count == 0
        assert again.categories_created_count == 0
        assert again.skipped_count == 5
        assert len(store.transactions()) == 5
        assert store.get_account(account.id).balance == SAMPLE_BALANCE

    def test_overlapping_batch_skips_existing(self, store, account, importer):
        importer.import_text(build_legacy_text(SAMPLE_LINES[:2]), account.id)

        result = importer.import_text(build_legacy_text(), account.id)

        assert result.imported_count == 3
        assert result.skipped_count == 2
        assert len(store.transactions()) == 5

    def test_keep_duplicates(self, store, account, importer):
        importer.import_text(build_legacy_text(), account.id)
        result = importer.import_text(build_legacy_text(), account.id, skip_duplicates=False)

        assert result.imported_count == 5
        assert store.get_account(account.id).balance == SAMPLE_BALANCE * 2

    def test_duplicates_within_one_batch(self, store, account, importer):
        line = ("2017-11-01 00:01", "支出", "餐饮", "-3.00", "早饭")
        result = importer.import_text(build_legacy_text([line, line]), account.id)

        assert result.imported_count == 1
        assert result.skipped_count == 1

    def test_one_category_per_new_key(self, store, account, importer):
        lines = [(f"2018-01-0{day} 12:00", "支出", "宠物", "-10", "") for day in range(1, 8)]
        result = importer.import_text(build_legacy_text(lines), account.id)

        assert result.categories_created_count == 1
        assert result.imported_count == 7
        assert len(store.categories()) == 1

    def test_matches_existing_category_by_type_and_name(self, store, account, importer):
        food = store.add_category("餐饮", "expense")
        lines = [
            ("2018-01-01 12:00", "支出", "餐饮", "-10", ""),
            ("2018-01-01 13:00", "收入", "餐饮", "10", "AA"),
        ]
        result = importer.import_text(build_legacy_text(lines), account.id)

        assert result.categories_created_count == 1
        expense = store.transactions_between(datetime(2018, 1, 1), datetime(2018, 1, 2), type="expense")
        assert expense[0].category_id == food.id
        assert store.find_category(TransactionType.INCOME, "餐饮") is not None

    def test_recompute_includes_existing_history(self, ledger):
        store, cash, bank = ledger["store"], ledger["cash"], ledger["bank"]
        store.add_transaction(type="transfer", amount="20", account_id=cash.id, to_account_id=bank.id)

        LegacyImporter(store).import_text(build_legacy_text(), cash.id)

        assert store.get_account(cash.id).balance == Decimal("80.00") + SAMPLE_BALANCE
        assert store.get_account(bank.id).balance == Decimal("70.00")

    def test_dedup_is_per_account(self, store, account, importer):
        other = store.add_account("Other")
        importer.import_text(build_legacy_text(), account.id)

        result = importer.import_text(build_legacy_text(), other.id)

        assert result.imported_count == 5
        assert result.categories_created_count == 0

    def test_ids_follow_business_date(self, store, account, importer):
        importer.import_text(build_legacy_text(), account.id)
        first = store.transactions()[0]
        assert first.id.startswith("201711010001")
        assert first.note == "早饭"

    def test_out_of_range_amount_is_dropped(self, store, account, importer):
        lines = [
            ("2017-11-01 00:01", "支出", "餐饮", "-3.00", "早饭"),
            ("2017-11-01 00:02", "支出", "餐饮", "-1e100", "typo"),
        ]
        result = importer.import_text(build_legacy_text(lines, header=False), account.id)

        assert result.imported_count == 1
        assert result.dropped_lines == [2]
        assert store.get_account(account.id).balance == Decimal("-3.00")

    def test_unknown_account(self, importer):
        with pytest.raises(ReferentialError):
            importer.import_text(build_legacy_text(), "missing")

    def test_nothing_to_import_does_not_write(self, store, account, importer):
        events = []
        store.bus.subscribe(events.append)
        result = importer.import_text("", account.id)
        assert result.imported_count == 0
        assert events == []

    def test_import_publishes_once(self, store, account, importer):
        events = []
        store.bus.subscribe(events.append)
        importer.import_text(build_legacy_text(), account.id)
        assert len(events) == 1

    @pytest.mark.slow
    def test_large_synthetic_file(self, store, account, importer):
        lines = generate_legacy_lines(count=500)
        result = importer.import_text(build_legacy_text(lines), account.id)

        assert result.imported_count == 500
        assert store.recompute_balance(account.id) == store.get_account(account.id).balance
        assert importer.import_text(build_legacy_text(lines), account.id).imported_count == 0


@pytest.mark.importer
class TestDuplicatePreview:
    """Test count_duplicates and the signature."""

    def test_count_duplicates(self, store, account, importer):
        importer.import_text(build_legacy_text(SAMPLE_LINES[:2]), account.id)
        records = parse_legacy_txt(build_legacy_text()).records

        assert importer.count_duplicates(records, account.id) == 2
        assert len(store.transactions()) == 2

    def test_preview_ignores_unknown_categories(self, account, importer):
        records = parse_legacy_txt(build_legacy_text()).records
        assert importer.count_duplicates(records, account.id) == 0

    def test_signature_is_minute_granular(self):
        a = signature(datetime(2017, 11, 1, 0, 1, 5), Decimal("3"), TransactionType.EXPENSE, "c")
        b = signature(datetime(2017, 11, 1, 0, 1, 55), Decimal("3.00"), TransactionType.EXPENSE, "c")
        c = signature(datetime(2017, 11, 1, 0, 2), Decimal("3.00"), TransactionType.EXPENSE, "c")
        assert a == b
        assert a != c

    def test_manual_entry_in_same_minute_counts_as_duplicate(self, store, account, importer):
        food = store.add_category("餐饮", "expense")
        store.add_transaction(
            type="expense", amount="3", account_id=account.id, category_id=food.id, date=datetime(2017, 11, 1, 0, 1, 30)
        )
        result = importer.import_text(build_legacy_text(SAMPLE_LINES[:1]), account.id)
        assert result.skipped_count == 1


@pytest.mark.importer
class TestImportFile:
    """Test reading files from disk."""

    def test_import_file(self, store, account, importer, temp_dir):
        path = write_legacy_file(temp_dir / "bills.txt")
        with path.open("a", encoding="utf-8") as f:
            f.write("broken line\n")

        result = importer.import_file(path, account.id)

        assert result.imported_count == 5
        assert result.dropped_lines == [7]
        assert "dropped 1 malformed lines" in result.summary_text()

    def test_import_file_with_other_encoding(self, store, account, temp_dir):
        path = write_legacy_file(temp_dir / "bills_gbk.txt", encoding="gbk")
        result = LegacyImporter(store, encoding="gbk").import_file(path, account.id)
        assert result.imported_count == 5
