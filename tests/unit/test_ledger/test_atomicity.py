#!/usr/bin/env python3
"""Tests for all-or-nothing scopes under injected failures."""

from datetime import datetime
from decimal import Decimal

import pytest

from money_manager.core.errors import StorageError, ValidationError
from money_manager.ledger.backup import build_backup, restore_backup
from money_manager.ledger.store import LedgerStore
from money_manager.legacy.importer import LegacyImporter
from tests.fixtures.ledger_helpers import FailingDataStore, MemoryDataStore
from tests.fixtures.synthetic_data import build_legacy_text


def snapshot(store: LedgerStore) -> tuple:
    return (store.accounts(), store.categories(), store.transactions())


@pytest.mark.ledger
class TestPersistence:
    """Test that committed scopes are saved exactly once."""

    def test_each_committed_scope_saves_once(self):
        datastore = MemoryDataStore()
        store = LedgerStore(datastore=datastore)
        cash = store.add_account("Cash")
        food = store.add_category("Food", "expense")
        store.add_transaction(type="expense", amount="3", account_id=cash.id, category_id=food.id)

        assert len(datastore.saves) == 3
        saved = datastore.saves[-1]
        assert saved["version"] == "1.0"
        assert saved["accounts"][0]["balance"] == -3
        assert len(saved["transactions"]) == 1

    def test_open_reloads_saved_ledger(self):
        datastore = MemoryDataStore()
        store = LedgerStore(datastore=datastore)
        cash = store.add_account("Cash")
        food = store.add_category("Food", "expense")
        store.add_transaction(type="expense", amount="3.5", account_id=cash.id, category_id=food.id)

        reopened = LedgerStore.open(datastore)

        assert reopened.get_account(cash.id).balance == Decimal("-3.50")
        assert len(reopened.transactions()) == 1
        assert reopened.find_category("expense", "Food") is not None

    def test_failed_validation_does_not_save(self):
        datastore = MemoryDataStore()
        store = LedgerStore(datastore=datastore)
        cash = store.add_account("Cash")
        with pytest.raises(ValidationError):
            store.add_transaction(type="expense", amount="0", account_id=cash.id)
        assert len(datastore.saves) == 1


@pytest.mark.ledger
class TestRollback:
    """Test that a failing scope leaves every collection untouched."""

    @pytest.fixture
    def failing(self, reporter):
        datastore = FailingDataStore()
        store = LedgerStore(datastore=datastore, reporter=reporter)
        cash = store.add_account("Cash")
        bank = store.add_account("Bank")
        food = store.add_category("Food", "expense")
        store.add_transaction(type="expense", amount="10", account_id=cash.id, category_id=food.id)
        datastore.fail = True
        return store, cash, bank, food

    def test_storage_failure_rolls_back_transaction_and_balance(self, failing, reporter):
        store, cash, bank, food = failing
        before = snapshot(store)
        events = []
        store.bus.subscribe(events.append)

        with pytest.raises(StorageError):
            store.add_transaction(type="transfer", amount="5", account_id=cash.id, to_account_id=bank.id)

        assert snapshot(store) == before
        assert store.get_account(cash.id).balance == Decimal("-10.00")
        assert events == []
        assert isinstance(reporter.errors[-1], StorageError)
        assert not reporter.errors[-1].recoverable

    def test_storage_failure_rolls_back_cascade(self, failing):
        store, cash, _, _ = failing
        before = snapshot(store)

        with pytest.raises(StorageError):
            store.delete_account(cash.id, cascade=True)

        assert snapshot(store) == before

    def test_failure_mid_import_leaves_ledger_unchanged(self, failing, monkeypatch):
        store, cash, _, _ = failing
        store.datastore.fail = False
        before = snapshot(store)

        def boom(account_id):
            raise RuntimeError("injected failure")

        monkeypatch.setattr(store, "recompute_balance", boom)

        with pytest.raises(StorageError):
            LegacyImporter(store).import_text(build_legacy_text(), cash.id)

        assert snapshot(store) == before

    def test_storage_failure_during_restore(self, failing):
        store, _, _, _ = failing
        payload = build_backup(store)
        store.datastore.fail = False
        store.clear_all()
        store.datastore.fail = True

        with pytest.raises(StorageError):
            restore_backup(store, payload)

        assert snapshot(store) == ([], [], [])

    def test_duplicate_ids_in_restore_roll_back(self, failing):
        store, _, _, _ = failing
        store.datastore.fail = False
        before = snapshot(store)
        payload = build_backup(store)
        payload["transactions"].append(dict(payload["transactions"][0]))

        with pytest.raises(StorageError):
            restore_backup(store, payload)

        assert snapshot(store) == before

    def test_exception_inside_explicit_scope(self, failing):
        store, cash, _, food = failing
        store.datastore.fail = False
        before = snapshot(store)

        with pytest.raises(StorageError):
            with store.transaction():
                store.add_transaction(
                    type="expense", amount="1", account_id=cash.id, category_id=food.id, date=datetime(2024, 1, 1)
                )
                raise KeyError("interrupted")

        assert snapshot(store) == before

    def test_scope_state_is_cleared_after_failure(self, failing):
        store, cash, _, food = failing
        store.datastore.fail = False

        with pytest.raises(StorageError):
            with store.transaction():
                assert store.in_transaction
                raise KeyError("interrupted")

        assert not store.in_transaction
        store.add_transaction(type="expense", amount="1", account_id=cash.id, category_id=food.id)
        assert store.get_account(cash.id).balance == Decimal("-11.00")
