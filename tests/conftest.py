"""
Pytest Configuration and Shared Fixtures

Provides common test fixtures and configuration for the entire test suite.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from money_manager.core import config as config_module
from money_manager.core.errors import CollectingErrorReporter
from money_manager.ledger.store import LedgerStore


@pytest.fixture
def temp_dir(tmp_path):
    """Temporary directory for test files."""
    return tmp_path


@pytest.fixture
def reporter() -> CollectingErrorReporter:
    return CollectingErrorReporter()


@pytest.fixture
def store(reporter) -> LedgerStore:
    """Empty in-memory ledger whose errors are collected."""
    return LedgerStore(reporter=reporter)


@pytest.fixture
def ledger(store):
    """
    Ledger with two accounts and a few categories.

    Returns:
        Namespace-like dict: store, cash (100.00 after opening income),
        bank (50.00), food, transport, books, misc, salary, transfer
    """
    cash = store.add_account("Cash", "cash")
    bank = store.add_account("Bank", "bank")
    salary = store.add_category("Salary", "income")
    food = store.add_category("Food", "expense")
    transport = store.add_category("Transport", "expense")
    books = store.add_category("Books", "expense")
    misc = store.add_category("Misc", "expense")
    moving = store.add_category("Moving", "transfer")

    store.add_transaction(
        type="income", amount="100", account_id=cash.id, category_id=salary.id, date=datetime(2024, 1, 1, 9, 0)
    )
    store.add_transaction(
        type="income", amount="50", account_id=bank.id, category_id=salary.id, date=datetime(2024, 1, 1, 9, 5)
    )
    assert store.get_account(cash.id).balance == Decimal("100.00")
    assert store.get_account(bank.id).balance == Decimal("50.00")

    return {
        "store": store,
        "cash": cash,
        "bank": bank,
        "salary": salary,
        "food": food,
        "transport": transport,
        "books": books,
        "misc": misc,
        "moving": moving,
    }


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch, tmp_path):
    """Set up test environment variables."""
    # Ensure tests don't use real ledger data
    monkeypatch.setenv("MONEY_MANAGER_ENV", "test")
    monkeypatch.setenv("MONEY_MANAGER_DATA_DIR", str(tmp_path / "data"))
    for name in ("LOG_LEVEL", "DEBUG", "LONG_TAIL_RATIO", "SPARSE_SERIES_DAYS", "IMPORT_SKIP_DUPLICATES"):
        monkeypatch.delenv(name, raising=False)

    # Drop the cached configuration so each test sees its own environment
    monkeypatch.setattr(config_module, "_config", None)


# Test markers for categorizing tests
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for complete workflows")
    config.addinivalue_line("markers", "currency: Tests for money arithmetic and precision")
    config.addinivalue_line("markers", "ledger: Tests for the ledger store and its persistence")
    config.addinivalue_line("markers", "importer: Tests for legacy TXT import and export")
    config.addinivalue_line("markers", "stats: Tests for the stats aggregator")
    config.addinivalue_line("markers", "slow: Tests that take significant time to run")
