"""
Money Manager - Personal Bookkeeping Core

Keeps account balances consistent with exact Decimal arithmetic, imports
legacy text exports without duplicates, and summarizes periods by category.

Domain Packages:
- core: Money arithmetic, entity models, errors, change bus, configuration
- ledger: Ledger store, persistence, backups, seeding
- legacy: Legacy TXT parser, importer and exporter
- stats: Date ranges and the stats aggregator
- cli: Command-line interface

Example Usage:
    from money_manager import LedgerStore, LegacyImporter, StatsAggregator

    store = LedgerStore()
    seed_database(store)
    LegacyImporter(store).import_file("bills.txt", store.accounts()[0].id)
    summary = StatsAggregator(store).summarize("month", datetime.now())
"""

__version__ = "0.1.0"

from .core.config import Environment, get_config
from .core.errors import LedgerError
from .core.models import Account, AccountType, Category, Transaction, TransactionType
from .ledger import LedgerFileStore, LedgerStore, seed_database
from .legacy import LegacyImporter, parse_legacy_txt
from .stats import StatsAggregator, TimeDimension

__all__ = [
    "Account",
    "AccountType",
    "Category",
    "Environment",
    "LedgerError",
    "LedgerFileStore",
    "LedgerStore",
    "LegacyImporter",
    "StatsAggregator",
    "TimeDimension",
    "Transaction",
    "TransactionType",
    "get_config",
    "parse_legacy_txt",
    "seed_database",
]
