"""
Core Utilities Package

Shared building blocks of the ledger.

This package provides:
- Exact Decimal money arithmetic with half-up cent rounding
- Entity models for accounts, categories and transactions
- Error kinds and the error reporting interface
- Change notification bus and live queries
- Configuration management for environment-specific settings
"""

from .config import (
    Config,
    Environment,
    get_config,
    get_data_dir,
    is_development,
    is_production,
    is_test,
    reload_config,
)
from .currency import format_amount, parse_amount, safe_parse_amount, to_decimal
from .errors import (
    BackupFormatError,
    BuiltinProtectionError,
    CollectingErrorReporter,
    ErrorReporter,
    LedgerError,
    LoggingErrorReporter,
    ReferentialError,
    StorageError,
    ValidationError,
)
from .events import ChangeBus, ChangeEvent, LiveQuery
from .models import Account, AccountType, Category, Transaction, TransactionType
from .money import add, format_cents, multiply, round_to_cents, subtract

__all__ = [
    # Data models
    "Account",
    "AccountType",
    # Errors
    "BackupFormatError",
    "BuiltinProtectionError",
    # Change notification
    "ChangeBus",
    "ChangeEvent",
    "Category",
    "CollectingErrorReporter",
    # Configuration
    "Config",
    "Environment",
    "ErrorReporter",
    "LedgerError",
    "LiveQuery",
    "LoggingErrorReporter",
    "ReferentialError",
    "StorageError",
    "Transaction",
    "TransactionType",
    "ValidationError",
    # Money arithmetic
    "add",
    "format_amount",
    "format_cents",
    "get_config",
    "get_data_dir",
    "is_development",
    "is_production",
    "is_test",
    "multiply",
    "parse_amount",
    "reload_config",
    "round_to_cents",
    "safe_parse_amount",
    "subtract",
    "to_decimal",
]
