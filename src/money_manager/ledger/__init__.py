"""
Ledger Package

The account/category/transaction store with its balance invariant, its
JSON file persistence, backups and first-run seeding.
"""

from .backup import (
    BackupPayload,
    build_backup,
    dump_backup,
    parse_backup,
    read_backup,
    restore_backup,
    write_backup,
)
from .datastore import LedgerFileStore
from .indexes import TransactionIndex
from .seed import seed_database
from .store import LedgerStore

__all__ = [
    "BackupPayload",
    "LedgerFileStore",
    "LedgerStore",
    "TransactionIndex",
    "build_backup",
    "dump_backup",
    "parse_backup",
    "read_backup",
    "restore_backup",
    "seed_database",
    "write_backup",
]
