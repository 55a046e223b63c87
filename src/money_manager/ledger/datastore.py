#!/usr/bin/env python3
"""
Ledger DataStore Implementation

Keeps the ledger's three collections in one JSON file shaped like a backup.
"""

import json
from pathlib import Path
from typing import Any

from ..core.datastore_mixin import DataStoreMixin
from ..core.json_utils import read_json, write_json_atomic


class LedgerFileStore(DataStoreMixin):
    """
    DataStore for the persisted ledger.

    Manages ``<data_dir>/ledger/ledger.json``. Saves replace the file
    atomically, so a failed save leaves the previous ledger intact.
    """

    def __init__(self, data_file: Path):
        """
        Initialize ledger file store.

        Args:
            data_file: Path of the ledger JSON file
        """
        self.data_file = Path(data_file)

    @classmethod
    def from_config(cls, config: Any) -> "LedgerFileStore":
        """Create the store configured for this environment."""
        return cls(config.storage.ledger_file)

    def load(self) -> dict[str, Any]:
        """
        Load the persisted ledger.

        Returns:
            Backup-shaped dictionary

        Raises:
            FileNotFoundError: If the ledger file doesn't exist
            ValueError: If the file is not valid JSON
        """
        if not self.exists():
            raise FileNotFoundError(f"Ledger file not found: {self.data_file}")
        try:
            data = read_json(self.data_file)
        except json.JSONDecodeError as e:
            raise ValueError(f"Ledger file is corrupted: {self.data_file}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Ledger file is corrupted: {self.data_file}")
        return data

    def save(self, data: dict[str, Any]) -> None:
        """
        Persist the ledger.

        Args:
            data: Backup-shaped dictionary of all collections
        """
        write_json_atomic(self.data_file, data)

    def item_count(self) -> int | None:
        """Get count of transactions in the ledger file."""
        if not self.exists():
            return None

        try:
            data = read_json(self.data_file)
        except (OSError, json.JSONDecodeError):
            return 0
        transactions = data.get("transactions") if isinstance(data, dict) else None
        return len(transactions) if isinstance(transactions, list) else 0

    def summary_text(self) -> str:
        """Get human-readable summary of the ledger file."""
        if not self.exists():
            return f"No ledger at {self.data_file}"

        count = self.item_count() or 0
        age = self.age_days()
        age_text = "today" if age == 0 else f"{age} days ago"
        return f"{count} transactions, last saved {age_text}"
