#!/usr/bin/env python3
"""
DataStore Protocol - where the ledger's collections are kept.

The ledger store only needs three operations from its persistence layer;
file metadata (age, size, counts) lives on ``DataStoreMixin`` for the
file-backed implementation.
"""

from typing import Any, Protocol


class DataStore(Protocol):
    """Persistence for the backup-shaped ledger payload."""

    def exists(self) -> bool:
        """True if a persisted ledger is present."""
        ...

    def load(self) -> dict[str, Any]:
        """
        Load the persisted payload.

        Raises:
            FileNotFoundError: If nothing has been persisted yet
            ValueError: If the persisted payload is corrupted
        """
        ...

    def save(self, data: dict[str, Any]) -> None:
        """
        Persist the payload, replacing what was there.

        Raises:
            OSError: If the payload could not be written
        """
        ...
