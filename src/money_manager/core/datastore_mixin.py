#!/usr/bin/env python3
"""
DataStore Mixin - Common functionality for file-backed DataStores.

Provides shared implementation of the metadata methods that only depend on
one file's presence and stat information.
"""

from abc import abstractmethod
from datetime import datetime
from pathlib import Path


class DataStoreMixin:
    """
    Mixin providing common DataStore functionality for a single data file.

    Subclasses must set ``self.data_file`` and implement:
    - item_count() -> int | None
    - summary_text() -> str
    """

    data_file: Path

    def exists(self) -> bool:
        """Check if the data file exists."""
        return self.data_file.exists()

    def last_modified(self) -> datetime | None:
        """Get modification time of the data file."""
        if not self.exists():
            return None
        return datetime.fromtimestamp(self.data_file.stat().st_mtime)

    def age_days(self) -> int | None:
        """
        Get age of data in days since last modification.

        Returns:
            Number of days since last modification, or None if data doesn't exist
        """
        last_mod = self.last_modified()
        if last_mod is None:
            return None
        return (datetime.now() - last_mod).days

    def size_bytes(self) -> int | None:
        """Get size of the data file in bytes."""
        if not self.exists():
            return None
        return self.data_file.stat().st_size

    @abstractmethod
    def item_count(self) -> int | None:
        """Get count of records in stored data."""
        ...

    @abstractmethod
    def summary_text(self) -> str:
        """Get human-readable summary of current data state."""
        ...
