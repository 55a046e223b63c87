#!/usr/bin/env python3
"""
JSON Backup Serialization and Restore

Backup format:
    {
      "version": "1.0",
      "exportedAt": "2024-08-15T10:30:00.000Z",
      "accounts": [...],
      "categories": [...],
      "transactions": [...]
    }

The persisted ledger file uses the same schema, so any ledger file is also
a valid backup. Parsing validates the whole payload before the store is
touched; a malformed backup never clears existing data.
"""

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ..core.errors import BackupFormatError
from ..core.json_utils import format_json, read_json, write_json
from ..core.models import Account, Category, Transaction

if TYPE_CHECKING:
    from .store import LedgerStore

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0"
REQUIRED_ARRAYS = ("accounts", "categories", "transactions")


@dataclass
class BackupPayload:
    """Parsed, validated backup contents."""

    version: str
    accounts: list[Account] = field(default_factory=list)
    categories: list[Category] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)
    exported_at: str | None = None

    @property
    def record_count(self) -> int:
        return len(self.accounts) + len(self.categories) + len(self.transactions)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def serialize_collections(
    accounts: Iterable[Account],
    categories: Iterable[Category],
    transactions: Iterable[Transaction],
    exported_at: str | None = None,
) -> dict[str, Any]:
    """Build the backup dictionary for the given collections."""
    return {
        "version": BACKUP_VERSION,
        "exportedAt": exported_at or _now_iso(),
        "accounts": [a.to_dict() for a in accounts],
        "categories": [c.to_dict() for c in categories],
        "transactions": [t.to_dict() for t in transactions],
    }


def build_backup(store: "LedgerStore", exported_at: str | None = None) -> dict[str, Any]:
    """Snapshot the whole store as a backup dictionary."""
    return serialize_collections(
        store.accounts(), store.categories(), store.transactions(), exported_at=exported_at
    )


def dump_backup(store: "LedgerStore") -> str:
    """Snapshot the whole store as pretty-printed backup JSON."""
    return format_json(build_backup(store))


def write_backup(store: "LedgerStore", filepath: str | Path) -> Path:
    """
    Write a backup file.

    Args:
        store: Ledger to back up
        filepath: Destination path

    Returns:
        Path written
    """
    filepath = Path(filepath)
    write_json(filepath, build_backup(store))
    logger.info(f"Wrote backup to {filepath}")
    return filepath


def _parse_entities(data: dict[str, Any], key: str, model: Any) -> list:
    entities = []
    for index, item in enumerate(data[key]):
        if not isinstance(item, dict):
            raise BackupFormatError(f"{key}[{index}] is not an object")
        try:
            entities.append(model.from_dict(item))
        except (KeyError, ValueError, TypeError) as e:
            raise BackupFormatError(f"{key}[{index}] is malformed: {e}") from e
    return entities


def parse_backup(payload: dict[str, Any] | str | bytes) -> BackupPayload:
    """
    Parse and validate a backup payload.

    Args:
        payload: Backup dictionary or its JSON text

    Returns:
        BackupPayload with entity objects

    Raises:
        BackupFormatError: If JSON is invalid, ``version`` is missing, one of
            the three arrays is missing or not a list, or an entity is malformed
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise BackupFormatError(f"Backup is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise BackupFormatError("Backup must be a JSON object")

    version = payload.get("version")
    if not version:
        raise BackupFormatError("Backup is missing its version")

    for key in REQUIRED_ARRAYS:
        if key not in payload:
            raise BackupFormatError(f"Backup is missing the '{key}' array")
        if not isinstance(payload[key], list):
            raise BackupFormatError(f"Backup '{key}' must be an array")

    return BackupPayload(
        version=str(version),
        accounts=_parse_entities(payload, "accounts", Account),
        categories=_parse_entities(payload, "categories", Category),
        transactions=_parse_entities(payload, "transactions", Transaction),
        exported_at=payload.get("exportedAt"),
    )


def read_backup(filepath: str | Path) -> BackupPayload:
    """Read and parse a backup file."""
    try:
        data = read_json(filepath)
    except json.JSONDecodeError as e:
        raise BackupFormatError(f"Backup is not valid JSON: {e}") from e
    return parse_backup(data)


def restore_backup(store: "LedgerStore", payload: dict[str, Any] | str | bytes | BackupPayload) -> BackupPayload:
    """
    Replace the store's contents with a backup.

    The payload is fully parsed first; only a valid backup reaches the
    store's atomic clear-and-insert.
    """
    parsed = payload if isinstance(payload, BackupPayload) else parse_backup(payload)
    store.restore_from_backup(parsed.accounts, parsed.categories, parsed.transactions)
    return parsed
