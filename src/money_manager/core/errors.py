#!/usr/bin/env python3
"""
Ledger Error Kinds and Reporting

Every failure the ledger core surfaces is a ``LedgerError`` subclass, so
callers can separate recoverable input problems (validation, references)
from fatal ones (storage).

Error reporting is an injected collaborator: the core calls
``reporter.report(error)`` and never talks to a UI directly.
"""

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class LedgerError(Exception):
    """Base class for all ledger core errors."""

    recoverable: bool = True


class ValidationError(LedgerError):
    """Invalid input: non-positive amount, transfer to self, malformed record."""


class ReferentialError(LedgerError):
    """A mutation references an account or category that does not exist."""


class BuiltinProtectionError(LedgerError):
    """Attempt to delete a builtin category."""


class BackupFormatError(LedgerError):
    """Restore payload is missing its version or one of the entity arrays."""


class StorageError(LedgerError):
    """Persistence failed mid-scope; nothing in the scope was applied."""

    recoverable = False


class ErrorReporter(Protocol):
    """Narrow reporting interface used by the core."""

    def report(self, error: LedgerError) -> None: ...


class LoggingErrorReporter:
    """Default reporter: writes errors to the log."""

    def report(self, error: LedgerError) -> None:
        if error.recoverable:
            logger.warning(f"{type(error).__name__}: {error}")
        else:
            logger.error(f"{type(error).__name__}: {error}")


class CollectingErrorReporter:
    """Reporter that keeps reported errors in memory."""

    def __init__(self) -> None:
        self.errors: list[LedgerError] = []

    def report(self, error: LedgerError) -> None:
        self.errors.append(error)
