#!/usr/bin/env python3
"""
Change Notification Bus and Live Queries

The ledger store publishes the names of the collections a committed scope
touched. A ``LiveQuery`` re-runs its query function whenever one of the
collections it reads from changes, so readers always see a fresh result
without polling.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

ACCOUNTS = "accounts"
CATEGORIES = "categories"
TRANSACTIONS = "transactions"
ALL_TABLES: frozenset[str] = frozenset({ACCOUNTS, CATEGORIES, TRANSACTIONS})


@dataclass(frozen=True)
class ChangeEvent:
    """Collections changed by one committed scope."""

    tables: frozenset[str]
    ts: datetime = field(default_factory=datetime.now)


ChangeHandler = Callable[[ChangeEvent], None]


class ChangeBus:
    """Plain observer list of change handlers."""

    def __init__(self) -> None:
        self._handlers: list[ChangeHandler] = []

    def subscribe(self, handler: ChangeHandler) -> Callable[[], None]:
        """
        Register a handler.

        Returns:
            Callable that unsubscribes the handler
        """
        self._handlers.append(handler)
        return lambda: self.unsubscribe(handler)

    def unsubscribe(self, handler: ChangeHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def publish(self, tables: Iterable[str]) -> ChangeEvent | None:
        """
        Notify every handler that ``tables`` changed.

        A failing handler is logged and does not stop delivery to the others;
        the change it reports has already been committed.
        """
        changed = frozenset(tables)
        if not changed:
            return None

        event = ChangeEvent(tables=changed)
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                logger.exception(f"Change handler {handler!r} failed for {sorted(changed)}")
        return event


class LiveQuery(Generic[T]):
    """
    Query result that refreshes itself when its source collections change.

    Example:
        >>> live = store.subscribe(lambda: len(store.transactions()), tables={TRANSACTIONS})
        >>> live.add_listener(lambda count: print(f"now {count} transactions"))
    """

    def __init__(self, bus: ChangeBus, query: Callable[[], T], tables: Iterable[str] = ALL_TABLES):
        self._query = query
        self.tables = frozenset(tables)
        self._listeners: list[Callable[[T], None]] = []
        self._value: T = query()
        self._unsubscribe: Callable[[], None] | None = bus.subscribe(self._on_change)

    @property
    def value(self) -> T:
        """Most recent query result."""
        return self._value

    @property
    def closed(self) -> bool:
        return self._unsubscribe is None

    def add_listener(self, listener: Callable[[T], None]) -> None:
        """Call ``listener`` with each fresh result."""
        self._listeners.append(listener)

    def refresh(self) -> T:
        """Re-run the query now and notify listeners."""
        self._value = self._query()
        for listener in list(self._listeners):
            listener(self._value)
        return self._value

    def close(self) -> None:
        """Stop following changes."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._listeners.clear()

    def _on_change(self, event: ChangeEvent) -> None:
        if event.tables & self.tables:
            self.refresh()
