#!/usr/bin/env python3
"""
Ledger Store

Owns the account, category and transaction collections and enforces the
balance invariant on every write path:

    account.balance == sum of the signed effects of every transaction
                       that uses the account as source or destination

Every multi-entity mutation runs inside ``store.transaction(...)``: the
scope snapshots the collections it names, and either commits every write
(persisting once and notifying live queries) or restores the snapshot.
Readers never see a transaction record without its balance adjustment.

Example:
    >>> store = LedgerStore()
    >>> wallet = store.add_account("Wallet", "cash")
    >>> food = store.add_category("Food", "expense")
    >>> store.add_transaction(type="expense", amount="10.5", account_id=wallet.id, category_id=food.id)
    >>> store.get_account(wallet.id).balance
    Decimal('-10.50')
"""

import functools
import logging
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from typing import Any, TypeVar

from ..core.currency import to_decimal
from ..core.datastore import DataStore
from ..core.dates import coerce_datetime, now_ms, truncate_to_ms
from ..core.errors import (
    BuiltinProtectionError,
    ErrorReporter,
    LedgerError,
    LoggingErrorReporter,
    ReferentialError,
    StorageError,
    ValidationError,
)
from ..core.events import ACCOUNTS, ALL_TABLES, CATEGORIES, TRANSACTIONS, ChangeBus, LiveQuery
from ..core.ids import generate_id
from ..core.money import add, is_positive, round_to_cents, subtract, sum_amounts
from ..core.models import Account, AccountType, Category, Transaction, TransactionType
from .backup import parse_backup, serialize_collections
from .indexes import TransactionIndex

logger = logging.getLogger(__name__)

T = TypeVar("T")

ACCOUNT_PATCH_FIELDS = frozenset({"name", "type", "currency", "icon", "color"})
CATEGORY_PATCH_FIELDS = frozenset({"name", "icon", "color", "parent_id"})
TRANSACTION_PATCH_FIELDS = frozenset(
    {"amount", "type", "account_id", "to_account_id", "category_id", "date", "note", "tags"}
)


@dataclass
class Scope:
    """One open transactional scope."""

    tables: frozenset[str]
    snapshot: dict[str, dict[str, Any]]
    touched: set[str] = field(default_factory=set)


def _reported(method: Callable[..., T]) -> Callable[..., T]:
    """Send ledger errors raised by a public mutation to the store's reporter."""

    @functools.wraps(method)
    def wrapper(self: "LedgerStore", *args: Any, **kwargs: Any) -> T:
        try:
            return method(self, *args, **kwargs)
        except LedgerError as e:
            if not getattr(e, "_reported", False):
                e._reported = True  # type: ignore[attr-defined]
                self.reporter.report(e)
            raise

    return wrapper


def _parse_type(value: "str | TransactionType") -> TransactionType:
    if isinstance(value, TransactionType):
        return value
    try:
        return TransactionType(value)
    except ValueError as e:
        raise ValidationError(f"Unknown transaction type: {value!r}") from e


def _parse_account_type(value: "str | AccountType") -> AccountType:
    try:
        return AccountType.parse(value)
    except ValueError as e:
        raise ValidationError(f"Unknown account type: {value!r}") from e


def _parse_amount(value: Any) -> Decimal:
    try:
        amount = round_to_cents(to_decimal(value))
    except ValueError as e:
        raise ValidationError(f"Invalid amount: {value!r}") from e
    if not is_positive(amount):
        raise ValidationError(f"Amount must be greater than zero, got {value!r}")
    return amount


def _parse_date(value: Any) -> datetime:
    try:
        return truncate_to_ms(coerce_datetime(value))
    except ValueError as e:
        raise ValidationError(f"Invalid date: {value!r}") from e


def _required_name(name: Any, what: str) -> str:
    text = str(name or "").strip()
    if not text:
        raise ValidationError(f"{what} name is required")
    return text


class LedgerStore:
    """
    In-memory ledger with transactional scopes and optional persistence.

    Args:
        datastore: Where committed scopes are saved (None keeps the ledger in memory)
        bus: Change notification bus for live queries
        reporter: Collaborator told about every failed mutation
        default_currency: Currency of new accounts
        clock: Source of "now" for createdAt/updatedAt stamps
    """

    def __init__(
        self,
        datastore: DataStore | None = None,
        bus: ChangeBus | None = None,
        reporter: ErrorReporter | None = None,
        default_currency: str = "CNY",
        clock: Callable[[], datetime] = now_ms,
    ):
        self.datastore = datastore
        self.bus = bus or ChangeBus()
        self.reporter: ErrorReporter = reporter or LoggingErrorReporter()
        self.default_currency = default_currency
        self._clock = clock

        self._tables: dict[str, dict[str, Any]] = {ACCOUNTS: {}, CATEGORIES: {}, TRANSACTIONS: {}}
        self._scope: Scope | None = None
        self._index: TransactionIndex | None = None

    @classmethod
    def open(cls, datastore: DataStore, **kwargs: Any) -> "LedgerStore":
        """
        Open a store backed by ``datastore``, loading any persisted ledger.

        Raises:
            StorageError: If the persisted ledger cannot be read
            BackupFormatError: If the persisted ledger is not a valid backup
        """
        store = cls(datastore=datastore, **kwargs)
        if datastore.exists():
            try:
                data = datastore.load()
            except (OSError, ValueError) as e:
                raise StorageError(f"Could not load ledger: {e}") from e
            payload = parse_backup(data)
            store._tables = {
                ACCOUNTS: {a.id: a for a in payload.accounts},
                CATEGORIES: {c.id: c for c in payload.categories},
                TRANSACTIONS: {t.id: t for t in payload.transactions},
            }
            logger.info(
                f"Loaded ledger: {len(payload.accounts)} accounts, "
                f"{len(payload.categories)} categories, {len(payload.transactions)} transactions"
            )
        return store

    # ------------------------------------------------------------------
    # Transactional scope

    @property
    def in_transaction(self) -> bool:
        return self._scope is not None

    @contextmanager
    def transaction(self, *tables: str) -> Iterator[Scope]:
        """
        Open an all-or-nothing scope over the named collections.

        Nested scopes join the enclosing scope and must name a subset of its
        collections. On any exception the touched collections are restored
        to their state at scope entry; non-ledger exceptions are re-raised as
        StorageError. On success the ledger is persisted once and live
        queries on the touched collections are notified.

        Args:
            *tables: Collection names (default: all three)
        """
        requested = frozenset(tables) or ALL_TABLES
        unknown = requested - ALL_TABLES
        if unknown:
            raise ValueError(f"Unknown collections: {sorted(unknown)}")

        if self._scope is not None:
            missing = requested - self._scope.tables
            if missing:
                raise StorageError(f"Nested scope needs collections outside the enclosing scope: {sorted(missing)}")
            yield self._scope
            return

        scope = Scope(tables=requested, snapshot={t: dict(self._tables[t]) for t in requested})
        self._scope = scope
        try:
            yield scope
            if scope.touched and self.datastore is not None:
                self.datastore.save(self._serialize())
        except LedgerError:
            self._rollback(scope)
            raise
        except Exception as e:
            self._rollback(scope)
            raise StorageError(f"Storage failure, changes rolled back: {e}") from e
        except BaseException:
            self._rollback(scope)
            raise
        finally:
            self._scope = None

        if scope.touched:
            self.bus.publish(scope.touched)

    def _rollback(self, scope: Scope) -> None:
        for table, rows in scope.snapshot.items():
            self._tables[table] = rows
        self._index = None
        if scope.touched:
            logger.warning(f"Rolled back changes to {sorted(scope.touched)}")

    def _writable(self, table: str) -> dict[str, Any]:
        if self._scope is None or table not in self._scope.tables:
            raise StorageError(f"Write to '{table}' outside a transactional scope")
        self._scope.touched.add(table)
        if table == TRANSACTIONS:
            self._index = None
        return self._tables[table]

    def _put(self, table: str, entity: Any) -> None:
        self._writable(table)[entity.id] = entity

    def _insert(self, table: str, entity: Any) -> None:
        rows = self._writable(table)
        if entity.id in rows:
            raise StorageError(f"Duplicate id in {table}: {entity.id}")
        rows[entity.id] = entity

    def _delete(self, table: str, entity_id: str) -> None:
        self._writable(table).pop(entity_id, None)

    def _clear(self, table: str) -> None:
        self._writable(table)
        self._tables[table] = {}

    def _serialize(self) -> dict[str, Any]:
        return serialize_collections(self.accounts(), self.categories(), self.transactions())

    # ------------------------------------------------------------------
    # Queries

    @property
    def index(self) -> TransactionIndex:
        """Secondary indexes over the current transactions."""
        if self._index is None:
            self._index = TransactionIndex(self._tables[TRANSACTIONS].values())
        return self._index

    def accounts(self) -> list[Account]:
        return list(self._tables[ACCOUNTS].values())

    def categories(self) -> list[Category]:
        return list(self._tables[CATEGORIES].values())

    def transactions(self) -> list[Transaction]:
        """All transactions ordered by (date, id)."""
        return self.index.ordered()

    def get_account(self, account_id: str) -> Account | None:
        return self._tables[ACCOUNTS].get(account_id)

    def get_category(self, category_id: str) -> Category | None:
        return self._tables[CATEGORIES].get(category_id)

    def get_transaction(self, transaction_id: str) -> Transaction | None:
        return self._tables[TRANSACTIONS].get(transaction_id)

    def require_account(self, account_id: str | None) -> Account:
        """Get an account or raise ReferentialError."""
        account = self.get_account(account_id) if account_id else None
        if account is None:
            raise ReferentialError(f"Account not found: {account_id}")
        return account

    def require_category(self, category_id: str | None) -> Category:
        """Get a category or raise ReferentialError."""
        category = self.get_category(category_id) if category_id else None
        if category is None:
            raise ReferentialError(f"Category not found: {category_id}")
        return category

    def find_category(self, type: "str | TransactionType", name: str) -> Category | None:
        """Find a category by (type, name)."""
        key = (_parse_type(type), name)
        for category in self._tables[CATEGORIES].values():
            if category.key == key:
                return category
        return None

    def transactions_between(
        self, start: datetime, end: datetime, type: "str | TransactionType | None" = None
    ) -> list[Transaction]:
        """Transactions dated within ``[start, end]`` (both inclusive)."""
        tx_type = _parse_type(type) if type is not None else None
        return self.index.between(start, end, tx_type)

    def transactions_for_account(self, account_id: str) -> list[Transaction]:
        """Transactions using the account as source or destination."""
        return self.index.for_account(account_id)

    def transactions_for_category(self, category_id: str) -> list[Transaction]:
        return self.index.for_category(category_id)

    def subscribe(self, query: Callable[[], T], tables: Iterable[str] = ALL_TABLES) -> LiveQuery[T]:
        """
        Create a live query that re-runs when ``tables`` change.

        Args:
            query: Read-only function of the store's current state
            tables: Collections the query reads from
        """
        return LiveQuery(self.bus, query, tables)

    # ------------------------------------------------------------------
    # Balances

    def _apply_effects(self, tx: Transaction, reverse: bool = False) -> None:
        now = self._clock()
        for account_id, delta in tx.effects():
            account = self.get_account(account_id)
            if account is None:
                if reverse:
                    # Dangling reference from a restored backup; nothing to undo.
                    continue
                raise ReferentialError(f"Account not found: {account_id}")
            balance = subtract(account.balance, delta) if reverse else add(account.balance, delta)
            self._put(ACCOUNTS, replace(account, balance=round_to_cents(balance), updated_at=now))

    @_reported
    def recompute_balance(self, account_id: str) -> Decimal:
        """
        Recompute an account's balance from scratch.

        This is the authoritative definition of a correct balance; the
        incremental updates made by transaction mutations always agree with it.

        Returns:
            The recomputed balance
        """
        account = self.require_account(account_id)
        balance = round_to_cents(
            sum_amounts(tx.effect_on(account_id) for tx in self.index.for_account(account_id))
        )
        with self.transaction(ACCOUNTS):
            self._put(ACCOUNTS, replace(account, balance=balance, updated_at=self._clock()))
        return balance

    @_reported
    def recompute_balances(self) -> dict[str, Decimal]:
        """Recompute every account's balance in one scope."""
        with self.transaction(ACCOUNTS):
            return {account.id: self.recompute_balance(account.id) for account in self.accounts()}

    # ------------------------------------------------------------------
    # Accounts

    @_reported
    def add_account(
        self,
        name: str,
        type: "str | AccountType" = AccountType.CASH,
        currency: str | None = None,
        icon: str | None = None,
        color: str | None = None,
    ) -> Account:
        """Create an account with a zero balance."""
        now = self._clock()
        account = Account(
            id=generate_id(now),
            name=_required_name(name, "Account"),
            type=_parse_account_type(type),
            balance=Decimal("0.00"),
            currency=currency or self.default_currency,
            icon=icon,
            color=color,
            created_at=now,
            updated_at=now,
        )
        with self.transaction(ACCOUNTS):
            self._insert(ACCOUNTS, account)
        return account

    @_reported
    def update_account(self, account_id: str, **patch: Any) -> Account:
        """
        Update account details.

        The balance is not patchable; it changes only through transactions.
        """
        account = self.require_account(account_id)
        if "balance" in patch:
            raise ValidationError("Account balance changes only through transactions")
        unknown = set(patch) - ACCOUNT_PATCH_FIELDS
        if unknown:
            raise ValidationError(f"Unknown account fields: {sorted(unknown)}")

        changes = dict(patch)
        if "name" in changes:
            changes["name"] = _required_name(changes["name"], "Account")
        if "type" in changes:
            changes["type"] = _parse_account_type(changes["type"])

        updated = replace(account, **changes, updated_at=self._clock())
        with self.transaction(ACCOUNTS):
            self._put(ACCOUNTS, updated)
        return updated

    @_reported
    def delete_account(self, account_id: str, cascade: bool = False) -> list[Transaction]:
        """
        Delete an account.

        Deletion is refused while transactions reference the account. With
        ``cascade=True`` those transactions are deleted in the same scope,
        their effects on counterpart accounts reversed.

        Returns:
            Transactions deleted by the cascade

        Raises:
            ReferentialError: If the account is unknown, or referenced and not cascading
        """
        account = self.require_account(account_id)
        referencing = self.transactions_for_account(account_id)
        if referencing and not cascade:
            raise ReferentialError(
                f"Account '{account.name}' is referenced by {len(referencing)} transactions"
            )

        with self.transaction(ACCOUNTS, TRANSACTIONS):
            for tx in referencing:
                self._apply_effects(tx, reverse=True)
                self._delete(TRANSACTIONS, tx.id)
            self._delete(ACCOUNTS, account_id)

        if referencing:
            logger.info(f"Deleted account '{account.name}' and {len(referencing)} transactions")
        return referencing

    # ------------------------------------------------------------------
    # Categories

    def _check_parent(self, parent_id: str | None, category_id: str | None = None) -> None:
        if parent_id is None:
            return
        if parent_id == category_id:
            raise ValidationError("A category cannot be its own parent")
        self.require_category(parent_id)

    @_reported
    def add_category(
        self,
        name: str,
        type: "str | TransactionType",
        parent_id: str | None = None,
        icon: str | None = None,
        color: str | None = None,
        is_builtin: bool = False,
    ) -> Category:
        """Create a category; (type, name) must be unique."""
        name = _required_name(name, "Category")
        cat_type = _parse_type(type)
        if self.find_category(cat_type, name) is not None:
            raise ValidationError(f"Category already exists: {cat_type.value}:{name}")
        self._check_parent(parent_id)

        now = self._clock()
        category = Category(
            id=generate_id(now),
            name=name,
            type=cat_type,
            is_builtin=is_builtin,
            parent_id=parent_id,
            icon=icon,
            color=color,
            created_at=now,
            updated_at=now,
        )
        with self.transaction(CATEGORIES):
            self._insert(CATEGORIES, category)
        return category

    @_reported
    def update_category(self, category_id: str, **patch: Any) -> Category:
        """Rename, recolor or re-parent a category."""
        category = self.require_category(category_id)
        unknown = set(patch) - CATEGORY_PATCH_FIELDS
        if unknown:
            raise ValidationError(f"Unknown category fields: {sorted(unknown)}")

        changes = dict(patch)
        if "name" in changes:
            changes["name"] = _required_name(changes["name"], "Category")
            existing = self.find_category(category.type, changes["name"])
            if existing is not None and existing.id != category_id:
                raise ValidationError(f"Category already exists: {category.type.value}:{changes['name']}")
        if "parent_id" in changes:
            self._check_parent(changes["parent_id"], category_id)

        updated = replace(category, **changes, updated_at=self._clock())
        with self.transaction(CATEGORIES):
            self._put(CATEGORIES, updated)
        return updated

    @_reported
    def delete_category(self, category_id: str) -> Category:
        """
        Delete a user category.

        Transactions keep their (now dangling) ``category_id``; readers treat
        an unresolved category as uncategorized.

        Raises:
            BuiltinProtectionError: If the category is builtin
        """
        category = self.require_category(category_id)
        if category.is_builtin:
            raise BuiltinProtectionError(f"Builtin category '{category.name}' cannot be deleted")
        with self.transaction(CATEGORIES):
            self._delete(CATEGORIES, category_id)
        return category

    @_reported
    def bulk_add_categories(self, categories: Iterable[Category]) -> int:
        """Insert prepared categories in one scope. Returns the count inserted."""
        count = 0
        with self.transaction(CATEGORIES):
            for category in categories:
                self._insert(CATEGORIES, category)
                count += 1
        return count

    # ------------------------------------------------------------------
    # Transactions

    def _validate_transaction(self, tx: Transaction) -> None:
        if not is_positive(tx.amount):
            raise ValidationError(f"Amount must be greater than zero, got {tx.amount}")
        if not tx.account_id:
            raise ValidationError("An account is required")
        self.require_account(tx.account_id)

        if tx.type is TransactionType.TRANSFER:
            if not tx.to_account_id:
                raise ValidationError("A transfer needs a destination account")
            if tx.to_account_id == tx.account_id:
                raise ValidationError("Cannot transfer to the same account")
            self.require_account(tx.to_account_id)
        else:
            if tx.to_account_id is not None:
                raise ValidationError(f"Only transfers have a destination account, not {tx.type.value}")
            if not tx.category_id:
                raise ValidationError(f"A category is required for {tx.type.value}")

        if tx.category_id is not None:
            category = self.require_category(tx.category_id)
            if category.type is not tx.type:
                raise ValidationError(
                    f"Category '{category.name}' is {category.type.value}, transaction is {tx.type.value}"
                )

    @_reported
    def add_transaction(
        self,
        *,
        type: "str | TransactionType",
        amount: Any,
        account_id: str,
        date: Any = None,
        to_account_id: str | None = None,
        category_id: str | None = None,
        note: str | None = None,
        tags: Iterable[str] | None = None,
    ) -> Transaction:
        """
        Record a transaction and apply its balance effect atomically.

        Income adds ``amount`` to the account, expense subtracts it, a transfer
        moves it from ``account_id`` to ``to_account_id``.

        Raises:
            ValidationError: Non-positive amount, missing category, transfer to self
            ReferentialError: Unknown account or category
        """
        now = self._clock()
        when = _parse_date(date) if date is not None else now
        tx = Transaction(
            id=generate_id(when),
            amount=_parse_amount(amount),
            type=_parse_type(type),
            account_id=account_id,
            date=when,
            to_account_id=to_account_id or None,
            category_id=category_id or None,
            note=note or None,
            tags=frozenset(tags or ()),
            created_at=now,
            updated_at=now,
        )
        self._validate_transaction(tx)

        with self.transaction(ACCOUNTS, TRANSACTIONS):
            self._insert(TRANSACTIONS, tx)
            self._apply_effects(tx)
        return tx

    @_reported
    def update_transaction(self, transaction_id: str, **patch: Any) -> Transaction:
        """
        Edit a transaction: the old effect is reversed and the new one applied
        in the same scope.

        Switching to income/expense drops ``to_account_id``; switching to a
        transfer drops a non-transfer category unless one is given.
        """
        old = self.get_transaction(transaction_id)
        if old is None:
            raise ReferentialError(f"Transaction not found: {transaction_id}")
        unknown = set(patch) - TRANSACTION_PATCH_FIELDS
        if unknown:
            raise ValidationError(f"Unknown transaction fields: {sorted(unknown)}")

        new_type = _parse_type(patch.get("type", old.type))
        changes: dict[str, Any] = {"type": new_type}
        if "amount" in patch:
            changes["amount"] = _parse_amount(patch["amount"])
        if "date" in patch:
            changes["date"] = _parse_date(patch["date"])
        if "account_id" in patch:
            changes["account_id"] = patch["account_id"]
        if "to_account_id" in patch:
            changes["to_account_id"] = patch["to_account_id"] or None
        elif new_type is not TransactionType.TRANSFER:
            changes["to_account_id"] = None
        if "category_id" in patch:
            changes["category_id"] = patch["category_id"] or None
        elif new_type is TransactionType.TRANSFER and old.type is not TransactionType.TRANSFER:
            changes["category_id"] = None
        if "note" in patch:
            changes["note"] = patch["note"] or None
        if "tags" in patch:
            changes["tags"] = frozenset(patch["tags"] or ())

        new = replace(old, **changes, updated_at=self._clock())
        self._validate_transaction(new)

        with self.transaction(ACCOUNTS, TRANSACTIONS):
            self._apply_effects(old, reverse=True)
            self._put(TRANSACTIONS, new)
            self._apply_effects(new)
        return new

    @_reported
    def delete_transaction(self, transaction_id: str) -> Transaction:
        """Remove a transaction and reverse its balance effect atomically."""
        tx = self.get_transaction(transaction_id)
        if tx is None:
            raise ReferentialError(f"Transaction not found: {transaction_id}")
        with self.transaction(ACCOUNTS, TRANSACTIONS):
            self._delete(TRANSACTIONS, transaction_id)
            self._apply_effects(tx, reverse=True)
        return tx

    @_reported
    def bulk_add_transactions(self, transactions: Iterable[Transaction]) -> int:
        """
        Insert prepared transactions in one scope without touching balances.

        Callers recompute the affected balances afterwards (see
        ``recompute_balance``). Each record is validated; one invalid record
        fails the whole scope.

        Returns:
            Count inserted
        """
        count = 0
        with self.transaction(TRANSACTIONS):
            for tx in transactions:
                self._validate_transaction(tx)
                self._insert(TRANSACTIONS, tx)
                count += 1
        return count

    # ------------------------------------------------------------------
    # Whole-ledger operations

    @_reported
    def restore_from_backup(
        self,
        accounts: Iterable[Account],
        categories: Iterable[Category],
        transactions: Iterable[Transaction],
    ) -> None:
        """
        Replace all three collections in one scope.

        Balances are taken from the backup as-is. A failing bulk insert (for
        example a duplicate id) rolls back the clear as well.
        """
        with self.transaction(ACCOUNTS, CATEGORIES, TRANSACTIONS):
            for table in (ACCOUNTS, CATEGORIES, TRANSACTIONS):
                self._clear(table)
            for account in accounts:
                self._insert(ACCOUNTS, account)
            for category in categories:
                self._insert(CATEGORIES, category)
            for tx in transactions:
                self._insert(TRANSACTIONS, tx)

        logger.info(
            f"Restored ledger: {len(self._tables[ACCOUNTS])} accounts, "
            f"{len(self._tables[CATEGORIES])} categories, {len(self._tables[TRANSACTIONS])} transactions"
        )

    @_reported
    def clear_all(self) -> None:
        """Empty all three collections in one scope."""
        with self.transaction(ACCOUNTS, CATEGORIES, TRANSACTIONS):
            for table in (ACCOUNTS, CATEGORIES, TRANSACTIONS):
                self._clear(table)
        logger.info("Cleared all ledger data")
