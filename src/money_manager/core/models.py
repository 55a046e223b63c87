#!/usr/bin/env python3
"""
Core Data Models for Money Manager

Accounts, categories and transactions of the ledger. Entities are frozen:
the store replaces them wholesale, which keeps transactional snapshots cheap
and stops callers from mutating a balance behind the store's back.

Serialized form (backups and the persisted ledger) uses camelCase keys,
epoch-millisecond timestamps and JSON numbers for money.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from .currency import to_decimal, to_json_number
from .dates import coerce_datetime, to_timestamp_ms
from .money import add, negate


class TransactionType(Enum):
    """Kinds of ledger entries. Categories use the same three kinds."""

    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class AccountType(Enum):
    """Kinds of accounts."""

    CASH = "cash"
    BANK = "bank"
    MOBILE_WALLET = "mobile-wallet"
    CREDIT_CARD = "credit-card"
    OTHER = "other"

    @classmethod
    def parse(cls, value: "str | AccountType") -> "AccountType":
        """Parse a type label, accepting the labels of older backups."""
        if isinstance(value, AccountType):
            return value
        return _LEGACY_ACCOUNT_TYPES.get(value) or cls(value)


_LEGACY_ACCOUNT_TYPES = {
    "alipay": AccountType.MOBILE_WALLET,
    "wechat": AccountType.MOBILE_WALLET,
    "mobile_wallet": AccountType.MOBILE_WALLET,
    "credit_card": AccountType.CREDIT_CARD,
}


def _optional(data: dict[str, Any], key: str) -> Any:
    value = data.get(key)
    return None if value in (None, "") else value


@dataclass(frozen=True)
class Account:
    """
    Financial account (wallet, bank card, credit card...).

    ``balance`` always equals the signed sum of every transaction that
    touches this account; only the ledger store changes it.
    """

    id: str
    name: str
    type: AccountType
    balance: Decimal = Decimal(0)
    currency: str = "CNY"

    icon: str | None = None
    color: str | None = None

    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the backup dictionary form."""
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "balance": to_json_number(self.balance),
            "currency": self.currency,
        }
        if self.icon is not None:
            data["icon"] = self.icon
        if self.color is not None:
            data["color"] = self.color
        data["createdAt"] = to_timestamp_ms(self.created_at)
        data["updatedAt"] = to_timestamp_ms(self.updated_at)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Account":
        """Create Account from its backup dictionary form."""
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            type=AccountType.parse(data.get("type", "other")),
            balance=to_decimal(data.get("balance")),
            currency=data.get("currency") or "CNY",
            icon=_optional(data, "icon"),
            color=_optional(data, "color"),
            created_at=coerce_datetime(data["createdAt"]) if "createdAt" in data else datetime.now(),
            updated_at=coerce_datetime(data["updatedAt"]) if "updatedAt" in data else datetime.now(),
        )


@dataclass(frozen=True)
class Category:
    """
    Transaction category.

    Builtin categories are seeded once and cannot be deleted. ``parent_id`` is
    stored and round-tripped but not used for rollups.
    """

    id: str
    name: str
    type: TransactionType
    is_builtin: bool = False
    parent_id: str | None = None

    icon: str | None = None
    color: str | None = None

    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @property
    def key(self) -> tuple[TransactionType, str]:
        """Identity used when matching imported category names."""
        return (self.type, self.name)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the backup dictionary form."""
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
        }
        if self.is_builtin:
            data["isBuiltin"] = True
        if self.parent_id is not None:
            data["parentId"] = self.parent_id
        if self.icon is not None:
            data["icon"] = self.icon
        if self.color is not None:
            data["color"] = self.color
        data["createdAt"] = to_timestamp_ms(self.created_at)
        data["updatedAt"] = to_timestamp_ms(self.updated_at)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Category":
        """Create Category from its backup dictionary form."""
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            type=TransactionType(data["type"]),
            is_builtin=bool(data.get("isBuiltin", False)),
            parent_id=_optional(data, "parentId"),
            icon=_optional(data, "icon"),
            color=_optional(data, "color"),
            created_at=coerce_datetime(data["createdAt"]) if "createdAt" in data else datetime.now(),
            updated_at=coerce_datetime(data["updatedAt"]) if "updatedAt" in data else datetime.now(),
        )


@dataclass(frozen=True)
class Transaction:
    """
    Ledger entry.

    ``amount`` is always positive; the direction of its effect on balances is
    derived from ``type`` alone (see ``effects``).
    """

    id: str
    amount: Decimal
    type: TransactionType
    account_id: str
    date: datetime

    to_account_id: str | None = None
    category_id: str | None = None
    note: str | None = None
    tags: frozenset[str] = frozenset()

    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @property
    def account_ids(self) -> tuple[str, ...]:
        """Accounts touched by this transaction (source first)."""
        if self.to_account_id is not None:
            return (self.account_id, self.to_account_id)
        return (self.account_id,)

    def effects(self) -> list[tuple[str, Decimal]]:
        """
        Signed balance effects of this transaction.

        Returns:
            ``(account_id, signed_amount)`` pairs: income credits the account,
            expense debits it, transfer moves the amount from ``account_id``
            to ``to_account_id``.
        """
        if self.type is TransactionType.INCOME:
            return [(self.account_id, self.amount)]
        elif self.type is TransactionType.EXPENSE:
            return [(self.account_id, negate(self.amount))]
        elif self.type is TransactionType.TRANSFER:
            if self.to_account_id is None:
                raise ValueError(f"Transfer {self.id} has no destination account")
            return [(self.account_id, negate(self.amount)), (self.to_account_id, self.amount)]
        raise ValueError(f"Unknown transaction type: {self.type!r}")

    def effect_on(self, account_id: str) -> Decimal:
        """Net signed effect of this transaction on one account."""
        total = Decimal(0)
        for effect_account, delta in self.effects():
            if effect_account == account_id:
                total = add(total, delta)
        return total

    def to_dict(self) -> dict[str, Any]:
        """Convert to the backup dictionary form."""
        data: dict[str, Any] = {
            "id": self.id,
            "amount": to_json_number(self.amount),
            "type": self.type.value,
            "accountId": self.account_id,
        }
        if self.to_account_id is not None:
            data["toAccountId"] = self.to_account_id
        if self.category_id is not None:
            data["categoryId"] = self.category_id
        data["date"] = to_timestamp_ms(self.date)
        if self.note:
            data["note"] = self.note
        if self.tags:
            data["tags"] = sorted(self.tags)
        data["createdAt"] = to_timestamp_ms(self.created_at)
        data["updatedAt"] = to_timestamp_ms(self.updated_at)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Transaction":
        """Create Transaction from its backup dictionary form."""
        return cls(
            id=str(data["id"]),
            amount=to_decimal(data["amount"]),
            type=TransactionType(data["type"]),
            account_id=str(data["accountId"]),
            date=coerce_datetime(data["date"]),
            to_account_id=_optional(data, "toAccountId"),
            category_id=_optional(data, "categoryId"),
            note=_optional(data, "note"),
            tags=frozenset(data.get("tags") or ()),
            created_at=coerce_datetime(data["createdAt"]) if "createdAt" in data else datetime.now(),
            updated_at=coerce_datetime(data["updatedAt"]) if "updatedAt" in data else datetime.now(),
        )
