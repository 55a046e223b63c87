#!/usr/bin/env python3
"""
First-run Seeding

Creates the default cash account and the builtin category lists. Builtin
categories cannot be deleted; users add their own beside them.
"""

import logging
from datetime import datetime

from ..core.dates import now_ms
from ..core.events import ACCOUNTS, CATEGORIES
from ..core.ids import generate_id
from ..core.models import AccountType, Category, TransactionType
from .store import LedgerStore

logger = logging.getLogger(__name__)

DEFAULT_ACCOUNT_NAME = "默认账户"

EXPENSE_CATEGORIES = (
    "餐饮", "借款", "通讯", "购物", "steam", "果蔬", "住房", "日常",
    "交通", "还款", "娱乐", "基金", "日用", "旅行", "办公", "医疗",
    "学习", "发红包", "美容", "书籍", "其他", "捐款", "运动", "股票",
    "红包", "贷款", "收入", "报销", "定金", "理财", "保险",
)  # fmt: skip

INCOME_CATEGORIES = (
    "餐饮", "还款", "理财", "工资", "其他", "通讯", "收红包", "购物",
    "报销", "住房", "steam", "退款", "交通", "礼金", "基金", "医疗",
    "娱乐", "办公", "日用", "美容", "果蔬", "书籍", "借款", "红包",
    "股票", "旅行", "贷款",
)  # fmt: skip


def builtin_categories(now: datetime) -> list[Category]:
    """Builtin expense then income categories, ids in list order."""
    names = [(TransactionType.EXPENSE, name) for name in EXPENSE_CATEGORIES]
    names += [(TransactionType.INCOME, name) for name in INCOME_CATEGORIES]
    return [
        Category(
            id=generate_id(now, i),
            name=name,
            type=cat_type,
            is_builtin=True,
            created_at=now,
            updated_at=now,
        )
        for i, (cat_type, name) in enumerate(names)
    ]


def seed_database(store: LedgerStore) -> bool:
    """
    Seed an empty ledger.

    Does nothing when any account already exists, so it is safe to call on
    every start.

    Returns:
        True if the ledger was seeded
    """
    if store.accounts():
        return False

    now = now_ms()
    with store.transaction(ACCOUNTS, CATEGORIES):
        store.add_account(DEFAULT_ACCOUNT_NAME, AccountType.CASH, currency="CNY", icon="wallet", color="green")
        store.bulk_add_categories(builtin_categories(now))

    logger.info(
        f"Seeded ledger with '{DEFAULT_ACCOUNT_NAME}' and "
        f"{len(EXPENSE_CATEGORIES) + len(INCOME_CATEGORIES)} builtin categories"
    )
    return True
