#!/usr/bin/env python3
"""
Legacy TXT Format Constants

One record per line, five fields joined by SPACE + SOH + SPACE:

    记账日期 \x01 消费类别 \x01 消费详情 \x01 消费金额 \x01 消费备注
    2017-11-01 00:01 \x01 支出 \x01 餐饮 \x01 -3.00 \x01 早饭

Fields are date-time, type label, category name, signed amount and note.
"""

from ..core.models import TransactionType

SOH = "\x01"
DELIMITER = f" {SOH} "

HEADER_FIELDS = ("记账日期", "消费类别", "消费详情", "消费金额", "消费备注")
HEADER = DELIMITER.join(HEADER_FIELDS)

INCOME_LABEL = "收入"
EXPENSE_LABEL = "支出"
TRANSFER_LABEL = "转账"

TYPE_LABELS = {
    TransactionType.INCOME: INCOME_LABEL,
    TransactionType.EXPENSE: EXPENSE_LABEL,
    TransactionType.TRANSFER: TRANSFER_LABEL,
}

# Category name written when a transaction's category is missing or unresolved
FALLBACK_CATEGORY = "其他"

# A record needs date, type, category and amount; the note is optional
MIN_FIELDS = 4


def is_header(line: str) -> bool:
    """True for the literal header line (with or without spaced delimiters)."""
    return line.startswith(HEADER_FIELDS[0])


def label_to_type(label: str) -> TransactionType:
    """Map a type label; anything but the income label is an expense."""
    return TransactionType.INCOME if label.strip() == INCOME_LABEL else TransactionType.EXPENSE


def type_to_label(tx_type: TransactionType) -> str:
    return TYPE_LABELS[tx_type]
