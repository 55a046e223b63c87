#!/usr/bin/env python3
"""
Legacy TXT Parser

Turns legacy export text into ``ParsedRecord`` objects. A bad line never
fails the file: it is logged with its 1-based line number and dropped.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from ..core.currency import safe_parse_amount
from ..core.dates import parse_legacy_datetime
from ..core.errors import ValidationError
from ..core.models import TransactionType
from ..core.money import is_positive, round_to_cents
from .format import MIN_FIELDS, SOH, is_header, label_to_type

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedRecord:
    """One legacy record; ``amount`` is unsigned, direction comes from ``type``."""

    date: datetime
    type: TransactionType
    category_name: str
    amount: Decimal
    note: str = ""
    line_number: int = 0


@dataclass
class ParseResult:
    """Records parsed from a file plus the line numbers that were dropped."""

    records: list[ParsedRecord] = field(default_factory=list)
    dropped_lines: list[int] = field(default_factory=list)

    @property
    def parsed_count(self) -> int:
        return len(self.records)

    @property
    def dropped_count(self) -> int:
        return len(self.dropped_lines)


def parse_line(line: str, line_number: int = 0) -> ParsedRecord:
    """
    Parse one record line.

    Splitting on the bare SOH and trimming each field accepts both the
    spaced delimiter and the unspaced variant.

    Raises:
        ValidationError: Too few fields, unparseable date, zero or non-numeric amount
    """
    parts = [part.strip() for part in line.split(SOH)]
    if len(parts) < MIN_FIELDS:
        raise ValidationError(f"expected at least {MIN_FIELDS} fields, got {len(parts)}")

    date_text, type_label, category_name, amount_text, *note_parts = parts

    date = parse_legacy_datetime(date_text)
    if date is None:
        raise ValidationError(f"invalid date {date_text!r}")

    amount = safe_parse_amount(amount_text)
    if amount is None:
        raise ValidationError(f"invalid amount {amount_text!r}")
    amount = round_to_cents(abs(amount))
    if not is_positive(amount):
        raise ValidationError(f"zero amount {amount_text!r}")

    return ParsedRecord(
        date=date,
        type=label_to_type(type_label),
        category_name=category_name,
        amount=amount,
        note=" ".join(note_parts).strip(),
        line_number=line_number,
    )


def parse_legacy_txt(text: str) -> ParseResult:
    """
    Parse legacy export text.

    Blank lines and the header are skipped silently. A leading BOM and
    ``\\r\\n`` line endings are tolerated.

    Args:
        text: Whole file contents

    Returns:
        ParseResult with records in file order
    """
    result = ParseResult()
    for line_number, raw in enumerate(text.lstrip("\ufeff").splitlines(), start=1):
        line = raw.strip()
        if not line or is_header(line):
            continue
        try:
            result.records.append(parse_line(line, line_number))
        except ValidationError as e:
            logger.warning(f"Skipping line {line_number}: {e}")
            result.dropped_lines.append(line_number)

    logger.debug(f"Parsed {result.parsed_count} records, dropped {result.dropped_count} lines")
    return result
