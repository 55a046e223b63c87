#!/usr/bin/env python3
"""
Date and Timestamp Helpers

All ledger datetimes are naive local times, matching how a personal
bookkeeping app records "when did I buy breakfast". Persisted forms are
epoch milliseconds.
"""

from datetime import date, datetime, time, timedelta

MINUTE_MS = 60_000

# Legacy text uses minute precision; the other formats appear in hand-edited files.
LEGACY_DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%Y-%m-%d",
)


def to_timestamp_ms(value: datetime) -> int:
    """
    Convert a naive local datetime to epoch milliseconds.

    Args:
        value: Datetime to convert

    Returns:
        Milliseconds since the Unix epoch
    """
    seconds = int(value.replace(microsecond=0).timestamp())
    return seconds * 1000 + value.microsecond // 1000


def from_timestamp_ms(ms: int) -> datetime:
    """Convert epoch milliseconds to a naive local datetime."""
    seconds, millis = divmod(int(ms), 1000)
    return datetime.fromtimestamp(seconds).replace(microsecond=millis * 1000)


def truncate_to_ms(value: datetime) -> datetime:
    """Drop sub-millisecond precision, which the persisted form cannot hold."""
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def now_ms() -> datetime:
    """Current local time at millisecond precision."""
    return truncate_to_ms(datetime.now())


def coerce_datetime(value: datetime | date | int | float | str) -> datetime:
    """
    Accept the datetime shapes found in backups and API calls.

    Epoch milliseconds (the persisted form), ISO strings, dates and
    datetimes are all normalized to a naive datetime.

    Raises:
        ValueError: If the value cannot be interpreted as a datetime
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, bool):
        raise ValueError(f"Not a datetime: {value!r}")
    if isinstance(value, (int, float)):
        return from_timestamp_ms(int(value))
    if isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone().replace(tzinfo=None)
        return parsed
    raise ValueError(f"Not a datetime: {value!r}")


def parse_legacy_datetime(text: str) -> datetime | None:
    """Parse a legacy record date ("2017-11-01 00:01"); None if unparseable."""
    text = text.strip()
    for fmt in LEGACY_DATETIME_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def format_legacy_datetime(value: datetime) -> str:
    """Format as legacy "YYYY-MM-DD HH:mm"."""
    return value.strftime("%Y-%m-%d %H:%M")


def minute_bucket(value: datetime) -> int:
    """Whole minutes since the epoch, used for duplicate signatures."""
    return to_timestamp_ms(value) // MINUTE_MS


# Calendar boundaries. Ends are inclusive (last microsecond of the period).


def start_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.min)


def end_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.max)


def start_of_week(value: datetime) -> datetime:
    """Monday 00:00 of the week containing ``value``."""
    return start_of_day(value) - timedelta(days=value.weekday())


def end_of_week(value: datetime) -> datetime:
    return end_of_day(start_of_week(value) + timedelta(days=6))


def start_of_month(value: datetime) -> datetime:
    return datetime.combine(value.date().replace(day=1), time.min)


def end_of_month(value: datetime) -> datetime:
    first_of_next = (value.date().replace(day=28) + timedelta(days=4)).replace(day=1)
    return datetime.combine(first_of_next - timedelta(days=1), time.max)


def start_of_year(value: datetime) -> datetime:
    return datetime(value.year, 1, 1)


def end_of_year(value: datetime) -> datetime:
    return datetime.combine(date(value.year, 12, 31), time.max)


def shift_months(value: datetime, months: int) -> datetime:
    """
    Move by whole calendar months, clamping the day to the target month.

    Example:
        shift_months(datetime(2024, 3, 31), -1) -> datetime(2024, 2, 29)
    """
    month_index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = end_of_month(datetime(year, month, 1)).day
    return value.replace(year=year, month=month, day=min(value.day, last_day))
