#!/usr/bin/env python3
"""
Time Dimensions and Date Ranges

Maps a dimension plus a reference date to an inclusive ``[start, end]``
window, and steps reference dates backwards and forwards by one period.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum

from ..core.dates import (
    coerce_datetime,
    end_of_day,
    end_of_month,
    end_of_week,
    end_of_year,
    shift_months,
    start_of_day,
    start_of_month,
    start_of_week,
    start_of_year,
)


class TimeDimension(Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    ALL = "all"


@dataclass(frozen=True)
class DateRange:
    """Inclusive datetime window."""

    start: datetime
    end: datetime

    @property
    def span_days(self) -> float:
        """Length of the window in days."""
        return (self.end - self.start) / timedelta(days=1)

    def contains(self, value: datetime) -> bool:
        return self.start <= value <= self.end

    def __str__(self) -> str:
        if self.start == datetime.min and self.end == datetime.max:
            return "all time"
        return f"{self.start:%Y-%m-%d} to {self.end:%Y-%m-%d}"


ALL_TIME = DateRange(datetime.min, datetime.max)


def get_date_range(dimension: TimeDimension | str, when: date | datetime) -> DateRange:
    """
    Resolve the window of ``dimension`` containing ``when``.

    Weeks start on Monday. ``all`` spans every representable datetime. A
    plain date is taken as midnight of that day.
    """
    dimension = TimeDimension(dimension)
    ref = coerce_datetime(when)
    if dimension is TimeDimension.DAY:
        return DateRange(start_of_day(ref), end_of_day(ref))
    elif dimension is TimeDimension.WEEK:
        return DateRange(start_of_week(ref), end_of_week(ref))
    elif dimension is TimeDimension.MONTH:
        return DateRange(start_of_month(ref), end_of_month(ref))
    elif dimension is TimeDimension.YEAR:
        return DateRange(start_of_year(ref), end_of_year(ref))
    elif dimension is TimeDimension.ALL:
        return ALL_TIME
    raise ValueError(f"Unknown time dimension: {dimension!r}")


def _step(dimension: TimeDimension | str, when: date | datetime, direction: int) -> datetime:
    dimension = TimeDimension(dimension)
    ref = coerce_datetime(when)
    if dimension is TimeDimension.DAY:
        return ref + timedelta(days=direction)
    elif dimension is TimeDimension.WEEK:
        return ref + timedelta(weeks=direction)
    elif dimension is TimeDimension.MONTH:
        return shift_months(ref, direction)
    elif dimension is TimeDimension.YEAR:
        return shift_months(ref, 12 * direction)
    return ref


def get_previous_range_date(dimension: TimeDimension | str, when: date | datetime) -> datetime:
    """Reference date one period earlier (``all`` is unchanged)."""
    return _step(dimension, when, -1)


def get_next_range_date(dimension: TimeDimension | str, when: date | datetime) -> datetime:
    """Reference date one period later (``all`` is unchanged)."""
    return _step(dimension, when, 1)
