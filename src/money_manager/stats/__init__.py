"""
Statistics Package

Period totals, daily series and category breakdowns with long-tail folding.
"""

from .aggregator import (
    CategoryBreakdown,
    CategorySlice,
    DailyBucket,
    StatsAggregator,
    StatsSummary,
    fold_long_tail,
)
from .ranges import (
    DateRange,
    TimeDimension,
    get_date_range,
    get_next_range_date,
    get_previous_range_date,
)

__all__ = [
    "CategoryBreakdown",
    "CategorySlice",
    "DailyBucket",
    "DateRange",
    "StatsAggregator",
    "StatsSummary",
    "TimeDimension",
    "fold_long_tail",
    "get_date_range",
    "get_next_range_date",
    "get_previous_range_date",
]
