"""Derived series and display helpers over indicator series.

All functions are pure: inputs are never mutated and every call returns a
new value. Series are lists of ``DataPoint`` sorted ascending by date.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

import pandas as pd

from macro_dashboard.models.market_data import DataPoint, Series


logger = logging.getLogger(__name__)


class DateRange(str, Enum):
    """Chart window choices."""
    ONE_MONTH = "1M"
    THREE_MONTHS = "3M"
    SIX_MONTHS = "6M"
    ONE_YEAR = "1Y"
    TWO_YEARS = "2Y"
    ALL = "ALL"


_RANGE_OFFSETS: dict[DateRange, pd.DateOffset] = {
    DateRange.ONE_MONTH: pd.DateOffset(months=1),
    DateRange.THREE_MONTHS: pd.DateOffset(months=3),
    DateRange.SIX_MONTHS: pd.DateOffset(months=6),
    DateRange.ONE_YEAR: pd.DateOffset(years=1),
    DateRange.TWO_YEARS: pd.DateOffset(years=2),
}

# Indicators shown as whole numbers with thousands separators
LARGE_COUNT_KEYS = frozenset({"sp500", "nonfarmPayroll"})

YOY_LOOKBACK = 12  # observations, i.e. one year of monthly data


@dataclass(frozen=True)
class Change:
    """Difference between the last two observations of a series."""

    value: float
    percent: float | None  # None when the previous value is zero


def js_round(value: float) -> int:
    """Round half up, matching the rounding used by the browser front end."""
    return math.floor(value + 0.5)


def round2(value: float) -> float:
    """Round to two decimals (scale by 100, round half up, scale back)."""
    if not math.isfinite(value):
        return value
    return js_round(value * 100) / 100


def cutoff_date(date_range: DateRange, now: datetime | None = None) -> str:
    """First date (inclusive, YYYY-MM-DD) kept by a date range."""
    if date_range is DateRange.ALL:
        raise ValueError("ALL has no cutoff")
    now = now or datetime.now(timezone.utc)
    start = pd.Timestamp(now) - _RANGE_OFFSETS[date_range]
    return start.strftime("%Y-%m-%d")


def filter_by_date_range(
    series: Series, date_range: DateRange | str, now: datetime | None = None
) -> Series:
    """
    Keep the points on or after the start of the window.

    ALL, an unknown range or an empty series return the input unchanged.
    ISO dates are zero padded, so string comparison orders them correctly.
    """
    if not series:
        return series

    try:
        date_range = DateRange(date_range)
    except ValueError:
        logger.debug(f"Unknown date range {date_range!r}, treating as ALL")
        return series

    if date_range is DateRange.ALL:
        return series

    start = cutoff_date(date_range, now)
    return [point for point in series if point.date >= start]


def calculate_yoy(series: Series) -> Series:
    """
    Year-over-year percentage change.

    Assumes monthly observations: each point is compared with the one
    12 positions earlier, not 12 calendar months earlier. Points whose
    year-ago value is zero are left out.
    """
    if len(series) <= YOY_LOOKBACK:
        return []

    result: Series = []
    for i in range(YOY_LOOKBACK, len(series)):
        current = series[i].value
        year_ago = series[i - YOY_LOOKBACK].value
        if year_ago == 0:
            logger.debug(f"Skipping YoY for {series[i].date}: year-ago value is zero")
            continue
        change = (current - year_ago) / year_ago * 100
        result.append(DataPoint(date=series[i].date, value=round2(change)))

    return result


def calculate_yield_spread(long_series: Series, short_series: Series) -> Series:
    """Long minus short yield on dates present in both series."""
    short_by_date = {point.date: point.value for point in short_series}

    return [
        DataPoint(date=point.date, value=round2(point.value - short_by_date[point.date]))
        for point in long_series
        if point.date in short_by_date
    ]


def get_latest_value(series: Series) -> DataPoint | None:
    """Last point of a pre-sorted series."""
    if not series:
        return None
    return series[-1]


def get_change(series: Series) -> Change | None:
    """Change between the last two points, or None with fewer than two."""
    if len(series) < 2:
        return None

    current = series[-1].value
    previous = series[-2].value
    delta = current - previous
    percent = delta / previous * 100 if previous != 0 else None
    return Change(value=delta, percent=percent)


def format_value(value: float, unit: str, key: str) -> str:
    """Format a value for display."""
    if not math.isfinite(value):
        return "N/A"
    if key in LARGE_COUNT_KEYS:
        whole = int(Decimal(repr(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        return f"{whole:,}"
    if unit == "%":
        return f"{value:.2f}%"
    return f"{value:.2f}"
