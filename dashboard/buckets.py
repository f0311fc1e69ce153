"""
Dashboard Engine — Time Buckets
=================================
Heatmap X-axis construction: display labels plus a calendar key → column map.

Day-grain ranges (``month``, ``last30``, ``3months``) get one column per day,
oldest first, keyed by ``YYYY-MM-DD``. The ``all`` range gets one column per
distinct year-month present in the trips, keyed by ``(year, month)``.
"""

import logging
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

DASHBOARD_RANGES = ('month', 'last30', 'all')
ADVANCED_RANGES = ('month', '3months', 'all')
DEFAULT_RANGE = 'month'

DAY_GRAIN = 'day'
MONTH_GRAIN = 'month'

LAST30_DAYS = 30


def parse_range(value, allowed=DASHBOARD_RANGES) -> str:
    """Return ``value`` when it is an accepted range, else the default range."""
    if value in allowed:
        return value
    return DEFAULT_RANGE


def _month_start(day: date, months_back: int = 0) -> date:
    month_index = day.year * 12 + (day.month - 1) - months_back
    return date(month_index // 12, month_index % 12 + 1, 1)


def get_date_range(range_key: str, today: date) -> Tuple[Optional[date], date]:
    """Inclusive ``(from, to)`` dates for a range; ``from`` is ``None`` for ``all``."""
    if range_key == 'month':
        return _month_start(today), today
    if range_key == 'last30':
        return today - timedelta(days=LAST30_DAYS - 1), today
    if range_key == '3months':
        return _month_start(today, months_back=2), today
    return None, today


def this_month_range(today: date) -> Tuple[date, date]:
    """The current calendar month up to and including ``today``."""
    return _month_start(today), today


def next_day(day: date) -> date:
    return day + timedelta(days=1)


class BucketIndex:
    """Ordered heatmap columns with a lookup from calendar date to column."""

    def __init__(self, grain: str, labels: List[str], keys: list):
        self.grain = grain
        self.labels = labels
        self._columns: Dict = {key: i for i, key in enumerate(keys)}

    def __len__(self):
        return len(self.labels)

    def key_for(self, day: date):
        if self.grain == MONTH_GRAIN:
            return (day.year, day.month)
        return day.isoformat()

    def column_for(self, day: date) -> Optional[int]:
        """Column index for ``day``, or ``None`` when it falls outside the axis."""
        return self._columns.get(self.key_for(day))


def format_day_label(day: date) -> str:
    return f'{day.month}/{day.day}'


def format_month_label(year: int, month: int) -> str:
    return f'{year}/{month:02d}'


def build_bucket_index(range_key: str, trips: Iterable, today: date) -> BucketIndex:
    """Build the heatmap X axis for ``range_key``.

    For ``all`` only the months that appear among ``trips`` become columns,
    so a user with no trips gets an empty axis.
    """
    if range_key == 'all':
        months = sorted({(trip.date.year, trip.date.month) for trip in trips})
        labels = [format_month_label(y, m) for y, m in months]
        return BucketIndex(MONTH_GRAIN, labels, months)

    start, end = get_date_range(range_key, today)
    labels, keys = [], []
    day = start
    while day <= end:
        labels.append(format_day_label(day))
        keys.append(day.isoformat())
        day = next_day(day)
    logger.debug(f"Built {len(labels)} day buckets for range {range_key}")
    return BucketIndex(DAY_GRAIN, labels, keys)
