"""
Dashboard Engine — Session Windows
====================================
Decide which heatmap cells a trip "observed".

An observed cell holds a count (starting at 0); an unobserved cell stays
``None`` so the UI can tell "fished, caught nothing" from "not fishing".
"""

import re
from dataclasses import dataclass
from typing import List, Optional

from dashboard.buckets import BucketIndex, next_day

HOURS = list(range(24))

_HOUR_PATTERN = re.compile(r'^([0-9]{1,2}):')


def parse_hour(time_str) -> Optional[int]:
    """Hour of day from an ``H:mm``/``HH:mm`` string, or ``None`` if unusable."""
    if not time_str or not isinstance(time_str, str):
        return None
    match = _HOUR_PATTERN.match(time_str)
    if not match:
        return None
    hour = int(match.group(1))
    if hour > 23:
        return None
    return hour


@dataclass(frozen=True)
class SessionWindow:
    start_hour: Optional[int] = None
    end_hour: Optional[int] = None

    @property
    def complete(self) -> bool:
        return self.start_hour is not None and self.end_hour is not None

    @property
    def crosses_midnight(self) -> bool:
        return self.complete and self.end_hour < self.start_hour


def resolve_session_window(trip) -> SessionWindow:
    """Hours of the trip's first ``start`` and first ``end`` event."""
    start = end = None
    for event in trip.ordered_events():
        if event.type == 'start' and start is None:
            start = event
        elif event.type == 'end' and end is None:
            end = event
    return SessionWindow(
        start_hour=parse_hour(start.time) if start else None,
        end_hour=parse_hour(end.time) if end else None,
    )


def empty_grid(columns: int) -> List[list]:
    return [[None] * columns for _ in HOURS]


def _observe(grid, hours, column):
    if column is None:
        return
    for hour in hours:
        if grid[hour][column] is None:
            grid[hour][column] = 0


def mark_observed(grid, index: BucketIndex, trip, window: SessionWindow = None):
    """Upgrade the trip's observed cells from ``None`` to 0.

    Cells that already hold a value are left alone. With an incomplete
    window only the hours of the trip's individually timed events count.
    """
    if window is None:
        window = resolve_session_window(trip)
    column = index.column_for(trip.date)

    if window.crosses_midnight:
        _observe(grid, range(window.start_hour, 24), column)
        _observe(grid, range(0, window.end_hour + 1), index.column_for(next_day(trip.date)))
    elif window.complete:
        _observe(grid, range(window.start_hour, window.end_hour + 1), column)
    else:
        hours = [parse_hour(e.time) for e in trip.ordered_events()]
        _observe(grid, [h for h in hours if h is not None], column)
