"""
Dashboard Engine — Aggregate Builder
======================================
Fold attributed trips into rankings, histograms, heatmaps and overview counters.

The accumulating maps live on an ``AggregateState`` created per call and
passed explicitly through ``fold_trip``; nothing is shared between requests.
Rankings use Python's stable sort, so entries tied on every sort key keep the
order in which they were first seen.
"""

import math
from typing import Dict, List, Optional

from dashboard.attribution import (
    attribute_catches, catch_day, resolve_lure_usage, spot_context,
)
from dashboard.buckets import BucketIndex, this_month_range
from dashboard.sessions import HOURS, empty_grid, mark_observed, parse_hour, resolve_session_window

TOP_N = 3
LURE_BAR_LIMIT = 10
RECENT_TRIP_LIMIT = 10

SIZE_BUCKETS = (
    ('〜15', 15),
    ('〜20', 20),
    ('〜25', 25),
    ('〜30', 30),
    ('30+', None),
)


def _number(value):
    """Render whole floats as ints so sizes serialise as ``31`` rather than ``31.0``."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


class SpotStats:
    def __init__(self, area, spot_name):
        self.area = area
        self.spot_name = spot_name
        self.hit_count = 0
        self.visit_count = 0

    def to_dict(self):
        return {
            'area': self.area,
            'spotName': self.spot_name,
            'hitCount': self.hit_count,
            'visitCount': self.visit_count,
        }


class LureStats:
    def __init__(self, lure_id, info=None):
        self.lure_id = lure_id
        self.info = info
        self.hit_count = 0
        self.usage_count = 0

    @property
    def label(self):
        return self.info.label() if self.info else self.lure_id

    def to_dict(self):
        return {
            'lureId': self.lure_id,
            'label': self.label,
            'hitCount': self.hit_count,
            'usageCount': self.usage_count,
        }


class AggregateState:
    """Running totals for one aggregation call."""

    def __init__(self):
        self.area_hits: Dict[str, int] = {}
        self.spots: Dict[str, SpotStats] = {}
        self.lures: Dict[str, LureStats] = {}
        self.size_counts: Dict[str, int] = {label: 0 for label, _ in SIZE_BUCKETS}
        self.size_unknown = 0
        self.trip_count = 0


def size_bucket(size_cm) -> Optional[str]:
    """Histogram bucket for a size, or ``None`` when the size is missing, non-finite or not positive."""
    if size_cm is None or not math.isfinite(size_cm) or size_cm <= 0:
        return None
    for label, upper in SIZE_BUCKETS:
        if upper is None or size_cm <= upper:
            return label
    return None


def _spot_entry(state, context):
    entry = state.spots.get(context.key)
    if entry is None:
        entry = SpotStats(context.area, context.spot_name)
        state.spots[context.key] = entry
    return entry


def _fold_lures(state, trip):
    usage = resolve_lure_usage(trip)

    for lure_id, hits in usage.hits.items():
        entry = state.lures.get(lure_id)
        if entry is None:
            entry = LureStats(lure_id)
            state.lures[lure_id] = entry
        entry.hit_count += hits
        if lure_id in usage.latest:
            entry.info = usage.latest[lure_id]

    for lure_id, sessions in usage.sessions.items():
        entry = state.lures.get(lure_id)
        if entry is None:
            # Used but never caught on: tracked with zero hits
            entry = LureStats(lure_id, usage.first_seen.get(lure_id))
            state.lures[lure_id] = entry
        entry.usage_count += sessions


def fold_trip(state: AggregateState, trip) -> AggregateState:
    """Add one trip's spots, catches, lures and sizes to ``state``."""
    state.trip_count += 1

    for event in trip.ordered_events():
        if event.type == 'spot' and (event.area or event.spot_name):
            _spot_entry(state, spot_context(event)).visit_count += 1

    for attribution in attribute_catches(trip):
        state.area_hits[attribution.area] = state.area_hits.get(attribution.area, 0) + 1
        _spot_entry(state, attribution.spot).hit_count += 1

        bucket = size_bucket(attribution.catch.size_cm)
        if bucket is None:
            state.size_unknown += 1
        else:
            state.size_counts[bucket] += 1

    _fold_lures(state, trip)
    return state


def fold_trips(trips) -> AggregateState:
    state = AggregateState()
    for trip in trips:
        fold_trip(state, trip)
    return state


# ---------------------------------------------------------------------------
# Rankings
# ---------------------------------------------------------------------------

def top_areas(state: AggregateState, limit: int = TOP_N) -> List[dict]:
    ranked = sorted(state.area_hits.items(), key=lambda item: -item[1])
    return [{'area': area, 'hitCount': hits} for area, hits in ranked[:limit]]


def top_spots(state: AggregateState, limit: int = TOP_N) -> List[dict]:
    ranked = sorted(state.spots.values(), key=lambda s: (-s.hit_count, -s.visit_count))
    return [s.to_dict() for s in ranked[:limit]]


def lure_ranking(state: AggregateState) -> List[dict]:
    """Every tracked lure, most hits first, then most usage sessions."""
    ranked = sorted(state.lures.values(), key=lambda s: (-s.hit_count, -s.usage_count))
    return [s.to_dict() for s in ranked]


def size_histogram(state: AggregateState) -> List[dict]:
    return [{'bucketLabel': label, 'count': state.size_counts[label]} for label, _ in SIZE_BUCKETS]


# ---------------------------------------------------------------------------
# Overview counters
# ---------------------------------------------------------------------------

def _round_half_up(value, digits=1):
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def build_overview(trips, today, recent_limit: int = RECENT_TRIP_LIMIT) -> dict:
    """Recent-trip averages and this-month totals.

    The recent window is the newest ``recent_limit`` trips regardless of any
    dashboard range; the month window is the current calendar month.
    """
    trips = list(trips)
    recent = sorted(trips, key=lambda t: t.date, reverse=True)[:recent_limit]

    recent_avg_hits = None
    recent_max_size = None
    if recent:
        hit_counts = [len(t.catches()) for t in recent]
        recent_avg_hits = _round_half_up(sum(hit_counts) / len(hit_counts))
        sizes = [c.size_cm for t in recent for c in t.catches()
                 if size_bucket(c.size_cm) is not None]
        if sizes:
            recent_max_size = _number(max(sizes))

    month_from, month_to = this_month_range(today)
    month_trips = [t for t in trips if month_from <= t.date <= month_to]

    return {
        'recentAvgHits': _number(recent_avg_hits),
        'recentMaxSize': recent_max_size,
        'monthTripCount': len(month_trips),
        'monthTotalHits': sum(len(t.catches()) for t in month_trips),
    }


# ---------------------------------------------------------------------------
# Heatmap
# ---------------------------------------------------------------------------

def build_heatmap(trips, index: BucketIndex) -> dict:
    """Hour × column grid: ``None`` unobserved, otherwise the catch count."""
    grid = empty_grid(len(index))

    for trip in trips:
        window = resolve_session_window(trip)
        mark_observed(grid, index, trip, window)

        for catch in trip.catches():
            hour = parse_hour(catch.time)
            if hour is None:
                continue
            column = index.column_for(catch_day(window, hour, trip.date))
            if column is None:
                continue
            grid[hour][column] = (grid[hour][column] or 0) + 1

    return {
        'xLabels': list(index.labels),
        'yHours': list(HOURS),
        'values': grid,
    }