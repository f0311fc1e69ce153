"""
Dashboard Engine — Entry Points
=================================
Pure ``trips → dict`` builders behind each dashboard endpoint.

Callers pass every trip the user has logged; each builder applies its own
date windows. ``today``/``now`` default to the local clock and are
parameters so the output is reproducible.
"""

import logging
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional

from dashboard.aggregates import (
    LURE_BAR_LIMIT, RECENT_TRIP_LIMIT, TOP_N,
    build_heatmap, build_overview, fold_trips, lure_ranking,
    size_histogram, top_areas, top_spots,
)
from dashboard.attribution import UNSET_AREA, attribute_catches
from dashboard.buckets import (
    ADVANCED_RANGES, DASHBOARD_RANGES, build_bucket_index, get_date_range, parse_range,
)
from dashboard.models import FishingTrip
from dashboard.sessions import HOURS, parse_hour

logger = logging.getLogger(__name__)

BREAKDOWN_LIMIT = 10
TIDE_STATES = ('rising', 'falling', 'slack', 'unknown')
UNKNOWN_LABEL = 'unknown'


def _iso_timestamp(now: datetime) -> str:
    if now.tzinfo is None:
        now = now.astimezone()
    now = now.astimezone(timezone.utc)
    return now.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def newest_first(trips: Iterable[FishingTrip]) -> List[FishingTrip]:
    return sorted(trips, key=lambda t: t.date, reverse=True)


def trips_in_range(trips: Iterable[FishingTrip], range_key: str, today: date) -> List[FishingTrip]:
    """Trips inside the range window, newest first. ``all`` still stops at ``today``."""
    date_from, date_to = get_date_range(range_key, today)
    return newest_first(
        t for t in trips
        if t.date <= date_to and (date_from is None or t.date >= date_from)
    )


def build_dashboard(trips, range_key='month', today: Optional[date] = None,
                    now: Optional[datetime] = None,
                    recent_limit: int = RECENT_TRIP_LIMIT,
                    top_n: int = TOP_N,
                    lure_bar_limit: int = LURE_BAR_LIMIT) -> dict:
    """Full dashboard payload for one user.

    Args:
        trips: every ``FishingTrip`` the user has logged.
        range_key: ``month``, ``last30`` or ``all``; anything else means ``month``.
        today: local calendar date the windows are anchored to.
        now: timestamp reported as ``meta.generatedAt``.

    Returns:
        dict with overview, topAreas, topSpots, topLures, lureBar, heatmap,
        sizeHist and meta.
    """
    now = now or datetime.now()
    today = today or now.date()
    trips = list(trips)
    range_key = parse_range(range_key, DASHBOARD_RANGES)

    selected = trips_in_range(trips, range_key, today)
    state = fold_trips(selected)
    lures = lure_ranking(state)
    index = build_bucket_index(range_key, selected, today)

    logger.debug(f"Dashboard {range_key}: {state.trip_count} trips, "
                 f"{len(state.lures)} lures, {len(index)} columns")

    return {
        'overview': build_overview(trips, today, recent_limit),
        'topAreas': top_areas(state, top_n),
        'topSpots': top_spots(state, top_n),
        'topLures': lures[:top_n],
        'lureBar': lures[:lure_bar_limit],
        'heatmap': build_heatmap(selected, index),
        'sizeHist': size_histogram(state),
        'meta': {
            'range': range_key,
            'generatedAt': _iso_timestamp(now),
            'sizeUnknownCount': state.size_unknown,
        },
    }


def build_summary(trips, today: Optional[date] = None,
                  recent_limit: int = RECENT_TRIP_LIMIT, top_n: int = TOP_N) -> dict:
    """Overview cards plus top areas and lures over the user's whole history."""
    today = today or date.today()
    trips = newest_first(trips)
    state = fold_trips(trips)
    lures = lure_ranking(state)
    return {
        'overview': build_overview(trips, today, recent_limit),
        'topAreas': top_areas(state, top_n),
        'topLures': lures[:top_n],
        'lureHitsTop': lures[:top_n],
    }


def build_advanced(trips, range_key='month', today: Optional[date] = None) -> dict:
    """Heatmap and size distribution for ``month``, ``3months`` or ``all``."""
    today = today or date.today()
    range_key = parse_range(range_key, ADVANCED_RANGES)
    selected = trips_in_range(trips, range_key, today)
    state = fold_trips(selected)
    index = build_bucket_index(range_key, selected, today)
    return {
        'range': range_key,
        'heatmap': build_heatmap(selected, index),
        'sizeHist': size_histogram(state),
        'sizeUnknownCount': state.size_unknown,
    }


def _ranked_counts(counts: dict, key_name: str, limit: int = BREAKDOWN_LIMIT) -> List[dict]:
    ranked = sorted(counts.items(), key=lambda item: -item[1])
    return [{key_name: key, 'hits': hits} for key, hits in ranked[:limit]]


def _spot_label(spot) -> str:
    if spot.spot_name:
        return spot.spot_name
    if spot.area and spot.area != UNSET_AREA:
        return spot.area
    return UNKNOWN_LABEL


def build_lure_breakdown(trips, lure_id: str) -> dict:
    """Where, when and on what rig a single lure produced catches.

    Spot and tackle set come from the catch's nearest preceding ``spot`` and
    ``setup`` events. No tide data is logged, so every catch counts as
    ``unknown`` tide.
    """
    by_hour = {hour: 0 for hour in HOURS}
    by_spot, by_rig, by_tackle_set = {}, {}, {}
    total = 0

    for trip in newest_first(trips):
        for attribution in attribute_catches(trip):
            catch = attribution.catch
            if catch.lure_id != lure_id:
                continue
            total += 1

            hour = parse_hour(catch.time)
            if hour is not None:
                by_hour[hour] += 1

            spot = _spot_label(attribution.spot)
            by_spot[spot] = by_spot.get(spot, 0) + 1

            rig = catch.rig_type or attribution.setup.rig or UNKNOWN_LABEL
            by_rig[rig] = by_rig.get(rig, 0) + 1

            tackle_set = attribution.setup.tackle_set_id or UNKNOWN_LABEL
            by_tackle_set[tackle_set] = by_tackle_set.get(tackle_set, 0) + 1

    return {
        'lureId': lure_id,
        'byTimeOfDay': [{'hour': hour, 'hits': hits} for hour, hits in by_hour.items()],
        'byTide': [
            {'tide': tide, 'hits': total if tide == UNKNOWN_LABEL else 0}
            for tide in TIDE_STATES
        ],
        'bySpot': _ranked_counts(by_spot, 'spotId'),
        'byRig': _ranked_counts(by_rig, 'rigId'),
        'byTackleSet': _ranked_counts(by_tackle_set, 'tackleSetId'),
    }
