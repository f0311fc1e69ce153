"""
Dashboard Engine Package
=========================
Stateless analytics over one angler's fishing log. Re-exports the public
names so that:
    from dashboard import build_dashboard, trip_from_dict
works without reaching into submodules.
"""

import logging

logger = logging.getLogger(__name__)

# ── Input types ─────────────────────────────────────────────────────────────
from dashboard.models import (
    CatchEvent,
    EndEvent,
    FishingTrip,
    LureInfo,
    SetupEvent,
    SpotEvent,
    StartEvent,
    UseEvent,
    event_from_dict,
    trip_from_dict,
)

# ── Components ──────────────────────────────────────────────────────────────
from dashboard.buckets import (
    ADVANCED_RANGES,
    DASHBOARD_RANGES,
    BucketIndex,
    build_bucket_index,
    parse_range,
)
from dashboard.sessions import SessionWindow, parse_hour, resolve_session_window
from dashboard.attribution import (
    UNSET_AREA,
    attribute_catches,
    resolve_lure_usage,
)
from dashboard.aggregates import AggregateState, fold_trip, size_bucket

# ── Entry points ────────────────────────────────────────────────────────────
from dashboard.engine import (
    build_advanced,
    build_dashboard,
    build_lure_breakdown,
    build_summary,
)
