"""
Dashboard Engine — Attribution
================================
Resolve the context each catch happened in, and how anglers cycled lures.

All lookups follow event ``order``, never the advisory ``time`` field:
a catch belongs to the highest-order ``spot``/``setup`` event at or before
it. The trip is walked once with running "last seen" pointers, which gives
the same answer as rescanning every preceding event per catch.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Tuple

from dashboard.buckets import next_day
from dashboard.models import CatchEvent, LURE_EVENT_TYPES, LureInfo
from dashboard.sessions import SessionWindow

UNSET_AREA = '(未設定)'
SPOT_KEY_SEPARATOR = '|||'


@dataclass(frozen=True)
class SpotContext:
    area: str = UNSET_AREA
    spot_name: str = ''

    @property
    def key(self) -> str:
        return f'{self.area}{SPOT_KEY_SEPARATOR}{self.spot_name}'


@dataclass(frozen=True)
class SetupContext:
    target_species_ids: Tuple[str, ...] = ()
    tackle_set_id: Optional[str] = None
    rig: Optional[str] = None


@dataclass(frozen=True)
class CatchAttribution:
    catch: CatchEvent
    area: str = UNSET_AREA
    spot: SpotContext = field(default_factory=SpotContext)
    setup: SetupContext = field(default_factory=SetupContext)


def spot_context(event) -> SpotContext:
    return SpotContext(area=event.area or UNSET_AREA, spot_name=event.spot_name or '')


def attribute_catches(trip) -> List[CatchAttribution]:
    """Attach area, spot and setup context to every catch in ``trip``.

    Area attribution only considers spot events that name an area; spot
    attribution accepts a spot event naming either an area or a spot.
    A catch with nothing before it gets the unset sentinel.
    """
    last_area = None
    last_spot = None
    last_setup = None
    attributions = []

    for event in trip.ordered_events():
        if event.type == 'spot':
            if event.area:
                last_area = event.area
            if event.area or event.spot_name:
                last_spot = spot_context(event)
        elif event.type == 'setup':
            last_setup = SetupContext(
                target_species_ids=event.target_species_ids,
                tackle_set_id=event.tackle_set_id,
                rig=event.rig,
            )
        elif event.type == 'catch':
            attributions.append(CatchAttribution(
                catch=event,
                area=last_area or UNSET_AREA,
                spot=last_spot or SpotContext(),
                setup=last_setup or SetupContext(),
            ))
    return attributions


@dataclass
class LureUsage:
    """Per-trip lure activity.

    ``sessions`` counts switches *to* a lure, ``hits`` counts catches on it.
    ``latest`` keeps the most recent display info seen on a catch and
    ``first_seen`` the first display info seen on any lure-bearing event.
    """
    sessions: Dict[str, int] = field(default_factory=dict)
    hits: Dict[str, int] = field(default_factory=dict)
    latest: Dict[str, LureInfo] = field(default_factory=dict)
    first_seen: Dict[str, LureInfo] = field(default_factory=dict)


def resolve_lure_usage(trip) -> LureUsage:
    """Walk ``trip`` in order counting usage sessions and hits per lure.

    Consecutive ``use``/``catch`` events on the same lure form one session,
    so ``use(A), catch(A), catch(A), use(B), catch(A)`` gives sessions
    ``{A: 2, B: 1}`` and hits ``{A: 3}``.
    """
    usage = LureUsage()
    current_lure_id = None

    for event in trip.ordered_events():
        if event.type not in LURE_EVENT_TYPES or not event.lure_id:
            continue
        lure_id = event.lure_id
        if lure_id != current_lure_id:
            usage.sessions[lure_id] = usage.sessions.get(lure_id, 0) + 1
            current_lure_id = lure_id
        if event.lure is not None and lure_id not in usage.first_seen:
            usage.first_seen[lure_id] = event.lure
        if event.type == 'catch':
            usage.hits[lure_id] = usage.hits.get(lure_id, 0) + 1
            if event.lure is not None:
                usage.latest[lure_id] = event.lure
    return usage


def catch_day(window: SessionWindow, hour: int, trip_date: date) -> date:
    """Calendar day a catch at ``hour`` belongs to.

    In an overnight session a catch before the start hour and no later than
    the end hour happened after midnight, on the following day.
    """
    if window.crosses_midnight and hour < window.start_hour and hour <= window.end_hour:
        return next_day(trip_date)
    return trip_date
