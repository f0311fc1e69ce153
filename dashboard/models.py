"""
Dashboard Engine — Input Types
================================
Fishing trips and their timeline events as consumed by the analytics engine.

Each event variant is its own frozen dataclass carrying only the fields that
variant uses; the ``type`` tag is a class constant. Incoming dicts follow the
camelCase wire contract of the fishing-log API and are parsed leniently:
irrelevant fields are ignored, unknown event types are dropped, and bad
numbers become ``None``.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import ClassVar, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LureInfo:
    """Display metadata for a lure in the user's tackle box."""
    id: str
    name: str
    color: Optional[str] = None

    def label(self) -> str:
        if self.color:
            return f'{self.name}({self.color})'
        return self.name


@dataclass(frozen=True)
class StartEvent:
    type: ClassVar[str] = 'start'
    order: int
    time: str = ''


@dataclass(frozen=True)
class EndEvent:
    type: ClassVar[str] = 'end'
    order: int
    time: str = ''


@dataclass(frozen=True)
class SpotEvent:
    type: ClassVar[str] = 'spot'
    order: int
    time: str = ''
    area: str = ''
    spot_name: str = ''


@dataclass(frozen=True)
class SetupEvent:
    type: ClassVar[str] = 'setup'
    order: int
    time: str = ''
    target_species_ids: Tuple[str, ...] = ()
    tackle_set_id: Optional[str] = None
    rig: Optional[str] = None


@dataclass(frozen=True)
class CatchEvent:
    type: ClassVar[str] = 'catch'
    order: int
    time: str = ''
    species_id: Optional[str] = None
    size_cm: Optional[float] = None
    lure_id: Optional[str] = None
    lure: Optional[LureInfo] = None
    rig_type: Optional[str] = None


@dataclass(frozen=True)
class UseEvent:
    type: ClassVar[str] = 'use'
    order: int
    time: str = ''
    lure_id: Optional[str] = None
    lure: Optional[LureInfo] = None


EVENT_TYPES = {
    cls.type: cls
    for cls in (StartEvent, EndEvent, SpotEvent, SetupEvent, CatchEvent, UseEvent)
}

LURE_EVENT_TYPES = ('use', 'catch')


@dataclass(frozen=True)
class FishingTrip:
    """One logged outing: a calendar date and its timeline events."""
    date: date
    events: Tuple = field(default_factory=tuple)
    id: Optional[int] = None

    def ordered_events(self) -> list:
        """Events sorted by ``order``; the sort is stable for duplicate orders."""
        return sorted(self.events, key=lambda e: e.order)

    def catches(self) -> List[CatchEvent]:
        return [e for e in self.ordered_events() if e.type == 'catch']


# ---------------------------------------------------------------------------
# Parsing from the wire contract
# ---------------------------------------------------------------------------

def _to_int(value, default):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _to_float(value):
    if value is None or value == '' or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _to_str(value):
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_lure(data, lure_id):
    lure = data.get('lure')
    if not isinstance(lure, dict) or not lure.get('name'):
        return None
    return LureInfo(
        id=_to_str(lure.get('id')) or lure_id or '',
        name=str(lure['name']),
        color=_to_str(lure.get('color')),
    )


def event_from_dict(data: dict, position: int = 0):
    """Build a typed event from a camelCase dict, or ``None`` for unknown types.

    ``position`` is the event's index in its list and stands in for a
    missing or non-integer ``order``.
    """
    event_type = data.get('type')
    cls = EVENT_TYPES.get(event_type) if isinstance(event_type, str) else None
    if cls is None:
        logger.debug(f"Ignoring event with unknown type {event_type!r}")
        return None

    common = {
        'order': _to_int(data.get('order'), position),
        'time': data.get('time') or '',
    }
    if not isinstance(common['time'], str):
        common['time'] = str(common['time'])

    if cls is SpotEvent:
        return SpotEvent(area=data.get('area') or '', spot_name=data.get('spotName') or '', **common)
    if cls is SetupEvent:
        targets = data.get('targetSpeciesIds') or ()
        if isinstance(targets, str):
            targets = (targets,)
        return SetupEvent(
            target_species_ids=tuple(str(t) for t in targets if t),
            tackle_set_id=_to_str(data.get('tackleSetId')),
            rig=_to_str(data.get('rig')),
            **common,
        )
    if cls is CatchEvent:
        lure_id = _to_str(data.get('lureId'))
        return CatchEvent(
            species_id=_to_str(data.get('speciesId')),
            size_cm=_to_float(data.get('sizeCm')),
            lure_id=lure_id,
            lure=_parse_lure(data, lure_id),
            rig_type=_to_str(data.get('rigType')),
            **common,
        )
    if cls is UseEvent:
        lure_id = _to_str(data.get('lureId'))
        return UseEvent(lure_id=lure_id, lure=_parse_lure(data, lure_id), **common)
    return cls(**common)


def parse_trip_date(value) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value)[:10], '%Y-%m-%d').date()
    except (TypeError, ValueError):
        return None


def trip_from_dict(data: dict) -> Optional[FishingTrip]:
    """Build a trip from ``{date, events, id?}``; returns ``None`` if the date is unusable."""
    trip_date = parse_trip_date(data.get('date'))
    if trip_date is None:
        logger.debug(f"Ignoring trip with unparseable date {data.get('date')!r}")
        return None
    raw_events = data.get('events')
    if not isinstance(raw_events, (list, tuple)):
        raw_events = []
    events = []
    for position, raw in enumerate(raw_events):
        if not isinstance(raw, dict):
            continue
        event = event_from_dict(raw, position)
        if event is not None:
            events.append(event)
    return FishingTrip(date=trip_date, events=tuple(events), id=data.get('id'))
