"""
Fishing Log Store for Tidelog.

Persists fishing trips as a date plus a timeline of ordered events, and
loads them back as dashboard engine types. Editing a trip replaces its
events wholesale. Lures are stored only so events can be labelled with the
lure's name and colour.

Database: Uses get_db() context manager from db.py (SQLite/PostgreSQL).
"""

import json
import logging
import math
import uuid
from datetime import datetime

from db import get_db
from dashboard.models import EVENT_TYPES, trip_from_dict

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

VALID_EVENT_TYPES = tuple(EVENT_TYPES)
MAX_EVENTS_PER_TRIP = 500
DATE_FORMAT = '%Y-%m-%d'

_EVENT_COLUMNS = (
    'type', 'time', 'event_order', 'area', 'spot_name', 'target_species_ids',
    'tackle_set_id', 'rig', 'species_id', 'size_cm', 'lure_id', 'rig_type',
)


# ---------------------------------------------------------------------------
# Table initialisation
# ---------------------------------------------------------------------------

def init_fishing_tables():
    """Create fishing_logs, fishing_events and lures tables."""
    with get_db() as conn:
        conn.execute('''
            CREATE TABLE IF NOT EXISTS fishing_logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                date TEXT NOT NULL,
                memo TEXT,
                created_at TEXT NOT NULL DEFAULT (datetime('now')),
                updated_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
        ''')

        conn.execute('''
            CREATE TABLE IF NOT EXISTS fishing_events (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                log_id INTEGER NOT NULL,
                type TEXT NOT NULL,
                time TEXT NOT NULL DEFAULT '',
                event_order INTEGER NOT NULL,
                area TEXT,
                spot_name TEXT,
                target_species_ids TEXT,
                tackle_set_id TEXT,
                rig TEXT,
                species_id TEXT,
                size_cm REAL,
                lure_id TEXT,
                rig_type TEXT,
                FOREIGN KEY (log_id) REFERENCES fishing_logs(id) ON DELETE CASCADE
            )
        ''')

        conn.execute('''
            CREATE TABLE IF NOT EXISTS lures (
                id TEXT PRIMARY KEY,
                user_id INTEGER NOT NULL,
                name TEXT NOT NULL,
                color TEXT,
                created_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
        ''')

        conn.execute('CREATE INDEX IF NOT EXISTS idx_fishing_logs_user_date ON fishing_logs (user_id, date)')
        conn.execute('CREATE INDEX IF NOT EXISTS idx_fishing_events_log ON fishing_events (log_id, event_order)')

    logger.info("Fishing log tables initialised successfully")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _validate_date(value):
    try:
        return datetime.strptime(str(value), DATE_FORMAT).strftime(DATE_FORMAT)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid date '{value}'. Expected YYYY-MM-DD")


def _optional_text(value):
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _event_values(event, order):
    """Column values for one incoming camelCase event; ``order`` is its list position."""
    if not isinstance(event, dict):
        raise ValueError(f"Event {order} must be an object")

    event_type = event.get('type')
    if event_type not in VALID_EVENT_TYPES:
        raise ValueError(f"Invalid event type '{event_type}'. Must be one of {VALID_EVENT_TYPES}")

    size_cm = event.get('sizeCm')
    if size_cm in ('', None):
        size_cm = None
    else:
        try:
            number = float(size_cm)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid sizeCm '{size_cm}' on event {order}")
        if not math.isfinite(number):
            raise ValueError(f"Invalid sizeCm '{size_cm}' on event {order}")
        size_cm = number

    targets = event.get('targetSpeciesIds') or []
    if isinstance(targets, str):
        targets = [targets]

    values = {
        'type': event_type,
        'time': str(event.get('time') or ''),
        'event_order': order,
        'area': None,
        'spot_name': None,
        'target_species_ids': None,
        'tackle_set_id': None,
        'rig': None,
        'species_id': None,
        'size_cm': None,
        'lure_id': None,
        'rig_type': None,
    }
    # Only persist the fields the event type actually carries
    if event_type == 'spot':
        values['area'] = _optional_text(event.get('area'))
        values['spot_name'] = _optional_text(event.get('spotName'))
    elif event_type == 'setup':
        values['target_species_ids'] = json.dumps([str(t) for t in targets])
        values['tackle_set_id'] = _optional_text(event.get('tackleSetId'))
        values['rig'] = _optional_text(event.get('rig'))
    elif event_type == 'catch':
        values['species_id'] = _optional_text(event.get('speciesId'))
        values['size_cm'] = size_cm
        values['lure_id'] = _optional_text(event.get('lureId'))
        values['rig_type'] = _optional_text(event.get('rigType'))
    elif event_type == 'use':
        values['lure_id'] = _optional_text(event.get('lureId'))
    return values


def _validate_trip(data):
    if not isinstance(data, dict):
        raise ValueError("Trip payload must be an object")
    trip_date = _validate_date(data.get('date'))

    events = data.get('events')
    if not isinstance(events, list) or not events:
        raise ValueError("A fishing log needs at least one event")
    if len(events) > MAX_EVENTS_PER_TRIP:
        raise ValueError(f"A fishing log can hold at most {MAX_EVENTS_PER_TRIP} events")

    # Incoming order is taken from list position so orders stay dense from 0
    rows = [_event_values(e, i) for i, e in enumerate(events)]
    return trip_date, _optional_text(data.get('memo')), rows


def _insert_events(conn, log_id, rows):
    placeholders = ', '.join('?' for _ in _EVENT_COLUMNS)
    sql = (f'INSERT INTO fishing_events (log_id, {", ".join(_EVENT_COLUMNS)}) '
           f'VALUES (?, {placeholders})')
    for row in rows:
        conn.execute(sql, (log_id,) + tuple(row[c] for c in _EVENT_COLUMNS))


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def _serialize_event(row):
    """Convert an event row (joined with its lure) to the camelCase wire shape."""
    targets = row['target_species_ids']
    try:
        targets = json.loads(targets) if targets else []
    except (json.JSONDecodeError, TypeError):
        targets = []

    lure = None
    if row['lure_name']:
        lure = {'id': row['lure_id'], 'name': row['lure_name'], 'color': row['lure_color']}

    return {
        'type': row['type'],
        'time': row['time'] or '',
        'order': row['event_order'],
        'area': row['area'],
        'spotName': row['spot_name'],
        'targetSpeciesIds': targets,
        'tackleSetId': row['tackle_set_id'],
        'rig': row['rig'],
        'speciesId': row['species_id'],
        'sizeCm': row['size_cm'],
        'lureId': row['lure_id'],
        'lure': lure,
        'rigType': row['rig_type'],
    }


def _serialize_log(row, events):
    return {
        'id': row['id'],
        'date': str(row['date'])[:10],
        'memo': row['memo'],
        'events': events,
        'createdAt': str(row['created_at']),
        'updatedAt': str(row['updated_at']),
    }


def _fetch_events(conn, log_ids):
    """Events for the given logs, grouped by log id and sorted by order."""
    if not log_ids:
        return {}
    placeholders = ', '.join('?' for _ in log_ids)
    rows = conn.execute(
        'SELECT e.*, l.name AS lure_name, l.color AS lure_color '
        'FROM fishing_events e LEFT JOIN lures l ON l.id = e.lure_id '
        f'WHERE e.log_id IN ({placeholders}) '
        'ORDER BY e.log_id, e.event_order, e.id',
        tuple(log_ids),
    ).fetchall()

    grouped = {log_id: [] for log_id in log_ids}
    for r in rows:
        grouped[r['log_id']].append(_serialize_event(r))
    return grouped


# ---------------------------------------------------------------------------
# Lures
# ---------------------------------------------------------------------------

def create_lure(user_id, data):
    """Register a lure so events can reference it. Returns the lure dict."""
    name = _optional_text((data or {}).get('name'))
    if not name:
        raise ValueError("Lure name is required")
    lure = {
        'id': _optional_text(data.get('id')) or uuid.uuid4().hex,
        'name': name,
        'color': _optional_text(data.get('color')),
    }
    with get_db() as conn:
        conn.execute(
            'INSERT INTO lures (id, user_id, name, color) VALUES (?, ?, ?, ?)',
            (lure['id'], user_id, lure['name'], lure['color']),
        )
    logger.info(f"Created lure {lure['id']} for user {user_id}")
    return lure


# ---------------------------------------------------------------------------
# Trip CRUD
# ---------------------------------------------------------------------------

def create_trip(user_id, data):
    """
    Create a fishing log with its events.

    Args:
        user_id: Owner of the log.
        data: dict with 'date' (YYYY-MM-DD), optional 'memo', and 'events'.

    Returns:
        dict of the newly created log.

    Raises:
        ValueError: On invalid field values.
    """
    trip_date, memo, rows = _validate_trip(data)
    with get_db() as conn:
        cursor = conn.execute(
            'INSERT INTO fishing_logs (user_id, date, memo) VALUES (?, ?, ?)',
            (user_id, trip_date, memo),
        )
        log_id = cursor.lastrowid
        _insert_events(conn, log_id, rows)

    logger.info(f"Created fishing log {log_id} for user {user_id} ({len(rows)} events)")
    return get_trip(log_id, user_id)


def replace_trip(trip_id, user_id, data):
    """Replace a log's date, memo and all of its events. Returns the updated log or None."""
    trip_date, memo, rows = _validate_trip(data)
    with get_db() as conn:
        existing = conn.execute(
            'SELECT id FROM fishing_logs WHERE id = ? AND user_id = ?',
            (trip_id, user_id),
        ).fetchone()
        if not existing:
            return None
        conn.execute(
            "UPDATE fishing_logs SET date = ?, memo = ?, updated_at = datetime('now') "
            "WHERE id = ? AND user_id = ?",
            (trip_date, memo, trip_id, user_id),
        )
        conn.execute('DELETE FROM fishing_events WHERE log_id = ?', (trip_id,))
        _insert_events(conn, trip_id, rows)

    logger.info(f"Replaced fishing log {trip_id} for user {user_id} ({len(rows)} events)")
    return get_trip(trip_id, user_id)


def delete_trip(trip_id, user_id):
    """Delete a log and its events. Returns a success dict."""
    with get_db() as conn:
        conn.execute('DELETE FROM fishing_events WHERE log_id IN '
                     '(SELECT id FROM fishing_logs WHERE id = ? AND user_id = ?)',
                     (trip_id, user_id))
        cursor = conn.execute(
            'DELETE FROM fishing_logs WHERE id = ? AND user_id = ?',
            (trip_id, user_id),
        )
        deleted = cursor.rowcount > 0
    if deleted:
        logger.info(f"Deleted fishing log {trip_id} for user {user_id}")
    return {'success': deleted, 'id': trip_id}


def get_trip(trip_id, user_id):
    """Fetch one log with its events, or None if it doesn't belong to the user."""
    with get_db() as conn:
        row = conn.execute(
            'SELECT * FROM fishing_logs WHERE id = ? AND user_id = ?',
            (trip_id, user_id),
        ).fetchone()
        if row is None:
            return None
        events = _fetch_events(conn, [row['id']])
    return _serialize_log(row, events.get(row['id'], []))


def get_trips(user_id, date_from=None, date_to=None, limit=None):
    """
    Fetch a user's logs, newest first, with events in order.

    Args:
        date_from / date_to: inclusive YYYY-MM-DD bounds.
        limit: maximum number of logs to return.

    Returns:
        list of serialized log dicts.
    """
    query = 'SELECT * FROM fishing_logs WHERE user_id = ?'
    params = [user_id]
    if date_from:
        query += ' AND date >= ?'
        params.append(_validate_date(date_from))
    if date_to:
        query += ' AND date <= ?'
        params.append(_validate_date(date_to))
    query += ' ORDER BY date DESC, id DESC'
    if limit:
        query += ' LIMIT ?'
        params.append(int(limit))

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()
        events = _fetch_events(conn, [r['id'] for r in rows])
    return [_serialize_log(r, events.get(r['id'], [])) for r in rows]


# ---------------------------------------------------------------------------
# Engine loading
# ---------------------------------------------------------------------------

def load_trips(user_id, date_from=None, date_to=None, limit=None):
    """Fetch a user's logs as dashboard ``FishingTrip`` objects, newest first."""
    trips = [trip_from_dict(log) for log in get_trips(user_id, date_from, date_to, limit)]
    return [t for t in trips if t is not None]


def load_lure_trips(user_id, lure_id):
    """Trips in which the user caught something on ``lure_id``."""
    with get_db() as conn:
        rows = conn.execute(
            'SELECT DISTINCT log_id FROM fishing_events e '
            'JOIN fishing_logs f ON f.id = e.log_id '
            "WHERE f.user_id = ? AND e.lure_id = ? AND e.type = 'catch'",
            (user_id, lure_id),
        ).fetchall()
    log_ids = {r['log_id'] for r in rows}
    if not log_ids:
        return []
    return [t for t in load_trips(user_id) if t.id in log_ids]
