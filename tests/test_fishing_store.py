"""Tests for fishing log persistence — create, replace, delete and engine loading."""

import pytest

from db import get_db
from fishing_store import (
    create_lure, create_trip, delete_trip, get_trip, get_trips,
    init_fishing_tables, load_lure_trips, load_trips, replace_trip,
)
from dashboard.models import CatchEvent, SpotEvent


USER_ID = 99999
OTHER_USER_ID = 99998


def _wipe(conn, user_id):
    conn.execute('DELETE FROM fishing_events WHERE log_id IN '
                 '(SELECT id FROM fishing_logs WHERE user_id = ?)', (user_id,))
    conn.execute('DELETE FROM fishing_logs WHERE user_id = ?', (user_id,))
    conn.execute('DELETE FROM lures WHERE user_id = ?', (user_id,))


@pytest.fixture(autouse=True)
def _clean_logs():
    """Delete test logs before and after each test."""
    init_fishing_tables()
    with get_db() as conn:
        _wipe(conn, USER_ID)
        _wipe(conn, OTHER_USER_ID)
    yield
    with get_db() as conn:
        _wipe(conn, USER_ID)
        _wipe(conn, OTHER_USER_ID)


def _trip(day='2024-03-05', **overrides):
    data = {
        'date': day,
        'memo': 'calm morning',
        'events': [
            {'type': 'start', 'time': '05:00'},
            {'type': 'spot', 'time': '05:10', 'area': 'Tokyo Bay', 'spotName': 'North Pier'},
            {'type': 'setup', 'time': '05:15', 'targetSpeciesIds': ['suzuki'], 'tackleSetId': 'set-1'},
            {'type': 'use', 'time': '05:20', 'lureId': 'store-lure-a'},
            {'type': 'catch', 'time': '06:05', 'speciesId': 'suzuki', 'sizeCm': '42.5', 'lureId': 'store-lure-a'},
            {'type': 'end', 'time': '08:00'},
        ],
    }
    data.update(overrides)
    return data


# ---------------------------------------------------------------------------
# Create / read
# ---------------------------------------------------------------------------

class TestCreateTrip:
    def test_create_and_get(self):
        log = create_trip(USER_ID, _trip())
        assert log['date'] == '2024-03-05'
        assert log['memo'] == 'calm morning'
        assert [e['type'] for e in log['events']] == ['start', 'spot', 'setup', 'use', 'catch', 'end']
        assert [e['order'] for e in log['events']] == [0, 1, 2, 3, 4, 5]
        assert get_trip(log['id'], USER_ID) == log

    def test_event_fields_round_trip(self):
        events = create_trip(USER_ID, _trip())['events']
        assert events[1]['area'] == 'Tokyo Bay'
        assert events[1]['spotName'] == 'North Pier'
        assert events[2]['targetSpeciesIds'] == ['suzuki']
        assert events[2]['tackleSetId'] == 'set-1'
        assert events[4]['sizeCm'] == 42.5
        assert events[4]['lureId'] == 'store-lure-a'

    def test_irrelevant_fields_dropped(self):
        data = _trip(events=[{'type': 'start', 'time': '05:00', 'area': 'Tokyo Bay', 'sizeCm': 30}])
        event = create_trip(USER_ID, data)['events'][0]
        assert event['area'] is None
        assert event['sizeCm'] is None

    def test_order_comes_from_list_position(self):
        data = _trip(events=[
            {'type': 'catch', 'order': 7},
            {'type': 'spot', 'order': 2, 'area': 'Tokyo Bay'},
        ])
        events = create_trip(USER_ID, data)['events']
        assert [(e['type'], e['order']) for e in events] == [('catch', 0), ('spot', 1)]

    def test_lure_joined_on_events(self):
        create_lure(USER_ID, {'id': 'store-lure-a', 'name': 'Minnow 90', 'color': 'Chart'})
        events = create_trip(USER_ID, _trip())['events']
        assert events[4]['lure'] == {'id': 'store-lure-a', 'name': 'Minnow 90', 'color': 'Chart'}
        assert events[0]['lure'] is None

    def test_get_other_users_trip_is_none(self):
        log = create_trip(USER_ID, _trip())
        assert get_trip(log['id'], OTHER_USER_ID) is None


class TestValidation:
    @pytest.mark.parametrize('day', ['2024-13-01', '03/05/2024', '', None])
    def test_invalid_date_rejected(self, day):
        with pytest.raises(ValueError, match='Invalid date'):
            create_trip(USER_ID, _trip(day))

    def test_no_events_rejected(self):
        with pytest.raises(ValueError, match='at least one event'):
            create_trip(USER_ID, _trip(events=[]))

    def test_unknown_event_type_rejected(self):
        with pytest.raises(ValueError, match='Invalid event type'):
            create_trip(USER_ID, _trip(events=[{'type': 'weather'}]))

    def test_bad_size_rejected(self):
        with pytest.raises(ValueError, match='Invalid sizeCm'):
            create_trip(USER_ID, _trip(events=[{'type': 'catch', 'sizeCm': 'big'}]))

    @pytest.mark.parametrize('size', ['NaN', 'inf', 'Infinity', '-inf', float('nan')])
    def test_non_finite_size_rejected(self, size):
        with pytest.raises(ValueError, match='Invalid sizeCm'):
            create_trip(USER_ID, _trip(events=[{'type': 'catch', 'sizeCm': size}]))
        assert get_trips(USER_ID) == []

    def test_failed_create_writes_nothing(self):
        with pytest.raises(ValueError):
            create_trip(USER_ID, _trip(events=[{'type': 'start'}, {'type': 'weather'}]))
        assert get_trips(USER_ID) == []

    def test_lure_needs_name(self):
        with pytest.raises(ValueError, match='name is required'):
            create_lure(USER_ID, {'color': 'Red'})


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------

class TestGetTrips:
    def test_newest_first(self):
        create_trip(USER_ID, _trip('2024-03-01'))
        create_trip(USER_ID, _trip('2024-03-08'))
        create_trip(USER_ID, _trip('2024-02-20'))
        assert [log['date'] for log in get_trips(USER_ID)] == ['2024-03-08', '2024-03-01', '2024-02-20']

    def test_date_bounds_inclusive(self):
        for day in ('2024-02-29', '2024-03-01', '2024-03-10', '2024-03-11'):
            create_trip(USER_ID, _trip(day))
        logs = get_trips(USER_ID, date_from='2024-03-01', date_to='2024-03-10')
        assert [log['date'] for log in logs] == ['2024-03-10', '2024-03-01']

    def test_limit(self):
        for day in ('2024-03-01', '2024-03-02', '2024-03-03'):
            create_trip(USER_ID, _trip(day))
        assert len(get_trips(USER_ID, limit=2)) == 2

    def test_scoped_to_user(self):
        create_trip(USER_ID, _trip())
        assert get_trips(OTHER_USER_ID) == []

    def test_bad_bound_rejected(self):
        with pytest.raises(ValueError):
            get_trips(USER_ID, date_from='yesterday')


# ---------------------------------------------------------------------------
# Replace / delete
# ---------------------------------------------------------------------------

class TestReplaceTrip:
    def test_events_replaced_wholesale(self):
        log = create_trip(USER_ID, _trip())
        updated = replace_trip(log['id'], USER_ID, _trip('2024-03-06', memo=None, events=[
            {'type': 'start', 'time': '18:00'},
            {'type': 'end', 'time': '20:00'},
        ]))
        assert updated['date'] == '2024-03-06'
        assert updated['memo'] is None
        assert [e['type'] for e in updated['events']] == ['start', 'end']

    def test_missing_trip_returns_none(self):
        assert replace_trip(123456789, USER_ID, _trip()) is None

    def test_other_users_trip_untouched(self):
        log = create_trip(USER_ID, _trip())
        assert replace_trip(log['id'], OTHER_USER_ID, _trip('2024-03-09')) is None
        assert get_trip(log['id'], USER_ID)['date'] == '2024-03-05'


class TestDeleteTrip:
    def test_delete(self):
        log = create_trip(USER_ID, _trip())
        assert delete_trip(log['id'], USER_ID) == {'success': True, 'id': log['id']}
        assert get_trip(log['id'], USER_ID) is None
        with get_db() as conn:
            remaining = conn.execute('SELECT COUNT(*) AS n FROM fishing_events WHERE log_id = ?',
                                     (log['id'],)).fetchone()
        assert remaining['n'] == 0

    def test_delete_missing(self):
        assert delete_trip(123456789, USER_ID)['success'] is False

    def test_delete_other_users_trip(self):
        log = create_trip(USER_ID, _trip())
        assert delete_trip(log['id'], OTHER_USER_ID)['success'] is False
        assert get_trip(log['id'], USER_ID) is not None


# ---------------------------------------------------------------------------
# Engine loading
# ---------------------------------------------------------------------------

class TestLoadTrips:
    def test_loads_typed_trips(self):
        create_lure(USER_ID, {'id': 'store-lure-a', 'name': 'Minnow 90'})
        log = create_trip(USER_ID, _trip())

        trips = load_trips(USER_ID)

        assert len(trips) == 1
        trip = trips[0]
        assert trip.id == log['id']
        assert isinstance(trip.events[1], SpotEvent)
        catch = trip.catches()[0]
        assert isinstance(catch, CatchEvent)
        assert catch.size_cm == 42.5
        assert catch.lure.label() == 'Minnow 90'

    def test_load_lure_trips(self):
        with_lure = create_trip(USER_ID, _trip('2024-03-05'))
        create_trip(USER_ID, _trip('2024-03-06', events=[
            {'type': 'use', 'lureId': 'store-lure-a'},
            {'type': 'catch', 'lureId': 'store-lure-b'},
        ]))
        assert [t.id for t in load_lure_trips(USER_ID, 'store-lure-a')] == [with_lure['id']]

    def test_load_lure_trips_none(self):
        create_trip(USER_ID, _trip())
        assert load_lure_trips(USER_ID, 'store-lure-z') == []
