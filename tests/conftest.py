"""
Pytest configuration and shared fixtures for Tidelog tests.
"""

import os
import sys
import tempfile
from datetime import date, datetime

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set test environment variables before importing app modules
_TEST_DATA_DIR = tempfile.mkdtemp(prefix='tidelog-tests-')
os.environ.setdefault("FLASK_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATA_DIR", _TEST_DATA_DIR)
os.environ.setdefault("LOG_DIR", _TEST_DATA_DIR)
os.environ.setdefault("DEMO_MODE", "false")
os.environ.pop("DATABASE_URL", None)

from dashboard.models import trip_from_dict


TODAY = date(2024, 3, 10)
NOW = datetime(2024, 3, 10, 12, 30, 0)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_trip():
    """Build a FishingTrip from a date and camelCase event dicts.

    Events without an explicit ``order`` take their position in the call.
    """
    def _make(day, *events, trip_id=None):
        return trip_from_dict({'id': trip_id, 'date': day, 'events': list(events)})
    return _make


@pytest.fixture
def sample_trips(make_trip):
    """Two trips this month and one last month, with spots, setups and lures."""
    lure_a = {'id': 'lure-a', 'name': 'Minnow 90', 'color': 'Chart'}
    lure_b = {'id': 'lure-b', 'name': 'Jig Head', 'color': None}
    return [
        make_trip(
            '2024-03-05',
            {'type': 'start', 'time': '05:00'},
            {'type': 'spot', 'time': '05:10', 'area': 'Tokyo Bay', 'spotName': 'North Pier'},
            {'type': 'setup', 'time': '05:15', 'targetSpeciesIds': ['suzuki'], 'tackleSetId': 'set-1'},
            {'type': 'use', 'time': '05:20', 'lureId': 'lure-a', 'lure': lure_a},
            {'type': 'catch', 'time': '06:05', 'speciesId': 'suzuki', 'sizeCm': 42, 'lureId': 'lure-a', 'lure': lure_a},
            {'type': 'catch', 'time': '06:40', 'speciesId': 'suzuki', 'sizeCm': 18, 'lureId': 'lure-a', 'lure': lure_a},
            {'type': 'end', 'time': '08:00'},
            trip_id=1,
        ),
        make_trip(
            '2024-03-08',
            {'type': 'start', 'time': '21:00'},
            {'type': 'spot', 'time': '21:05', 'area': 'Sagami Bay', 'spotName': 'Rock Shelf'},
            {'type': 'use', 'time': '21:10', 'lureId': 'lure-b', 'lure': lure_b},
            {'type': 'catch', 'time': '01:20', 'speciesId': 'kasago', 'sizeCm': None, 'lureId': 'lure-b', 'lure': lure_b},
            {'type': 'end', 'time': '02:00'},
            trip_id=2,
        ),
        make_trip(
            '2024-02-20',
            {'type': 'start', 'time': '06:00'},
            {'type': 'spot', 'time': '06:00', 'area': 'Tokyo Bay', 'spotName': 'South Pier'},
            {'type': 'catch', 'time': '07:00', 'speciesId': 'aji', 'sizeCm': 14},
            {'type': 'end', 'time': '09:00'},
            trip_id=3,
        ),
    ]
