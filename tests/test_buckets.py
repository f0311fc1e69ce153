"""Tests for dashboard/buckets.py — heatmap X axis construction."""

from datetime import date

import pytest
from dashboard.buckets import (
    ADVANCED_RANGES, DASHBOARD_RANGES, DAY_GRAIN, MONTH_GRAIN,
    build_bucket_index, get_date_range, parse_range, this_month_range,
)


# ── Range selector ──

class TestParseRange:
    @pytest.mark.parametrize('value', ['month', 'last30', 'all'])
    def test_accepts_dashboard_ranges(self, value):
        assert parse_range(value) == value

    def test_unknown_falls_back_to_month(self):
        assert parse_range('yearly') == 'month'

    def test_none_falls_back_to_month(self):
        assert parse_range(None) == 'month'

    def test_3months_only_on_advanced(self):
        assert parse_range('3months', DASHBOARD_RANGES) == 'month'
        assert parse_range('3months', ADVANCED_RANGES) == '3months'

    def test_last30_not_on_advanced(self):
        assert parse_range('last30', ADVANCED_RANGES) == 'month'


class TestDateRange:
    def test_month_starts_on_first(self, today):
        assert get_date_range('month', today) == (date(2024, 3, 1), today)

    def test_last30_is_thirty_days_inclusive(self, today):
        start, end = get_date_range('last30', today)
        assert (end - start).days == 29

    def test_3months_crosses_year(self):
        assert get_date_range('3months', date(2024, 2, 15))[0] == date(2023, 12, 1)

    def test_all_has_no_lower_bound(self, today):
        assert get_date_range('all', today) == (None, today)

    def test_this_month_range(self):
        assert this_month_range(date(2024, 1, 31)) == (date(2024, 1, 1), date(2024, 1, 31))


# ── Day grain ──

class TestDayBuckets:
    def test_month_runs_from_first_through_today(self, today):
        index = build_bucket_index('month', [], today)
        assert index.grain == DAY_GRAIN
        assert index.labels[0] == '3/1'
        assert index.labels[-1] == '3/10'
        assert len(index) == 10

    def test_last30_oldest_first(self, today):
        index = build_bucket_index('last30', [], today)
        assert len(index) == 30
        assert index.labels[0] == '2/10'  # 2024 is a leap year
        assert index.labels[-1] == '3/10'

    def test_3months_window(self, today):
        index = build_bucket_index('3months', [], today)
        assert index.labels[0] == '1/1'
        assert len(index) == 31 + 29 + 10

    def test_column_lookup_by_date(self, today):
        index = build_bucket_index('month', [], today)
        assert index.column_for(date(2024, 3, 1)) == 0
        assert index.column_for(date(2024, 3, 10)) == 9

    def test_column_outside_axis_is_none(self, today):
        index = build_bucket_index('month', [], today)
        assert index.column_for(date(2024, 2, 29)) is None
        assert index.column_for(date(2024, 3, 11)) is None

    def test_day_key_is_iso_date(self, today):
        index = build_bucket_index('month', [], today)
        assert index.key_for(date(2024, 3, 5)) == '2024-03-05'


# ── Month grain ──

class TestMonthBuckets:
    def test_distinct_months_sorted(self, make_trip, today):
        trips = [
            make_trip('2023-11-05', {'type': 'start'}),
            make_trip('2024-02-01', {'type': 'start'}),
            make_trip('2023-11-20', {'type': 'start'}),
            make_trip('2023-02-14', {'type': 'start'}),
            make_trip('2023-10-01', {'type': 'start'}),
        ]
        index = build_bucket_index('all', trips, today)
        assert index.grain == MONTH_GRAIN
        # October sorts after February, not between January and February
        assert index.labels == ['2023/02', '2023/10', '2023/11', '2024/02']

    def test_month_key_is_year_month_pair(self, make_trip, today):
        index = build_bucket_index('all', [make_trip('2023-11-05', {'type': 'start'})], today)
        assert index.key_for(date(2023, 11, 30)) == (2023, 11)
        assert index.column_for(date(2023, 11, 30)) == 0

    def test_no_trips_gives_empty_axis(self, today):
        index = build_bucket_index('all', [], today)
        assert index.labels == []
        assert len(index) == 0
