#!/usr/bin/env python3
"""
Unit tests for weekly summary validation
Tests accuracy ratios, discrepancy severities and the degenerate no-trip case
"""

import os
import sys
from datetime import date, datetime

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from rideshare_analytics.models import TripRecord
from rideshare_analytics.weekly_validator import (
    WeeklyValidator, accuracy_ratio, parse_week_period, trips_in_period,
)
from sample_screenshots import make_extraction, completed_trip


def weekly(total_trips=12, total_earnings=156.80, total_distance=None):
    return make_extraction('weekly_summary', {
        'total_trips': total_trips,
        'total_earnings': total_earnings,
        'total_distance': total_distance,
        'total_tips': None,
        'week_period': '2026-10-05 to 2026-10-11',
        'platform': None,
    })


def ten_trips(earnings=14.0, distance=5.0):
    return [completed_trip(f"trip-{i}", earnings, distance) for i in range(10)]


class TestAccuracyRatio:
    """Test the symmetric accuracy ratio"""

    @pytest.mark.parametrize("a, b", [
        (12, 10), (156.8, 140.0), (0, 5), (5, 0), (0, 0), (3.3, 3.3), (1e-6, 1000),
    ])
    def test_symmetry(self, a, b):
        assert accuracy_ratio(a, b) == accuracy_ratio(b, a)

    def test_values(self):
        assert accuracy_ratio(12, 10) == pytest.approx(83.333, abs=1e-3)
        assert accuracy_ratio(10, 10) == 100.0

    def test_zero_and_missing_sides_are_guarded(self):
        assert accuracy_ratio(0, 0) == 0.0
        assert accuracy_ratio(0, 12) == 0.0
        assert accuracy_ratio(None, 12) == 0.0


class TestWeeklyValidation:
    """Test validating a weekly summary against individual trips"""

    def setup_method(self):
        self.validator = WeeklyValidator()

    def test_reference_week(self):
        """12 trips / $156.80 reported against 10 trips / $140.00 recorded"""
        report = self.validator.validate(weekly(), ten_trips())

        assert report.individual_totals['total_trips'] == 10
        assert report.individual_totals['total_earnings'] == 140.0
        assert report.field_accuracy['trips'] == 83.3
        assert report.field_accuracy['earnings'] == 89.3
        assert report.overall_accuracy == pytest.approx(86.3, abs=0.05)
        assert report.data_reliability == 'MEDIUM'

        by_type = {d.type: d for d in report.discrepancies}
        trip_count = by_type['trip_count_mismatch']
        assert trip_count.severity == 'medium'
        assert trip_count.difference == 2
        assert trip_count.description == "Missing 2 individual trip screenshots"

        earnings = by_type['earnings_mismatch']
        assert earnings.severity == 'medium'
        assert earnings.difference == pytest.approx(16.80)
        assert 'distance_mismatch' not in by_type

    def test_differences_within_tolerance_are_not_reported(self):
        report = self.validator.validate(weekly(total_trips=11, total_earnings=144.0), ten_trips())
        assert report.discrepancies == []

    def test_large_differences_are_high_severity(self):
        report = self.validator.validate(weekly(total_trips=20, total_earnings=200.0), ten_trips())

        severities = {d.type: d.severity for d in report.discrepancies}
        assert severities == {'trip_count_mismatch': 'high', 'earnings_mismatch': 'high'}
        assert any(r.startswith("⚠️ HIGH PRIORITY") for r in report.recommendations)

    def test_trip_count_at_high_threshold_stays_medium(self):
        report = self.validator.validate(weekly(total_trips=15, total_earnings=140.0), ten_trips())
        assert [d.severity for d in report.discrepancies] == ['medium']

    def test_extra_individual_trips(self):
        report = self.validator.validate(weekly(total_trips=8, total_earnings=140.0), ten_trips())

        discrepancy = report.discrepancies[0]
        assert discrepancy.difference == -2
        assert discrepancy.description == "2 extra individual trips found"

    def test_distance_severity(self):
        report = self.validator.validate(weekly(total_trips=10, total_earnings=140.0, total_distance=100.0),
                                         ten_trips(distance=5.0))
        assert [(d.type, d.severity) for d in report.discrepancies] == [('distance_mismatch', 'low')]

        report = self.validator.validate(weekly(total_trips=10, total_earnings=140.0, total_distance=200.0),
                                         ten_trips(distance=5.0))
        assert [(d.type, d.severity) for d in report.discrepancies] == [('distance_mismatch', 'high')]

    def test_distance_not_in_overall_accuracy(self):
        report = self.validator.validate(weekly(total_trips=10, total_earnings=140.0, total_distance=500.0),
                                         ten_trips(distance=5.0))
        assert report.field_accuracy['distance'] == 10.0
        assert report.overall_accuracy == 100.0
        assert report.data_reliability == 'HIGH'

    def test_unreadable_weekly_earnings_scores_zero(self):
        """A weekly summary missing its earnings figure cannot reach full accuracy"""
        trips = [completed_trip('t1', 10.0), completed_trip('t2', 10.0)]
        report = self.validator.validate(weekly(total_trips=2, total_earnings=None), trips)

        assert report.field_accuracy == {'trips': 100.0, 'earnings': 0.0}
        assert report.overall_accuracy == 50.0
        assert report.data_reliability == 'LOW'

    def test_trips_without_earnings_are_not_counted(self):
        trips = ten_trips() + [TripRecord(trip_id='pending', trip_data={'distance': 4.0})]
        report = self.validator.validate(weekly(), trips)

        assert report.individual_totals['total_trips'] == 10
        assert report.individual_totals['total_distance'] == 50.0

    def test_no_trips_is_fully_discrepant(self):
        report = self.validator.validate(weekly(), [])

        assert report.overall_accuracy == 0.0
        assert report.data_reliability == 'LOW'
        assert {d.type for d in report.discrepancies} == {'trip_count_mismatch', 'earnings_mismatch'}
        assert all(d.severity == 'high' for d in report.discrepancies)
        assert all(d.actual == 0 for d in report.discrepancies)

    def test_report_serializes(self):
        report = self.validator.validate(weekly(), ten_trips(), (date(2026, 10, 5), date(2026, 10, 11)))
        data = report.to_dict()

        assert data['week_period'] == ['2026-10-05', '2026-10-11']
        assert data['discrepancies'][0]['type'] == 'trip_count_mismatch'
        assert data['recommendations'][0] == "Weekly summary validation completed with 86.3% accuracy"


class TestWeekPeriod:
    """Test week period parsing and trip filtering"""

    def test_parse_period(self):
        assert parse_week_period('2026-10-05 to 2026-10-11') == (date(2026, 10, 5), date(2026, 10, 11))

    @pytest.mark.parametrize("period", [None, '', 'last week', '2026-10-11 to 2026-10-05', '2026-13-01 to 2026-13-07'])
    def test_unparsable_period_falls_back_to_last_seven_days(self, period):
        assert parse_week_period(period, today=date(2026, 10, 18)) == (date(2026, 10, 12), date(2026, 10, 18))

    def test_trips_in_period_is_inclusive(self):
        trips = [
            completed_trip('before', 10.0, created_at=datetime(2026, 10, 4, 23, 59)),
            completed_trip('first', 10.0, created_at=datetime(2026, 10, 5, 0, 1)),
            completed_trip('last', 10.0, created_at=datetime(2026, 10, 11, 22, 0)),
            completed_trip('after', 10.0, created_at=datetime(2026, 10, 12, 8, 0)),
        ]
        selected = trips_in_period(trips, date(2026, 10, 5), date(2026, 10, 11))
        assert [t.trip_id for t in selected] == ['first', 'last']


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
