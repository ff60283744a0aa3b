#!/usr/bin/env python3
"""
Unit tests for multi-trip analytics
"""

import os
import sys
from datetime import datetime

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from rideshare_analytics.models import TripRecord
from rideshare_analytics.trip_analytics import TripAnalyzer, calculate_trend, calculate_consistency
from sample_screenshots import TEST_VEHICLE


def trip(trip_id, created_at, earnings, distance, gallons, profit, tip=0.0):
    return TripRecord(
        trip_id=trip_id,
        trip_data={
            'driver_earnings': earnings,
            'tip_amount': tip,
            'distance': distance,
            'gas_used_gallons': gallons,
            'gas_cost': gallons * 3.5,
            'profit': profit,
            'performance_score': 80.0,
        },
        created_at=created_at,
    )


class TestTrendHelpers:
    """Test trend and consistency helpers"""

    @pytest.mark.parametrize("values, expected", [
        ([10, 10, 20, 20], 'improving'),
        ([20, 20, 10, 10], 'declining'),
        ([10, 10.5], 'stable'),
        ([5], 'insufficient_data'),
        ([], 'insufficient_data'),
    ])
    def test_trend(self, values, expected):
        assert calculate_trend(values) == expected

    def test_consistency(self):
        assert calculate_consistency([10, 10, 10]) == 100.0
        assert calculate_consistency([]) == 0.0
        assert calculate_consistency([0, 0]) == 0.0
        assert 0 < calculate_consistency([5, 15]) < 100


class TestTripAnalyzer:
    """Test DataFrame-backed summaries"""

    def setup_method(self):
        self.analyzer = TripAnalyzer(TEST_VEHICLE)
        self.trips = [
            trip('a', datetime(2026, 10, 5, 9, 0), 20.0, 10.0, 0.5, 18.0, tip=3.0),
            trip('b', datetime(2026, 10, 5, 17, 0), 30.0, 20.0, 1.0, 26.5, tip=5.0),
            trip('c', datetime(2026, 10, 6, 12, 0), 15.0, 5.0, 0.25, 14.0),
        ]

    def test_dataframe(self):
        df = self.analyzer.trips_to_dataframe(self.trips)

        assert len(df) == 3
        assert list(df['day_of_week'][:2]) == ['Monday', 'Monday']
        assert df['driver_earnings'].sum() == 65.0

    def test_missing_values_are_skipped(self):
        incomplete = TripRecord(trip_id='d', trip_data={'distance': 4.0}, created_at=datetime(2026, 10, 6))
        summary = self.analyzer.summarize(self.trips + [incomplete])

        assert summary['total_trips'] == 4
        assert summary['total_earnings'] == 65.0
        assert summary['total_distance'] == 39.0

    def test_summarize(self):
        summary = self.analyzer.summarize(self.trips)

        assert summary['total_trips'] == 3
        assert summary['total_earnings'] == 65.0
        assert summary['total_tips'] == 8.0
        assert summary['total_distance'] == 35.0
        assert summary['total_profit'] == 58.5
        assert summary['average_mpg'] == 20.0
        assert summary['efficiency_rating'] == 'Average'
        assert summary['profit_per_mile'] == round(58.5 / 35.0, 2)
        assert summary['performance_score'] == 100.0

    def test_summarize_empty(self):
        summary = self.analyzer.summarize([])

        assert summary['total_trips'] == 0
        assert summary['average_mpg'] is None
        assert summary['efficiency_rating'] == 'Unknown'
        assert summary['performance_score'] == 0.0

    def test_weekly_breakdown(self):
        breakdown = self.analyzer.weekly_breakdown(self.trips)

        assert breakdown['week_start'] == '2026-10-05'
        assert list(breakdown['daily_breakdown']) == ['2026-10-05', '2026-10-06']
        monday = breakdown['daily_breakdown']['2026-10-05']
        assert monday['total_trips'] == 2
        assert monday['day_of_week'] == 'Monday'
        assert breakdown['best_day'] == '2026-10-05'
        assert breakdown['week_totals']['total_profit'] == 58.5
        assert breakdown['trends']['profit_trend'] == 'declining'

    def test_weekly_breakdown_empty(self):
        breakdown = self.analyzer.weekly_breakdown([])

        assert breakdown['daily_breakdown'] == {}
        assert breakdown['best_day'] is None
        assert breakdown['trends']['profit_trend'] == 'insufficient_data'


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
