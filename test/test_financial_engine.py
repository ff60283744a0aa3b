#!/usr/bin/env python3
"""
Unit tests for the financial engine
Tests fuel cost and profit derivation, tip variance categories and performance scoring
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from rideshare_analytics.config import ReconciliationThresholds
from rideshare_analytics.financial_engine import (
    FinancialEngine, performance_score, rate_fuel_efficiency,
    CATEGORY_EXACT, CATEGORY_OVER, CATEGORY_UNDER,
    CATEGORY_SIGNIFICANTLY_OVER, CATEGORY_SIGNIFICANTLY_UNDER,
)
from rideshare_analytics.models import (CombinedTripData, FinalTotalFields, InitialOfferFields,
                                        VehicleProfile)
from sample_screenshots import TEST_VEHICLE


class TestDerive:
    """Test money figures derived from combined trip data"""

    def setup_method(self):
        self.engine = FinancialEngine()

    @pytest.mark.parametrize("fare, tip, distance, mpg, price", [
        (18.50, 3.00, 8.2, 19.0, 3.50),
        (19.75, 5.00, 12.8, 19.0, 3.50),
        (7.10, 0.00, 2.3, 32.5, 4.19),
        (42.00, 12.50, 31.7, 24.0, 3.05),
    ])
    def test_profit_identity(self, fare, tip, distance, mpg, price):
        """profit == fare + tip - fuel cost, to the cent"""
        combined = CombinedTripData(fare_amount=fare, tip_amount=tip, distance=distance)
        metrics = self.engine.derive(combined, VehicleProfile(rated_mpg=mpg, fuel_price_per_gallon=price))

        expected = fare + tip - (distance / mpg) * price
        assert metrics.profit == pytest.approx(expected, abs=0.005)
        assert metrics.to_dict()['profit'] == round(expected, 2)

    def test_fuel_math(self):
        combined = CombinedTripData(fare_amount=19.75, tip_amount=5.0, distance=12.8)
        metrics = self.engine.derive(combined, TEST_VEHICLE)

        assert metrics.driver_earnings == pytest.approx(24.75)
        assert metrics.gas_used_gallons == pytest.approx(12.8 / 19.0)
        assert metrics.gas_cost == pytest.approx(12.8 / 19.0 * 3.50)
        assert metrics.profit_per_mile == pytest.approx(metrics.profit / 12.8)
        assert metrics.earnings_per_mile == pytest.approx(24.75 / 12.8)

    def test_missing_tip_counts_as_zero(self):
        metrics = self.engine.derive(CombinedTripData(fare_amount=12.0, distance=0.0), TEST_VEHICLE)
        assert metrics.driver_earnings == 12.0

    def test_reported_earnings_used_without_fare(self):
        metrics = self.engine.derive(CombinedTripData(reported_earnings=30.0, distance=10.0), TEST_VEHICLE)
        assert metrics.driver_earnings == 30.0
        assert metrics.profit == pytest.approx(30.0 - 10.0 / 19.0 * 3.50)

    def test_zero_distance_omits_per_mile_figures(self):
        metrics = self.engine.derive(CombinedTripData(fare_amount=12.0, tip_amount=2.0, distance=0.0),
                                     TEST_VEHICLE)

        assert metrics.gas_cost == 0.0
        assert metrics.profit == pytest.approx(14.0)
        assert metrics.profit_per_mile is None
        data = metrics.to_dict()
        assert 'profit_per_mile' not in data
        assert 'earnings_per_mile' not in data

    def test_unknown_distance_leaves_profit_unknown(self):
        metrics = self.engine.derive(CombinedTripData(fare_amount=12.0, tip_amount=2.0), TEST_VEHICLE)

        assert metrics.driver_earnings == 14.0
        assert metrics.gas_cost is None
        assert metrics.profit is None
        assert metrics.performance_score is None

    def test_empty_trip_derives_nothing(self):
        metrics = self.engine.derive(CombinedTripData(), TEST_VEHICLE)
        assert metrics.driver_earnings is None
        assert metrics.profit is None

    def test_actual_mpg_prefers_observed(self):
        observed = VehicleProfile(rated_mpg=19.0, fuel_price_per_gallon=3.5, observed_mpg=15.0)
        metrics = self.engine.derive(CombinedTripData(fare_amount=10.0, distance=5.0), observed)

        assert FinancialEngine.actual_mpg(metrics, 5.0, observed) == 15.0
        assert FinancialEngine.actual_mpg(metrics, 5.0, TEST_VEHICLE) == pytest.approx(19.0)

    def test_fuel_analysis(self):
        metrics = self.engine.derive(CombinedTripData(fare_amount=10.0, distance=19.0), TEST_VEHICLE)
        analysis = self.engine.fuel_analysis(metrics, 19.0, TEST_VEHICLE)

        assert analysis['gas_used_gallons'] == 1.0
        assert analysis['gas_cost'] == 3.5
        assert analysis['actual_mpg'] == 19.0
        assert analysis['efficiency_rating'] == 'Average'


class TestVehicleProfile:
    """Test vehicle profile validation"""

    def test_rejects_non_positive_mpg(self):
        with pytest.raises(ValueError):
            VehicleProfile(rated_mpg=0, fuel_price_per_gallon=3.5)

    def test_rejects_negative_fuel_price(self):
        with pytest.raises(ValueError):
            VehicleProfile(rated_mpg=19.0, fuel_price_per_gallon=-1.0)


class TestTipVariance:
    """Test tip variance categorization and comparison"""

    def setup_method(self):
        self.engine = FinancialEngine()

    @pytest.mark.parametrize("variance, expected", [
        (1.00, CATEGORY_OVER),
        (-1.00, CATEGORY_UNDER),
        (1.01, CATEGORY_SIGNIFICANTLY_OVER),
        (-1.01, CATEGORY_SIGNIFICANTLY_UNDER),
        (0.25, CATEGORY_EXACT),
        (-0.25, CATEGORY_EXACT),
        (0.26, CATEGORY_OVER),
        (0.0, CATEGORY_EXACT),
        (0.1 + 0.2 + 0.7, CATEGORY_OVER),
    ])
    def test_category_boundaries(self, variance, expected):
        """The significant boundary is exclusive"""
        assert self.engine.categorize_tip_variance(variance) == expected

    def test_custom_thresholds(self):
        engine = FinancialEngine(ReconciliationThresholds(tip_significant_variance=2.0))
        assert engine.categorize_tip_variance(1.5) == CATEGORY_OVER

    def test_tip_above_estimate(self):
        initial = InitialOfferFields(estimated_fare=15.0, estimated_tip=4.0)
        final = FinalTotalFields(total_earnings=20.50, actual_tip=5.50)

        result = self.engine.calculate_tip_variance(initial, final)

        assert result.tip_variance == 1.5
        assert result.total_variance == 1.5
        assert result.tip_variance_percentage == 37.5
        assert result.accuracy_category == CATEGORY_SIGNIFICANTLY_OVER
        assert result.estimated_vs_actual['estimated'] == {'fare': 15.0, 'tip': 4.0, 'total': 19.0}
        assert result.estimated_vs_actual['actual'] == {'fare': 15.0, 'tip': 5.5, 'total': 20.5}
        assert "$1.50 more than expected (37.5% increase)" in result.variance_insights[0]

    def test_tip_below_estimate(self):
        initial = InitialOfferFields(estimated_fare=15.0, estimated_tip=4.0)
        final = FinalTotalFields(total_earnings=18.50, final_fare=15.0, actual_tip=3.50)

        result = self.engine.calculate_tip_variance(initial, final)

        assert result.tip_variance == -0.5
        assert result.accuracy_category == CATEGORY_UNDER
        assert "less than estimated" in result.variance_insights[0]

    def test_no_estimated_tip(self):
        initial = InitialOfferFields(estimated_fare=18.5)
        final = FinalTotalFields(total_earnings=24.75, final_fare=19.75, actual_tip=5.0)

        result = self.engine.calculate_tip_variance(initial, final)

        assert result.tip_variance == 5.0
        assert result.tip_variance_percentage == 0.0
        assert result.total_variance == 6.25

    def test_exact_match(self):
        initial = InitialOfferFields(estimated_fare=15.0, estimated_tip=4.0)
        final = FinalTotalFields(total_earnings=19.0, actual_tip=4.0)

        result = self.engine.calculate_tip_variance(initial, final)
        assert result.accuracy_category == CATEGORY_EXACT
        assert result.variance_insights[0] == "Tip matched the estimate very closely"


class TestPerformanceScore:
    """Test the 0-100 trip performance score"""

    def test_margin_points_are_capped(self):
        assert performance_score(10.0, 20.0, 19.0, 19.0) == 100.0

    def test_low_efficiency_scales_mpg_points(self):
        assert performance_score(0.0, 20.0, 9.5, 19.0) == pytest.approx(60.0)

    def test_unknown_mpg_gets_no_efficiency_points(self):
        assert performance_score(2.0, 20.0, None, 19.0) == pytest.approx(60.0)

    def test_clamped_at_zero(self):
        assert performance_score(-30.0, 10.0, 19.0, 19.0) == 0.0

    def test_unknown_fare_gets_no_margin_points(self):
        assert performance_score(5.0, None, 19.0, 19.0) == 70.0

    @pytest.mark.parametrize("mpg, expected", [
        (None, 'Unknown'), (25.0, 'Good'), (22.0, 'Good'), (19.0, 'Average'),
        (17.5, 'Below Average'), (12.0, 'Poor'),
    ])
    def test_fuel_efficiency_rating(self, mpg, expected):
        assert rate_fuel_efficiency(mpg) == expected


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
