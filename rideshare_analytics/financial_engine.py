#!/usr/bin/env python3
"""
Financial derivation module for the Rideshare Trip Analytics system
Computes fuel cost, profit, per-mile figures, tip variance and performance scores for merged trips
"""

from typing import Any, Dict, List, Optional

from .config import Config, ReconciliationThresholds
from .logging_utils import get_logger
from .models import (CombinedTripData, FinalTotalFields, FinancialMetrics, InitialOfferFields,
                     TipVarianceResult, VehicleProfile)

CATEGORY_EXACT = 'exact'
CATEGORY_OVER = 'over'
CATEGORY_SIGNIFICANTLY_OVER = 'significantly_over'
CATEGORY_UNDER = 'under'
CATEGORY_SIGNIFICANTLY_UNDER = 'significantly_under'


def performance_score(profit: Optional[float], fare_amount: Optional[float],
                      actual_mpg: Optional[float], rated_mpg: float) -> float:
    """
    Score a trip from 0 to 100

    Base 50, up to 30 points for profit margin (profit / fare), up to 20 points
    for fuel efficiency relative to the vehicle's rated MPG.

    Args:
        profit: Trip profit after fuel
        fare_amount: Fare the margin is measured against
        actual_mpg: Observed MPG for the trip, if known
        rated_mpg: Vehicle rated MPG

    Returns:
        Score clamped to [0, 100]
    """
    score = 50.0

    if profit is not None and fare_amount:
        score += min((profit / fare_amount) * 100, 30)

    if actual_mpg is not None and actual_mpg > 0 and rated_mpg > 0:
        score += 20 if actual_mpg >= rated_mpg else (actual_mpg / rated_mpg) * 20

    return min(max(score, 0.0), 100.0)


def rate_fuel_efficiency(mpg: Optional[float]) -> str:
    """Coarse fuel efficiency label for an MPG figure"""
    if mpg is None:
        return 'Unknown'
    if mpg >= 22:
        return 'Good'
    if mpg >= 19:
        return 'Average'
    if mpg >= 16:
        return 'Below Average'
    return 'Poor'


class FinancialEngine:
    """
    Derives money figures from combined trip data and a vehicle profile
    """

    def __init__(self, thresholds: Optional[ReconciliationThresholds] = None):
        self.logger = get_logger()
        self.thresholds = thresholds or Config.THRESHOLDS

    def derive(self, combined: CombinedTripData, vehicle_profile: VehicleProfile) -> FinancialMetrics:
        """
        Compute fuel use, earnings and profit for one trip

        Args:
            combined: Merged trip data
            vehicle_profile: Rated MPG and fuel price

        Returns:
            FinancialMetrics; figures whose inputs are unknown stay None
        """
        metrics = FinancialMetrics()
        distance = combined.distance

        if combined.fare_amount is not None:
            tip = combined.tip_amount if combined.tip_amount is not None else 0.0
            metrics.driver_earnings = combined.fare_amount + tip
        elif combined.reported_earnings is not None:
            metrics.driver_earnings = combined.reported_earnings

        if distance is not None and distance >= 0:
            metrics.gas_used_gallons = distance / vehicle_profile.rated_mpg
            metrics.gas_cost = metrics.gas_used_gallons * vehicle_profile.fuel_price_per_gallon

        if metrics.driver_earnings is not None and metrics.gas_cost is not None:
            metrics.profit = metrics.driver_earnings - metrics.gas_cost

        if distance is not None and distance > 0:
            if metrics.profit is not None:
                metrics.profit_per_mile = metrics.profit / distance
            if metrics.driver_earnings is not None:
                metrics.earnings_per_mile = metrics.driver_earnings / distance
        elif distance is not None:
            self.logger.debug("Distance is zero; per-mile metrics omitted")

        fare = combined.fare_amount if combined.fare_amount is not None else metrics.driver_earnings
        if metrics.profit is not None and fare:
            metrics.profit_margin = metrics.profit / fare

        if metrics.profit is not None:
            actual_mpg = self.actual_mpg(metrics, distance, vehicle_profile)
            metrics.performance_score = performance_score(
                metrics.profit, fare, actual_mpg, vehicle_profile.rated_mpg
            )

        self.logger.debug(
            f"💰 Derived earnings={metrics.driver_earnings} gas_cost={metrics.gas_cost} "
            f"profit={metrics.profit}"
        )
        return metrics

    @staticmethod
    def actual_mpg(metrics: FinancialMetrics, distance: Optional[float],
                   vehicle_profile: VehicleProfile) -> Optional[float]:
        """Observed MPG when the profile carries one, else distance over gallons used"""
        if vehicle_profile.observed_mpg is not None:
            return vehicle_profile.observed_mpg
        if distance and metrics.gas_used_gallons:
            return round(distance / metrics.gas_used_gallons, 2)
        return None

    def calculate_tip_variance(self, initial: InitialOfferFields,
                               final: FinalTotalFields) -> TipVarianceResult:
        """
        Compare an initial offer's estimate with the final payout

        Args:
            initial: Fields from the initial offer screenshot
            final: Fields from the final total screenshot

        Returns:
            TipVarianceResult with variance amounts, category and insights
        """
        estimated_fare = initial.estimated_fare or 0.0
        estimated_tip = initial.estimated_tip or 0.0
        estimated_total = estimated_fare + estimated_tip

        actual_tip = final.actual_tip or 0.0
        if final.total_earnings is not None:
            actual_total = final.total_earnings
        else:
            actual_total = (final.fare or 0.0) + actual_tip
        actual_fare = final.fare if final.fare is not None else round(actual_total - actual_tip, 2)

        total_variance = round(actual_total - estimated_total, 2)
        tip_variance = round(actual_tip - estimated_tip, 2)
        if estimated_tip:
            tip_variance_percentage = round(tip_variance / estimated_tip * 100, 2)
        else:
            tip_variance_percentage = 0.0

        category = self.categorize_tip_variance(tip_variance)

        result = TipVarianceResult(
            total_variance=total_variance,
            tip_variance=tip_variance,
            tip_variance_percentage=tip_variance_percentage,
            accuracy_category=category,
            estimated_vs_actual={
                'estimated': {
                    'fare': round(estimated_fare, 2),
                    'tip': round(estimated_tip, 2),
                    'total': round(estimated_total, 2),
                },
                'actual': {
                    'fare': round(actual_fare, 2),
                    'tip': round(actual_tip, 2),
                    'total': round(actual_total, 2),
                },
            },
            variance_insights=self.variance_insights(tip_variance, tip_variance_percentage, category),
        )

        self.logger.info(
            f"💵 Tip variance ${tip_variance:+.2f} ({category}), total variance ${total_variance:+.2f}"
        )
        return result

    def categorize_tip_variance(self, tip_variance: float) -> str:
        """Category for a tip variance; the significant boundary is exclusive"""
        variance = round(tip_variance, 2)
        magnitude = abs(variance)
        if magnitude > self.thresholds.tip_significant_variance:
            return CATEGORY_SIGNIFICANTLY_OVER if variance > 0 else CATEGORY_SIGNIFICANTLY_UNDER
        if magnitude > self.thresholds.tip_minor_variance:
            return CATEGORY_OVER if variance > 0 else CATEGORY_UNDER
        return CATEGORY_EXACT

    @staticmethod
    def variance_insights(tip_variance: float, tip_percentage: float, category: str) -> List[str]:
        amount = abs(tip_variance)
        if category == CATEGORY_SIGNIFICANTLY_OVER:
            return [
                f"Customer tipped ${amount:.2f} more than expected ({tip_percentage:.1f}% increase)",
                "This suggests excellent service or customer satisfaction",
            ]
        if category == CATEGORY_OVER:
            return [
                f"Customer tipped ${amount:.2f} more than estimated",
                "Slightly better than expected tip",
            ]
        if category == CATEGORY_UNDER:
            return [
                f"Customer tipped ${amount:.2f} less than estimated",
                "Consider factors that might affect tip satisfaction",
            ]
        if category == CATEGORY_SIGNIFICANTLY_UNDER:
            return [
                f"Customer tipped ${amount:.2f} less than expected ({abs(tip_percentage):.1f}% decrease)",
                "May indicate service issues or customer dissatisfaction",
            ]
        return [
            "Tip matched the estimate very closely",
            "Consistent with platform predictions",
        ]

    def fuel_analysis(self, metrics: FinancialMetrics, distance: Optional[float],
                      vehicle_profile: VehicleProfile) -> Dict[str, Any]:
        """Fuel usage summary for display alongside a trip"""
        actual_mpg = self.actual_mpg(metrics, distance, vehicle_profile)
        return {
            'vehicle_model': vehicle_profile.model,
            'rated_mpg': vehicle_profile.rated_mpg,
            'actual_mpg': None if actual_mpg is None else round(actual_mpg, 1),
            'gas_used_gallons': None if metrics.gas_used_gallons is None else round(metrics.gas_used_gallons, 3),
            'gas_cost': None if metrics.gas_cost is None else round(metrics.gas_cost, 2),
            'efficiency_rating': rate_fuel_efficiency(actual_mpg),
        }
