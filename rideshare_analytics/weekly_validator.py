#!/usr/bin/env python3
"""
Weekly summary validation module for the Rideshare Trip Analytics system
Cross-checks a weekly summary screenshot against the individual trips recorded for the same period
"""

import re
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .config import Config, ReconciliationThresholds
from .logging_utils import get_logger
from .models import Discrepancy, ExtractedScreenshotData, TripRecord, WeeklyValidationReport

_PERIOD_RE = re.compile(r'(\d{4}-\d{2}-\d{2})\s*(?:to|-|–|through)\s*(\d{4}-\d{2}-\d{2})')


def accuracy_ratio(a: Optional[float], b: Optional[float]) -> float:
    """
    Symmetric agreement between two non-negative totals, as a percentage

    Returns:
        min(a, b) / max(a, b) * 100, or 0.0 when either side is missing or zero
    """
    if a is None or b is None:
        return 0.0
    a, b = float(a), float(b)
    if a <= 0 or b <= 0:
        return 0.0
    return min(a, b) / max(a, b) * 100


def parse_week_period(period: Optional[str], today: Optional[date] = None) -> Tuple[date, date]:
    """
    Parse 'YYYY-MM-DD to YYYY-MM-DD'

    Falls back to the seven days ending today when the text is missing or unparsable.
    """
    if period:
        match = _PERIOD_RE.search(period)
        if match:
            try:
                start = datetime.strptime(match.group(1), '%Y-%m-%d').date()
                end = datetime.strptime(match.group(2), '%Y-%m-%d').date()
                if start <= end:
                    return start, end
            except ValueError:
                pass
    end = today or date.today()
    return end - timedelta(days=6), end


def trips_in_period(trips: Iterable[TripRecord], start: date, end: date) -> List[TripRecord]:
    """Trips created on or between the two dates"""
    return [t for t in trips if start <= t.created_at.date() <= end]


class WeeklyValidator:
    """
    Builds a WeeklyValidationReport from a weekly summary extraction and trip records
    """

    FIELDS = (
        # (weekly field, aggregate field, discrepancy type, base severity)
        ('total_trips', 'total_trips', 'trip_count_mismatch', 'medium'),
        ('total_earnings', 'total_earnings', 'earnings_mismatch', 'medium'),
        ('total_distance', 'total_distance', 'distance_mismatch', 'low'),
    )

    def __init__(self, thresholds: Optional[ReconciliationThresholds] = None):
        self.logger = get_logger()
        self.thresholds = thresholds or Config.THRESHOLDS

    def validate(self, weekly_extraction: ExtractedScreenshotData,
                 trips: Iterable[TripRecord],
                 week_period: Optional[Tuple[date, date]] = None) -> WeeklyValidationReport:
        """
        Validate weekly totals against individual trips

        Args:
            weekly_extraction: Extraction of a weekly summary screenshot
            trips: Trip records for the same period
            week_period: Optional (start, end) recorded on the report

        Returns:
            WeeklyValidationReport
        """
        trips = list(trips)
        weekly_data = self._weekly_data(weekly_extraction.extracted_data)
        individual_totals = self.aggregate_trips(trips)

        self.logger.info(
            f"📅 Validating weekly summary ({weekly_data.get('total_trips')} trips, "
            f"${weekly_data.get('total_earnings') or 0:.2f}) against "
            f"{individual_totals['total_trips']} completed trip(s) of {len(trips)}"
        )

        field_accuracy = self.field_accuracy(weekly_data, individual_totals)
        overall_accuracy = round((field_accuracy['trips'] + field_accuracy['earnings']) / 2, 1)

        if individual_totals['total_trips'] == 0:
            discrepancies = self.degenerate_discrepancies(weekly_data)
        else:
            discrepancies = self.find_discrepancies(weekly_data, individual_totals)

        for discrepancy in discrepancies:
            self.logger.warning(f"⚠️ {discrepancy.type} ({discrepancy.severity}): {discrepancy.description}")

        report = WeeklyValidationReport(
            weekly_data=weekly_data,
            individual_totals=individual_totals,
            field_accuracy=field_accuracy,
            overall_accuracy=overall_accuracy,
            discrepancies=discrepancies,
            data_reliability=self.data_reliability(overall_accuracy),
            week_period=(week_period[0].isoformat(), week_period[1].isoformat()) if week_period else None,
        )
        report.recommendations = self.recommendations(report, len(trips))

        self.logger.info(
            f"✅ Weekly validation complete: {overall_accuracy:.1f}% accuracy, "
            f"{len(discrepancies)} discrepancies, reliability {report.data_reliability}"
        )
        return report

    @staticmethod
    def _weekly_data(extracted_data: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            'total_trips': extracted_data.get('total_trips'),
            'total_earnings': extracted_data.get('total_earnings'),
            'total_distance': extracted_data.get('total_distance'),
            'total_tips': extracted_data.get('total_tips'),
            'week_period': extracted_data.get('week_period'),
            'platform': extracted_data.get('platform'),
        }

    @staticmethod
    def aggregate_trips(trips: Iterable[TripRecord]) -> Dict[str, Any]:
        """Sum trips with confirmed earnings; trips without earnings are not yet complete"""
        totals = {'total_trips': 0, 'total_earnings': 0.0, 'total_distance': 0.0, 'total_profit': 0.0}
        for trip in trips:
            data = trip.trip_data
            earnings = data.get('driver_earnings')
            if earnings is None or earnings <= 0:
                continue
            totals['total_trips'] += 1
            totals['total_earnings'] += earnings
            totals['total_distance'] += data.get('distance') or 0.0
            totals['total_profit'] += data.get('profit') or 0.0

        for key in ('total_earnings', 'total_distance', 'total_profit'):
            totals[key] = round(totals[key], 2)
        return totals

    @staticmethod
    def field_accuracy(weekly_data: Mapping[str, Any], totals: Mapping[str, Any]) -> Dict[str, float]:
        """
        Per-field accuracy ratios

        Trips and earnings are always scored, an unreadable weekly figure counting as 0;
        distance is scored only when the weekly summary reports it.
        """
        accuracy = {}
        for weekly_key, label in (('total_trips', 'trips'), ('total_earnings', 'earnings'),
                                  ('total_distance', 'distance')):
            if label == 'distance' and weekly_data.get(weekly_key) is None:
                continue
            accuracy[label] = round(accuracy_ratio(weekly_data[weekly_key], totals[weekly_key]), 1)
        return accuracy

    def _tolerances(self) -> Dict[str, Tuple[float, float]]:
        t = self.thresholds
        return {
            'total_trips': (t.weekly_trip_tolerance,
                            t.weekly_trip_tolerance * t.weekly_trip_high_multiplier),
            'total_earnings': (t.weekly_earnings_tolerance,
                               t.weekly_earnings_tolerance * t.weekly_earnings_high_multiplier),
            'total_distance': (t.weekly_distance_tolerance,
                               t.weekly_distance_tolerance * t.weekly_distance_high_multiplier),
        }

    def find_discrepancies(self, weekly_data: Mapping[str, Any],
                           totals: Mapping[str, Any]) -> List[Discrepancy]:
        """Discrepancies for fields whose difference exceeds its tolerance"""
        tolerances = self._tolerances()
        discrepancies = []
        for weekly_key, total_key, kind, base_severity in self.FIELDS:
            expected = weekly_data.get(weekly_key)
            if expected is None:
                continue
            actual = totals[total_key]
            difference = round(expected - actual, 2)
            tolerance, high_threshold = tolerances[weekly_key]
            if abs(difference) <= tolerance:
                continue
            severity = 'high' if abs(difference) > high_threshold else base_severity
            description, recommendation = self._describe(kind, difference)
            discrepancies.append(Discrepancy(
                type=kind,
                severity=severity,
                expected=expected,
                actual=actual,
                difference=difference,
                description=description,
                recommendation=recommendation,
            ))
        return discrepancies

    def degenerate_discrepancies(self, weekly_data: Mapping[str, Any]) -> List[Discrepancy]:
        """With no completed trips every reported weekly figure is fully discrepant"""
        self.logger.warning("No completed individual trips to compare against weekly summary")
        discrepancies = []
        for weekly_key, _, kind, _ in self.FIELDS:
            expected = weekly_data.get(weekly_key)
            if not expected or expected <= 0:
                continue
            description, recommendation = self._describe(kind, expected)
            discrepancies.append(Discrepancy(
                type=kind,
                severity='high',
                expected=expected,
                actual=0,
                difference=round(expected, 2),
                description=description,
                recommendation=recommendation,
            ))
        return discrepancies

    @staticmethod
    def _describe(kind: str, difference: float) -> Tuple[str, str]:
        if kind == 'trip_count_mismatch':
            count = int(abs(difference))
            if difference > 0:
                return (f"Missing {count} individual trip screenshots",
                        "Upload missing individual trip screenshots")
            return (f"{count} extra individual trips found",
                    "Check for duplicate individual trip entries")
        if kind == 'earnings_mismatch':
            return (f"Earnings difference of ${difference:.2f}",
                    "Verify individual trip earnings extraction accuracy")
        return (f"Distance difference of {difference:.1f} miles",
                "Check individual trip distance extraction")

    def data_reliability(self, overall_accuracy: float) -> str:
        if overall_accuracy >= self.thresholds.reliability_high:
            return 'HIGH'
        if overall_accuracy >= self.thresholds.reliability_medium:
            return 'MEDIUM'
        return 'LOW'

    @staticmethod
    def recommendations(report: WeeklyValidationReport, trip_count: int) -> List[str]:
        accuracy = report.overall_accuracy
        recommendations = [f"Weekly summary validation completed with {accuracy:.1f}% accuracy"]

        if accuracy >= 95:
            recommendations.append("Excellent data accuracy! Individual trips match weekly totals very closely")
        elif accuracy >= 85:
            recommendations.append("Good data accuracy with minor discrepancies, consider reviewing extraction methods")
        elif accuracy >= 70:
            recommendations.append("Moderate accuracy with significant discrepancies, review individual trip uploads")
        else:
            recommendations.append("Low accuracy detected, major discrepancies require immediate attention")

        for discrepancy in report.discrepancies:
            if discrepancy.severity == 'high':
                recommendations.append(
                    f"⚠️ HIGH PRIORITY: {discrepancy.description}. {discrepancy.recommendation}"
                )

        if trip_count and report.individual_totals['total_trips'] < trip_count * 0.8:
            recommendations.append(
                "Many individual trips lack complete data; ensure all trip screenshots are captured"
            )
        return recommendations
