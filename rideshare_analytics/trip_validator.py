#!/usr/bin/env python3
"""
Trip data validator module
Flags unreasonable trip figures and fills missing earnings estimates for combined trip data
"""

from typing import Any, Dict, Iterable, List, Tuple

from .logging_utils import get_logger
from .config import config
from .models import ExtractedScreenshotData


class TripDataValidator:
    """
    Validate combined trip data for common extraction issues
    """

    def __init__(self):
        """Initialize the trip data validator"""
        self.logger = get_logger()

    def validate_and_correct_data(self, trip_data: Dict[str, Any],
                                  estimate_missing: bool = None) -> Tuple[Dict[str, Any], List[str]]:
        """
        Apply automatic corrections to trip data

        Args:
            trip_data: Combined trip data dictionary (before financial derivation)
            estimate_missing: Whether to estimate missing earnings (uses config if None)

        Returns:
            Tuple of (corrected_data, list_of_corrections_applied)
        """
        if estimate_missing is None:
            estimate_missing = config.ESTIMATE_MISSING_EARNINGS

        corrected_data = dict(trip_data)
        corrections = []

        if estimate_missing:
            corrections.extend(self._estimate_missing_earnings(corrected_data))

        if corrections:
            self.logger.info(f"Applied {len(corrections)} corrections")
            for correction in corrections:
                self.logger.debug(f"  - {correction}")

        return corrected_data, corrections

    def validate_trip_data(self, trip_data: Dict[str, Any],
                           screenshots: Iterable[ExtractedScreenshotData] = ()) -> List[str]:
        """
        Check trip data for values outside configured reasonableness limits

        Args:
            trip_data: Trip data dictionary (combined and financial fields)
            screenshots: Extractions the trip was built from

        Returns:
            List of validation warnings
        """
        warnings = []

        warnings.extend(self._check_earnings(trip_data))
        warnings.extend(self._check_distance(trip_data))
        warnings.extend(self._check_profit(trip_data))
        warnings.extend(self._check_duplicate_locations(trip_data))
        warnings.extend(self._check_screenshot_confidence(screenshots))

        if warnings:
            self.logger.warning(f"Found {len(warnings)} validation warnings")
            for warning in warnings:
                self.logger.warning(f"  - {warning}")
        else:
            self.logger.debug("No validation warnings found")

        return warnings

    def _estimate_missing_earnings(self, data: Dict[str, Any]) -> List[str]:
        """Estimate a payout from distance for trips with neither a fare nor reported earnings"""
        distance = data.get('distance')
        if data.get('fare_amount') is not None or data.get('reported_earnings') is not None:
            return []
        if not distance or distance <= 0:
            return []

        estimate = round(max(config.MIN_ESTIMATED_EARNINGS,
                             distance * config.ESTIMATED_EARNINGS_PER_MILE), 2)
        data['reported_earnings'] = estimate
        data['estimated_earnings'] = True
        return [f"Estimated missing earnings as ${estimate:.2f} from {distance} miles"]

    def _check_earnings(self, data: Dict[str, Any]) -> List[str]:
        warnings = []
        earnings = data.get('driver_earnings')
        if earnings is None:
            warnings.append("Driver earnings missing - upload a final total screenshot")
        elif earnings < config.MIN_TRIP_EARNINGS:
            warnings.append(f"Suspicious earnings (too low): ${earnings:.2f} - verify against image")
        elif earnings > config.MAX_TRIP_EARNINGS:
            warnings.append(f"Suspicious earnings (too high): ${earnings:.2f} - verify against image")
        return warnings

    def _check_distance(self, data: Dict[str, Any]) -> List[str]:
        distance = data.get('distance')
        if distance is not None and distance > config.MAX_TRIP_DISTANCE:
            return [f"Suspicious distance (too high): {distance} miles - verify against image"]
        return []

    def _check_profit(self, data: Dict[str, Any]) -> List[str]:
        profit = data.get('profit')
        if profit is not None and profit < 0:
            return [f"Trip lost money after fuel: ${profit:.2f}"]
        return []

    def _check_duplicate_locations(self, data: Dict[str, Any]) -> List[str]:
        pickup = data.get('pickup_location')
        dropoff = data.get('dropoff_location')
        if pickup and dropoff and pickup.strip().lower() == dropoff.strip().lower():
            return [f"Pickup and dropoff are identical: {pickup}"]
        return []

    def _check_screenshot_confidence(self, screenshots: Iterable[ExtractedScreenshotData]) -> List[str]:
        warnings = []
        for screenshot in screenshots:
            if screenshot.data_confidence < config.MIN_SCREENSHOT_CONFIDENCE:
                warnings.append(
                    f"Low confidence {screenshot.screenshot_type} screenshot "
                    f"({screenshot.data_confidence:.2f}) - consider retaking"
                )
        return warnings
