#!/usr/bin/env python3
"""
Trip reconciliation module for the Rideshare Trip Analytics system
Merges the partial extractions of one trip into a single combined record using source priority rules
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .errors import InvalidCorrectionError
from .logging_utils import get_logger
from .models import CombinedTripData, ExtractedScreenshotData

# Lowest priority first; later sources overwrite earlier ones for shared fields
PER_TRIP_SOURCE_PRIORITY = ('navigation', 'initial_offer', 'final_total')
ODOMETER_SOURCE = 'dashboard_odometer'
SUMMARY_SOURCE = 'trip_summary'

STATUS_INITIAL = 'initial_screenshot'
STATUS_FINAL = 'final_screenshot'
STATUS_COMPLETE = 'complete_workflow'

# Fields derived by the financial engine; never accepted as corrections
DERIVED_FIELDS = ('profit', 'gas_cost', 'gas_used_gallons', 'profit_per_mile',
                  'earnings_per_mile', 'profit_margin', 'performance_score')


class TripReconciler:
    """
    Combines per-screenshot extractions into CombinedTripData
    """

    def __init__(self):
        self.logger = get_logger()

    def combine(self, extractions: Iterable[ExtractedScreenshotData]) -> CombinedTripData:
        """
        Merge every extraction attached to one trip

        Final totals beat initial offers beat navigation for shared fields,
        odometer readings come only from dashboard screenshots, and trip
        summary counters fill earnings/distance only when no final total exists.

        Args:
            extractions: Full current set of the trip's extractions

        Returns:
            New CombinedTripData (all fields None and confidence 0 for empty input)
        """
        extractions = list(extractions)
        combined = CombinedTripData()
        if not extractions:
            self.logger.info("No extractions to combine; returning empty trip record")
            return combined

        by_type: Dict[str, List[ExtractedScreenshotData]] = {}
        for extraction in extractions:
            by_type.setdefault(extraction.screenshot_type, []).append(extraction)

        merged: Dict[str, Any] = {}
        contributing: List[ExtractedScreenshotData] = []

        for source_type in PER_TRIP_SOURCE_PRIORITY:
            for extraction in by_type.get(source_type, []):
                self._overlay(merged, extraction.typed_fields.to_trip_fields(), source_type)
                contributing.append(extraction)

        for extraction in by_type.get(ODOMETER_SOURCE, []):
            self._overlay(merged, extraction.typed_fields.to_trip_fields(), ODOMETER_SOURCE)
            contributing.append(extraction)

        has_final_total = bool(by_type.get('final_total'))
        for extraction in by_type.get(SUMMARY_SOURCE, []):
            counters = extraction.typed_fields.to_trip_fields()
            self._overlay(merged, counters, SUMMARY_SOURCE)
            contributing.append(extraction)
            if has_final_total:
                continue
            if merged.get('reported_earnings') is None and counters.get('total_earnings') is not None:
                merged['reported_earnings'] = counters['total_earnings']
            if merged.get('distance') is None and counters.get('total_distance') is not None:
                merged['distance'] = counters['total_distance']

        handled = PER_TRIP_SOURCE_PRIORITY + (ODOMETER_SOURCE, SUMMARY_SOURCE)
        skipped = [t for t in by_type if t not in handled]
        if skipped:
            self.logger.debug(f"Extractions not contributing to trip fields: {skipped}")

        for name in CombinedTripData.field_names():
            if name in merged:
                setattr(combined, name, merged[name])
        combined.combined_confidence = self.combined_confidence(contributing)
        combined.source_types = [e.screenshot_type for e in contributing]

        self.logger.info(
            f"🔗 Combined {len(contributing)} screenshot(s) "
            f"({', '.join(combined.source_types) or 'none'}), "
            f"confidence {combined.combined_confidence:.2f}"
        )
        return combined

    def _overlay(self, merged: Dict[str, Any], trip_fields: Mapping[str, Any], source_type: str):
        for name, value in trip_fields.items():
            if value is None:
                continue
            previous = merged.get(name)
            if previous is not None and previous != value:
                self.logger.debug(f"{source_type} overrides {name}: {previous!r} -> {value!r}")
            merged[name] = value

    @staticmethod
    def combined_confidence(extractions: Iterable[ExtractedScreenshotData]) -> float:
        """Mean source confidence weighted by each source's detected element count"""
        weighted_sum = 0.0
        total_weight = 0
        for extraction in extractions:
            weight = len(extraction.detected_elements)
            if weight == 0:
                continue
            weighted_sum += extraction.data_confidence * weight
            total_weight += weight
        if total_weight == 0:
            return 0.0
        return round(weighted_sum / total_weight, 4)

    @staticmethod
    def derive_trip_status(screenshot_types: Iterable[str]) -> Optional[str]:
        """
        Workflow status from which screenshot types a trip has

        Returns:
            'complete_workflow' with both offer and final total, 'final_screenshot'
            with only a final total, 'initial_screenshot' with anything else, None when empty
        """
        types = set(screenshot_types)
        if not types:
            return None
        has_initial = 'initial_offer' in types
        has_final = 'final_total' in types
        if has_initial and has_final:
            return STATUS_COMPLETE
        if has_final:
            return STATUS_FINAL
        return STATUS_INITIAL

    def apply_corrections(self, combined: CombinedTripData,
                          corrections: Mapping[str, Any]) -> CombinedTripData:
        """
        Overlay manual field corrections on a combined record

        Args:
            combined: Merged trip data (modified in place)
            corrections: Field name → corrected value

        Returns:
            The corrected record

        Raises:
            InvalidCorrectionError: For derived fields or unknown field names
        """
        valid_fields = set(CombinedTripData.field_names())
        for name, value in corrections.items():
            self.validate_correction(name, valid_fields)
            self.logger.info(f"✏️ Manual correction: {name} = {value!r}")
            setattr(combined, name, value)
        return combined

    @staticmethod
    def validate_correction(name: str, valid_fields: Optional[Iterable[str]] = None):
        if name in DERIVED_FIELDS:
            raise InvalidCorrectionError(name, "derived fields are recomputed, correct their inputs instead")
        if name == 'driver_earnings':
            raise InvalidCorrectionError(name, "correct fare_amount/tip_amount or reported_earnings instead")
        valid_fields = set(valid_fields) if valid_fields is not None else set(CombinedTripData.field_names())
        if name not in valid_fields:
            raise InvalidCorrectionError(name, "not a trip field")


def pair_for_tip_variance(extractions: Iterable[ExtractedScreenshotData]
                          ) -> Optional[Tuple[ExtractedScreenshotData, ExtractedScreenshotData]]:
    """Latest initial offer and latest final total, when a trip has both"""
    initial = final = None
    for extraction in extractions:
        if extraction.screenshot_type == 'initial_offer':
            initial = extraction
        elif extraction.screenshot_type == 'final_total':
            final = extraction
    if initial is None or final is None:
        return None
    return initial, final
