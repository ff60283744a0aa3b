#!/usr/bin/env python3
"""
Data records shared across the Rideshare Trip Analytics pipeline
Per-screenshot typed field variants, combined trip data, financial metrics and validation reports
"""

from dataclasses import dataclass, field, fields, asdict
from datetime import datetime
from types import MappingProxyType
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple


def _round(value: Optional[float], digits: int = 2) -> Optional[float]:
    return None if value is None else round(value, digits)


@dataclass
class OcrResult:
    """Free-form transcription returned by the external OCR/vision layer"""

    text: str = ''
    numbers: List[Any] = field(default_factory=list)
    image_type: Optional[str] = None
    confidence: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'OcrResult':
        return cls(
            text=data.get('text') or '',
            numbers=list(data.get('numbers') or []),
            image_type=data.get('image_type') or data.get('imageType'),
            confidence=data.get('confidence'),
        )


@dataclass(frozen=True)
class VehicleProfile:
    """Static vehicle parameters used for fuel math"""

    rated_mpg: float
    fuel_price_per_gallon: float
    model: str = 'vehicle'
    observed_mpg: Optional[float] = None

    def __post_init__(self):
        if self.rated_mpg is None or self.rated_mpg <= 0:
            raise ValueError(f"rated_mpg must be positive, got {self.rated_mpg}")
        if self.fuel_price_per_gallon is None or self.fuel_price_per_gallon < 0:
            raise ValueError(
                f"fuel_price_per_gallon must be non-negative, got {self.fuel_price_per_gallon}"
            )


@dataclass(frozen=True)
class ScreenshotTemplate:
    """
    Expected schema for one screenshot type.

    required_fields drive extraction confidence, expected_fields drive quality
    and the detected/missing element lists, keywords drive text classification.
    """

    screenshot_type: str
    data_structure: Mapping[str, Any]
    expected_fields: Tuple[str, ...]
    required_fields: Tuple[str, ...]
    keywords: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'data_structure', MappingProxyType(dict(self.data_structure)))
        object.__setattr__(self, 'expected_fields', tuple(self.expected_fields))
        object.__setattr__(self, 'required_fields', tuple(self.required_fields))
        object.__setattr__(self, 'keywords', tuple(self.keywords))

        not_expected = [f for f in self.required_fields if f not in self.expected_fields]
        if not_expected:
            raise ValueError(
                f"Template '{self.screenshot_type}' has required fields outside "
                f"expected fields: {not_expected}"
            )
        not_structured = [f for f in self.expected_fields if f not in self.data_structure]
        if not_structured:
            raise ValueError(
                f"Template '{self.screenshot_type}' has expected fields missing "
                f"from its data structure: {not_structured}"
            )


# =============================================================================
# PER-SCREENSHOT FIELD VARIANTS
# =============================================================================

class _ScreenshotFields:
    """Shared construction/conversion for the per-type field records"""

    screenshot_type: ClassVar[str] = ''

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]):
        return cls(**{f.name: data.get(f.name) for f in fields(cls)})

    def _trip_fields(self, mapping: Dict[str, str]) -> Dict[str, Any]:
        """Rename own fields into combined-trip keys, dropping absent values"""
        result = {}
        for own_name, trip_name in mapping.items():
            value = getattr(self, own_name)
            if value is not None:
                result[trip_name] = value
        return result

    def to_trip_fields(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class InitialOfferFields(_ScreenshotFields):
    screenshot_type: ClassVar[str] = 'initial_offer'

    pickup_location: Optional[str] = None
    dropoff_location: Optional[str] = None
    estimated_fare: Optional[float] = None
    estimated_tip: Optional[float] = None
    estimated_time: Optional[float] = None
    distance: Optional[float] = None
    platform: Optional[str] = None
    surge_multiplier: Optional[float] = None

    def to_trip_fields(self) -> Dict[str, Any]:
        trip_fields = self._trip_fields({
            'pickup_location': 'pickup_location',
            'dropoff_location': 'dropoff_location',
            'estimated_fare': 'estimated_fare',
            'estimated_tip': 'estimated_tip',
            'estimated_time': 'estimated_time',
            'distance': 'distance',
            'platform': 'platform',
            'surge_multiplier': 'surge_multiplier',
        })
        # Until a final total arrives the offer is the best known fare
        if self.estimated_fare is not None:
            trip_fields['fare_amount'] = self.estimated_fare
        if self.estimated_tip is not None:
            trip_fields['tip_amount'] = self.estimated_tip
        if self.estimated_time is not None:
            trip_fields['duration_minutes'] = self.estimated_time
        return trip_fields


@dataclass(frozen=True)
class FinalTotalFields(_ScreenshotFields):
    screenshot_type: ClassVar[str] = 'final_total'

    total_earnings: Optional[float] = None
    base_fare: Optional[float] = None
    final_fare: Optional[float] = None
    actual_tip: Optional[float] = None
    trip_time: Optional[float] = None
    distance: Optional[float] = None
    fees: Optional[float] = None
    bonus: Optional[float] = None
    platform: Optional[str] = None

    @property
    def fare(self) -> Optional[float]:
        if self.final_fare is not None:
            return self.final_fare
        return self.base_fare

    def to_trip_fields(self) -> Dict[str, Any]:
        trip_fields = self._trip_fields({
            'total_earnings': 'reported_earnings',
            'actual_tip': 'tip_amount',
            'trip_time': 'duration_minutes',
            'distance': 'distance',
            'platform': 'platform',
        })
        fare = self.fare
        if self.total_earnings is not None:
            # The final screen shows the whole payout; an unlisted tip means none
            tip = self.actual_tip if self.actual_tip is not None else 0.0
            trip_fields['tip_amount'] = tip
            if fare is None:
                fare = round(self.total_earnings - tip, 2)
        if fare is not None:
            trip_fields['fare_amount'] = fare
        return trip_fields


@dataclass(frozen=True)
class DashboardOdometerFields(_ScreenshotFields):
    screenshot_type: ClassVar[str] = 'dashboard_odometer'

    odometer_reading: Optional[float] = None
    fuel_level: Optional[float] = None
    dashboard_time: Optional[str] = None

    def to_trip_fields(self) -> Dict[str, Any]:
        return self._trip_fields({
            'odometer_reading': 'odometer_reading',
            'fuel_level': 'fuel_level',
        })


@dataclass(frozen=True)
class TripSummaryFields(_ScreenshotFields):
    screenshot_type: ClassVar[str] = 'trip_summary'

    total_trips: Optional[int] = None
    total_earnings: Optional[float] = None
    total_distance: Optional[float] = None
    active_time: Optional[float] = None
    summary_period: Optional[str] = None

    def to_trip_fields(self) -> Dict[str, Any]:
        return self._trip_fields({
            'total_trips': 'total_trips',
            'total_earnings': 'total_earnings',
            'total_distance': 'total_distance',
            'active_time': 'active_time',
        })


@dataclass(frozen=True)
class NavigationFields(_ScreenshotFields):
    screenshot_type: ClassVar[str] = 'navigation'

    route_distance: Optional[float] = None
    estimated_time: Optional[float] = None
    pickup_address: Optional[str] = None
    dropoff_address: Optional[str] = None

    def to_trip_fields(self) -> Dict[str, Any]:
        return self._trip_fields({
            'route_distance': 'distance',
            'estimated_time': 'duration_minutes',
            'pickup_address': 'pickup_location',
            'dropoff_address': 'dropoff_location',
        })


@dataclass(frozen=True)
class WeeklySummaryFields(_ScreenshotFields):
    screenshot_type: ClassVar[str] = 'weekly_summary'

    total_trips: Optional[int] = None
    total_earnings: Optional[float] = None
    total_distance: Optional[float] = None
    total_tips: Optional[float] = None
    week_period: Optional[str] = None
    platform: Optional[str] = None

    def to_trip_fields(self) -> Dict[str, Any]:
        # Weekly totals describe many trips, never one
        return {}


@dataclass(frozen=True)
class UnknownFields(_ScreenshotFields):
    screenshot_type: ClassVar[str] = 'unknown'

    def to_trip_fields(self) -> Dict[str, Any]:
        return {}


SCREENSHOT_FIELD_TYPES = MappingProxyType({
    cls.screenshot_type: cls
    for cls in (
        InitialOfferFields,
        FinalTotalFields,
        DashboardOdometerFields,
        TripSummaryFields,
        NavigationFields,
        WeeklySummaryFields,
        UnknownFields,
    )
})


def typed_fields_for(screenshot_type: str, data: Mapping[str, Any]) -> _ScreenshotFields:
    """Build the typed field record for a screenshot type (unknown types map to UnknownFields)"""
    return SCREENSHOT_FIELD_TYPES.get(screenshot_type, UnknownFields).from_mapping(data)


# =============================================================================
# EXTRACTION AND TRIP RECORDS
# =============================================================================

@dataclass(frozen=True)
class ExtractedScreenshotData:
    """Normalized result of parsing one screenshot"""

    screenshot_type: str
    extracted_data: Mapping[str, Any]
    detected_elements: Tuple[str, ...]
    missing_elements: Tuple[str, ...]
    data_confidence: float
    ocr_raw: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'extracted_data', MappingProxyType(dict(self.extracted_data)))
        object.__setattr__(self, 'ocr_raw', MappingProxyType(dict(self.ocr_raw)))
        object.__setattr__(self, 'detected_elements', tuple(self.detected_elements))
        object.__setattr__(self, 'missing_elements', tuple(self.missing_elements))

    @property
    def typed_fields(self) -> _ScreenshotFields:
        return typed_fields_for(self.screenshot_type, self.extracted_data)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'screenshot_type': self.screenshot_type,
            'extracted_data': dict(self.extracted_data),
            'detected_elements': list(self.detected_elements),
            'missing_elements': list(self.missing_elements),
            'data_confidence': self.data_confidence,
            'ocr_raw': dict(self.ocr_raw),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ExtractedScreenshotData':
        return cls(
            screenshot_type=data.get('screenshot_type', 'unknown'),
            extracted_data=data.get('extracted_data') or {},
            detected_elements=data.get('detected_elements') or (),
            missing_elements=data.get('missing_elements') or (),
            data_confidence=float(data.get('data_confidence') or 0.0),
            ocr_raw=data.get('ocr_raw') or {},
        )


@dataclass
class CombinedTripData:
    """One trip's fields merged from all of its screenshots"""

    platform: Optional[str] = None
    pickup_location: Optional[str] = None
    dropoff_location: Optional[str] = None
    estimated_fare: Optional[float] = None
    estimated_tip: Optional[float] = None
    estimated_time: Optional[float] = None
    surge_multiplier: Optional[float] = None
    fare_amount: Optional[float] = None
    tip_amount: Optional[float] = None
    reported_earnings: Optional[float] = None
    distance: Optional[float] = None
    duration_minutes: Optional[float] = None
    odometer_reading: Optional[float] = None
    fuel_level: Optional[float] = None
    total_trips: Optional[int] = None
    total_earnings: Optional[float] = None
    total_distance: Optional[float] = None
    active_time: Optional[float] = None
    combined_confidence: float = 0.0
    source_types: List[str] = field(default_factory=list)

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls) if f.name not in ('combined_confidence', 'source_types')]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class FinancialMetrics:
    """Derived money and efficiency figures for one trip"""

    driver_earnings: Optional[float] = None
    gas_used_gallons: Optional[float] = None
    gas_cost: Optional[float] = None
    profit: Optional[float] = None
    profit_per_mile: Optional[float] = None
    earnings_per_mile: Optional[float] = None
    profit_margin: Optional[float] = None
    performance_score: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'driver_earnings': _round(self.driver_earnings),
            'gas_used_gallons': _round(self.gas_used_gallons, 3),
            'gas_cost': _round(self.gas_cost),
            'profit': _round(self.profit),
            'profit_margin': _round(self.profit_margin, 4),
            'performance_score': _round(self.performance_score, 1),
        }
        # Per-mile figures are omitted entirely when distance is insufficient
        if self.profit_per_mile is not None:
            result['profit_per_mile'] = _round(self.profit_per_mile)
        if self.earnings_per_mile is not None:
            result['earnings_per_mile'] = _round(self.earnings_per_mile)
        return result


@dataclass
class TipVarianceResult:
    total_variance: float
    tip_variance: float
    tip_variance_percentage: float
    accuracy_category: str
    estimated_vs_actual: Dict[str, Dict[str, Optional[float]]]
    variance_insights: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Discrepancy:
    type: str
    severity: str
    expected: Optional[float]
    actual: Optional[float]
    difference: float
    description: str
    recommendation: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class WeeklyValidationReport:
    weekly_data: Dict[str, Any]
    individual_totals: Dict[str, Any]
    field_accuracy: Dict[str, float]
    overall_accuracy: float
    discrepancies: List[Discrepancy] = field(default_factory=list)
    data_reliability: str = 'LOW'
    recommendations: List[str] = field(default_factory=list)
    week_period: Optional[Tuple[str, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'weekly_data': dict(self.weekly_data),
            'individual_totals': dict(self.individual_totals),
            'field_accuracy': dict(self.field_accuracy),
            'overall_accuracy': self.overall_accuracy,
            'discrepancies': [d.to_dict() for d in self.discrepancies],
            'data_reliability': self.data_reliability,
            'recommendations': list(self.recommendations),
            'week_period': list(self.week_period) if self.week_period else None,
        }


@dataclass
class TripRecord:
    """
    A trip and the screenshots attached to it.

    trip_data is rebuilt from the full screenshot set every time a screenshot
    is attached or a correction is submitted.
    """

    trip_id: str
    screenshots: List[ExtractedScreenshotData] = field(default_factory=list)
    trip_data: Dict[str, Any] = field(default_factory=dict)
    estimated: bool = False
    trip_status: Optional[str] = None
    corrections: Dict[str, Any] = field(default_factory=dict)
    manually_corrected: bool = False
    correction_timestamp: Optional[str] = None
    tip_variance: Optional[TipVarianceResult] = None
    warnings: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)

    def screenshot_types(self) -> List[str]:
        return [s.screenshot_type for s in self.screenshots]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'trip_id': self.trip_id,
            'screenshots': [s.to_dict() for s in self.screenshots],
            'trip_data': dict(self.trip_data),
            'estimated': self.estimated,
            'trip_status': self.trip_status,
            'corrections': dict(self.corrections),
            'manually_corrected': self.manually_corrected,
            'correction_timestamp': self.correction_timestamp,
            'tip_variance': self.tip_variance.to_dict() if self.tip_variance else None,
            'warnings': list(self.warnings),
            'created_at': self.created_at.isoformat(),
        }
