#!/usr/bin/env python3
"""
Screenshot template registry and classifier for the Rideshare Trip Analytics system
Maps screenshot types to expected schemas, grades extraction quality and classifies OCR text
"""

from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

from .config import Config, ReconciliationThresholds
from .errors import UnknownTemplateKind
from .field_parser import has_keyword
from .logging_utils import get_logger
from .models import OcrResult, ScreenshotTemplate

QUALITY_HIGH = 'HIGH'
QUALITY_MEDIUM = 'MEDIUM'
QUALITY_LOW = 'LOW'

UNKNOWN_TYPE = 'unknown'


def build_template_registry(templates: Optional[Iterable[ScreenshotTemplate]] = None
                            ) -> Mapping[str, ScreenshotTemplate]:
    """
    Build the immutable screenshot-type → template mapping

    Args:
        templates: Templates to register (defaults to the built-in set)

    Returns:
        Read-only mapping keyed by screenshot type
    """
    if templates is None:
        templates = DEFAULT_TEMPLATES
    return MappingProxyType({t.screenshot_type: t for t in templates})


DEFAULT_TEMPLATES = (
    ScreenshotTemplate(
        screenshot_type='initial_offer',
        data_structure={
            'pickup_location': None,
            'dropoff_location': None,
            'estimated_fare': None,
            'estimated_tip': None,
            'estimated_time': None,
            'distance': None,
            'platform': None,
            'surge_multiplier': None,
            'trip_type': 'estimated',
        },
        expected_fields=('pickup_location', 'dropoff_location', 'estimated_fare',
                         'estimated_time', 'distance'),
        required_fields=('estimated_fare', 'distance'),
        keywords=('pickup', 'dropoff', 'estimated', 'accept', 'offer', 'request'),
    ),
    ScreenshotTemplate(
        screenshot_type='final_total',
        data_structure={
            'total_earnings': None,
            'base_fare': None,
            'final_fare': None,
            'actual_tip': None,
            'trip_time': None,
            'distance': None,
            'fees': None,
            'bonus': None,
            'platform': None,
            'trip_type': 'completed',
        },
        expected_fields=('total_earnings', 'actual_tip', 'trip_time', 'final_fare'),
        required_fields=('total_earnings',),
        keywords=('trip completed', 'you earned', 'total earnings', 'tip', 'rate your', 'earnings'),
    ),
    ScreenshotTemplate(
        screenshot_type='dashboard_odometer',
        data_structure={
            'odometer_reading': None,
            'fuel_level': None,
            'dashboard_time': None,
            'trip_type': 'odometer_reading',
        },
        expected_fields=('odometer_reading', 'fuel_level'),
        required_fields=('odometer_reading',),
        keywords=('odometer', 'odo', 'fuel', 'mpg', 'range'),
    ),
    ScreenshotTemplate(
        screenshot_type='trip_summary',
        data_structure={
            'total_trips': None,
            'total_earnings': None,
            'total_distance': None,
            'active_time': None,
            'summary_period': None,
            'trip_type': 'summary',
        },
        expected_fields=('total_trips', 'total_earnings', 'total_distance', 'active_time'),
        required_fields=('total_trips', 'total_earnings'),
        keywords=('trips', 'summary', 'today', 'online', 'active time'),
    ),
    ScreenshotTemplate(
        screenshot_type='navigation',
        data_structure={
            'route_distance': None,
            'estimated_time': None,
            'pickup_address': None,
            'dropoff_address': None,
            'trip_type': 'route_info',
        },
        expected_fields=('route_distance', 'estimated_time', 'pickup_address', 'dropoff_address'),
        required_fields=('route_distance',),
        keywords=('navigate', 'eta', 'route', 'turn', 'arrive'),
    ),
    ScreenshotTemplate(
        screenshot_type='weekly_summary',
        data_structure={
            'total_trips': None,
            'total_earnings': None,
            'total_distance': None,
            'total_tips': None,
            'week_period': None,
            'platform': None,
            'trip_type': 'weekly_summary',
        },
        expected_fields=('total_trips', 'total_earnings', 'total_distance'),
        required_fields=('total_trips', 'total_earnings'),
        keywords=('weekly', 'this week', 'week', 'weekly summary'),
    ),
    ScreenshotTemplate(
        screenshot_type=UNKNOWN_TYPE,
        data_structure={'trip_type': UNKNOWN_TYPE},
        expected_fields=(),
        required_fields=(),
    ),
)


class TemplateRegistry:
    """Lookup and quality grading over an immutable template mapping"""

    def __init__(self, templates: Optional[Mapping[str, ScreenshotTemplate]] = None,
                 thresholds: Optional[ReconciliationThresholds] = None):
        self.logger = get_logger()
        self.templates = templates if templates is not None else build_template_registry()
        self.thresholds = thresholds or Config.THRESHOLDS

    def __contains__(self, screenshot_type: str) -> bool:
        return screenshot_type in self.templates

    def screenshot_types(self):
        return list(self.templates.keys())

    def lookup_template(self, screenshot_type: str) -> ScreenshotTemplate:
        """
        Strict template lookup

        Raises:
            UnknownTemplateKind: If the type has no registered template
        """
        try:
            return self.templates[screenshot_type]
        except KeyError:
            raise UnknownTemplateKind(screenshot_type) from None

    def lookup_or_fallback(self, screenshot_type: str) -> ScreenshotTemplate:
        """Template lookup that falls back to the permissive 'unknown' template"""
        try:
            return self.lookup_template(screenshot_type)
        except UnknownTemplateKind as e:
            self.logger.warning(f"⚠️ {e}; using '{UNKNOWN_TYPE}' template")
            return self.templates[UNKNOWN_TYPE]

    def assess_quality(self, extracted_data: Mapping[str, Any], template: ScreenshotTemplate) -> str:
        """
        Grade an extraction by the share of expected fields it populated

        Args:
            extracted_data: Field name → value mapping
            template: Template the data was extracted against

        Returns:
            'HIGH', 'MEDIUM' or 'LOW'
        """
        if not template.expected_fields:
            return QUALITY_LOW

        present = sum(1 for f in template.expected_fields if extracted_data.get(f) is not None)
        ratio = present / len(template.expected_fields)

        if ratio >= self.thresholds.quality_high:
            return QUALITY_HIGH
        if ratio >= self.thresholds.quality_medium:
            return QUALITY_MEDIUM
        return QUALITY_LOW


class ScreenshotClassifier:
    """
    Decides which screenshot type an OCR result depicts
    """

    def __init__(self, registry: TemplateRegistry):
        self.logger = get_logger()
        self.registry = registry

    def classify(self, ocr_result: OcrResult, suggested_type: Optional[str] = None) -> str:
        """
        Classify an OCR result

        The vision model's own label wins when it names a registered type,
        then the caller's suggestion, then keyword scoring over the text.

        Args:
            ocr_result: OCR/vision output
            suggested_type: Screenshot type proposed by the caller, if any

        Returns:
            A registered screenshot type ('unknown' when nothing matches)
        """
        for label, source in ((ocr_result.image_type, 'vision label'),
                              (suggested_type, 'suggested type')):
            if label and label in self.registry and label != UNKNOWN_TYPE:
                self.logger.debug(f"Classified as '{label}' from {source}")
                return label
            if label:
                self.logger.debug(f"Ignoring unregistered {source} '{label}'")

        return self.classify_text(ocr_result.text)

    def classify_text(self, text: str) -> str:
        """Pick the registered type whose keywords occur most often in the text"""
        best_type, best_score = UNKNOWN_TYPE, 0
        for screenshot_type, template in self.registry.templates.items():
            score = sum(1 for kw in template.keywords if has_keyword(text or '', kw))
            if score > best_score:
                best_type, best_score = screenshot_type, score

        if best_type == UNKNOWN_TYPE:
            self.logger.info("No screenshot type keywords found; classified as unknown")
        else:
            self.logger.debug(f"Classified as '{best_type}' by keywords (score {best_score})")
        return best_type
