#!/usr/bin/env python3
"""
Extraction normalizer for the Rideshare Trip Analytics system
Assembles parsed fields into a canonical per-screenshot record with confidence and element lists
"""

from typing import Any, Dict, Mapping, Optional

from .config import Config, ReconciliationThresholds
from .logging_utils import get_logger
from .models import ExtractedScreenshotData, ScreenshotTemplate
from .templates import TemplateRegistry


class ExtractionNormalizer:
    """
    Builds ExtractedScreenshotData from raw parsed fields
    """

    def __init__(self, registry: TemplateRegistry,
                 thresholds: Optional[ReconciliationThresholds] = None):
        self.logger = get_logger()
        self.registry = registry
        self.thresholds = thresholds or Config.THRESHOLDS

    def normalize(self, screenshot_type: str, raw_parsed_fields: Mapping[str, Any],
                  ocr_raw: Optional[Mapping[str, Any]] = None) -> ExtractedScreenshotData:
        """
        Overlay parsed fields on a template's defaults and score the result

        Args:
            screenshot_type: Screenshot type label (unregistered types use 'unknown')
            raw_parsed_fields: Successfully parsed field values
            ocr_raw: Source text, numeric tokens and raw OCR confidence

        Returns:
            Immutable ExtractedScreenshotData
        """
        template = self.registry.lookup_or_fallback(screenshot_type)

        extracted_data = dict(template.data_structure)
        for name, value in raw_parsed_fields.items():
            if name not in template.data_structure:
                self.logger.debug(f"Dropping field '{name}' not in {template.screenshot_type} template")
                continue
            if value is not None:
                extracted_data[name] = value

        detected = [f for f in template.expected_fields if extracted_data.get(f) is not None]
        missing = [f for f in template.expected_fields if extracted_data.get(f) is None]
        confidence = self.calculate_confidence(extracted_data, template)

        self.logger.info(
            f"📊 Normalized {template.screenshot_type}: {len(detected)}/{len(template.expected_fields)} "
            f"fields detected, confidence {confidence:.2f}"
        )
        if missing:
            self.logger.debug(f"Missing elements: {', '.join(missing)}")

        return ExtractedScreenshotData(
            screenshot_type=template.screenshot_type,
            extracted_data=extracted_data,
            detected_elements=detected,
            missing_elements=missing,
            data_confidence=confidence,
            ocr_raw=self._ocr_raw(ocr_raw),
        )

    def calculate_confidence(self, extracted_data: Mapping[str, Any],
                             template: ScreenshotTemplate) -> float:
        """Share of required fields present plus a small bonus, capped"""
        required = template.required_fields
        if required:
            present = sum(1 for f in required if extracted_data.get(f) is not None)
            ratio = present / len(required)
        else:
            ratio = 0.0
        confidence = min(self.thresholds.confidence_cap, ratio + self.thresholds.confidence_bonus)
        return round(max(0.0, confidence), 4)

    @staticmethod
    def _ocr_raw(ocr_raw: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        ocr_raw = ocr_raw or {}
        return {
            'text': ocr_raw.get('text') or '',
            'numbers': list(ocr_raw.get('numbers') or []),
            'confidence': ocr_raw.get('confidence'),
        }
