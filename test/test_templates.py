#!/usr/bin/env python3
"""
Unit tests for the template registry and screenshot classifier
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from rideshare_analytics.errors import UnknownTemplateKind
from rideshare_analytics.models import OcrResult, ScreenshotTemplate
from rideshare_analytics.templates import (
    TemplateRegistry, ScreenshotClassifier, build_template_registry,
    QUALITY_HIGH, QUALITY_MEDIUM, QUALITY_LOW,
)
from sample_screenshots import (
    INITIAL_OFFER_TEXT, FINAL_TOTAL_TEXT, ODOMETER_TEXT, NAVIGATION_TEXT,
    TRIP_SUMMARY_TEXT, WEEKLY_SUMMARY_TEXT,
)


class TestTemplateRegistry:
    """Test template lookup and quality grading"""

    def setup_method(self):
        self.registry = TemplateRegistry()

    def test_all_screenshot_types_registered(self):
        expected = {'initial_offer', 'final_total', 'dashboard_odometer', 'trip_summary',
                    'navigation', 'weekly_summary', 'unknown'}
        assert set(self.registry.screenshot_types()) == expected

    def test_registry_is_read_only(self):
        templates = build_template_registry()
        with pytest.raises(TypeError):
            templates['initial_offer'] = None

    def test_template_defaults_are_read_only(self):
        template = self.registry.lookup_template('initial_offer')
        with pytest.raises(TypeError):
            template.data_structure['distance'] = 3.0

    def test_required_fields_are_expected(self):
        for screenshot_type in self.registry.screenshot_types():
            template = self.registry.lookup_template(screenshot_type)
            assert set(template.required_fields) <= set(template.expected_fields)

    def test_strict_lookup_raises_for_unknown_type(self):
        with pytest.raises(UnknownTemplateKind) as exc_info:
            self.registry.lookup_template('receipt')

        assert exc_info.value.screenshot_type == 'receipt'
        assert 'receipt' in str(exc_info.value)
        assert isinstance(exc_info.value, KeyError)

    def test_fallback_lookup_returns_unknown_template(self):
        template = self.registry.lookup_or_fallback('receipt')
        assert template.screenshot_type == 'unknown'
        assert template.expected_fields == ()

    def test_invalid_template_rejected(self):
        with pytest.raises(ValueError):
            ScreenshotTemplate(
                screenshot_type='broken',
                data_structure={'a': None},
                expected_fields=('a',),
                required_fields=('b',),
            )
        with pytest.raises(ValueError):
            ScreenshotTemplate(
                screenshot_type='broken',
                data_structure={'a': None},
                expected_fields=('a', 'c'),
                required_fields=('a',),
            )

    def test_custom_registry(self):
        template = ScreenshotTemplate(
            screenshot_type='receipt',
            data_structure={'amount': None},
            expected_fields=('amount',),
            required_fields=('amount',),
        )
        registry = TemplateRegistry(build_template_registry([template]))
        assert 'receipt' in registry
        assert 'initial_offer' not in registry


class TestQualityAssessment:
    """Test HIGH/MEDIUM/LOW grading by expected-field coverage"""

    def setup_method(self):
        self.registry = TemplateRegistry()
        self.template = self.registry.lookup_template('initial_offer')

    def test_all_expected_fields_is_high(self):
        data = {'pickup_location': 'A', 'dropoff_location': 'B', 'estimated_fare': 18.5,
                'estimated_time': 25, 'distance': 8.2}
        assert self.registry.assess_quality(data, self.template) == QUALITY_HIGH

    def test_four_of_five_is_high(self):
        data = {'pickup_location': 'A', 'estimated_fare': 18.5, 'estimated_time': 25, 'distance': 8.2}
        assert self.registry.assess_quality(data, self.template) == QUALITY_HIGH

    def test_three_of_five_is_medium(self):
        data = {'estimated_fare': 18.5, 'estimated_time': 25, 'distance': 8.2}
        assert self.registry.assess_quality(data, self.template) == QUALITY_MEDIUM

    def test_one_of_five_is_low(self):
        assert self.registry.assess_quality({'distance': 8.2}, self.template) == QUALITY_LOW

    def test_template_without_expected_fields_is_low(self):
        unknown = self.registry.lookup_template('unknown')
        assert self.registry.assess_quality({'anything': 1}, unknown) == QUALITY_LOW


class TestScreenshotClassifier:
    """Test screenshot type classification"""

    def setup_method(self):
        self.classifier = ScreenshotClassifier(TemplateRegistry())

    @pytest.mark.parametrize("text, expected", [
        (INITIAL_OFFER_TEXT, 'initial_offer'),
        (FINAL_TOTAL_TEXT, 'final_total'),
        (ODOMETER_TEXT, 'dashboard_odometer'),
        (NAVIGATION_TEXT, 'navigation'),
        (TRIP_SUMMARY_TEXT, 'trip_summary'),
        (WEEKLY_SUMMARY_TEXT, 'weekly_summary'),
    ])
    def test_classify_by_keywords(self, text, expected):
        assert self.classifier.classify(OcrResult(text=text)) == expected

    def test_no_keywords_is_unknown(self):
        assert self.classifier.classify(OcrResult(text="Hello world 42")) == 'unknown'

    def test_vision_label_wins(self):
        result = OcrResult(text=FINAL_TOTAL_TEXT, image_type='initial_offer')
        assert self.classifier.classify(result, 'navigation') == 'initial_offer'

    def test_suggested_type_beats_keywords(self):
        result = OcrResult(text=FINAL_TOTAL_TEXT)
        assert self.classifier.classify(result, 'trip_summary') == 'trip_summary'

    def test_unregistered_labels_are_ignored(self):
        result = OcrResult(text=FINAL_TOTAL_TEXT, image_type='receipt')
        assert self.classifier.classify(result, 'unknown') == 'final_total'


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
