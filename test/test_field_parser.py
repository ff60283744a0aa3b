#!/usr/bin/env python3
"""
Unit tests for the field parser
Tests keyword anchoring, range fallbacks and per-semantic token parsing
"""

import os
import sys
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from rideshare_analytics.field_parser import (
    FieldParser, FieldSpec, MoneyExtractor, CountExtractor, DurationExtractor,
    TextExtractor, PlatformExtractor, NumberExtractor, has_keyword, extract_numbers,
)
from rideshare_analytics.models import OcrResult
from sample_screenshots import (
    INITIAL_OFFER_TEXT, FINAL_TOTAL_TEXT, ODOMETER_TEXT, NAVIGATION_TEXT,
    TRIP_SUMMARY_TEXT, WEEKLY_SUMMARY_TEXT,
)


class TestTextHelpers:
    """Test keyword matching and number extraction helpers"""

    def test_keyword_matches_whole_words_only(self):
        """Keywords must not match inside longer words"""
        assert has_keyword("Time: 25 min", "time")
        assert not has_keyword("uptime 25", "time")
        assert not has_keyword("Trip completed", "tip")

    def test_multi_word_keyword_tolerates_spacing(self):
        """Multi-word keywords match across any whitespace run"""
        assert has_keyword("Pick   up at the corner", "pick up")
        assert has_keyword("ESTIMATED FARE $12", "estimated fare")

    def test_extract_numbers_in_reading_order(self):
        """Numbers come back as floats with thousands separators removed"""
        assert extract_numbers("Earned $1,234.50 over 3 trips") == [1234.5, 3.0]
        assert extract_numbers("") == []
        assert extract_numbers(None) == []

    def test_extract_numbers_skips_dates_and_times(self):
        assert extract_numbers("Week: 2026-10-05 to 2026-10-11") == []
        assert extract_numbers("10/07/2026 at 14:30, 12 trips") == [12.0]


class TestTokenParsing:
    """Test per-semantic token conversion"""

    def test_money_strips_currency_and_separators(self):
        money = MoneyExtractor()
        assert money.parse_token("$1,234.50") == 1234.5
        assert money.parse_token("€ 12") == 12.0
        assert money.parse_token(7) == 7.0

    def test_money_unparsable_token_becomes_zero(self):
        """Unreadable amounts are zero, absent ones stay None"""
        money = MoneyExtractor()
        assert money.parse_token("$abc") == 0.0
        assert money.parse_token(None) is None

    def test_count_truncates_to_int(self):
        assert CountExtractor().parse_token("12") == 12
        assert isinstance(CountExtractor().parse_token(12.0), int)

    def test_number_ignores_booleans(self):
        assert NumberExtractor().parse_token(True) is None
        assert NumberExtractor().parse_token("about 45,231 miles") == 45231.0

    def test_duration_understands_hours_and_minutes(self):
        spec = FieldSpec('trip_time', DurationExtractor(), ('trip time',))
        assert DurationExtractor().extract("Trip time: 1 hr 15 min", [], spec) == 75.0
        assert DurationExtractor().extract("Trip time: 2 hours", [], spec) == 120.0
        assert DurationExtractor().extract("Trip time: 32 min", [], spec) == 32.0

    def test_text_requires_separator(self):
        spec = FieldSpec('pickup_location', TextExtractor(), ('pickup',))
        assert TextExtractor().extract("Pickup: Main St.", [], spec) == "Main St"
        assert TextExtractor().extract("Navigate to pickup", [], spec) is None

    def test_platform_detection(self):
        spec = FieldSpec('platform', PlatformExtractor())
        assert PlatformExtractor().extract("Uber Eats order", [], spec) == "Uber Eats"
        assert PlatformExtractor().extract("DoorDash dash summary", [], spec) == "DoorDash"
        assert PlatformExtractor().extract("Lyft ride", [], spec) == "Lyft"
        assert PlatformExtractor().extract("Some other app", [], spec) is None


class TestAnchoringAndFallback:
    """Test keyword anchoring and the admissible-range fallback"""

    def test_value_after_keyword(self):
        spec = FieldSpec('distance', NumberExtractor(), ('distance',), (1, 50))
        assert NumberExtractor().extract("Distance: 8.2 miles", [], spec) == 8.2

    def test_value_before_keyword(self):
        spec = FieldSpec('distance', NumberExtractor(), ('mi',), (1, 50))
        assert NumberExtractor().extract("Route: 9.4 mi", [], spec) == 9.4

    def test_range_fallback_when_keyword_has_no_number(self):
        """A keyword without an adjacent value falls back to the first number in range"""
        spec = FieldSpec('estimated_fare', MoneyExtractor(), ('fare',), (10, 200))
        assert MoneyExtractor().extract("Offer\nfare\n$18.50", [3.1, 18.5, 40.0], spec) == 18.5

    def test_range_fallback_without_keyword(self):
        spec = FieldSpec('estimated_fare', MoneyExtractor(), ('fare',), (10, 200))
        assert MoneyExtractor().extract("18.50 3.1", [18.5, 3.1], spec) == 18.5

        spec = FieldSpec('odometer_reading', NumberExtractor(), ('odometer',), (10000, 1000000))
        assert NumberExtractor().extract("45231", [45231], spec) == 45231.0

    def test_no_value_without_range(self):
        spec = FieldSpec('fees', MoneyExtractor(), ('fee',))
        assert MoneyExtractor().extract("3.50", [3.5], spec) is None

    def test_range_is_exclusive(self):
        spec = FieldSpec('estimated_tip', MoneyExtractor(), ('tip',), (2, 15))
        assert MoneyExtractor().extract("tip", [2, 15], spec) is None
        assert MoneyExtractor().extract("tip", [2, 3], spec) == 3.0


class TestFieldParser:
    """Test parsing complete screenshots"""

    def setup_method(self):
        self.parser = FieldParser()

    def test_initial_offer_scenario(self):
        """The reference initial offer parses into all five expected fields"""
        parsed = self.parser.parse_fields('initial_offer', OcrResult(text=INITIAL_OFFER_TEXT))

        assert parsed['pickup_location'] == "Downtown Restaurant"
        assert parsed['dropoff_location'] == "Residential Area"
        assert parsed['estimated_fare'] == 18.50
        assert parsed['distance'] == 8.2
        assert parsed['estimated_time'] == 25
        assert 'estimated_tip' not in parsed

    def test_final_total(self):
        parsed = self.parser.parse_fields('final_total', OcrResult(text=FINAL_TOTAL_TEXT))

        assert parsed['total_earnings'] == 24.75
        assert parsed['final_fare'] == 19.75
        assert parsed['actual_tip'] == 5.0
        assert parsed['distance'] == 12.8
        assert parsed['trip_time'] == 32
        assert parsed['platform'] == "Uber"
        assert 'base_fare' not in parsed

    def test_dashboard_odometer(self):
        parsed = self.parser.parse_fields('dashboard_odometer', OcrResult(text=ODOMETER_TEXT))
        assert parsed == {'odometer_reading': 45231.0, 'fuel_level': 62.0}

    def test_navigation(self):
        parsed = self.parser.parse_fields('navigation', OcrResult(text=NAVIGATION_TEXT))

        assert parsed['route_distance'] == 9.4
        assert parsed['estimated_time'] == 18
        assert parsed['dropoff_address'] == "500 Oak Ave"
        assert 'pickup_address' not in parsed

    def test_trip_summary(self):
        parsed = self.parser.parse_fields('trip_summary', OcrResult(text=TRIP_SUMMARY_TEXT))

        assert parsed['total_trips'] == 8
        assert parsed['total_earnings'] == 142.30
        assert parsed['total_distance'] == 64.5
        assert parsed['active_time'] == 320

    def test_weekly_summary(self):
        parsed = self.parser.parse_fields('weekly_summary', OcrResult(text=WEEKLY_SUMMARY_TEXT))

        assert parsed['total_trips'] == 12
        assert parsed['total_earnings'] == 156.80
        assert parsed['week_period'] == "2026-10-05 to 2026-10-11"
        assert 'total_distance' not in parsed

    def test_unknown_type_parses_nothing(self):
        assert self.parser.parse_fields('unknown', OcrResult(text=FINAL_TOTAL_TEXT)) == {}
        assert self.parser.parse_fields('not_a_type', OcrResult(text=FINAL_TOTAL_TEXT)) == {}

    def test_empty_text_parses_nothing(self):
        assert self.parser.parse_fields('initial_offer', OcrResult(text='')) == {}

    def test_explicit_numbers_used_for_fallback(self):
        """OCR numeric tokens take precedence over numbers found in the text"""
        result = OcrResult(text="fare\n$99", numbers=[25.0])
        parsed = self.parser.parse_fields('initial_offer', result)
        assert parsed['estimated_fare'] == 25.0

    def test_keywordless_offer_uses_range_fallback(self):
        """OCR that lost its labels still yields values from the admissible ranges"""
        result = OcrResult(text="$18.50\n8.2\n25", numbers=[18.5, 8.2, 25])
        parsed = self.parser.parse_fields('initial_offer', result)

        assert parsed['estimated_fare'] == 18.5
        assert parsed['estimated_time'] == 25

    def test_each_number_fills_one_field(self):
        """Numbers claimed by anchored fields are not reused by the fallback"""
        parsed = self.parser.parse_fields('initial_offer', OcrResult(text=INITIAL_OFFER_TEXT))

        assert 'estimated_tip' not in parsed

        parsed = self.parser.parse_fields('initial_offer', OcrResult(text="Fare $40.00\n30"))
        assert parsed['estimated_fare'] == 40.0
        assert parsed['estimated_time'] == 30
        assert 'distance' not in parsed
        assert 'estimated_tip' not in parsed

    def test_weekly_dates_do_not_feed_the_fallback(self):
        parsed = self.parser.parse_fields('weekly_summary', OcrResult(text=WEEKLY_SUMMARY_TEXT))
        assert 'total_distance' not in parsed

    def test_extractor_errors_become_missing_fields(self):
        """A failing extractor yields a missing field instead of an exception"""
        broken = MagicMock()
        broken.extract.side_effect = ValueError("bad token")
        parser = FieldParser({'initial_offer': (FieldSpec('estimated_fare', broken, ('fare',)),)})

        assert parser.parse_fields('initial_offer', OcrResult(text="fare $10")) == {}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
