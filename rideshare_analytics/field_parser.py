#!/usr/bin/env python3
"""
Field parsing module for the Rideshare Trip Analytics system
Turns free-form OCR/vision text into typed trip fields using keyword anchoring and range heuristics
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .models import OcrResult
from .logging_utils import get_logger

NUMBER_TOKEN = r'(\d[\d,]*(?:\.\d+)?)'
_NUMBER_RE = re.compile(r'-?\d[\d,]*(?:\.\d+)?')
_DATE_TIME_RE = re.compile(r'\b\d{4}-\d{1,2}-\d{1,2}\b|\b\d{1,2}/\d{1,2}/\d{2,4}\b|\b\d{1,2}:\d{2}\b')
_CURRENCY_RE = re.compile(r'[$€£,\s]')
_HOURS_RE = re.compile(r'(\d+(?:\.\d+)?)\s*(?:h|hr|hrs|hour|hours)\b', re.IGNORECASE)
_MINUTES_RE = re.compile(r'(\d+(?:\.\d+)?)\s*(?:m|min|mins|minute|minutes)\b', re.IGNORECASE)


def _keyword_regex(keyword: str) -> str:
    return r'\b' + r'\s+'.join(re.escape(part) for part in keyword.split()) + r'\b'


def has_keyword(text: str, keyword: str) -> bool:
    """Check whether a keyword occurs in text as a whole word (case-insensitive)"""
    return re.search(_keyword_regex(keyword), text, re.IGNORECASE) is not None


def extract_numbers(text: str) -> List[float]:
    """Pull every numeric token out of free-form text, in reading order; dates and clock times are skipped"""
    numbers = []
    for token in _NUMBER_RE.findall(_DATE_TIME_RE.sub(' ', text or '')):
        try:
            numbers.append(float(token.replace(',', '')))
        except ValueError:
            continue
    return numbers


class FieldExtractor:
    """
    Strategy for extracting one field semantic from OCR output.

    Subclasses override parse_token() to convert a raw token, and may
    override find_anchored() when the semantic needs more than one number.
    """

    semantic = 'number'

    def parse_token(self, token: Any) -> Optional[Any]:
        """Convert a raw token into this semantic's value, or None"""
        if isinstance(token, bool) or token is None:
            return None
        if isinstance(token, (int, float)):
            return float(token)
        match = _NUMBER_RE.search(str(token))
        if not match:
            return None
        try:
            return float(match.group(0).replace(',', ''))
        except ValueError:
            return None

    def find_anchored(self, line: str, keyword: str) -> Optional[Any]:
        """Find a value immediately following or preceding a keyword on one line"""
        kw = _keyword_regex(keyword)
        following = re.search(kw + r'[^\d\n]{0,24}?' + NUMBER_TOKEN, line, re.IGNORECASE)
        if following:
            return self.parse_token(following.group(1))
        preceding = re.search(NUMBER_TOKEN + r'\s*' + kw, line, re.IGNORECASE)
        if preceding:
            return self.parse_token(preceding.group(1))
        return None

    def extract(self, text: str, numbers: Iterable[Any], spec: 'FieldSpec') -> Optional[Any]:
        """
        Extract a value for a field

        Args:
            text: Raw OCR text
            numbers: Flat list of numeric tokens from the same text
            spec: Field specification (keywords, admissible range)

        Returns:
            Typed value, or None when no plausible candidate exists
        """
        lines = (text or '').splitlines()

        for keyword in spec.keywords:
            if not has_keyword(text or '', keyword):
                continue
            for line in lines:
                if not has_keyword(line, keyword):
                    continue
                value = self.find_anchored(line, keyword)
                if value is not None:
                    return value

        if spec.value_range is None:
            return None
        return self.pick_in_range(numbers, spec.value_range)

    def pick_in_range(self, numbers: Iterable[Any], value_range: Tuple[float, float]) -> Optional[Any]:
        """First number strictly inside the admissible range"""
        low, high = value_range
        for token in numbers:
            value = self.parse_token(token)
            if value is None:
                continue
            if low < value < high:
                return value
        return None


class NumberExtractor(FieldExtractor):
    semantic = 'number'


class MoneyExtractor(FieldExtractor):
    """Dollar amounts; unparsable tokens become 0.0 so downstream math stays defined"""

    semantic = 'money'

    def parse_token(self, token: Any) -> Optional[float]:
        if isinstance(token, bool) or token is None:
            return None
        if isinstance(token, (int, float)):
            return round(float(token), 2)
        cleaned = _CURRENCY_RE.sub('', str(token))
        try:
            return round(float(cleaned), 2)
        except ValueError:
            return 0.0


class DistanceExtractor(FieldExtractor):
    semantic = 'distance'


class CountExtractor(FieldExtractor):
    semantic = 'count'

    def parse_token(self, token: Any) -> Optional[int]:
        value = super().parse_token(token)
        return None if value is None else int(value)


class DurationExtractor(FieldExtractor):
    """Durations in minutes; understands '1 hr 15 min' as well as bare numbers"""

    semantic = 'duration'

    def find_anchored(self, line: str, keyword: str) -> Optional[float]:
        hours = _HOURS_RE.search(line)
        if hours:
            minutes = _MINUTES_RE.search(line, hours.end())
            total = float(hours.group(1)) * 60
            if minutes:
                total += float(minutes.group(1))
            return total
        return super().find_anchored(line, keyword)


class TextExtractor(FieldExtractor):
    """Free-text labels written as 'Keyword: value' or 'Keyword - value'"""

    semantic = 'text'

    def parse_token(self, token: Any) -> Optional[str]:
        if token is None:
            return None
        value = str(token).strip().strip('.,;')
        return value or None

    def find_anchored(self, line: str, keyword: str) -> Optional[str]:
        match = re.search(_keyword_regex(keyword) + r'\s*[:\-]\s*(.+)$', line, re.IGNORECASE)
        if match:
            return self.parse_token(match.group(1))
        return None

    def pick_in_range(self, numbers, value_range):
        return None


class PlatformExtractor(FieldExtractor):
    """Recognize the rideshare/delivery platform from its name anywhere in the text"""

    semantic = 'platform'

    PLATFORMS = (
        ('uber eats', 'Uber Eats'),
        ('ubereats', 'Uber Eats'),
        ('doordash', 'DoorDash'),
        ('grubhub', 'Grubhub'),
        ('instacart', 'Instacart'),
        ('uber', 'Uber'),
        ('lyft', 'Lyft'),
    )

    def extract(self, text: str, numbers: Iterable[Any], spec: 'FieldSpec') -> Optional[str]:
        for needle, name in self.PLATFORMS:
            if has_keyword(text or '', needle):
                return name
        return None


@dataclass(frozen=True)
class FieldSpec:
    """How to extract one field: which strategy, which keywords, which fallback range"""

    name: str
    extractor: FieldExtractor
    keywords: Tuple[str, ...] = ()
    value_range: Optional[Tuple[float, float]] = None


MONEY = MoneyExtractor()
NUMBER = NumberExtractor()
DISTANCE = DistanceExtractor()
DURATION = DurationExtractor()
COUNT = CountExtractor()
TEXT = TextExtractor()
PLATFORM = PlatformExtractor()

DISTANCE_KEYWORDS = ('distance', 'miles', 'mi')


def build_field_specs() -> Dict[str, Tuple[FieldSpec, ...]]:
    """Per-screenshot-type field specifications"""
    return {
        'initial_offer': (
            FieldSpec('pickup_location', TEXT, ('pickup', 'pick up', 'from')),
            FieldSpec('dropoff_location', TEXT, ('dropoff', 'drop off', 'destination')),
            FieldSpec('estimated_fare', MONEY, ('estimated fare', 'fare', 'offer', 'pay'), (10, 200)),
            FieldSpec('estimated_tip', MONEY, ('estimated tip', 'tip', 'tips'), (2, 15)),
            FieldSpec('estimated_time', DURATION, ('time', 'eta', 'minutes', 'mins', 'min'), (10, 60)),
            FieldSpec('distance', DISTANCE, DISTANCE_KEYWORDS, (1, 50)),
            FieldSpec('platform', PLATFORM),
            FieldSpec('surge_multiplier', NUMBER, ('surge',)),
        ),
        'final_total': (
            FieldSpec('total_earnings', MONEY,
                      ('total earnings', 'you earned', 'earnings', 'earned', 'total'), (15, 200)),
            FieldSpec('base_fare', MONEY, ('base fare',)),
            FieldSpec('final_fare', MONEY, ('trip fare', 'final fare', 'fare')),
            FieldSpec('actual_tip', MONEY, ('tip', 'tips'), (2, 15)),
            FieldSpec('trip_time', DURATION, ('trip time', 'duration', 'time'), (15, 120)),
            FieldSpec('distance', DISTANCE, DISTANCE_KEYWORDS, (1, 50)),
            FieldSpec('fees', MONEY, ('service fee', 'fees', 'fee')),
            FieldSpec('bonus', MONEY, ('bonus', 'boost', 'promotion')),
            FieldSpec('platform', PLATFORM),
        ),
        'dashboard_odometer': (
            FieldSpec('odometer_reading', NUMBER, ('odometer', 'odo'), (10000, 1000000)),
            FieldSpec('fuel_level', NUMBER, ('fuel level', 'fuel', 'gas')),
            FieldSpec('dashboard_time', TEXT, ('time', 'clock')),
        ),
        'trip_summary': (
            FieldSpec('total_trips', COUNT, ('total trips', 'trips', 'rides', 'deliveries'), (5, 50)),
            FieldSpec('total_earnings', MONEY, ('total earnings', 'earnings', 'earned'), (50, 5000)),
            FieldSpec('total_distance', DISTANCE, DISTANCE_KEYWORDS, (20, 200)),
            FieldSpec('active_time', DURATION, ('active time', 'time online', 'online', 'hours')),
            FieldSpec('summary_period', TEXT, ('period', 'date range', 'date')),
        ),
        'navigation': (
            FieldSpec('route_distance', DISTANCE, DISTANCE_KEYWORDS + ('route',), (1, 50)),
            FieldSpec('estimated_time', DURATION, ('eta', 'arrive in', 'time', 'min'), (1, 120)),
            FieldSpec('pickup_address', TEXT, ('pickup', 'pick up', 'from', 'start')),
            FieldSpec('dropoff_address', TEXT, ('dropoff', 'drop off', 'destination', 'to')),
        ),
        'weekly_summary': (
            FieldSpec('total_trips', COUNT, ('total trips', 'trips', 'rides', 'deliveries'), (1, 500)),
            FieldSpec('total_earnings', MONEY, ('total earnings', 'earnings', 'earned'), (50, 10000)),
            FieldSpec('total_distance', DISTANCE, DISTANCE_KEYWORDS, (20, 5000)),
            FieldSpec('total_tips', MONEY, ('total tips', 'tips')),
            FieldSpec('week_period', TEXT, ('week', 'period')),
            FieldSpec('platform', PLATFORM),
        ),
        'unknown': (),
    }


class FieldParser:
    """
    Extracts typed fields for a screenshot type from an OCR result
    """

    def __init__(self, field_specs: Optional[Dict[str, Tuple[FieldSpec, ...]]] = None):
        self.logger = get_logger()
        self.field_specs = field_specs if field_specs is not None else build_field_specs()

    def parse_fields(self, screenshot_type: str, ocr_result: OcrResult) -> Dict[str, Any]:
        """
        Parse every field declared for a screenshot type

        Args:
            screenshot_type: Screenshot type label
            ocr_result: Text and numeric tokens from the OCR layer

        Returns:
            Dictionary of successfully parsed fields (absent fields are omitted)
        """
        specs = self.field_specs.get(screenshot_type, ())
        text = ocr_result.text or ''
        numbers = list(ocr_result.numbers) if ocr_result.numbers else extract_numbers(text)

        # Keyword-anchored values first, so the range fallback only sees unclaimed numbers
        parsed = {}
        for spec in specs:
            value = self.parse_field(spec, text, [])
            if value is not None:
                parsed[spec.name] = value

        remaining = list(numbers)
        for value in parsed.values():
            self._claim(remaining, value)

        for spec in specs:
            if spec.name in parsed or spec.value_range is None:
                continue
            value = self.parse_field(spec, text, remaining)
            if value is not None:
                parsed[spec.name] = value
                self._claim(remaining, value)
                self.logger.debug(f"Range fallback for {screenshot_type}.{spec.name} = {value!r}")

        missing = [spec.name for spec in specs if spec.name not in parsed]
        if missing:
            self.logger.debug(f"No value found for {screenshot_type}: {', '.join(missing)}")

        # Preserve declaration order
        return {spec.name: parsed[spec.name] for spec in specs if spec.name in parsed}

    @staticmethod
    def _claim(numbers: List[Any], value: Any):
        """Remove the first numeric token equal to a parsed value; each token fills at most one field"""
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return
        for index, token in enumerate(numbers):
            if NUMBER.parse_token(token) == value:
                del numbers[index]
                return

    def parse_field(self, spec: FieldSpec, text: str, numbers: List[Any]) -> Optional[Any]:
        """Run one field's extractor, treating malformed input as a missing value"""
        try:
            return spec.extractor.extract(text, numbers, spec)
        except (ValueError, TypeError, OverflowError) as e:
            self.logger.warning(f"Could not parse field '{spec.name}': {e}")
            return None
