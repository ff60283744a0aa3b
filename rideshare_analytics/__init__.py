#!/usr/bin/env python3
"""
Rideshare Trip Analytics Package
Turns OCR output of rideshare/delivery screenshots into reconciled trip records, profit figures and weekly checks
"""

from .main_processor import TripAnalyticsProcessor, process_trip_screenshots, process_ocr_folder
from .field_parser import FieldParser, FieldExtractor, FieldSpec
from .templates import TemplateRegistry, ScreenshotClassifier, build_template_registry
from .normalizer import ExtractionNormalizer
from .trip_reconciler import TripReconciler
from .financial_engine import FinancialEngine
from .weekly_validator import WeeklyValidator, accuracy_ratio
from .trip_validator import TripDataValidator
from .trip_analytics import TripAnalyzer
from .file_processor import FileProcessor
from .models import (OcrResult, VehicleProfile, ScreenshotTemplate, ExtractedScreenshotData,
                     CombinedTripData, FinancialMetrics, TipVarianceResult, TripRecord,
                     WeeklyValidationReport)
from .errors import RideshareAnalyticsError, UnknownTemplateKind, InvalidCorrectionError
from .logging_utils import setup_logging, get_logger
from .config import config, Config

__version__ = "1.0.0"
__author__ = "Rideshare Trip Analytics Team"

# Main classes for external use
__all__ = [
    # Main processor
    'TripAnalyticsProcessor',

    # Convenience functions
    'process_trip_screenshots',
    'process_ocr_folder',

    # Pipeline stages (for advanced use)
    'FieldParser',
    'FieldExtractor',
    'FieldSpec',
    'TemplateRegistry',
    'ScreenshotClassifier',
    'build_template_registry',
    'ExtractionNormalizer',
    'TripReconciler',
    'FinancialEngine',
    'WeeklyValidator',
    'accuracy_ratio',
    'TripDataValidator',
    'TripAnalyzer',
    'FileProcessor',

    # Records
    'OcrResult',
    'VehicleProfile',
    'ScreenshotTemplate',
    'ExtractedScreenshotData',
    'CombinedTripData',
    'FinancialMetrics',
    'TipVarianceResult',
    'TripRecord',
    'WeeklyValidationReport',

    # Errors
    'RideshareAnalyticsError',
    'UnknownTemplateKind',
    'InvalidCorrectionError',

    # Utilities
    'setup_logging',
    'get_logger',

    # Configuration
    'config',
    'Config'
]
