#!/usr/bin/env python3
"""
Main processor module
Orchestrates parsing, reconciliation, financial derivation and weekly validation for rideshare trips
"""

import time
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .config import Config, ReconciliationThresholds
from .errors import InvalidCorrectionError
from .logging_utils import setup_logging, get_logger
from .field_parser import FieldParser
from .file_processor import FileProcessor
from .financial_engine import FinancialEngine, rate_fuel_efficiency
from .models import ExtractedScreenshotData, OcrResult, TripRecord, VehicleProfile
from .normalizer import ExtractionNormalizer
from .screenshot_insights import screenshot_insights, screenshot_recommendations
from .templates import ScreenshotClassifier, TemplateRegistry
from .trip_reconciler import TripReconciler, pair_for_tip_variance
from .trip_validator import TripDataValidator
from .weekly_validator import WeeklyValidator, parse_week_period, trips_in_period

OcrInput = Union[OcrResult, Mapping[str, Any]]


def _as_ocr_result(ocr_result: OcrInput) -> OcrResult:
    if isinstance(ocr_result, OcrResult):
        return ocr_result
    return OcrResult.from_dict(ocr_result)


class TripAnalyticsProcessor:
    """
    Main processor that wires the pipeline stages together
    """

    def __init__(
        self,
        vehicle_profile: Optional[VehicleProfile] = None,
        registry: Optional[TemplateRegistry] = None,
        thresholds: Optional[ReconciliationThresholds] = None,
        setup_logging_config: bool = True,
    ):
        """
        Initialize the processor with all pipeline stages

        Args:
            vehicle_profile: Vehicle used for fuel math (defaults to configured vehicle)
            registry: Template registry (defaults to the built-in templates)
            thresholds: Scoring thresholds (defaults to Config.THRESHOLDS)
            setup_logging_config: Whether to setup logging configuration
        """
        if setup_logging_config:
            self.logger = setup_logging()
        else:
            self.logger = get_logger()

        self.logger.info("Initializing Trip Analytics Processor...")

        self.thresholds = thresholds or Config.THRESHOLDS
        self.vehicle_profile = vehicle_profile or Config.get_vehicle_profile()

        self.registry = registry or TemplateRegistry(thresholds=self.thresholds)
        self.classifier = ScreenshotClassifier(self.registry)
        self.field_parser = FieldParser()
        self.normalizer = ExtractionNormalizer(self.registry, self.thresholds)
        self.reconciler = TripReconciler()
        self.financial_engine = FinancialEngine(self.thresholds)
        self.trip_validator = TripDataValidator()
        self.weekly_validator = WeeklyValidator(self.thresholds)
        self.file_processor = FileProcessor(main_processor=self)

        self.logger.info(
            f"🚗 Trip Analytics Processor ready ({self.vehicle_profile.model}, "
            f"{self.vehicle_profile.rated_mpg} MPG, ${self.vehicle_profile.fuel_price_per_gallon:.2f}/gal)"
        )

    # =========================================================================
    # SCREENSHOTS
    # =========================================================================

    def extract(self, ocr_result: OcrInput, screenshot_type: Optional[str] = None) -> ExtractedScreenshotData:
        """
        Classify, parse and normalize one OCR result

        Args:
            ocr_result: OCR/vision output (OcrResult or its dict form)
            screenshot_type: Screenshot type suggested by the caller

        Returns:
            ExtractedScreenshotData
        """
        ocr = _as_ocr_result(ocr_result)
        resolved_type = self.classifier.classify(ocr, screenshot_type)
        parsed = self.field_parser.parse_fields(resolved_type, ocr)
        return self.normalizer.normalize(resolved_type, parsed, {
            'text': ocr.text,
            'numbers': ocr.numbers,
            'confidence': ocr.confidence,
        })

    def process_screenshot(self, ocr_result: OcrInput, screenshot_type: Optional[str] = None,
                           source_name: Optional[str] = None) -> Dict[str, Any]:
        """
        Process one screenshot's OCR output

        Args:
            ocr_result: OCR/vision output
            screenshot_type: Screenshot type suggested by the caller
            source_name: Name of the source file or upload, for reporting

        Returns:
            Dictionary with the extraction, quality grade, insights and recommendations
        """
        try:
            self.logger.info(f"📸 Processing screenshot: {source_name or 'unnamed'}")
            extraction = self.extract(ocr_result, screenshot_type)
            template = self.registry.lookup_or_fallback(extraction.screenshot_type)

            return {
                'processing_success': True,
                'processing_timestamp': time.strftime('%Y-%m-%d %H:%M:%S'),
                'source_name': source_name,
                'screenshot_type': extraction.screenshot_type,
                'extraction': extraction.to_dict(),
                'quality': self.registry.assess_quality(extraction.extracted_data, template),
                'insights': screenshot_insights(extraction),
                'recommendations': screenshot_recommendations(extraction),
            }

        except Exception as e:
            self.logger.error(f"❌ Error processing screenshot: {e}")
            return {
                'processing_success': False,
                'stage_failed': 'extraction',
                'error': f"Processing error: {str(e)}",
                'source_name': source_name,
            }

    # =========================================================================
    # TRIPS
    # =========================================================================

    def build_trip(self, trip: TripRecord) -> TripRecord:
        """
        Rebuild a trip's derived data from its full screenshot set and corrections

        Args:
            trip: Trip record (updated in place)

        Returns:
            The rebuilt trip record
        """
        combined = self.reconciler.combine(trip.screenshots)
        self.reconciler.apply_corrections(combined, trip.corrections)

        corrected, corrections_applied = self.trip_validator.validate_and_correct_data(combined.to_dict())
        trip.estimated = bool(corrected.get('estimated_earnings'))
        if trip.estimated:
            combined.reported_earnings = corrected['reported_earnings']

        metrics = self.financial_engine.derive(combined, self.vehicle_profile)

        trip_data = combined.to_dict()
        trip_data.update(metrics.to_dict())
        trip_data['estimated_earnings'] = trip.estimated
        trip_data['efficiency_rating'] = rate_fuel_efficiency(
            self.financial_engine.actual_mpg(metrics, combined.distance, self.vehicle_profile)
        )

        pair = pair_for_tip_variance(trip.screenshots)
        if pair:
            initial, final = pair
            trip.tip_variance = self.financial_engine.calculate_tip_variance(
                initial.typed_fields, final.typed_fields
            )
            trip_data['tip_variance'] = trip.tip_variance.to_dict()
        else:
            trip.tip_variance = None

        trip.trip_status = self.reconciler.derive_trip_status(trip.screenshot_types())
        trip.trip_data = trip_data
        trip.warnings = corrections_applied + self.trip_validator.validate_trip_data(
            trip_data, trip.screenshots
        )

        self.logger.info(
            f"🧾 Trip {trip.trip_id} rebuilt: status={trip.trip_status}, "
            f"earnings={trip_data.get('driver_earnings')}, profit={trip_data.get('profit')}"
        )
        return trip

    def trip_recommendations(self, trip: TripRecord) -> List[str]:
        """Recommendations for each screenshot of a built trip, judged against the combined trip data"""
        recommendations = []
        for extraction in trip.screenshots:
            for recommendation in screenshot_recommendations(extraction, trip.trip_data):
                if recommendation not in recommendations:
                    recommendations.append(recommendation)
        return recommendations

    def attach_screenshot(self, trip: TripRecord, extraction: ExtractedScreenshotData) -> TripRecord:
        """
        Attach a screenshot to a trip and re-merge the full set

        Callers must serialize attachments per trip id.
        """
        trip.screenshots.append(extraction)
        return self.build_trip(trip)

    def submit_correction(self, trip: TripRecord, field_name: str, value: Any) -> TripRecord:
        """
        Override one trip field by hand and rebuild the trip

        Args:
            trip: Trip record to correct
            field_name: Combined trip field to override
            value: Corrected value

        Returns:
            The rebuilt trip record

        Raises:
            InvalidCorrectionError: If the field is derived or unknown
        """
        try:
            self.reconciler.validate_correction(field_name)
        except InvalidCorrectionError as e:
            self.logger.warning(f"⚠️ Rejected correction for trip {trip.trip_id}: {e}")
            raise

        trip.corrections[field_name] = value
        trip.manually_corrected = True
        trip.correction_timestamp = datetime.now().isoformat()
        return self.build_trip(trip)

    def process_trip_screenshots(self, trip_id: str, ocr_results: Iterable[OcrInput],
                                 screenshot_types: Optional[Iterable[Optional[str]]] = None,
                                 created_at: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Build a trip record from all of its screenshots

        Args:
            trip_id: Trip identity
            ocr_results: OCR outputs for the trip's screenshots
            screenshot_types: Optional suggested type per screenshot (same order)
            created_at: When the trip happened (defaults to now)

        Returns:
            Dictionary with processing status and the trip record
        """
        ocr_results = list(ocr_results)
        suggested = list(screenshot_types) if screenshot_types is not None else [None] * len(ocr_results)
        if len(suggested) != len(ocr_results):
            raise ValueError("screenshot_types must match ocr_results in length")

        trip = TripRecord(trip_id=trip_id)
        if created_at is not None:
            trip.created_at = created_at
        try:
            self.logger.info(f"🚗 Processing trip {trip_id} with {len(ocr_results)} screenshot(s)")
            for ocr_result, screenshot_type in zip(ocr_results, suggested):
                trip.screenshots.append(self.extract(ocr_result, screenshot_type))
            self.build_trip(trip)

            return {
                'processing_success': True,
                'processing_timestamp': time.strftime('%Y-%m-%d %H:%M:%S'),
                'trip_id': trip_id,
                'trip_record': trip.to_dict(),
                'validation_warnings': list(trip.warnings),
                'recommendations': self.trip_recommendations(trip),
            }

        except Exception as e:
            self.logger.error(f"❌ Error processing trip {trip_id}: {e}")
            return {
                'processing_success': False,
                'stage_failed': 'trip_reconciliation',
                'error': f"Processing error: {str(e)}",
                'trip_id': trip_id,
            }

    # =========================================================================
    # WEEKLY VALIDATION
    # =========================================================================

    def validate_weekly_summary(self, weekly: Union[OcrInput, ExtractedScreenshotData],
                                trips: Iterable[TripRecord],
                                week_period: Optional[Union[str, Tuple[date, date]]] = None,
                                filter_by_period: bool = True) -> Dict[str, Any]:
        """
        Cross-check a weekly summary screenshot against individual trips

        Args:
            weekly: Weekly summary OCR output or its extraction
            trips: Trip records to compare against
            week_period: 'YYYY-MM-DD to YYYY-MM-DD' or (start, end); read from the
                summary when None, last seven days when unparsable
            filter_by_period: Whether to keep only trips created inside the period

        Returns:
            Dictionary with validation status and the report
        """
        try:
            if isinstance(weekly, ExtractedScreenshotData):
                extraction = weekly
            else:
                extraction = self.extract(weekly, 'weekly_summary')

            if isinstance(week_period, tuple):
                period = week_period
            else:
                period = parse_week_period(week_period or extraction.extracted_data.get('week_period'))

            trips = list(trips)
            selected = trips_in_period(trips, *period) if filter_by_period else trips
            self.logger.info(
                f"📅 Week {period[0]} to {period[1]}: {len(selected)} of {len(trips)} trip(s) in period"
            )

            report = self.weekly_validator.validate(extraction, selected, period)
            return {
                'validation_success': True,
                'processing_timestamp': time.strftime('%Y-%m-%d %H:%M:%S'),
                'weekly_extraction': extraction.to_dict(),
                'validation_report': report.to_dict(),
            }

        except Exception as e:
            self.logger.error(f"❌ Error validating weekly summary: {e}")
            return {
                'validation_success': False,
                'stage_failed': 'weekly_validation',
                'error': f"Validation error: {str(e)}",
            }

    # =========================================================================
    # BATCH
    # =========================================================================

    def process_ocr_folder(self, input_folder: str) -> List[Dict[str, Any]]:
        """
        Process a folder of OCR JSON dumps, one trip per trip id

        Args:
            input_folder: Folder containing OCR JSON files

        Returns:
            List of trip processing results
        """
        self.logger.info(f"🚗 Starting batch processing of folder: {input_folder}")
        results = self.file_processor.process_folder(input_folder)
        self.file_processor.get_processing_summary(results)
        self.logger.info("📊 Batch processing completed")
        return results

    def save_results(self, results: List[Dict[str, Any]], output_path: str) -> bool:
        """Save processing results to a timestamped JSON file"""
        return self.file_processor.save_results_to_json(results, output_path)

    def create_error_report(self, results: List[Dict[str, Any]], output_path: str) -> bool:
        """Create detailed error report for failed processing"""
        return self.file_processor.create_error_report(results, output_path)


# Convenience function for quick processing
def process_trip_screenshots(trip_id: str, ocr_results: Iterable[OcrInput],
                             screenshot_types: Optional[Iterable[Optional[str]]] = None,
                             vehicle_profile: Optional[VehicleProfile] = None) -> Dict[str, Any]:
    """
    Convenience function to build one trip from its screenshots

    Args:
        trip_id: Trip identity
        ocr_results: OCR outputs for the trip's screenshots
        screenshot_types: Optional suggested type per screenshot
        vehicle_profile: Vehicle used for fuel math

    Returns:
        Processing results dictionary
    """
    processor = TripAnalyticsProcessor(vehicle_profile=vehicle_profile)
    return processor.process_trip_screenshots(trip_id, ocr_results, screenshot_types)


# Convenience function for batch processing
def process_ocr_folder(input_folder: str, output_folder: str,
                       vehicle_profile: Optional[VehicleProfile] = None) -> List[Dict[str, Any]]:
    """
    Convenience function to process a folder of OCR dumps and write the outputs

    Args:
        input_folder: Folder containing OCR JSON files
        output_folder: Folder for output files
        vehicle_profile: Vehicle used for fuel math

    Returns:
        List of processing results
    """
    processor = TripAnalyticsProcessor(vehicle_profile=vehicle_profile)

    results = processor.process_ocr_folder(input_folder)
    processor.save_results(results, output_folder)
    processor.file_processor.export_trips_to_csv(results, output_folder)

    failed_results = [r for r in results if not r.get('processing_success')]
    if failed_results:
        processor.create_error_report(results, output_folder)

    return results
