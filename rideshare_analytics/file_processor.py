#!/usr/bin/env python3
"""
File processor module
Handles batch processing of OCR JSON dumps and result/report/CSV output
"""

import os
import glob
import time
import json
from datetime import datetime
from typing import Any, Dict, List, Optional
from pathlib import Path

import pandas as pd

from .config import config
from .logging_utils import get_logger

CSV_COLUMNS = [
    'trip_id', 'trip_status', 'created_at', 'platform', 'pickup_location', 'dropoff_location',
    'fare_amount', 'tip_amount', 'driver_earnings', 'distance', 'duration_minutes',
    'gas_used_gallons', 'gas_cost', 'profit', 'profit_per_mile', 'performance_score',
    'odometer_reading', 'combined_confidence', 'estimated_earnings', 'manually_corrected',
]


class FileProcessor:
    """
    Process folders of OCR output in batch and write results
    """

    def __init__(self, main_processor=None):
        """
        Initialize the file processor

        Args:
            main_processor: Main processor instance for building individual trips
        """
        self.logger = get_logger()
        self.main_processor = main_processor

        self.supported_extensions = [f"*{ext}" for ext in config.SUPPORTED_OCR_EXTENSIONS]

    def load_ocr_entries(self, input_folder: str) -> List[Dict[str, Any]]:
        """
        Load OCR dumps from a folder

        Each file holds one OCR object or a list of them. An object carries
        'text', 'numbers' and optionally 'image_type', 'screenshot_type',
        'trip_id' and 'created_at'; entries without a trip id are grouped by file name.

        Args:
            input_folder: Folder containing OCR JSON files

        Returns:
            List of entry dictionaries tagged with 'source_file'
        """
        files = []
        for ext in self.supported_extensions:
            files.extend(glob.glob(os.path.join(input_folder, ext)))

        entries = []
        for path in sorted(files):
            with open(path, 'r', encoding='utf-8') as f:
                payload = json.load(f)

            items = payload if isinstance(payload, list) else [payload]
            stem = Path(path).stem
            for item in items:
                if not isinstance(item, dict):
                    self.logger.warning(f"Skipping non-object entry in {os.path.basename(path)}")
                    continue
                entry = dict(item)
                entry.setdefault('trip_id', stem)
                entry['source_file'] = os.path.basename(path)
                entries.append(entry)

        return entries

    def process_folder(self, input_folder: str) -> List[Dict[str, Any]]:
        """
        Build one trip per trip id from all OCR dumps in a folder

        Args:
            input_folder: Folder containing OCR JSON files

        Returns:
            List of dictionaries with processing results
        """
        try:
            entries = self.load_ocr_entries(input_folder)
        except (OSError, json.JSONDecodeError) as e:
            self.logger.error(f"Error loading OCR files from {input_folder}: {e}")
            return [{
                'processing_success': False,
                'error': f"Batch loading error: {str(e)}",
            }]

        if not entries:
            self.logger.warning(f"No OCR files found in {input_folder}")
            return []

        groups: Dict[str, List[Dict[str, Any]]] = {}
        for entry in entries:
            groups.setdefault(str(entry['trip_id']), []).append(entry)

        self.logger.info(f"Found {len(entries)} screenshots across {len(groups)} trips")

        results = []
        for i, (trip_id, trip_entries) in enumerate(groups.items(), 1):
            self.logger.info(f"{'=' * 50}")
            self.logger.info(f"Processing trip {i}/{len(groups)}: {trip_id}...")

            if not self.main_processor:
                self.logger.error("No main processor available")
                results.append({
                    'trip_id': trip_id,
                    'processing_success': False,
                    'error': "No main processor available",
                })
                continue

            result = self.main_processor.process_trip_screenshots(
                trip_id,
                trip_entries,
                [e.get('screenshot_type') for e in trip_entries],
                created_at=self._created_at(trip_entries),
            )
            result['source_files'] = sorted({e['source_file'] for e in trip_entries})
            results.append(result)

        successful = sum(1 for r in results if r.get('processing_success'))
        self.logger.info(f"✅ Successfully processed {successful}/{len(groups)} trips")

        return results

    def _created_at(self, entries: List[Dict[str, Any]]) -> Optional[datetime]:
        for entry in entries:
            value = entry.get('created_at')
            if not value:
                continue
            try:
                return datetime.fromisoformat(str(value))
            except ValueError:
                self.logger.warning(f"Ignoring unparsable created_at '{value}' in {entry['source_file']}")
        return None

    def save_results_to_json(self, results: List[Dict[str, Any]], output_path: str) -> bool:
        """
        Save processing results to JSON file with timestamp

        Args:
            results: List of processing results
            output_path: Path to output directory

        Returns:
            True if successful, False otherwise
        """
        try:
            output_dir = Path(output_path)
            output_dir.mkdir(parents=True, exist_ok=True)

            timestamp = time.strftime("%Y%m%d_%H%M%S")
            filepath = output_dir / f"trip_results_{timestamp}.json"

            with open(filepath, "w", encoding="utf-8") as f:
                json.dump(results, f, indent=config.JSON_INDENT,
                          ensure_ascii=config.JSON_ENSURE_ASCII, default=str)

            self.logger.info(f"Results saved to: {filepath}")
            return True

        except (OSError, TypeError) as e:
            self.logger.error(f"Error saving results to JSON: {e}")
            return False

    def trips_dataframe(self, results: List[Dict[str, Any]]) -> pd.DataFrame:
        """Flatten successful trip results into one row per trip"""
        rows = []
        for result in self.filter_successful_results(results):
            record = result.get('trip_record') or {}
            row = dict(record.get('trip_data') or {})
            row.update({
                'trip_id': record.get('trip_id'),
                'trip_status': record.get('trip_status'),
                'created_at': record.get('created_at'),
                'manually_corrected': record.get('manually_corrected', False),
            })
            rows.append(row)
        return pd.DataFrame(rows).reindex(columns=CSV_COLUMNS)

    def export_trips_to_csv(self, results: List[Dict[str, Any]], output_path: str) -> Optional[Path]:
        """
        Export successful trips to a timestamped CSV file

        Args:
            results: List of processing results
            output_path: Path to output directory

        Returns:
            Path of the written file, or None when nothing was written
        """
        df = self.trips_dataframe(results)
        if df.empty:
            self.logger.info("No successful trips to export")
            return None

        try:
            output_dir = Path(output_path)
            output_dir.mkdir(parents=True, exist_ok=True)
            filepath = output_dir / f"trips_{time.strftime('%Y%m%d_%H%M%S')}.csv"
            df.to_csv(filepath, index=False, sep=config.CSV_DELIMITER, encoding=config.CSV_ENCODING)
        except OSError as e:
            self.logger.error(f"Error exporting trips to CSV: {e}")
            return None

        self.logger.info(f"Exported {len(df)} trips to: {filepath}")
        return filepath

    def filter_successful_results(self, results: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Filter out failed processing results

        Args:
            results: List of processing results

        Returns:
            List of successful results only
        """
        successful_results = [r for r in results if r.get("processing_success", False)]

        self.logger.info(
            f"Filtered {len(successful_results)} successful results from {len(results)} total"
        )

        return successful_results

    def get_processing_summary(self, results: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Generate processing summary statistics

        Args:
            results: List of processing results

        Returns:
            Dictionary with summary statistics
        """
        summary = {
            "total_trips": len(results),
            "successful_processing": 0,
            "failed_processing": 0,
            "complete_workflows": 0,
            "estimated_trips": 0,
            "tip_variance_trips": 0,
            "common_errors": {},
            "validation_warnings_count": 0,
        }

        error_counts = {}

        for result in results:
            if result.get("processing_success"):
                summary["successful_processing"] += 1
                record = result.get("trip_record") or {}

                if record.get("trip_status") == "complete_workflow":
                    summary["complete_workflows"] += 1
                if record.get("estimated"):
                    summary["estimated_trips"] += 1
                if record.get("tip_variance"):
                    summary["tip_variance_trips"] += 1

                summary["validation_warnings_count"] += len(result.get("validation_warnings", []))

            else:
                summary["failed_processing"] += 1

                error_type = self._categorize_error(result.get("error", "Unknown error"))
                error_counts[error_type] = error_counts.get(error_type, 0) + 1

        summary["common_errors"] = dict(
            sorted(error_counts.items(), key=lambda x: x[1], reverse=True)
        )

        if summary["total_trips"] > 0:
            summary["processing_success_rate"] = (
                summary["successful_processing"] / summary["total_trips"]
            )
            if summary["successful_processing"] > 0:
                summary["complete_workflow_rate"] = (
                    summary["complete_workflows"] / summary["successful_processing"]
                )

        self.logger.info("Processing Summary:")
        self.logger.info(f"  Total trips: {summary['total_trips']}")
        self.logger.info(
            f"  Successful processing: {summary['successful_processing']} "
            f"({summary.get('processing_success_rate', 0):.1%})"
        )
        self.logger.info(
            f"  Complete workflows: {summary['complete_workflows']} "
            f"({summary.get('complete_workflow_rate', 0):.1%})"
        )

        if summary["common_errors"]:
            self.logger.warning("  Common errors:")
            for error_type, count in list(summary["common_errors"].items())[:5]:
                self.logger.warning(f"    {error_type}: {count}")

        return summary

    def _categorize_error(self, error_message: str) -> str:
        """Categorize error messages into types"""
        error_lower = error_message.lower()

        if "json" in error_lower or "parsing" in error_lower:
            return "JSON Parsing Error"
        elif "template" in error_lower:
            return "Template Error"
        elif "correct" in error_lower:
            return "Correction Error"
        elif "file" in error_lower and "not found" in error_lower:
            return "File Not Found"
        elif "weekly" in error_lower:
            return "Weekly Validation Error"
        else:
            return "Other Error"

    def create_error_report(self, results: List[Dict[str, Any]], output_path: str) -> bool:
        """
        Create detailed error report for failed processing attempts

        Args:
            results: List of processing results
            output_path: Path to output directory

        Returns:
            True if successful, False otherwise
        """
        failed_results = [r for r in results if not r.get("processing_success", False)]

        if not failed_results:
            self.logger.info("No errors to report - all processing was successful")
            return True

        try:
            output_dir = Path(output_path)
            output_dir.mkdir(parents=True, exist_ok=True)

            timestamp = time.strftime("%Y%m%d_%H%M%S")
            filepath = output_dir / f"processing_errors_{timestamp}.json"

            error_report = {
                "report_timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
                "total_errors": len(failed_results),
                "error_summary": self._get_error_summary(failed_results),
                "detailed_errors": failed_results,
            }

            with open(filepath, "w", encoding="utf-8") as f:
                json.dump(error_report, f, indent=config.JSON_INDENT,
                          ensure_ascii=config.JSON_ENSURE_ASCII, default=str)

        except OSError as e:
            self.logger.error(f"Error creating error report: {e}")
            return False

        self.logger.info(f"Error report saved to: {filepath}")
        self.logger.info(f"Total errors reported: {len(failed_results)}")
        return True

    def _get_error_summary(self, failed_results: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Generate summary of error types and frequencies"""
        error_summary = {}

        for result in failed_results:
            error = result.get("error", "Unknown error")
            error_type = self._categorize_error(error)

            if error_type not in error_summary:
                error_summary[error_type] = {"count": 0, "examples": []}

            error_summary[error_type]["count"] += 1

            # Keep up to 3 examples of each error type
            if len(error_summary[error_type]["examples"]) < 3:
                error_summary[error_type]["examples"].append(
                    {"trip_id": result.get("trip_id", "Unknown"), "error": error}
                )

        return dict(sorted(error_summary.items(), key=lambda x: x[1]["count"], reverse=True))
