#!/usr/bin/env python3
"""
Centralized configuration module for the Rideshare Trip Analytics system
Handles environment variables, default values, fixed thresholds and configuration validation
"""

import os
from dataclasses import dataclass
from typing import Dict, Any, List
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables once at module level
_env_loaded = False


def _load_environment():
    """Load environment variables from .env file once"""
    global _env_loaded
    if not _env_loaded:
        # Look for .env file in project root (parent of the package directory)
        env_path = Path(__file__).parent.parent / ".env"
        load_dotenv(dotenv_path=env_path)
        _env_loaded = True


# Load environment on module import
_load_environment()


@dataclass(frozen=True)
class ReconciliationThresholds:
    """
    Fixed thresholds used by reconciliation, variance and weekly validation.

    These are constants of the scoring rules, not deployment settings, so they
    are not read from the environment.
    """

    # Tip variance (dollars); boundaries are exclusive on the upper side
    tip_significant_variance: float = 1.00
    tip_minor_variance: float = 0.25

    # Weekly summary discrepancy tolerances
    weekly_trip_tolerance: int = 1
    weekly_earnings_tolerance: float = 5.0
    weekly_distance_tolerance: float = 10.0

    # A discrepancy above tolerance * multiplier is high severity
    weekly_trip_high_multiplier: int = 5
    weekly_earnings_high_multiplier: int = 10
    weekly_distance_high_multiplier: int = 10

    # Template quality levels (fraction of expected fields present)
    quality_high: float = 0.8
    quality_medium: float = 0.5

    # Extraction confidence
    confidence_bonus: float = 0.1
    confidence_cap: float = 0.95

    # Weekly data reliability (overall accuracy percentage)
    reliability_high: float = 90.0
    reliability_medium: float = 75.0


class Config:
    """
    Centralized configuration class with validation and default values
    """

    # =============================================================================
    # VEHICLE CONFIGURATION
    # =============================================================================

    VEHICLE_MODEL: str = os.getenv("VEHICLE_MODEL", "Toyota Corolla")
    VEHICLE_RATED_MPG: float = float(os.getenv("VEHICLE_RATED_MPG", "19.0"))
    FUEL_PRICE_PER_GALLON: float = float(os.getenv("FUEL_PRICE_PER_GALLON", "3.50"))

    # =============================================================================
    # LOGGING CONFIGURATION
    # =============================================================================

    # Logging Settings
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_DIR: str = os.getenv("LOG_DIR", "temp")
    LOG_FILE_MAX_BYTES: int = int(
        os.getenv("LOG_FILE_MAX_BYTES", str(5 * 1024 * 1024))
    )  # 5MB
    LOG_BACKUP_COUNT: int = int(
        os.getenv("LOG_BACKUP_COUNT", "7")
    )  # Keep 7 days of daily logs

    # Session Logging Settings
    LOG_SESSION_ENABLED: bool = (
        os.getenv("LOG_SESSION_ENABLED", "true").lower() == "true"
    )
    LOG_DAILY_ROTATION: bool = (
        os.getenv("LOG_DAILY_ROTATION", "false").lower() == "true"
    )
    LOG_SIZE_ROTATION: bool = (
        os.getenv("LOG_SIZE_ROTATION", "false").lower() == "true"
    )

    # Log Cleanup Settings
    LOG_SESSION_CLEANUP_DAYS: int = int(os.getenv("LOG_SESSION_CLEANUP_DAYS", "30"))
    LOG_AUTO_CLEANUP: bool = os.getenv("LOG_AUTO_CLEANUP", "true").lower() == "true"

    # Console/Stream Redirection (library callers usually keep their own streams)
    REDIRECT_STDOUT: bool = os.getenv("REDIRECT_STDOUT", "false").lower() == "true"
    REDIRECT_STDERR: bool = os.getenv("REDIRECT_STDERR", "false").lower() == "true"

    # =============================================================================
    # VALIDATION AND QUALITY CONTROL
    # =============================================================================

    # Trip reasonableness rules
    MIN_TRIP_EARNINGS: float = float(os.getenv("MIN_TRIP_EARNINGS", "2.0"))
    MAX_TRIP_EARNINGS: float = float(os.getenv("MAX_TRIP_EARNINGS", "75.0"))
    MAX_TRIP_DISTANCE: float = float(os.getenv("MAX_TRIP_DISTANCE", "50.0"))
    MIN_SCREENSHOT_CONFIDENCE: float = float(
        os.getenv("MIN_SCREENSHOT_CONFIDENCE", "0.5")
    )

    # Missing earnings estimation
    ESTIMATE_MISSING_EARNINGS: bool = (
        os.getenv("ESTIMATE_MISSING_EARNINGS", "false").lower() == "true"
    )
    ESTIMATED_EARNINGS_PER_MILE: float = float(
        os.getenv("ESTIMATED_EARNINGS_PER_MILE", "1.2")
    )
    MIN_ESTIMATED_EARNINGS: float = float(os.getenv("MIN_ESTIMATED_EARNINGS", "2.50"))

    # Fixed scoring thresholds
    THRESHOLDS: ReconciliationThresholds = ReconciliationThresholds()

    # =============================================================================
    # FILE AND PATH CONFIGURATION
    # =============================================================================

    DEFAULT_INPUT_DIR: str = os.getenv("DEFAULT_INPUT_DIR", "input")
    DEFAULT_OUTPUT_DIR: str = os.getenv("DEFAULT_OUTPUT_DIR", "output")
    SUPPORTED_OCR_EXTENSIONS: List[str] = [".json"]

    # =============================================================================
    # OUTPUT CONFIGURATION
    # =============================================================================

    JSON_INDENT: int = int(os.getenv("JSON_INDENT", "2"))
    JSON_ENSURE_ASCII: bool = os.getenv("JSON_ENSURE_ASCII", "false").lower() == "true"

    # CSV Export Settings
    CSV_DELIMITER: str = os.getenv("CSV_DELIMITER", ",")
    CSV_ENCODING: str = os.getenv("CSV_ENCODING", "utf-8")

    @classmethod
    def validate_configuration(cls) -> Dict[str, Any]:
        """
        Validate the current configuration and return validation results

        Returns:
            Dictionary with validation status and any issues found
        """
        validation_result = {
            "is_valid": True,
            "warnings": [],
            "errors": [],
            "missing_required": [],
            "configuration_summary": {},
        }

        # Vehicle profile must be usable for fuel math
        if cls.VEHICLE_RATED_MPG <= 0:
            validation_result["errors"].append(
                f"VEHICLE_RATED_MPG ({cls.VEHICLE_RATED_MPG}) must be positive"
            )
            validation_result["is_valid"] = False
        elif cls.VEHICLE_RATED_MPG < 8 or cls.VEHICLE_RATED_MPG > 80:
            validation_result["warnings"].append(
                f"VEHICLE_RATED_MPG ({cls.VEHICLE_RATED_MPG}) looks implausible"
            )

        if cls.FUEL_PRICE_PER_GALLON <= 0:
            validation_result["errors"].append(
                f"FUEL_PRICE_PER_GALLON ({cls.FUEL_PRICE_PER_GALLON}) must be positive"
            )
            validation_result["is_valid"] = False
        elif cls.FUEL_PRICE_PER_GALLON > 15:
            validation_result["warnings"].append(
                f"FUEL_PRICE_PER_GALLON ({cls.FUEL_PRICE_PER_GALLON}) is very high"
            )

        # Validate thresholds
        if cls.MIN_TRIP_EARNINGS >= cls.MAX_TRIP_EARNINGS:
            validation_result["errors"].append(
                "MIN_TRIP_EARNINGS must be less than MAX_TRIP_EARNINGS"
            )
            validation_result["is_valid"] = False

        if not 0 <= cls.MIN_SCREENSHOT_CONFIDENCE <= 1:
            validation_result["warnings"].append(
                f"MIN_SCREENSHOT_CONFIDENCE ({cls.MIN_SCREENSHOT_CONFIDENCE}) "
                "should be between 0 and 1"
            )

        # Validate log level
        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if cls.LOG_LEVEL not in valid_log_levels:
            validation_result["warnings"].append(
                f'LOG_LEVEL "{cls.LOG_LEVEL}" not recognized, using INFO'
            )
            cls.LOG_LEVEL = "INFO"

        # Configuration summary
        validation_result["configuration_summary"] = {
            "vehicle": {
                "model": cls.VEHICLE_MODEL,
                "rated_mpg": cls.VEHICLE_RATED_MPG,
                "fuel_price_per_gallon": cls.FUEL_PRICE_PER_GALLON,
            },
            "logging_configured": {
                "level": cls.LOG_LEVEL,
                "directory": cls.LOG_DIR,
                "max_file_size_mb": cls.LOG_FILE_MAX_BYTES / (1024 * 1024),
            },
            "validation_thresholds": {
                "trip_earnings_range": f"{cls.MIN_TRIP_EARNINGS}-{cls.MAX_TRIP_EARNINGS}",
                "max_trip_distance": cls.MAX_TRIP_DISTANCE,
                "min_screenshot_confidence": cls.MIN_SCREENSHOT_CONFIDENCE,
                "estimate_missing_earnings": cls.ESTIMATE_MISSING_EARNINGS,
            },
        }

        return validation_result

    @classmethod
    def get_vehicle_configuration(cls) -> Dict[str, Any]:
        """Get vehicle-related configuration"""
        return {
            "vehicle_model": cls.VEHICLE_MODEL,
            "rated_mpg": cls.VEHICLE_RATED_MPG,
            "fuel_price_per_gallon": cls.FUEL_PRICE_PER_GALLON,
        }

    @classmethod
    def get_vehicle_profile(cls):
        """Build a VehicleProfile from the configured vehicle settings"""
        from .models import VehicleProfile

        return VehicleProfile(
            model=cls.VEHICLE_MODEL,
            rated_mpg=cls.VEHICLE_RATED_MPG,
            fuel_price_per_gallon=cls.FUEL_PRICE_PER_GALLON,
        )

    @classmethod
    def get_logging_configuration(cls) -> Dict[str, Any]:
        """Get logging-related configuration"""
        return {
            "log_level": cls.LOG_LEVEL,
            "log_dir": cls.LOG_DIR,
            "log_file_max_bytes": cls.LOG_FILE_MAX_BYTES,
            "log_backup_count": cls.LOG_BACKUP_COUNT,
            "redirect_stdout": cls.REDIRECT_STDOUT,
            "redirect_stderr": cls.REDIRECT_STDERR,
        }

    @classmethod
    def get_processing_configuration(cls) -> Dict[str, Any]:
        """Get processing-related configuration"""
        return {
            "min_trip_earnings": cls.MIN_TRIP_EARNINGS,
            "max_trip_earnings": cls.MAX_TRIP_EARNINGS,
            "max_trip_distance": cls.MAX_TRIP_DISTANCE,
            "min_screenshot_confidence": cls.MIN_SCREENSHOT_CONFIDENCE,
            "estimate_missing_earnings": cls.ESTIMATE_MISSING_EARNINGS,
            "estimated_earnings_per_mile": cls.ESTIMATED_EARNINGS_PER_MILE,
            "min_estimated_earnings": cls.MIN_ESTIMATED_EARNINGS,
            "supported_extensions": cls.SUPPORTED_OCR_EXTENSIONS,
        }

    @classmethod
    def print_configuration_summary(cls) -> None:
        """Print a human-readable configuration summary"""
        validation = cls.validate_configuration()

        print("🔧 Rideshare Trip Analytics Configuration")
        print("=" * 50)

        print("\n🚗 Vehicle Configuration:")
        print(f"  Model: {cls.VEHICLE_MODEL}")
        print(f"  Rated MPG: {cls.VEHICLE_RATED_MPG}")
        print(f"  Fuel Price: ${cls.FUEL_PRICE_PER_GALLON:.2f}/gal")

        print("\n📏 Trip Validation:")
        print(f"  Earnings Range: ${cls.MIN_TRIP_EARNINGS:.2f} - ${cls.MAX_TRIP_EARNINGS:.2f}")
        print(f"  Max Distance: {cls.MAX_TRIP_DISTANCE} mi")
        print(f"  Min Screenshot Confidence: {cls.MIN_SCREENSHOT_CONFIDENCE}")

        print("\n📝 Logging Configuration:")
        print(f"  Level: {cls.LOG_LEVEL}")
        print(f"  Directory: {cls.LOG_DIR}")
        print(f"  Max File Size: {cls.LOG_FILE_MAX_BYTES / (1024*1024):.1f}MB")

        print(
            f"\n✅ Configuration Status: {'Valid' if validation['is_valid'] else 'Invalid'}"
        )

        if validation["errors"]:
            print("\n❌ Errors:")
            for error in validation["errors"]:
                print(f"  - {error}")

        if validation["warnings"]:
            print("\n⚠️ Warnings:")
            for warning in validation["warnings"]:
                print(f"  - {warning}")


# Create a singleton instance for easy access
config = Config()

# Validate configuration on import and store results
_validation_result = Config.validate_configuration()


# Expose validation result for other modules
def get_validation_result() -> Dict[str, Any]:
    """Get the configuration validation result"""
    return _validation_result


def is_configuration_valid() -> bool:
    """Check if the current configuration is valid"""
    return _validation_result["is_valid"]


def get_configuration_warnings() -> List[str]:
    """Get list of configuration warnings"""
    return _validation_result["warnings"]


def get_configuration_errors() -> List[str]:
    """Get list of configuration errors"""
    return _validation_result["errors"]
