#!/usr/bin/env python3
"""
Configuration Demonstration Script
Quick way to validate and explore your configuration setup
"""

from rideshare_analytics import Config, config


def main():
    """Demonstrate the centralized configuration system"""

    print("🔧 Rideshare Trip Analytics Configuration Demo")
    print("=" * 40)

    # 1. Print current configuration summary
    Config.print_configuration_summary()

    # 2. Show key config values for debugging
    thresholds = config.THRESHOLDS
    print("\n🔍 KEY VALUES:")
    print(f"  Vehicle: {config.VEHICLE_MODEL} ({config.VEHICLE_RATED_MPG} MPG)")
    print(f"  Fuel price: ${config.FUEL_PRICE_PER_GALLON:.2f}/gal")
    print(f"  Estimate missing earnings: {'✅ On' if config.ESTIMATE_MISSING_EARNINGS else '❌ Off'}")
    print(f"  Tip variance bands: ±${thresholds.tip_minor_variance:.2f} / ±${thresholds.tip_significant_variance:.2f}")
    print(f"  Weekly tolerances: {thresholds.weekly_trip_tolerance} trip, "
          f"${thresholds.weekly_earnings_tolerance:.2f}, {thresholds.weekly_distance_tolerance} mi")
    print(f"  Log Level: {config.LOG_LEVEL}")

    # 3. Quick setup guide
    if config.VEHICLE_MODEL == "Toyota Corolla" and config.VEHICLE_RATED_MPG == 19.0:
        print("\n💡 TO GET STARTED:")
        print("1. Create a .env file in the project root")
        print("2. Set VEHICLE_MODEL, VEHICLE_RATED_MPG and FUEL_PRICE_PER_GALLON for your car")
        print("3. Optionally set ESTIMATE_MISSING_EARNINGS=true")
        print("4. Run: python run_tests.py all")


if __name__ == "__main__":
    main()
