#!/usr/bin/env python3
"""
Screenshot insight generation for the Rideshare Trip Analytics system
Human-readable notes and next-step recommendations for processed screenshots and trips
"""

from typing import Any, List, Mapping, Optional

from .models import ExtractedScreenshotData

RETAKE_CONFIDENCE = 0.7
COMPLETE_TRIP_CONFIDENCE = 0.8
LOW_PROFIT_PER_MILE = 1.0


def screenshot_insights(extraction: ExtractedScreenshotData) -> List[str]:
    """
    Describe what a screenshot tells the driver

    Args:
        extraction: Normalized screenshot extraction

    Returns:
        List of insight strings
    """
    data = extraction.extracted_data
    insights = []

    if extraction.screenshot_type == 'initial_offer':
        fare = data.get('estimated_fare')
        distance = data.get('distance')
        if fare and distance:
            fare_per_mile = fare / distance
            insights.append(
                f"Initial offer: ${fare:.2f} for {distance} miles (${fare_per_mile:.2f}/mile)"
            )
            if fare_per_mile > 2.0:
                insights.append("🟢 Excellent rate - above $2/mile")
            elif fare_per_mile > 1.5:
                insights.append("🟡 Good rate - above $1.50/mile")
            else:
                insights.append("🔴 Low rate - consider declining")

    elif extraction.screenshot_type == 'final_total':
        total = data.get('total_earnings')
        tip = data.get('actual_tip')
        if total:
            insights.append(f"Final earnings: ${total:.2f}")
            if tip:
                insights.append(f"Tip received: ${tip:.2f} ({tip / total * 100:.1f}% of total)")

    elif extraction.screenshot_type == 'dashboard_odometer':
        odometer = data.get('odometer_reading')
        if odometer:
            insights.append(f"Odometer reading: {odometer:,.0f} miles - logged for mileage records")

    elif extraction.screenshot_type in ('trip_summary', 'weekly_summary'):
        trips = data.get('total_trips')
        earnings = data.get('total_earnings')
        if trips and earnings:
            insights.append(
                f"Summary: {trips} trips, ${earnings:.2f} total (${earnings / trips:.2f}/trip average)"
            )

    insights.append(
        f"Data confidence: {extraction.data_confidence * 100:.0f}% "
        f"({len(extraction.detected_elements)} elements detected)"
    )
    return insights


def screenshot_recommendations(extraction: ExtractedScreenshotData,
                               trip_data: Optional[Mapping[str, Any]] = None) -> List[str]:
    """
    Suggest what the driver should do next

    Args:
        extraction: Normalized screenshot extraction
        trip_data: Combined trip data the screenshot was merged into, if any

    Returns:
        List of recommendation strings
    """
    recommendations = []

    if extraction.data_confidence < RETAKE_CONFIDENCE:
        recommendations.append("📸 Consider retaking screenshot with better lighting/clarity")

    if extraction.missing_elements:
        recommendations.append(
            f"📝 Missing data elements: {', '.join(extraction.missing_elements)} "
            "- upload additional screenshots if available"
        )

    by_type = {
        'initial_offer': "📱 Upload the final completion screenshot to track tip variance",
        'final_total': "📊 Upload weekly summary screenshots for validation",
        'dashboard_odometer': "🚗 Regular odometer readings keep mileage and fuel records accurate",
        'weekly_summary': "📅 Validate this summary against your individual trips",
        'unknown': "❓ Screenshot type unclear - try a clearer image or specify the type",
    }
    if extraction.screenshot_type in by_type:
        recommendations.append(by_type[extraction.screenshot_type])

    if trip_data:
        profit_per_mile = trip_data.get('profit_per_mile')
        if profit_per_mile is not None and profit_per_mile < LOW_PROFIT_PER_MILE:
            recommendations.append("💰 Low profit margin detected - consider route optimization")
        confidence = trip_data.get('combined_confidence')
        if confidence is not None and confidence < COMPLETE_TRIP_CONFIDENCE:
            recommendations.append("🔍 Upload additional screenshots to improve trip data completeness")

    return recommendations
