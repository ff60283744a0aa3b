#!/usr/bin/env python3
"""
Trip analytics module
Aggregate statistics, daily breakdowns and trends over built trip records
"""

from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from .config import Config
from .financial_engine import performance_score, rate_fuel_efficiency
from .logging_utils import get_logger
from .models import TripRecord, VehicleProfile

NUMERIC_COLUMNS = ['driver_earnings', 'tip_amount', 'distance', 'gas_cost',
                   'gas_used_gallons', 'profit', 'performance_score']


def calculate_trend(values: List[float]) -> str:
    """'improving', 'declining' or 'stable' comparing the second half of a series with the first"""
    if len(values) < 2:
        return 'insufficient_data'

    middle = len(values) // 2
    first_avg = sum(values[:middle]) / middle
    second_avg = sum(values[middle:]) / (len(values) - middle)

    if second_avg > first_avg * 1.1:
        return 'improving'
    if second_avg < first_avg * 0.9:
        return 'declining'
    return 'stable'


def calculate_consistency(values: List[float]) -> float:
    """100 minus the coefficient of variation as a percentage, floored at 0"""
    if not values:
        return 0.0
    series = pd.Series(values, dtype=float)
    mean = series.mean()
    if mean <= 0:
        return 0.0
    std = series.std(ddof=0)
    return round(max(0.0, 100 - (std / mean) * 100), 1)


class TripAnalyzer:
    """
    Summaries over many trips, backed by a pandas DataFrame
    """

    def __init__(self, vehicle_profile: Optional[VehicleProfile] = None):
        self.logger = get_logger()
        self.vehicle_profile = vehicle_profile or Config.get_vehicle_profile()

    def trips_to_dataframe(self, trips: Iterable[TripRecord]) -> pd.DataFrame:
        """One row per trip with its date and numeric trip data"""
        rows = []
        for trip in trips:
            row = {'trip_id': trip.trip_id, 'created_at': pd.Timestamp(trip.created_at)}
            for column in NUMERIC_COLUMNS:
                row[column] = trip.trip_data.get(column)
            rows.append(row)

        df = pd.DataFrame(rows, columns=['trip_id', 'created_at'] + NUMERIC_COLUMNS)
        for column in NUMERIC_COLUMNS:
            df[column] = pd.to_numeric(df[column], errors='coerce')
        df['created_at'] = pd.to_datetime(df['created_at'])
        df['date'] = df['created_at'].dt.date
        df['day_of_week'] = df['created_at'].dt.day_name()
        return df

    def summarize(self, trips: Iterable[TripRecord]) -> Dict[str, Any]:
        """
        Totals and averages across trips

        Args:
            trips: Built trip records

        Returns:
            Dictionary of totals, per-mile figures, average MPG and performance score
        """
        df = self.trips_to_dataframe(trips)
        return self._metrics(df, label='all')

    def _metrics(self, df: pd.DataFrame, label: str) -> Dict[str, Any]:
        total_trips = int(len(df))
        total_earnings = float(df['driver_earnings'].sum())
        total_tips = float(df['tip_amount'].sum())
        total_distance = float(df['distance'].sum())
        total_gas_cost = float(df['gas_cost'].sum())
        total_gallons = float(df['gas_used_gallons'].sum())
        total_profit = float(df['profit'].sum())

        avg_mpg = total_distance / total_gallons if total_gallons > 0 else None

        metrics = {
            'label': label,
            'total_trips': total_trips,
            'total_earnings': round(total_earnings, 2),
            'total_tips': round(total_tips, 2),
            'total_distance': round(total_distance, 2),
            'total_gas_cost': round(total_gas_cost, 2),
            'total_profit': round(total_profit, 2),
            'average_earnings_per_trip': round(total_earnings / total_trips, 2) if total_trips else 0.0,
            'average_profit_per_trip': round(total_profit / total_trips, 2) if total_trips else 0.0,
            'profit_margin': round(total_profit / total_earnings, 4) if total_earnings > 0 else None,
            'earnings_per_mile': round(total_earnings / total_distance, 2) if total_distance > 0 else None,
            'profit_per_mile': round(total_profit / total_distance, 2) if total_distance > 0 else None,
            'average_mpg': None if avg_mpg is None else round(avg_mpg, 1),
            'efficiency_rating': rate_fuel_efficiency(avg_mpg),
            'performance_score': 0.0,
        }
        if total_trips:
            metrics['performance_score'] = round(performance_score(
                total_profit, total_earnings, avg_mpg, self.vehicle_profile.rated_mpg
            ), 1)
        return metrics

    def weekly_breakdown(self, trips: Iterable[TripRecord]) -> Dict[str, Any]:
        """
        Per-day metrics for a set of trips with the best day and trends

        Args:
            trips: Built trip records (usually one week's worth)

        Returns:
            Dictionary with daily breakdown, week totals, best day and trend analysis
        """
        df = self.trips_to_dataframe(trips)
        if df.empty:
            self.logger.info("No trips to break down")
            return {
                'daily_breakdown': {},
                'week_totals': self._metrics(df, label='week'),
                'best_day': None,
                'trends': {
                    'profit_trend': 'insufficient_data',
                    'earnings_trend': 'insufficient_data',
                    'consistency_score': 0.0,
                },
            }

        daily = {}
        for day, day_df in df.sort_values('created_at').groupby('date', sort=True):
            metrics = self._metrics(day_df, label=day.isoformat())
            metrics['day_of_week'] = day_df['day_of_week'].iloc[0]
            daily[day.isoformat()] = metrics

        profits = [m['total_profit'] for m in daily.values()]
        earnings = [m['total_earnings'] for m in daily.values()]
        best_day = max(daily, key=lambda d: daily[d]['total_profit'])

        self.logger.info(f"📈 Weekly breakdown over {len(daily)} day(s), best day {best_day}")

        return {
            'week_start': min(daily),
            'daily_breakdown': daily,
            'week_totals': self._metrics(df, label='week'),
            'best_day': best_day,
            'trends': {
                'profit_trend': calculate_trend(profits),
                'earnings_trend': calculate_trend(earnings),
                'consistency_score': calculate_consistency(profits),
            },
        }
