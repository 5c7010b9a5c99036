"""
Interval bucketing and linear trend analysis of emissions.
"""

import logging
import numpy as np
import pandas as pd
from scipy import stats
from datetime import date
from typing import NamedTuple, Sequence

from data.models import Reading, readings_to_frame

from .base import AnalyticsTool, round_to
from .models import (
    TrendAnalysis,
    TrendDirection,
    TrendInterval,
    TrendPoint,
    TrendResult,
    TrendStrength
)


logger = logging.getLogger(__name__)

WEEK_LABEL_PREFIX = "Week of "

SIGNIFICANT_SLOPE = 0.1
MODERATE_R_SQUARED = 0.3
STRONG_R_SQUARED = 0.7


def parse_interval(interval: str | TrendInterval) -> TrendInterval:
    """Validate an interval name."""
    try:
        return TrendInterval(interval)
    except ValueError:
        valid = ', '.join(i.value for i in TrendInterval)
        raise ValueError(f"Invalid interval: {interval}. Must be one of: {valid}")


def bucket_labels(timestamps: pd.Series, interval: TrendInterval) -> pd.Series:
    """
    Label each UTC timestamp with its interval bucket.

    hour: 'YYYY-MM-DD HH:00', day: 'YYYY-MM-DD',
    week: 'Week of YYYY-MM-DD' (the Sunday starting the week), month: 'YYYY-MM'.
    """
    if interval == TrendInterval.HOUR:
        return timestamps.dt.strftime('%Y-%m-%d %H:00')
    if interval == TrendInterval.DAY:
        return timestamps.dt.strftime('%Y-%m-%d')
    if interval == TrendInterval.WEEK:
        # dayofweek is Monday=0; shift so weeks start on Sunday
        days_since_sunday = (timestamps.dt.dayofweek + 1) % 7
        week_start = timestamps.dt.normalize() - pd.to_timedelta(days_since_sunday, unit='D')
        return week_start.dt.strftime(f'{WEEK_LABEL_PREFIX}%Y-%m-%d')
    return timestamps.dt.strftime('%Y-%m')


def bucket_start(label: str, interval: TrendInterval) -> date:
    """Calendar date a day or week bucket label starts on."""
    if interval == TrendInterval.WEEK:
        return date.fromisoformat(label.removeprefix(WEEK_LABEL_PREFIX))
    if interval == TrendInterval.DAY:
        return date.fromisoformat(label)
    raise ValueError(f"Bucket start is only defined for day and week intervals, not {interval.value}")


class LinearFit(NamedTuple):
    slope: float
    intercept: float
    r_squared: float
    predicted: np.ndarray


def fit_linear_trend(values: Sequence[float]) -> LinearFit:
    """
    Ordinary least squares of values against their index 0, 1, 2, ...

    R² is 1 - SS_residual / SS_total, and 0 when the values have no
    variance (including a single value).
    """
    y = np.asarray(values, dtype=float)
    x = np.arange(len(y), dtype=float)

    if y.size == 0:
        return LinearFit(0.0, 0.0, 0.0, y)

    if y.size < 2 or np.ptp(y) == 0:
        return LinearFit(0.0, float(y[0]), 0.0, np.full_like(y, y[0]))

    regression = stats.linregress(x, y)
    slope = float(regression.slope)
    intercept = float(regression.intercept)
    predicted = slope * x + intercept

    ss_residual = float(np.sum((y - predicted) ** 2))
    ss_total = float(np.sum((y - y.mean()) ** 2))
    r_squared = 1 - ss_residual / ss_total if ss_total != 0 else 0.0

    return LinearFit(slope, intercept, r_squared, predicted)


def classify_strength(r_squared: float) -> TrendStrength:
    if r_squared > STRONG_R_SQUARED:
        return TrendStrength.STRONG
    if r_squared > MODERATE_R_SQUARED:
        return TrendStrength.MODERATE
    return TrendStrength.WEAK


def classify_direction(slope: float) -> TrendDirection:
    if slope > 0:
        return TrendDirection.INCREASING
    if slope < 0:
        return TrendDirection.DECREASING
    return TrendDirection.STABLE


class TrendAnalyzer(AnalyticsTool):
    """Buckets readings by interval and fits a linear trend to average emissions."""

    def __init__(self):
        super().__init__()
        self.name = "trends"
        self.description = "Linear trend of average emissions per hour/day/week/month"
        self.parameters = ["interval"]
        self.unit = "kg CO2"

    def analyze(self, readings: Sequence[Reading], interval: str | TrendInterval = TrendInterval.DAY) -> TrendResult:
        """
        Analyze the emission trend over interval buckets.

        Readings are sorted by timestamp and grouped into buckets in
        chronological order. Average emissions per bucket (rounded to 2
        decimals) are regressed against the bucket index.

        Args:
            readings: Reading snapshot
            interval: 'hour', 'day', 'week' or 'month'

        Returns:
            TrendResult; empty trends and no analysis for no readings

        Raises:
            ValueError: If interval is not supported
        """
        interval = parse_interval(interval)

        if not readings:
            return TrendResult()

        frame = readings_to_frame(readings).sort_values('timestamp', kind='stable')
        frame['bucket'] = bucket_labels(frame['timestamp'], interval)

        grouped = frame.groupby('bucket', sort=False).agg(
            total_emissions=('carbon_emissions', 'sum'),
            total_energy=('energy_consumption', 'sum'),
            count=('carbon_emissions', 'size')
        )

        points = [
            TrendPoint(
                interval=label,
                total_emissions=round_to(group['total_emissions'], 2),
                total_energy=round_to(group['total_energy'], 2),
                average_emissions=round_to(group['total_emissions'] / group['count'], 2),
                average_energy=round_to(group['total_energy'] / group['count'], 2),
                count=int(group['count'])
            )
            for label, group in grouped.iterrows()
        ]

        fit = fit_linear_trend([p.average_emissions for p in points])

        points = [
            point.model_copy(update={
                'predicted': round_to(predicted, 2),
                'deviation': round_to(point.average_emissions - predicted, 2)
            })
            for point, predicted in zip(points, fit.predicted)
        ]

        direction = classify_direction(fit.slope)
        strength = classify_strength(fit.r_squared)
        significant = abs(fit.slope) > SIGNIFICANT_SLOPE and fit.r_squared > MODERATE_R_SQUARED

        analysis = TrendAnalysis(
            slope=round_to(fit.slope, 4),
            y_intercept=round_to(fit.intercept, 4),
            r_squared=round_to(fit.r_squared, 4),
            direction=direction,
            strength=strength,
            is_significant=significant,
            interpretation=(
                f"Carbon emissions show a {strength.value} {direction.value} trend "
                f"over the {interval.value}s analyzed."
            )
        )

        logger.debug(
            "Trend over %d %s buckets: slope=%.4f r2=%.4f",
            len(points), interval.value, fit.slope, fit.r_squared
        )

        return TrendResult(trends=points, analysis=analysis, has_significant_trend=significant)

    def run(self, readings: Sequence[Reading], **kwargs) -> TrendResult:
        return self.analyze(readings, kwargs.get('interval', TrendInterval.DAY))
