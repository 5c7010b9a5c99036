"""
Emission forecasting by slope extrapolation of the interval trend.
"""

from datetime import timedelta
from typing import Sequence

from data.models import Reading

from .base import AnalyticsTool, round_to
from .models import Confidence, ForecastPoint, ForecastResult, TrendInterval
from .trends import TrendAnalyzer, bucket_start, parse_interval, WEEK_LABEL_PREFIX


MIN_READINGS = 10
DEFAULT_PERIODS = 7


def forecast_label(last_label: str, interval: TrendInterval, step: int) -> str:
    """Label of the forecast bucket `step` intervals after the last observed one."""
    if interval == TrendInterval.DAY:
        return (bucket_start(last_label, interval) + timedelta(days=step)).isoformat()
    if interval == TrendInterval.WEEK:
        start = bucket_start(last_label, interval) + timedelta(days=7 * step)
        return f"{WEEK_LABEL_PREFIX}{start.isoformat()}"
    return f"Future {interval.value} {step}"


class Forecaster(AnalyticsTool):
    """
    Projects average emissions forward.

    Each forecast value is the previous one plus the regression slope of the
    interval trend, starting from the last observed average and never
    dropping below zero. There is no smoothing factor.
    """

    def __init__(self, trend_analyzer: TrendAnalyzer | None = None):
        super().__init__()
        self.name = "forecast"
        self.description = "Forecast average emissions for future intervals"
        self.parameters = ["periods", "interval"]
        self.unit = "kg CO2"
        self._trend_analyzer = trend_analyzer or TrendAnalyzer()

    def forecast(
        self,
        readings: Sequence[Reading],
        periods: int = DEFAULT_PERIODS,
        interval: str | TrendInterval = TrendInterval.DAY
    ) -> ForecastResult:
        """
        Forecast emissions.

        Args:
            readings: Reading snapshot
            periods: Number of future intervals
            interval: 'hour', 'day', 'week' or 'month'

        Returns:
            ForecastResult; empty and low-confidence below 10 readings

        Raises:
            ValueError: If periods is negative or interval is not supported
        """
        if periods < 0:
            raise ValueError(f"Invalid periods: {periods}. Cannot be negative")
        interval = parse_interval(interval)

        if len(readings) < MIN_READINGS:
            return ForecastResult(
                confidence=Confidence.LOW,
                message="Insufficient historical data for accurate forecasting"
            )

        trend = self._trend_analyzer.analyze(readings, interval)
        analysis = trend.analysis
        last_point = trend.trends[-1]

        current = last_point.average_emissions
        points = []
        for step in range(1, periods + 1):
            current = max(0.0, current + analysis.slope)
            points.append(ForecastPoint(
                interval=forecast_label(last_point.interval, interval, step),
                forecast=round_to(current, 2)
            ))

        sample_size = len(readings)
        if analysis.r_squared > 0.7 and sample_size > 30:
            confidence = Confidence.HIGH
        elif analysis.r_squared > 0.4 and sample_size > 20:
            confidence = Confidence.MEDIUM
        else:
            confidence = Confidence.LOW

        return ForecastResult(
            historical=trend.trends,
            forecast=points,
            confidence=confidence,
            slope=analysis.slope,
            message=(
                f"This forecast has {confidence.value} confidence based on {sample_size} "
                f"data points and an R² of {analysis.r_squared:.2f}."
            )
        )

    def run(self, readings: Sequence[Reading], **kwargs) -> ForecastResult:
        return self.forecast(
            readings,
            kwargs.get('periods', DEFAULT_PERIODS),
            kwargs.get('interval', TrendInterval.DAY)
        )
