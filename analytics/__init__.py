"""
Analytics module for carbon emission readings.
"""

from .base import AnalyticsResult, AnalyticsTool, round_to, safe_divide, format_number
from .models import (
    Anomaly,
    BuildingIntensity,
    Confidence,
    DateRange,
    DeviceIntensity,
    ForecastPoint,
    ForecastResult,
    IntensityResult,
    Priority,
    Recommendation,
    RecommendationCategory,
    Statistics,
    TrendAnalysis,
    TrendDirection,
    TrendInterval,
    TrendPoint,
    TrendResult,
    TrendStrength
)
from .statistics import StatisticsCalculator
from .anomalies import AnomalyDetector
from .intensity import IntensityCalculator
from .trends import TrendAnalyzer, fit_linear_trend
from .forecast import Forecaster
from .recommendations import RecommendationEngine
from .registry import ToolRegistry, get_registry

__all__ = [
    'AnalyticsResult',
    'AnalyticsTool',
    'StatisticsCalculator',
    'AnomalyDetector',
    'IntensityCalculator',
    'TrendAnalyzer',
    'Forecaster',
    'RecommendationEngine',
    'ToolRegistry',
    'get_registry',
    'fit_linear_trend',
    'round_to',
    'safe_divide',
    'format_number',
    'Anomaly',
    'BuildingIntensity',
    'Confidence',
    'DateRange',
    'DeviceIntensity',
    'ForecastPoint',
    'ForecastResult',
    'IntensityResult',
    'Priority',
    'Recommendation',
    'RecommendationCategory',
    'Statistics',
    'TrendAnalysis',
    'TrendDirection',
    'TrendInterval',
    'TrendPoint',
    'TrendResult',
    'TrendStrength',
]
