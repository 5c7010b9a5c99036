"""
Rule-based recommendations derived from intensity, trend and anomaly analysis.
"""

import logging
from typing import Dict, List, Sequence

from data.models import Reading

from .anomalies import AnomalyDetector
from .base import AnalyticsTool, round_to, safe_divide
from .intensity import IntensityCalculator
from .models import (
    Anomaly,
    IntensityResult,
    Priority,
    Recommendation,
    RecommendationCategory,
    TrendDirection,
    TrendInterval,
    TrendResult
)
from .trends import TrendAnalyzer


logger = logging.getLogger(__name__)

MIN_READINGS = 10
BUILDING_INTENSITY_FACTOR = 1.5
DEVICE_INTENSITY_FACTOR = 1.3
MIN_BUILDING_ANOMALIES = 3

INSUFFICIENT_DATA = Recommendation(
    category=RecommendationCategory.GENERAL,
    priority=Priority.MEDIUM,
    text='Collect more data to enable comprehensive analysis and more specific recommendations.'
)

GENERAL_RECOMMENDATIONS = (
    Recommendation(
        category=RecommendationCategory.GENERAL,
        priority=Priority.MEDIUM,
        text='Consider implementing a regular energy audit program to identify further efficiency opportunities.'
    ),
    Recommendation(
        category=RecommendationCategory.GENERAL,
        priority=Priority.MEDIUM,
        text='Develop a carbon reduction roadmap with specific targets and timelines for each building.'
    ),
)


class RecommendationEngine(AnalyticsTool):
    """
    Turns analysis results into advisory text.

    Rules are applied in a fixed order: intensity outliers, significant
    daily trend, buildings with repeated anomalies, then generic advice
    when fewer than two specific recommendations were found.
    """

    def __init__(
        self,
        intensity_calculator: IntensityCalculator | None = None,
        trend_analyzer: TrendAnalyzer | None = None,
        anomaly_detector: AnomalyDetector | None = None
    ):
        super().__init__()
        self.name = "recommendations"
        self.description = "Rule-based carbon reduction recommendations"
        self.parameters = []
        self._intensity = intensity_calculator or IntensityCalculator()
        self._trends = trend_analyzer or TrendAnalyzer()
        self._anomalies = anomaly_detector or AnomalyDetector()

    def generate(self, readings: Sequence[Reading]) -> List[Recommendation]:
        """
        Generate recommendations for a reading set.

        Args:
            readings: Reading snapshot

        Returns:
            Recommendations in rule order; a single generic item below 10 readings
        """
        if len(readings) < MIN_READINGS:
            return [INSUFFICIENT_DATA]

        recommendations: List[Recommendation] = []
        recommendations.extend(self.intensity_recommendations(self._intensity.calculate(readings)))
        recommendations.extend(self.trend_recommendations(self._trends.analyze(readings, TrendInterval.DAY)))

        building_names = {}
        for reading in readings:
            building_names.setdefault(reading.building_id, reading.building_name)
        recommendations.extend(
            self.anomaly_recommendations(self._anomalies.detect(readings), building_names)
        )

        if len(recommendations) < 2:
            recommendations.extend(GENERAL_RECOMMENDATIONS)

        logger.debug("Generated %d recommendations from %d readings", len(recommendations), len(readings))
        return recommendations

    @staticmethod
    def intensity_recommendations(intensity: IntensityResult) -> List[Recommendation]:
        """Flag the most carbon-intensive building and its worst device."""
        if not intensity.buildings:
            return []

        highest = intensity.buildings[0]
        if highest.intensity <= intensity.average * BUILDING_INTENSITY_FACTOR:
            return []

        ratio = round_to(safe_divide(highest.intensity, intensity.average), 1)
        recommendations = [Recommendation(
            category=RecommendationCategory.EFFICIENCY,
            priority=Priority.HIGH,
            target=highest.name,
            text=(
                f"{highest.name} has a carbon intensity {ratio:.1f}x higher than average. "
                "Consider energy efficiency improvements."
            )
        )]

        if highest.devices:
            worst = highest.devices[0]
            if worst.intensity > highest.intensity * DEVICE_INTENSITY_FACTOR:
                recommendations.append(Recommendation(
                    category=RecommendationCategory.DEVICE,
                    priority=Priority.HIGH,
                    target=f"{worst.type} in {highest.name}",
                    text=(
                        f"The {worst.type} in {highest.name} has particularly high carbon intensity. "
                        "Consider upgrading or optimizing this system."
                    )
                ))

        return recommendations

    @staticmethod
    def trend_recommendations(trend: TrendResult) -> List[Recommendation]:
        """Flag a significant increasing or decreasing trend."""
        if not trend.has_significant_trend or trend.analysis is None:
            return []

        analysis = trend.analysis
        if analysis.direction == TrendDirection.INCREASING:
            return [Recommendation(
                category=RecommendationCategory.TREND,
                priority=Priority.HIGH,
                text=(
                    f"Carbon emissions are {analysis.strength} increasing over time. "
                    "Review recent operational changes and consider implementing additional reduction measures."
                )
            )]

        return [Recommendation(
            category=RecommendationCategory.TREND,
            priority=Priority.LOW,
            text=(
                f"Carbon emissions are {analysis.strength} decreasing over time. "
                "Current reduction measures appear to be effective."
            )
        )]

    @staticmethod
    def anomaly_recommendations(
        anomalies: Sequence[Anomaly],
        building_names: Dict[str, str]
    ) -> List[Recommendation]:
        """Flag buildings with more than two anomalous readings."""
        by_building: Dict[str, int] = {}
        for anomaly in anomalies:
            by_building[anomaly.building_id] = by_building.get(anomaly.building_id, 0) + 1

        recommendations = []
        for building_id, count in by_building.items():
            if count < MIN_BUILDING_ANOMALIES:
                continue
            name = building_names.get(building_id, building_id)
            recommendations.append(Recommendation(
                category=RecommendationCategory.ANOMALY,
                priority=Priority.MEDIUM,
                target=name,
                text=(
                    f"{name} shows {count} unusual readings. "
                    "Consider investigating for potential equipment malfunctions or operational issues."
                )
            ))

        return recommendations

    def run(self, readings: Sequence[Reading], **kwargs) -> List[Recommendation]:
        return self.generate(readings)
