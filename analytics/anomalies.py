"""
Z-score anomaly detection over emissions and energy.
"""

import logging
import numpy as np
from scipy import stats
from typing import List, Sequence

from data.models import Reading

from .base import AnalyticsTool, format_number, round_to
from .models import Anomaly


logger = logging.getLogger(__name__)

MIN_READINGS = 5
DEFAULT_THRESHOLD = 2.0


def z_scores(values: np.ndarray) -> np.ndarray:
    """
    Population z-scores of a series.

    A series without spread has no outliers: every score is 0.
    """
    if values.size == 0 or np.ptp(values) == 0:
        return np.zeros_like(values, dtype=float)
    return stats.zscore(values, ddof=0)


class AnomalyDetector(AnalyticsTool):
    """Flags readings whose emissions or energy deviate beyond a z-score threshold."""

    def __init__(self):
        super().__init__()
        self.name = "anomalies"
        self.description = "Detect unusual emissions or energy readings by z-score"
        self.parameters = ["threshold"]

    def detect(self, readings: Sequence[Reading], threshold: float = DEFAULT_THRESHOLD) -> List[Anomaly]:
        """
        Detect anomalous readings.

        Args:
            readings: Reading snapshot
            threshold: Absolute z-score above which a reading is anomalous

        Returns:
            Anomalies in reading order; empty for fewer than 5 readings

        Raises:
            ValueError: If threshold is not positive
        """
        if threshold <= 0:
            raise ValueError(f"Invalid threshold: {threshold}. Must be positive")

        if len(readings) < MIN_READINGS:
            return []

        emissions = np.array([r.carbon_emissions for r in readings], dtype=float)
        energy = np.array([r.energy_consumption for r in readings], dtype=float)
        emissions_z = z_scores(emissions)
        energy_z = z_scores(energy)

        anomalies = []
        for reading, e_z, n_z in zip(readings, emissions_z, energy_z):
            if abs(e_z) <= threshold and abs(n_z) <= threshold:
                continue

            e_z_rounded = round_to(e_z, 2)
            n_z_rounded = round_to(n_z, 2)

            if abs(e_z) > abs(n_z):
                reason = (
                    f"Unusual carbon emissions ({format_number(reading.carbon_emissions)} kg, "
                    f"z-score: {e_z_rounded:.2f})"
                )
            else:
                reason = (
                    f"Unusual energy consumption ({format_number(reading.energy_consumption)} kWh, "
                    f"z-score: {n_z_rounded:.2f})"
                )

            anomalies.append(Anomaly(
                id=reading.id,
                timestamp=reading.timestamp,
                building_id=reading.building_id,
                device_id=reading.device_id,
                carbon_emissions=reading.carbon_emissions,
                energy_consumption=reading.energy_consumption,
                emissions_z_score=e_z_rounded,
                energy_z_score=n_z_rounded,
                reason=reason
            ))

        logger.debug("Detected %d anomalies in %d readings", len(anomalies), len(readings))
        return anomalies

    def run(self, readings: Sequence[Reading], **kwargs) -> List[Anomaly]:
        return self.detect(readings, kwargs.get('threshold', DEFAULT_THRESHOLD))
