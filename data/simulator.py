"""
Simulated carbon readings for demonstrations and tests.
"""

import numpy as np
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from .models import Reading, ReadingMetadata


BUILDINGS = [
    {'id': 'B-101', 'name': 'City Hall', 'type': 'government'},
    {'id': 'B-102', 'name': 'Community Center', 'type': 'public'},
    {'id': 'B-103', 'name': 'Public Library', 'type': 'public'},
    {'id': 'B-104', 'name': 'Police Station', 'type': 'government'},
    {'id': 'B-105', 'name': 'Fire Station', 'type': 'government'},
]

DEVICES = [
    {'id': 'D-001', 'type': 'hvac'},
    {'id': 'D-002', 'type': 'lighting'},
    {'id': 'D-003', 'type': 'power'},
    {'id': 'D-004', 'type': 'water'},
]

# (energy kWh, emission factor kg/kWh, temperature °C, humidity %) ranges
DEVICE_PROFILES = {
    'hvac': ((10, 50), (0.2, 0.5), (18, 24), (40, 60)),
    'lighting': ((2, 15), (0.1, 0.3), (20, 25), (35, 55)),
    'power': ((30, 100), (0.3, 0.6), (22, 28), (30, 50)),
    'water': ((5, 20), (0.05, 0.2), (15, 22), (50, 80)),
}


class ReadingSimulator:
    """Generates plausible readings for the demo buildings and devices."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = np.random.default_rng(seed)

    def _uniform(self, bounds: tuple, decimals: int) -> float:
        low, high = bounds
        return round(float(self._rng.uniform(low, high)), decimals)

    def generate_reading(self, timestamp: Optional[datetime] = None) -> Reading:
        """
        Generate one reading for a random building/device pair.

        Args:
            timestamp: Reading time (now when None)

        Returns:
            Validated Reading
        """
        building = BUILDINGS[self._rng.integers(len(BUILDINGS))]
        device = DEVICES[self._rng.integers(len(DEVICES))]
        energy_range, factor_range, temp_range, humidity_range = DEVICE_PROFILES[device['type']]

        energy = self._uniform(energy_range, 2)
        emissions = energy * self._uniform(factor_range, 2)

        return Reading(
            timestamp=timestamp or datetime.now(timezone.utc),
            building_id=building['id'],
            device_id=device['id'],
            energy_consumption=energy,
            carbon_emissions=emissions,
            temperature=self._uniform(temp_range, 1),
            humidity=self._uniform(humidity_range, 1),
            metadata=ReadingMetadata(
                building_name=building['name'],
                building_type=building['type'],
                device_type=device['type']
            )
        )

    def generate_bulk(
        self,
        count: int = 10,
        start: Optional[datetime] = None,
        step: timedelta = timedelta(hours=1)
    ) -> List[Reading]:
        """
        Generate evenly spaced readings.

        Args:
            count: Number of readings
            start: Timestamp of the first reading (now when None)
            step: Spacing between consecutive readings

        Returns:
            Readings in chronological order
        """
        if count < 0:
            raise ValueError("count cannot be negative")

        start = start or datetime.now(timezone.utc)
        return [self.generate_reading(start + i * step) for i in range(count)]
