"""
Carbon intensity (emissions per unit of energy) by building and device.
"""

from typing import Sequence

from data.models import Reading, first_value, readings_to_frame, text_or

from .base import AnalyticsTool, round_to, safe_divide
from .models import BuildingIntensity, DeviceIntensity, IntensityResult


class IntensityCalculator(AnalyticsTool):
    """Groups readings by building and device and ranks them by intensity."""

    def __init__(self):
        super().__init__()
        self.name = "carbon_intensity"
        self.description = "Carbon intensity (kg CO2 per kWh) by building and device"
        self.parameters = []
        self.unit = "kg CO2/kWh"

    def calculate(self, readings: Sequence[Reading]) -> IntensityResult:
        """
        Compute carbon intensity per building and device.

        Buildings and their devices are grouped in first-appearance order,
        then sorted by rounded intensity, highest first. Zero energy gives
        an intensity of 0.

        Args:
            readings: Reading snapshot

        Returns:
            IntensityResult with buildings and the global average intensity
        """
        if not readings:
            return IntensityResult()

        frame = readings_to_frame(readings)

        building_totals = frame.groupby('building_id', sort=False).agg(
            name=('building_name', first_value),
            total_emissions=('carbon_emissions', 'sum'),
            total_energy=('energy_consumption', 'sum')
        )
        device_totals = frame.groupby(['building_id', 'device_id'], sort=False).agg(
            type=('device_type', first_value),
            total_emissions=('carbon_emissions', 'sum'),
            total_energy=('energy_consumption', 'sum')
        )

        buildings = []
        for building_id, building in building_totals.iterrows():
            devices = [
                DeviceIntensity(
                    id=device_id,
                    type=text_or(device['type'], device_id),
                    total_emissions=round_to(device['total_emissions'], 2),
                    total_energy=round_to(device['total_energy'], 2),
                    intensity=round_to(safe_divide(device['total_emissions'], device['total_energy']), 4)
                )
                for (owner_id, device_id), device in device_totals.iterrows()
                if owner_id == building_id
            ]
            devices.sort(key=lambda d: d.intensity, reverse=True)

            buildings.append(BuildingIntensity(
                id=building_id,
                name=text_or(building['name'], building_id),
                total_emissions=round_to(building['total_emissions'], 2),
                total_energy=round_to(building['total_energy'], 2),
                intensity=round_to(safe_divide(building['total_emissions'], building['total_energy']), 4),
                devices=devices
            ))

        buildings.sort(key=lambda b: b.intensity, reverse=True)

        average = safe_divide(
            building_totals['total_emissions'].sum(),
            building_totals['total_energy'].sum()
        )

        return IntensityResult(buildings=buildings, average=round_to(average, 4))

    def run(self, readings: Sequence[Reading], **kwargs) -> IntensityResult:
        return self.calculate(readings)
