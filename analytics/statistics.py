"""
Summary statistics over a reading set.
"""

from typing import Sequence

from data.models import Reading, readings_to_frame

from .base import AnalyticsTool, round_to
from .models import DateRange, Statistics


class StatisticsCalculator(AnalyticsTool):
    """Sum, average, minimum and maximum of emissions and energy."""

    def __init__(self):
        super().__init__()
        self.name = "statistics"
        self.description = "Summary statistics for carbon emissions and energy consumption"
        self.parameters = []
        self.unit = "kg CO2"

    def calculate(self, readings: Sequence[Reading]) -> Statistics:
        """
        Compute summary statistics.

        Args:
            readings: Reading snapshot (may be empty)

        Returns:
            Statistics; all zero with an empty date range for no readings
        """
        if not readings:
            return Statistics()

        frame = readings_to_frame(readings)
        emissions = frame['carbon_emissions']
        energy = frame['energy_consumption']

        return Statistics(
            count=len(frame),
            emissions_total=round_to(emissions.sum(), 2),
            emissions_avg=round_to(emissions.mean(), 2),
            emissions_min=round_to(emissions.min(), 2),
            emissions_max=round_to(emissions.max(), 2),
            energy_total=round_to(energy.sum(), 2),
            energy_avg=round_to(energy.mean(), 2),
            energy_min=round_to(energy.min(), 2),
            energy_max=round_to(energy.max(), 2),
            date_range=DateRange(
                start=frame['timestamp'].min().to_pydatetime(),
                end=frame['timestamp'].max().to_pydatetime()
            )
        )

    def run(self, readings: Sequence[Reading], **kwargs) -> Statistics:
        return self.calculate(readings)
