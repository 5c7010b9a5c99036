"""
Report models for daily, weekly and monthly emission reports.
"""

from typing import List, Literal, Union

from pydantic import Field

from analytics.models import Recommendation
from data.models import CamelModel


class DeviceSummary(CamelModel):
    id: str
    type: str
    total_emissions: float = 0.0
    total_energy: float = 0.0
    reading_count: int = 0


class BuildingSummary(CamelModel):
    id: str
    name: str
    total_emissions: float = 0.0
    total_energy: float = 0.0
    reading_count: int = 0
    devices: List[DeviceSummary] = Field(default_factory=list)


class HourlyBucket(CamelModel):
    hour: int = Field(ge=0, le=23)
    total_emissions: float = 0.0
    total_energy: float = 0.0
    reading_count: int = 0


class DailyBucket(CamelModel):
    date: str
    day_of_week: int = Field(ge=0, le=6, description="0 = Sunday")
    day_name: str
    total_emissions: float = 0.0
    total_energy: float = 0.0
    reading_count: int = 0


class WeeklyBucket(CamelModel):
    week: int
    start_date: str
    end_date: str
    total_emissions: float = 0.0
    total_energy: float = 0.0
    reading_count: int = 0


class DailySummary(CamelModel):
    total_emissions: float
    total_energy: float
    reading_count: int
    peak_hour: str
    peak_emissions: float


class WeeklySummary(CamelModel):
    total_emissions: float
    total_energy: float
    reading_count: int
    peak_day: str
    peak_emissions: float


class MonthlySummary(CamelModel):
    total_emissions: float
    total_energy: float
    reading_count: int
    daily_average: float


class DailyReport(CamelModel):
    report_type: Literal['daily'] = 'daily'
    date: str
    summary: DailySummary
    buildings: List[BuildingSummary]
    hourly: List[HourlyBucket]
    recommendations: List[Recommendation]


class WeeklyReport(CamelModel):
    report_type: Literal['weekly'] = 'weekly'
    start_date: str
    end_date: str
    summary: WeeklySummary
    daily: List[DailyBucket]
    buildings: List[BuildingSummary]
    recommendations: List[Recommendation]


class MonthlyReport(CamelModel):
    report_type: Literal['monthly'] = 'monthly'
    year: int
    month: int = Field(ge=1, le=12)
    summary: MonthlySummary
    daily: List[DailyBucket]
    buildings: List[BuildingSummary]
    weekly_trend: List[WeeklyBucket]
    recommendations: List[Recommendation]


Report = Union[DailyReport, WeeklyReport, MonthlyReport]
