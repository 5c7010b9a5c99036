"""
Daily, weekly and monthly emission reports.

Each report covers a half-open UTC window [start, end) and combines
summary totals, per-building grouping, a sub-period breakdown, peak
detection and report recommendations.
"""

import calendar
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, List, Optional, Sequence

import pandas as pd

from analytics.base import format_number, round_to, safe_divide
from analytics.models import Priority, Recommendation, RecommendationCategory
from data.config import ReportingSettings
from data.models import Reading, ensure_utc, parse_timestamp, readings_to_frame

from .grouping import (
    find_peak,
    group_by_building,
    group_by_day,
    group_by_hour,
    sunday_weekday,
    utc_midnight,
    weekly_breakdown
)
from .models import (
    BuildingSummary,
    DailyReport,
    DailySummary,
    MonthlyReport,
    MonthlySummary,
    WeeklyReport,
    WeeklySummary
)


logger = logging.getLogger(__name__)

MIN_READINGS = 5

INSUFFICIENT_DATA = Recommendation(
    category=RecommendationCategory.GENERAL,
    priority=Priority.LOW,
    text="Insufficient data to generate meaningful recommendations. "
         "Continue collecting data to improve insights."
)

GENERIC_RECOMMENDATIONS = [
    Recommendation(
        category=RecommendationCategory.GENERAL,
        priority=Priority.LOW,
        text="Consider implementing a regular energy monitoring program to track "
             "consumption patterns and identify inefficiencies."
    ),
    Recommendation(
        category=RecommendationCategory.GENERAL,
        priority=Priority.LOW,
        text="Educate staff about energy conservation practices to reduce overall carbon footprint."
    ),
]


def to_report_date(value: Any = None) -> date:
    """
    Normalize a report date argument.

    Accepts a date, a datetime (converted to UTC) or a date string;
    None means today (UTC).
    """
    if value is None:
        return datetime.now(timezone.utc).date()
    value = parse_timestamp(value)
    if isinstance(value, datetime):
        return ensure_utc(value).date()
    if isinstance(value, date):
        return value
    raise ValueError(f"Invalid report date: {value!r}")


def readings_in_window(readings: Sequence[Reading], start: datetime, end: datetime) -> List[Reading]:
    """Readings with start <= timestamp < end, in input order."""
    return [r for r in readings if start <= r.timestamp < end]


class ReportBuilder:
    """Builds period reports from a reading snapshot."""

    def __init__(self, settings: Optional[ReportingSettings] = None):
        self.settings = settings or ReportingSettings()

    def build_daily(self, readings: Sequence[Reading], day: Any = None) -> DailyReport:
        """
        Build the report for one UTC calendar day.

        Args:
            readings: Reading snapshot (any period)
            day: Day to report on (defaults to today)

        Returns:
            DailyReport with hourly breakdown
        """
        report_date = to_report_date(day)
        start = utc_midnight(report_date)
        window = readings_in_window(readings, start, start + timedelta(days=1))
        frame = readings_to_frame(window)

        hourly = group_by_hour(frame)
        peak = find_peak(hourly)

        logger.debug("Daily report for %s: %d readings", report_date, len(window))

        return DailyReport(
            date=report_date.isoformat(),
            summary=DailySummary(
                total_emissions=round_to(frame['carbon_emissions'].sum(), 2),
                total_energy=round_to(frame['energy_consumption'].sum(), 2),
                reading_count=len(window),
                peak_hour=f"{peak.hour}:00" if peak else 'N/A',
                peak_emissions=peak.total_emissions if peak else 0.0
            ),
            buildings=group_by_building(frame, self.settings.building_names),
            hourly=hourly,
            recommendations=self._recommendations(frame, 'daily', report_date)
        )

    def build_weekly(self, readings: Sequence[Reading], day: Any = None) -> WeeklyReport:
        """
        Build the report for the Sunday-aligned week containing `day`.

        Args:
            readings: Reading snapshot (any period)
            day: Any day within the week (defaults to today)

        Returns:
            WeeklyReport with a seven-day breakdown
        """
        report_date = to_report_date(day)
        week_start = report_date - timedelta(days=sunday_weekday(report_date))
        start = utc_midnight(week_start)
        window = readings_in_window(readings, start, start + timedelta(days=7))
        frame = readings_to_frame(window)

        daily = group_by_day(frame, week_start, 7)
        peak = find_peak(daily)

        logger.debug("Weekly report for week of %s: %d readings", week_start, len(window))

        return WeeklyReport(
            start_date=week_start.isoformat(),
            end_date=(week_start + timedelta(days=6)).isoformat(),
            summary=WeeklySummary(
                total_emissions=round_to(frame['carbon_emissions'].sum(), 2),
                total_energy=round_to(frame['energy_consumption'].sum(), 2),
                reading_count=len(window),
                peak_day=peak.day_name if peak else 'N/A',
                peak_emissions=peak.total_emissions if peak else 0.0
            ),
            daily=daily,
            buildings=group_by_building(frame, self.settings.building_names),
            recommendations=self._recommendations(frame, 'weekly', week_start)
        )

    def build_monthly(self, readings: Sequence[Reading], year: Optional[int] = None,
                      month: Optional[int] = None) -> MonthlyReport:
        """
        Build the report for one calendar month (UTC).

        Args:
            readings: Reading snapshot (any period)
            year: Report year (defaults to the current year)
            month: Report month 1-12 (defaults to the current month)

        Returns:
            MonthlyReport with daily and weekly breakdowns

        Raises:
            ValueError: If month is outside 1-12
        """
        today = datetime.now(timezone.utc).date()
        year = today.year if year is None else int(year)
        month = today.month if month is None else int(month)
        if not 1 <= month <= 12:
            raise ValueError(f"Invalid month: {month}. Must be between 1 and 12")

        first = date(year, month, 1)
        days_in_month = calendar.monthrange(year, month)[1]
        start = utc_midnight(first)
        window = readings_in_window(readings, start, start + timedelta(days=days_in_month))
        frame = readings_to_frame(window)

        total_emissions = frame['carbon_emissions'].sum()

        logger.debug("Monthly report for %d-%02d: %d readings", year, month, len(window))

        return MonthlyReport(
            year=year,
            month=month,
            summary=MonthlySummary(
                total_emissions=round_to(total_emissions, 2),
                total_energy=round_to(frame['energy_consumption'].sum(), 2),
                reading_count=len(window),
                daily_average=round_to(safe_divide(total_emissions, days_in_month), 2)
            ),
            daily=group_by_day(frame, first, days_in_month),
            buildings=group_by_building(frame, self.settings.building_names),
            weekly_trend=weekly_breakdown(frame, year, month),
            recommendations=self._recommendations(frame, 'monthly', first)
        )

    def _recommendations(self, frame: pd.DataFrame, report_type: str, period_start: date) -> List[Recommendation]:
        """
        Report recommendations: building and device rules, then the
        period's timing rule, then generic advice if fewer than two apply.
        """
        if len(frame) < MIN_READINGS:
            return [INSUFFICIENT_DATA]

        recommendations = []
        for building in group_by_building(frame, self.settings.building_names):
            recommendations.extend(self._building_recommendations(building))

        if report_type == 'daily':
            peak_hour = find_peak(group_by_hour(frame))
            if peak_hour:
                recommendations.append(Recommendation(
                    category=RecommendationCategory.TIMING,
                    priority=Priority.MEDIUM,
                    text=f"Peak emissions occur at {peak_hour.hour}:00. "
                         f"Consider shifting energy-intensive operations to off-peak hours."
                ))
        elif report_type == 'weekly':
            # days count from the week start, matching the report's daily trend
            peak_day = find_peak(group_by_day(frame, period_start, 7))
            if peak_day:
                recommendations.append(Recommendation(
                    category=RecommendationCategory.TIMING,
                    priority=Priority.MEDIUM,
                    text=f"{peak_day.day_name} shows the highest emissions. "
                         f"Review operations on this day to identify reduction opportunities."
                ))

        if len(recommendations) < 2:
            recommendations.extend(GENERIC_RECOMMENDATIONS)

        return recommendations

    def _building_recommendations(self, building: BuildingSummary) -> List[Recommendation]:
        recommendations = []

        if building.total_emissions > self.settings.high_emission_threshold:
            recommendations.append(Recommendation(
                category=RecommendationCategory.BUILDING,
                priority=Priority.HIGH,
                target=building.name,
                text=f"{building.name} has unusually high emissions ({format_number(building.total_emissions)} kg CO2). "
                     f"Consider an energy audit to identify inefficiencies."
            ))

        share = self.settings.device_share_threshold
        for device in building.devices:
            if device.total_emissions > building.total_emissions * share:
                recommendations.append(Recommendation(
                    category=RecommendationCategory.DEVICE,
                    priority=Priority.MEDIUM,
                    target=device.type,
                    text=f"{device.type} in {building.name} accounts for over {share:.0%} of the "
                         f"building's emissions. Consider upgrading or optimizing this system."
                ))

        return recommendations
