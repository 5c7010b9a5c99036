"""
JSON and CSV export of reports.

The CSV layout is fixed: report type and period lines, SUMMARY,
BUILDINGS, HOURLY DATA or DAILY DATA, RECOMMENDATIONS, separated by
blank lines.
"""

import json
from typing import List

from analytics.base import format_number

from .models import DailyReport, MonthlyReport, Report, WeeklyReport


EXPORT_FORMATS = ('json', 'csv')

BUILDINGS_HEADER = 'Building,Total Emissions (kg CO2),Total Energy (kWh),Reading Count'
HOURLY_HEADER = 'Hour,Total Emissions (kg CO2),Total Energy (kWh),Reading Count'
DAILY_HEADER = 'Date,Day,Total Emissions (kg CO2),Total Energy (kWh),Reading Count'
RECOMMENDATIONS_HEADER = 'Priority,Category,Recommendation'


def to_json(report: Report, indent: int = 2) -> str:
    """Serialize a report with camelCase keys."""
    return json.dumps(report.model_dump(mode='json', by_alias=True), indent=indent)


def _period_lines(report: Report) -> List[str]:
    if isinstance(report, DailyReport):
        return [f"Date,{report.date}"]
    if isinstance(report, WeeklyReport):
        return [f"Start Date,{report.start_date}", f"End Date,{report.end_date}"]
    return [f"Year,{report.year}", f"Month,{report.month}"]


def _summary_lines(report: Report) -> List[str]:
    summary = report.summary
    lines = [
        'SUMMARY',
        f"Total Emissions (kg CO2),{format_number(summary.total_emissions)}",
        f"Total Energy (kWh),{format_number(summary.total_energy)}",
        f"Reading Count,{summary.reading_count}",
    ]
    if isinstance(report, DailyReport):
        lines.append(f"Peak Hour,{summary.peak_hour}")
        lines.append(f"Peak Emissions (kg CO2),{format_number(summary.peak_emissions)}")
    elif isinstance(report, WeeklyReport):
        lines.append(f"Peak Day,{summary.peak_day}")
        lines.append(f"Peak Emissions (kg CO2),{format_number(summary.peak_emissions)}")
    elif isinstance(report, MonthlyReport):
        lines.append(f"Daily Average (kg CO2),{format_number(summary.daily_average)}")
    return lines


def _time_series_lines(report: Report) -> List[str]:
    if isinstance(report, DailyReport):
        return ['HOURLY DATA', HOURLY_HEADER] + [
            f"{hour.hour}:00,{format_number(hour.total_emissions)},"
            f"{format_number(hour.total_energy)},{hour.reading_count}"
            for hour in report.hourly
        ]
    return ['DAILY DATA', DAILY_HEADER] + [
        f"{day.date},{day.day_name},{format_number(day.total_emissions)},"
        f"{format_number(day.total_energy)},{day.reading_count}"
        for day in report.daily
    ]


def to_csv(report: Report) -> str:
    """
    Render a report in the sectioned CSV layout.
    Every line, including the last, ends with a newline.
    """
    lines = [f"Report Type,{report.report_type}"]
    lines.extend(_period_lines(report))
    lines.append('')

    lines.extend(_summary_lines(report))
    lines.append('')

    lines.append('BUILDINGS')
    lines.append(BUILDINGS_HEADER)
    for building in report.buildings:
        lines.append(
            f"{building.name},{format_number(building.total_emissions)},"
            f"{format_number(building.total_energy)},{building.reading_count}"
        )
    lines.append('')

    lines.extend(_time_series_lines(report))
    lines.append('')

    lines.append('RECOMMENDATIONS')
    lines.append(RECOMMENDATIONS_HEADER)
    for rec in report.recommendations:
        lines.append(f'{rec.priority},{rec.category},"{rec.text}"')

    return '\n'.join(lines) + '\n'
