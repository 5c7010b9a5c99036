"""
Reporting module: period reports and their export formats.
"""

from .models import (
    BuildingSummary,
    DailyBucket,
    DailyReport,
    DailySummary,
    DeviceSummary,
    HourlyBucket,
    MonthlyReport,
    MonthlySummary,
    Report,
    WeeklyBucket,
    WeeklyReport,
    WeeklySummary
)
from .grouping import (
    DAY_NAMES,
    find_peak,
    group_by_building,
    group_by_day,
    group_by_hour,
    weekly_breakdown
)
from .builder import ReportBuilder
from .export import EXPORT_FORMATS, to_csv, to_json

__all__ = [
    'ReportBuilder',
    'to_json',
    'to_csv',
    'EXPORT_FORMATS',
    'DAY_NAMES',
    'find_peak',
    'group_by_building',
    'group_by_day',
    'group_by_hour',
    'weekly_breakdown',
    'BuildingSummary',
    'DailyBucket',
    'DailyReport',
    'DailySummary',
    'DeviceSummary',
    'HourlyBucket',
    'MonthlyReport',
    'MonthlySummary',
    'Report',
    'WeeklyBucket',
    'WeeklyReport',
    'WeeklySummary',
]
