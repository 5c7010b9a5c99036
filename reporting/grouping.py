"""
Grouping and peak-finding helpers shared by the report builders.
All helpers take a reading DataFrame (see data.readings_to_frame).
"""

import calendar
import math
import pandas as pd
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, List, Optional, Sequence, TypeVar

from analytics.base import round_to
from data.models import first_value, text_or

from .models import BuildingSummary, DailyBucket, DeviceSummary, HourlyBucket, WeeklyBucket


DAY_NAMES = ['Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday']

TOTALS = dict(
    total_emissions=('carbon_emissions', 'sum'),
    total_energy=('energy_consumption', 'sum'),
    reading_count=('carbon_emissions', 'size')
)


def sunday_weekday(day: date) -> int:
    """Day of week with Sunday = 0."""
    return (day.weekday() + 1) % 7


def utc_midnight(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def group_by_building(frame: pd.DataFrame, fallback_names: Dict[str, str]) -> List[BuildingSummary]:
    """
    Totals per building with nested per-device totals.

    The building name comes from reading metadata, then fallback_names,
    then the raw id. Devices and buildings are sorted by total emissions,
    highest first.
    """
    if frame.empty:
        return []

    building_totals = frame.groupby('building_id', sort=False).agg(
        name=('building_name', first_value), **TOTALS
    )
    device_totals = frame.groupby(['building_id', 'device_id'], sort=False).agg(
        type=('device_type', first_value), **TOTALS
    )

    buildings = []
    for building_id, building in building_totals.iterrows():
        devices = [
            DeviceSummary(
                id=device_id,
                type=text_or(device['type'], device_id),
                total_emissions=round_to(device['total_emissions'], 2),
                total_energy=round_to(device['total_energy'], 2),
                reading_count=int(device['reading_count'])
            )
            for (owner_id, device_id), device in device_totals.iterrows()
            if owner_id == building_id
        ]
        devices.sort(key=lambda d: d.total_emissions, reverse=True)

        buildings.append(BuildingSummary(
            id=building_id,
            name=text_or(building['name'], fallback_names.get(building_id, building_id)),
            total_emissions=round_to(building['total_emissions'], 2),
            total_energy=round_to(building['total_energy'], 2),
            reading_count=int(building['reading_count']),
            devices=devices
        ))

    buildings.sort(key=lambda b: b.total_emissions, reverse=True)
    return buildings


def group_by_hour(frame: pd.DataFrame) -> List[HourlyBucket]:
    """Totals per UTC hour of day, for the hours that have readings."""
    if frame.empty:
        return []

    hourly = frame.groupby(frame['timestamp'].dt.hour).agg(**TOTALS)
    return [
        HourlyBucket(
            hour=int(hour),
            total_emissions=round_to(row['total_emissions'], 2),
            total_energy=round_to(row['total_energy'], 2),
            reading_count=int(row['reading_count'])
        )
        for hour, row in hourly.iterrows()
    ]


def group_by_day(frame: pd.DataFrame, start: date, days: int) -> List[DailyBucket]:
    """
    Totals for each of `days` consecutive days from `start`.
    Every day is listed, including days without readings.
    """
    totals = pd.DataFrame(columns=['total_emissions', 'total_energy', 'reading_count'])
    if not frame.empty:
        day_index = (frame['timestamp'] - pd.Timestamp(utc_midnight(start))) // pd.Timedelta(days=1)
        in_range = frame[(day_index >= 0) & (day_index < days)]
        totals = in_range.groupby(day_index[in_range.index]).agg(**TOTALS)

    buckets = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        weekday = sunday_weekday(day)
        if offset in totals.index:
            row = totals.loc[offset]
            emissions, energy, count = row['total_emissions'], row['total_energy'], int(row['reading_count'])
        else:
            emissions, energy, count = 0.0, 0.0, 0

        buckets.append(DailyBucket(
            date=day.isoformat(),
            day_of_week=weekday,
            day_name=DAY_NAMES[weekday],
            total_emissions=round_to(emissions, 2),
            total_energy=round_to(energy, 2),
            reading_count=count
        ))

    return buckets


def weekly_breakdown(frame: pd.DataFrame, year: int, month: int) -> List[WeeklyBucket]:
    """
    Totals per calendar week of a month.

    Week 1 runs from the 1st to the first Saturday; later weeks run
    Sunday to Saturday, the last one ending on the month's last day.
    The frame must only hold readings of that month.
    """
    first = date(year, month, 1)
    days_in_month = calendar.monthrange(year, month)[1]
    start_day = sunday_weekday(first)
    num_weeks = math.ceil((days_in_month + start_day) / 7)

    totals = pd.DataFrame(columns=['total_emissions', 'total_energy', 'reading_count'])
    if not frame.empty:
        week_index = (frame['timestamp'].dt.day + start_day - 1) // 7
        totals = frame.groupby(week_index).agg(**TOTALS)

    weeks = []
    for index in range(num_weeks):
        week_start = index * 7 - start_day + 1
        if week_start > days_in_month:
            continue
        week_end = min(week_start + 6, days_in_month)

        if index in totals.index:
            row = totals.loc[index]
            emissions, energy, count = row['total_emissions'], row['total_energy'], int(row['reading_count'])
        else:
            emissions, energy, count = 0.0, 0.0, 0

        weeks.append(WeeklyBucket(
            week=index + 1,
            start_date=date(year, month, max(1, week_start)).isoformat(),
            end_date=date(year, month, week_end).isoformat(),
            total_emissions=round_to(emissions, 2),
            total_energy=round_to(energy, 2),
            reading_count=count
        ))

    return weeks


Bucket = TypeVar('Bucket', HourlyBucket, DailyBucket)


def find_peak(buckets: Sequence[Bucket]) -> Optional[Bucket]:
    """Bucket with the highest total emissions; the earliest wins ties."""
    if not buckets:
        return None
    return max(buckets, key=lambda b: b.total_emissions)
