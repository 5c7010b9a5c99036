"""
Pydantic models for carbon emission readings and repository queries.
"""

import math
import uuid
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

import pandas as pd
from dateutil import parser as date_parser
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that accepts and emits camelCase keys."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True
    )


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> Any:
    """Parse free-form timestamp strings; other values pass through."""
    if isinstance(value, str):
        try:
            return date_parser.parse(value)
        except (ValueError, OverflowError) as e:
            raise ValueError(f"Invalid timestamp: {value!r} ({e})")
    return value


class ReadingMetadata(CamelModel):
    """
    Optional descriptive metadata attached to a reading.
    Unknown keys are kept as-is.
    """
    model_config = ConfigDict(extra='allow', frozen=True)

    building_name: Optional[str] = Field(default=None, description="Human-readable building name")
    building_type: Optional[str] = Field(default=None, description="Building category (government, public, ...)")
    device_type: Optional[str] = Field(default=None, description="Device category (hvac, lighting, ...)")


def _new_reading_id() -> str:
    return uuid.uuid4().hex


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Reading(CamelModel):
    """Single emission/energy observation for a device in a building."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_reading_id, description="Unique reading identifier")
    timestamp: datetime = Field(default_factory=_utc_now, description="Instant of the reading (UTC)")
    building_id: str = Field(description="Building identifier")
    device_id: str = Field(description="Device identifier")
    energy_consumption: float = Field(default=0.0, description="Energy consumed (kWh)")
    carbon_emissions: float = Field(default=0.0, description="Carbon emitted (kg CO2)")
    temperature: Optional[float] = Field(default=None, description="Ambient temperature (°C)")
    humidity: Optional[float] = Field(default=None, description="Relative humidity (%)")
    metadata: ReadingMetadata = Field(default_factory=ReadingMetadata)

    @field_validator('timestamp', mode='before')
    @classmethod
    def parse_timestamp_string(cls, v: Any) -> Any:
        return parse_timestamp(v)

    @field_validator('timestamp')
    @classmethod
    def timestamp_to_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @field_validator('building_id')
    @classmethod
    def validate_building_id(cls, v: str) -> str:
        """Reject missing building ids."""
        if not v or not v.strip():
            raise ValueError("Building ID is required")
        return v

    @field_validator('device_id')
    @classmethod
    def validate_device_id(cls, v: str) -> str:
        """Reject missing device ids."""
        if not v or not v.strip():
            raise ValueError("Device ID is required")
        return v

    @field_validator('energy_consumption')
    @classmethod
    def validate_energy(cls, v: float) -> float:
        """Energy must be a finite, non-negative number."""
        if not math.isfinite(v):
            raise ValueError("Energy consumption must be a finite number")
        if v < 0:
            raise ValueError("Energy consumption cannot be negative")
        return v

    @field_validator('carbon_emissions')
    @classmethod
    def validate_emissions(cls, v: float) -> float:
        """Emissions must be a finite, non-negative number."""
        if not math.isfinite(v):
            raise ValueError("Carbon emissions must be a finite number")
        if v < 0:
            raise ValueError("Carbon emissions cannot be negative")
        return v

    @property
    def building_name(self) -> str:
        return self.metadata.building_name or self.building_id

    @property
    def building_type(self) -> str:
        return self.metadata.building_type or self.building_id

    @property
    def device_type(self) -> str:
        return self.metadata.device_type or self.device_id


class ReadingFilter(CamelModel):
    """
    Conjunctive filter for repository queries.
    The date range is inclusive on both ends.
    """
    building_id: Optional[str] = Field(default=None, description="Only readings of this building")
    device_id: Optional[str] = Field(default=None, description="Only readings of this device")
    start_date: Optional[datetime] = Field(default=None, description="Earliest timestamp (inclusive)")
    end_date: Optional[datetime] = Field(default=None, description="Latest timestamp (inclusive)")
    min_energy: Optional[float] = Field(default=None, description="Minimum energy consumption")
    min_emissions: Optional[float] = Field(default=None, description="Minimum carbon emissions")

    @field_validator('start_date', 'end_date', mode='before')
    @classmethod
    def parse_date_strings(cls, v: Any) -> Any:
        return parse_timestamp(v)

    @field_validator('start_date', 'end_date')
    @classmethod
    def dates_to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v is not None else None

    @model_validator(mode='after')
    def end_not_before_start(self) -> 'ReadingFilter':
        """Validate that end_date is not before start_date."""
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    def matches(self, reading: Reading) -> bool:
        """Check whether a reading satisfies every populated criterion."""
        if self.building_id is not None and reading.building_id != self.building_id:
            return False
        if self.device_id is not None and reading.device_id != self.device_id:
            return False
        if self.start_date is not None and reading.timestamp < self.start_date:
            return False
        if self.end_date is not None and reading.timestamp > self.end_date:
            return False
        if self.min_energy is not None and reading.energy_consumption < self.min_energy:
            return False
        if self.min_emissions is not None and reading.carbon_emissions < self.min_emissions:
            return False
        return True


class ReadingPage(CamelModel):
    """One page of readings plus pagination metadata."""
    data: List[Reading]
    total: int = Field(description="Total number of matching readings")
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    pages: int = Field(ge=0)


FRAME_COLUMNS = [
    'id',
    'timestamp',
    'building_id',
    'device_id',
    'building_name',
    'device_type',
    'energy_consumption',
    'carbon_emissions',
]


def readings_to_frame(readings: Sequence[Reading]) -> pd.DataFrame:
    """
    Convert readings to a DataFrame in input order.

    building_name and device_type hold the raw metadata values (None when
    absent) so callers can apply their own fallbacks.

    Returns:
        DataFrame with FRAME_COLUMNS; timestamps are tz-aware UTC
    """
    frame = pd.DataFrame(
        [
            {
                'id': r.id,
                'timestamp': r.timestamp,
                'building_id': r.building_id,
                'device_id': r.device_id,
                'building_name': r.metadata.building_name,
                'device_type': r.metadata.device_type,
                'energy_consumption': r.energy_consumption,
                'carbon_emissions': r.carbon_emissions,
            }
            for r in readings
        ],
        columns=FRAME_COLUMNS
    )
    frame['timestamp'] = pd.to_datetime(frame['timestamp'], utc=True)
    frame['energy_consumption'] = frame['energy_consumption'].astype(float)
    frame['carbon_emissions'] = frame['carbon_emissions'].astype(float)
    return frame


def first_value(series: pd.Series) -> Any:
    """First value of a group, nulls included (pandas 'first' skips them)."""
    return series.iloc[0]


def text_or(value: Any, fallback: str) -> str:
    """value when it is a non-empty string, else fallback."""
    return value if isinstance(value, str) and value else fallback
