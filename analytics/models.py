"""
Result models produced by the analytics tools.
All models serialize with camelCase keys.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import ConfigDict, Field

from data.models import CamelModel


class TrendInterval(str, Enum):
    """Supported bucket sizes for trend analysis."""
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class TrendStrength(str, Enum):
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"


class Confidence(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RecommendationCategory(str, Enum):
    """Kinds of advisory produced by the recommendation rules."""
    GENERAL = "general"
    EFFICIENCY = "efficiency"
    DEVICE = "device"
    TREND = "trend"
    ANOMALY = "anomaly"
    BUILDING = "building"
    TIMING = "timing"


class DateRange(CamelModel):
    start: Optional[datetime] = None
    end: Optional[datetime] = None


class Statistics(CamelModel):
    """Summary statistics over a reading set (values rounded to 2 decimals)."""
    count: int = 0
    emissions_total: float = 0.0
    emissions_avg: float = 0.0
    emissions_min: float = 0.0
    emissions_max: float = 0.0
    energy_total: float = 0.0
    energy_avg: float = 0.0
    energy_min: float = 0.0
    energy_max: float = 0.0
    date_range: DateRange = Field(default_factory=DateRange)


class Anomaly(CamelModel):
    """A reading whose emissions or energy lie outside the z-score band."""
    id: str
    timestamp: datetime
    building_id: str
    device_id: str
    carbon_emissions: float
    energy_consumption: float
    emissions_z_score: float
    energy_z_score: float
    reason: str


class DeviceIntensity(CamelModel):
    id: str
    type: str
    total_emissions: float
    total_energy: float
    intensity: float


class BuildingIntensity(CamelModel):
    id: str
    name: str
    total_emissions: float
    total_energy: float
    intensity: float
    devices: List[DeviceIntensity] = Field(default_factory=list)


class IntensityResult(CamelModel):
    """Carbon intensity per building, highest first, plus the global average."""
    buildings: List[BuildingIntensity] = Field(default_factory=list)
    average: float = 0.0


class TrendPoint(CamelModel):
    """Aggregates for one interval bucket and its regression fit."""
    interval: str
    total_emissions: float
    total_energy: float
    average_emissions: float
    average_energy: float
    count: int
    predicted: float = 0.0
    deviation: float = 0.0


class TrendAnalysis(CamelModel):
    """Linear regression of average emissions against bucket index."""
    slope: float
    y_intercept: float
    r_squared: float
    direction: TrendDirection
    strength: TrendStrength
    is_significant: bool
    interpretation: str


class TrendResult(CamelModel):
    trends: List[TrendPoint] = Field(default_factory=list)
    analysis: Optional[TrendAnalysis] = None
    has_significant_trend: bool = False


class ForecastPoint(CamelModel):
    interval: str
    forecast: float


class ForecastResult(CamelModel):
    historical: List[TrendPoint] = Field(default_factory=list)
    forecast: List[ForecastPoint] = Field(default_factory=list)
    confidence: Confidence = Confidence.LOW
    slope: Optional[float] = None
    message: str


class Recommendation(CamelModel):
    """Rule-based advisory text."""
    model_config = ConfigDict(frozen=True)

    category: RecommendationCategory
    priority: Priority
    text: str
    target: Optional[str] = None
