"""
Base classes and numeric helpers for analytics tools.
"""

import time
from abc import ABC, abstractmethod
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional, Sequence
from pydantic import BaseModel

from data.models import Reading


class AnalyticsResult(BaseModel):
    """Result from analytics tool execution."""
    value: Any
    unit: Optional[str]
    metadata: dict
    success: bool
    error_message: Optional[str] = None
    execution_time_ms: float


class AnalyticsTool(ABC):
    """
    Abstract base class for analytics tools.
    All tools must define name, description, parameters and implement run().
    Tools are stateless: every call receives its own reading snapshot.
    """

    def __init__(self):
        self.name: str = ""
        self.description: str = ""
        self.parameters: list[str] = []
        self.unit: Optional[str] = None

    @abstractmethod
    def run(self, readings: Sequence[Reading], **kwargs) -> Any:
        """
        Compute the tool's result.

        Args:
            readings: Reading snapshot to analyze
            **kwargs: Tool parameters

        Returns:
            Pydantic model or list of models

        Raises:
            ValueError: If a parameter is invalid
        """
        pass

    def execute(self, readings: Sequence[Reading], **kwargs) -> AnalyticsResult:
        """
        Run the tool and wrap the outcome in an AnalyticsResult.

        Returns:
            AnalyticsResult with the camelCase-serialized value, or
            success=False and the error message for invalid parameters
        """
        start_time = time.perf_counter()

        try:
            value = self.run(readings, **kwargs)
        except ValueError as e:
            return AnalyticsResult(
                value=None,
                unit=None,
                metadata={},
                success=False,
                error_message=str(e),
                execution_time_ms=(time.perf_counter() - start_time) * 1000
            )

        return AnalyticsResult(
            value=to_serializable(value),
            unit=self.unit,
            metadata={
                "tool": self.name,
                "sample_size": len(readings),
                **kwargs
            },
            success=True,
            execution_time_ms=(time.perf_counter() - start_time) * 1000
        )


def to_serializable(value: Any) -> Any:
    """Dump models (or lists of models) to JSON-ready camelCase structures."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode='json', by_alias=True)
    if isinstance(value, list):
        return [to_serializable(item) for item in value]
    return value


def round_to(value: float, places: int = 2) -> float:
    """
    Round half away from zero on the exact binary value.

    Matches the usual "toFixed" display rounding rather than Python's
    round-half-even.
    """
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(float(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def safe_divide(numerator: float, denominator: float) -> float:
    """Divide, resolving a zero denominator to 0."""
    if denominator == 0:
        return 0.0
    return numerator / denominator


def format_number(value: float) -> str:
    """Shortest text form of a number: 100.0 -> '100', 12.5 -> '12.5'."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
