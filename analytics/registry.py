"""
Registry for managing analytics tools.
"""

from typing import Optional, Dict, List
from .base import AnalyticsTool
from .statistics import StatisticsCalculator
from .anomalies import AnomalyDetector
from .intensity import IntensityCalculator
from .trends import TrendAnalyzer
from .forecast import Forecaster
from .recommendations import RecommendationEngine


class ToolRegistry:
    """Central registry for analytics tools."""

    def __init__(self):
        self._tools: Dict[str, AnalyticsTool] = {}
        self._initialize_tools()

    def _initialize_tools(self):
        """Register default tools."""
        trend_analyzer = TrendAnalyzer()
        intensity_calculator = IntensityCalculator()
        anomaly_detector = AnomalyDetector()

        self.register(StatisticsCalculator())
        self.register(anomaly_detector)
        self.register(intensity_calculator)
        self.register(trend_analyzer)
        self.register(Forecaster(trend_analyzer))
        self.register(RecommendationEngine(intensity_calculator, trend_analyzer, anomaly_detector))

    def register(self, tool: AnalyticsTool) -> None:
        """
        Register a tool under its name, replacing any tool of the same name.

        Args:
            tool: AnalyticsTool instance to register
        """
        self._tools[tool.name] = tool

    def get_tool(self, name: str) -> Optional[AnalyticsTool]:
        """
        Get a tool by name.

        Args:
            name: Tool name

        Returns:
            AnalyticsTool instance or None
        """
        return self._tools.get(name)

    def list_tools(self) -> List[Dict]:
        """
        List registered tools.

        Returns:
            List of tool metadata
        """
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.parameters
            }
            for tool in self._tools.values()
        ]

    def get_tool_by_operation(self, operation: str) -> Optional[AnalyticsTool]:
        """
        Map operation aliases to tools, e.g. "summary" -> statistics.

        Args:
            operation: Operation name or alias

        Returns:
            AnalyticsTool instance or None
        """
        operation_map = {
            "summary": "statistics",
            "statistics": "statistics",
            "anomalies": "anomalies",
            "outliers": "anomalies",
            "intensity": "carbon_intensity",
            "carbon_intensity": "carbon_intensity",
            "trend": "trends",
            "trends": "trends",
            "forecast": "forecast",
            "prediction": "forecast",
            "recommendations": "recommendations",
            "advice": "recommendations"
        }

        tool_name = operation_map.get(operation)
        if tool_name:
            return self.get_tool(tool_name)
        return None


# Global registry instance
_registry: Optional[ToolRegistry] = None


def get_registry() -> ToolRegistry:
    """Get global registry instance."""
    global _registry
    if _registry is None:
        _registry = ToolRegistry()
    return _registry
