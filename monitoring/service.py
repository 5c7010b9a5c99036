"""
Carbon monitoring service.
Routes requests to the repository snapshot, the analytics tools and the
report builder.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from analytics import (
    AnalyticsResult,
    AnalyticsTool,
    Anomaly,
    ForecastResult,
    IntensityResult,
    Recommendation,
    Statistics,
    ToolRegistry,
    TrendResult
)
from data import (
    CarbonDataRepository,
    DataConfig,
    Reading,
    ReadingFilter,
    ReadingSimulator,
    load_config
)
from reporting import EXPORT_FORMATS, Report, ReportBuilder, to_csv, to_json


logger = logging.getLogger(__name__)


class MonitoringError(Exception):
    """Raised for requests the service cannot route."""
    pass


class CarbonMonitoringService:
    """
    Entry point for the API layer.

    Every call takes a fresh snapshot of the repository, so analytics and
    reports never see readings change underneath them.
    """

    def __init__(
        self,
        repository: Optional[CarbonDataRepository] = None,
        config: Optional[DataConfig] = None,
        registry: Optional[ToolRegistry] = None,
        report_builder: Optional[ReportBuilder] = None
    ):
        """
        Initialize service.

        Args:
            repository: Reading store (in-memory when None)
            config: Configuration (defaults when None)
            registry: Analytics tool registry
            report_builder: Report builder (configured from config.reporting when None)
        """
        self.config = config or DataConfig()
        self.repository = repository or CarbonDataRepository(config=self.config)
        self.registry = registry or ToolRegistry()
        self.report_builder = report_builder or ReportBuilder(self.config.reporting)

    @classmethod
    def from_config(cls, config_path: Optional[str | Path] = None) -> 'CarbonMonitoringService':
        """
        Create service from configuration file.

        Args:
            config_path: Path to configuration file

        Returns:
            Configured CarbonMonitoringService instance
        """
        config = load_config(config_path)
        return cls(repository=CarbonDataRepository(config=config), config=config)

    # Ingestion

    def ingest(self, items: Iterable[Reading | Dict[str, Any]]) -> List[Reading]:
        """Validate and store readings; nothing is stored if any item is invalid."""
        return self.repository.bulk_create(items)

    def simulate(self, count: int = 10, seed: Optional[int] = None, **kwargs) -> List[Reading]:
        """
        Generate and store simulated readings.

        Args:
            count: Number of readings
            seed: Random seed for reproducible output
            **kwargs: Passed to ReadingSimulator.generate_bulk (start, step)

        Returns:
            Stored readings
        """
        readings = ReadingSimulator(seed).generate_bulk(count, **kwargs)
        logger.info("Simulated %d readings", len(readings))
        return self.ingest(readings)

    def snapshot(self, reading_filter: Optional[ReadingFilter] = None) -> List[Reading]:
        """Readings matching the filter, in insertion order."""
        return self.repository.query_readings(reading_filter)

    # Analytics

    def list_tools(self) -> List[Dict]:
        return self.registry.list_tools()

    def _tool(self, name: str) -> AnalyticsTool:
        tool = self.registry.get_tool(name) or self.registry.get_tool_by_operation(name)
        if tool is None:
            raise MonitoringError(f"Unknown analytics tool: {name}")
        return tool

    def _default_params(self, tool_name: str) -> Dict[str, Any]:
        settings = self.config.analytics
        defaults = {
            'anomalies': {'threshold': settings.anomaly_threshold},
            'trends': {'interval': settings.trend_interval},
            'forecast': {'periods': settings.forecast_periods, 'interval': settings.forecast_interval},
        }
        return dict(defaults.get(tool_name, {}))

    def run_analysis(
        self,
        tool_name: str,
        reading_filter: Optional[ReadingFilter] = None,
        **params
    ) -> AnalyticsResult:
        """
        Run a registered tool over the filtered snapshot.

        Args:
            tool_name: Tool name or alias (e.g. "statistics", "outliers")
            reading_filter: Optional filter applied before analysis
            **params: Tool parameters; missing ones come from config.analytics

        Returns:
            AnalyticsResult (success=False for invalid parameters)

        Raises:
            MonitoringError: If the tool is unknown
        """
        tool = self._tool(tool_name)
        readings = self.snapshot(reading_filter)
        kwargs = {**self._default_params(tool.name), **params}

        logger.info("Running %s over %d readings", tool.name, len(readings))
        result = tool.execute(readings, **kwargs)

        if not result.success:
            logger.warning("%s failed: %s", tool.name, result.error_message)
        return result

    def statistics(self, reading_filter: Optional[ReadingFilter] = None) -> Statistics:
        return self._tool('statistics').run(self.snapshot(reading_filter))

    def anomalies(
        self,
        reading_filter: Optional[ReadingFilter] = None,
        threshold: Optional[float] = None
    ) -> List[Anomaly]:
        params = self._default_params('anomalies')
        if threshold is not None:
            params['threshold'] = threshold
        return self._tool('anomalies').run(self.snapshot(reading_filter), **params)

    def intensity(self, reading_filter: Optional[ReadingFilter] = None) -> IntensityResult:
        return self._tool('carbon_intensity').run(self.snapshot(reading_filter))

    def trends(
        self,
        reading_filter: Optional[ReadingFilter] = None,
        interval: Optional[str] = None
    ) -> TrendResult:
        params = self._default_params('trends')
        if interval is not None:
            params['interval'] = interval
        return self._tool('trends').run(self.snapshot(reading_filter), **params)

    def forecast(
        self,
        reading_filter: Optional[ReadingFilter] = None,
        periods: Optional[int] = None,
        interval: Optional[str] = None
    ) -> ForecastResult:
        params = self._default_params('forecast')
        if periods is not None:
            params['periods'] = periods
        if interval is not None:
            params['interval'] = interval
        return self._tool('forecast').run(self.snapshot(reading_filter), **params)

    def recommendations(self, reading_filter: Optional[ReadingFilter] = None) -> List[Recommendation]:
        return self._tool('recommendations').run(self.snapshot(reading_filter))

    # Reports

    def _report_readings(self, building_id: Optional[str]) -> List[Reading]:
        return self.snapshot(ReadingFilter(building_id=building_id) if building_id else None)

    def daily_report(self, day: Any = None, building_id: Optional[str] = None) -> Report:
        report = self.report_builder.build_daily(self._report_readings(building_id), day)
        logger.info("Built daily report for %s", report.date)
        return report

    def weekly_report(self, day: Any = None, building_id: Optional[str] = None) -> Report:
        report = self.report_builder.build_weekly(self._report_readings(building_id), day)
        logger.info("Built weekly report for %s to %s", report.start_date, report.end_date)
        return report

    def monthly_report(
        self,
        year: Optional[int] = None,
        month: Optional[int] = None,
        building_id: Optional[str] = None
    ) -> Report:
        report = self.report_builder.build_monthly(self._report_readings(building_id), year, month)
        logger.info("Built monthly report for %d-%02d", report.year, report.month)
        return report

    def export_report(self, report: Report, fmt: str = 'json') -> str:
        """
        Serialize a report.

        Args:
            report: Report to export
            fmt: 'json' or 'csv'

        Returns:
            Serialized report

        Raises:
            MonitoringError: If the format is not supported
        """
        fmt = fmt.lower()
        if fmt not in EXPORT_FORMATS:
            raise MonitoringError(f"Unsupported export format: {fmt}. Must be one of: {list(EXPORT_FORMATS)}")
        return to_csv(report) if fmt == 'csv' else to_json(report)
