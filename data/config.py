"""
Configuration management for the carbon monitoring modules.
Handles loading and validation of settings from YAML files.
"""

import logging
import yaml
from pathlib import Path
from typing import Dict, Literal, Optional
from pydantic import BaseModel, Field, field_validator


class StorageSettings(BaseModel):
    """Reading storage settings."""
    type: Literal['memory', 'file'] = Field(default='memory', description="Storage backend")
    file_path: str = Field(default='./data/carbon-data.json', description="JSON file used by the file backend")


class APISettings(BaseModel):
    """Monitoring API connection settings."""
    base_url: str = Field(default='http://localhost:3000/api/carbon', description="Base URL of the carbon data resource")
    timeout: int = Field(default=30, gt=0, description="Request timeout in seconds")
    max_retries: int = Field(default=3, ge=1, description="Maximum number of attempts per request")


class AnalyticsSettings(BaseModel):
    """Default parameters for the analytics tools."""
    anomaly_threshold: float = Field(default=2.0, gt=0, description="Z-score threshold for anomalies")
    trend_interval: Literal['hour', 'day', 'week', 'month'] = Field(default='day')
    forecast_periods: int = Field(default=7, ge=0, description="Number of periods to forecast")
    forecast_interval: Literal['hour', 'day', 'week', 'month'] = Field(default='day')


DEMO_BUILDING_NAMES = {
    'B-101': 'City Hall',
    'B-102': 'Community Center',
    'B-103': 'Public Library',
    'B-104': 'Police Station',
    'B-105': 'Fire Station',
}


class ReportingSettings(BaseModel):
    """Report generation settings."""
    building_names: Dict[str, str] = Field(
        default_factory=lambda: dict(DEMO_BUILDING_NAMES),
        description="Fallback names for buildings whose readings carry no buildingName"
    )
    high_emission_threshold: float = Field(default=100.0, ge=0, description="Building emissions (kg CO2) flagged in reports")
    device_share_threshold: float = Field(default=0.4, gt=0, le=1, description="Share of building emissions flagged per device")


class LoggingSettings(BaseModel):
    """Logging configuration settings."""
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    file: Optional[str] = Field(default=None)

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate logging level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v_upper


class DataConfig(BaseModel):
    """Complete configuration."""
    storage: StorageSettings = Field(default_factory=StorageSettings)
    api: APISettings = Field(default_factory=APISettings)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)
    reporting: ReportingSettings = Field(default_factory=ReportingSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> 'DataConfig':
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            DataConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, 'r') as f:
                config_data = yaml.safe_load(f)

            if config_data is None:
                config_data = {}

            return cls(**config_data)

        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file: {e}")
        except Exception as e:
            raise ValueError(f"Error loading configuration: {e}")

    def to_dict(self) -> dict:
        """Convert configuration to dictionary."""
        return self.model_dump()

    def save_yaml(self, config_path: str | Path) -> None:
        """
        Save configuration to YAML file.

        Args:
            config_path: Path where to save configuration
        """
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)


def load_config(config_path: Optional[str | Path] = None) -> DataConfig:
    """
    Load configuration from file or return defaults.

    Args:
        config_path: Optional path to config file

    Returns:
        DataConfig instance
    """
    if config_path is None:
        # Try to find config in common locations
        possible_paths = [
            Path('carbon_config.yaml'),
            Path('config/carbon_config.yaml'),
            Path('../config/carbon_config.yaml'),
        ]

        for path in possible_paths:
            if path.exists():
                return DataConfig.from_yaml(path)

        return DataConfig()

    return DataConfig.from_yaml(config_path)


def setup_logging(settings: Optional[LoggingSettings] = None) -> None:
    """
    Configure the root logger from LoggingSettings.

    Args:
        settings: Logging settings (defaults when None)
    """
    settings = settings or LoggingSettings()

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.file:
        log_path = Path(settings.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding='utf-8'))

    logging.basicConfig(
        level=settings.level,
        format=settings.format,
        handlers=handlers,
        force=True
    )
