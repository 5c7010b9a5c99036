"""
Data module for carbon emission readings.

This module provides the reading model, the persistence collaborator the
analytics operate on, a client for the monitoring REST API, and a
simulator that produces input records.

Architecture:
- Models: Pydantic models for readings and queries
- Repository: In-memory/JSON-file reading store with conjunctive filters
- API Client: Requests-based client for the /api/carbon resource
- Simulator: Seeded generator of demo readings
- Config: YAML-based configuration and logging setup
"""

from .models import (
    Reading,
    ReadingMetadata,
    ReadingFilter,
    ReadingPage,
    readings_to_frame
)

from .api_client import (
    CarbonAPIClient,
    CarbonAPIError
)

from .repository import (
    CarbonDataRepository,
    RepositoryError
)

from .simulator import ReadingSimulator

from .config import (
    DataConfig,
    StorageSettings,
    APISettings,
    AnalyticsSettings,
    ReportingSettings,
    LoggingSettings,
    load_config,
    setup_logging
)

__all__ = [
    # Main repository
    'CarbonDataRepository',

    # API Client
    'CarbonAPIClient',

    # Models
    'Reading',
    'ReadingMetadata',
    'ReadingFilter',
    'ReadingPage',
    'readings_to_frame',

    # Simulation
    'ReadingSimulator',

    # Configuration
    'DataConfig',
    'StorageSettings',
    'APISettings',
    'AnalyticsSettings',
    'ReportingSettings',
    'LoggingSettings',
    'load_config',
    'setup_logging',

    # Errors
    'CarbonAPIError',
    'RepositoryError',
]

__version__ = '0.1.0'
__description__ = 'Data access layer for carbon emission monitoring'
