"""
Service layer for carbon emission monitoring.
"""

from .service import CarbonMonitoringService, MonitoringError

__all__ = [
    'CarbonMonitoringService',
    'MonitoringError',
]
