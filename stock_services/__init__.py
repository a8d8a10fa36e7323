"""
stock_services -- Stateful orchestration over the stock-control engines.

Services hold the Clock, the configuration and (for scan sessions) the
only mutable state in the system; engines stay pure.
"""

from stock_services.analytics_service import InventoryAnalyticsService
from stock_services.scan_sessions import (
    InMemoryScanSessionRepository,
    ScanSessionManager,
    ScanSessionRepository,
    SessionStats,
)

__all__ = [
    "InMemoryScanSessionRepository",
    "InventoryAnalyticsService",
    "ScanSessionManager",
    "ScanSessionRepository",
    "SessionStats",
]
