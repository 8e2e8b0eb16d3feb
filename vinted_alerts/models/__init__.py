"""
Data models for the Vinted Alerts system.

This module contains the data classes used throughout the application
for alerts, listings, match records, notifications and configuration.
"""

from .alert import Alert, AlertDefinition
from .config import (
    Configuration,
    FetcherConfig,
    LoggingConfig,
    NotificationConfig,
    SchedulerConfig,
    StorageConfig,
)
from .listing import Listing
from .match import MatchRecord, SortMode
from .notification import (
    DeliveryResult,
    Notification,
    NotificationPermission,
    Settings,
)

__all__ = [
    "Alert",
    "AlertDefinition",
    "Listing",
    "MatchRecord",
    "SortMode",
    "Notification",
    "NotificationPermission",
    "DeliveryResult",
    "Settings",
    "Configuration",
    "FetcherConfig",
    "SchedulerConfig",
    "StorageConfig",
    "NotificationConfig",
    "LoggingConfig",
]
