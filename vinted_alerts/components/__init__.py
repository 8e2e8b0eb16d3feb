"""
Core components for the Vinted Alerts system.

This module contains the components that store alerts, match listings,
keep the deduplicated match ledger, schedule polling cycles and deliver
notifications.
"""

from .alert_store import AlertStore
from .listing_fetcher import MockListingGenerator, VintedListingFetcher
from .listing_ledger import ListingLedger
from .matcher import Matcher, evaluate
from .notification_dispatcher import (
    LogNotificationSink,
    NotificationDispatcher,
    TelegramNotificationSink,
)
from .query_view import QueryView, filter_records
from .scheduler import CycleStatus, Scheduler, SchedulerState

__all__ = [
    "AlertStore",
    "Matcher",
    "evaluate",
    "ListingLedger",
    "Scheduler",
    "SchedulerState",
    "CycleStatus",
    "QueryView",
    "filter_records",
    "VintedListingFetcher",
    "MockListingGenerator",
    "NotificationDispatcher",
    "LogNotificationSink",
    "TelegramNotificationSink",
]
