"""
Protocol interfaces for the Vinted Alerts system.

This module defines the ports through which the engine reaches the
outside world: the listing source, key-value persistence and the
notification sink. Concrete implementations are injected into the
engine, which keeps it testable without network or disk access.
"""

from typing import List, Optional, Protocol

from .models.listing import Listing
from .models.notification import DeliveryResult, Notification, NotificationPermission


class IListingFetcher(Protocol):
    """Interface for listing sources."""

    def fetch(self, query: str, page: int = 1) -> List[Listing]:
        """Fetch one page of listings for a search query."""
        ...


class IKeyValueStore(Protocol):
    """Interface for string key-value persistence."""

    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the key is absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store a value under a key, replacing any previous value."""
        ...

    def delete(self, key: str) -> None:
        """Remove a key; absent keys are ignored."""
        ...


class INotificationSink(Protocol):
    """Interface for permission-gated notification display."""

    def permission(self) -> NotificationPermission:
        """Current permission state."""
        ...

    def request_permission(self) -> NotificationPermission:
        """Ask for permission and return the resulting state."""
        ...

    def show(self, notification: Notification) -> DeliveryResult:
        """Display a notification."""
        ...
