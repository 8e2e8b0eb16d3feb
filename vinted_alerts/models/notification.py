"""
Notification and delivery models.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .listing import pick


class NotificationPermission(Enum):
    """Permission states of a notification sink."""

    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


@dataclass
class Notification:
    """Notification ready for display by a sink."""

    title: str
    body: str
    tag: str
    url: str = "#"

    def validate(self) -> bool:
        """Validate notification data."""
        if not isinstance(self.title, str):
            raise ValueError("title must be a string")

        if not self.title.strip():
            raise ValueError("title cannot be empty")

        if len(self.title) > 200:
            raise ValueError("title too long (max 200 characters)")

        if not isinstance(self.body, str):
            raise ValueError("body must be a string")

        if len(self.body) > 4000:
            raise ValueError("body too long (max 4000 characters)")

        if not isinstance(self.tag, str) or not self.tag:
            raise ValueError("tag must be a non-empty string")

        return True


@dataclass
class DeliveryResult:
    """Result of a notification delivery attempt."""

    success: bool
    delivery_time: datetime
    error_message: Optional[str]

    def validate(self) -> bool:
        """Validate delivery result data."""
        if not isinstance(self.success, bool):
            raise ValueError("success must be a boolean")

        if not isinstance(self.delivery_time, datetime):
            raise ValueError("delivery_time must be a datetime object")

        if self.error_message is not None:
            if not isinstance(self.error_message, str):
                raise ValueError("error_message must be a string or None")

            if len(self.error_message) > 500:
                raise ValueError("error_message too long (max 500 characters)")

        if not self.success and not self.error_message:
            raise ValueError("error_message should be provided when success is False")

        return True


@dataclass
class Settings:
    """User settings persisted next to alerts and matches."""

    notifications_enabled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"notifications_enabled": self.notifications_enabled}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Settings":
        return cls(
            notifications_enabled=bool(
                pick(data, "notifications_enabled", "notificationsEnabled", default=False)
            )
        )
