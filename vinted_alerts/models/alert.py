"""
Alert definition models.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from .listing import format_timestamp, parse_timestamp, pick

UNNAMED_ALERT = "Unnamed"


def derive_alert_name(
    name: Optional[str], term: Optional[str], brand: Optional[str]
) -> str:
    """Display label: explicit name, then term, then brand, then a placeholder."""
    return name or term or brand or UNNAMED_ALERT


@dataclass
class AlertDefinition:
    """User-supplied alert criteria before an id is assigned."""

    name: str = ""
    term: str = ""
    brand: str = ""
    size: str = ""
    condition: str = ""
    max_price: Optional[float] = None

    def validate(self) -> bool:
        """Validate the definition the way the alert form does."""
        if not (self.term or "").strip() and not (self.brand or "").strip():
            raise ValueError("Alert needs at least a search term or a brand")

        if self.max_price is not None:
            if not isinstance(self.max_price, (int, float)):
                raise ValueError("max_price must be a number")
            if self.max_price < 0:
                raise ValueError("max_price cannot be negative")

        return True


@dataclass
class Alert:
    """A stored alert: criteria describing listings of interest."""

    id: str
    name: str
    created_at: datetime
    term: str = ""
    brand: str = ""
    size: str = ""
    condition: str = ""
    max_price: Optional[Any] = None

    @property
    def display_name(self) -> str:
        return derive_alert_name(self.name, self.term, None)

    def validate(self) -> bool:
        """Validate alert data."""
        if not self.id or not str(self.id).strip():
            raise ValueError("Alert ID cannot be empty")

        if not isinstance(self.name, str):
            raise ValueError("Alert name must be a string")

        if not isinstance(self.created_at, datetime):
            raise ValueError("created_at must be a datetime object")

        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "term": self.term,
            "brand": self.brand,
            "size": self.size,
            "condition": self.condition,
            "max_price": self.max_price,
            "created_at": format_timestamp(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Alert":
        """Build an alert from stored data (snake_case or camelCase keys)."""
        alert_id = pick(data, "id")
        if alert_id is None:
            raise ValueError("Stored alert has no id")

        created_at = parse_timestamp(pick(data, "created_at", "createdAt"))
        if created_at is None:
            raise ValueError(f"Stored alert {alert_id} has no creation time")

        return cls(
            id=str(alert_id),
            name=pick(data, "name", default=""),
            created_at=created_at,
            term=pick(data, "term", default=""),
            brand=pick(data, "brand", default=""),
            size=pick(data, "size", default=""),
            condition=pick(data, "condition", default=""),
            max_price=pick(data, "max_price", "maxPrice"),
        )
