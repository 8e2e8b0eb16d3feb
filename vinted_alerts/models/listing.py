"""
Listing data models for the Vinted Alerts system.
"""

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from dateutil import parser as date_parser


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO string or datetime into an aware UTC datetime."""
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = date_parser.isoparse(str(value))

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime for storage."""
    return value.isoformat() if value is not None else None


def pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key, accepting snake_case and camelCase names."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


@dataclass
class Listing:
    """A single marketplace item observed from the listing source."""

    id: str
    title: str
    brand: str = ""
    size: Any = ""
    price: Optional[float] = None
    currency: str = "EUR"
    condition: str = ""
    country: str = ""
    created_at: Optional[datetime] = None
    url: str = "#"

    def validate(self) -> bool:
        """Validate the listing data."""
        if self.id is None or not str(self.id).strip():
            raise ValueError("Listing ID cannot be empty")

        if not isinstance(self.title, str):
            raise ValueError("Listing title must be a string")

        if self.created_at is not None and not isinstance(self.created_at, datetime):
            raise ValueError("created_at must be a datetime object")

        if len(self.title) > 500:
            raise ValueError("Listing title too long (max 500 characters)")

        return True

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["created_at"] = format_timestamp(self.created_at)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Listing":
        """Build a listing from stored data, tolerating missing fields."""
        return cls(
            id=str(pick(data, "id", default="")),
            title=pick(data, "title", default=""),
            brand=pick(data, "brand", default=""),
            size=pick(data, "size", default=""),
            price=pick(data, "price"),
            currency=pick(data, "currency", default="EUR"),
            condition=pick(data, "condition", default=""),
            country=pick(data, "country", default=""),
            created_at=parse_timestamp(pick(data, "created_at", "createdAt")),
            url=pick(data, "url", default="#"),
        )
