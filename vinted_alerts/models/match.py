"""
Match record models.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Sequence

from .alert import Alert
from .listing import Listing, format_timestamp, parse_timestamp, pick


class SortMode(Enum):
    """Sort projections offered by the listing ledger."""

    NEWEST = "newest"
    PRICE = "price"


@dataclass
class MatchRecord:
    """A listing paired with the alerts it satisfied and its detection time."""

    listing: Listing
    seen_at: datetime
    matched_alert_ids: List[str] = field(default_factory=list)
    matched_alert_names: List[str] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.listing.id

    @classmethod
    def from_match(
        cls, listing: Listing, alerts: Sequence[Alert], seen_at: datetime
    ) -> "MatchRecord":
        """Create a record for a listing and the alerts it matched, in order."""
        return cls(
            listing=listing,
            seen_at=seen_at,
            matched_alert_ids=[alert.id for alert in alerts],
            matched_alert_names=[alert.display_name for alert in alerts],
        )

    def validate(self) -> bool:
        """Validate match record data."""
        self.listing.validate()

        if not isinstance(self.seen_at, datetime):
            raise ValueError("seen_at must be a datetime object")

        if len(self.matched_alert_ids) != len(self.matched_alert_names):
            raise ValueError("matched alert ids and names must have the same length")

        return True

    def to_dict(self) -> Dict[str, Any]:
        data = self.listing.to_dict()
        data.update(
            {
                "matched_alert_ids": list(self.matched_alert_ids),
                "matched_alert_names": list(self.matched_alert_names),
                "seen_at": format_timestamp(self.seen_at),
            }
        )
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MatchRecord":
        """Build a record from its flat stored form."""
        if pick(data, "id") in (None, ""):
            raise ValueError("Stored match has no listing id")

        seen_at = parse_timestamp(pick(data, "seen_at", "seenAt"))
        if seen_at is None:
            raise ValueError("Stored match has no seen_at timestamp")

        return cls(
            listing=Listing.from_dict(data),
            seen_at=seen_at,
            matched_alert_ids=[
                str(alert_id)
                for alert_id in pick(
                    data, "matched_alert_ids", "matchedAlertIds", default=[]
                )
            ],
            matched_alert_names=list(
                pick(data, "matched_alert_names", "matchedAlertNames", default=[])
            ),
        )
