"""Factories for building test data."""

from datetime import datetime, timedelta, timezone

from vinted_alerts.components.notification_dispatcher import LogNotificationSink
from vinted_alerts.models.alert import Alert
from vinted_alerts.models.listing import Listing
from vinted_alerts.models.match import MatchRecord


class FakeClock:
    """Deterministic clock that only moves when told to."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds=1):
        self.now += timedelta(seconds=seconds)
        return self.now


class RecordingNotificationSink(LogNotificationSink):
    """Log sink that also keeps what it delivered."""

    def __init__(self):
        super().__init__()
        self.delivered = []

    def _deliver(self, notification):
        super()._deliver(notification)
        self.delivered.append(notification)


def make_listing(listing_id="1", title="Levi's 501 Jeans", price=35.0, **kwargs):
    """Build a Listing with sensible defaults."""
    return Listing(
        id=listing_id,
        title=title,
        brand=kwargs.pop("brand", "Levi's"),
        size=kwargs.pop("size", "M"),
        price=price,
        currency=kwargs.pop("currency", "EUR"),
        condition=kwargs.pop("condition", "Good"),
        country=kwargs.pop("country", "DE"),
        created_at=kwargs.pop(
            "created_at", datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        ),
        url=kwargs.pop("url", f"https://www.vinted.de/items/{listing_id}"),
    )


def make_alert(alert_id="a_1", name="", **kwargs):
    """Build an Alert with sensible defaults."""
    return Alert(
        id=alert_id,
        name=name,
        created_at=kwargs.pop(
            "created_at", datetime(2024, 1, 1, 9, 0, 0, tzinfo=timezone.utc)
        ),
        term=kwargs.pop("term", ""),
        brand=kwargs.pop("brand", ""),
        size=kwargs.pop("size", ""),
        condition=kwargs.pop("condition", ""),
        max_price=kwargs.pop("max_price", None),
    )


def make_record(listing_id="1", price=35.0, seen_at=None, names=None, **kwargs):
    """Build a MatchRecord for a single listing."""
    names = names or ["jeans"]
    return MatchRecord(
        listing=make_listing(listing_id, price=price, **kwargs),
        seen_at=seen_at or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc),
        matched_alert_ids=[f"a_{i}" for i in range(len(names))],
        matched_alert_names=list(names),
    )


