"""In-memory store of alert definitions."""

import logging
import uuid
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Set

from ..models.alert import Alert, AlertDefinition, derive_alert_name
from ..models.listing import utc_now

logger = logging.getLogger(__name__)

AlertsSubscriber = Callable[[List[Alert]], None]


def generate_alert_id() -> str:
    return f"a_{uuid.uuid4().hex[:12]}"


class AlertStore:
    """Ordered collection of alerts with mutation notifications."""

    def __init__(
        self,
        id_factory: Callable[[], str] = generate_alert_id,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the alert store.

        Args:
            id_factory: Produces candidate alert ids
            clock: Returns the creation timestamp for new alerts
        """
        self._id_factory = id_factory
        self._clock = clock
        self._alerts: Dict[str, Alert] = {}
        self._issued_ids: Set[str] = set()
        self._subscribers: List[AlertsSubscriber] = []

    def add(self, definition: AlertDefinition) -> Alert:
        """Create an alert from a definition and append it to the store."""
        alert = Alert(
            id=self._next_id(),
            name=derive_alert_name(definition.name, definition.term, definition.brand),
            created_at=self._clock(),
            term=definition.term or "",
            brand=definition.brand or "",
            size=definition.size or "",
            condition=definition.condition or "",
            max_price=definition.max_price,
        )
        self._alerts[alert.id] = alert
        logger.info(f"Added alert {alert.id} ({alert.name})")
        self._notify()
        return alert

    def remove(self, alert_id: str) -> bool:
        """Remove an alert; unknown ids are ignored.

        Returns:
            True if an alert was removed
        """
        if self._alerts.pop(alert_id, None) is None:
            logger.debug(f"Alert {alert_id} not found, nothing to remove")
            return False

        logger.info(f"Removed alert {alert_id}")
        self._notify()
        return True

    def list(self) -> List[Alert]:
        """Snapshot of all alerts in insertion order."""
        return list(self._alerts.values())

    def get(self, alert_id: str) -> Optional[Alert]:
        return self._alerts.get(alert_id)

    def load(self, alerts: Iterable[Alert]) -> None:
        """Replace the contents with previously persisted alerts.

        Subscribers are not notified; the alerts already come from storage.
        """
        self._alerts = {}
        for alert in alerts:
            self._alerts[alert.id] = alert
            self._issued_ids.add(alert.id)
        logger.debug(f"Loaded {len(self._alerts)} alerts")

    def subscribe(self, callback: AlertsSubscriber) -> Callable[[], None]:
        """Register a mutation subscriber and return its unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _next_id(self) -> str:
        alert_id = self._id_factory()
        while alert_id in self._issued_ids:
            alert_id = self._id_factory()
        self._issued_ids.add(alert_id)
        return alert_id

    def _notify(self) -> None:
        snapshot = self.list()
        for subscriber in list(self._subscribers):
            try:
                subscriber(snapshot)
            except Exception as e:
                logger.error(f"Alert subscriber failed: {e}", exc_info=True)

    def __len__(self) -> int:
        return len(self._alerts)

    def __contains__(self, alert_id: object) -> bool:
        return alert_id in self._alerts
