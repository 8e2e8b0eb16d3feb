"""
Notification components for the Vinted Alerts system.

This module turns match records into notifications and delivers them
through permission-gated sinks with retry logic and error handling.
"""

import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..errors import NotificationFailure
from ..interfaces import INotificationSink
from ..models.match import MatchRecord
from ..models.notification import DeliveryResult, Notification, NotificationPermission
from ..utils.error_handling import RetryConfig
from .matcher import safe_number

logger = logging.getLogger(__name__)


def format_price(price) -> str:
    number = safe_number(price)
    if number is None:
        return "n/a"
    if number.is_integer():
        return str(int(number))
    return f"{number:.2f}"


def format_notification(record: MatchRecord) -> Notification:
    """Build the notification announcing a match record."""
    listing = record.listing
    names = ", ".join(record.matched_alert_names)
    return Notification(
        title=f"Match: {listing.title}"[:200],
        body=f"{format_price(listing.price)} {listing.currency} - Alerts: {names}",
        tag=listing.id,
        url=listing.url or "#",
    )


class BaseNotificationSink(ABC):
    """Base class for notification sinks with common retry logic."""

    def __init__(self, max_retries: int = 0, retry_delay: float = 1.0):
        """
        Initialize base sink.

        Args:
            max_retries: Maximum number of retry attempts
            retry_delay: Initial delay between retries in seconds
        """
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.retry_config = RetryConfig(
            max_attempts=max_retries + 1, base_delay=retry_delay, jitter=False
        )

    def show(self, notification: Notification) -> DeliveryResult:
        """
        Deliver a notification with retry logic.

        Args:
            notification: Notification to display

        Returns:
            DeliveryResult: Result of delivery attempt
        """
        last_error = None

        for attempt in range(self.retry_config.max_attempts):
            try:
                self._deliver(notification)
                result = DeliveryResult(
                    success=True, delivery_time=datetime.now(), error_message=None
                )
                result.validate()
                return result

            except Exception as e:
                last_error = str(e)
                logger.warning(f"Delivery attempt {attempt + 1} failed: {last_error}")

                if attempt < self.max_retries:
                    sleep_time = self.retry_config.delay_for(attempt)
                    logger.info(f"Retrying in {sleep_time:.1f} seconds...")
                    time.sleep(sleep_time)

        error_msg = (
            f"Failed after {self.max_retries + 1} attempts. Last error: {last_error}"
        )
        logger.error(error_msg)

        result = DeliveryResult(
            success=False, delivery_time=datetime.now(), error_message=error_msg[:500]
        )
        result.validate()
        return result

    @abstractmethod
    def permission(self) -> NotificationPermission:
        """Current permission state."""

    def request_permission(self) -> NotificationPermission:
        return self.permission()

    @abstractmethod
    def _deliver(self, notification: Notification) -> None:
        """
        Sink-specific delivery.

        Raises:
            Exception: If delivery fails
        """


class LogNotificationSink(BaseNotificationSink):
    """Writes notifications to the log; always permitted."""

    def __init__(self):
        super().__init__(max_retries=0)

    def permission(self) -> NotificationPermission:
        return NotificationPermission.GRANTED

    def _deliver(self, notification: Notification) -> None:
        notification.validate()
        logger.info(f"{notification.title} | {notification.body} | {notification.url}")


class TelegramNotificationSink(BaseNotificationSink):
    """Telegram Bot API notification sink."""

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        timeout: int = 30,
    ):
        """
        Initialize Telegram sink.

        Args:
            bot_token: Telegram bot token
            chat_id: Target chat ID for messages
            max_retries: Maximum number of retry attempts
            retry_delay: Initial delay between retries in seconds
            timeout: Request timeout in seconds
        """
        super().__init__(max_retries, retry_delay)
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.timeout = timeout
        self.base_url = f"https://api.telegram.org/bot{bot_token}"
        self.session = self._create_session()

    def _create_session(self) -> requests.Session:
        session = requests.Session()

        retry_strategy = Retry(
            total=self.max_retries,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "POST"],
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        return session

    def permission(self) -> NotificationPermission:
        if self.bot_token and self.chat_id:
            return NotificationPermission.GRANTED
        return NotificationPermission.DENIED

    def _deliver(self, notification: Notification) -> None:
        text = f"{notification.title}\n{notification.body}"
        if notification.url and notification.url != "#":
            text += f"\n{notification.url}"

        response = self.session.post(
            f"{self.base_url}/sendMessage",
            json={
                "chat_id": self.chat_id,
                "text": text,
                "disable_web_page_preview": False,
            },
            timeout=self.timeout,
        )
        response.raise_for_status()

        result = response.json()
        if not result.get("ok"):
            raise NotificationFailure(
                f"Telegram API error: {result.get('description', 'Unknown error')}"
            )

        logger.info(f"Notification {notification.tag} sent to Telegram chat {self.chat_id}")


class NotificationDispatcher:
    """Fans match batches out to a notification sink, one per record."""

    def __init__(self, sink: INotificationSink, enabled: bool = False):
        self.sink = sink
        self.enabled = enabled
        self.sent_count = 0
        self.failed_count = 0

    def enable(self) -> bool:
        """
        Opt in to notifications, asking the sink for permission if needed.

        Returns:
            True if notifications are now enabled
        """
        permission = self.sink.permission()
        if permission is NotificationPermission.DEFAULT:
            permission = self.sink.request_permission()

        self.enabled = permission is NotificationPermission.GRANTED
        if not self.enabled:
            logger.warning(f"Notification permission is {permission.value}")
        return self.enabled

    def disable(self) -> None:
        self.enabled = False

    def dispatch(self, records: Sequence[MatchRecord]) -> List[DeliveryResult]:
        """
        Show one notification per match record.

        Nothing is shown while disabled or when the sink denies permission.
        """
        if not self.enabled or not records:
            return []

        permission = self.sink.permission()
        if permission is NotificationPermission.DEFAULT:
            permission = self.sink.request_permission()
        if permission is not NotificationPermission.GRANTED:
            logger.debug(f"Skipping {len(records)} notifications: {permission.value}")
            return []

        results = []
        for record in records:
            result = self.sink.show(format_notification(record))
            if result.success:
                self.sent_count += 1
            else:
                self.failed_count += 1
            results.append(result)
        return results


def create_notification_sink(
    sink_type: str, telegram: Optional[dict] = None
) -> INotificationSink:
    """
    Create a sink for the configured notification type.

    Raises:
        ValueError: If the type is unknown
    """
    sink_type = sink_type.lower()

    if sink_type == "log":
        return LogNotificationSink()

    if sink_type == "telegram":
        telegram = telegram or {}
        return TelegramNotificationSink(
            bot_token=telegram.get("bot_token", ""),
            chat_id=str(telegram.get("chat_id", "")),
        )

    raise ValueError(f"Unsupported notification type: {sink_type}")
