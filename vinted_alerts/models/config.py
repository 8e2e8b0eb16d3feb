"""
Configuration models for the system.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional
from urllib.parse import urlparse

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@dataclass
class FetcherConfig:
    """Configuration for the listing fetcher."""

    base_url: str = "https://www.vinted.de"
    default_query: str = "jacke"
    per_page: int = 12
    timeout: int = 30
    max_retries: int = 3
    fallback_to_mock: bool = True

    def validate(self) -> bool:
        """Validate fetcher configuration."""
        parsed_url = urlparse(self.base_url or "")
        if not parsed_url.scheme or not parsed_url.netloc:
            raise ValueError(f"Invalid fetcher base URL: {self.base_url}")

        if parsed_url.scheme not in ["http", "https"]:
            raise ValueError(f"Fetcher base URL must use HTTP or HTTPS: {self.base_url}")

        if not self.default_query or not self.default_query.strip():
            raise ValueError("Default query cannot be empty")

        if not isinstance(self.per_page, int) or not (1 <= self.per_page <= 100):
            raise ValueError("per_page must be an integer between 1 and 100")

        if not isinstance(self.timeout, int) or self.timeout <= 0:
            raise ValueError("Fetcher timeout must be a positive integer")

        if not isinstance(self.max_retries, int) or self.max_retries < 0:
            raise ValueError("max_retries cannot be negative")

        return True


@dataclass
class SchedulerConfig:
    """Configuration for the polling scheduler."""

    polling_interval: float = 10

    def validate(self) -> bool:
        """Validate scheduler configuration."""
        if isinstance(self.polling_interval, bool) or not isinstance(
            self.polling_interval, (int, float)
        ):
            raise ValueError("Polling interval must be a number of seconds")

        if self.polling_interval < 1:
            raise ValueError("Polling interval must be at least 1 second")

        return True


@dataclass
class StorageConfig:
    """Configuration for local state persistence."""

    directory: str = "data"

    def validate(self) -> bool:
        """Validate storage configuration."""
        if not self.directory or not str(self.directory).strip():
            raise ValueError("Storage directory cannot be empty")
        return True


@dataclass
class NotificationConfig:
    """Configuration for match notifications."""

    enabled: bool = False
    type: str = "log"  # "log" or "telegram"
    telegram: Optional[Dict[str, str]] = None

    def validate(self) -> bool:
        """Validate notification configuration."""
        valid_types = ["log", "telegram"]
        if self.type not in valid_types:
            raise ValueError(f"Notification type must be one of: {valid_types}")

        if self.type == "telegram":
            if not self.telegram:
                raise ValueError(
                    "Telegram configuration required when type is 'telegram'"
                )

            required_keys = ["bot_token", "chat_id"]
            for key in required_keys:
                if key not in self.telegram or not self.telegram[key]:
                    raise ValueError(f"Telegram configuration must include '{key}'")

        return True


@dataclass
class LoggingConfig:
    """Configuration for logging output."""

    level: str = "INFO"
    log_dir: Optional[str] = None

    def validate(self) -> bool:
        """Validate logging configuration."""
        if not isinstance(self.level, str) or self.level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"Log level must be one of: {VALID_LOG_LEVELS}")
        return True


@dataclass
class Configuration:
    """System configuration."""

    fetcher: FetcherConfig = field(default_factory=FetcherConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> bool:
        """Validate system configuration."""
        self.fetcher.validate()
        self.scheduler.validate()
        self.storage.validate()
        self.notifications.validate()
        self.logging.validate()
        return True
