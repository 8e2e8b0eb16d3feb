"""
Configuration management system for Vinted Alerts.
"""

import json
import os
from typing import Any, Dict, Optional

import yaml

from ..models.config import (
    Configuration,
    FetcherConfig,
    LoggingConfig,
    NotificationConfig,
    SchedulerConfig,
    StorageConfig,
)

DEFAULT_CONFIG_PATHS = [
    "config/config.yaml",
    "config/config.yml",
    "config/config.json",
    "config.yaml",
    "config.yml",
    "config.json",
]


class ConfigurationManager:
    """Manages loading, validation, and reloading of system configuration."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file. If None, the default
                locations are searched and built-in defaults are used when
                none of them exists.
        """
        self.config_path = config_path or self._find_config_file()
        self._config: Optional[Configuration] = None
        self._last_modified: Optional[float] = None

    def _find_config_file(self) -> Optional[str]:
        """Find the configuration file in standard locations."""
        for path in DEFAULT_CONFIG_PATHS:
            if os.path.exists(path):
                return path
        return None

    def load_config(self) -> Configuration:
        """
        Load configuration from file.

        Returns:
            Configuration object with validated settings.

        Raises:
            ValueError: If configuration is invalid or file cannot be read.
            FileNotFoundError: If an explicit configuration file doesn't exist.
        """
        if self.config_path is None:
            config = Configuration()
            config.validate()
            self._config = config
            return config

        if not os.path.exists(self.config_path):
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        try:
            raw_config = self._read_file(self.config_path)

            # Expand environment variables
            raw_config = self._expand_env_vars(raw_config)

            config = self._parse_config(raw_config)
            config.validate()

            self._config = config
            self._last_modified = os.path.getmtime(self.config_path)

            return config

        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file: {e}")
        except Exception as e:
            raise ValueError(f"Error loading configuration: {e}")

    def _read_file(self, config_path: str) -> Dict[str, Any]:
        with open(config_path, "r", encoding="utf-8") as f:
            if config_path.endswith(".json"):
                raw_config = json.load(f)
            else:
                raw_config = yaml.safe_load(f)

        if raw_config is None:
            return {}
        if not isinstance(raw_config, dict):
            raise ValueError("Configuration root must be a mapping")
        return raw_config

    def _expand_env_vars(self, obj: Any) -> Any:
        """Recursively expand environment variables in configuration."""
        if isinstance(obj, dict):
            return {key: self._expand_env_vars(value) for key, value in obj.items()}
        elif isinstance(obj, list):
            return [self._expand_env_vars(item) for item in obj]
        elif isinstance(obj, str):
            # Expand ${VAR_NAME} patterns
            if obj.startswith("${") and obj.endswith("}"):
                var_name = obj[2:-1]
                env_value = os.getenv(var_name)
                if env_value is None:
                    raise ValueError(f"Environment variable '{var_name}' not found")
                return env_value
            return obj
        else:
            return obj

    def _parse_config(self, raw_config: Dict[str, Any]) -> Configuration:
        """Parse raw configuration dictionary into Configuration object."""
        try:
            fetcher_data = raw_config.get("fetcher") or {}
            defaults = FetcherConfig()
            fetcher = FetcherConfig(
                base_url=fetcher_data.get("base_url", defaults.base_url),
                default_query=fetcher_data.get("default_query", defaults.default_query),
                per_page=fetcher_data.get("per_page", defaults.per_page),
                timeout=fetcher_data.get("timeout", defaults.timeout),
                max_retries=fetcher_data.get("max_retries", defaults.max_retries),
                fallback_to_mock=fetcher_data.get(
                    "fallback_to_mock", defaults.fallback_to_mock
                ),
            )

            scheduler_data = raw_config.get("scheduler") or {}
            scheduler = SchedulerConfig(
                polling_interval=scheduler_data.get(
                    "polling_interval", SchedulerConfig.polling_interval
                )
            )

            storage_data = raw_config.get("storage") or {}
            storage = StorageConfig(
                directory=storage_data.get("directory", StorageConfig.directory)
            )

            notification_data = raw_config.get("notifications") or {}
            notifications = NotificationConfig(
                enabled=bool(notification_data.get("enabled", False)),
                type=notification_data.get("type", "log"),
                telegram=notification_data.get("telegram"),
            )

            logging_data = raw_config.get("logging") or {}
            logging_config = LoggingConfig(
                level=logging_data.get("level", LoggingConfig.level),
                log_dir=logging_data.get("log_dir"),
            )

            return Configuration(
                fetcher=fetcher,
                scheduler=scheduler,
                storage=storage,
                notifications=notifications,
                logging=logging_config,
            )

        except (AttributeError, TypeError) as e:
            raise ValueError(f"Error parsing configuration: {e}")

    def get_config(self) -> Configuration:
        """
        Get current configuration, loading if necessary.

        Returns:
            Current configuration object.
        """
        if self._config is None:
            return self.load_config()
        return self._config

    def reload_if_changed(self) -> bool:
        """
        Reload configuration if file has been modified.

        Returns:
            True if configuration was reloaded, False otherwise.
        """
        if self.config_path is None or not os.path.exists(self.config_path):
            return False

        current_modified = os.path.getmtime(self.config_path)

        if self._last_modified is None or current_modified > self._last_modified:
            try:
                self.load_config()
                return True
            except (ValueError, OSError):
                # If reload fails, keep current config
                return False

        return False

    def validate_config_file(self, config_path: str) -> bool:
        """
        Validate a configuration file without loading it.

        Args:
            config_path: Path to configuration file to validate.

        Returns:
            True if configuration is valid.

        Raises:
            ValueError: If configuration is invalid with detailed error message.
        """
        if not os.path.exists(config_path):
            raise ValueError(f"Configuration file not found: {config_path}")

        try:
            raw_config = self._read_file(config_path)

            # Missing environment variables are tolerated during validation
            try:
                raw_config = self._expand_env_vars(raw_config)
            except ValueError:
                pass

            config = self._parse_config(raw_config)
            config.validate()

            return True

        except Exception as e:
            raise ValueError(f"Configuration validation failed: {e}")

    def get_config_template(self) -> Dict[str, Any]:
        """
        Get a template configuration dictionary.

        Returns:
            Dictionary with example configuration structure.
        """
        return {
            "fetcher": {
                "base_url": "https://www.vinted.de",
                "default_query": "jacke",
                "per_page": 12,
                "timeout": 30,
                "max_retries": 3,
                "fallback_to_mock": True,
            },
            "scheduler": {"polling_interval": 10},
            "storage": {"directory": "data"},
            "notifications": {
                "enabled": False,
                "type": "telegram",
                "telegram": {
                    "bot_token": "${TELEGRAM_BOT_TOKEN}",
                    "chat_id": "${TELEGRAM_CHAT_ID}",
                },
            },
            "logging": {"level": "INFO", "log_dir": "logs"},
        }
