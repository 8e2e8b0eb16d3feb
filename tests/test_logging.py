"""
Tests for logging utilities.
"""

import json
import logging
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from vinted_alerts.utils import logging as logging_module
from vinted_alerts.utils.logging import (
    ComponentLogger,
    LoggingManager,
    LogLevel,
    get_logger,
    get_logging_stats,
    setup_logging,
)


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    root_logger = logging.getLogger(logging_module.ROOT_LOGGER_NAME)
    for handler in root_logger.handlers:
        handler.close()
    root_logger.handlers.clear()
    for component in LoggingManager.COMPONENTS:
        component_logger = logging.getLogger(
            f"{logging_module.ROOT_LOGGER_NAME}.{component}"
        )
        for handler in component_logger.handlers:
            handler.close()
        component_logger.handlers.clear()
    logging_module._logging_manager = None


class TestComponentLogger:
    """Test cases for ComponentLogger."""

    def test_component_logger_initialization(self):
        """Test component logger initialization."""
        logger = ComponentLogger("scheduler", {"key": "value"})

        assert logger.component_name == "scheduler"
        assert logger.extra_context == {"key": "value"}
        assert logger.logger.name == "vinted_alerts.scheduler"

    def test_format_message(self):
        """Test message formatting."""
        logger = ComponentLogger("scheduler", {"context_key": "context_value"})

        formatted = logger._format_message("Test message", {"extra_key": "extra_value"})

        assert formatted["component"] == "scheduler"
        assert formatted["message"] == "Test message"
        assert formatted["context_key"] == "context_value"
        assert formatted["extra_key"] == "extra_value"
        assert "timestamp" in formatted

    @pytest.mark.parametrize(
        "method,level",
        [
            ("debug", logging.DEBUG),
            ("info", logging.INFO),
            ("warning", logging.WARNING),
            ("error", logging.ERROR),
            ("critical", logging.CRITICAL),
        ],
    )
    def test_log_methods(self, method, level):
        """Test different log level methods."""
        with patch("logging.getLogger") as mock_get_logger:
            mock_logger = Mock()
            mock_get_logger.return_value = mock_logger

            logger = ComponentLogger("engine")
            getattr(logger, method)("Message", {"key": "value"})

            mock_logger.log.assert_called_once()
            assert mock_logger.log.call_args.args[0] == level

    def test_structured_logging_format(self):
        """Test that log messages are properly structured as JSON."""
        with patch("logging.getLogger") as mock_get_logger:
            mock_logger = Mock()
            mock_get_logger.return_value = mock_logger

            logger = ComponentLogger("engine", {"context": "test"})
            logger.info("Test message", {"extra": "data", "when": Path("x")})

            parsed = json.loads(mock_logger.log.call_args.args[1])
            assert parsed["component"] == "engine"
            assert parsed["message"] == "Test message"
            assert parsed["context"] == "test"
            assert parsed["extra"] == "data"
            assert parsed["when"] == "x"

    def test_exception_logging(self):
        """Test exception logging with structured format."""
        with patch("logging.getLogger") as mock_get_logger:
            mock_logger = Mock()
            mock_get_logger.return_value = mock_logger

            logger = ComponentLogger("engine")
            logger.error("Error occurred", exc_info=True)

            assert mock_logger.log.call_args.kwargs["exc_info"] is True
            parsed = json.loads(mock_logger.log.call_args.args[1])
            assert parsed["exception"] is True


class TestLoggingManager:
    """Test cases for LoggingManager."""

    def test_console_only_by_default(self):
        manager = LoggingManager()

        assert manager.log_dir is None
        root_logger = logging.getLogger("vinted_alerts")
        assert len(root_logger.handlers) == 1
        assert manager.get_log_stats()["log_files"] == []

    def test_log_files_created(self, tmp_path):
        """Test logging manager initialization with a log directory."""
        manager = LoggingManager(log_dir=str(tmp_path / "logs"), log_level="DEBUG")

        assert manager.log_dir == tmp_path / "logs"
        assert manager.log_level == logging.DEBUG

        names = {entry["name"] for entry in manager.get_log_stats()["log_files"]}
        assert {"vinted_alerts.log", "errors.log"} <= names
        assert {f"{component}.log" for component in LoggingManager.COMPONENTS} <= names

    @patch("logging.handlers.RotatingFileHandler")
    def test_rotating_file_handler_setup(self, mock_handler, tmp_path):
        """Test that rotating file handlers are properly configured."""
        LoggingManager(log_dir=str(tmp_path))

        # main log, error log and one per component
        assert mock_handler.call_count == 2 + len(LoggingManager.COMPONENTS)
        for call in mock_handler.call_args_list:
            assert call.kwargs["backupCount"] > 0
            assert call.kwargs["maxBytes"] > 0

    def test_get_component_logger(self):
        """Test getting component loggers."""
        manager = LoggingManager()

        logger1 = manager.get_component_logger("scheduler")
        logger2 = manager.get_component_logger("scheduler")
        logger3 = manager.get_component_logger("engine")
        logger4 = manager.get_component_logger("scheduler", {"key": "value"})

        assert logger1 is logger2
        assert logger1 is not logger3
        assert logger1 is not logger4

    def test_set_log_level(self, tmp_path):
        """Test setting log level."""
        manager = LoggingManager(log_dir=str(tmp_path), log_level="INFO")

        manager.set_log_level("DEBUG")

        root_logger = logging.getLogger("vinted_alerts")
        assert root_logger.level == logging.DEBUG
        levels = {
            Path(getattr(handler, "baseFilename", "console")).name: handler.level
            for handler in root_logger.handlers
        }
        assert levels["errors.log"] == logging.ERROR
        assert levels["vinted_alerts.log"] == logging.DEBUG

    def test_get_log_stats(self):
        """Test getting log statistics."""
        manager = LoggingManager()
        manager.get_component_logger("comp1")
        manager.get_component_logger("comp2")

        stats = manager.get_log_stats()

        assert stats["log_directory"] is None
        assert stats["log_level"] == "INFO"
        assert stats["component_loggers"] == 2


class TestGlobalFunctions:
    """Test cases for global logging functions."""

    def test_setup_logging(self, tmp_path):
        """Test global logging setup."""
        manager = setup_logging(log_dir=str(tmp_path), log_level="DEBUG")

        assert isinstance(manager, LoggingManager)
        assert manager.log_dir == tmp_path
        assert manager.log_level == logging.DEBUG

    def test_get_logger_without_setup(self):
        """Test getting logger without explicit setup."""
        logging_module._logging_manager = None

        logger = get_logger("scheduler")

        assert isinstance(logger, ComponentLogger)
        assert logger.component_name == "scheduler"
        assert logging_module._logging_manager is not None

    def test_get_logging_stats(self):
        setup_logging(log_level="WARNING")

        stats = get_logging_stats()

        assert stats["log_level"] == "WARNING"
        assert stats["log_directory"] is None

    def test_get_logging_stats_without_setup(self):
        """Test getting logging stats without setup."""
        logging_module._logging_manager = None

        assert get_logging_stats() == {"error": "Logging not initialized"}


def test_log_level_values():
    assert [level.value for level in LogLevel] == [
        "DEBUG",
        "INFO",
        "WARNING",
        "ERROR",
        "CRITICAL",
    ]
