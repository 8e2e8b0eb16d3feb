"""
Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the Vinted Alerts test suite.
"""

import os
from unittest.mock import Mock

import pytest
from factories import FakeClock, RecordingNotificationSink, make_alert, make_listing

from vinted_alerts.models.config import Configuration
from vinted_alerts.services.persistence import InMemoryKeyValueStore
from vinted_alerts.utils import error_handling


# Test data fixtures
@pytest.fixture
def clock():
    """Create a controllable clock."""
    return FakeClock()


@pytest.fixture
def jeans_alert():
    """Alert for jeans up to 40 EUR."""
    return make_alert("a_jeans", name="Jeans", term="jeans", max_price=40)


@pytest.fixture
def sample_listing():
    """Create a sample Listing for testing."""
    return make_listing()


@pytest.fixture
def sample_configuration(tmp_path):
    """Configuration whose state directory is a temporary path."""
    config = Configuration()
    config.storage.directory = str(tmp_path / "data")
    return config


# Mock fixtures
@pytest.fixture
def memory_store():
    """Create an in-memory key-value store."""
    return InMemoryKeyValueStore()


@pytest.fixture
def log_sink():
    """Create a log notification sink that records deliveries."""
    return RecordingNotificationSink()


@pytest.fixture
def mock_fetcher(sample_listing):
    """Create a mock listing fetcher returning one listing."""
    fetcher = Mock()
    fetcher.fetch.return_value = [sample_listing]
    return fetcher


@pytest.fixture(autouse=True)
def reset_error_handling():
    """Give each test a fresh error tracker and degradation manager."""
    error_handling._error_tracker = None
    error_handling._degradation_manager = None
    yield
    error_handling._error_tracker = None
    error_handling._degradation_manager = None


# Environment fixtures
@pytest.fixture
def mock_env_vars():
    """Mock environment variables for testing."""
    env_vars = {
        "TELEGRAM_BOT_TOKEN": "test_bot_token",
        "TELEGRAM_CHAT_ID": "test_chat_id",
    }

    # Store original values
    original_values = {}
    for key, value in env_vars.items():
        original_values[key] = os.environ.get(key)
        os.environ[key] = value

    yield env_vars

    # Restore original values
    for key, original_value in original_values.items():
        if original_value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = original_value


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "unit: mark test as unit test")


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically."""
    for item in items:
        # Add unit marker to all tests by default
        if not any(
            marker.name == "integration" for marker in item.iter_markers()
        ):
            item.add_marker(pytest.mark.unit)
