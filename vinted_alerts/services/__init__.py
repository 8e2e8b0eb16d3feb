"""
Service layer for the Vinted Alerts system.

This module contains the configuration manager and the persistence
services that load and save engine state.
"""

from .config_manager import ConfigurationManager
from .persistence import InMemoryKeyValueStore, JsonFileStore, StateRepository

__all__ = [
    "ConfigurationManager",
    "InMemoryKeyValueStore",
    "JsonFileStore",
    "StateRepository",
]
