"""
Local state persistence for alerts, matches and settings.

State lives in three independent records, each stored as JSON text under
its own key. Absent or corrupt records load as empty state.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar

from ..errors import PersistenceFailure
from ..interfaces import IKeyValueStore
from ..models.alert import Alert
from ..models.match import MatchRecord
from ..models.notification import Settings
from ..utils.logging import get_logger

logger = get_logger("persistence")

ALERTS_KEY = "vinted_snipe_alerts_v1"
LISTINGS_KEY = "vinted_snipe_listings_v1"
SETTINGS_KEY = "vinted_snipe_settings_v1"

T = TypeVar("T")


class InMemoryKeyValueStore:
    """Dictionary-backed store for tests and ephemeral runs."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStore:
    """Stores each key as ``<key>.json`` inside a directory."""

    def __init__(self, directory: str):
        """
        Initialize file store.

        Args:
            directory: Directory holding the state files, created if missing
        """
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise PersistenceFailure(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            raise PersistenceFailure(f"Error reading {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        """Write the value atomically by replacing the file."""
        path = self._path(key)
        fd, tmp_path = tempfile.mkstemp(
            dir=self.directory, prefix=f".{key}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_path, path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise PersistenceFailure(f"Error writing {path}: {e}") from e

    def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise PersistenceFailure(f"Error deleting {path}: {e}") from e


class StateRepository:
    """Reads and writes engine state through a key-value store."""

    def __init__(self, store: IKeyValueStore):
        self.store = store

    def _load_json(self, key: str) -> Any:
        raw = self.store.get(key)
        if raw is None or not raw.strip():
            return None

        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(
                "Ignoring corrupt stored state", extra={"key": key, "error": str(e)}
            )
            return None

    def _save_json(self, key: str, data: Any) -> None:
        self.store.set(key, json.dumps(data, ensure_ascii=False))

    def _load_list(self, key: str, parse: Callable[[Dict[str, Any]], T]) -> List[T]:
        data = self._load_json(key)
        if not isinstance(data, list):
            if data is not None:
                logger.warning("Stored state is not a list", extra={"key": key})
            return []

        items = []
        for entry in data:
            if not isinstance(entry, dict):
                logger.warning("Skipping malformed stored entry", extra={"key": key})
                continue
            try:
                items.append(parse(entry))
            except (TypeError, ValueError) as e:
                logger.warning(
                    "Skipping unreadable stored entry",
                    extra={"key": key, "error": str(e)},
                )
        return items

    def load_alerts(self) -> List[Alert]:
        return self._load_list(ALERTS_KEY, Alert.from_dict)

    def save_alerts(self, alerts: List[Alert]) -> None:
        self._save_json(ALERTS_KEY, [alert.to_dict() for alert in alerts])

    def load_matches(self) -> List[MatchRecord]:
        return self._load_list(LISTINGS_KEY, MatchRecord.from_dict)

    def save_matches(self, records: List[MatchRecord]) -> None:
        self._save_json(LISTINGS_KEY, [record.to_dict() for record in records])

    def load_settings(self) -> Optional[Settings]:
        """Stored settings, or None when no readable record exists."""
        data = self._load_json(SETTINGS_KEY)
        if not isinstance(data, dict):
            return None
        return Settings.from_dict(data)

    def save_settings(self, settings: Settings) -> None:
        self._save_json(SETTINGS_KEY, settings.to_dict())
