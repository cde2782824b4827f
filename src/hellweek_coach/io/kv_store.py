"""
Key-value persistence used by the history store and the progress ledger.

Values are plain JSON (dicts, lists, strings, numbers).  JsonFileStore keeps
one ``<key>.json`` file per key in a data directory; MemoryStore keeps
everything in a dict and is used by tests and simulations.
"""

import json
import os
from pathlib import Path
from typing import Any, Protocol

from loguru import logger

from ..core.errors import StorageError


class KeyValueStore(Protocol):
    """Opaque JSON key-value store."""

    def get(self, key: str) -> Any | None:
        """Return the stored JSON value, or None if absent."""
        ...

    def set(self, key: str, value: Any) -> None:
        """
        Store a JSON value.

        Raises:
            StorageError: If the value could not be written
        """
        ...


class JsonFileStore:
    """
    Stores each key as a pretty-printed JSON file.

    Writes go to a temporary sibling file first and are then renamed over
    the target, so a failed write never truncates existing data.
    """

    def __init__(self, data_dir: str | Path):
        """
        Initialize the store.

        Args:
            data_dir: Directory holding one JSON file per key
        """
        self.data_dir = Path(data_dir)

    def path_for(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def exists(self, key: str) -> bool:
        return self.path_for(key).exists()

    def get(self, key: str) -> Any | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            logger.warning("Corrupt JSON in {}: {}", path, e)
            return None
        except OSError as e:
            raise StorageError(f"Could not read {path}: {e}") from e

    def set(self, key: str, value: Any) -> None:
        path = self.path_for(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(value, f, indent=2)
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            tmp_path.unlink(missing_ok=True)
            raise StorageError(f"Could not write {path}: {e}") from e


class MemoryStore:
    """In-memory store; values are JSON round-tripped to catch non-JSON data."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any) -> None:
        try:
            self._data[key] = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for '{key}' is not JSON serializable: {e}") from e

    def keys(self) -> list[str]:
        return list(self._data)
