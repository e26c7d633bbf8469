"""
Client-local key-value persistence.

Holds the bearer token, favorite note ids and the settings blob. Values are
strings; callers serialize JSON themselves. Nothing here is ever synced to the
server.
"""
import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
FAVORITES_KEY = "favoriteNotes"
SETTINGS_KEY = "user-settings"


class KeyValueStore(ABC):
    """String key-value store that survives client restarts (or not, for the in-memory one)."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete a key. Removing an absent key is a no-op."""


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store for tests and short-lived clients."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileKeyValueStore(KeyValueStore):
    """
    Store backed by a single JSON object on disk.

    The file is re-read on every access so separate client processes see each
    other's writes. Writes go to a temporary file that replaces the original,
    so a crash mid-write never leaves a truncated file. An unreadable file is
    treated as empty.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Local store %s is not valid JSON, starting empty", self.path)
            return {}
        if not isinstance(data, dict):
            logger.warning("Local store %s does not hold an object, starting empty", self.path)
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def get(self, key: str) -> str | None:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)


def open_store(path: Path | str | None) -> KeyValueStore:
    """File-backed store when a path is configured, in-memory otherwise."""
    if path is None:
        return InMemoryKeyValueStore()
    return JsonFileKeyValueStore(path)
