"""Browser settings kept in memory and, optionally, in the storage database."""

from __future__ import annotations

import json
import logging
import threading
from typing import Any

from fortrust.database import Database, StorageError

log = logging.getLogger(__name__)

SETTINGS_TABLE = "settings"


def _encode(value: Any) -> bytes:
    try:
        return json.dumps(value).encode("utf-8")
    except (TypeError, ValueError) as error:
        raise StorageError("serialization", str(error)) from error


def _decode(data: bytes) -> Any:
    try:
        return json.loads(data.decode("utf-8"))
    except ValueError as error:
        raise StorageError("serialization", str(error)) from error


class SettingsStore:
    """A thread-safe mapping of setting names to values."""

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}
        self._lock = threading.RLock()

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._values[key] = value

    def get(self, key: str) -> Any | None:
        with self._lock:
            return self._values.get(key)

    def remove(self, key: str) -> None:
        with self._lock:
            self._values.pop(key, None)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._values

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)

    def all(self) -> list[tuple[str, Any]]:
        with self._lock:
            return list(self._values.items())

    def clear(self) -> None:
        with self._lock:
            self._values.clear()


class SettingsDatabase:
    """Settings cached in memory and written through to the database if one is given.

    Values are anything JSON can hold: booleans, integers, floats, strings,
    lists and mappings.
    """

    def __init__(self, db: Database | None = None) -> None:
        self._db = db
        self._cache: dict[str, Any] = {}
        self._lock = threading.RLock()
        if db is None:
            return
        db.ensure_table(SETTINGS_TABLE)
        for raw_key, raw_value in db.items(SETTINGS_TABLE):
            try:
                key = raw_key.decode("utf-8")
                value = _decode(raw_value)
            except (UnicodeDecodeError, StorageError):
                continue
            self._cache[key] = value

    @classmethod
    def empty(cls) -> SettingsDatabase:
        return cls()

    def store(self, key: str, value: Any) -> None:
        data = _encode(value)
        with self._lock:
            self._cache[key] = value
        if self._db is not None:
            self._db.put(SETTINGS_TABLE, key, data)
        log.debug("Stored setting: %s", key)

    def load(self, key: str) -> Any | None:
        with self._lock:
            return self._cache.get(key)

    def delete(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)
        if self._db is not None:
            self._db.delete(SETTINGS_TABLE, key)

    def all(self) -> list[tuple[str, Any]]:
        with self._lock:
            return list(self._cache.items())

    def count(self) -> int:
        with self._lock:
            return len(self._cache)

    def __len__(self) -> int:
        return self.count()