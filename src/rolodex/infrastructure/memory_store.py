"""In-memory implementation of KeyValueStore (no server)."""

from __future__ import annotations

import threading
from fnmatch import fnmatchcase


class InMemoryKeyValueStore:
    """Stores values in a dict. Each operation holds a lock, so incr and delete are atomic across threads."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str, *, only_if_exists: bool = False) -> bool:
        with self._lock:
            if only_if_exists and key not in self._data:
                return False
            self._data[key] = value
            return True

    def delete(self, key: str) -> str | None:
        with self._lock:
            return self._data.pop(key, None)

    def keys(self, pattern: str = "*") -> set[str]:
        with self._lock:
            return {key for key in self._data if fnmatchcase(key, pattern)}

    def incr(self, key: str) -> int:
        with self._lock:
            value = int(self._data.get(key, "0")) + 1
            self._data[key] = str(value)
            return value
