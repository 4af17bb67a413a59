"""Application ports (interfaces). Implemented by infrastructure adapters."""

from __future__ import annotations

from typing import Protocol


class KeyValueStore(Protocol):
    """String keys to string values, with the few atomic primitives the repository needs.

    Adapters raise StoreUnavailable when the backend cannot be reached.
    """

    def get(self, key: str) -> str | None:
        """Return the value stored at key, or None if the key is absent."""
        ...

    def set(self, key: str, value: str, *, only_if_exists: bool = False) -> bool:
        """Store value at key. With only_if_exists, write only over an existing key.

        Returns True if the value was written.
        """
        ...

    def delete(self, key: str) -> str | None:
        """Atomically remove key and return its last value, or None if it was absent."""
        ...

    def keys(self, pattern: str = "*") -> set[str]:
        """Return every key matching the glob-style pattern."""
        ...

    def incr(self, key: str) -> int:
        """Atomically add one to the integer at key (missing counts as 0) and return the result."""
        ...
