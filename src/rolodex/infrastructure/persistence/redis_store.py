"""Redis implementation of KeyValueStore.
Values are stored as plain Redis strings; the client must decode responses to str.
GETDEL needs Redis 6.2 or newer.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

import redis

from rolodex.application.errors import StoreUnavailable

logger = logging.getLogger(__name__)

DEFAULT_SOCKET_TIMEOUT = 5.0


@contextmanager
def _unavailable_on_failure(operation: str) -> Iterator[None]:
    try:
        yield
    except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as e:
        logger.error("Redis %s failed: %s", operation, e)
        raise StoreUnavailable(f"Redis {operation} failed: {e}") from e


class RedisKeyValueStore:
    """Key-value store backed by a redis.Redis client (thread-safe, pooled connections)."""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(
        cls, url: str, socket_timeout: float = DEFAULT_SOCKET_TIMEOUT
    ) -> "RedisKeyValueStore":
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cls(client)

    def get(self, key: str) -> str | None:
        with _unavailable_on_failure("GET"):
            return self._client.get(key)

    def set(self, key: str, value: str, *, only_if_exists: bool = False) -> bool:
        with _unavailable_on_failure("SET"):
            # SET ... XX replies nil when the key is missing.
            return bool(self._client.set(key, value, xx=only_if_exists))

    def delete(self, key: str) -> str | None:
        with _unavailable_on_failure("GETDEL"):
            return self._client.getdel(key)

    def keys(self, pattern: str = "*") -> set[str]:
        with _unavailable_on_failure("SCAN"):
            return set(self._client.scan_iter(match=pattern))

    def incr(self, key: str) -> int:
        with _unavailable_on_failure("INCR"):
            return int(self._client.incr(key))

    def ping(self) -> bool:
        with _unavailable_on_failure("PING"):
            return bool(self._client.ping())

    def close(self) -> None:
        self._client.close()
