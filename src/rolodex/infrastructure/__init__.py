"""Infrastructure layer: concrete implementations of application ports."""

from rolodex.infrastructure.memory_store import InMemoryKeyValueStore
from rolodex.infrastructure.persistence.redis_store import RedisKeyValueStore

__all__ = ["InMemoryKeyValueStore", "RedisKeyValueStore"]
