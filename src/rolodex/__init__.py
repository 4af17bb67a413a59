"""
Rolodex core: clean-architecture layout.

- domain: entities (Contact, ContactPatch). No outer dependencies.
- application: ContactRepository (id allocation, key scheme, CRUD), KeyValueStore port, errors.
- infrastructure: store adapters (InMemoryKeyValueStore, RedisKeyValueStore).
"""

from rolodex.application import (
    NEXT_ID_KEY,
    ContactRepository,
    ContactStoreError,
    CorruptContactRecord,
    KeyValueStore,
    StoreUnavailable,
)
from rolodex.domain import CONTACT_FIELDS, UNSET, Contact, ContactPatch
from rolodex.infrastructure import InMemoryKeyValueStore, RedisKeyValueStore

__all__ = [
    "CONTACT_FIELDS",
    "NEXT_ID_KEY",
    "UNSET",
    "Contact",
    "ContactPatch",
    "ContactRepository",
    "ContactStoreError",
    "CorruptContactRecord",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "RedisKeyValueStore",
    "StoreUnavailable",
]
