"""Application layer: the contact repository, its store port, and errors. Depends only on domain."""

from rolodex.application.contact_repository import NEXT_ID_KEY, ContactRepository
from rolodex.application.errors import (
    ContactStoreError,
    CorruptContactRecord,
    StoreUnavailable,
)
from rolodex.application.ports import KeyValueStore

__all__ = [
    "NEXT_ID_KEY",
    "ContactRepository",
    "ContactStoreError",
    "CorruptContactRecord",
    "KeyValueStore",
    "StoreUnavailable",
]
