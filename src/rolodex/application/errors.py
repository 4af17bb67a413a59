"""Errors raised by the contact repository and its store adapters."""


class ContactStoreError(Exception):
    """Base class for failures of the underlying key-value store."""


class StoreUnavailable(ContactStoreError):
    """The store could not be reached (connection refused, timeout, ...)."""


class CorruptContactRecord(ContactStoreError):
    """A contact key exists but does not hold a readable contact record."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Contact record at key {key!r} is corrupt: {reason}")
        self.key = key
        self.reason = reason
