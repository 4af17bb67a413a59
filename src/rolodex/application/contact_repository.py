"""Contact repository: id allocation, key scheme, and CRUD over a KeyValueStore.

Key scheme: a contact lives at the decimal string of its id ("1", "2", ...).
The id counter lives at NEXT_ID_KEY, which is not all digits and so can never
collide with a contact key. The repository keeps no state of its own; every
atomicity guarantee comes from the store.
"""

import json
import logging

from rolodex.application.errors import CorruptContactRecord
from rolodex.application.ports import KeyValueStore
from rolodex.domain import Contact, ContactPatch

logger = logging.getLogger(__name__)

NEXT_ID_KEY = "next_id"

# Glob narrowing the scan to keys that start with a digit; exact filtering is done in list_ids.
_CONTACT_KEY_PATTERN = "[0-9]*"


def _contact_key(contact_id: int) -> str:
    return str(contact_id)


def _parse_contact_key(key: str) -> int | None:
    # str.isdigit accepts non-ASCII digits; contact keys are plain ASCII decimals.
    if not key.isascii() or not key.isdigit():
        return None
    contact_id = int(key)
    if contact_id < 1 or _contact_key(contact_id) != key:
        return None
    return contact_id


def _encode(contact: Contact) -> str:
    return json.dumps(contact.to_dict())


def _decode(key: str, raw: str) -> Contact:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise CorruptContactRecord(key, f"invalid JSON ({e.msg})") from e
    if not isinstance(data, dict):
        raise CorruptContactRecord(key, "record is not an object")
    try:
        contact = Contact.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise CorruptContactRecord(key, f"invalid contact fields ({e})") from e
    if _contact_key(contact.id) != key:
        raise CorruptContactRecord(key, f"record id {contact.id} does not match its key")
    return contact


class ContactRepository:
    """Persists contacts in a key-value store. Sole owner of the id counter and contact keys."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def allocate_id(self) -> int:
        """Return a never-used id. The persisted counter is advanced before returning."""
        return self._store.incr(NEXT_ID_KEY)

    def list_ids(self) -> set[int]:
        """Return the ids of all stored contacts, unordered."""
        ids = set()
        for key in self._store.keys(_CONTACT_KEY_PATTERN):
            contact_id = _parse_contact_key(key)
            if contact_id is not None:
                ids.add(contact_id)
        return ids

    def list_all(self) -> list[Contact]:
        """Return all contacts ordered by ascending id."""
        out = []
        for contact_id in sorted(self.list_ids()):
            contact = self.get(contact_id)
            # Deleted after the listing was taken.
            if contact is not None:
                out.append(contact)
        return out

    def get(self, contact_id: int) -> Contact | None:
        """Return the contact with the given id, or None if no record exists."""
        if contact_id < 1:
            return None
        key = _contact_key(contact_id)
        raw = self._store.get(key)
        if raw is None:
            return None
        return self._read(key, raw)

    def create(self, fields: ContactPatch | None = None) -> Contact:
        """Store a new contact with a freshly allocated id and return it."""
        contact = (fields or ContactPatch()).to_contact(self.allocate_id())
        self._store.set(_contact_key(contact.id), _encode(contact))
        logger.info("Created contact %d", contact.id)
        return contact

    def update(self, contact_id: int, patch: ContactPatch) -> Contact | None:
        """Merge patch onto the stored contact. Returns the merged contact, or None if not found.

        The write only lands if the key still exists, so a contact deleted
        concurrently is not brought back.
        """
        existing = self.get(contact_id)
        if existing is None:
            return None
        updated = patch.apply_to(existing)
        if updated is existing:
            return existing
        written = self._store.set(
            _contact_key(contact_id), _encode(updated), only_if_exists=True
        )
        if not written:
            logger.info("Contact %d was deleted during update", contact_id)
            return None
        return updated

    def delete(self, contact_id: int) -> Contact | None:
        """Remove the contact and return its last stored value, or None if not found.

        An unreadable record raises CorruptContactRecord and is left in place.
        """
        if self.get(contact_id) is None:
            return None
        key = _contact_key(contact_id)
        raw = self._store.delete(key)
        if raw is None:
            # Deleted by someone else since the read.
            return None
        logger.info("Deleted contact %d", contact_id)
        return self._read(key, raw)

    def _read(self, key: str, raw: str) -> Contact:
        try:
            return _decode(key, raw)
        except CorruptContactRecord:
            logger.warning("Unreadable contact record at key %r", key)
            raise
