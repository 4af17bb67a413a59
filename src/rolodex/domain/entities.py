"""Domain entities: Contact and ContactPatch."""

from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from typing import Any

# Text fields of a contact, in storage order. The id is not part of this list.
CONTACT_FIELDS = ("first_name", "last_name", "job", "description")


class _Unset:
    """Marker for a patch field that was not supplied."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()


@dataclass(frozen=True)
class Contact:
    """
    A person in the address book.
    The id is assigned by the repository and never changes; text fields are optional.
    """

    id: int
    first_name: str | None = None
    last_name: str | None = None
    job: str | None = None
    description: str | None = None

    def __post_init__(self):
        if isinstance(self.id, bool) or not isinstance(self.id, int) or self.id < 1:
            raise ValueError("Contact id must be a positive integer.")
        for name in CONTACT_FIELDS:
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"Contact {name} must be a string or None.")

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready form; absent fields are null."""
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "job": self.job,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Contact":
        """Build from a stored record. Missing text fields become None, unknown keys are ignored."""
        return cls(id=data["id"], **{name: data.get(name) for name in CONTACT_FIELDS})


@dataclass(frozen=True)
class ContactPatch:
    """
    Partial contact fields.
    UNSET leaves a field untouched on update (and stores it as absent on create);
    None clears it. There is no id: a patch can never renumber a contact.
    """

    first_name: str | None | _Unset = UNSET
    last_name: str | None | _Unset = UNSET
    job: str | None | _Unset = UNSET
    description: str | None | _Unset = UNSET

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ContactPatch":
        return cls(**{name: data[name] for name in CONTACT_FIELDS if name in data})

    def changes(self) -> dict[str, str | None]:
        """Fields that were supplied, by name."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }

    def is_empty(self) -> bool:
        return not self.changes()

    def apply_to(self, contact: Contact) -> Contact:
        """Return contact with every supplied field replaced wholesale."""
        changes = self.changes()
        if not changes:
            return contact
        return replace(contact, **changes)

    def to_contact(self, contact_id: int) -> Contact:
        """New contact with this patch's fields; unsupplied fields are absent."""
        return Contact(id=contact_id, **self.changes())
