"""Domain layer: entities and value objects. No dependencies on outer layers."""

from rolodex.domain.entities import CONTACT_FIELDS, UNSET, Contact, ContactPatch

__all__ = ["CONTACT_FIELDS", "UNSET", "Contact", "ContactPatch"]
