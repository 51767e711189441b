"""Consolidated identity view rendered from a primary and its secondaries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable

    from identipy.domain.model import Contact, ContactId, EmailAddress, PhoneNumber


@dataclass(frozen=True, slots=True)
class ConsolidatedIdentity:
    """Everything known about one person, primary values first."""

    primary_contact_id: ContactId
    emails: tuple[EmailAddress, ...] = ()
    phone_numbers: tuple[PhoneNumber, ...] = ()
    secondary_contact_ids: tuple[ContactId, ...] = ()

    def to_payload(self) -> dict[str, Any]:
        return {
            "contact": {
                "primaryContactId": self.primary_contact_id,
                "emails": list(self.emails),
                "phoneNumbers": list(self.phone_numbers),
                "secondaryContactIds": list(self.secondary_contact_ids),
            }
        }


def consolidate(primary: Contact, secondaries: Iterable[Contact]) -> ConsolidatedIdentity:
    """Merge the values of ``primary`` and ``secondaries`` (already in creation order)."""

    if primary.id is None:
        raise ValueError("Cannot consolidate an unsaved contact")

    emails: list[str] = []
    phone_numbers: list[str] = []
    secondary_ids: list[int] = []

    for contact in (primary, *secondaries):
        if contact.email and contact.email not in emails:
            emails.append(contact.email)
        if contact.phone_number and contact.phone_number not in phone_numbers:
            phone_numbers.append(contact.phone_number)
        if contact is not primary and contact.id is not None:
            secondary_ids.append(contact.id)

    return ConsolidatedIdentity(
        primary_contact_id=primary.id,
        emails=tuple(emails),
        phone_numbers=tuple(phone_numbers),
        secondary_contact_ids=tuple(secondary_ids),
    )
