from __future__ import annotations

import pytest

from identipy.domain.model import Contact, LinkPrecedence
from identipy.domain.reconciliation import ConsolidatedIdentity, consolidate


def _secondary(contact_id: int, email: str | None, phone_number: str | None) -> Contact:
    return Contact(
        id=contact_id,
        email=email,
        phone_number=phone_number,
        link_precedence=LinkPrecedence.SECONDARY,
        linked_id=1,
    )


def test_consolidate_puts_primary_values_first_and_dedupes() -> None:
    primary = Contact(id=1, email="lorraine@hillvalley.edu", phone_number="123456")
    secondaries = [
        _secondary(23, "mcfly@hillvalley.edu", "123456"),
        _secondary(27, "lorraine@hillvalley.edu", "717171"),
        _secondary(30, None, "123456"),
    ]

    identity = consolidate(primary, secondaries)

    assert identity == ConsolidatedIdentity(
        primary_contact_id=1,
        emails=("lorraine@hillvalley.edu", "mcfly@hillvalley.edu"),
        phone_numbers=("123456", "717171"),
        secondary_contact_ids=(23, 27, 30),
    )


def test_consolidate_skips_missing_primary_values() -> None:
    primary = Contact(id=4, phone_number="919191")
    secondaries = [_secondary(5, "george@hillvalley.edu", "919191")]

    identity = consolidate(primary, secondaries)

    assert identity.emails == ("george@hillvalley.edu",)
    assert identity.phone_numbers == ("919191",)


def test_consolidate_requires_saved_primary() -> None:
    with pytest.raises(ValueError, match="unsaved"):
        consolidate(Contact(email="a@x.com"), [])


def test_to_payload_uses_wire_field_names() -> None:
    identity = ConsolidatedIdentity(
        primary_contact_id=1,
        emails=("a@x.com",),
        phone_numbers=("111", "222"),
        secondary_contact_ids=(2,),
    )

    assert identity.to_payload() == {
        "contact": {
            "primaryContactId": 1,
            "emails": ["a@x.com"],
            "phoneNumbers": ["111", "222"],
            "secondaryContactIds": [2],
        }
    }
