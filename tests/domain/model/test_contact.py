from __future__ import annotations

from datetime import UTC, datetime

import pytest

from identipy.domain.model import Contact, LinkPrecedence


def test_primary_contact_cannot_carry_linked_id() -> None:
    with pytest.raises(ValueError, match="cannot carry a linked_id"):
        Contact(email="a@x.com", linked_id=3)


def test_secondary_contact_requires_linked_id() -> None:
    with pytest.raises(ValueError, match="requires a linked_id"):
        Contact(email="a@x.com", link_precedence=LinkPrecedence.SECONDARY)


def test_new_contact_defaults_to_primary_with_utc_timestamps() -> None:
    contact = Contact(phone_number="111")

    assert contact.is_primary
    assert contact.linked_id is None
    assert contact.created_at.tzinfo is not None
    assert not contact.is_deleted


def test_demote_turns_primary_into_secondary() -> None:
    contact = Contact(id=2, email="b@x.com")

    contact.demote(1)

    assert contact.link_precedence is LinkPrecedence.SECONDARY
    assert contact.linked_id == 1
    assert not contact.is_primary


def test_demote_rejects_secondary_and_self_links() -> None:
    secondary = Contact(id=3, email="c@x.com", link_precedence=LinkPrecedence.SECONDARY, linked_id=1)
    primary = Contact(id=4, email="d@x.com")

    with pytest.raises(ValueError, match="already secondary"):
        secondary.demote(2)
    with pytest.raises(ValueError, match="cannot be linked to itself"):
        primary.demote(4)


def test_relink_moves_secondary_but_not_primary() -> None:
    secondary = Contact(id=5, email="e@x.com", link_precedence=LinkPrecedence.SECONDARY, linked_id=1)
    primary = Contact(id=6, email="f@x.com")

    secondary.relink(2)

    assert secondary.linked_id == 2
    assert secondary.link_precedence is LinkPrecedence.SECONDARY
    with pytest.raises(ValueError, match="cannot be relinked"):
        primary.relink(2)


def test_precedence_key_orders_by_creation_then_id() -> None:
    moment = datetime(2024, 5, 1, tzinfo=UTC)
    older = Contact(id=9, email="a@x.com", created_at=datetime(2024, 4, 1, tzinfo=UTC))
    tie_low = Contact(id=3, email="b@x.com", created_at=moment)
    tie_high = Contact(id=7, email="c@x.com", created_at=moment)

    ordered = sorted([tie_high, tie_low, older], key=lambda contact: contact.precedence_key)

    assert [contact.id for contact in ordered] == [9, 3, 7]


def test_link_to_routes_through_allowed_transitions() -> None:
    primary = Contact(id=2, email="b@x.com")
    secondary = Contact(id=3, email="c@x.com", link_precedence=LinkPrecedence.SECONDARY, linked_id=2)

    primary.link_to(LinkPrecedence.PRIMARY, None)
    assert primary.is_primary

    secondary.link_to(LinkPrecedence.SECONDARY, 1)
    primary.link_to(LinkPrecedence.SECONDARY, 1)

    assert (secondary.linked_id, primary.linked_id) == (1, 1)
    assert not primary.is_primary


def test_link_to_rejects_promotion_and_missing_parent() -> None:
    secondary = Contact(id=3, email="c@x.com", link_precedence=LinkPrecedence.SECONDARY, linked_id=1)
    primary = Contact(id=4, email="d@x.com")

    with pytest.raises(ValueError, match="cannot be promoted"):
        secondary.link_to(LinkPrecedence.PRIMARY, None)
    with pytest.raises(ValueError, match="requires a linked_id"):
        primary.link_to(LinkPrecedence.SECONDARY, None)
    with pytest.raises(ValueError, match="cannot carry a linked_id"):
        primary.link_to(LinkPrecedence.PRIMARY, 1)
