"""Ports for persisting contact records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from identipy.domain.model import (
        Contact,
        ContactId,
        EmailAddress,
        LinkPrecedence,
        PhoneNumber,
    )


@runtime_checkable
class ContactRepository(Protocol):
    """Persistence contract for contact records.

    Every read excludes soft-deleted rows. Lists are ordered by ``created_at`` and
    then ``id``, both ascending.
    """

    def find_by_email_or_phone(
        self,
        email: EmailAddress | None,
        phone_number: PhoneNumber | None,
    ) -> list[Contact]: ...

    def get(self, contact_id: ContactId) -> Contact | None: ...

    def find_secondaries_of(self, primary_id: ContactId) -> list[Contact]: ...

    def create(
        self,
        *,
        email: EmailAddress | None,
        phone_number: PhoneNumber | None,
        link_precedence: LinkPrecedence,
        linked_id: ContactId | None = None,
    ) -> Contact: ...

    def update(
        self,
        contact_id: ContactId,
        *,
        link_precedence: LinkPrecedence,
        linked_id: ContactId | None,
    ) -> Contact: ...

    def relink_all(self, old_linked_id: ContactId, new_linked_id: ContactId) -> int: ...

    def iter_all(self) -> list[Contact]: ...
