"""Contact records: one row per observed (email, phone number) alias."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from identipy.domain.model.enums import LinkPrecedence

if TYPE_CHECKING:
    from identipy.domain.model.primitives import ContactId, EmailAddress, PhoneNumber


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(eq=False, kw_only=True)
class Contact:
    """A single identity record.

    Primaries carry no ``linked_id``; secondaries always point at their primary.
    The id is assigned by the store when the record is persisted.
    """

    id: ContactId | None = None
    email: EmailAddress | None = None
    phone_number: PhoneNumber | None = None
    linked_id: ContactId | None = None
    link_precedence: LinkPrecedence = LinkPrecedence.PRIMARY

    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    deleted_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.is_primary and self.linked_id is not None:
            raise ValueError("Primary contact cannot carry a linked_id")
        if not self.is_primary and self.linked_id is None:
            raise ValueError("Secondary contact requires a linked_id")

    @property
    def is_primary(self) -> bool:
        return self.link_precedence is LinkPrecedence.PRIMARY

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def precedence_key(self) -> tuple[datetime, int]:
        """Total order used to pick the canonical primary: oldest first, then lowest id."""
        return (self.created_at, self.id if self.id is not None else 0)

    def demote(self, primary_id: ContactId) -> None:
        """Turn this primary into a secondary of ``primary_id``.

        This is the only precedence transition; secondaries never become primary again.
        """
        if not self.is_primary:
            raise ValueError(f"Contact {self.id} is already secondary")
        if primary_id == self.id:
            raise ValueError(f"Contact {self.id} cannot be linked to itself")
        self.link_precedence = LinkPrecedence.SECONDARY
        self.linked_id = primary_id
        self.updated_at = utcnow()

    def relink(self, primary_id: ContactId) -> None:
        """Repoint a secondary at another primary without changing its precedence."""
        if self.is_primary:
            raise ValueError(f"Contact {self.id} is primary and cannot be relinked")
        if primary_id == self.id:
            raise ValueError(f"Contact {self.id} cannot be linked to itself")
        self.linked_id = primary_id
        self.updated_at = utcnow()

    def link_to(self, link_precedence: LinkPrecedence, linked_id: ContactId | None) -> None:
        """Apply a precedence change through ``demote`` or ``relink``.

        Keeping a primary as primary is a no-op; promoting a secondary is rejected.
        """
        if link_precedence is LinkPrecedence.PRIMARY:
            if not self.is_primary:
                raise ValueError(f"Contact {self.id} is secondary and cannot be promoted")
            if linked_id is not None:
                raise ValueError("Primary contact cannot carry a linked_id")
            return
        if linked_id is None:
            raise ValueError("Secondary contact requires a linked_id")
        if self.is_primary:
            self.demote(linked_id)
        else:
            self.relink(linked_id)
