"""Error taxonomy surfaced by contact reconciliation."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from identipy.domain.model import ContactId


class ReconciliationError(RuntimeError):
    """Base class for every failure raised while reconciling contacts."""


class InvalidInput(ReconciliationError, ValueError):  # noqa: N818
    """Raised when an observation carries no usable identifier or a wrong type."""


class NotFound(ReconciliationError, LookupError):  # noqa: N818
    """Raised when a referenced contact no longer exists."""

    def __init__(self, contact_id: ContactId) -> None:
        super().__init__(f"Contact {contact_id} not found")
        self.contact_id = contact_id


class BrokenLink(ReconciliationError):  # noqa: N818
    """Raised when root resolution meets a dangling or cyclic ``linked_id``."""

    def __init__(
        self,
        contact_id: ContactId | None,
        linked_id: ContactId | None,
        reason: str,
    ) -> None:
        super().__init__(f"Contact {contact_id} has a broken link to {linked_id}: {reason}")
        self.contact_id = contact_id
        self.linked_id = linked_id
        self.reason = reason


class StoreUnavailable(ReconciliationError):  # noqa: N818
    """Raised by store adapters when the backing store cannot be reached."""
