"""Read-only integrity checks over the stored link graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable

    from identipy.domain.model import Contact, ContactId


class ViolationKind(StrEnum):
    PRIMARY_WITH_LINK = "primary_with_link"
    SECONDARY_WITHOUT_LINK = "secondary_without_link"
    SELF_LINK = "self_link"
    DANGLING_LINK = "dangling_link"
    CHAINED_SECONDARY = "chained_secondary"
    OLDER_THAN_PRIMARY = "older_than_primary"


@dataclass(frozen=True, slots=True)
class IntegrityViolation:
    contact_id: ContactId | None
    kind: ViolationKind
    linked_id: ContactId | None = None


@dataclass(slots=True)
class IntegrityReport:
    """Outcome of an integrity scan. Nothing is repaired."""

    checked: int = 0
    violations: list[IntegrityViolation] = field(default_factory=list["IntegrityViolation"])

    @property
    def ok(self) -> bool:
        return not self.violations

    def to_payload(self) -> dict[str, Any]:
        return {
            "checked": self.checked,
            "ok": self.ok,
            "violations": [
                {"contactId": v.contact_id, "kind": str(v.kind), "linkedId": v.linked_id}
                for v in self.violations
            ],
        }


def audit_link_graph(contacts: Iterable[Contact]) -> IntegrityReport:
    """Check precedence/link consistency and flatness for every live contact."""

    by_id = {contact.id: contact for contact in contacts}
    report = IntegrityReport(checked=len(by_id))

    for contact in by_id.values():
        kind = _violation_for(contact, by_id)
        if kind is not None:
            report.violations.append(
                IntegrityViolation(contact_id=contact.id, kind=kind, linked_id=contact.linked_id)
            )
    return report


def _violation_for(
    contact: Contact,
    by_id: dict[ContactId | None, Contact],
) -> ViolationKind | None:
    if contact.is_primary:
        return ViolationKind.PRIMARY_WITH_LINK if contact.linked_id is not None else None
    if contact.linked_id is None:
        return ViolationKind.SECONDARY_WITHOUT_LINK
    if contact.linked_id == contact.id:
        return ViolationKind.SELF_LINK
    parent = by_id.get(contact.linked_id)
    if parent is None:
        return ViolationKind.DANGLING_LINK
    if not parent.is_primary:
        return ViolationKind.CHAINED_SECONDARY
    if contact.precedence_key < parent.precedence_key:
        return ViolationKind.OLDER_THAN_PRIMARY
    return None
