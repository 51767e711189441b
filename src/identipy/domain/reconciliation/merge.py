"""Merge cascade: collapse several identities into the one owned by the true primary."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from identipy.domain.model import LinkPrecedence

if TYPE_CHECKING:
    from collections.abc import Iterable

    from identipy.domain.model import Contact, ContactId
    from identipy.domain.ports import ContactRepository

log = logging.getLogger(__name__)


@dataclass(slots=True)
class MergeResult:
    """Ids demoted to secondary and the number of secondaries repointed."""

    demoted_ids: list[ContactId] = field(default_factory=list["ContactId"])
    relinked: int = 0

    @property
    def merged(self) -> bool:
        return bool(self.demoted_ids)


def merge_identities(
    primary: Contact,
    others: Iterable[Contact],
    contacts: ContactRepository,
) -> MergeResult:
    """Demote every root in ``others`` under ``primary`` and flatten their secondaries.

    Repointing the former secondaries directly at ``primary`` keeps every chain one
    hop long.
    """

    if primary.id is None:
        raise ValueError("Primary contact must be persisted before merging")

    result = MergeResult()
    for other in others:
        if other.id is None or other.id == primary.id:
            continue
        contacts.update(
            other.id,
            link_precedence=LinkPrecedence.SECONDARY,
            linked_id=primary.id,
        )
        moved = contacts.relink_all(other.id, primary.id)
        log.debug(
            "Merged contact %s into primary %s (%s secondaries repointed)",
            other.id,
            primary.id,
            moved,
        )
        result.demoted_ids.append(other.id)
        result.relinked += moved
    return result
