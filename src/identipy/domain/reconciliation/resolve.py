"""Root resolution and canonical primary selection.

Responsibilities of this stage:
- map every matched contact to the primary at the top of its ``linked_id`` chain
- collect the distinct roots in first-seen order
- pick the true primary: oldest ``created_at``, ties broken by lowest id

Steady-state chains are one hop long because merges flatten eagerly. Longer
chains are legacy data; they are followed but reported.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .errors import BrokenLink

if TYPE_CHECKING:
    from collections.abc import Iterable

    from identipy.domain.model import Contact, ContactId
    from identipy.domain.ports import ContactRepository

log = logging.getLogger(__name__)

DEFAULT_MAX_LINK_DEPTH = 32


def resolve_root(
    contact: Contact,
    contacts: ContactRepository,
    *,
    max_depth: int = DEFAULT_MAX_LINK_DEPTH,
) -> Contact:
    """Follow ``linked_id`` until a contact without a parent is reached."""

    if contact.is_primary:
        return contact

    current = contact
    seen: set[ContactId | None] = {current.id}
    hops = 0
    while current.linked_id is not None:
        if hops >= max_depth:
            log.error("Link chain from contact %s exceeds %s hops", contact.id, max_depth)
            raise BrokenLink(current.id, current.linked_id, f"chain longer than {max_depth} hops")
        parent = contacts.get(current.linked_id)
        if parent is None:
            log.error("Contact %s links to missing contact %s", current.id, current.linked_id)
            raise BrokenLink(current.id, current.linked_id, "parent not found")
        if parent.id in seen:
            log.error("Contact %s is part of a link cycle", contact.id)
            raise BrokenLink(current.id, current.linked_id, "link cycle")
        seen.add(parent.id)
        current = parent
        hops += 1

    if hops > 1:
        log.warning(
            "Contact %s reached primary %s through %s hops; chain is not flat",
            contact.id,
            current.id,
            hops,
        )
    return current


def resolve_roots(
    candidates: Iterable[Contact],
    contacts: ContactRepository,
    *,
    max_depth: int = DEFAULT_MAX_LINK_DEPTH,
) -> list[Contact]:
    """Return the distinct root primaries of ``candidates`` in first-seen order."""

    roots: dict[ContactId | None, Contact] = {}
    for candidate in candidates:
        root = resolve_root(candidate, contacts, max_depth=max_depth)
        roots.setdefault(root.id, root)
    return list(roots.values())


def choose_primary(roots: Iterable[Contact]) -> tuple[Contact, list[Contact]]:
    """Split ``roots`` into the true primary and the roots that must be demoted."""

    ordered = sorted(roots, key=lambda root: root.precedence_key)
    if not ordered:
        raise ValueError("choose_primary requires at least one root")
    return ordered[0], ordered[1:]
