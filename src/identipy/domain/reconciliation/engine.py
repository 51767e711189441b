"""Orchestrator for contact reconciliation.

One ``reconcile`` call runs inside a single unit of work:

1) parse the observation and lock its identifiers
2) match contacts by email or phone number
3) resolve the distinct root primaries and pick the oldest
4) merge every other root into it, flattening their secondaries
5) record a new alias when the observation carries unseen values
6) render the consolidated identity and commit

Any failure before the commit rolls the whole call back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from identipy.domain.model import LinkPrecedence

from .alias import needs_alias
from .audit import IntegrityReport, audit_link_graph
from .consolidate import ConsolidatedIdentity, consolidate
from .errors import NotFound
from .merge import merge_identities
from .observation import Observation
from .resolve import DEFAULT_MAX_LINK_DEPTH, choose_primary, resolve_root, resolve_roots

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from identipy.domain.model import Contact, ContactId
    from identipy.domain.ports import ContactRepository, ContactUnitOfWork

    type UnitOfWorkFactory = Callable[[], ContactUnitOfWork]

log = logging.getLogger(__name__)


@dataclass(slots=True)
class ReconciliationEngine:
    """Reconcile contact observations against the store behind ``unit_of_work_factory``."""

    unit_of_work_factory: UnitOfWorkFactory
    max_link_depth: int = DEFAULT_MAX_LINK_DEPTH

    def reconcile(
        self,
        email: object = None,
        phone_number: object = None,
    ) -> ConsolidatedIdentity:
        """Match, merge and extend the identity behind ``email`` / ``phone_number``."""

        return self.reconcile_observation(Observation.parse(email, phone_number))

    def reconcile_observation(self, observation: Observation) -> ConsolidatedIdentity:
        with self.unit_of_work_factory() as uow:
            uow.lock_identifiers(observation.lock_keys)
            contacts = uow.repositories.contacts

            candidates = contacts.find_by_email_or_phone(
                observation.email,
                observation.phone_number,
            )
            if not candidates:
                created = contacts.create(
                    email=observation.email,
                    phone_number=observation.phone_number,
                    link_precedence=LinkPrecedence.PRIMARY,
                )
                identity = consolidate(created, ())
                uow.commit()
                log.info("Created primary contact %s", created.id)
                return identity

            roots = resolve_roots(candidates, contacts, max_depth=self.max_link_depth)
            roots = self._lock_roots(uow, roots)
            primary, others = choose_primary(roots)
            primary_id = _persisted_id(primary)
            merged = merge_identities(primary, others, contacts)
            if merged.merged:
                log.info(
                    "Merged %s identities into primary %s (%s secondaries repointed)",
                    len(merged.demoted_ids),
                    primary_id,
                    merged.relinked,
                )

            primary, secondaries = _load_identity(contacts, primary_id)
            if needs_alias(observation, (primary, *secondaries)):
                alias = contacts.create(
                    email=observation.email,
                    phone_number=observation.phone_number,
                    link_precedence=LinkPrecedence.SECONDARY,
                    linked_id=primary_id,
                )
                log.info("Added secondary contact %s to primary %s", alias.id, primary_id)
                primary, secondaries = _load_identity(contacts, primary_id)

            identity = consolidate(primary, secondaries)
            uow.commit()
        return identity

    def _lock_roots(self, uow: ContactUnitOfWork, roots: list[Contact]) -> list[Contact]:
        """Lock the roots, then re-read them until no concurrent merge has moved one.

        Roots read before the lock was granted may have been demoted meanwhile.
        """
        locked: set[ContactId | None] = set()
        while True:
            wanted = {root.id for root in roots}
            if not wanted <= locked:
                uow.lock_identifiers(_root_keys(roots))
                locked |= wanted
            fresh = resolve_roots(
                (_reload(uow.repositories.contacts, root) for root in roots),
                uow.repositories.contacts,
                max_depth=self.max_link_depth,
            )
            if {root.id for root in fresh} == wanted:
                return fresh
            log.debug(
                "Roots moved while locking: %s -> %s",
                sorted(wanted),
                [root.id for root in fresh],
            )
            roots = fresh

    def lookup(self, contact_id: ContactId) -> ConsolidatedIdentity:
        """Return the consolidated identity containing ``contact_id`` without writing."""

        with self.unit_of_work_factory() as uow:
            contacts = uow.repositories.contacts
            contact = contacts.get(contact_id)
            if contact is None:
                raise NotFound(contact_id)
            root = resolve_root(contact, contacts, max_depth=self.max_link_depth)
            primary, secondaries = _load_identity(contacts, _persisted_id(root))
            return consolidate(primary, secondaries)

    def audit(self) -> IntegrityReport:
        """Scan the store for link-graph violations. Never repairs."""

        with self.unit_of_work_factory() as uow:
            report = audit_link_graph(uow.repositories.contacts.iter_all())
        if not report.ok:
            log.warning("Integrity audit found %s violations", len(report.violations))
        return report


def _load_identity(
    contacts: ContactRepository,
    primary_id: ContactId,
) -> tuple[Contact, list[Contact]]:
    primary = contacts.get(primary_id)
    if primary is None:
        raise NotFound(primary_id)
    return primary, contacts.find_secondaries_of(primary_id)


def _reload(contacts: ContactRepository, contact: Contact) -> Contact:
    fresh = contacts.get(_persisted_id(contact))
    if fresh is None:
        raise NotFound(_persisted_id(contact))
    return fresh


def _persisted_id(contact: Contact) -> ContactId:
    if contact.id is None:
        raise ValueError("Contact has not been persisted")
    return contact.id


def _root_keys(roots: Iterable[Contact]) -> tuple[str, ...]:
    return tuple(sorted(f"contact:{root.id}" for root in roots))
