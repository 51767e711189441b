from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from sqlalchemy import create_engine

from identipy.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyContactUnitOfWork,
    shutdown,
    startup,
)
from identipy.domain.model import LinkPrecedence
from identipy.domain.reconciliation import ConsolidatedIdentity, ReconciliationEngine
from tests.helpers.contacts import assert_flat

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


def _all_contacts(factory: Callable[[], SqlAlchemyContactUnitOfWork]) -> list:
    with factory() as uow:
        return uow.repositories.contacts.iter_all()


def test_reconciliation_scenario_against_sqlite(
    sqlite_unit_of_work: Callable[[], SqlAlchemyContactUnitOfWork],
) -> None:
    engine = ReconciliationEngine(unit_of_work_factory=sqlite_unit_of_work)

    lorraine = engine.reconcile(email="lorraine@hillvalley.edu", phone_number="123456")
    mcfly = engine.reconcile(email="mcfly@hillvalley.edu", phone_number="123456")
    george = engine.reconcile(email="george@hillvalley.edu", phone_number="919191")
    biff = engine.reconcile(email="biffsucks@hillvalley.edu", phone_number="717171")
    bridge = engine.reconcile(email="george@hillvalley.edu", phone_number="717171")

    assert lorraine.secondary_contact_ids == ()
    assert mcfly.primary_contact_id == lorraine.primary_contact_id
    assert mcfly.emails == ("lorraine@hillvalley.edu", "mcfly@hillvalley.edu")
    assert mcfly.phone_numbers == ("123456",)
    assert len(mcfly.secondary_contact_ids) == 1

    assert bridge == ConsolidatedIdentity(
        primary_contact_id=george.primary_contact_id,
        emails=("george@hillvalley.edu", "biffsucks@hillvalley.edu"),
        phone_numbers=("919191", "717171"),
        secondary_contact_ids=(biff.primary_contact_id,),
    )

    contacts = _all_contacts(sqlite_unit_of_work)
    assert len(contacts) == 4
    assert_flat(contacts)
    merged_biff = next(c for c in contacts if c.id == biff.primary_contact_id)
    assert merged_biff.link_precedence is LinkPrecedence.SECONDARY
    assert merged_biff.linked_id == george.primary_contact_id


def test_cascading_merges_stay_flat_and_idempotent(
    sqlite_unit_of_work: Callable[[], SqlAlchemyContactUnitOfWork],
) -> None:
    engine = ReconciliationEngine(unit_of_work_factory=sqlite_unit_of_work)

    first = engine.reconcile(email="a@x.com", phone_number="111")
    engine.reconcile(email="b@x.com", phone_number="222")
    engine.reconcile(email="b2@x.com", phone_number="222")
    engine.reconcile(email="c@x.com", phone_number="333")
    engine.reconcile(email="b2@x.com", phone_number="333")
    merged = engine.reconcile(email="a@x.com", phone_number="333")
    again = engine.reconcile(email="a@x.com", phone_number="333")

    contacts = _all_contacts(sqlite_unit_of_work)
    assert_flat(contacts)
    assert [c.id for c in contacts if c.is_primary] == [first.primary_contact_id]
    assert merged.primary_contact_id == first.primary_contact_id
    assert merged.emails == ("a@x.com", "b@x.com", "b2@x.com", "c@x.com")
    assert merged.phone_numbers == ("111", "222", "333")
    assert again == merged
    assert len(contacts) == 4
    assert engine.audit().ok


def test_lookup_by_secondary_matches_reconcile(
    sqlite_unit_of_work: Callable[[], SqlAlchemyContactUnitOfWork],
) -> None:
    engine = ReconciliationEngine(unit_of_work_factory=sqlite_unit_of_work)
    engine.reconcile(email="a@x.com", phone_number="111")
    identity = engine.reconcile(email="a@x.com", phone_number="222")

    assert engine.lookup(identity.secondary_contact_ids[0]) == identity


def test_concurrent_identical_observations_create_one_primary(tmp_path: Path) -> None:
    database = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'race.db'}",
        future=True,
        connect_args={"timeout": 30, "check_same_thread": False},
    )
    startup(engine=database, force=True)
    engine = ReconciliationEngine(unit_of_work_factory=SqlAlchemyContactUnitOfWork)
    workers = 8
    barrier = threading.Barrier(workers)
    results: list[ConsolidatedIdentity] = []
    errors: list[BaseException] = []
    guard = threading.Lock()

    def observe() -> None:
        barrier.wait()
        try:
            identity = engine.reconcile(email="race@x.com", phone_number="555")
        except Exception as exc:  # noqa: BLE001
            with guard:
                errors.append(exc)
            return
        with guard:
            results.append(identity)

    threads = [threading.Thread(target=observe) for _ in range(workers)]
    try:
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        contacts = _all_contacts(SqlAlchemyContactUnitOfWork)
    finally:
        shutdown()

    assert errors == []
    assert len(contacts) == 1
    assert {identity.primary_contact_id for identity in results} == {contacts[0].id}
