"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from identipy.adapters.payload import parse_identify_request, render_identity
from identipy.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyContactUnitOfWork,
    is_started,
    startup,
)
from identipy.config import ReconciliationConfig, get_reconciliation_config
from identipy.domain.ports.unit_of_work import ContactUnitOfWork
from identipy.domain.reconciliation import NotFound, Observation, ReconciliationEngine

if TYPE_CHECKING:
    from identipy.domain.model import ContactId
    from identipy.domain.reconciliation import ConsolidatedIdentity, IntegrityReport

UnitOfWorkFactory = Callable[[], ContactUnitOfWork]


log = getLogger(__name__)


def build_engine(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: ReconciliationConfig | None = None,
) -> ReconciliationEngine:
    """Wire the reconciliation engine to the configured store."""

    effective_config = config or get_reconciliation_config()
    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemyContactUnitOfWork
    return ReconciliationEngine(
        unit_of_work_factory=unit_of_work_factory,
        max_link_depth=effective_config.max_link_depth,
    )


def identify_contact(
    email: object = None,
    phone_number: object = None,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: ReconciliationConfig | None = None,
) -> ConsolidatedIdentity:
    """Reconcile one (email, phone number) observation and return the identity."""

    observation = Observation.parse(email, phone_number)
    return _reconcile_with_retry(
        observation,
        unit_of_work_factory=unit_of_work_factory,
        config=config or get_reconciliation_config(),
    )


def identify_payload(
    raw: str | bytes,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: ReconciliationConfig | None = None,
    indent: int | None = None,
) -> str:
    """JSON request body in, JSON response body out."""

    observation = parse_identify_request(raw)
    identity = _reconcile_with_retry(
        observation,
        unit_of_work_factory=unit_of_work_factory,
        config=config or get_reconciliation_config(),
    )
    return render_identity(identity, indent=indent)


def lookup_contact(
    contact_id: ContactId,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: ReconciliationConfig | None = None,
) -> ConsolidatedIdentity:
    """Return the consolidated identity containing ``contact_id``."""

    engine = build_engine(unit_of_work_factory=unit_of_work_factory, config=config)
    return engine.lookup(contact_id)


def audit_contacts(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: ReconciliationConfig | None = None,
) -> IntegrityReport:
    """Scan stored contacts for link-graph violations."""

    engine = build_engine(unit_of_work_factory=unit_of_work_factory, config=config)
    return engine.audit()


def _reconcile_with_retry(
    observation: Observation,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None,
    config: ReconciliationConfig,
) -> ConsolidatedIdentity:
    engine = build_engine(unit_of_work_factory=unit_of_work_factory, config=config)
    attempt = 1
    while True:
        try:
            return engine.reconcile_observation(observation)
        except NotFound as exc:
            if attempt >= config.attempts:
                raise
            log.warning(
                "Reconcile attempt %s/%s lost contact %s, retrying",
                attempt,
                config.attempts,
                exc.contact_id,
            )
            attempt += 1
