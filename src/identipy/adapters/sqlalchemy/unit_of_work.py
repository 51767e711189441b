"""SQLAlchemy-backed unit of work for contact reconciliation.

Reconciliations touching the same identifiers are serialised inside the store
transaction:

- SQLite opens every transaction with ``BEGIN IMMEDIATE``, which holds the
  database write lock until commit or rollback.
- PostgreSQL takes one ``pg_advisory_xact_lock`` per identifier key; the locks
  are released by the database when the transaction ends.
"""

from __future__ import annotations

import hashlib
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker

from identipy.adapters.sqlalchemy.mappings import start_mappers
from identipy.adapters.sqlalchemy.migrations import upgrade_head
from identipy.adapters.sqlalchemy.repositories import SqlAlchemyContactRepository, store_errors
from identipy.config import get_database_config
from identipy.domain.ports.unit_of_work import ContactRepositories, RepositoryCollection

if TYPE_CHECKING:
    from collections.abc import Iterable
    from types import TracebackType

    from sqlalchemy.engine import Connection, Engine

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call identipy.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Initialise the SQLAlchemy engine, schema, and session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_engine(
        database_uri or get_database_config().uri,
        future=True,
    )
    start_mappers()
    install_transaction_hooks(resolved_engine)
    upgrade_head(engine=resolved_engine)

    _STATE.engine = resolved_engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    """Return whether the adapter has been initialised."""

    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


def install_transaction_hooks(engine: Engine) -> None:
    """Make SQLite transactions take the write lock up front."""

    if engine.dialect.name != "sqlite":
        return
    if event.contains(engine, "begin", _begin_immediate):
        return
    event.listen(engine, "connect", _disable_pysqlite_transaction_handling)
    event.listen(engine, "begin", _begin_immediate)


def _disable_pysqlite_transaction_handling(dbapi_connection: Any, _record: object) -> None:
    # pysqlite would otherwise emit its own deferred BEGIN
    dbapi_connection.isolation_level = None


def _begin_immediate(connection: Connection) -> None:
    connection.exec_driver_sql("BEGIN IMMEDIATE")


def advisory_lock_key(key: str) -> int:
    """Map an identifier key onto the signed 64-bit space of PostgreSQL advisory locks."""

    digest = hashlib.blake2b(key.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big", signed=True)


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """Generic SQLAlchemy unit of work with pluggable repository collections."""

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self._session: Session | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        self.session = self.session_factory()
        self._repositories = self._build_repositories(self.session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self.session = None
        return False

    def commit(self) -> None:
        with store_errors("commit"):
            self.session.commit()

    def rollback(self) -> None:
        with store_errors("rollback"):
            self.session.rollback()

    @property
    def repositories(self) -> TRepositories:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


class SqlAlchemyContactUnitOfWork(BaseSqlAlchemyUnitOfWork[ContactRepositories]):
    """Unit of work managing one SQLAlchemy session per reconciliation."""

    def __enter__(self) -> SqlAlchemyContactUnitOfWork:
        super().__enter__()
        return self

    def _build_repositories(self, session: Session) -> ContactRepositories:
        return ContactRepositories(contacts=SqlAlchemyContactRepository(session))

    def lock_identifiers(self, keys: Iterable[str]) -> None:
        ordered = sorted(set(keys))
        if not ordered:
            return
        dialect = self.session.get_bind().dialect.name
        with store_errors("lock_identifiers"):
            if dialect == "postgresql":
                for key in ordered:
                    self.session.execute(
                        text("SELECT pg_advisory_xact_lock(:key)"),
                        {"key": advisory_lock_key(key)},
                    )
            else:
                # starting the transaction is enough once BEGIN IMMEDIATE is installed
                self.session.connection()
        log.debug("Locked %s on %s", ", ".join(ordered), dialect)


if TYPE_CHECKING:
    from identipy.domain.ports.unit_of_work import ContactUnitOfWork

    _uow_check: ContactUnitOfWork = SqlAlchemyContactUnitOfWork()
