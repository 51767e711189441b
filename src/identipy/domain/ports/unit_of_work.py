"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable
    from types import TracebackType

    from identipy.domain.ports.persistence import ContactRepository


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection."""

    @property
    def repositories(self) -> TRepositories: ...  # the repo list itself should be immutable

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class ContactRepositories(RepositoryCollection):
    """Repositories required to reconcile contacts."""

    contacts: ContactRepository


@runtime_checkable
class ContactUnitOfWork(UnitOfWork[ContactRepositories], Protocol):
    """Unit of work able to serialise reconciliations touching the same identifiers."""

    def __enter__(self) -> ContactUnitOfWork: ...

    def lock_identifiers(self, keys: Iterable[str]) -> None:
        """Hold exclusive locks on ``keys`` until the transaction ends."""
        ...
