"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, cast

from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError

from identipy.adapters.sqlalchemy.mappings import contact_table
from identipy.domain.model import Contact, LinkPrecedence, utcnow
from identipy.domain.reconciliation.errors import NotFound, StoreUnavailable

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import ColumnElement, Select
    from sqlalchemy.orm import InstrumentedAttribute, Session

    from identipy.domain.model import ContactId, EmailAddress, PhoneNumber


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Translate SQLAlchemy failures into ``StoreUnavailable``."""

    try:
        yield
    except SQLAlchemyError as exc:
        raise StoreUnavailable(f"Contact store failed during {operation}: {exc}") from exc


class SqlAlchemyContactRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def find_by_email_or_phone(
        self,
        email: EmailAddress | None,
        phone_number: PhoneNumber | None,
    ) -> list[Contact]:
        clauses: list[ColumnElement[bool]] = []
        if email:
            clauses.append(contact_table.c.email == email)
        if phone_number:
            clauses.append(contact_table.c.phone_number == phone_number)
        if not clauses:
            return []
        stmt = self._live().where(or_(*clauses))
        with store_errors("find_by_email_or_phone"):
            return list(self.session.execute(stmt).scalars())

    def get(self, contact_id: ContactId) -> Contact | None:
        stmt = self._live().where(contact_table.c.id == contact_id)
        with store_errors("get"):
            return self.session.execute(stmt).scalar_one_or_none()

    def find_secondaries_of(self, primary_id: ContactId) -> list[Contact]:
        stmt = self._live().where(contact_table.c.linked_id == primary_id)
        with store_errors("find_secondaries_of"):
            return list(self.session.execute(stmt).scalars())

    def create(
        self,
        *,
        email: EmailAddress | None,
        phone_number: PhoneNumber | None,
        link_precedence: LinkPrecedence,
        linked_id: ContactId | None = None,
    ) -> Contact:
        contact = Contact(
            email=email,
            phone_number=phone_number,
            link_precedence=link_precedence,
            linked_id=linked_id,
        )
        with store_errors("create"):
            self.session.add(contact)
            self.session.flush()
        return contact

    def update(
        self,
        contact_id: ContactId,
        *,
        link_precedence: LinkPrecedence,
        linked_id: ContactId | None,
    ) -> Contact:
        contact = self.get(contact_id)
        if contact is None:
            raise NotFound(contact_id)
        contact.link_to(link_precedence, linked_id)
        with store_errors("update"):
            self.session.flush()
        return contact

    def relink_all(self, old_linked_id: ContactId, new_linked_id: ContactId) -> int:
        linked_id_column = cast("InstrumentedAttribute[int | None]", Contact.linked_id)
        stmt = (
            update(Contact)
            .where(linked_id_column == old_linked_id)
            .values(linked_id=new_linked_id, updated_at=utcnow())
            .execution_options(synchronize_session="evaluate")
        )
        with store_errors("relink_all"):
            result = self.session.execute(stmt)
        return cast(int, getattr(result, "rowcount", 0))

    def iter_all(self) -> list[Contact]:
        stmt = (
            select(Contact)
            .where(contact_table.c.deleted_at.is_(None))
            .order_by(contact_table.c.id)
        )
        with store_errors("iter_all"):
            return list(self.session.execute(stmt).scalars())

    @staticmethod
    def _live() -> Select[tuple[Contact]]:
        return (
            select(Contact)
            .where(contact_table.c.deleted_at.is_(None))
            .order_by(contact_table.c.created_at, contact_table.c.id)
            .execution_options(populate_existing=True)
        )


if TYPE_CHECKING:
    from identipy.domain.ports.persistence import ContactRepository

    _session_stub = cast("Session", object())
    _repo_check: ContactRepository = SqlAlchemyContactRepository(_session_stub)
