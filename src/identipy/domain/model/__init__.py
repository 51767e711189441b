"""Public domain model surface."""

from __future__ import annotations

from identipy.domain.model.contact import Contact, utcnow
from identipy.domain.model.enums import LinkPrecedence
from identipy.domain.model.primitives import ContactId, EmailAddress, PhoneNumber

__all__ = [
    "Contact",
    "ContactId",
    "EmailAddress",
    "LinkPrecedence",
    "PhoneNumber",
    "utcnow",
]
