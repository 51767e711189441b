"""Alias decision: does an observation add anything the identity does not know yet?"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from identipy.domain.model import Contact

    from .observation import Observation


def needs_alias(observation: Observation, members: Iterable[Contact]) -> bool:
    """Return whether ``observation`` carries an email or phone unseen among ``members``.

    A single new field is enough; the alias row then carries both supplied fields.
    """

    known_emails: set[str] = set()
    known_phones: set[str] = set()
    for member in members:
        if member.email:
            known_emails.add(member.email)
        if member.phone_number:
            known_phones.add(member.phone_number)

    new_email = bool(observation.email) and observation.email not in known_emails
    new_phone = bool(observation.phone_number) and observation.phone_number not in known_phones
    return new_email or new_phone
