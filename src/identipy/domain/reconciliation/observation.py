"""Observation parsing: the (email, phone number) pair submitted for reconciliation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .errors import InvalidInput

if TYPE_CHECKING:
    from identipy.domain.model import EmailAddress, PhoneNumber


@dataclass(frozen=True, slots=True)
class Observation:
    """Trimmed identifiers of one submission. At least one field is set."""

    email: EmailAddress | None = None
    phone_number: PhoneNumber | None = None

    def __post_init__(self) -> None:
        if not self.email and not self.phone_number:
            raise InvalidInput("At least one of email or phoneNumber must be provided")

    @classmethod
    def parse(cls, email: object = None, phone_number: object = None) -> Observation:
        """Validate raw identifiers, trimming whitespace and treating blanks as absent."""

        return cls(
            email=_clean(email, field_name="email"),
            phone_number=_clean(phone_number, field_name="phoneNumber"),
        )

    @property
    def lock_keys(self) -> tuple[str, ...]:
        keys: list[str] = []
        if self.email:
            keys.append(f"email:{self.email}")
        if self.phone_number:
            keys.append(f"phone:{self.phone_number}")
        return tuple(sorted(keys))


def _clean(value: object, *, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidInput(f"{field_name} must be a string")
    stripped = value.strip()
    return stripped or None
