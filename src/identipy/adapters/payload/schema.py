"""Pydantic models describing the ``identify`` request and response payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class PayloadBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class IdentifyRequest(PayloadBaseModel):
    email: StrictStr | None = None
    phone_number: StrictStr | None = Field(default=None, alias="phoneNumber")


class ContactPayload(PayloadBaseModel):
    primary_contact_id: int = Field(alias="primaryContactId")
    emails: list[str] = Field(default_factory=list[str])
    phone_numbers: list[str] = Field(default_factory=list[str], alias="phoneNumbers")
    secondary_contact_ids: list[int] = Field(
        default_factory=list[int],
        alias="secondaryContactIds",
    )


class IdentifyResponse(PayloadBaseModel):
    contact: ContactPayload
