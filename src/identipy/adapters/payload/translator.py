"""Translate between ``identify`` JSON payloads and reconciliation domain objects."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import ValidationError

from identipy.domain.reconciliation import InvalidInput, Observation

from .schema import ContactPayload, IdentifyRequest, IdentifyResponse

if TYPE_CHECKING:
    from identipy.domain.reconciliation import ConsolidatedIdentity


def parse_identify_request(raw: str | bytes) -> Observation:
    """Validate a JSON request body and turn it into an observation."""

    try:
        request = IdentifyRequest.model_validate_json(raw)
    except ValidationError as exc:
        raise InvalidInput(_describe(exc)) from exc
    return Observation.parse(request.email, request.phone_number)


def identity_to_response(identity: ConsolidatedIdentity) -> IdentifyResponse:
    return IdentifyResponse(
        contact=ContactPayload(
            primary_contact_id=identity.primary_contact_id,
            emails=list(identity.emails),
            phone_numbers=list(identity.phone_numbers),
            secondary_contact_ids=list(identity.secondary_contact_ids),
        )
    )


def render_identity(identity: ConsolidatedIdentity, *, indent: int | None = None) -> str:
    return identity_to_response(identity).model_dump_json(by_alias=True, indent=indent)


def _describe(exc: ValidationError) -> str:
    errors = exc.errors(include_url=False)
    if not errors:
        return "Invalid request payload"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "invalid value")
    if not location:
        return f"Invalid request payload: {message}"
    return f"{location}: {message}"
