"""JSON payload adapter for the ``identify`` operation."""

from __future__ import annotations

from .schema import ContactPayload, IdentifyRequest, IdentifyResponse
from .translator import identity_to_response, parse_identify_request, render_identity

__all__ = [
    "ContactPayload",
    "IdentifyRequest",
    "IdentifyResponse",
    "identity_to_response",
    "parse_identify_request",
    "render_identity",
]
