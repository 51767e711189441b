"""Domain primitives: scalar aliases for contact identifiers.

Scalar aliases may be promoted to proper value objects later without changing imports.
"""

from __future__ import annotations

type ContactId = int
type EmailAddress = str
type PhoneNumber = str
