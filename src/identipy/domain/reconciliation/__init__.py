"""Contact reconciliation core.

Given a new (email, phone number) observation, decide which known identity it
belongs to, merge identities it reveals to be the same person, record new
aliases and render the consolidated view.
"""

from __future__ import annotations

from .audit import IntegrityReport, IntegrityViolation, ViolationKind, audit_link_graph
from .consolidate import ConsolidatedIdentity, consolidate
from .engine import ReconciliationEngine
from .errors import (
    BrokenLink,
    InvalidInput,
    NotFound,
    ReconciliationError,
    StoreUnavailable,
)
from .observation import Observation

__all__ = [
    "BrokenLink",
    "ConsolidatedIdentity",
    "IntegrityReport",
    "IntegrityViolation",
    "InvalidInput",
    "NotFound",
    "Observation",
    "ReconciliationEngine",
    "ReconciliationError",
    "StoreUnavailable",
    "ViolationKind",
    "audit_link_graph",
    "consolidate",
]
