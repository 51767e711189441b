"""Reconciliation defaults."""

from __future__ import annotations

from dataclasses import dataclass

from .env import positive_int_env

DEFAULT_MAX_LINK_DEPTH = 32
DEFAULT_RECONCILE_ATTEMPTS = 3


@dataclass(frozen=True, slots=True)
class ReconciliationConfig:
    max_link_depth: int = DEFAULT_MAX_LINK_DEPTH
    attempts: int = DEFAULT_RECONCILE_ATTEMPTS


def get_reconciliation_config() -> ReconciliationConfig:
    return ReconciliationConfig(
        max_link_depth=positive_int_env("IDENTIPY_MAX_LINK_DEPTH", DEFAULT_MAX_LINK_DEPTH),
        attempts=positive_int_env("IDENTIPY_RECONCILE_ATTEMPTS", DEFAULT_RECONCILE_ATTEMPTS),
    )
