"""Shared logging helpers for identipy."""

from __future__ import annotations

import logging

from .env import optional_env_var
from .errors import ConfigurationError

LOG_LEVEL_ENV = "IDENTIPY_LOG_LEVEL"


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Initialise the root logger once with sensible defaults.

    Parameters mirror ``logging.basicConfig`` with a simplified contract: the level
    defaults to ``IDENTIPY_LOG_LEVEL`` (INFO when unset) and a terse format suitable
    for CLI output. Pass ``force=True`` to reconfigure during tests or specialised
    entry points.
    """

    logging.basicConfig(
        level=level if level is not None else get_log_level(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )


def get_log_level() -> int:
    raw = optional_env_var(LOG_LEVEL_ENV)
    if raw is None:
        return logging.INFO
    return parse_log_level(raw)


def parse_log_level(value: str) -> int:
    level = logging.getLevelNamesMapping().get(value.strip().upper())
    if level is None:
        raise ConfigurationError(f"Unknown log level: {value}")
    return level
