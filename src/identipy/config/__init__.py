"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var, positive_int_env
from .errors import ConfigurationError
from .logging import configure_logging, get_log_level, parse_log_level
from .reconciliation import ReconciliationConfig, get_reconciliation_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "ReconciliationConfig",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_log_level",
    "get_reconciliation_config",
    "get_storage_config",
    "optional_env_var",
    "parse_log_level",
    "positive_int_env",
]
