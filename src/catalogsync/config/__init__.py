"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_float, optional_env_int
from .errors import ConfigurationError
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .sync import (
    DEFAULT_CURRENCY_CODE,
    DEFAULT_RECONCILE_BATCH_SIZE,
    DEFAULT_SETTLE_DELAY_SECONDS,
    SyncConfig,
    get_sync_config,
)

__all__ = [
    "DEFAULT_CURRENCY_CODE",
    "DEFAULT_RECONCILE_BATCH_SIZE",
    "DEFAULT_SETTLE_DELAY_SECONDS",
    "ConfigurationError",
    "DatabaseConfig",
    "StorageConfig",
    "SyncConfig",
    "configure_logging",
    "get_database_config",
    "get_storage_config",
    "get_sync_config",
    "optional_env_float",
    "optional_env_int",
]
