"""Logging setup for the catalogsync entry points."""

from __future__ import annotations

import logging
import os
from typing import Final

from .errors import ConfigurationError

LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# chatty at INFO; only interesting when debugging
_QUIET_LOGGERS: Final[tuple[str, ...]] = ("alembic.runtime.migration", "sqlalchemy.engine")


def _env_level(default: int) -> int:
    raw = os.getenv("CATALOGSYNC_LOG_LEVEL")
    if raw is None or not raw.strip():
        return default
    level = logging.getLevelName(raw.strip().upper())
    if not isinstance(level, int):
        raise ConfigurationError(f"CATALOGSYNC_LOG_LEVEL must be a level name, got {raw!r}")
    return level


def configure_logging(*, level: int | None = None, force: bool = False) -> int:
    """Configure the root logger and return the level in effect.

    An explicit ``level`` wins over ``CATALOGSYNC_LOG_LEVEL``; INFO otherwise.
    """

    resolved = level if level is not None else _env_level(logging.INFO)
    logging.basicConfig(level=resolved, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    if resolved > logging.DEBUG:
        for name in _QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
    return resolved
