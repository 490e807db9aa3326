"""Distribution and reconciliation defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .env import optional_env_float, optional_env_int

DEFAULT_RECONCILE_BATCH_SIZE = 50
DEFAULT_SETTLE_DELAY_SECONDS = 1.0
DEFAULT_CURRENCY_CODE = "USD"


@dataclass(frozen=True, slots=True)
class SyncConfig:
    batch_size: int = DEFAULT_RECONCILE_BATCH_SIZE
    settle_delay_seconds: float = DEFAULT_SETTLE_DELAY_SECONDS
    default_currency_code: str = DEFAULT_CURRENCY_CODE


def get_sync_config() -> SyncConfig:
    currency = (os.getenv("CATALOGSYNC_DEFAULT_CURRENCY") or DEFAULT_CURRENCY_CODE).strip()
    return SyncConfig(
        batch_size=optional_env_int(
            "CATALOGSYNC_BATCH_SIZE", DEFAULT_RECONCILE_BATCH_SIZE, minimum=1
        ),
        settle_delay_seconds=optional_env_float(
            "CATALOGSYNC_SETTLE_DELAY_SECONDS", DEFAULT_SETTLE_DELAY_SECONDS
        ),
        default_currency_code=currency.upper() or DEFAULT_CURRENCY_CODE,
    )
