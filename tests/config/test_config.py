from __future__ import annotations

import logging
from pathlib import Path  # noqa: TC003

import pytest

from catalogsync.config import (
    DEFAULT_RECONCILE_BATCH_SIZE,
    ConfigurationError,
    SyncConfig,
    configure_logging,
    get_database_config,
    get_storage_config,
    get_sync_config,
)
from catalogsync.config.storage import DEFAULT_DB_FILENAME


@pytest.fixture(autouse=True)
def clear_sync_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "CATALOGSYNC_BATCH_SIZE",
        "CATALOGSYNC_SETTLE_DELAY_SECONDS",
        "CATALOGSYNC_DEFAULT_CURRENCY",
        "CATALOGSYNC_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_sync_config_defaults() -> None:
    assert get_sync_config() == SyncConfig()
    assert get_sync_config().batch_size == DEFAULT_RECONCILE_BATCH_SIZE == 50


def test_sync_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CATALOGSYNC_BATCH_SIZE", "25")
    monkeypatch.setenv("CATALOGSYNC_SETTLE_DELAY_SECONDS", "0")
    monkeypatch.setenv("CATALOGSYNC_DEFAULT_CURRENCY", " eur ")

    config = get_sync_config()

    assert config == SyncConfig(
        batch_size=25, settle_delay_seconds=0.0, default_currency_code="EUR"
    )


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("CATALOGSYNC_BATCH_SIZE", "many"),
        ("CATALOGSYNC_BATCH_SIZE", "0"),
        ("CATALOGSYNC_SETTLE_DELAY_SECONDS", "-1"),
        ("CATALOGSYNC_SETTLE_DELAY_SECONDS", "soon"),
    ],
)
def test_invalid_sync_values_raise(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError) as exc:
        get_sync_config()

    assert name in str(exc.value)


def test_storage_prefers_explicit_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    custom = tmp_path / "custom-data"
    monkeypatch.setenv("CATALOGSYNC_DATA_DIR", str(custom))

    assert get_storage_config().database_file == custom.resolve() / DEFAULT_DB_FILENAME


def test_database_uri_uses_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite:///override.db")

    assert get_database_config().uri == "sqlite:///override.db"


def test_database_uri_creates_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("CATALOGSYNC_DATA_DIR", str(tmp_path / "data-dir"))

    uri = get_database_config().uri

    expected_path = (tmp_path / "data-dir" / DEFAULT_DB_FILENAME).resolve()
    assert uri == f"sqlite+pysqlite:///{expected_path}"
    assert expected_path.parent.exists()


def test_log_level_comes_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CATALOGSYNC_LOG_LEVEL", "debug")

    assert configure_logging(force=True) == logging.DEBUG


def test_explicit_log_level_wins_and_quietens_migrations(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CATALOGSYNC_LOG_LEVEL", "debug")

    assert configure_logging(level=logging.WARNING, force=True) == logging.WARNING
    assert logging.getLogger("alembic.runtime.migration").level == logging.WARNING


def test_unknown_log_level_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CATALOGSYNC_LOG_LEVEL", "chatty")

    with pytest.raises(ConfigurationError):
        configure_logging(force=True)
