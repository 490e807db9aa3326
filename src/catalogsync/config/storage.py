"""Where catalogsync keeps its database."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "catalogsync"
DEFAULT_DB_FILENAME: Final[str] = "catalogsync.db"
SQLITE_DRIVER: Final[str] = "sqlite+pysqlite"


def _platform_data_home() -> Path:
    if os.name == "nt":
        local = os.getenv("LOCALAPPDATA")
        return Path(local) if local else Path.home() / "AppData" / "Local"
    xdg = os.getenv("XDG_DATA_HOME")
    return Path(xdg) if xdg else Path.home() / ".local" / "share"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Local directory holding the SQLite catalog when no database URI is given."""

    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    @property
    def database_file(self) -> Path:
        return self.data_dir.expanduser().resolve() / self.database_filename

    def sqlite_uri(self, *, create_dir: bool = True) -> str:
        path = self.database_file
        if create_dir:
            path.parent.mkdir(parents=True, exist_ok=True)
        return f"{SQLITE_DRIVER}:///{path}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def get_storage_config() -> StorageConfig:
    override = os.getenv("CATALOGSYNC_DATA_DIR")
    data_dir = Path(override) if override else _platform_data_home() / APP_DIR_NAME
    return StorageConfig(data_dir=data_dir)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise a SQLite file in the data directory."""

    uri = os.getenv("DATABASE_URI")
    if uri and uri.strip():
        return DatabaseConfig(uri=uri.strip())
    return DatabaseConfig(uri=(storage or get_storage_config()).sqlite_uri())
