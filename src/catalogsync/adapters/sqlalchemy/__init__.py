"""SQLAlchemy adapter package for catalogsync."""

from __future__ import annotations

from .mappings import (
    CLASS_BY_ENTITY_TYPE,
    create_all_tables,
    mapper_registry,
    start_mappers,
)
from .repositories import SqlAlchemyCatalogStore, SqlAlchemyChannelDirectory

__all__ = [
    "CLASS_BY_ENTITY_TYPE",
    "SqlAlchemyCatalogStore",
    "SqlAlchemyChannelDirectory",
    "create_all_tables",
    "mapper_registry",
    "start_mappers",
]
