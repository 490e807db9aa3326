"""Public domain model surface."""

from __future__ import annotations

from catalogsync.domain.model.catalog import Price, Product, StockLevel, StockLocation, Variant
from catalogsync.domain.model.channel import DEFAULT_CHANNEL_CODE, Channel
from catalogsync.domain.model.entity import Entity, new_id
from catalogsync.domain.model.enums import ApiType, ChangeType, EntityType

__all__ = [  # noqa: RUF022
    # base
    "Entity",
    "new_id",
    # channels
    "Channel",
    "DEFAULT_CHANNEL_CODE",
    # catalog
    "Product",
    "Variant",
    "Price",
    "StockLocation",
    "StockLevel",
    # enums
    "ApiType",
    "ChangeType",
    "EntityType",
]
