"""Enumerations shared across the domain model."""

from __future__ import annotations

from enum import StrEnum


class EntityType(StrEnum):
    CHANNEL = "channel"
    PRODUCT = "product"
    VARIANT = "variant"
    PRICE = "price"
    STOCK_LOCATION = "stock_location"
    STOCK_LEVEL = "stock_level"


class ChangeType(StrEnum):
    """Kinds of catalog mutation a variant notification can carry."""

    CREATED = "created"
    UPDATED = "updated"


class ApiType(StrEnum):
    ADMIN = "admin"
    SHOP = "shop"
    SYSTEM = "system"
