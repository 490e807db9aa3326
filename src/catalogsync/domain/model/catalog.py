"""Catalog entities distributed across channels."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from catalogsync.domain.model.entity import Entity
from catalogsync.domain.model.enums import EntityType

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from catalogsync.domain.model.channel import Channel


@dataclass(eq=False, kw_only=True)
class Product(Entity):
    """A catalog item.

    ``channels`` is the parent subscription set: every channel that subscribed
    to see this product at all. It is maintained by administrative
    subscribe/unsubscribe actions and only read by the distribution engine.
    """

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.PRODUCT

    name: str
    owner_code: str | None = None
    deleted_at: datetime | None = None

    channels: list[Channel] = field(default_factory=list["Channel"], repr=False)
    variants: list[Variant] = field(default_factory=list["Variant"], repr=False)

    def is_subscribed(self, channel: Channel) -> bool:
        return any(subscribed.id == channel.id for subscribed in self.channels)


@dataclass(eq=False, kw_only=True)
class Variant(Entity):
    """A purchasable variant; ``channels`` is its materialized assignment set."""

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.VARIANT

    sku: str
    product: Product | None = field(default=None, repr=False)
    deleted_at: datetime | None = None

    channels: list[Channel] = field(default_factory=list["Channel"], repr=False)

    def __post_init__(self) -> None:
        if self.product is not None and self not in self.product.variants:
            self.product.variants.append(self)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def is_assigned_to(self, channel: Channel) -> bool:
        return any(assigned.id == channel.id for assigned in self.channels)


@dataclass(eq=False, kw_only=True)
class Price(Entity):
    """Price of one variant in one channel, in minor currency units."""

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.PRICE

    variant_id: UUID
    channel_id: UUID
    price: int
    currency_code: str


@dataclass(eq=False, kw_only=True)
class StockLocation(Entity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.STOCK_LOCATION

    name: str
    channels: list[Channel] = field(default_factory=list["Channel"], repr=False)


@dataclass(eq=False, kw_only=True)
class StockLevel(Entity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.STOCK_LEVEL

    variant_id: UUID
    stock_location_id: UUID
    stock_on_hand: int = 0
