"""Ports for the catalog store and channel directory collaborators."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from catalogsync.domain.context import RequestContext
    from catalogsync.domain.model import (
        Channel,
        EntityType,
        Price,
        Product,
        StockLevel,
        Variant,
    )

# relations the distribution engine needs on every variant it receives
VARIANT_RELATIONS: Final[tuple[str, ...]] = ("channels", "product", "product.channels")


@runtime_checkable
class CatalogStore(Protocol):
    """Persistence contract for variants, prices and stock levels.

    Reads take explicit channel ids. Writes take the context of the channel
    they are performed as; prices are always written for ``ctx.channel``.
    Inserts that collide with an existing row raise ``DuplicateEntryError``.
    """

    def find_variants_by_id(
        self,
        ids: Sequence[UUID],
        *,
        relations: Sequence[str] = VARIANT_RELATIONS,
    ) -> list[Variant]: ...

    def find_variants_by_channel(
        self,
        channel_id: UUID,
        *,
        skip: int,
        take: int,
    ) -> list[Variant]: ...

    def find_price(self, variant_id: UUID, channel_id: UUID) -> Price | None: ...

    def upsert_price(
        self,
        ctx: RequestContext,
        variant_id: UUID,
        *,
        price: int,
        currency_code: str,
    ) -> Price: ...

    def sum_stock(self, variant_id: UUID, channel_id: UUID) -> int: ...

    def find_stock(
        self,
        variant_id: UUID,
        channel_id: UUID,
        *,
        exclude_channel_id: UUID | None = None,
    ) -> StockLevel | None:
        """First stock level by id at a location visible to ``channel_id``.

        Locations also visible to ``exclude_channel_id`` are passed over.
        """
        ...

    def update_stock(self, ctx: RequestContext, stock: StockLevel, stock_on_hand: int) -> None: ...

    def set_owner_code(self, ctx: RequestContext, product: Product, owner_code: str) -> None: ...


@runtime_checkable
class ChannelDirectory(Protocol):
    """Read access to channels plus per-entity channel membership writes."""

    def list_channels(self) -> list[Channel]: ...

    def assign_to_channels(
        self,
        ctx: RequestContext,
        entity_type: EntityType,
        entity_id: UUID,
        channel_ids: Sequence[UUID],
    ) -> None: ...

    def remove_from_channels(
        self,
        ctx: RequestContext,
        entity_type: EntityType,
        entity_id: UUID,
        channel_ids: Sequence[UUID],
    ) -> None: ...
