"""Repository implementations backed by SQLAlchemy sessions.

Every write runs inside a SAVEPOINT so that a failing write for one channel
rolls back on its own and leaves the surrounding session usable.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import exists, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from catalogsync.adapters.sqlalchemy.mappings import (
    CLASS_BY_ENTITY_TYPE,
    channel_table,
    price_table,
    stock_level_table,
    stock_location_channel_table,
    variant_channel_table,
    variant_table,
)
from catalogsync.domain.errors import (
    ChannelNotFoundError,
    DuplicateEntryError,
    EntityNotFoundError,
)
from catalogsync.domain.model import Channel, Price, StockLevel, Variant
from catalogsync.domain.ports import VARIANT_RELATIONS

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from sqlalchemy.orm import Session
    from sqlalchemy.orm.strategy_options import _AbstractLoad  # pyright: ignore[reportPrivateUsage]

    from catalogsync.adapters.sqlalchemy.mappings import ChannelMember
    from catalogsync.domain.context import RequestContext
    from catalogsync.domain.model import EntityType, Product

log = logging.getLogger(__name__)


def _load_options(relations: Sequence[str]) -> list[_AbstractLoad]:
    """Translate dotted relation paths (``"product.channels"``) into eager loads."""

    options: list[_AbstractLoad] = []
    for path in relations:
        owner: Any = Variant
        loader: Any = None
        for name in path.split("."):
            attribute = getattr(owner, name, None)
            if attribute is None or not hasattr(attribute.property, "mapper"):
                raise ValueError(f"Unknown variant relation: {path}")
            loader = selectinload(attribute) if loader is None else loader.selectinload(attribute)
            owner = attribute.property.mapper.class_
        if loader is not None:
            options.append(cast("_AbstractLoad", loader))
    return options


class SqlAlchemyCatalogStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def find_variants_by_id(
        self,
        ids: Sequence[UUID],
        *,
        relations: Sequence[str] = VARIANT_RELATIONS,
    ) -> list[Variant]:
        if not ids:
            return []
        stmt = (
            select(Variant)
            .where(variant_table.c.id.in_(list(ids)))
            .options(*_load_options(relations))
        )
        found = {variant.id: variant for variant in self.session.execute(stmt).scalars()}
        return [found[variant_id] for variant_id in dict.fromkeys(ids) if variant_id in found]

    def find_variants_by_channel(
        self,
        channel_id: UUID,
        *,
        skip: int,
        take: int,
    ) -> list[Variant]:
        stmt = (
            select(Variant)
            .join(variant_channel_table, variant_channel_table.c.variant_id == variant_table.c.id)
            .where(variant_channel_table.c.channel_id == channel_id)
            .where(variant_table.c.deleted_at.is_(None))
            .order_by(variant_table.c.id)
            .offset(skip)
            .limit(take)
            .options(*_load_options(VARIANT_RELATIONS))
        )
        return list(self.session.execute(stmt).scalars())

    def find_price(self, variant_id: UUID, channel_id: UUID) -> Price | None:
        stmt = (
            select(Price)
            .where(price_table.c.variant_id == variant_id)
            .where(price_table.c.channel_id == channel_id)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def upsert_price(
        self,
        ctx: RequestContext,
        variant_id: UUID,
        *,
        price: int,
        currency_code: str,
    ) -> Price:
        existing = self.find_price(variant_id, ctx.channel_id)
        if existing is not None:
            with self.session.begin_nested():
                existing.price = price
            return existing

        row = Price(
            variant_id=variant_id,
            channel_id=ctx.channel_id,
            price=price,
            currency_code=currency_code,
        )
        try:
            with self.session.begin_nested():
                self.session.add(row)
        except IntegrityError as exc:
            raise DuplicateEntryError(
                f"Price for variant {variant_id} in {ctx.channel_code} already exists"
            ) from exc
        return row

    def sum_stock(self, variant_id: UUID, channel_id: UUID) -> int:
        stmt = (
            select(func.coalesce(func.sum(stock_level_table.c.stock_on_hand), 0))
            .select_from(
                stock_level_table.join(
                    stock_location_channel_table,
                    stock_location_channel_table.c.stock_location_id
                    == stock_level_table.c.stock_location_id,
                )
            )
            .where(stock_level_table.c.variant_id == variant_id)
            .where(stock_location_channel_table.c.channel_id == channel_id)
        )
        return int(self.session.execute(stmt).scalar_one())

    def find_stock(
        self,
        variant_id: UUID,
        channel_id: UUID,
        *,
        exclude_channel_id: UUID | None = None,
    ) -> StockLevel | None:
        stmt = (
            select(StockLevel)
            .join(
                stock_location_channel_table,
                stock_location_channel_table.c.stock_location_id
                == stock_level_table.c.stock_location_id,
            )
            .where(stock_level_table.c.variant_id == variant_id)
            .where(stock_location_channel_table.c.channel_id == channel_id)
            .order_by(stock_level_table.c.id)
            .limit(1)
        )
        if exclude_channel_id is not None:
            excluded = stock_location_channel_table.alias("excluded_location_channel")
            stmt = stmt.where(
                ~exists().where(
                    excluded.c.stock_location_id == stock_level_table.c.stock_location_id,
                    excluded.c.channel_id == exclude_channel_id,
                )
            )
        return self.session.execute(stmt).scalars().first()

    def update_stock(self, ctx: RequestContext, stock: StockLevel, stock_on_hand: int) -> None:
        with self.session.begin_nested():
            stock.stock_on_hand = stock_on_hand
        log.debug(
            "Set stock of variant %s to %s in %s",
            stock.variant_id,
            stock_on_hand,
            ctx.channel_code,
        )

    def set_owner_code(self, ctx: RequestContext, product: Product, owner_code: str) -> None:
        with self.session.begin_nested():
            product.owner_code = owner_code
        log.debug("Product %s owner set to %s by %s", product.id, owner_code, ctx.channel_code)


class SqlAlchemyChannelDirectory:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_channels(self) -> list[Channel]:
        stmt = select(Channel).order_by(channel_table.c.code)
        return list(self.session.execute(stmt).scalars())

    def assign_to_channels(
        self,
        ctx: RequestContext,
        entity_type: EntityType,
        entity_id: UUID,
        channel_ids: Sequence[UUID],
    ) -> None:
        member = self._get_member(entity_type, entity_id)
        channels = [self._get_channel(channel_id) for channel_id in channel_ids]
        try:
            with self.session.begin_nested():
                for channel in channels:
                    if channel not in member.channels:
                        member.channels.append(channel)
        except IntegrityError as exc:
            raise DuplicateEntryError(
                f"{entity_type} {entity_id} already assigned to one of {list(channel_ids)}"
            ) from exc
        log.debug(
            "%s assigned %s %s to %s",
            ctx.channel_code,
            entity_type,
            entity_id,
            [channel.code for channel in channels],
        )

    def remove_from_channels(
        self,
        ctx: RequestContext,
        entity_type: EntityType,
        entity_id: UUID,
        channel_ids: Sequence[UUID],
    ) -> None:
        member = self._get_member(entity_type, entity_id)
        doomed = set(channel_ids)
        with self.session.begin_nested():
            for channel in [item for item in member.channels if item.id in doomed]:
                member.channels.remove(channel)
        log.debug("%s removed %s %s from %s", ctx.channel_code, entity_type, entity_id, doomed)

    def _get_member(self, entity_type: EntityType, entity_id: UUID) -> ChannelMember:
        entity_cls = CLASS_BY_ENTITY_TYPE.get(entity_type)
        if entity_cls is None:
            raise ValueError(f"{entity_type} cannot be assigned to channels")
        member = self.session.get(entity_cls, entity_id)
        if member is None:
            raise EntityNotFoundError(entity_type, entity_id)
        return member

    def _get_channel(self, channel_id: UUID) -> Channel:
        channel = self.session.get(Channel, channel_id)
        if channel is None:
            raise ChannelNotFoundError(channel_id)
        return channel


if TYPE_CHECKING:
    from catalogsync.domain.ports import CatalogStore, ChannelDirectory

    _session_stub = cast("Session", object())
    _catalog_check: CatalogStore = SqlAlchemyCatalogStore(_session_stub)
    _directory_check: ChannelDirectory = SqlAlchemyChannelDirectory(_session_stub)
