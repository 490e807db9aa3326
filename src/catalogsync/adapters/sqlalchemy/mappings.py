"""SQLAlchemy mapping metadata for the catalogsync domain model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING, Final

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    ForeignKey,
    Integer,
    String,
    Table,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers, relationship

from catalogsync.domain.model import (
    Channel,
    EntityType,
    Price,
    Product,
    StockLevel,
    StockLocation,
    Variant,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def _primary_key() -> Column[uuid.UUID]:
    # ids are minted by the domain; the default only covers raw inserts
    return Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4)


# Channels --------------------------------------------------------------------

channel_table = Table(
    "channel",
    mapper_registry.metadata,
    _primary_key(),
    Column("code", String, nullable=False, unique=True),
    Column("is_merchant", Boolean, nullable=False, default=False),
    Column("is_supplier", Boolean, nullable=True),
    Column("default_currency_code", String(3), nullable=True),
)

# Catalog ---------------------------------------------------------------------

product_table = Table(
    "product",
    mapper_registry.metadata,
    _primary_key(),
    Column("name", String, nullable=False),
    Column("owner_code", String, nullable=True, index=True),
    Column("deleted_at", UTCDateTime(), nullable=True),
)

variant_table = Table(
    "variant",
    mapper_registry.metadata,
    _primary_key(),
    Column(
        "product_id",
        UUIDColumnType,
        ForeignKey("product.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    ),
    Column("sku", String, nullable=False),
    Column("deleted_at", UTCDateTime(), nullable=True),
)

price_table = Table(
    "price",
    mapper_registry.metadata,
    _primary_key(),
    Column(
        "variant_id",
        UUIDColumnType,
        ForeignKey("variant.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "channel_id",
        UUIDColumnType,
        ForeignKey("channel.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("price", Integer, nullable=False),
    Column("currency_code", String(3), nullable=False),
    UniqueConstraint("variant_id", "channel_id"),
)

stock_location_table = Table(
    "stock_location",
    mapper_registry.metadata,
    _primary_key(),
    Column("name", String, nullable=False),
)

stock_level_table = Table(
    "stock_level",
    mapper_registry.metadata,
    _primary_key(),
    Column(
        "variant_id",
        UUIDColumnType,
        ForeignKey("variant.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "stock_location_id",
        UUIDColumnType,
        ForeignKey("stock_location.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("stock_on_hand", Integer, nullable=False, default=0),
    UniqueConstraint("variant_id", "stock_location_id"),
)

# Channel memberships -----------------------------------------------------------


def _membership_table(name: str, owner_table: str) -> Table:
    return Table(
        name,
        mapper_registry.metadata,
        Column(
            f"{owner_table}_id",
            UUIDColumnType,
            ForeignKey(f"{owner_table}.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        Column(
            "channel_id",
            UUIDColumnType,
            ForeignKey("channel.id", ondelete="CASCADE"),
            primary_key=True,
            index=True,
        ),
    )


product_channel_table = _membership_table("product_channel", "product")
variant_channel_table = _membership_table("variant_channel", "variant")
stock_location_channel_table = _membership_table("stock_location_channel", "stock_location")

type ChannelMember = Product | Variant | StockLocation

CLASS_BY_ENTITY_TYPE: Final[dict[EntityType, type[ChannelMember]]] = {
    EntityType.PRODUCT: Product,
    EntityType.VARIANT: Variant,
    EntityType.STOCK_LOCATION: StockLocation,
}


@cache
def start_mappers() -> orm.registry:
    """Map domain dataclasses imperatively; safe to call more than once."""

    mapper_registry.map_imperatively(Channel, channel_table)

    mapper_registry.map_imperatively(
        Product,
        product_table,
        properties={
            "channels": relationship(Channel, secondary=product_channel_table),
            "variants": relationship(Variant, back_populates="product"),
        },
    )

    mapper_registry.map_imperatively(
        Variant,
        variant_table,
        properties={
            "product": relationship(Product, back_populates="variants"),
            "channels": relationship(Channel, secondary=variant_channel_table),
        },
    )

    mapper_registry.map_imperatively(Price, price_table)

    mapper_registry.map_imperatively(
        StockLocation,
        stock_location_table,
        properties={
            "channels": relationship(Channel, secondary=stock_location_channel_table),
        },
    )

    mapper_registry.map_imperatively(StockLevel, stock_level_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
