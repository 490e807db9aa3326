from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from catalogsync.domain.context import RequestContext, system_context
from catalogsync.domain.events import VariantChanged
from catalogsync.domain.model import (
    DEFAULT_CHANNEL_CODE,
    ChangeType,
    Channel,
    Price,
    Product,
    StockLevel,
    StockLocation,
    Variant,
)
from catalogsync.domain.reconciliation import reconcile
from catalogsync.domain.triggers import VariantEventHandler

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from catalogsync.adapters.sqlalchemy.unit_of_work import SqlAlchemyDistributionUnitOfWork

    type UnitOfWorkFactory = Callable[[], SqlAlchemyDistributionUnitOfWork]


@dataclass
class Seeded:
    default: Channel
    acme: Channel
    shopco: Channel
    variant_id: UUID


def _seed(factory: UnitOfWorkFactory, *, hub_stock: int | None = None) -> Seeded:
    default = Channel(code=DEFAULT_CHANNEL_CODE)
    acme = Channel(code="acme", is_merchant=True, is_supplier=False, default_currency_code="USD")
    shopco = Channel(code="shopco", is_merchant=True, default_currency_code="EUR")
    rogue = Channel(code="rogue", is_merchant=True, is_supplier=True)
    product = Product(name="Desk", owner_code="acme", channels=[acme, shopco])
    variant = Variant(sku="DESK-1", product=product, channels=[acme, rogue])
    warehouse = StockLocation(name="warehouse", channels=[acme])
    shop_floor = StockLocation(name="shop floor", channels=[shopco])

    with factory() as uow:
        uow.session.add_all([default, acme, shopco, rogue, product, variant])
        uow.session.add_all([warehouse, shop_floor])
        uow.session.flush()
        uow.session.add_all(
            [
                Price(variant_id=variant.id, channel_id=acme.id, price=1299, currency_code="USD"),
                StockLevel(variant_id=variant.id, stock_location_id=warehouse.id, stock_on_hand=8),
                StockLevel(variant_id=variant.id, stock_location_id=shop_floor.id, stock_on_hand=0),
            ]
        )
        if hub_stock is not None:
            hub = StockLocation(name="hub", channels=[acme, shopco])
            uow.session.add(hub)
            uow.session.flush()
            uow.session.add(
                StockLevel(
                    variant_id=variant.id, stock_location_id=hub.id, stock_on_hand=hub_stock
                )
            )
        uow.commit()
    return Seeded(default=default, acme=acme, shopco=shopco, variant_id=variant.id)


def _shopco_state(factory: UnitOfWorkFactory, seeded: Seeded) -> tuple[set[str], int | None, int]:
    with factory() as uow:
        catalog = uow.repositories.catalog
        (variant,) = catalog.find_variants_by_id([seeded.variant_id])
        price = catalog.find_price(seeded.variant_id, seeded.shopco.id)
        return (
            {channel.code for channel in variant.channels},
            price.price if price is not None else None,
            catalog.sum_stock(seeded.variant_id, seeded.shopco.id),
        )


def test_event_handler_converges_variant_in_database(
    sqlite_unit_of_work: UnitOfWorkFactory,
) -> None:
    seeded = _seed(sqlite_unit_of_work)
    handler = VariantEventHandler(unit_of_work_factory=sqlite_unit_of_work, settle_delay_seconds=0)

    report = handler(
        VariantChanged(
            ctx=RequestContext(channel=seeded.acme, is_authorized=True),
            variant_ids=(seeded.variant_id,),
            change_type=ChangeType.UPDATED,
        )
    )

    assert report is not None
    assert report.ghosts_removed == 1
    assert _shopco_state(sqlite_unit_of_work, seeded) == ({"acme", "shopco"}, 1299, 8)


def test_reconcile_converges_and_second_sweep_writes_nothing(
    sqlite_unit_of_work: UnitOfWorkFactory,
) -> None:
    seeded = _seed(sqlite_unit_of_work)
    ctx = system_context(seeded.default)

    first = reconcile(ctx, unit_of_work_factory=sqlite_unit_of_work)
    second = reconcile(ctx, unit_of_work_factory=sqlite_unit_of_work)

    assert first.success is True
    assert first.processed_variants == 2
    assert first.report.writes == 4
    assert second.report.writes == 0
    assert second.report.failures == 0
    assert _shopco_state(sqlite_unit_of_work, seeded) == ({"acme", "shopco"}, 1299, 8)


def test_reconcile_with_shared_location_leaves_its_stock_alone(
    sqlite_unit_of_work: UnitOfWorkFactory,
) -> None:
    seeded = _seed(sqlite_unit_of_work, hub_stock=5)
    ctx = system_context(seeded.default)

    first = reconcile(ctx, unit_of_work_factory=sqlite_unit_of_work)
    second = reconcile(ctx, unit_of_work_factory=sqlite_unit_of_work)
    third = reconcile(ctx, unit_of_work_factory=sqlite_unit_of_work)

    assert first.report.stock_synced == 1
    assert second.report.writes == 0
    assert third.report.writes == 0
    with sqlite_unit_of_work() as uow:
        assert uow.repositories.catalog.sum_stock(seeded.variant_id, seeded.acme.id) == 13
    # shop floor carries the owner total; the hub keeps its own count
    assert _shopco_state(sqlite_unit_of_work, seeded) == ({"acme", "shopco"}, 1299, 18)
