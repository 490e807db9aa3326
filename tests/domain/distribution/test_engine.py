from __future__ import annotations

from datetime import UTC, datetime

import pytest

from catalogsync.domain.distribution import DistributionEngine, DistributionReport
from catalogsync.domain.model import Variant
from tests.helpers.catalog import (
    Marketplace,
    build_marketplace,
    context_for,
    make_channel,
)


@pytest.fixture
def market() -> Marketplace:
    return build_marketplace()


def _engine(market: Marketplace, *, default_currency_code: str = "USD") -> DistributionEngine:
    return DistributionEngine(
        catalog=market.catalog,
        directory=market.directory,
        default_currency_code=default_currency_code,
    )


def test_ghost_assignment_of_unsubscribed_supplier_is_removed(market: Marketplace) -> None:
    variant = market.owned_variant(assigned=[market.acme, market.rogue], price=500)

    report = _engine(market).distribute(context_for(market.acme), [variant])

    assert not variant.is_assigned_to(market.rogue)
    assert variant.is_assigned_to(market.acme)
    assert market.directory.removals == [(variant.id, ["rogue"])]
    assert report.ghosts_removed == 1


def test_owner_pass_assigns_and_prices_valid_targets(market: Marketplace) -> None:
    variant = market.owned_variant(price=500)

    report = _engine(market).distribute(context_for(market.acme), [variant])

    assert variant.is_assigned_to(market.shopco)
    assert market.catalog.price_of(variant, market.shopco) == 500
    assert market.catalog.prices[(variant.id, market.shopco.id)].currency_code == "EUR"
    assert report.assignments_created == 1
    assert report.prices_synced == 1
    assert report.processed == 1


def test_non_owner_pass_only_cleans_up_its_own_state(market: Marketplace) -> None:
    variant = market.owned_variant(
        assigned=[market.acme, market.shopco, market.rogue],
        price=500,
    )

    report = _engine(market).distribute(context_for(market.shopco), [variant])

    assert market.directory.removals == [(variant.id, ["rogue"])]
    assert market.catalog.writes == [("price", variant.id, "shopco")]
    assert market.catalog.price_of(variant, market.shopco) == 0
    assert market.catalog.price_of(variant, market.acme) == 500
    assert market.directory.assignments == []
    assert report.prices_repaired == 1
    assert report.prices_synced == 0


def test_missing_source_price_is_repaired_in_channel_currency(market: Marketplace) -> None:
    variant = market.owned_variant()

    report = _engine(market).distribute(context_for(market.acme), [variant])

    repaired = market.catalog.prices[(variant.id, market.acme.id)]
    assert repaired.price == 0
    assert repaired.currency_code == "USD"
    assert report.prices_repaired == 1


def test_repair_falls_back_to_configured_currency(market: Marketplace) -> None:
    bare = make_channel("bare", merchant=True, currency=None)
    market.directory.channels.append(bare)
    variant = market.owned_variant(subscribed=[bare], assigned=[bare])

    _engine(market, default_currency_code="GBP").distribute(context_for(bare), [variant])

    assert market.catalog.prices[(variant.id, bare.id)].currency_code == "GBP"


def test_second_run_performs_no_writes(market: Marketplace) -> None:
    variant = market.owned_variant(assigned=[market.acme, market.rogue], price=700)
    location = market.catalog.add_location("main", market.acme)
    shop_location = market.catalog.add_location("shop", market.shopco)
    market.catalog.add_stock(variant, location, 9)
    market.catalog.add_stock(variant, shop_location, 1)
    engine = _engine(market)

    first = engine.distribute(context_for(market.acme), [variant])
    writes_after_first = list(market.catalog.writes)
    assignments_after_first = list(variant.channels)
    second = engine.distribute(context_for(market.acme), [variant])

    assert first.writes > 0
    assert second.writes == 0
    assert second == DistributionReport(processed=1)
    assert market.catalog.writes == writes_after_first
    assert variant.channels == assignments_after_first


def test_stock_sync_updates_existing_rows_only(market: Marketplace) -> None:
    variant = market.owned_variant(price=100)
    market.catalog.add_stock(variant, market.catalog.add_location("north", market.acme), 7)
    market.catalog.add_stock(variant, market.catalog.add_location("south", market.acme), 3)

    report = _engine(market).distribute(context_for(market.acme), [variant])

    assert len(market.catalog.stock_levels) == 2
    assert market.catalog.find_stock(variant.id, market.shopco.id) is None
    assert report.stock_synced == 0


def test_stock_sync_sets_target_row_to_source_total(market: Marketplace) -> None:
    variant = market.owned_variant(price=100)
    market.catalog.add_stock(variant, market.catalog.add_location("north", market.acme), 7)
    market.catalog.add_stock(variant, market.catalog.add_location("south", market.acme), 3)
    target_level = market.catalog.add_stock(
        variant, market.catalog.add_location("shop", market.shopco), 2
    )

    report = _engine(market).distribute(context_for(market.acme), [variant])

    assert target_level.stock_on_hand == 10
    assert report.stock_synced == 1


def test_stock_sync_leaves_locations_shared_with_source_alone(market: Marketplace) -> None:
    variant = market.owned_variant(price=100)
    hub = market.catalog.add_location("hub", market.acme, market.shopco)
    shared_level = market.catalog.add_stock(variant, hub, 5)
    market.catalog.add_stock(variant, market.catalog.add_location("north", market.acme), 3)
    engine = _engine(market)

    first = engine.distribute(context_for(market.acme), [variant])
    second = engine.distribute(context_for(market.acme), [variant])
    third = engine.distribute(context_for(market.acme), [variant])

    assert shared_level.stock_on_hand == 5
    assert market.catalog.sum_stock(variant.id, market.acme.id) == 8
    assert first.stock_synced == 0
    assert second.writes == 0
    assert third.writes == 0


def test_stock_sync_writes_target_row_outside_shared_locations(market: Marketplace) -> None:
    variant = market.owned_variant(price=100)
    hub = market.catalog.add_location("hub", market.acme, market.shopco)
    shared_level = market.catalog.add_stock(variant, hub, 5)
    market.catalog.add_stock(variant, market.catalog.add_location("north", market.acme), 3)
    shop_level = market.catalog.add_stock(
        variant, market.catalog.add_location("shop", market.shopco), 1
    )
    engine = _engine(market)

    first = engine.distribute(context_for(market.acme), [variant])
    second = engine.distribute(context_for(market.acme), [variant])

    assert shop_level.stock_on_hand == 8
    assert shared_level.stock_on_hand == 5
    assert first.stock_synced == 1
    assert second.writes == 0
    assert market.catalog.sum_stock(variant.id, market.acme.id) == 8


def test_owner_and_default_channels_are_never_removed(market: Marketplace) -> None:
    variant = market.owned_variant(
        assigned=[market.default, market.acme, market.shopco, market.rogue],
        price=100,
    )

    _engine(market).distribute(context_for(market.shopco), [variant])

    removed = [code for _, codes in market.directory.removals for code in codes]
    assert removed == ["rogue"]
    assert variant.is_assigned_to(market.default)
    assert variant.is_assigned_to(market.acme)


def test_converged_assignments_are_eligible(market: Marketplace) -> None:
    stranger = make_channel("stranger", merchant=True)
    market.directory.channels.append(stranger)
    variant = market.owned_variant(
        assigned=[market.acme, market.rogue, stranger],
        price=250,
    )

    _engine(market).distribute(context_for(market.acme), [variant])

    product = variant.product
    assert product is not None
    for channel in variant.channels:
        if channel is market.acme:
            continue
        assert channel.is_merchant
        assert channel.is_supplier is not True
        assert product.is_subscribed(channel)
        assert market.catalog.price_of(variant, channel) == 250


def test_failed_target_write_does_not_block_other_targets(market: Marketplace) -> None:
    bazaar = make_channel("bazaar", merchant=True)
    market.directory.channels.append(bazaar)
    variant = market.owned_variant(subscribed=[market.acme, market.shopco, bazaar], price=900)
    market.catalog.failing_price_channels.add(market.shopco.id)

    report = _engine(market).distribute(context_for(market.acme), [variant])

    assert market.catalog.price_of(variant, bazaar) == 900
    assert market.catalog.price_of(variant, market.shopco) is None
    assert report.failures == 1
    assert report.prices_synced == 1
    assert report.assignments_created == 2


def test_failed_ghost_removal_is_counted_and_distribution_continues(market: Marketplace) -> None:
    variant = market.owned_variant(assigned=[market.acme, market.rogue], price=300)
    market.directory.fail_removals = True

    report = _engine(market).distribute(context_for(market.acme), [variant])

    assert variant.is_assigned_to(market.rogue)
    assert report.failures == 1
    assert market.catalog.price_of(variant, market.shopco) == 300


def test_duplicate_assignment_is_benign(market: Marketplace) -> None:
    variant = market.owned_variant(price=300)
    market.directory.duplicate_assign_channels.add(market.shopco.id)

    report = _engine(market).distribute(context_for(market.acme), [variant])

    assert report.failures == 0
    assert report.assignments_created == 0
    assert report.prices_synced == 1


def test_duplicate_price_on_repair_is_benign(market: Marketplace) -> None:
    variant = market.owned_variant()
    market.catalog.duplicate_price_channels.add(market.acme.id)

    report = _engine(market).distribute(context_for(market.acme), [variant])

    assert report.failures == 0
    assert report.processed == 1
    assert report.prices_repaired == 0
    assert market.directory.assignments == []


def test_failed_reread_after_duplicate_price_is_counted(market: Marketplace) -> None:
    variant = market.owned_variant()
    market.catalog.duplicate_price_channels.add(market.acme.id)
    market.catalog.fail_price_reads_after = 1

    report = _engine(market).distribute(context_for(market.acme), [variant])

    assert report.failures == 1
    assert report.processed == 1
    assert report.prices_repaired == 0
    assert market.directory.assignments == []


def test_deleted_and_orphaned_variants_are_skipped(market: Marketplace) -> None:
    deleted = market.owned_variant("DELETED", price=100)
    deleted.deleted_at = datetime(2024, 1, 1, tzinfo=UTC)
    orphan = market.catalog.add_variant(Variant(sku="ORPHAN", channels=[market.acme]))
    live = market.owned_variant("LIVE", price=100)

    report = _engine(market).distribute(context_for(market.acme), [deleted, orphan, live])

    assert report.skipped == 2
    assert report.processed == 1
    assert not deleted.is_assigned_to(market.shopco)
    assert live.is_assigned_to(market.shopco)


def test_unowned_product_propagates_from_any_source(market: Marketplace) -> None:
    variant = market.owned_variant(price=400)
    assert variant.product is not None
    variant.product.owner_code = None

    report = _engine(market).distribute(context_for(market.acme), [variant])

    assert report.prices_synced == 1
    assert market.catalog.price_of(variant, market.shopco) == 400


def test_empty_variant_list_is_rejected(market: Marketplace) -> None:
    with pytest.raises(ValueError, match="at least one variant"):
        _engine(market).distribute(context_for(market.acme), [])


def test_prefetched_channels_skip_directory_reads(market: Marketplace) -> None:
    variant = market.owned_variant(price=100)
    engine = _engine(market)

    engine.distribute(context_for(market.acme), [variant], market.channels)
    assert market.directory.list_calls == 0

    engine.distribute(context_for(market.acme), [variant])
    assert market.directory.list_calls == 1
