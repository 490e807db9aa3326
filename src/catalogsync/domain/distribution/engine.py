"""Per-variant convergence of channel assignments, prices and stock.

For each variant the engine computes the channels that should see it, prunes
assignments that no longer qualify, guarantees the acting channel has a price
row, and (only when acting as the owning channel) pushes the owner's price and
stock to every valid reseller. Every write sets a computed value, so running
the engine again on unchanged data performs no writes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING

from catalogsync.config.sync import DEFAULT_CURRENCY_CODE
from catalogsync.domain.context import build_channel_context
from catalogsync.domain.errors import DuplicateEntryError
from catalogsync.domain.model import EntityType

from .eligibility import find_ghosts, merchant_candidates, valid_targets
from .report import DistributionReport

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from uuid import UUID

    from catalogsync.domain.context import RequestContext
    from catalogsync.domain.model import Channel, Price, Variant
    from catalogsync.domain.ports import CatalogStore, ChannelDirectory

log = logging.getLogger(__name__)


def _guarded[T](
    report: DistributionReport,
    action: Callable[[], T],
    description: str,
    *args: object,
) -> T | None:
    """Run one per-target write; duplicates are ignored, other failures counted."""

    try:
        return action()
    except DuplicateEntryError:
        log.debug("Duplicate entry ignored while trying to " + description, *args)
    except Exception:
        log.exception("Failed to " + description, *args)
        report.failures += 1
    return None


@dataclass(slots=True)
class DistributionEngine:
    catalog: CatalogStore
    directory: ChannelDirectory
    default_currency_code: str = DEFAULT_CURRENCY_CODE

    def distribute(
        self,
        ctx: RequestContext,
        variants: Sequence[Variant],
        channels: Sequence[Channel] | None = None,
    ) -> DistributionReport:
        """Converge ``variants`` with ``ctx.channel`` as the acting source channel.

        ``channels`` is an optional pre-fetched directory listing; batch callers
        pass it to avoid re-reading the directory for every page.
        """

        if not variants:
            raise ValueError("distribute requires at least one variant")

        all_channels = list(channels) if channels is not None else self.directory.list_channels()
        candidates = merchant_candidates(all_channels)
        report = DistributionReport()
        for variant in variants:
            self._distribute_variant(ctx, variant, candidates, report)

        log.info(
            "Distributed %s variant(s) from %s: skipped=%s, ghosts_removed=%s, "
            "prices_repaired=%s, assignments=%s, prices=%s, stock=%s, failures=%s",
            report.processed,
            ctx.channel_code,
            report.skipped,
            report.ghosts_removed,
            report.prices_repaired,
            report.assignments_created,
            report.prices_synced,
            report.stock_synced,
            report.failures,
        )
        return report

    def _distribute_variant(
        self,
        ctx: RequestContext,
        variant: Variant,
        candidates: Sequence[Channel],
        report: DistributionReport,
    ) -> None:
        product = variant.product
        if variant.is_deleted or product is None:
            reason = "soft-deleted" if variant.is_deleted else "missing parent product"
            log.warning("Skipping variant %s (%s)", variant.id, reason)
            report.skipped += 1
            return

        owner_code = product.owner_code
        targets = valid_targets(
            candidates,
            subscribed_ids={channel.id for channel in product.channels},
            source_channel_id=ctx.channel_id,
        )

        self._remove_ghosts(ctx, variant, owner_code=owner_code, targets=targets, report=report)
        source_price = self._repair_source_price(ctx, variant, report)
        report.processed += 1

        if owner_code is not None and owner_code != ctx.channel_code:
            log.debug(
                "Variant %s is owned by %s; %s does not propagate it",
                variant.id,
                owner_code,
                ctx.channel_code,
            )
            return
        if source_price is None:
            return

        self._assign_targets(ctx, variant, targets, report)
        self._sync_prices(ctx, variant, targets, source_price, report)
        self._sync_stock(ctx, variant, targets, report)

    def _remove_ghosts(
        self,
        ctx: RequestContext,
        variant: Variant,
        *,
        owner_code: str | None,
        targets: Sequence[Channel],
        report: DistributionReport,
    ) -> None:
        ghosts = find_ghosts(
            variant.channels,
            owner_code=owner_code,
            source_channel_id=ctx.channel_id,
            target_ids={target.id for target in targets},
        )
        if not ghosts:
            return

        codes = [ghost.code for ghost in ghosts]
        try:
            self.directory.remove_from_channels(
                ctx,
                EntityType.VARIANT,
                variant.id,
                [ghost.id for ghost in ghosts],
            )
        except Exception:
            log.exception("Failed to remove variant %s from channels %s", variant.id, codes)
            report.failures += 1
            return

        report.ghosts_removed += len(ghosts)
        log.info("Removed variant %s from ghost channels %s", variant.id, codes)

    def _repair_source_price(
        self,
        ctx: RequestContext,
        variant: Variant,
        report: DistributionReport,
    ) -> Price | None:
        currency_code = ctx.channel.default_currency_code or self.default_currency_code
        try:
            price = self.catalog.find_price(variant.id, ctx.channel_id)
            if price is not None:
                return price
            price = self.catalog.upsert_price(ctx, variant.id, price=0, currency_code=currency_code)
        except DuplicateEntryError:
            log.debug(
                "Price for variant %s in %s created concurrently", variant.id, ctx.channel_code
            )
            return _guarded(
                report,
                partial(self.catalog.find_price, variant.id, ctx.channel_id),
                "re-read price of variant %s in %s",
                variant.id,
                ctx.channel_code,
            )
        except Exception:
            log.exception(
                "Failed to create placeholder price for variant %s in %s",
                variant.id,
                ctx.channel_code,
            )
            report.failures += 1
            return None

        report.prices_repaired += 1
        log.info(
            "Created placeholder price for variant %s in %s (%s)",
            variant.id,
            ctx.channel_code,
            currency_code,
        )
        return price

    def _assign_targets(
        self,
        ctx: RequestContext,
        variant: Variant,
        targets: Sequence[Channel],
        report: DistributionReport,
    ) -> None:
        for target in targets:
            if variant.is_assigned_to(target):
                continue
            assigned = _guarded(
                report,
                partial(self._assign, ctx, variant, target),
                "assign variant %s to %s",
                variant.id,
                target.code,
            )
            if assigned:
                report.assignments_created += 1

    def _assign(self, ctx: RequestContext, variant: Variant, target: Channel) -> bool:
        self.directory.assign_to_channels(ctx, EntityType.VARIANT, variant.id, [target.id])
        return True

    def _sync_prices(
        self,
        ctx: RequestContext,
        variant: Variant,
        targets: Sequence[Channel],
        source_price: Price,
        report: DistributionReport,
    ) -> None:
        fallback_currency = ctx.channel.default_currency_code or source_price.currency_code
        for target in targets:
            target_ctx = build_channel_context(ctx, target)
            synced = _guarded(
                report,
                partial(
                    self._sync_price_to,
                    target_ctx,
                    variant,
                    source_price.price,
                    fallback_currency,
                ),
                "sync price of variant %s to %s",
                variant.id,
                target.code,
            )
            if synced:
                report.prices_synced += 1

    def _sync_price_to(
        self,
        ctx: RequestContext,
        variant: Variant,
        value: int,
        fallback_currency: str,
    ) -> bool:
        existing = self.catalog.find_price(variant.id, ctx.channel_id)
        if existing is not None:
            if existing.price == value:
                return False
            currency_code = existing.currency_code
        else:
            currency_code = ctx.channel.default_currency_code or fallback_currency
        self.catalog.upsert_price(ctx, variant.id, price=value, currency_code=currency_code)
        return True

    def _sync_stock(
        self,
        ctx: RequestContext,
        variant: Variant,
        targets: Sequence[Channel],
        report: DistributionReport,
    ) -> None:
        if not targets:
            return
        total = _guarded(
            report,
            partial(self.catalog.sum_stock, variant.id, ctx.channel_id),
            "sum stock of variant %s in %s",
            variant.id,
            ctx.channel_code,
        )
        if total is None:
            return

        for target in targets:
            target_ctx = build_channel_context(ctx, target)
            synced = _guarded(
                report,
                partial(self._sync_stock_to, target_ctx, variant, total, ctx.channel_id),
                "sync stock of variant %s to %s",
                variant.id,
                target.code,
            )
            if synced:
                report.stock_synced += 1

    def _sync_stock_to(
        self,
        ctx: RequestContext,
        variant: Variant,
        total: int,
        source_channel_id: UUID,
    ) -> bool:
        # rows are provisioned separately; a missing row stays missing.
        # locations the source can see are already part of the total.
        stock = self.catalog.find_stock(
            variant.id, ctx.channel_id, exclude_channel_id=source_channel_id
        )
        if stock is None or stock.stock_on_hand == total:
            return False
        self.catalog.update_stock(ctx, stock, total)
        return True
