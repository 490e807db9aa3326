"""Reactive distribution of variants after catalog mutations."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from catalogsync.config.sync import DEFAULT_CURRENCY_CODE, DEFAULT_SETTLE_DELAY_SECONDS
from catalogsync.domain.distribution import DistributionEngine
from catalogsync.domain.model import ChangeType
from catalogsync.domain.ports import VARIANT_RELATIONS

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence
    from uuid import UUID

    from catalogsync.domain.context import RequestContext
    from catalogsync.domain.distribution import DistributionReport
    from catalogsync.domain.events import VariantChanged
    from catalogsync.domain.model import Product, Variant
    from catalogsync.domain.ports import CatalogStore, DistributionUnitOfWork

log = logging.getLogger(__name__)


def claim_ownership(
    ctx: RequestContext,
    variants: Iterable[Variant],
    *,
    catalog: CatalogStore,
) -> int:
    """Stamp the creating channel as owner on parent products that have none."""

    claimed: dict[UUID, Product] = {}
    for variant in variants:
        product = variant.product
        if product is None or product.owner_code is not None or product.id in claimed:
            continue
        catalog.set_owner_code(ctx, product, ctx.channel_code)
        claimed[product.id] = product

    if claimed:
        log.info("Channel %s claimed ownership of %s product(s)", ctx.channel_code, len(claimed))
    return len(claimed)


def _warn_missing(requested: Sequence[UUID], found: Sequence[Variant]) -> None:
    found_ids = {variant.id for variant in found}
    missing = [variant_id for variant_id in requested if variant_id not in found_ids]
    if missing:
        log.warning("Variants not found, skipping: %s", ", ".join(str(item) for item in missing))


@dataclass(slots=True)
class VariantEventHandler:
    """Distribute the variants named in a change notification.

    The handler waits ``settle_delay_seconds`` before reading so the writes of
    the transaction that emitted the notification are visible, then hydrates
    the variants and runs the distribution engine once for all of them with
    the notification's context as the source.
    """

    unit_of_work_factory: Callable[[], DistributionUnitOfWork]
    settle_delay_seconds: float = DEFAULT_SETTLE_DELAY_SECONDS
    default_currency_code: str = DEFAULT_CURRENCY_CODE
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def __call__(self, event: VariantChanged) -> DistributionReport | None:
        variant_ids = list(event.variant_ids)
        if not variant_ids:
            log.debug("Ignoring %s notification without variants", event.change_type)
            return None

        if self.settle_delay_seconds > 0:
            self.sleep(self.settle_delay_seconds)

        with self.unit_of_work_factory() as uow:
            repositories = uow.repositories
            variants = repositories.catalog.find_variants_by_id(
                variant_ids,
                relations=VARIANT_RELATIONS,
            )
            _warn_missing(variant_ids, variants)
            if not variants:
                return None

            if event.change_type is ChangeType.CREATED:
                claim_ownership(event.ctx, variants, catalog=repositories.catalog)

            engine = DistributionEngine(
                catalog=repositories.catalog,
                directory=repositories.channels,
                default_currency_code=self.default_currency_code,
            )
            report = engine.distribute(event.ctx, variants)
            uow.commit()

        return report
