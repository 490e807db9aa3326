"""Full-sweep reconciliation of variants across channels.

Used for backfill and repair: every non-deleted variant of each source channel
is paged through and handed to the distribution engine with that channel as
the acting source. Progress is committed per batch and is kept if a later
batch fails; the next sweep converges further.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from catalogsync.config.sync import DEFAULT_CURRENCY_CODE, DEFAULT_RECONCILE_BATCH_SIZE
from catalogsync.domain.context import build_channel_context
from catalogsync.domain.distribution import DistributionEngine, DistributionReport
from catalogsync.domain.errors import ChannelNotFoundError, ReconciliationAborted

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence
    from uuid import UUID

    from catalogsync.domain.context import RequestContext
    from catalogsync.domain.model import Channel
    from catalogsync.domain.ports import DistributionRepositories, DistributionUnitOfWork

log = logging.getLogger(__name__)


@dataclass(slots=True)
class SyncResult:
    """Outcome of a reconciliation sweep as reported to administrative callers."""

    success: bool
    message: str
    processed_variants: int
    report: DistributionReport = field(default_factory=DistributionReport)


def _select_sources(channels: Sequence[Channel], source_channel_id: UUID | None) -> list[Channel]:
    if source_channel_id is None:
        return list(channels)
    sources = [channel for channel in channels if channel.id == source_channel_id]
    if not sources:
        raise ChannelNotFoundError(source_channel_id)
    return sources


def reconcile(
    ctx: RequestContext,
    *,
    unit_of_work_factory: Callable[[], DistributionUnitOfWork],
    source_channel_id: UUID | None = None,
    batch_size: int = DEFAULT_RECONCILE_BATCH_SIZE,
    default_currency_code: str = DEFAULT_CURRENCY_CODE,
) -> SyncResult:
    """Distribute every variant of one source channel, or of every channel.

    Raises ``ChannelNotFoundError`` for an unknown ``source_channel_id`` and
    ``ReconciliationAborted`` (carrying the partial count) when fetching the
    channel list or a variant page fails.
    """

    if batch_size < 1:
        raise ValueError("batch_size must be positive")

    processed = 0
    report = DistributionReport()

    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        try:
            channels = repositories.channels.list_channels()
        except Exception as exc:
            raise ReconciliationAborted(
                f"Channel directory unavailable: {exc}",
                processed_variants=processed,
            ) from exc

        sources = _select_sources(channels, source_channel_id)
        engine = DistributionEngine(
            catalog=repositories.catalog,
            directory=repositories.channels,
            default_currency_code=default_currency_code,
        )
        log.info(
            "Starting reconciliation: sources=%s, batch_size=%s",
            [source.code for source in sources],
            batch_size,
        )

        for source in sources:
            source_ctx = build_channel_context(ctx, source)
            try:
                for batch_report, batch_count in _sweep_channel(
                    source_ctx,
                    repositories=repositories,
                    engine=engine,
                    channels=channels,
                    batch_size=batch_size,
                ):
                    uow.commit()
                    processed += batch_count
                    report += batch_report
            except Exception as exc:
                uow.rollback()
                raise ReconciliationAborted(
                    f"Reconciliation of channel {source.code} failed after "
                    f"{processed} variant(s): {exc}",
                    processed_variants=processed,
                ) from exc
            log.info("Reconciled channel %s; running total %s variant(s)", source.code, processed)

    message = f"Synced {processed} variant(s) from {len(sources)} source channel(s)"
    log.info("%s (failures=%s)", message, report.failures)
    return SyncResult(success=True, message=message, processed_variants=processed, report=report)


def _sweep_channel(
    source_ctx: RequestContext,
    *,
    repositories: DistributionRepositories,
    engine: DistributionEngine,
    channels: Sequence[Channel],
    batch_size: int,
) -> Iterator[tuple[DistributionReport, int]]:
    skip = 0
    while True:
        batch = repositories.catalog.find_variants_by_channel(
            source_ctx.channel_id,
            skip=skip,
            take=batch_size,
        )
        if not batch:
            return
        yield engine.distribute(source_ctx, batch, channels), len(batch)
        if len(batch) < batch_size:
            return
        skip += batch_size
