"""Application orchestration entry points."""

from __future__ import annotations

import queue
import threading
from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.adapters.notifications import read_notifications
from catalogsync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyDistributionUnitOfWork,
    is_started,
    startup,
)
from catalogsync.config import get_sync_config
from catalogsync.domain.context import system_context
from catalogsync.domain.errors import ChannelNotFoundError, ReconciliationAborted
from catalogsync.domain.events import VariantChanged, VariantEventBus, consume_queue
from catalogsync.domain.model import DEFAULT_CHANNEL_CODE
from catalogsync.domain.ports.unit_of_work import DistributionUnitOfWork
from catalogsync.domain.reconciliation import SyncResult, reconcile
from catalogsync.domain.triggers import VariantEventHandler

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from uuid import UUID

    from catalogsync.config import SyncConfig
    from catalogsync.domain.context import RequestContext
    from catalogsync.domain.model import Channel

UnitOfWorkFactory = Callable[[], DistributionUnitOfWork]


log = getLogger(__name__)


def _default_unit_of_work_factory() -> UnitOfWorkFactory:
    if not is_started():
        startup()
    return SqlAlchemyDistributionUnitOfWork


def admin_context(
    channels: Sequence[Channel],
    *,
    channel_code: str = DEFAULT_CHANNEL_CODE,
) -> RequestContext:
    """Context of the platform channel, used when no operator session is at hand."""

    for channel in channels:
        if channel.code == channel_code:
            return system_context(channel)
    raise ChannelNotFoundError(channel_code)


def _load_channels(unit_of_work_factory: UnitOfWorkFactory) -> list[Channel]:
    with unit_of_work_factory() as uow:
        return uow.repositories.channels.list_channels()


def sync_variants(
    *,
    source_channel_id: UUID | None = None,
    ctx: RequestContext | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: SyncConfig | None = None,
) -> SyncResult:
    """Reconcile variants of one channel (or all channels) and report the outcome.

    Isolated per-channel failures never turn the result into a failure; only a
    collapse of the sweep itself does, in which case the partial count is kept.
    """

    effective_uow = unit_of_work_factory or _default_unit_of_work_factory()
    sync_config = config or get_sync_config()
    log.info(
        "Starting variant sync: source_channel_id=%s, batch_size=%s",
        source_channel_id,
        sync_config.batch_size,
    )

    try:
        effective_ctx = ctx or admin_context(_load_channels(effective_uow))
        result = reconcile(
            effective_ctx,
            unit_of_work_factory=effective_uow,
            source_channel_id=source_channel_id,
            batch_size=sync_config.batch_size,
            default_currency_code=sync_config.default_currency_code,
        )
    except ChannelNotFoundError as exc:
        log.error("Variant sync rejected: %s", exc)  # noqa: TRY400
        return SyncResult(success=False, message=str(exc), processed_variants=0)
    except ReconciliationAborted as exc:
        log.exception("Variant sync aborted after %s variant(s)", exc.processed_variants)
        return SyncResult(
            success=False,
            message=str(exc),
            processed_variants=exc.processed_variants,
        )

    log.info(
        f"Finished variant sync: processed={result.processed_variants}, "
        f"writes={result.report.writes}, failures={result.report.failures}"
    )
    return result


def listen_for_variant_changes(
    lines: Iterable[str],
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: SyncConfig | None = None,
) -> int:
    """Distribute variants for every JSON notification read from ``lines``.

    A reader thread parses notifications into a queue; this thread consumes
    them and publishes each one on a bus the distribution trigger subscribes
    to. Returns the number of notifications handled.
    """

    effective_uow = unit_of_work_factory or _default_unit_of_work_factory()
    sync_config = config or get_sync_config()

    bus = VariantEventBus()
    bus.subscribe(
        VariantEventHandler(
            unit_of_work_factory=effective_uow,
            settle_delay_seconds=sync_config.settle_delay_seconds,
            default_currency_code=sync_config.default_currency_code,
        )
    )

    channels = _load_channels(effective_uow)
    notifications: queue.Queue[VariantChanged | None] = queue.Queue()

    def produce() -> None:
        try:
            for event in read_notifications(lines, channels):
                notifications.put(event)
        finally:
            notifications.put(None)

    reader = threading.Thread(target=produce, name="notification-reader", daemon=True)
    reader.start()
    handled = consume_queue(notifications, bus.publish)
    reader.join()

    log.info("Stopped listening after %s notification(s)", handled)
    return handled
