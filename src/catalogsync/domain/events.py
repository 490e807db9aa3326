"""Variant change notifications and the in-process channels that carry them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

from catalogsync.domain.model import ChangeType

if TYPE_CHECKING:
    import queue
    from collections.abc import Callable, Iterable

    from catalogsync.domain.context import RequestContext
    from catalogsync.domain.model import Variant

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class VariantChanged:
    """Variants created or updated by the channel in ``ctx``."""

    ctx: RequestContext
    variant_ids: tuple[UUID, ...]
    change_type: ChangeType = ChangeType.UPDATED

    @classmethod
    def for_variants(
        cls,
        ctx: RequestContext,
        variants: Iterable[Variant | UUID],
        change_type: ChangeType = ChangeType.UPDATED,
    ) -> VariantChanged:
        """Build a notification from ids or entities, dropping repeated ids."""

        ids = (item if isinstance(item, UUID) else item.id for item in variants)
        return cls(ctx=ctx, variant_ids=tuple(dict.fromkeys(ids)), change_type=change_type)


type VariantChangeHandler = Callable[[VariantChanged], object]


class VariantEventBus:
    """Synchronous publish/subscribe for variant notifications.

    A failing subscriber is logged and does not prevent delivery to the others.
    """

    def __init__(self) -> None:
        self._subscriptions: list[tuple[frozenset[ChangeType], VariantChangeHandler]] = []

    def subscribe(
        self,
        handler: VariantChangeHandler,
        *,
        change_types: Iterable[ChangeType] = tuple(ChangeType),
    ) -> Callable[[], None]:
        """Register ``handler``; the returned callable removes the registration."""

        subscription = (frozenset(change_types), handler)
        self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        return unsubscribe

    def publish(self, event: VariantChanged) -> int:
        delivered = 0
        for change_types, handler in list(self._subscriptions):
            if event.change_type not in change_types:
                continue
            try:
                handler(event)
            except Exception:
                log.exception(
                    "Variant %s handler failed for %s variant(s)",
                    event.change_type,
                    len(event.variant_ids),
                )
                continue
            delivered += 1
        return delivered


def consume_queue(
    notifications: queue.Queue[VariantChanged | None],
    handler: VariantChangeHandler,
) -> int:
    """Feed queued notifications to ``handler`` until a ``None`` sentinel arrives.

    Returns the number of notifications handled successfully.
    """

    handled = 0
    while True:
        event = notifications.get()
        try:
            if event is None:
                return handled
            handler(event)
            handled += 1
        except Exception:
            log.exception("Failed to handle queued variant notification")
        finally:
            notifications.task_done()
