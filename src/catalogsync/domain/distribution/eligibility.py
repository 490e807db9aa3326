"""Pure rules deciding which channels may see a variant."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable
    from uuid import UUID

    from catalogsync.domain.model import Channel


def merchant_candidates(channels: Iterable[Channel]) -> list[Channel]:
    """Channels whose role allows reselling other channels' items."""

    return [channel for channel in channels if channel.is_reseller]


def valid_targets(
    candidates: Iterable[Channel],
    *,
    subscribed_ids: Collection[UUID],
    source_channel_id: UUID,
) -> list[Channel]:
    """Candidates subscribed to the parent product, excluding the source channel."""

    return [
        channel
        for channel in candidates
        if channel.id in subscribed_ids and channel.id != source_channel_id
    ]


def is_protected(
    channel: Channel,
    *,
    owner_code: str | None,
    source_channel_id: UUID,
) -> bool:
    """The platform channel, the owner and the acting channel are never pruned."""

    if channel.is_default:
        return True
    if owner_code is not None and channel.code == owner_code:
        return True
    return channel.id == source_channel_id


def find_ghosts(
    assigned: Iterable[Channel],
    *,
    owner_code: str | None,
    source_channel_id: UUID,
    target_ids: Collection[UUID],
) -> list[Channel]:
    """Assignments that satisfy none of the keep rules."""

    return [
        channel
        for channel in assigned
        if not is_protected(channel, owner_code=owner_code, source_channel_id=source_channel_id)
        and channel.id not in target_ids
    ]
