"""Translate notification payloads into domain events."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from catalogsync.adapters.notifications.schema import VariantChangedMessage
from catalogsync.domain.context import RequestContext
from catalogsync.domain.errors import ChannelNotFoundError
from catalogsync.domain.events import VariantChanged
from catalogsync.domain.model import ChangeType

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from catalogsync.domain.model import Channel

log = logging.getLogger(__name__)


def _resolve_channel(message: VariantChangedMessage, channels: Sequence[Channel]) -> Channel:
    for channel in channels:
        if message.channel_id is not None and channel.id == message.channel_id:
            return channel
        if message.channel_id is None and channel.code == message.channel_code:
            return channel
    raise ChannelNotFoundError(message.channel_id or message.channel_code or "")


def translate_message(
    message: VariantChangedMessage,
    channels: Sequence[Channel],
) -> VariantChanged:
    """Build the domain notification, scoping its context to the acting channel."""

    channel = _resolve_channel(message, channels)
    ctx = RequestContext(
        channel=channel,
        session_id=message.session_id,
        language_code=message.language_code,
        is_authorized=True,
    )
    return VariantChanged.for_variants(ctx, message.variant_ids, ChangeType(message.type))


def parse_messages(lines: Iterable[str]) -> Iterator[VariantChangedMessage]:
    """Yield valid messages from JSON lines, logging and skipping malformed ones."""

    for number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            message = VariantChangedMessage.model_validate_json(line)
        except ValidationError as exc:
            log.warning("Skipping invalid notification on line %s: %s", number, exc)
            continue
        yield message


def read_notifications(
    lines: Iterable[str],
    channels: Sequence[Channel],
) -> Iterator[VariantChanged]:
    for message in parse_messages(lines):
        try:
            event = translate_message(message, channels)
        except ChannelNotFoundError as exc:
            log.warning("Skipping notification for unknown channel: %s", exc)
            continue
        yield event
