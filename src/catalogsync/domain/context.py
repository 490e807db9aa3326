"""Channel-scoped execution contexts.

Every read or write the distribution engine performs happens "as seen by" one
channel. The context carries that channel alongside the caller's session and
language; it is immutable, so scoping to another channel always produces a new
value instead of mutating shared state.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from catalogsync.domain.model import ApiType

if TYPE_CHECKING:
    from uuid import UUID

    from catalogsync.domain.model import Channel


@dataclass(frozen=True, slots=True)
class RequestContext:
    channel: Channel
    session_id: str | None = None
    language_code: str = "en"
    api_type: ApiType = ApiType.ADMIN
    is_authorized: bool = False
    authorized_as_owner_only: bool = False

    @property
    def channel_id(self) -> UUID:
        return self.channel.id

    @property
    def channel_code(self) -> str:
        return self.channel.code


def build_channel_context(base: RequestContext, channel: Channel) -> RequestContext:
    """Return ``base`` re-scoped to ``channel``, authorized and not owner-restricted."""

    return replace(
        base,
        channel=channel,
        is_authorized=True,
        authorized_as_owner_only=False,
    )


def system_context(channel: Channel, *, language_code: str = "en") -> RequestContext:
    """Context for background work that is not tied to an operator session."""

    return RequestContext(
        channel=channel,
        language_code=language_code,
        api_type=ApiType.SYSTEM,
        is_authorized=True,
    )
