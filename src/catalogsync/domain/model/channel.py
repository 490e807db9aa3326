"""Sales channels (tenants) and their role flags."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Final

from catalogsync.domain.model.entity import Entity
from catalogsync.domain.model.enums import EntityType

DEFAULT_CHANNEL_CODE: Final[str] = "__default_channel__"


@dataclass(eq=False, kw_only=True)
class Channel(Entity):
    """A storefront partition of the catalog.

    ``is_supplier`` is tri-state: channels created before the supplier flag
    existed carry ``None``, which is treated like ``False``.
    """

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.CHANNEL

    code: str
    is_merchant: bool = False
    is_supplier: bool | None = None
    default_currency_code: str | None = None

    @property
    def is_default(self) -> bool:
        return self.code == DEFAULT_CHANNEL_CODE

    @property
    def is_reseller(self) -> bool:
        """Merchant channels that are not suppliers may resell other channels' items."""
        return self.is_merchant and self.is_supplier is not True

    def __repr__(self) -> str:
        return f"Channel(code={self.code!r})"
