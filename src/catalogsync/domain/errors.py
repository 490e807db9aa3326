"""Domain error taxonomy for distribution and reconciliation."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID

    from catalogsync.domain.model import EntityType


class DistributionError(RuntimeError):
    """Base class for errors raised while distributing catalog state."""


class DuplicateEntryError(DistributionError):
    """A uniqueness collision on insert; another pass already created the row."""


class EntityNotFoundError(DistributionError):
    def __init__(self, entity_type: EntityType, entity_id: UUID) -> None:
        super().__init__(f"{entity_type} {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class ChannelNotFoundError(DistributionError):
    """No channel matches the given id or code."""

    def __init__(self, reference: UUID | str) -> None:
        super().__init__(f"Channel {reference} not found")
        self.reference = reference


class ReconciliationAborted(DistributionError):
    """A reconciliation sweep collapsed; carries the progress made before the failure."""

    def __init__(self, message: str, *, processed_variants: int) -> None:
        super().__init__(message)
        self.processed_variants = processed_variants
