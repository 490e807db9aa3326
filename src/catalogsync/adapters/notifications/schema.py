"""Pydantic models for JSON variant-change notifications."""

from __future__ import annotations

from typing import Literal, Self
from uuid import UUID  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class NotificationBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class VariantChangedMessage(NotificationBaseModel):
    """One catalog mutation as published by the commerce backend.

    The acting channel may be given by id or by code; ``variant_ids`` may be
    a single id for single-entity events.
    """

    type: Literal["created", "updated"]
    variant_ids: list[UUID] = Field(min_length=1)
    channel_id: UUID | None = None
    channel_code: str | None = None
    language_code: str = "en"
    session_id: str | None = None

    @field_validator("variant_ids", mode="before")
    @classmethod
    def _wrap_single_id(cls, value: object) -> object:
        if isinstance(value, (str, UUID)):
            return [value]
        return value

    @model_validator(mode="after")
    def _require_channel(self) -> Self:
        if self.channel_id is None and not self.channel_code:
            raise ValueError("either channel_id or channel_code is required")
        return self
