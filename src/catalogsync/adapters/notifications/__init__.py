"""JSON notification adapter for variant change events."""

from __future__ import annotations

from .schema import VariantChangedMessage
from .translator import parse_messages, read_notifications, translate_message

__all__ = [
    "VariantChangedMessage",
    "parse_messages",
    "read_notifications",
    "translate_message",
]
