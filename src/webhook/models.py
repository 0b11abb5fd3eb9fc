"""Data models for the webhook relay pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class InvalidPayloadError(ValueError):
    """Raised when a webhook delivery lacks the entry/changes structure."""


@dataclass
class StatusUpdate:
    """Delivery status for a previously sent message (sent, delivered, read...)."""

    message_id: str
    status: str


@dataclass
class InboundMessage:
    """First message record of a webhook delivery."""

    sender_id: str
    message_id: str
    type: str  # "text", "interactive", or any other platform type
    text: str = ""
    interactive_type: str | None = None  # "list_reply" or "button_reply"
    selection_title: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class InboundEvent:
    """The parts of one webhook delivery the relay looks at."""

    status: StatusUpdate | None = None
    message: InboundMessage | None = None


@dataclass
class WebhookResponse:
    """Pipeline response to return to the originating platform."""

    text: str
    status_code: int
