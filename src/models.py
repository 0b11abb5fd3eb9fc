"""Shared Pydantic data models for the store assistant relay."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

# --- Enums ---


class RelayEventType(str, Enum):
    VERIFICATION = "verification"
    INVALID_PAYLOAD = "invalid_payload"
    STATUS_UPDATE = "status_update"
    MESSAGE_RECEIVED = "message_received"
    REPLY_SENT = "reply_sent"
    REPLY_FAILED = "reply_failed"


class Intent(str, Enum):
    SALES_SUMMARY = "sales_summary"
    TOP_CUSTOMERS = "top_customers"
    DELEGATE = "delegate"


# --- Audit Models ---


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class AuditEvent(BaseModel):
    timestamp: str = Field(default_factory=_now_iso)
    event_type: RelayEventType
    sender_id: str | None = None
    message_id: str | None = None
    action: str
    result: str  # "success" | "failure" | "ignored"
    details: dict[str, object] | None = None
