"""WhatsApp Cloud API client.

Handles the Meta verification handshake, extracts the first status and
message record from webhook deliveries, and sends text messages (plain or
threaded) through the Graph API send-message endpoint.
"""

from __future__ import annotations

import hmac
import logging
from typing import Any

import httpx

from src.webhook.models import (
    InboundEvent,
    InboundMessage,
    InvalidPayloadError,
    StatusUpdate,
    WebhookResponse,
)

logger = logging.getLogger(__name__)

_WHATSAPP_API_BASE = "https://graph.facebook.com/v21.0"
_INTERACTIVE_REPLY_TYPES = ("list_reply", "button_reply")


def _first(items: Any) -> dict[str, Any] | None:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return None


def _object(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _string(value: Any) -> str | None:
    return value if isinstance(value, str) else None


class WhatsAppClient:
    """Talks to the WhatsApp Business API on behalf of one phone number."""

    def __init__(
        self,
        verify_token: str,
        phone_number_id: str,
        access_token: str,
        api_base: str = _WHATSAPP_API_BASE,
    ) -> None:
        self._verify_token = verify_token
        self._phone_number_id = phone_number_id
        self._access_token = access_token
        self._api_base = api_base.rstrip("/")

    @property
    def messages_url(self) -> str:
        return f"{self._api_base}/{self._phone_number_id}/messages"

    def handle_verification(self, params: dict[str, str]) -> WebhookResponse:
        """Answer the Meta webhook verification handshake (GET).

        Echoes the challenge only when a mode is present and the verify token
        matches the configured secret. An unset secret never verifies.
        """
        mode = params.get("hub.mode")
        token = params.get("hub.verify_token", "")
        if (
            mode
            and self._verify_token
            and hmac.compare_digest(token.encode(), self._verify_token.encode())
        ):
            return WebhookResponse(
                text=params.get("hub.challenge", ""), status_code=200,
            )
        return WebhookResponse(text="", status_code=403)

    def extract_event(self, payload: Any) -> InboundEvent:
        """Pull the first status update and first message out of a delivery.

        Only ``entry[0].changes[0].value`` is examined; batched deliveries
        beyond the first record are ignored.

        Raises:
            InvalidPayloadError: If ``entry`` or ``changes`` is missing or empty.
        """
        if not isinstance(payload, dict):
            raise InvalidPayloadError("payload is not a JSON object")
        entry = _first(payload.get("entry"))
        if entry is None:
            raise InvalidPayloadError("missing entry")
        change = _first(entry.get("changes"))
        if change is None:
            raise InvalidPayloadError("missing changes")

        value = _object(change.get("value"))
        event = InboundEvent()

        status = _first(value.get("statuses"))
        if status is not None:
            event.status = StatusUpdate(
                message_id=str(status.get("id", "")),
                status=str(status.get("status", "")),
            )

        message = _first(value.get("messages"))
        if message is not None:
            event.message = self._parse_message(message)
        return event

    @staticmethod
    def _parse_message(message: dict[str, Any]) -> InboundMessage:
        parsed = InboundMessage(
            sender_id=str(message.get("from", "")),
            message_id=str(message.get("id", "")),
            type=str(message.get("type", "")),
            raw=message,
        )
        # Malformed record fields degrade to "no content" rather than failing
        if parsed.type == "text":
            parsed.text = _string(_object(message.get("text")).get("body")) or ""
        elif parsed.type == "interactive":
            interactive = _object(message.get("interactive"))
            kind = _string(interactive.get("type"))
            parsed.interactive_type = kind
            if kind in _INTERACTIVE_REPLY_TYPES:
                parsed.selection_title = _string(_object(interactive.get(kind)).get("title"))
        return parsed

    async def send(self, to: str, body: str) -> None:
        """Send a plain text message to a single recipient."""
        await self._post_text(to, body)

    async def reply(self, to: str, body: str, in_reply_to: str) -> None:
        """Send a text message threaded onto the inbound message it answers."""
        await self._post_text(to, body, context={"message_id": in_reply_to})

    async def _post_text(
        self, to: str, body: str, context: dict[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {
            "messaging_product": "whatsapp",
            "to": to,
            "type": "text",
            "text": {"body": body},
        }
        if context:
            payload["context"] = context
        headers = {
            "Authorization": f"Bearer {self._access_token}",
            "Content-Type": "application/json",
        }

        async with httpx.AsyncClient(verify=True) as client:
            resp = await client.post(self.messages_url, json=payload, headers=headers)
            resp.raise_for_status()
        logger.debug("Sent message to %s (threaded=%s)", to, context is not None)
