"""Webhook relay pipeline.

Routes one inbound WhatsApp delivery:
1. Structural check (entry/changes) -> 400 on failure
2. Status update -> log only
3. Text message -> intent answer, threaded reply
4. Interactive list/button reply -> plain "You selected" notification
5. Acknowledge with 200 regardless of downstream send failures
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from src.models import AuditEvent, RelayEventType
from src.webhook.models import (
    InboundMessage,
    InvalidPayloadError,
    StatusUpdate,
    WebhookResponse,
)

if TYPE_CHECKING:
    from src.assistant.answerer import IntentAnswerer
    from src.audit.logger import AuditLogger
    from src.webhook.whatsapp import WhatsAppClient

logger = logging.getLogger(__name__)

INVALID_REQUEST = "Invalid Request"
PROCESSED = "Webhook processed"


class WebhookRelayPipeline:
    """Turns a webhook delivery into at most one outbound WhatsApp message."""

    def __init__(
        self,
        whatsapp: WhatsAppClient,
        answerer: IntentAnswerer,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self._whatsapp = whatsapp
        self._answerer = answerer
        self._audit = audit_logger

    async def process(self, payload: Any) -> WebhookResponse:
        logger.debug("Incoming webhook payload: %s", payload)
        try:
            event = self._whatsapp.extract_event(payload)
        except InvalidPayloadError as exc:
            logger.warning("Rejected webhook delivery: %s", exc)
            self._record(RelayEventType.INVALID_PAYLOAD, "parse", "failure",
                         details={"reason": str(exc)})
            return WebhookResponse(text=INVALID_REQUEST, status_code=400)

        if event.status:
            self._log_status(event.status)

        if event.message:
            await self._route_message(event.message)

        return WebhookResponse(text=PROCESSED, status_code=200)

    def _log_status(self, status: StatusUpdate) -> None:
        logger.info(
            "Message status update: id=%s status=%s", status.message_id, status.status,
        )
        self._record(RelayEventType.STATUS_UPDATE, "status", status.status,
                     message_id=status.message_id)

    async def _route_message(self, message: InboundMessage) -> None:
        self._record(RelayEventType.MESSAGE_RECEIVED, message.type, "success",
                     sender_id=message.sender_id, message_id=message.message_id)

        if message.type == "text":
            reply_text = await self._answerer.answer(message.text.lower())
            await self._deliver(message, reply_text, threaded=True)
        elif message.type == "interactive":
            if message.selection_title is not None:
                await self._deliver(
                    message, f"You selected: {message.selection_title}", threaded=False,
                )
        else:
            logger.info("Ignoring unsupported message type %r", message.type)

        logger.debug("Message record: %s", message.raw)

    async def _deliver(self, message: InboundMessage, body: str, threaded: bool) -> None:
        """Send one outbound message; failures are logged, never raised."""
        try:
            if threaded:
                await self._whatsapp.reply(message.sender_id, body, message.message_id)
            else:
                await self._whatsapp.send(message.sender_id, body)
        except httpx.HTTPError as exc:
            logger.error("Failed to send reply to %s: %s", message.sender_id, exc)
            self._record(RelayEventType.REPLY_FAILED, "send", "failure",
                         sender_id=message.sender_id, message_id=message.message_id,
                         details={"error": str(exc)})
            return
        self._record(RelayEventType.REPLY_SENT, "send", "success",
                     sender_id=message.sender_id, message_id=message.message_id,
                     details={"threaded": threaded})

    def _record(
        self,
        event_type: RelayEventType,
        action: str,
        result: str,
        sender_id: str | None = None,
        message_id: str | None = None,
        details: dict[str, object] | None = None,
    ) -> None:
        if self._audit:
            self._audit.log(AuditEvent(
                event_type=event_type,
                sender_id=sender_id,
                message_id=message_id,
                action=action,
                result=result,
                details=details,
            ))
