"""FastAPI application exposing the WhatsApp webhook."""

from __future__ import annotations

import json
import logging

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse

from src.assistant.answerer import IntentAnswerer
from src.assistant.inference import InferenceClient
from src.audit.logger import AuditLogger
from src.config import Settings, configure_logging
from src.models import AuditEvent, RelayEventType
from src.store.client import StoreQueryClient, create_store_client
from src.webhook.relay import INVALID_REQUEST, WebhookRelayPipeline
from src.webhook.whatsapp import WhatsAppClient

logger = logging.getLogger(__name__)

ROOT_MESSAGE = "WhatsApp store assistant is running"


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from environment variables."""
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    return create_app_from_settings(settings)


def create_app_from_settings(settings: Settings) -> FastAPI:
    whatsapp, answerer = build_components(settings)
    audit_logger = (
        AuditLogger.from_env(settings.audit_log_path) if settings.audit_log_path else None
    )
    return create_app(whatsapp, answerer, audit_logger)


def build_components(settings: Settings) -> tuple[WhatsAppClient, IntentAnswerer]:
    """Wire the messenger and answerer from one settings object."""
    whatsapp = WhatsAppClient(
        verify_token=settings.verify_token,
        phone_number_id=settings.phone_number_id,
        access_token=settings.access_token,
    )
    store = StoreQueryClient(
        create_store_client(settings.supabase_url, settings.supabase_key),
    )
    inference = InferenceClient(
        api_key=settings.inference_api_key,
        model=settings.inference_model,
        url=settings.inference_url,
    )
    answerer = IntentAnswerer(store, inference, refine=settings.refine_answers)
    return whatsapp, answerer


def create_app(
    whatsapp: WhatsAppClient,
    answerer: IntentAnswerer,
    audit_logger: AuditLogger | None = None,
) -> FastAPI:
    """Create the webhook app around an already-configured messenger and answerer."""
    app = FastAPI(docs_url=None, redoc_url=None)
    pipeline = WebhookRelayPipeline(whatsapp, answerer, audit_logger)

    @app.get("/")
    async def root() -> PlainTextResponse:
        return PlainTextResponse(ROOT_MESSAGE)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/webhook")
    async def verify_webhook(request: Request) -> Response:
        result = whatsapp.handle_verification(dict(request.query_params))
        if audit_logger:
            audit_logger.log(AuditEvent(
                event_type=RelayEventType.VERIFICATION,
                action="handshake",
                result="success" if result.status_code == 200 else "failure",
            ))
        if result.status_code != 200:
            return Response(status_code=result.status_code)
        return PlainTextResponse(result.text)

    @app.post("/webhook")
    async def receive_webhook(request: Request) -> Response:
        try:
            payload = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Webhook body is not valid JSON")
            return PlainTextResponse(INVALID_REQUEST, status_code=400)

        result = await pipeline.process(payload)
        return PlainTextResponse(result.text, status_code=result.status_code)

    return app
