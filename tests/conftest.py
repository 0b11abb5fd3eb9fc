"""Shared test fixtures for the store assistant relay."""

from __future__ import annotations

from datetime import date
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.assistant.inference import InferenceClient
from src.audit.logger import AuditLogger
from src.store.client import StoreQueryClient
from src.webhook.whatsapp import WhatsAppClient

FIXED_DAY = date(2026, 3, 14)


# --- Fake Supabase client ---


class FakeQuery:
    """Chainable stand-in for a PostgREST request builder."""

    def __init__(self, db: FakeSupabase, table: str) -> None:
        self._db = db
        self.table = table
        self.calls: list[tuple[Any, ...]] = []

    def select(self, columns: str) -> FakeQuery:
        self.calls.append(("select", columns))
        return self

    def gte(self, column: str, value: str) -> FakeQuery:
        self.calls.append(("gte", column, value))
        return self

    def lt(self, column: str, value: str) -> FakeQuery:
        self.calls.append(("lt", column, value))
        return self

    def order(self, column: str, desc: bool = False) -> FakeQuery:
        self.calls.append(("order", column, desc))
        return self

    def limit(self, size: int) -> FakeQuery:
        self.calls.append(("limit", size))
        return self

    def execute(self) -> SimpleNamespace:
        self._db.executed.append(self)
        if self.table in self._db.errors:
            raise self._db.errors[self.table]
        rows = list(self._db.tables.get(self.table, []))
        for call in self.calls:
            if call[0] == "limit":
                rows = rows[: call[1]]
        return SimpleNamespace(data=rows)


class FakeSupabase:
    """Minimal in-memory Supabase client keyed by table name."""

    def __init__(
        self,
        tables: dict[str, list[dict[str, Any]]] | None = None,
        errors: dict[str, Exception] | None = None,
    ) -> None:
        self.tables = tables or {}
        self.errors = errors or {}
        self.executed: list[FakeQuery] = []

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


def make_store(
    tables: dict[str, list[dict[str, Any]]] | None = None,
    errors: dict[str, Exception] | None = None,
) -> tuple[StoreQueryClient, FakeSupabase]:
    db = FakeSupabase(tables, errors)
    return StoreQueryClient(db, today=lambda: FIXED_DAY), db  # type: ignore[arg-type]


@pytest.fixture
def mock_audit_logger() -> MagicMock:
    return MagicMock(spec=AuditLogger)


@pytest.fixture
def mock_inference() -> MagicMock:
    inference = MagicMock(spec=InferenceClient)
    inference.complete = AsyncMock(return_value="model answer")
    return inference


# --- Factory functions for test data ---


def make_whatsapp_client(**kwargs: Any) -> WhatsAppClient:
    defaults: dict[str, Any] = {
        "verify_token": "test_verify",
        "phone_number_id": "123456",
        "access_token": "test_access_token",
    }
    defaults.update(kwargs)
    return WhatsAppClient(**defaults)


def make_webhook_payload(
    messages: list[dict[str, Any]] | None = None,
    statuses: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    value: dict[str, Any] = {
        "messaging_product": "whatsapp",
        "metadata": {"phone_number_id": "PHONE_ID"},
    }
    if messages is not None:
        value["messages"] = messages
    if statuses is not None:
        value["statuses"] = statuses
    return {
        "object": "whatsapp_business_account",
        "entry": [
            {
                "id": "BUSINESS_ID",
                "changes": [{"value": value, "field": "messages"}],
            }
        ],
    }


def make_text_message(
    text: str = "hello",
    sender: str = "15551234567",
    message_id: str = "wamid.TEXT1",
) -> dict[str, Any]:
    return {
        "from": sender,
        "id": message_id,
        "timestamp": "1700000000",
        "type": "text",
        "text": {"body": text},
    }


def make_interactive_message(
    kind: str = "button_reply",
    title: str = "Yes",
    sender: str = "15551234567",
    message_id: str = "wamid.INTER1",
) -> dict[str, Any]:
    return {
        "from": sender,
        "id": message_id,
        "timestamp": "1700000000",
        "type": "interactive",
        "interactive": {"type": kind, kind: {"id": "opt-1", "title": title}},
    }


def mock_http_client(status_code: int = 200) -> MagicMock:
    """Async context-manager mock standing in for ``httpx.AsyncClient()``."""
    client = AsyncMock()
    client.post.return_value = MagicMock(status_code=status_code)
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    return client
