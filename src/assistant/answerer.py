"""Intent answerer: resolves an inbound question to reply text.

Sales and top-customer questions are answered straight from the store. All
other questions go to the language model with a store summary as context,
optionally followed by a second call that rewrites the raw answer.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from src.assistant.inference import InferenceError
from src.assistant.intent import classify_intent
from src.models import Intent
from src.store.client import (
    STORE_ERRORS,
    StoreUnavailableError,
    format_money,
    orders_currency,
    sum_orders,
)

if TYPE_CHECKING:
    from src.assistant.inference import InferenceClient
    from src.store.client import StoreQueryClient

logger = logging.getLogger(__name__)

CONTEXT_UNAVAILABLE = "Store summary data is currently unavailable."
ANSWER_UNAVAILABLE = "Sorry, I couldn't come up with an answer right now."
SNAPSHOT_LIMIT = 10

SCHEMA_DESCRIPTION = """
# Database Schema
orders: id (int), total_price (float), created_at (timestamp), customer_id (int), product_id (int)
products: id (int), title (string), price (float)
customers: id (int), first_name (string), last_name (string), total_spent (float)
"""


def _dump(rows: list[dict[str, Any]]) -> str:
    return json.dumps(rows, indent=2, default=str)


def build_system_prompt(context: str) -> str:
    return (
        "You are an AI assistant that uses the given Supabase database schema "
        "to interpret and analyze data.\n\n"
        f"Schema:\n{SCHEMA_DESCRIPTION}\n"
        f"Data:\n{context}\n\n"
        "Answer the user's question based on the schema and data. If additional "
        "data is needed, provide the appropriate Supabase query.\n"
    )


def build_refine_prompt(raw_answer: str, question: str) -> str:
    return (
        "You are a helpful assistant that rewrites raw answers into a natural, "
        "concise response.\n\n"
        f"Original question: {question}\n\n"
        f"Raw answer:\n{raw_answer}\n"
    )


class IntentAnswerer:
    """Chooses and runs the answer path for a message body."""

    def __init__(
        self,
        store: StoreQueryClient,
        inference: InferenceClient,
        refine: bool = True,
    ) -> None:
        self._store = store
        self._inference = inference
        self._refine = refine

    async def answer(self, text: str) -> str:
        intent = classify_intent(text)
        logger.info("Classified message as %s", intent.value)
        if intent is Intent.SALES_SUMMARY:
            return await self._store.today_sales()
        if intent is Intent.TOP_CUSTOMERS:
            return await self._store.top_customers(limit=5)
        return await self.delegate(text)

    async def delegate(self, text: str) -> str:
        """Answer free text with the language model.

        Inference failures never propagate: a failed first call yields a fixed
        apology, a failed refine call falls back to the raw answer.
        """
        context = await self.build_context()
        try:
            raw_answer = await self._inference.complete([
                {"role": "system", "content": build_system_prompt(context)},
                {"role": "user", "content": text},
            ])
        except InferenceError:
            logger.exception("Inference call failed")
            return ANSWER_UNAVAILABLE
        if not raw_answer:
            logger.warning("Inference returned an empty answer")
            return ANSWER_UNAVAILABLE
        if not self._refine:
            return raw_answer

        try:
            refined = await self._inference.complete([
                {"role": "system", "content": build_refine_prompt(raw_answer, text)},
            ])
        except InferenceError:
            logger.exception("Refine call failed; using raw answer")
            return raw_answer
        return refined or raw_answer

    async def build_context(self) -> str:
        """Summarize today's sales plus raw store rows for the system prompt."""
        if not self._store.configured:
            logger.warning("Supabase client not configured; context unavailable")
            return CONTEXT_UNAVAILABLE
        try:
            orders = await self._store.today_orders(columns="*")
            products = await self._store.snapshot("products", limit=SNAPSHOT_LIMIT)
            customers = await self._store.snapshot("customers", limit=SNAPSHOT_LIMIT)
            total = format_money(sum_orders(orders))
        except (StoreUnavailableError, *STORE_ERRORS):
            logger.exception("Store query failed (store summary)")
            return CONTEXT_UNAVAILABLE

        day = self._store.current_day().isoformat()
        logger.debug("Providing raw store data as inference context")
        return (
            f"# Today's Store Summary ({day})\n"
            f"- Total orders: {len(orders)}\n"
            f"- Total sales: ${total} {orders_currency(orders)}\n\n"
            "# Raw Data from Database\n"
            f"## Orders (today)\n{_dump(orders)}\n\n"
            f"## Products (top {SNAPSHOT_LIMIT})\n{_dump(products)}\n\n"
            f"## Customers (top {SNAPSHOT_LIMIT})\n{_dump(customers)}\n"
        )
