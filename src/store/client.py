"""Read-only queries against the Supabase store backing the assistant.

Renders the fixed sales and top-customer sentences, and exposes raw row
snapshots used to build language-model context.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

import httpx
from supabase import PostgrestAPIError, create_client

if TYPE_CHECKING:
    from supabase import Client

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "USD"

SALES_UNAVAILABLE = "Sorry, I couldn't retrieve today's sales data at the moment."
NO_ORDERS_TODAY = "We haven't had any orders today yet."
CUSTOMERS_UNAVAILABLE = "Sorry, I couldn't retrieve customer info at the moment."
NO_CUSTOMERS = "We don't have any customer data available at the moment."

# Failures a store read may raise: PostgREST errors, transport errors, and
# rows whose numeric columns cannot be parsed.
STORE_ERRORS: tuple[type[Exception], ...] = (
    PostgrestAPIError,
    httpx.HTTPError,
    InvalidOperation,
)

_CENTS = Decimal("0.01")
_WHOLE = Decimal("1")


class StoreUnavailableError(RuntimeError):
    """Raised when a query is attempted without a configured Supabase client."""


def utc_today() -> date:
    return datetime.now(UTC).date()


def day_window(day: date) -> tuple[str, str]:
    """Return the ``created_at`` bounds used for a same-day query."""
    iso = day.isoformat()
    return f"{iso}T00:00:00", f"{iso}T23:59:59"


def to_decimal(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal(0)
    return Decimal(str(value))


def order_total(order: dict[str, Any]) -> Decimal:
    """Order amount, preferring ``total_price`` and falling back to ``price``."""
    return to_decimal(order.get("total_price") or order.get("price"))


def sum_orders(orders: list[dict[str, Any]]) -> Decimal:
    return sum((order_total(o) for o in orders), Decimal(0))


def orders_currency(orders: list[dict[str, Any]]) -> str:
    for order in orders:
        currency = order.get("currency")
        if currency:
            return str(currency)
    return DEFAULT_CURRENCY


def format_money(amount: Decimal, places: Decimal = _CENTS) -> str:
    return str(amount.quantize(places, rounding=ROUND_HALF_UP))


def format_sales_summary(orders: list[dict[str, Any]]) -> str:
    if not orders:
        return NO_ORDERS_TODAY
    count = len(orders)
    noun = "order" if count == 1 else "orders"
    total = format_money(sum_orders(orders))
    return f"We had {count} {noun} totaling ${total} {orders_currency(orders)} today."


def format_top_customers(customers: list[dict[str, Any]]) -> str:
    if not customers:
        return NO_CUSTOMERS
    ranked = ", ".join(
        f"{c.get('first_name', '')} {c.get('last_name', '')} "
        f"(${format_money(to_decimal(c.get('total_spent')), _WHOLE)})"
        for c in customers
    )
    return f"Our top customers are {ranked}."


class StoreQueryClient:
    """Issues read-only queries through an optional Supabase client.

    A client of ``None`` means the store is not configured: sentence-producing
    queries degrade to a fixed "unavailable" answer without touching the
    network, and raw snapshot queries raise :class:`StoreUnavailableError`.
    """

    def __init__(
        self,
        client: Client | None,
        today: Callable[[], date] = utc_today,
    ) -> None:
        self._client = client
        self._today = today

    @property
    def configured(self) -> bool:
        return self._client is not None

    def current_day(self) -> date:
        return self._today()

    async def today_sales(self) -> str:
        """Summarize today's order count and total as a single sentence."""
        if not self.configured:
            logger.warning("Supabase client not configured; skipping today's sales")
            return SALES_UNAVAILABLE
        try:
            orders = await self.today_orders(columns="*")
            return format_sales_summary(orders)
        except STORE_ERRORS:
            logger.exception("Store query failed (today's sales)")
            return SALES_UNAVAILABLE

    async def top_customers(self, limit: int = 5) -> str:
        """Name the highest-spending customers as a single sentence."""
        if not self.configured:
            logger.warning("Supabase client not configured; skipping top customers")
            return CUSTOMERS_UNAVAILABLE
        try:
            customers = await asyncio.to_thread(self._select_top_customers, limit)
            return format_top_customers(customers)
        except STORE_ERRORS:
            logger.exception("Store query failed (top customers)")
            return CUSTOMERS_UNAVAILABLE

    async def today_orders(self, columns: str = "*") -> list[dict[str, Any]]:
        """Raw ``orders`` rows created within today's UTC window."""
        return await asyncio.to_thread(self._select_today_orders, columns)

    async def snapshot(self, table: str, limit: int = 10) -> list[dict[str, Any]]:
        """Up to ``limit`` raw rows of ``table``, all columns."""
        return await asyncio.to_thread(self._select_snapshot, table, limit)

    def _require_client(self) -> Client:
        if self._client is None:
            raise StoreUnavailableError("Supabase client is not configured")
        return self._client

    def _select_today_orders(self, columns: str) -> list[dict[str, Any]]:
        start, end = day_window(self._today())
        logger.info("Querying orders between %s and %s", start, end)
        resp = (
            self._require_client()
            .table("orders")
            .select(columns)
            .gte("created_at", start)
            .lt("created_at", end)
            .execute()
        )
        return list(resp.data or [])

    def _select_top_customers(self, limit: int) -> list[dict[str, Any]]:
        logger.info("Querying top %d customers", limit)
        resp = (
            self._require_client()
            .table("customers")
            .select("first_name, last_name, total_spent")
            .order("total_spent", desc=True)
            .limit(limit)
            .execute()
        )
        return list(resp.data or [])

    def _select_snapshot(self, table: str, limit: int) -> list[dict[str, Any]]:
        resp = self._require_client().table(table).select("*").limit(limit).execute()
        return list(resp.data or [])


def create_store_client(url: str | None, key: str | None) -> Client | None:
    """Create a Supabase client, or ``None`` when credentials are missing or bad."""
    if not (url and key):
        logger.warning("Supabase URL or key missing; store-backed answers are disabled")
        return None

    try:
        client = create_client(url, key)
    except Exception as exc:  # bad URL/key format; run without the store
        logger.error("Failed to initialize Supabase client: %s", exc)
        return None
    logger.info("Supabase client initialized")
    return client
