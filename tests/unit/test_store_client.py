"""Tests for the Supabase-backed store query client."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import httpx
import pytest

from src.store.client import (
    CUSTOMERS_UNAVAILABLE,
    NO_CUSTOMERS,
    NO_ORDERS_TODAY,
    SALES_UNAVAILABLE,
    StoreQueryClient,
    StoreUnavailableError,
    create_store_client,
    day_window,
    format_sales_summary,
    format_top_customers,
    sum_orders,
)
from tests.conftest import make_store


def test_day_window_covers_utc_calendar_day() -> None:
    assert day_window(date(2026, 3, 14)) == ("2026-03-14T00:00:00", "2026-03-14T23:59:59")


class TestSalesSummary:
    @pytest.mark.asyncio
    async def test_zero_orders(self) -> None:
        store, _ = make_store({"orders": []})
        assert await store.today_sales() == "We haven't had any orders today yet."

    @pytest.mark.asyncio
    async def test_single_order_without_currency(self) -> None:
        store, _ = make_store({"orders": [{"id": 1, "total_price": 42.50}]})
        assert await store.today_sales() == "We had 1 order totaling $42.50 USD today."

    @pytest.mark.asyncio
    async def test_three_orders_summing_to_100(self) -> None:
        orders = [
            {"id": 1, "total_price": "33.33"},
            {"id": 2, "total_price": 33.33},
            {"id": 3, "total_price": 33.34},
        ]
        store, _ = make_store({"orders": orders})
        assert await store.today_sales() == "We had 3 orders totaling $100.00 USD today."

    @pytest.mark.asyncio
    async def test_uses_currency_from_records(self) -> None:
        orders = [{"id": 1, "total_price": 10, "currency": "EUR"}]
        store, _ = make_store({"orders": orders})
        assert await store.today_sales() == "We had 1 order totaling $10.00 EUR today."

    @pytest.mark.asyncio
    async def test_queries_todays_window(self) -> None:
        store, db = make_store({"orders": []})
        await store.today_sales()
        query = db.executed[0]
        assert query.table == "orders"
        assert ("gte", "created_at", "2026-03-14T00:00:00") in query.calls
        assert ("lt", "created_at", "2026-03-14T23:59:59") in query.calls

    @pytest.mark.asyncio
    async def test_query_error_degrades(self) -> None:
        store, _ = make_store(errors={"orders": httpx.ConnectError("down")})
        assert await store.today_sales() == SALES_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_unparseable_total_degrades(self) -> None:
        store, _ = make_store({"orders": [{"id": 1, "total_price": "n/a"}]})
        assert await store.today_sales() == SALES_UNAVAILABLE

    def test_sum_is_exact_decimal(self) -> None:
        orders = [{"total_price": 0.1}, {"total_price": 0.2}]
        assert sum_orders(orders) == Decimal("0.3")

    def test_falls_back_to_price_column(self) -> None:
        assert format_sales_summary([{"price": 5}]) == "We had 1 order totaling $5.00 USD today."

    def test_empty_rows_sentence(self) -> None:
        assert format_sales_summary([]) == NO_ORDERS_TODAY


class TestTopCustomers:
    @pytest.mark.asyncio
    async def test_two_customers(self) -> None:
        customers = [
            {"first_name": "A", "last_name": "B", "total_spent": 300},
            {"first_name": "C", "last_name": "D", "total_spent": 100},
        ]
        store, _ = make_store({"customers": customers})
        assert await store.top_customers() == "Our top customers are A B ($300), C D ($100)."

    @pytest.mark.asyncio
    async def test_query_is_sorted_and_limited(self) -> None:
        store, db = make_store({"customers": []})
        await store.top_customers()
        query = db.executed[0]
        assert query.table == "customers"
        assert ("select", "first_name, last_name, total_spent") in query.calls
        assert ("order", "total_spent", True) in query.calls
        assert ("limit", 5) in query.calls

    @pytest.mark.asyncio
    async def test_no_customers(self) -> None:
        store, _ = make_store({"customers": []})
        assert await store.top_customers() == NO_CUSTOMERS

    @pytest.mark.asyncio
    async def test_query_error_degrades(self) -> None:
        store, _ = make_store(errors={"customers": httpx.ReadTimeout("slow")})
        assert await store.top_customers() == CUSTOMERS_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_repeated_query_is_identical(self) -> None:
        customers = [{"first_name": "Ada", "last_name": "L", "total_spent": 1234.5}]
        store, _ = make_store({"customers": customers})
        first = await store.top_customers()
        assert await store.top_customers() == first

    def test_spend_rounds_half_up_to_whole(self) -> None:
        rows = [{"first_name": "X", "last_name": "Y", "total_spent": "99.5"}]
        assert format_top_customers(rows) == "Our top customers are X Y ($100)."


class TestUnconfiguredStore:
    @pytest.mark.asyncio
    async def test_sales_unavailable_without_client(self) -> None:
        store = StoreQueryClient(None)
        assert not store.configured
        assert await store.today_sales() == SALES_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_top_customers_unavailable_without_client(self) -> None:
        store = StoreQueryClient(None)
        assert await store.top_customers() == CUSTOMERS_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_snapshot_raises_without_client(self) -> None:
        store = StoreQueryClient(None)
        with pytest.raises(StoreUnavailableError):
            await store.snapshot("products")

    def test_create_store_client_without_credentials(self) -> None:
        assert create_store_client(None, "key") is None
        assert create_store_client("https://x.supabase.co", "") is None


@pytest.mark.asyncio
async def test_snapshot_limits_rows() -> None:
    products = [{"id": i, "title": f"p{i}"} for i in range(15)]
    store, db = make_store({"products": products})
    rows = await store.snapshot("products", limit=10)
    assert len(rows) == 10
    assert ("select", "*") in db.executed[0].calls
