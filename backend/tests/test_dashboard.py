"""
Arroyyan Backend — Dashboard Tests
====================================

What we test:
    ✅ Summary: period window, revenue, low stock count, recent transactions
    ✅ Trend and stats require both dates → 400 otherwise
    ✅ Top products ordering and limit bounds
    ✅ Stats is admin-only
    ✅ period_range boundaries
"""

from datetime import date

import pytest

from arroyyan.models.common import today
from arroyyan.services.dashboard_service import period_range


async def _sell(client, headers, product_id, quantity):
    response = await client.post(
        "/api/penjualan",
        headers=headers,
        json={
            "payment_method": "cash",
            "paid_amount": 10000000,
            "items": [{"product_id": product_id, "quantity": quantity}],
        },
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestPeriodRange:
    def test_daily(self):
        assert period_range("daily", date(2025, 3, 14)) == (date(2025, 3, 14), date(2025, 3, 14))

    def test_weekly_starts_monday(self):
        assert period_range("weekly", date(2025, 3, 14)) == (date(2025, 3, 10), date(2025, 3, 14))

    def test_monthly_starts_first(self):
        assert period_range("monthly", date(2025, 3, 14)) == (date(2025, 3, 1), date(2025, 3, 14))


class TestSummary:
    @pytest.mark.asyncio
    async def test_summary_counts(self, client, cashier_headers, create_product):
        food = await create_product(name="Whiskas", sku="WHK01", selling_price=25000, warehouse_stock=20, display_stock=10)
        await create_product(name="Pasir", sku="PSR01", warehouse_stock=2, display_stock=3)
        await _sell(client, cashier_headers, food.id, 2)

        response = await client.get("/api/dashboard", headers=cashier_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["period"] == "daily"
        assert data["start_date"] == data["end_date"] == today().isoformat()
        assert data["total_revenue"] == 50000
        assert data["low_stock_count"] == 1
        assert len(data["transactions"]) == 1
        transaction = data["transactions"][0]
        assert transaction["cashier_name"] == "Kasir Satu"
        assert transaction["item_count"] == 2

    @pytest.mark.asyncio
    async def test_unknown_period_rejected(self, client, cashier_headers):
        response = await client.get(
            "/api/dashboard", headers=cashier_headers, params={"period": "yearly"}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_quick_stats(self, client, cashier_headers, create_product):
        product = await create_product(selling_price=25000, warehouse_stock=50, display_stock=10)
        await _sell(client, cashier_headers, product.id, 1)

        response = await client.get("/api/dashboard/quick", headers=cashier_headers)

        data = response.json()["data"]
        assert data["total_transactions"] == 1
        assert data["total_revenue"] == 25000
        assert data["low_stock_count"] == 0

    @pytest.mark.asyncio
    async def test_requires_authentication(self, client):
        response = await client.get("/api/dashboard")
        assert response.status_code == 401


class TestTrendAndStats:
    @pytest.mark.asyncio
    async def test_trend_requires_dates(self, client, cashier_headers):
        response = await client.get(
            "/api/dashboard/trend", headers=cashier_headers, params={"start_date": "2025-03-01"}
        )

        assert response.status_code == 400
        assert response.json()["message"] == "start_date and end_date are required"

    @pytest.mark.asyncio
    async def test_trend_rejects_inverted_range(self, client, cashier_headers):
        response = await client.get(
            "/api/dashboard/trend",
            headers=cashier_headers,
            params={"start_date": "2025-03-31", "end_date": "2025-03-01"},
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_trend_groups_by_day(self, client, cashier_headers, create_product):
        product = await create_product(selling_price=25000, display_stock=10)
        await _sell(client, cashier_headers, product.id, 1)
        await _sell(client, cashier_headers, product.id, 2)
        day = today().isoformat()

        response = await client.get(
            "/api/dashboard/trend",
            headers=cashier_headers,
            params={"start_date": day, "end_date": day},
        )

        assert response.json()["data"] == [{"date": day, "revenue": 75000.0, "transactions": 2}]

    @pytest.mark.asyncio
    async def test_stats_admin_only(self, client, cashier_headers):
        response = await client.get(
            "/api/dashboard/stats",
            headers=cashier_headers,
            params={"start_date": "2025-03-01", "end_date": "2025-03-31"},
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_stats(self, client, admin_headers, create_product):
        product = await create_product(selling_price=25000, display_stock=10)
        await _sell(client, admin_headers, product.id, 2)
        await _sell(client, admin_headers, product.id, 2)
        day = today().isoformat()

        response = await client.get(
            "/api/dashboard/stats",
            headers=admin_headers,
            params={"start_date": day, "end_date": day},
        )

        data = response.json()["data"]
        assert data["period"] == {"start_date": day, "end_date": day}
        assert data["total_transactions"] == 2
        assert data["total_revenue"] == 100000
        assert data["average_transaction_value"] == 50000
        assert data["top_products"][0]["quantity_sold"] == 4
        assert len(data["trend"]) == 1


class TestTopProducts:
    @pytest.mark.asyncio
    async def test_ordered_by_quantity(self, client, cashier_headers, create_product):
        food = await create_product(name="Whiskas", sku="WHK01", display_stock=20)
        sand = await create_product(name="Pasir", sku="PSR01", display_stock=20)
        await _sell(client, cashier_headers, food.id, 1)
        await _sell(client, cashier_headers, sand.id, 5)

        response = await client.get(
            "/api/dashboard/top-products", headers=cashier_headers, params={"limit": 1}
        )

        data = response.json()["data"]
        assert len(data) == 1
        assert data[0]["sku"] == "PSR01"
        assert data[0]["quantity_sold"] == 5

    @pytest.mark.asyncio
    async def test_limit_bounds(self, client, cashier_headers):
        response = await client.get(
            "/api/dashboard/top-products", headers=cashier_headers, params={"limit": 51}
        )
        assert response.status_code == 400
