"""
Arroyyan Backend — Sales (Checkout) Tests
===========================================

What:  The checkout transaction and sales reports.

What we test:
    ✅ total_amount = Σ quantity × selling_price, change = paid − total
    ✅ Display stock decremented, warehouse untouched
    ✅ Insufficient display stock → 400, nothing written
    ✅ Same product listed twice is checked against its summed quantity
    ✅ Paid below total → 400 PAYMENT_ERROR, nothing written
    ✅ Inactive / unknown product → 400 INVALID_PRODUCT
    ✅ INV-YYYYMMDD-NNN numbering, list / detail / items, reports
"""

import re

import pytest
from sqlalchemy import func, select

from arroyyan.models import Sale, SaleItem


async def _sale_count(session_factory) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count(Sale.id)))).scalar_one()


class TestCheckout:
    @pytest.mark.asyncio
    async def test_total_equals_sum_of_items(
        self, client, cashier_headers, cashier_user, create_product, session_factory
    ):
        food = await create_product(name="Whiskas Tuna", sku="WHK01", selling_price=25000, display_stock=10)
        sand = await create_product(name="Pasir Kucing", sku="PSR01", selling_price=15000, display_stock=10)

        response = await client.post(
            "/api/penjualan",
            headers=cashier_headers,
            json={
                "payment_method": "cash",
                "paid_amount": 100000,
                "items": [
                    {"product_id": food.id, "quantity": 2},
                    {"product_id": sand.id, "quantity": 3},
                ],
            },
        )

        assert response.status_code == 201, response.text
        sale = response.json()["data"]
        assert sale["total_amount"] == 95000
        assert sale["total_amount"] == sum(item["subtotal"] for item in sale["items"])
        assert sale["paid_amount"] == 100000
        assert sale["change_amount"] == 5000
        assert sale["cashier"]["id"] == cashier_user.id
        for item in sale["items"]:
            assert item["subtotal"] == item["quantity"] * item["unit_price"]

        async with session_factory() as session:
            stored = (
                await session.execute(
                    select(func.sum(SaleItem.subtotal)).where(SaleItem.sale_id == sale["id"])
                )
            ).scalar_one()
        assert stored == 95000

    @pytest.mark.asyncio
    async def test_decrements_display_only(
        self, client, cashier_headers, create_product, get_inventory
    ):
        product = await create_product(selling_price=25000, warehouse_stock=40, display_stock=10)

        response = await client.post(
            "/api/penjualan",
            headers=cashier_headers,
            json={
                "payment_method": "qris",
                "paid_amount": 75000,
                "items": [{"product_id": product.id, "quantity": 3}],
            },
        )

        assert response.status_code == 201
        inventory = await get_inventory(product.id)
        assert inventory.display_stock == 7
        assert inventory.warehouse_stock == 40

    @pytest.mark.asyncio
    async def test_sale_number_format(self, client, cashier_headers, create_product):
        product = await create_product(display_stock=5)

        response = await client.post(
            "/api/penjualan",
            headers=cashier_headers,
            json={
                "sale_date": "2025-03-14",
                "payment_method": "cash",
                "paid_amount": 25000,
                "items": [{"product_id": product.id, "quantity": 1}],
            },
        )

        number = response.json()["data"]["sale_number"]
        assert re.fullmatch(r"INV-20250314-\d{3}", number)

    @pytest.mark.asyncio
    async def test_unit_price_comes_from_catalog(self, client, cashier_headers, create_product):
        product = await create_product(selling_price=25000, display_stock=5)

        response = await client.post(
            "/api/penjualan",
            headers=cashier_headers,
            json={
                "payment_method": "cash",
                "paid_amount": 25000,
                "items": [{"product_id": product.id, "quantity": 1, "unit_price": 1}],
            },
        )

        assert response.json()["data"]["items"][0]["unit_price"] == 25000


class TestCheckoutRejections:
    @pytest.mark.asyncio
    async def test_insufficient_display_stock_returns_400(
        self, client, cashier_headers, create_product, get_inventory, session_factory
    ):
        product = await create_product(warehouse_stock=100, display_stock=2)

        response = await client.post(
            "/api/penjualan",
            headers=cashier_headers,
            json={
                "payment_method": "cash",
                "paid_amount": 1000000,
                "items": [{"product_id": product.id, "quantity": 5}],
            },
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "INSUFFICIENT_STOCK"
        assert body["details"]["location"] == "display"
        assert body["details"]["requested"] == 5
        assert body["details"]["available"] == 2

        inventory = await get_inventory(product.id)
        assert inventory.display_stock == 2
        assert inventory.warehouse_stock == 100
        assert await _sale_count(session_factory) == 0

    @pytest.mark.asyncio
    async def test_duplicate_lines_are_summed(
        self, client, cashier_headers, create_product, get_inventory
    ):
        product = await create_product(display_stock=5)

        response = await client.post(
            "/api/penjualan",
            headers=cashier_headers,
            json={
                "payment_method": "cash",
                "paid_amount": 1000000,
                "items": [
                    {"product_id": product.id, "quantity": 3},
                    {"product_id": product.id, "quantity": 3},
                ],
            },
        )

        assert response.status_code == 400
        assert response.json()["details"]["requested"] == 6
        assert (await get_inventory(product.id)).display_stock == 5

    @pytest.mark.asyncio
    async def test_paid_below_total_rejected(
        self, client, cashier_headers, create_product, get_inventory, session_factory
    ):
        product = await create_product(selling_price=25000, display_stock=10)

        response = await client.post(
            "/api/penjualan",
            headers=cashier_headers,
            json={
                "payment_method": "cash",
                "paid_amount": 40000,
                "items": [{"product_id": product.id, "quantity": 2}],
            },
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "PAYMENT_ERROR"
        assert body["details"] == {"paid_amount": 40000, "total_amount": 50000}
        assert (await get_inventory(product.id)).display_stock == 10
        assert await _sale_count(session_factory) == 0

    @pytest.mark.asyncio
    async def test_exact_payment_gives_zero_change(self, client, cashier_headers, create_product):
        product = await create_product(selling_price=25000, display_stock=10)

        response = await client.post(
            "/api/penjualan",
            headers=cashier_headers,
            json={
                "payment_method": "qris",
                "paid_amount": 50000,
                "items": [{"product_id": product.id, "quantity": 2}],
            },
        )

        assert response.status_code == 201
        assert response.json()["data"]["change_amount"] == 0

    @pytest.mark.asyncio
    async def test_inactive_product_rejected(self, client, cashier_headers, create_product):
        product = await create_product(display_stock=10, is_active=False)

        response = await client.post(
            "/api/penjualan",
            headers=cashier_headers,
            json={
                "payment_method": "cash",
                "paid_amount": 1000000,
                "items": [{"product_id": product.id, "quantity": 1}],
            },
        )

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_PRODUCT"

    @pytest.mark.asyncio
    async def test_unknown_product_rejected(self, client, cashier_headers):
        response = await client.post(
            "/api/penjualan",
            headers=cashier_headers,
            json={
                "payment_method": "cash",
                "paid_amount": 1000000,
                "items": [{"product_id": "prod_missing", "quantity": 1}],
            },
        )

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_PRODUCT"

    @pytest.mark.asyncio
    async def test_failing_line_rolls_back_valid_lines(
        self, client, cashier_headers, create_product, get_inventory, session_factory
    ):
        plenty = await create_product(name="Whiskas Tuna", sku="WHK01", display_stock=10)
        scarce = await create_product(name="Pasir Kucing", sku="PSR01", display_stock=1)

        response = await client.post(
            "/api/penjualan",
            headers=cashier_headers,
            json={
                "payment_method": "cash",
                "paid_amount": 1000000,
                "items": [
                    {"product_id": plenty.id, "quantity": 4},
                    {"product_id": scarce.id, "quantity": 2},
                ],
            },
        )

        assert response.status_code == 400
        assert (await get_inventory(plenty.id)).display_stock == 10
        assert (await get_inventory(scarce.id)).display_stock == 1
        assert await _sale_count(session_factory) == 0

    @pytest.mark.asyncio
    async def test_more_than_100_lines_rejected(
        self, client, cashier_headers, create_product, get_inventory, session_factory
    ):
        product = await create_product(selling_price=1000, display_stock=500)

        response = await client.post(
            "/api/penjualan",
            headers=cashier_headers,
            json={
                "payment_method": "cash",
                "paid_amount": 1000000,
                "items": [{"product_id": product.id, "quantity": 1}] * 101,
            },
        )

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"
        assert (await get_inventory(product.id)).display_stock == 500
        assert await _sale_count(session_factory) == 0

    @pytest.mark.asyncio
    async def test_unknown_payment_method_rejected(self, client, cashier_headers, create_product):
        product = await create_product(display_stock=10)

        response = await client.post(
            "/api/penjualan",
            headers=cashier_headers,
            json={
                "payment_method": "debit",
                "paid_amount": 25000,
                "items": [{"product_id": product.id, "quantity": 1}],
            },
        )

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"


class TestSaleQueries:
    async def _sell(self, client, headers, product_id, quantity, method="cash", paid=1000000):
        response = await client.post(
            "/api/penjualan",
            headers=headers,
            json={
                "payment_method": method,
                "paid_amount": paid,
                "items": [{"product_id": product_id, "quantity": quantity}],
            },
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    @pytest.mark.asyncio
    async def test_detail_and_items(self, client, cashier_headers, create_product):
        product = await create_product(display_stock=10)
        sale = await self._sell(client, cashier_headers, product.id, 2)

        detail = await client.get(f"/api/penjualan/{sale['id']}", headers=cashier_headers)
        items = await client.get(f"/api/penjualan/{sale['id']}/items", headers=cashier_headers)

        assert detail.json()["data"]["sale_number"] == sale["sale_number"]
        items_data = items.json()["data"]
        assert items_data["sale_id"] == sale["id"]
        assert items_data["items"][0]["product"]["sku"] == "WHK001"

    @pytest.mark.asyncio
    async def test_unknown_sale_404(self, client, cashier_headers):
        response = await client.get("/api/penjualan/sale_missing", headers=cashier_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_list_filters_by_payment_method(self, client, cashier_headers, create_product):
        product = await create_product(display_stock=10)
        await self._sell(client, cashier_headers, product.id, 1, method="cash")
        await self._sell(client, cashier_headers, product.id, 1, method="qris")

        response = await client.get(
            "/api/penjualan", headers=cashier_headers, params={"payment_method": "qris"}
        )

        data = response.json()["data"]
        assert data["pagination"]["total"] == 1
        assert data["sales"][0]["payment_method"] == "qris"

    @pytest.mark.asyncio
    async def test_stats_admin_only(self, client, cashier_headers):
        response = await client.get("/api/penjualan/stats", headers=cashier_headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_stats(self, client, admin_headers, create_product):
        food = await create_product(name="Whiskas Tuna", sku="WHK01", selling_price=25000, display_stock=20)
        sand = await create_product(name="Pasir Kucing", sku="PSR01", selling_price=15000, display_stock=20)
        await self._sell(client, admin_headers, food.id, 4, method="cash")
        await self._sell(client, admin_headers, sand.id, 1, method="qris")

        response = await client.get("/api/penjualan/stats", headers=admin_headers)

        data = response.json()["data"]
        assert data["total_transactions"] == 2
        assert data["total_revenue"] == 115000
        assert data["total_items_sold"] == 5
        assert data["average_transaction_value"] == 57500
        assert data["cash_transactions"] == 1
        assert data["qris_transactions"] == 1
        assert data["top_products"][0]["sku"] == "WHK01"
        assert data["top_products"][0]["quantity_sold"] == 4

    @pytest.mark.asyncio
    async def test_today_summary_reconciles_stock(self, client, cashier_headers, create_product):
        product = await create_product(selling_price=25000, display_stock=10)
        await self._sell(client, cashier_headers, product.id, 3, method="cash")

        response = await client.get("/api/penjualan/today", headers=cashier_headers)

        data = response.json()["data"]
        assert data["total_transactions"] == 1
        assert data["total_revenue"] == 75000
        assert data["cash_revenue"] == 75000
        assert data["qris_revenue"] == 0
        assert data["closing_stock"] == 7
        assert data["opening_stock"] == 10
        assert data["stock_moved"] == 3

    @pytest.mark.asyncio
    async def test_cashier_sales(self, client, admin_headers, cashier_headers, cashier_user, create_product):
        product = await create_product(selling_price=25000, display_stock=10)
        await self._sell(client, cashier_headers, product.id, 2)
        await self._sell(client, admin_headers, product.id, 1)

        response = await client.get(f"/api/penjualan/cashier/{cashier_user.id}", headers=admin_headers)

        data = response.json()["data"]
        assert data["cashier"]["username"] == "kasir1"
        assert data["total_transactions"] == 1
        assert data["total_revenue"] == 50000
