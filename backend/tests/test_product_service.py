"""
Arroyyan Backend — Product Service Unit Tests
===============================================

What:  Tests for ProductService business rules.
How:   Uses mock DB sessions (no real database).

What we test:
    ✅ Duplicate SKU raises ConflictError before anything is added
    ✅ Missing product raises NotFoundError
    ✅ Soft delete refused while stock remains, allowed at zero stock
    ✅ Stock lookup sums both counters
"""

from unittest.mock import MagicMock

import pytest

from arroyyan.exceptions import ConflictError, NotFoundError, ValidationError
from arroyyan.models.common import utcnow
from arroyyan.models.product import Inventory, Product
from arroyyan.schemas.product import ProductCreate
from arroyyan.services.product_service import ProductService


def _product(warehouse: int = 0, display: int = 0) -> Product:
    now = utcnow()
    return Product(
        id="prod_test",
        name="Whiskas Tuna 1kg",
        sku="WHK001",
        selling_price=25000,
        is_active=True,
        created_at=now,
        updated_at=now,
        inventory=Inventory(
            product_id="prod_test",
            warehouse_stock=warehouse,
            display_stock=display,
            last_stock_update=now,
        ),
    )


def _result(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


class TestCreateProduct:
    def setup_method(self):
        self.service = ProductService()

    @pytest.mark.asyncio
    async def test_duplicate_sku(self, mock_db_session):
        mock_db_session.execute.return_value = _result("prod_existing")
        data = ProductCreate(name="Whiskas Tuna", sku="whk001", selling_price=25000)

        with pytest.raises(ConflictError) as exc_info:
            await self.service.create_product(mock_db_session, data)

        assert exc_info.value.context == {"field": "sku"}
        mock_db_session.add.assert_not_called()


class TestProductLookup:
    def setup_method(self):
        self.service = ProductService()

    @pytest.mark.asyncio
    async def test_not_found(self, mock_db_session):
        mock_db_session.execute.return_value = _result(None)

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.get_product(mock_db_session, "prod_missing")

        assert exc_info.value.message == "Product 'prod_missing' not found"

    @pytest.mark.asyncio
    async def test_stock_levels(self, mock_db_session):
        mock_db_session.execute.return_value = _result(_product(warehouse=30, display=12))

        stock = await self.service.get_stock(mock_db_session, "prod_test")

        assert (stock.stock.warehouse, stock.stock.display, stock.stock.total) == (30, 12, 42)


class TestDeactivateProduct:
    def setup_method(self):
        self.service = ProductService()

    @pytest.mark.asyncio
    async def test_refused_with_stock(self, mock_db_session):
        product = _product(warehouse=0, display=3)
        mock_db_session.execute.return_value = _result(product)

        with pytest.raises(ValidationError) as exc_info:
            await self.service.deactivate_product(mock_db_session, "prod_test")

        assert exc_info.value.context["total_stock"] == 3
        assert product.is_active is True
        mock_db_session.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_deactivates_empty_product(self, mock_db_session):
        product = _product()
        mock_db_session.execute.return_value = _result(product)

        result = await self.service.deactivate_product(mock_db_session, "prod_test")

        assert result.is_active is False
        assert product.is_active is False
        mock_db_session.flush.assert_awaited_once()
