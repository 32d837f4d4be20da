"""
Arroyyan Backend — Product Service (produk)
=============================================

What:  Catalog CRUD plus per-product stock lookup.
Why:   Product rows are referenced by every stock movement, so removal is a
       soft delete (is_active=False), and only once the product holds no
       stock in either location.

Every query eager-loads `Product.inventory` (selectinload): async sessions
cannot lazy-load, and every product payload embeds its inventory.
"""

import logging
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from arroyyan.exceptions import ConflictError, NotFoundError, ValidationError
from arroyyan.models.common import utcnow
from arroyyan.models.product import Inventory, Product
from arroyyan.schemas.common import Pagination
from arroyyan.schemas.product import (
    ProductCreate,
    ProductListResponse,
    ProductResponse,
    ProductStockResponse,
    ProductUpdate,
    StockLevels,
)

logger = logging.getLogger(__name__)


class ProductService:
    async def create_product(self, db: AsyncSession, data: ProductCreate) -> ProductResponse:
        """
        Creates the product together with an empty inventory row (0 / 0).

        Raises:
            ConflictError: SKU already used (→ 409)
        """
        existing = await db.execute(select(Product.id).where(Product.sku == data.sku))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(f"SKU '{data.sku}' is already in use", field="sku")

        product = Product(
            name=data.name,
            sku=data.sku,
            selling_price=data.selling_price,
            is_active=True,
            inventory=Inventory(warehouse_stock=0, display_stock=0, last_stock_update=utcnow()),
        )
        db.add(product)
        await db.flush()
        logger.info("Product created: %s (%s)", product.sku, product.id)
        return ProductResponse.model_validate(product)

    async def list_products(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> ProductListResponse:
        conditions = []
        if search:
            conditions.append(
                or_(
                    Product.name.icontains(search, autoescape=True),
                    Product.sku.icontains(search, autoescape=True),
                )
            )
        if is_active is not None:
            conditions.append(Product.is_active.is_(is_active))

        total = (
            await db.execute(select(func.count(Product.id)).where(*conditions))
        ).scalar_one()

        result = await db.execute(
            select(Product)
            .options(selectinload(Product.inventory))
            .where(*conditions)
            .order_by(Product.created_at.desc(), Product.id)
            .offset(Pagination.offset(page, limit))
            .limit(limit)
        )
        products = result.scalars().all()

        return ProductListResponse(
            products=[ProductResponse.model_validate(p) for p in products],
            pagination=Pagination.build(page, limit, total),
        )

    async def get_product_model(self, db: AsyncSession, product_id: str) -> Product:
        result = await db.execute(
            select(Product)
            .options(selectinload(Product.inventory))
            .where(Product.id == product_id)
            .execution_options(populate_existing=True)
        )
        product = result.scalar_one_or_none()
        if product is None:
            raise NotFoundError(resource="product", resource_id=product_id)
        return product

    async def get_product(self, db: AsyncSession, product_id: str) -> ProductResponse:
        return ProductResponse.model_validate(await self.get_product_model(db, product_id))

    async def get_stock(self, db: AsyncSession, product_id: str) -> ProductStockResponse:
        product = await self.get_product_model(db, product_id)
        inventory = product.inventory
        warehouse = inventory.warehouse_stock if inventory else 0
        display = inventory.display_stock if inventory else 0
        return ProductStockResponse(
            product_id=product.id,
            name=product.name,
            sku=product.sku,
            stock=StockLevels(warehouse=warehouse, display=display, total=warehouse + display),
            last_stock_update=inventory.last_stock_update if inventory else None,
        )

    async def update_product(
        self, db: AsyncSession, product_id: str, data: ProductUpdate
    ) -> ProductResponse:
        """Only name and selling_price are mutable; the SKU never changes."""
        product = await self.get_product_model(db, product_id)
        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(product, field, value)
        product.updated_at = utcnow()
        await db.flush()
        return ProductResponse.model_validate(product)

    async def deactivate_product(self, db: AsyncSession, product_id: str) -> ProductResponse:
        """
        Soft delete.

        Raises:
            ValidationError: product still has warehouse or display stock (→ 400)
        """
        product = await self.get_product_model(db, product_id)
        inventory = product.inventory
        if inventory is not None and inventory.total_stock > 0:
            raise ValidationError(
                "Cannot delete a product that still has stock",
                context={
                    "warehouse_stock": inventory.warehouse_stock,
                    "display_stock": inventory.display_stock,
                    "total_stock": inventory.total_stock,
                },
            )

        product.is_active = False
        product.updated_at = utcnow()
        await db.flush()
        logger.info("Product deactivated: %s", product.sku)
        return ProductResponse.model_validate(product)

    async def set_active(
        self, db: AsyncSession, product_id: str, is_active: bool
    ) -> ProductResponse:
        product = await self.get_product_model(db, product_id)
        product.is_active = is_active
        product.updated_at = utcnow()
        await db.flush()
        return ProductResponse.model_validate(product)


product_service = ProductService()
