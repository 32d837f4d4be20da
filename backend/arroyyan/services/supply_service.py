"""
Arroyyan Backend — Supply Service (pasokan)
=============================================

What:  Supplier management and receiving supply orders into the warehouse.

Supply Order Flow (one request = one transaction):
    ┌──────────────┐   ┌─────────────────┐   ┌──────────────┐   ┌──────────────────┐
    │ supplier     │──▶│ products exist  │──▶│ header +     │──▶│ warehouse_stock  │
    │ exists/active│   │ and are active  │   │ items rows   │   │ += quantity      │
    └──────────────┘   └─────────────────┘   └──────────────┘   └──────────────────┘

    total_amount = Σ quantity × purchase_price
    A product without an inventory row gets one on first receipt.
"""

import logging
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from arroyyan.exceptions import InvalidProductError, NotFoundError, ValidationError
from arroyyan.models.common import today, utcnow
from arroyyan.models.product import Inventory, Product
from arroyyan.models.supply import Supplier, SupplyOrder, SupplyOrderItem
from arroyyan.schemas.common import Pagination
from arroyyan.schemas.supply import (
    SupplierCreate,
    SupplierListResponse,
    SupplierResponse,
    SupplierUpdate,
    SupplyOrderCreate,
    SupplyOrderItemResponse,
    SupplyOrderItemsResponse,
    SupplyOrderListResponse,
    SupplyOrderResponse,
)
from arroyyan.services.numbering import SUPPLY_PREFIX, number_allocator

logger = logging.getLogger(__name__)


def _order_detail_query():
    return select(SupplyOrder).options(
        selectinload(SupplyOrder.supplier),
        selectinload(SupplyOrder.items).selectinload(SupplyOrderItem.product),
    )


class SupplyService:
    # ══════════════════════════════════════════════════════════════════════
    # Suppliers
    # ══════════════════════════════════════════════════════════════════════

    async def create_supplier(self, db: AsyncSession, data: SupplierCreate) -> SupplierResponse:
        supplier = Supplier(**data.model_dump(), is_active=True)
        db.add(supplier)
        await db.flush()
        logger.info("Supplier created: %s (%s)", supplier.name, supplier.id)
        return SupplierResponse.model_validate(supplier)

    async def list_suppliers(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> SupplierListResponse:
        conditions = []
        if search:
            conditions.append(
                or_(
                    Supplier.name.icontains(search, autoescape=True),
                    Supplier.contact_person.icontains(search, autoescape=True),
                    Supplier.phone.contains(search, autoescape=True),
                )
            )
        if is_active is not None:
            conditions.append(Supplier.is_active.is_(is_active))

        total = (
            await db.execute(select(func.count(Supplier.id)).where(*conditions))
        ).scalar_one()
        result = await db.execute(
            select(Supplier)
            .where(*conditions)
            .order_by(Supplier.created_at.desc(), Supplier.id)
            .offset(Pagination.offset(page, limit))
            .limit(limit)
        )
        return SupplierListResponse(
            suppliers=[SupplierResponse.model_validate(s) for s in result.scalars().all()],
            pagination=Pagination.build(page, limit, total),
        )

    async def get_supplier_model(self, db: AsyncSession, supplier_id: str) -> Supplier:
        supplier = await db.get(Supplier, supplier_id)
        if supplier is None:
            raise NotFoundError(resource="supplier", resource_id=supplier_id)
        return supplier

    async def get_supplier(self, db: AsyncSession, supplier_id: str) -> SupplierResponse:
        return SupplierResponse.model_validate(await self.get_supplier_model(db, supplier_id))

    async def update_supplier(
        self, db: AsyncSession, supplier_id: str, data: SupplierUpdate
    ) -> SupplierResponse:
        supplier = await self.get_supplier_model(db, supplier_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("name") is None:
            changes.pop("name", None)
        if changes.get("is_active") is None:
            changes.pop("is_active", None)
        for field, value in changes.items():
            setattr(supplier, field, value)
        supplier.updated_at = utcnow()
        await db.flush()
        return SupplierResponse.model_validate(supplier)

    async def deactivate_supplier(self, db: AsyncSession, supplier_id: str) -> SupplierResponse:
        """
        Soft delete.

        Raises:
            ValidationError: the supplier has supply order history (→ 400)
        """
        supplier = await self.get_supplier_model(db, supplier_id)
        order_count = (
            await db.execute(
                select(func.count(SupplyOrder.id)).where(SupplyOrder.supplier_id == supplier_id)
            )
        ).scalar_one()
        if order_count > 0:
            raise ValidationError(
                "Cannot delete a supplier that has supply order history",
                context={"order_count": order_count},
            )

        supplier.is_active = False
        supplier.updated_at = utcnow()
        await db.flush()
        logger.info("Supplier deactivated: %s", supplier.id)
        return SupplierResponse.model_validate(supplier)

    # ══════════════════════════════════════════════════════════════════════
    # Supply orders
    # ══════════════════════════════════════════════════════════════════════

    async def create_order(self, db: AsyncSession, data: SupplyOrderCreate) -> SupplyOrderResponse:
        """
        Records a supply order and adds its quantities to warehouse stock.

        Raises:
            NotFoundError:       supplier does not exist (→ 404)
            ValidationError:     supplier is inactive (→ 400)
            InvalidProductError: an item's product is missing or inactive (→ 400)
        """
        supplier = await self.get_supplier_model(db, data.supplier_id)
        if not supplier.is_active:
            raise ValidationError(
                "Supplier is not active", field="supplier_id", context={"supplier_id": supplier.id}
            )

        product_ids = list(dict.fromkeys(item.product_id for item in data.items))
        products = await self._load_products(db, product_ids)
        for product_id in product_ids:
            product = products.get(product_id)
            if product is None:
                raise InvalidProductError(product_id, "product not found")
            if not product.is_active:
                raise InvalidProductError(product_id, f"product '{product.name}' is inactive")

        order_date = data.order_date or today()
        order = SupplyOrder(
            order_number=await number_allocator.allocate(
                db, SupplyOrder.order_number, SUPPLY_PREFIX, order_date
            ),
            supplier_id=supplier.id,
            order_date=order_date,
            notes=data.notes,
            total_amount=0,
        )

        now = utcnow()
        total = 0.0
        for item in data.items:
            subtotal = item.quantity * item.purchase_price
            total += subtotal
            order.items.append(
                SupplyOrderItem(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    purchase_price=item.purchase_price,
                    subtotal=subtotal,
                )
            )

            product = products[item.product_id]
            if product.inventory is None:
                product.inventory = Inventory(warehouse_stock=0, display_stock=0)
            product.inventory.warehouse_stock += item.quantity
            product.inventory.last_stock_update = now

        order.total_amount = total
        db.add(order)
        await db.flush()

        logger.info(
            "Supply order %s received from %s: %d items, total %.2f",
            order.order_number,
            supplier.name,
            len(order.items),
            order.total_amount,
        )
        return await self.get_order(db, order.id)

    async def list_orders(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 20,
        supplier_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> SupplyOrderListResponse:
        conditions = []
        if supplier_id:
            conditions.append(SupplyOrder.supplier_id == supplier_id)
        if start_date:
            conditions.append(SupplyOrder.order_date >= start_date)
        if end_date:
            conditions.append(SupplyOrder.order_date <= end_date)

        total = (
            await db.execute(select(func.count(SupplyOrder.id)).where(*conditions))
        ).scalar_one()
        result = await db.execute(
            _order_detail_query()
            .where(*conditions)
            .order_by(SupplyOrder.order_date.desc(), SupplyOrder.created_at.desc())
            .offset(Pagination.offset(page, limit))
            .limit(limit)
        )
        return SupplyOrderListResponse(
            orders=[SupplyOrderResponse.model_validate(o) for o in result.scalars().all()],
            pagination=Pagination.build(page, limit, total),
        )

    async def get_order_model(self, db: AsyncSession, order_id: str) -> SupplyOrder:
        result = await db.execute(
            _order_detail_query()
            .where(SupplyOrder.id == order_id)
            .execution_options(populate_existing=True)
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundError(resource="supply order", resource_id=order_id)
        return order

    async def get_order(self, db: AsyncSession, order_id: str) -> SupplyOrderResponse:
        return SupplyOrderResponse.model_validate(await self.get_order_model(db, order_id))

    async def get_order_items(self, db: AsyncSession, order_id: str) -> SupplyOrderItemsResponse:
        order = await self.get_order_model(db, order_id)
        return SupplyOrderItemsResponse(
            order_id=order.id,
            order_number=order.order_number,
            items=[SupplyOrderItemResponse.model_validate(i) for i in order.items],
        )

    async def _load_products(self, db: AsyncSession, product_ids: List[str]) -> Dict[str, Product]:
        # Inventory rows are locked first (no-op on SQLite) so concurrent
        # receipts of the same product serialize on the counter update.
        await db.execute(
            select(Inventory.id).where(Inventory.product_id.in_(product_ids)).with_for_update()
        )
        result = await db.execute(
            select(Product)
            .options(selectinload(Product.inventory))
            .where(Product.id.in_(product_ids))
            .execution_options(populate_existing=True)
        )
        return {p.id: p for p in result.scalars().all()}


supply_service = SupplyService()
