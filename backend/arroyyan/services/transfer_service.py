"""
Arroyyan Backend — Stock Transfer Service (etalase)
=====================================================

What:  Moves units from the warehouse to the display shelf, and reports on
       display stock (stats, restock suggestions).

Transfer Flow (one request = one transaction):
    1. Lock the inventory rows of every requested product (FOR UPDATE where supported)
    2. Validate: product exists, is active, Σ requested ≤ warehouse_stock
    3. Insert transfer header + items
    4. warehouse_stock -= qty, display_stock += qty

Quantities for the same product listed twice are summed before the stock
check, so a request can never drain more than the warehouse holds.
"""

import logging
from collections import OrderedDict
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import and_, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from arroyyan.config import settings
from arroyyan.exceptions import (
    InsufficientWarehouseStockError,
    InvalidProductError,
    NotFoundError,
)
from arroyyan.models.common import today, utcnow
from arroyyan.models.product import Inventory, Product
from arroyyan.models.transfer import StockTransfer, StockTransferItem
from arroyyan.models.user import User
from arroyyan.schemas.common import Pagination
from arroyyan.schemas.transfer import (
    DisplayStats,
    RestockSuggestion,
    TransferCreate,
    TransferItemResponse,
    TransferItemsResponse,
    TransferListResponse,
    TransferResponse,
)
from arroyyan.services.numbering import TRANSFER_PREFIX, number_allocator

logger = logging.getLogger(__name__)


def _transfer_detail_query():
    return select(StockTransfer).options(
        selectinload(StockTransfer.performer),
        selectinload(StockTransfer.items).selectinload(StockTransferItem.product),
    )


class TransferService:
    async def create_transfer(
        self, db: AsyncSession, data: TransferCreate, performed_by: User
    ) -> TransferResponse:
        """
        Raises:
            InvalidProductError:             product missing or inactive (→ 400)
            InsufficientWarehouseStockError: Σ requested > warehouse_stock (→ 400)
        """
        requested: Dict[str, int] = OrderedDict()
        for item in data.items:
            requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity

        products = await self._lock_products(db, list(requested))
        for product_id, quantity in requested.items():
            product = products.get(product_id)
            if product is None:
                raise InvalidProductError(product_id, "product not found")
            if not product.is_active:
                raise InvalidProductError(product_id, f"product '{product.name}' is inactive")
            available = product.inventory.warehouse_stock if product.inventory else 0
            if available < quantity:
                raise InsufficientWarehouseStockError(product_id, quantity, available)

        transfer_date = data.transfer_date or today()
        transfer = StockTransfer(
            transfer_number=await number_allocator.allocate(
                db, StockTransfer.transfer_number, TRANSFER_PREFIX, transfer_date
            ),
            transfer_date=transfer_date,
            notes=data.notes,
            performed_by=performed_by.id,
        )

        now = utcnow()
        for item in data.items:
            transfer.items.append(
                StockTransferItem(product_id=item.product_id, quantity=item.quantity)
            )
            inventory = products[item.product_id].inventory
            inventory.warehouse_stock -= item.quantity
            inventory.display_stock += item.quantity
            inventory.last_stock_update = now

        db.add(transfer)
        await db.flush()

        logger.info(
            "Stock transfer %s by %s: %d units across %d products",
            transfer.transfer_number,
            performed_by.username,
            sum(requested.values()),
            len(requested),
        )
        return await self.get_transfer(db, transfer.id)

    async def list_transfers(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 20,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        performed_by: Optional[str] = None,
    ) -> TransferListResponse:
        conditions = []
        if start_date:
            conditions.append(StockTransfer.transfer_date >= start_date)
        if end_date:
            conditions.append(StockTransfer.transfer_date <= end_date)
        if performed_by:
            conditions.append(StockTransfer.performed_by == performed_by)

        total = (
            await db.execute(select(func.count(StockTransfer.id)).where(*conditions))
        ).scalar_one()
        result = await db.execute(
            _transfer_detail_query()
            .where(*conditions)
            .order_by(StockTransfer.transfer_date.desc(), StockTransfer.created_at.desc())
            .offset(Pagination.offset(page, limit))
            .limit(limit)
        )
        return TransferListResponse(
            transfers=[TransferResponse.model_validate(t) for t in result.scalars().all()],
            pagination=Pagination.build(page, limit, total),
        )

    async def get_transfer_model(self, db: AsyncSession, transfer_id: str) -> StockTransfer:
        result = await db.execute(
            _transfer_detail_query()
            .where(StockTransfer.id == transfer_id)
            .execution_options(populate_existing=True)
        )
        transfer = result.scalar_one_or_none()
        if transfer is None:
            raise NotFoundError(resource="transfer", resource_id=transfer_id)
        return transfer

    async def get_transfer(self, db: AsyncSession, transfer_id: str) -> TransferResponse:
        return TransferResponse.model_validate(await self.get_transfer_model(db, transfer_id))

    async def get_transfer_items(self, db: AsyncSession, transfer_id: str) -> TransferItemsResponse:
        transfer = await self.get_transfer_model(db, transfer_id)
        return TransferItemsResponse(
            transfer_id=transfer.id,
            transfer_number=transfer.transfer_number,
            items=[TransferItemResponse.model_validate(i) for i in transfer.items],
        )

    async def get_display_stats(self, db: AsyncSession) -> DisplayStats:
        """Aggregates over active products that have an inventory row."""
        threshold = settings.low_stock_threshold
        result = await db.execute(
            select(
                func.count(Inventory.id),
                func.coalesce(func.sum(Inventory.warehouse_stock), 0),
                func.coalesce(func.sum(Inventory.display_stock), 0),
                func.coalesce(
                    func.sum(
                        case(
                            (
                                and_(
                                    Inventory.display_stock > 0,
                                    Inventory.display_stock < threshold,
                                ),
                                1,
                            ),
                            else_=0,
                        )
                    ),
                    0,
                ),
                func.coalesce(func.sum(case((Inventory.display_stock == 0, 1), else_=0)), 0),
            )
            .join(Product, Product.id == Inventory.product_id)
            .where(Product.is_active.is_(True))
        )
        total, warehouse, display, low, out = result.one()
        return DisplayStats(
            total_products=total,
            total_warehouse_stock=int(warehouse),
            total_display_stock=int(display),
            low_stock_products=int(low),
            out_of_stock_products=int(out),
        )

    async def get_restock_suggestions(
        self, db: AsyncSession, min_warehouse_stock: int = 10
    ) -> List[RestockSuggestion]:
        """
        Active products whose display is below the low-stock threshold and
        whose warehouse holds at least `min_warehouse_stock` units.

        suggested_quantity = min(DISPLAY_TARGET_STOCK - display, warehouse)
        """
        result = await db.execute(
            select(Product, Inventory)
            .join(Inventory, Inventory.product_id == Product.id)
            .where(
                Product.is_active.is_(True),
                Inventory.warehouse_stock >= min_warehouse_stock,
                Inventory.warehouse_stock > 0,
                Inventory.display_stock < settings.low_stock_threshold,
            )
            .order_by(Inventory.display_stock.asc(), Product.name.asc())
        )

        suggestions = []
        for product, inventory in result.all():
            quantity = min(
                settings.display_target_stock - inventory.display_stock,
                inventory.warehouse_stock,
            )
            if quantity <= 0:
                continue
            suggestions.append(
                RestockSuggestion(
                    product_id=product.id,
                    name=product.name,
                    sku=product.sku,
                    warehouse_stock=inventory.warehouse_stock,
                    display_stock=inventory.display_stock,
                    suggested_quantity=quantity,
                )
            )
        return suggestions

    async def _lock_products(self, db: AsyncSession, product_ids: List[str]) -> Dict[str, Product]:
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


transfer_service = TransferService()
