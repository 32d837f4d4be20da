"""
Arroyyan Backend — Sale Service (penjualan)
=============================================

What:  Checkout (sale creation), sale lookup and sales reporting.
Why:   This is where money and stock meet, so every invariant is checked
       here before anything is written.

Checkout Flow (one request = one transaction):
    ┌────────────────┐   ┌────────────────┐   ┌────────────────┐   ┌────────────────┐
    │ lock inventory │──▶│ validate items │──▶│ price + total  │──▶│ write sale,    │
    │ rows           │   │ active, Σqty ≤ │   │ paid ≥ total   │   │ items, display │
    │                │   │ display_stock  │   │                │   │ stock -= qty   │
    └────────────────┘   └────────────────┘   └────────────────┘   └────────────────┘

    unit_price    = product.selling_price at checkout
    subtotal      = quantity × unit_price
    total_amount  = Σ subtotal
    change_amount = paid_amount − total_amount

Any raised error propagates out of the request and get_db_session() rolls
back, so a rejected sale leaves no rows and no stock change behind.
"""

import logging
from collections import OrderedDict
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from arroyyan.exceptions import (
    InsufficientDisplayStockError,
    InvalidProductError,
    NotFoundError,
    PaymentError,
)
from arroyyan.models.common import today, utcnow
from arroyyan.models.product import Inventory, Product
from arroyyan.models.sale import Sale, SaleItem
from arroyyan.models.user import User
from arroyyan.schemas.common import Pagination
from arroyyan.schemas.sale import (
    CashierSales,
    SaleCreate,
    SaleItemResponse,
    SaleItemsResponse,
    SaleListResponse,
    SaleResponse,
    SalesStats,
    TodaySummary,
    TopProduct,
)
from arroyyan.schemas.transfer import UserSummary
from arroyyan.services.numbering import SALE_PREFIX, number_allocator

logger = logging.getLogger(__name__)


def _sale_detail_query():
    return select(Sale).options(
        selectinload(Sale.cashier),
        selectinload(Sale.items).selectinload(SaleItem.product),
    )


def _date_conditions(start_date: Optional[date], end_date: Optional[date]) -> list:
    conditions = []
    if start_date:
        conditions.append(Sale.sale_date >= start_date)
    if end_date:
        conditions.append(Sale.sale_date <= end_date)
    return conditions


class SaleService:
    # ══════════════════════════════════════════════════════════════════════
    # Checkout
    # ══════════════════════════════════════════════════════════════════════

    async def create_sale(self, db: AsyncSession, data: SaleCreate, cashier: User) -> SaleResponse:
        """
        Records a sale and takes its quantities off the display shelf.

        Raises:
            InvalidProductError:           product missing or inactive (→ 400)
            InsufficientDisplayStockError: Σ requested > display_stock (→ 400)
            PaymentError:                  paid_amount < total_amount (→ 400)
        """
        requested: Dict[str, int] = OrderedDict()
        for item in data.items:
            requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity

        products = await self._lock_products(db, list(requested))

        # ── Validate every product before writing anything ────────────────
        for product_id, quantity in requested.items():
            product = products.get(product_id)
            if product is None:
                raise InvalidProductError(product_id, "product not found")
            if not product.is_active:
                raise InvalidProductError(product_id, f"product '{product.name}' is inactive")
            available = product.inventory.display_stock if product.inventory else 0
            if available < quantity:
                raise InsufficientDisplayStockError(product_id, quantity, available)

        # ── Price lines and check payment ─────────────────────────────────
        lines: List[SaleItem] = []
        for item in data.items:
            unit_price = products[item.product_id].selling_price
            lines.append(
                SaleItem(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_price=unit_price,
                    subtotal=item.quantity * unit_price,
                )
            )
        total_amount = sum(line.subtotal for line in lines)

        if data.paid_amount < total_amount:
            raise PaymentError(data.paid_amount, total_amount)

        # ── Write sale and move stock ─────────────────────────────────────
        sale_date = data.sale_date or today()
        sale = Sale(
            sale_number=await number_allocator.allocate(db, Sale.sale_number, SALE_PREFIX, sale_date),
            sale_date=sale_date,
            reference_number=data.reference_number,
            total_amount=total_amount,
            payment_method=data.payment_method,
            paid_amount=data.paid_amount,
            change_amount=data.paid_amount - total_amount,
            notes=data.notes,
            cashier_id=cashier.id,
            items=lines,
        )

        now = utcnow()
        for product_id, quantity in requested.items():
            inventory = products[product_id].inventory
            inventory.display_stock -= quantity
            inventory.last_stock_update = now

        db.add(sale)
        await db.flush()

        logger.info(
            "Sale %s by %s: %d items, total %.2f via %s",
            sale.sale_number,
            cashier.username,
            sum(requested.values()),
            total_amount,
            sale.payment_method,
        )
        return await self.get_sale(db, sale.id)

    # ══════════════════════════════════════════════════════════════════════
    # Lookup
    # ══════════════════════════════════════════════════════════════════════

    async def list_sales(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 20,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        cashier_id: Optional[str] = None,
        payment_method: Optional[str] = None,
    ) -> SaleListResponse:
        conditions = _date_conditions(start_date, end_date)
        if cashier_id:
            conditions.append(Sale.cashier_id == cashier_id)
        if payment_method:
            conditions.append(Sale.payment_method == payment_method)

        total = (await db.execute(select(func.count(Sale.id)).where(*conditions))).scalar_one()
        result = await db.execute(
            _sale_detail_query()
            .where(*conditions)
            .order_by(Sale.sale_date.desc(), Sale.created_at.desc())
            .offset(Pagination.offset(page, limit))
            .limit(limit)
        )
        return SaleListResponse(
            sales=[SaleResponse.model_validate(s) for s in result.scalars().all()],
            pagination=Pagination.build(page, limit, total),
        )

    async def get_sale_model(self, db: AsyncSession, sale_id: str) -> Sale:
        result = await db.execute(
            _sale_detail_query()
            .where(Sale.id == sale_id)
            .execution_options(populate_existing=True)
        )
        sale = result.scalar_one_or_none()
        if sale is None:
            raise NotFoundError(resource="sale", resource_id=sale_id)
        return sale

    async def get_sale(self, db: AsyncSession, sale_id: str) -> SaleResponse:
        return SaleResponse.model_validate(await self.get_sale_model(db, sale_id))

    async def get_sale_items(self, db: AsyncSession, sale_id: str) -> SaleItemsResponse:
        sale = await self.get_sale_model(db, sale_id)
        return SaleItemsResponse(
            sale_id=sale.id,
            sale_number=sale.sale_number,
            items=[SaleItemResponse.model_validate(i) for i in sale.items],
        )

    # ══════════════════════════════════════════════════════════════════════
    # Reports
    # ══════════════════════════════════════════════════════════════════════

    async def get_stats(
        self,
        db: AsyncSession,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> SalesStats:
        conditions = _date_conditions(start_date, end_date)

        totals = (
            await db.execute(
                select(
                    func.count(Sale.id),
                    func.coalesce(func.sum(Sale.total_amount), 0),
                    func.coalesce(func.sum(case((Sale.payment_method == "cash", 1), else_=0)), 0),
                    func.coalesce(func.sum(case((Sale.payment_method == "qris", 1), else_=0)), 0),
                ).where(*conditions)
            )
        ).one()
        transactions, revenue, cash_count, qris_count = totals

        items_sold = await self._items_sold(db, conditions)
        revenue = float(revenue)

        return SalesStats(
            total_transactions=transactions,
            total_revenue=revenue,
            total_items_sold=items_sold,
            average_transaction_value=revenue / transactions if transactions else 0.0,
            cash_transactions=int(cash_count),
            qris_transactions=int(qris_count),
            top_products=await self.top_products(db, start_date, end_date, limit=10),
        )

    async def get_today_summary(self, db: AsyncSession) -> TodaySummary:
        """
        Today's totals plus a display-stock reconciliation:

            closing_stock = Σ display_stock now
            opening_stock = closing_stock + units sold today
        """
        day = today()
        conditions = _date_conditions(day, day)

        row = (
            await db.execute(
                select(
                    func.count(Sale.id),
                    func.coalesce(func.sum(Sale.total_amount), 0),
                    func.coalesce(
                        func.sum(case((Sale.payment_method == "cash", Sale.total_amount), else_=0)),
                        0,
                    ),
                    func.coalesce(
                        func.sum(case((Sale.payment_method == "qris", Sale.total_amount), else_=0)),
                        0,
                    ),
                ).where(*conditions)
            )
        ).one()
        transactions, revenue, cash_revenue, qris_revenue = row

        items_sold = await self._items_sold(db, conditions)
        closing_stock = int(
            (
                await db.execute(select(func.coalesce(func.sum(Inventory.display_stock), 0)))
            ).scalar_one()
        )

        return TodaySummary(
            date=day,
            total_transactions=transactions,
            total_revenue=float(revenue),
            total_items_sold=items_sold,
            cash_revenue=float(cash_revenue),
            qris_revenue=float(qris_revenue),
            opening_stock=closing_stock + items_sold,
            closing_stock=closing_stock,
            stock_moved=items_sold,
        )

    async def get_cashier_sales(
        self,
        db: AsyncSession,
        cashier_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> CashierSales:
        cashier = await db.get(User, cashier_id)
        if cashier is None:
            raise NotFoundError(resource="cashier", resource_id=cashier_id)

        conditions = _date_conditions(start_date, end_date)
        result = await db.execute(
            _sale_detail_query()
            .where(Sale.cashier_id == cashier_id, *conditions)
            .order_by(Sale.sale_date.desc(), Sale.created_at.desc())
        )
        sales = result.scalars().all()
        return CashierSales(
            cashier=UserSummary.model_validate(cashier),
            total_transactions=len(sales),
            total_revenue=float(sum(s.total_amount for s in sales)),
            sales=[SaleResponse.model_validate(s) for s in sales],
        )

    async def top_products(
        self,
        db: AsyncSession,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 10,
    ) -> List[TopProduct]:
        quantity = func.sum(SaleItem.quantity).label("quantity_sold")
        result = await db.execute(
            select(
                Product.id,
                Product.name,
                Product.sku,
                quantity,
                func.sum(SaleItem.subtotal).label("revenue"),
            )
            .select_from(SaleItem)
            .join(Sale, Sale.id == SaleItem.sale_id)
            .join(Product, Product.id == SaleItem.product_id)
            .where(*_date_conditions(start_date, end_date))
            .group_by(Product.id, Product.name, Product.sku)
            .order_by(quantity.desc(), Product.name)
            .limit(limit)
        )
        return [
            TopProduct(
                product_id=row.id,
                name=row.name,
                sku=row.sku,
                quantity_sold=int(row.quantity_sold),
                revenue=float(row.revenue),
            )
            for row in result.all()
        ]

    async def _items_sold(self, db: AsyncSession, conditions: list) -> int:
        value = (
            await db.execute(
                select(func.coalesce(func.sum(SaleItem.quantity), 0))
                .select_from(SaleItem)
                .join(Sale, Sale.id == SaleItem.sale_id)
                .where(*conditions)
            )
        ).scalar_one()
        return int(value)

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


sale_service = SaleService()
