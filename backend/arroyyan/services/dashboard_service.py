"""
Arroyyan Backend — Dashboard Service
======================================

What:  Read-only aggregates over sales and stock for the dashboard screens.

Period windows (all inclusive, UTC dates):
    daily    today .. today
    weekly   Monday of this week .. today
    monthly  1st of this month .. today
"""

import logging
from datetime import date, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from arroyyan.config import settings
from arroyyan.exceptions import ValidationError
from arroyyan.models.common import today
from arroyyan.models.product import Inventory, Product
from arroyyan.models.sale import Sale
from arroyyan.schemas.dashboard import (
    DashboardStats,
    DashboardSummary,
    DashboardTransaction,
    DateRange,
    QuickStats,
    TrendPoint,
)
from arroyyan.schemas.sale import TopProduct
from arroyyan.services.sale_service import sale_service

logger = logging.getLogger(__name__)

RECENT_TRANSACTIONS = 20


def period_range(period: str, on: Optional[date] = None) -> Tuple[date, date]:
    on = on or today()
    if period == "weekly":
        return on - timedelta(days=on.weekday()), on
    if period == "monthly":
        return on.replace(day=1), on
    return on, on


class DashboardService:
    async def get_summary(self, db: AsyncSession, period: str = "daily") -> DashboardSummary:
        start_date, end_date = period_range(period)
        in_range = (Sale.sale_date >= start_date, Sale.sale_date <= end_date)

        revenue = (
            await db.execute(select(func.coalesce(func.sum(Sale.total_amount), 0)).where(*in_range))
        ).scalar_one()

        result = await db.execute(
            select(Sale)
            .options(selectinload(Sale.cashier), selectinload(Sale.items))
            .where(*in_range)
            .order_by(Sale.created_at.desc())
            .limit(RECENT_TRANSACTIONS)
        )
        transactions = [
            DashboardTransaction(
                id=sale.id,
                sale_number=sale.sale_number,
                sale_date=sale.sale_date,
                total_amount=sale.total_amount,
                payment_method=sale.payment_method,
                cashier_name=sale.cashier.name if sale.cashier else "Unknown",
                item_count=sale.item_count,
                created_at=sale.created_at,
            )
            for sale in result.scalars().all()
        ]

        return DashboardSummary(
            period=period,
            start_date=start_date,
            end_date=end_date,
            total_revenue=float(revenue),
            low_stock_count=await self.low_stock_count(db),
            transactions=transactions,
        )

    async def get_quick_stats(self, db: AsyncSession) -> QuickStats:
        day = today()
        count, revenue = (
            await db.execute(
                select(func.count(Sale.id), func.coalesce(func.sum(Sale.total_amount), 0)).where(
                    Sale.sale_date == day
                )
            )
        ).one()
        return QuickStats(
            date=day,
            total_revenue=float(revenue),
            total_transactions=count,
            low_stock_count=await self.low_stock_count(db),
        )

    async def get_trend(
        self, db: AsyncSession, start_date: Optional[date], end_date: Optional[date]
    ) -> List[TrendPoint]:
        start_date, end_date = self._require_range(start_date, end_date)
        result = await db.execute(
            select(
                Sale.sale_date,
                func.coalesce(func.sum(Sale.total_amount), 0),
                func.count(Sale.id),
            )
            .where(Sale.sale_date >= start_date, Sale.sale_date <= end_date)
            .group_by(Sale.sale_date)
            .order_by(Sale.sale_date.asc())
        )
        return [
            TrendPoint(date=day, revenue=float(revenue), transactions=count)
            for day, revenue, count in result.all()
        ]

    async def get_top_products(
        self,
        db: AsyncSession,
        limit: int = 10,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[TopProduct]:
        return await sale_service.top_products(db, start_date, end_date, limit=limit)

    async def get_stats(
        self, db: AsyncSession, start_date: Optional[date], end_date: Optional[date]
    ) -> DashboardStats:
        start_date, end_date = self._require_range(start_date, end_date)
        count, revenue = (
            await db.execute(
                select(func.count(Sale.id), func.coalesce(func.sum(Sale.total_amount), 0)).where(
                    Sale.sale_date >= start_date, Sale.sale_date <= end_date
                )
            )
        ).one()
        revenue = float(revenue)
        return DashboardStats(
            period=DateRange(start_date=start_date, end_date=end_date),
            total_revenue=revenue,
            total_transactions=count,
            average_transaction_value=revenue / count if count else 0.0,
            top_products=await self.get_top_products(db, 10, start_date, end_date),
            trend=await self.get_trend(db, start_date, end_date),
        )

    async def low_stock_count(self, db: AsyncSession) -> int:
        """Active products whose warehouse + display stock is under the threshold."""
        value = (
            await db.execute(
                select(func.count(Product.id))
                .join(Inventory, Inventory.product_id == Product.id)
                .where(
                    Product.is_active.is_(True),
                    Inventory.warehouse_stock + Inventory.display_stock
                    < settings.low_stock_threshold,
                )
            )
        ).scalar_one()
        return int(value)

    @staticmethod
    def _require_range(
        start_date: Optional[date], end_date: Optional[date]
    ) -> Tuple[date, date]:
        if start_date is None or end_date is None:
            raise ValidationError("start_date and end_date are required", field="start_date")
        if start_date > end_date:
            raise ValidationError("start_date must not be after end_date", field="start_date")
        return start_date, end_date


dashboard_service = DashboardService()
