"""Dashboard read endpoints under /api/dashboard."""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from arroyyan.database import get_db_session
from arroyyan.dependencies import get_current_user, require_role
from arroyyan.schemas.common import ApiResponse, ok
from arroyyan.schemas.dashboard import DashboardStats, DashboardSummary, Period, QuickStats, TrendPoint
from arroyyan.schemas.sale import TopProduct
from arroyyan.services.dashboard_service import dashboard_service

router = APIRouter(
    prefix="/api/dashboard",
    tags=["Dashboard"],
    dependencies=[Depends(get_current_user)],
)


@router.get("", response_model=ApiResponse[DashboardSummary], summary="Dashboard summary for a period")
async def dashboard_summary(
    period: Period = Query(default="daily"),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[DashboardSummary]:
    return ok(await dashboard_service.get_summary(db, period))


@router.get("/quick", response_model=ApiResponse[QuickStats], summary="Today at a glance")
async def quick_stats(db: AsyncSession = Depends(get_db_session)) -> ApiResponse[QuickStats]:
    return ok(await dashboard_service.get_quick_stats(db))


@router.get("/trend", response_model=ApiResponse[List[TrendPoint]], summary="Daily revenue trend")
async def sales_trend(
    start_date: Optional[date] = Query(default=None, description="Required"),
    end_date: Optional[date] = Query(default=None, description="Required"),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[List[TrendPoint]]:
    return ok(await dashboard_service.get_trend(db, start_date, end_date))


@router.get("/top-products", response_model=ApiResponse[List[TopProduct]], summary="Best sellers")
async def top_products(
    limit: int = Query(default=10, ge=1, le=50),
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[List[TopProduct]]:
    return ok(await dashboard_service.get_top_products(db, limit, start_date, end_date))


@router.get(
    "/stats",
    response_model=ApiResponse[DashboardStats],
    summary="Revenue statistics for a date range",
    dependencies=[Depends(require_role("admin"))],
)
async def dashboard_stats(
    start_date: Optional[date] = Query(default=None, description="Required"),
    end_date: Optional[date] = Query(default=None, description="Required"),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[DashboardStats]:
    return ok(await dashboard_service.get_stats(db, start_date, end_date))
