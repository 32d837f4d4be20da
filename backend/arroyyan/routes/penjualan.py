"""
Arroyyan Backend — Sales Routes (penjualan)
=============================================

What:  Checkout and sales history/reporting under /api/penjualan.

Route order matters: /stats, /today and /cashier/{id} come before /{id}.
"""

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from arroyyan.config import settings
from arroyyan.database import get_db_session
from arroyyan.dependencies import get_current_user, require_role
from arroyyan.models.user import User
from arroyyan.schemas.common import ApiResponse, ErrorResponse, ok
from arroyyan.schemas.sale import (
    CashierSales,
    SaleCreate,
    SaleItemsResponse,
    SaleListResponse,
    SaleResponse,
    SalesStats,
    TodaySummary,
)
from arroyyan.services.sale_service import sale_service

router = APIRouter(
    prefix="/api/penjualan",
    tags=["Penjualan"],
    dependencies=[Depends(get_current_user)],
)


@router.post(
    "",
    status_code=201,
    response_model=ApiResponse[SaleResponse],
    responses={
        400: {
            "description": "Invalid product, insufficient display stock or payment below total",
            "model": ErrorResponse,
        },
    },
    summary="Check out a sale",
)
async def create_sale(
    body: SaleCreate,
    user: User = Depends(require_role("admin", "cashier")),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[SaleResponse]:
    sale = await sale_service.create_sale(db, body, cashier=user)
    return ok(sale, "Sale created successfully")


@router.get("", response_model=ApiResponse[SaleListResponse], summary="List sales")
async def list_sales(
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    cashier_id: Optional[str] = Query(default=None),
    payment_method: Optional[Literal["cash", "qris"]] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[SaleListResponse]:
    result = await sale_service.list_sales(
        db,
        page=page,
        limit=limit,
        start_date=start_date,
        end_date=end_date,
        cashier_id=cashier_id,
        payment_method=payment_method,
    )
    return ok(result)


@router.get(
    "/stats",
    response_model=ApiResponse[SalesStats],
    summary="Sales statistics for a date range",
    dependencies=[Depends(require_role("admin"))],
)
async def sales_stats(
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[SalesStats]:
    return ok(await sale_service.get_stats(db, start_date, end_date))


@router.get("/today", response_model=ApiResponse[TodaySummary], summary="Today's sales summary")
async def today_summary(db: AsyncSession = Depends(get_db_session)) -> ApiResponse[TodaySummary]:
    return ok(await sale_service.get_today_summary(db))


@router.get(
    "/cashier/{cashier_id}",
    response_model=ApiResponse[CashierSales],
    responses={404: {"description": "Cashier not found", "model": ErrorResponse}},
    summary="Sales recorded by one cashier",
    dependencies=[Depends(require_role("admin"))],
)
async def cashier_sales(
    cashier_id: str,
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[CashierSales]:
    return ok(await sale_service.get_cashier_sales(db, cashier_id, start_date, end_date))


@router.get(
    "/{sale_id}",
    response_model=ApiResponse[SaleResponse],
    responses={404: {"description": "Sale not found", "model": ErrorResponse}},
    summary="Get a sale",
)
async def get_sale(
    sale_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[SaleResponse]:
    return ok(await sale_service.get_sale(db, sale_id))


@router.get(
    "/{sale_id}/items",
    response_model=ApiResponse[SaleItemsResponse],
    responses={404: {"description": "Sale not found", "model": ErrorResponse}},
    summary="Line items of a sale",
)
async def get_sale_items(
    sale_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[SaleItemsResponse]:
    return ok(await sale_service.get_sale_items(db, sale_id))
