"""
Arroyyan Backend — Display Routes (etalase)
=============================================

What:  Stock transfers from the warehouse to the display shelf, and the
       display stock reports.

Static paths (/stats, /restock-suggestions) are declared before /{id} so
they are not captured as transfer ids.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from arroyyan.config import settings
from arroyyan.database import get_db_session
from arroyyan.dependencies import get_current_user, require_role
from arroyyan.models.user import User
from arroyyan.schemas.common import ApiResponse, ErrorResponse, ok
from arroyyan.schemas.transfer import (
    DisplayStats,
    RestockSuggestion,
    TransferCreate,
    TransferItemsResponse,
    TransferListResponse,
    TransferResponse,
)
from arroyyan.services.transfer_service import transfer_service

router = APIRouter(
    prefix="/api/etalase",
    tags=["Etalase"],
    dependencies=[Depends(get_current_user)],
)


@router.post(
    "",
    status_code=201,
    response_model=ApiResponse[TransferResponse],
    responses={400: {"description": "Invalid product or insufficient warehouse stock", "model": ErrorResponse}},
    summary="Move stock from warehouse to display",
)
async def create_transfer(
    body: TransferCreate,
    user: User = Depends(require_role("admin", "cashier")),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[TransferResponse]:
    transfer = await transfer_service.create_transfer(db, body, performed_by=user)
    return ok(transfer, "Stock transfer created successfully")


@router.get("", response_model=ApiResponse[TransferListResponse], summary="List stock transfers")
async def list_transfers(
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    performed_by: Optional[str] = Query(default=None, description="User id of the performer"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[TransferListResponse]:
    result = await transfer_service.list_transfers(
        db,
        page=page,
        limit=limit,
        start_date=start_date,
        end_date=end_date,
        performed_by=performed_by,
    )
    return ok(result)


@router.get("/stats", response_model=ApiResponse[DisplayStats], summary="Display stock statistics")
async def display_stats(db: AsyncSession = Depends(get_db_session)) -> ApiResponse[DisplayStats]:
    return ok(await transfer_service.get_display_stats(db))


@router.get(
    "/restock-suggestions",
    response_model=ApiResponse[List[RestockSuggestion]],
    summary="Products that should be moved to the display",
)
async def restock_suggestions(
    min_warehouse_stock: int = Query(default=10, ge=0),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[List[RestockSuggestion]]:
    return ok(await transfer_service.get_restock_suggestions(db, min_warehouse_stock))


@router.get(
    "/{transfer_id}",
    response_model=ApiResponse[TransferResponse],
    responses={404: {"description": "Transfer not found", "model": ErrorResponse}},
    summary="Get a stock transfer",
)
async def get_transfer(
    transfer_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[TransferResponse]:
    return ok(await transfer_service.get_transfer(db, transfer_id))


@router.get(
    "/{transfer_id}/items",
    response_model=ApiResponse[TransferItemsResponse],
    responses={404: {"description": "Transfer not found", "model": ErrorResponse}},
    summary="Line items of a stock transfer",
)
async def get_transfer_items(
    transfer_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[TransferItemsResponse]:
    return ok(await transfer_service.get_transfer_items(db, transfer_id))
