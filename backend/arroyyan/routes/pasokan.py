"""
Arroyyan Backend — Supply Routes (pasokan)
============================================

What:  Suppliers (/api/pasokan/suppliers) and incoming supply orders
       (/api/pasokan/orders). Receiving an order is what fills the warehouse.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from arroyyan.config import settings
from arroyyan.database import get_db_session
from arroyyan.dependencies import get_current_user, require_role
from arroyyan.schemas.common import ApiResponse, ErrorResponse, ok
from arroyyan.schemas.supply import (
    SupplierCreate,
    SupplierListResponse,
    SupplierResponse,
    SupplierUpdate,
    SupplyOrderCreate,
    SupplyOrderItemsResponse,
    SupplyOrderListResponse,
    SupplyOrderResponse,
)
from arroyyan.services.supply_service import supply_service

router = APIRouter(prefix="/api/pasokan", tags=["Pasokan"])

admin_only = [Depends(require_role("admin"))]
authenticated = [Depends(get_current_user)]


# ── Suppliers ─────────────────────────────────────────────────────────────


@router.post(
    "/suppliers",
    status_code=201,
    response_model=ApiResponse[SupplierResponse],
    summary="Create a supplier",
    dependencies=admin_only,
)
async def create_supplier(
    body: SupplierCreate,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[SupplierResponse]:
    supplier = await supply_service.create_supplier(db, body)
    return ok(supplier, "Supplier created successfully")


@router.get(
    "/suppliers",
    response_model=ApiResponse[SupplierListResponse],
    summary="List suppliers",
    dependencies=authenticated,
)
async def list_suppliers(
    search: Optional[str] = Query(default=None, description="Match on name, contact person or phone"),
    is_active: Optional[bool] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[SupplierListResponse]:
    result = await supply_service.list_suppliers(
        db, page=page, limit=limit, search=search, is_active=is_active
    )
    return ok(result)


@router.get(
    "/suppliers/{supplier_id}",
    response_model=ApiResponse[SupplierResponse],
    responses={404: {"description": "Supplier not found", "model": ErrorResponse}},
    summary="Get a supplier",
    dependencies=authenticated,
)
async def get_supplier(
    supplier_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[SupplierResponse]:
    return ok(await supply_service.get_supplier(db, supplier_id))


@router.put(
    "/suppliers/{supplier_id}",
    response_model=ApiResponse[SupplierResponse],
    summary="Update a supplier",
    dependencies=admin_only,
)
async def update_supplier(
    supplier_id: str,
    body: SupplierUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[SupplierResponse]:
    supplier = await supply_service.update_supplier(db, supplier_id, body)
    return ok(supplier, "Supplier updated successfully")


@router.delete(
    "/suppliers/{supplier_id}",
    response_model=ApiResponse[SupplierResponse],
    responses={400: {"description": "Supplier has order history", "model": ErrorResponse}},
    summary="Deactivate a supplier",
    dependencies=admin_only,
)
async def delete_supplier(
    supplier_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[SupplierResponse]:
    supplier = await supply_service.deactivate_supplier(db, supplier_id)
    return ok(supplier, "Supplier deleted successfully")


# ── Supply orders ─────────────────────────────────────────────────────────


@router.post(
    "/orders",
    status_code=201,
    response_model=ApiResponse[SupplyOrderResponse],
    responses={
        400: {"description": "Inactive supplier or invalid product", "model": ErrorResponse},
        404: {"description": "Supplier not found", "model": ErrorResponse},
    },
    summary="Receive a supply order into the warehouse",
    dependencies=admin_only,
)
async def create_order(
    body: SupplyOrderCreate,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[SupplyOrderResponse]:
    order = await supply_service.create_order(db, body)
    return ok(order, "Supply order created successfully")


@router.get(
    "/orders",
    response_model=ApiResponse[SupplyOrderListResponse],
    summary="List supply orders",
    dependencies=authenticated,
)
async def list_orders(
    supplier_id: Optional[str] = Query(default=None),
    start_date: Optional[date] = Query(default=None, description="Inclusive, YYYY-MM-DD"),
    end_date: Optional[date] = Query(default=None, description="Inclusive, YYYY-MM-DD"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[SupplyOrderListResponse]:
    result = await supply_service.list_orders(
        db,
        page=page,
        limit=limit,
        supplier_id=supplier_id,
        start_date=start_date,
        end_date=end_date,
    )
    return ok(result)


@router.get(
    "/orders/{order_id}",
    response_model=ApiResponse[SupplyOrderResponse],
    responses={404: {"description": "Supply order not found", "model": ErrorResponse}},
    summary="Get a supply order",
    dependencies=authenticated,
)
async def get_order(
    order_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[SupplyOrderResponse]:
    return ok(await supply_service.get_order(db, order_id))


@router.get(
    "/orders/{order_id}/items",
    response_model=ApiResponse[SupplyOrderItemsResponse],
    responses={404: {"description": "Supply order not found", "model": ErrorResponse}},
    summary="Line items of a supply order",
    dependencies=authenticated,
)
async def get_order_items(
    order_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[SupplyOrderItemsResponse]:
    return ok(await supply_service.get_order_items(db, order_id))
