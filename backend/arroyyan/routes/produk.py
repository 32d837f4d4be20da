"""
Arroyyan Backend — Product Routes (produk)
============================================

What:  /api/produk catalog endpoints. Reads need any authenticated user;
       writes need the admin role.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from arroyyan.config import settings
from arroyyan.database import get_db_session
from arroyyan.dependencies import get_current_user, require_role
from arroyyan.schemas.common import ApiResponse, ErrorResponse, ok
from arroyyan.schemas.product import (
    ProductActivate,
    ProductCreate,
    ProductListResponse,
    ProductResponse,
    ProductStockResponse,
    ProductUpdate,
)
from arroyyan.services.product_service import product_service

router = APIRouter(prefix="/api/produk", tags=["Produk"])

NOT_FOUND = {404: {"description": "Product not found", "model": ErrorResponse}}


@router.post(
    "",
    status_code=201,
    response_model=ApiResponse[ProductResponse],
    responses={409: {"description": "SKU already in use", "model": ErrorResponse}},
    summary="Create a product",
    dependencies=[Depends(require_role("admin"))],
)
async def create_product(
    body: ProductCreate,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[ProductResponse]:
    product = await product_service.create_product(db, body)
    return ok(product, "Product created successfully")


@router.get(
    "",
    response_model=ApiResponse[ProductListResponse],
    summary="List products",
    dependencies=[Depends(get_current_user)],
)
async def list_products(
    search: Optional[str] = Query(default=None, description="Case-insensitive match on name or SKU"),
    is_active: Optional[bool] = Query(default=None, description="Filter by active flag"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[ProductListResponse]:
    result = await product_service.list_products(
        db, page=page, limit=limit, search=search, is_active=is_active
    )
    return ok(result)


@router.get(
    "/{product_id}",
    response_model=ApiResponse[ProductResponse],
    responses=NOT_FOUND,
    summary="Get a product with its inventory",
    dependencies=[Depends(get_current_user)],
)
async def get_product(
    product_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[ProductResponse]:
    return ok(await product_service.get_product(db, product_id))


@router.get(
    "/{product_id}/stok",
    response_model=ApiResponse[ProductStockResponse],
    responses=NOT_FOUND,
    summary="Warehouse and display stock of a product",
    dependencies=[Depends(get_current_user)],
)
async def get_product_stock(
    product_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[ProductStockResponse]:
    return ok(await product_service.get_stock(db, product_id))


@router.put(
    "/{product_id}",
    response_model=ApiResponse[ProductResponse],
    responses=NOT_FOUND,
    summary="Update name or selling price",
    dependencies=[Depends(require_role("admin"))],
)
async def update_product(
    product_id: str,
    body: ProductUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[ProductResponse]:
    product = await product_service.update_product(db, product_id, body)
    return ok(product, "Product updated successfully")


@router.delete(
    "/{product_id}",
    response_model=ApiResponse[ProductResponse],
    responses={
        **NOT_FOUND,
        400: {"description": "Product still has stock", "model": ErrorResponse},
    },
    summary="Deactivate a product",
    description="Soft delete. Refused while the product holds warehouse or display stock.",
    dependencies=[Depends(require_role("admin"))],
)
async def delete_product(
    product_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[ProductResponse]:
    product = await product_service.deactivate_product(db, product_id)
    return ok(product, "Product deleted successfully")


@router.patch(
    "/{product_id}/activate",
    response_model=ApiResponse[ProductResponse],
    responses=NOT_FOUND,
    summary="Activate or deactivate a product",
    dependencies=[Depends(require_role("admin"))],
)
async def set_product_active(
    product_id: str,
    body: ProductActivate,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[ProductResponse]:
    product = await product_service.set_active(db, product_id, body.is_active)
    state = "activated" if body.is_active else "deactivated"
    return ok(product, f"Product {state} successfully")
