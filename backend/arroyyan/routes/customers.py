"""
Arroyyan Backend — Customer Routes
====================================

What:  /api/customers CRUD. Records are private to the user who created
       them; another user's id answers 404.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from arroyyan.config import settings
from arroyyan.database import get_db_session
from arroyyan.dependencies import get_current_user
from arroyyan.models.user import User
from arroyyan.schemas.common import ApiResponse, ErrorResponse, ok
from arroyyan.schemas.customer import (
    CustomerCreate,
    CustomerListResponse,
    CustomerResponse,
    CustomerUpdate,
)
from arroyyan.services.customer_service import customer_service

router = APIRouter(prefix="/api/customers", tags=["Customers"])

NOT_FOUND = {404: {"description": "Customer not found", "model": ErrorResponse}}


@router.get("", response_model=ApiResponse[CustomerListResponse], summary="List my customers")
async def list_customers(
    search: Optional[str] = Query(default=None, description="Match on name, email or phone"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[CustomerListResponse]:
    result = await customer_service.list_customers(
        db, user.id, page=page, limit=limit, search=search
    )
    return ok(result)


@router.get(
    "/{customer_id}",
    response_model=ApiResponse[CustomerResponse],
    responses=NOT_FOUND,
    summary="Get a customer",
)
async def get_customer(
    customer_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[CustomerResponse]:
    return ok(await customer_service.get_customer(db, user.id, customer_id))


@router.post(
    "",
    status_code=201,
    response_model=ApiResponse[CustomerResponse],
    responses={409: {"description": "Email already registered", "model": ErrorResponse}},
    summary="Create a customer",
)
async def create_customer(
    body: CustomerCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[CustomerResponse]:
    customer = await customer_service.create_customer(db, user.id, body)
    return ok(customer, "Customer created successfully")


@router.patch(
    "/{customer_id}",
    response_model=ApiResponse[CustomerResponse],
    responses=NOT_FOUND,
    summary="Update a customer",
)
async def update_customer(
    customer_id: str,
    body: CustomerUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[CustomerResponse]:
    customer = await customer_service.update_customer(db, user.id, customer_id, body)
    return ok(customer, "Customer updated successfully")


@router.delete(
    "/{customer_id}",
    response_model=ApiResponse[None],
    responses=NOT_FOUND,
    summary="Delete a customer",
)
async def delete_customer(
    customer_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[None]:
    await customer_service.delete_customer(db, user.id, customer_id)
    return ok(None, "Customer deleted successfully")
