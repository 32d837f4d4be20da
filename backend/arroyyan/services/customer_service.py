"""
Customer Service
================

CRUD for customer records. Every query is filtered by the owning user, so a
record belonging to another user behaves exactly like a missing one (404).
"""

import logging
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from arroyyan.exceptions import ConflictError, NotFoundError
from arroyyan.models.common import utcnow
from arroyyan.models.customer import Customer
from arroyyan.schemas.common import Pagination
from arroyyan.schemas.customer import (
    CustomerCreate,
    CustomerListResponse,
    CustomerResponse,
    CustomerUpdate,
)

logger = logging.getLogger(__name__)


class CustomerService:
    async def list_customers(
        self,
        db: AsyncSession,
        user_id: str,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
    ) -> CustomerListResponse:
        conditions = [Customer.user_id == user_id]
        if search:
            conditions.append(
                or_(
                    Customer.name.icontains(search, autoescape=True),
                    Customer.email.icontains(search, autoescape=True),
                    Customer.phone.contains(search, autoescape=True),
                )
            )

        total = (
            await db.execute(select(func.count(Customer.id)).where(*conditions))
        ).scalar_one()
        result = await db.execute(
            select(Customer)
            .where(*conditions)
            .order_by(Customer.created_at.desc(), Customer.id)
            .offset(Pagination.offset(page, limit))
            .limit(limit)
        )
        return CustomerListResponse(
            customers=[CustomerResponse.model_validate(c) for c in result.scalars().all()],
            pagination=Pagination.build(page, limit, total),
        )

    async def get_customer_model(self, db: AsyncSession, user_id: str, customer_id: str) -> Customer:
        result = await db.execute(
            select(Customer).where(Customer.id == customer_id, Customer.user_id == user_id)
        )
        customer = result.scalar_one_or_none()
        if customer is None:
            raise NotFoundError(resource="customer", resource_id=customer_id)
        return customer

    async def get_customer(self, db: AsyncSession, user_id: str, customer_id: str) -> CustomerResponse:
        return CustomerResponse.model_validate(
            await self.get_customer_model(db, user_id, customer_id)
        )

    async def create_customer(
        self, db: AsyncSession, user_id: str, data: CustomerCreate
    ) -> CustomerResponse:
        """
        Raises:
            ConflictError: email already registered (→ 409)
        """
        if data.email:
            await self._ensure_email_free(db, data.email)
        customer = Customer(user_id=user_id, **data.model_dump())
        db.add(customer)
        await db.flush()
        logger.info("Customer created: %s by %s", customer.id, user_id)
        return CustomerResponse.model_validate(customer)

    async def update_customer(
        self, db: AsyncSession, user_id: str, customer_id: str, data: CustomerUpdate
    ) -> CustomerResponse:
        customer = await self.get_customer_model(db, user_id, customer_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("name") is None:
            changes.pop("name", None)
        if changes.get("email") and changes["email"] != customer.email:
            await self._ensure_email_free(db, changes["email"])
        for field, value in changes.items():
            setattr(customer, field, value)
        customer.updated_at = utcnow()
        await db.flush()
        return CustomerResponse.model_validate(customer)

    async def delete_customer(self, db: AsyncSession, user_id: str, customer_id: str) -> None:
        customer = await self.get_customer_model(db, user_id, customer_id)
        await db.delete(customer)
        await db.flush()
        logger.info("Customer deleted: %s", customer_id)

    async def _ensure_email_free(self, db: AsyncSession, email: str) -> None:
        existing = await db.execute(select(Customer.id).where(Customer.email == email))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError("Email is already registered", field="email")


customer_service = CustomerService()
