"""
Supplier and supply order schemas (pasokan).

Optional supplier text fields accept "" from HTML forms and store it as null.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, StrictBool, field_validator

from arroyyan.config import settings
from arroyyan.schemas.common import Pagination
from arroyyan.schemas.product import ProductSummary


def _blank_to_none(v: Optional[str]) -> Optional[str]:
    if isinstance(v, str) and not v.strip():
        return None
    return v


# ── Suppliers ─────────────────────────────────────────────────────────────


class SupplierCreate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    name: str = Field(min_length=3, max_length=100)
    contact_person: Optional[str] = Field(default=None, max_length=50)
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[str] = Field(default=None, max_length=100)
    address: Optional[str] = Field(default=None, max_length=100)

    normalize_blank = field_validator(
        "contact_person", "phone", "email", "address", mode="before"
    )(_blank_to_none)


class SupplierUpdate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    name: Optional[str] = Field(default=None, min_length=3, max_length=100)
    contact_person: Optional[str] = Field(default=None, max_length=50)
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[str] = Field(default=None, max_length=100)
    address: Optional[str] = Field(default=None, max_length=100)
    is_active: Optional[StrictBool] = None

    normalize_blank = field_validator(
        "contact_person", "phone", "email", "address", mode="before"
    )(_blank_to_none)


class SupplierResponse(BaseModel):
    id: str
    name: str
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SupplierListResponse(BaseModel):
    suppliers: List[SupplierResponse]
    pagination: Pagination


# ── Supply orders ─────────────────────────────────────────────────────────


class SupplyOrderItemCreate(BaseModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(ge=1)
    purchase_price: float = Field(ge=settings.min_purchase_price)


class SupplyOrderCreate(BaseModel):
    supplier_id: str = Field(min_length=1)
    order_date: Optional[date] = Field(default=None, description="Defaults to today (UTC)")
    notes: Optional[str] = Field(default=None, max_length=500)
    items: List[SupplyOrderItemCreate] = Field(min_length=1)


class SupplyOrderItemResponse(BaseModel):
    id: str
    product_id: str
    quantity: int
    purchase_price: float
    subtotal: float
    product: Optional[ProductSummary] = None

    model_config = {"from_attributes": True}


class SupplierSummary(BaseModel):
    id: str
    name: str

    model_config = {"from_attributes": True}


class SupplyOrderResponse(BaseModel):
    id: str
    order_number: str
    supplier_id: str
    order_date: date
    total_amount: float
    notes: Optional[str] = None
    created_at: datetime
    supplier: Optional[SupplierSummary] = None
    items: List[SupplyOrderItemResponse] = []

    model_config = {"from_attributes": True}


class SupplyOrderListResponse(BaseModel):
    orders: List[SupplyOrderResponse]
    pagination: Pagination


class SupplyOrderItemsResponse(BaseModel):
    order_id: str
    order_number: str
    items: List[SupplyOrderItemResponse]
