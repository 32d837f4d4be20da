"""
Arroyyan Backend — Product Schemas (produk)
=============================================

What:  Request bodies and response payloads for /api/produk.

Rules encoded here:
    name           3..100 chars, trimmed
    sku            1..7 chars, uppercased, [A-Z0-9] only, immutable after create
    selling_price  >= MIN_SELLING_PRICE (default Rp 1.000)
"""

import re
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, StrictBool, field_validator

from arroyyan.config import settings
from arroyyan.schemas.common import Pagination

SKU_PATTERN = re.compile(r"^[A-Z0-9]+$")


# ══════════════════════════════════════════════════════════════════════════
# Requests
# ══════════════════════════════════════════════════════════════════════════


class ProductCreate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    name: str = Field(min_length=3, max_length=100)
    sku: str = Field(min_length=1, max_length=7, description="Stored uppercased")
    selling_price: float = Field(ge=settings.min_selling_price)

    @field_validator("sku")
    @classmethod
    def normalize_sku(cls, v: str) -> str:
        upper = v.upper()
        if not SKU_PATTERN.match(upper):
            raise ValueError("SKU may only contain letters and numbers")
        return upper


class ProductUpdate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    name: Optional[str] = Field(default=None, min_length=3, max_length=100)
    selling_price: Optional[float] = Field(default=None, ge=settings.min_selling_price)


class ProductActivate(BaseModel):
    is_active: StrictBool


# ══════════════════════════════════════════════════════════════════════════
# Responses
# ══════════════════════════════════════════════════════════════════════════


class InventoryInfo(BaseModel):
    warehouse_stock: int
    display_stock: int
    last_stock_update: datetime

    model_config = {"from_attributes": True}


class ProductSummary(BaseModel):
    """Compact product reference embedded in sale/supply/transfer items."""

    id: str
    name: str
    sku: str

    model_config = {"from_attributes": True}


class ProductResponse(BaseModel):
    id: str
    name: str
    sku: str
    selling_price: float
    is_active: bool
    created_at: datetime
    updated_at: datetime
    inventory: Optional[InventoryInfo] = None

    model_config = {"from_attributes": True}


class ProductListResponse(BaseModel):
    products: List[ProductResponse]
    pagination: Pagination


class StockLevels(BaseModel):
    warehouse: int
    display: int
    total: int


class ProductStockResponse(BaseModel):
    product_id: str
    name: str
    sku: str
    stock: StockLevels
    last_stock_update: Optional[datetime] = None
