"""Stock transfer schemas (etalase)."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from arroyyan.schemas.common import Pagination
from arroyyan.schemas.product import ProductSummary


class TransferItemCreate(BaseModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(ge=1)


class TransferCreate(BaseModel):
    transfer_date: Optional[date] = Field(default=None, description="Defaults to today (UTC)")
    notes: Optional[str] = Field(default=None, max_length=500)
    items: List[TransferItemCreate] = Field(min_length=1, max_length=50)


class UserSummary(BaseModel):
    id: str
    username: str
    name: str

    model_config = {"from_attributes": True}


class TransferItemResponse(BaseModel):
    id: str
    product_id: str
    quantity: int
    product: Optional[ProductSummary] = None

    model_config = {"from_attributes": True}


class TransferResponse(BaseModel):
    id: str
    transfer_number: str
    transfer_date: date
    notes: Optional[str] = None
    performed_by: Optional[str] = None
    created_at: datetime
    performer: Optional[UserSummary] = None
    items: List[TransferItemResponse] = []

    model_config = {"from_attributes": True}


class TransferListResponse(BaseModel):
    transfers: List[TransferResponse]
    pagination: Pagination


class TransferItemsResponse(BaseModel):
    transfer_id: str
    transfer_number: str
    items: List[TransferItemResponse]


class DisplayStats(BaseModel):
    total_products: int
    total_warehouse_stock: int
    total_display_stock: int
    low_stock_products: int = Field(description="Active products with 0 < display < threshold")
    out_of_stock_products: int = Field(description="Active products with display == 0")


class RestockSuggestion(BaseModel):
    product_id: str
    name: str
    sku: str
    warehouse_stock: int
    display_stock: int
    suggested_quantity: int
