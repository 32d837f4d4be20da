"""
Arroyyan Backend — Sale Schemas (penjualan)
=============================================

What:  Checkout request, sale payloads and the sales reports.

The client never sends prices: unit prices come from the product catalog at
checkout time, and totals are computed server-side. The client only sends
what the customer handed over (paid_amount) and how (payment_method).
"""

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from arroyyan.schemas.common import Pagination
from arroyyan.schemas.product import ProductSummary
from arroyyan.schemas.transfer import UserSummary

PaymentMethod = Literal["cash", "qris"]


# ══════════════════════════════════════════════════════════════════════════
# Requests
# ══════════════════════════════════════════════════════════════════════════


class SaleItemCreate(BaseModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(ge=1)


class SaleCreate(BaseModel):
    sale_date: Optional[date] = Field(default=None, description="Defaults to today (UTC)")
    reference_number: Optional[str] = Field(default=None, max_length=50)
    notes: Optional[str] = Field(default=None, max_length=500)
    payment_method: PaymentMethod
    paid_amount: float = Field(ge=0)
    items: List[SaleItemCreate] = Field(min_length=1, max_length=100)


# ══════════════════════════════════════════════════════════════════════════
# Responses
# ══════════════════════════════════════════════════════════════════════════


class SaleItemResponse(BaseModel):
    id: str
    product_id: str
    quantity: int
    unit_price: float
    subtotal: float
    product: Optional[ProductSummary] = None

    model_config = {"from_attributes": True}


class SaleResponse(BaseModel):
    id: str
    sale_number: str
    sale_date: date
    reference_number: Optional[str] = None
    total_amount: float
    payment_method: str
    paid_amount: float
    change_amount: float
    notes: Optional[str] = None
    cashier_id: Optional[str] = None
    created_at: datetime
    cashier: Optional[UserSummary] = None
    items: List[SaleItemResponse] = []

    model_config = {"from_attributes": True}


class SaleListResponse(BaseModel):
    sales: List[SaleResponse]
    pagination: Pagination


class SaleItemsResponse(BaseModel):
    sale_id: str
    sale_number: str
    items: List[SaleItemResponse]


class TopProduct(BaseModel):
    product_id: str
    name: str
    sku: str
    quantity_sold: int
    revenue: float


class SalesStats(BaseModel):
    total_transactions: int
    total_revenue: float
    total_items_sold: int
    average_transaction_value: float
    cash_transactions: int
    qris_transactions: int
    top_products: List[TopProduct]


class TodaySummary(BaseModel):
    date: date
    total_transactions: int
    total_revenue: float
    total_items_sold: int
    cash_revenue: float
    qris_revenue: float
    opening_stock: int = Field(description="Display stock before today's sales")
    closing_stock: int = Field(description="Current total display stock")
    stock_moved: int


class CashierSales(BaseModel):
    cashier: UserSummary
    total_transactions: int
    total_revenue: float
    sales: List[SaleResponse]
