"""Dashboard report payloads."""

from datetime import date, datetime
from typing import List, Literal

from pydantic import BaseModel

from arroyyan.schemas.sale import TopProduct

Period = Literal["daily", "weekly", "monthly"]


class DashboardTransaction(BaseModel):
    id: str
    sale_number: str
    sale_date: date
    total_amount: float
    payment_method: str
    cashier_name: str
    item_count: int
    created_at: datetime


class DashboardSummary(BaseModel):
    period: Period
    start_date: date
    end_date: date
    total_revenue: float
    low_stock_count: int
    transactions: List[DashboardTransaction]


class QuickStats(BaseModel):
    date: date
    total_revenue: float
    total_transactions: int
    low_stock_count: int


class TrendPoint(BaseModel):
    date: date
    revenue: float
    transactions: int


class DateRange(BaseModel):
    start_date: date
    end_date: date


class DashboardStats(BaseModel):
    period: DateRange
    total_revenue: float
    total_transactions: int
    average_transaction_value: float
    top_products: List[TopProduct]
    trend: List[TrendPoint]
