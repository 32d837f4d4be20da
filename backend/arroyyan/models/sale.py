"""
Arroyyan Backend — Sale Models
================================

What:  Point-of-sale transactions (penjualan) and their line items.

Money invariants (enforced by SaleService before insert):
    subtotal      = quantity × unit_price
    total_amount  = Σ subtotal
    paid_amount  >= total_amount
    change_amount = paid_amount − total_amount

unit_price is copied from the product at sale time, so later price changes
never rewrite history.
"""

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import Date, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from arroyyan.database import Base
from arroyyan.models.common import TimestampMixin, id_factory, utcnow
from arroyyan.models.product import Product
from arroyyan.models.user import User

PAYMENT_METHODS = ("cash", "qris")


class Sale(TimestampMixin, Base):
    __tablename__ = "sales"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=id_factory("sale"))
    sale_number: Mapped[str] = mapped_column(
        String(32), nullable=False, unique=True, comment="INV-YYYYMMDD-NNN"
    )
    sale_date: Mapped[date] = mapped_column(Date, nullable=False)
    reference_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    total_amount: Mapped[float] = mapped_column(Float, nullable=False)
    payment_method: Mapped[str] = mapped_column(
        String(10), nullable=False, comment="cash or qris"
    )
    paid_amount: Mapped[float] = mapped_column(Float, nullable=False)
    change_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cashier_id: Mapped[Optional[str]] = mapped_column(
        String(64), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    cashier: Mapped[Optional[User]] = relationship()
    items: Mapped[List["SaleItem"]] = relationship(
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleItem.created_at",
    )

    __table_args__ = (
        Index("idx_sales_sale_date", "sale_date"),
        Index("idx_sales_cashier_id", "cashier_id"),
        Index("idx_sales_created_at", "created_at"),
    )

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def __repr__(self) -> str:
        return f"<Sale(id={self.id}, number='{self.sale_number}', total={self.total_amount})>"


class SaleItem(Base):
    __tablename__ = "sale_items"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=id_factory("salei"))
    sale_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("sales.id", ondelete="CASCADE"), nullable=False
    )
    product_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("products.id", ondelete="RESTRICT"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[float] = mapped_column(Float, nullable=False)
    subtotal: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    sale: Mapped[Sale] = relationship(back_populates="items")
    product: Mapped[Product] = relationship()

    __table_args__ = (Index("idx_sale_items_product_id", "product_id"),)
