"""
Arroyyan Backend — Supplier and Supply Order Models
=====================================================

What:  Suppliers and the orders received from them (pasokan).
How:   A supply order is a header (supplier, date, total) plus line items
       (product, quantity, purchase price, subtotal). Receiving an order
       adds each item's quantity to the product's warehouse stock.

Suppliers with order history cannot be removed (FK RESTRICT); the API
soft-deletes them instead, and refuses even that while orders exist.
"""

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import Boolean, Date, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from arroyyan.database import Base
from arroyyan.models.common import TimestampMixin, id_factory, utcnow
from arroyyan.models.product import Product


class Supplier(TimestampMixin, Base):
    __tablename__ = "suppliers"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=id_factory("supp"))
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    contact_person: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Supplier(id={self.id}, name='{self.name}')>"


class SupplyOrder(TimestampMixin, Base):
    __tablename__ = "supply_orders"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=id_factory("supo"))
    order_number: Mapped[str] = mapped_column(
        String(32), nullable=False, unique=True, comment="SUP-YYYYMMDD-NNN"
    )
    supplier_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False
    )
    order_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    supplier: Mapped[Supplier] = relationship()
    items: Mapped[List["SupplyOrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="SupplyOrderItem.created_at",
    )

    __table_args__ = (
        Index("idx_supply_orders_supplier_id", "supplier_id"),
        Index("idx_supply_orders_order_date", "order_date"),
    )

    def __repr__(self) -> str:
        return f"<SupplyOrder(id={self.id}, number='{self.order_number}', total={self.total_amount})>"


class SupplyOrderItem(Base):
    __tablename__ = "supply_order_items"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=id_factory("supi"))
    supply_order_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("supply_orders.id", ondelete="CASCADE"), nullable=False
    )
    product_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("products.id", ondelete="RESTRICT"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    purchase_price: Mapped[float] = mapped_column(Float, nullable=False)
    subtotal: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    order: Mapped[SupplyOrder] = relationship(back_populates="items")
    product: Mapped[Product] = relationship()
