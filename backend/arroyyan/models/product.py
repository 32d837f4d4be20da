"""
Arroyyan Backend — Product and Inventory Models
=================================================

What:  The product catalog and its per-product stock counters.
How:   Each product owns exactly one `inventory` row holding two counters:

           warehouse_stock   units in the back room (filled by supply orders)
           display_stock     units on the shelf (filled by transfers, emptied by sales)

       CHECK constraints keep both counters non-negative at the database
       level; services check availability first and raise a typed error,
       so the constraint only fires if a check was bypassed.

Products are never hard-deleted: sale and supply history reference them
(FK RESTRICT). Deleting through the API flips is_active to False.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from arroyyan.database import Base
from arroyyan.models.common import TimestampMixin, id_factory, utcnow


class Product(TimestampMixin, Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=id_factory("prod"))
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    sku: Mapped[str] = mapped_column(
        String(7), nullable=False, unique=True, comment="Uppercase alphanumeric, immutable"
    )
    selling_price: Mapped[float] = mapped_column(
        Float, nullable=False, comment="Current unit price (rupiah)"
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    inventory: Mapped[Optional["Inventory"]] = relationship(
        back_populates="product",
        uselist=False,
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_products_created_at", "created_at"),
        Index("idx_products_is_active", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, sku='{self.sku}', active={self.is_active})>"


class Inventory(TimestampMixin, Base):
    __tablename__ = "inventory"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=id_factory("inv"))
    product_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    warehouse_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    display_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_stock_update: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    product: Mapped[Product] = relationship(back_populates="inventory")

    __table_args__ = (
        CheckConstraint("warehouse_stock >= 0", name="ck_inventory_warehouse_non_negative"),
        CheckConstraint("display_stock >= 0", name="ck_inventory_display_non_negative"),
    )

    @property
    def total_stock(self) -> int:
        return self.warehouse_stock + self.display_stock

    def __repr__(self) -> str:
        return (
            f"<Inventory(product_id={self.product_id}, "
            f"warehouse={self.warehouse_stock}, display={self.display_stock})>"
        )
