"""
Stock transfer models (etalase): units moved from warehouse to display.
"""

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from arroyyan.database import Base
from arroyyan.models.common import id_factory, utcnow
from arroyyan.models.product import Product
from arroyyan.models.user import User


class StockTransfer(Base):
    __tablename__ = "stock_transfers"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=id_factory("trf"))
    transfer_number: Mapped[str] = mapped_column(
        String(32), nullable=False, unique=True, comment="TRF-YYYYMMDD-NNN"
    )
    transfer_date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    performed_by: Mapped[Optional[str]] = mapped_column(
        String(64), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    performer: Mapped[Optional[User]] = relationship()
    items: Mapped[List["StockTransferItem"]] = relationship(
        back_populates="transfer",
        cascade="all, delete-orphan",
        order_by="StockTransferItem.created_at",
    )

    __table_args__ = (Index("idx_stock_transfers_transfer_date", "transfer_date"),)

    def __repr__(self) -> str:
        return f"<StockTransfer(id={self.id}, number='{self.transfer_number}')>"


class StockTransferItem(Base):
    __tablename__ = "stock_transfer_items"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=id_factory("trfi"))
    transfer_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("stock_transfers.id", ondelete="CASCADE"), nullable=False
    )
    product_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("products.id", ondelete="RESTRICT"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    transfer: Mapped[StockTransfer] = relationship(back_populates="items")
    product: Mapped[Product] = relationship()
