"""
Shared column helpers for the ORM models.

Ids are prefixed strings (`prod_3f2a...`, `sale_91bc...`) so a bare id in a
log line or support ticket already says which table it belongs to.
"""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def today() -> date:
    """Current business date (UTC)."""
    return utcnow().date()


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


def id_factory(prefix: str):
    """Column default that generates a fresh prefixed id per row."""
    return lambda: new_id(prefix)


class TimestampMixin:
    """created_at / updated_at pair maintained by the ORM."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        comment="Row creation time (UTC)",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        comment="Last modification time (UTC)",
    )
