"""
Arroyyan Backend — User, Session and Refresh Token Models
===========================================================

What:  Accounts and the two token ledgers that back authentication.
Why:   A JWT alone cannot be revoked before it expires. Every access token
       issued at login or refresh is also stored as a `sessions` row; the
       auth dependency requires that row to exist, so logout (which deletes
       it) revokes the token immediately.

Tables:
    users           username (unique), bcrypt password hash, role
    sessions        one row per issued access token (token is unique)
    refresh_tokens  SHA-256 digest of each refresh JWT; raw tokens are never stored
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from arroyyan.database import Base
from arroyyan.models.common import TimestampMixin, id_factory, utcnow

USER_ROLES = ("admin", "cashier", "guest")


class User(TimestampMixin, Base):
    """
    A staff account.

    Roles:
        admin    manages catalog, suppliers, supply orders, reports
        cashier  records sales and stock transfers
        guest    read-only access to authenticated endpoints
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=id_factory("user"))
    username: Mapped[str] = mapped_column(
        String(20), nullable=False, unique=True, comment="Login name, [A-Za-z0-9_]{3,20}"
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False, comment="Display name")
    password: Mapped[str] = mapped_column(String(255), nullable=False, comment="bcrypt hash")
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default="guest", comment="admin, cashier or guest"
    )
    image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    sessions: Mapped[List["UserSession"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"


class UserSession(TimestampMixin, Base):
    """An issued access token. Deleting the row revokes the token."""

    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=id_factory("sess"))
    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    token: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    user: Mapped[User] = relationship(back_populates="sessions")

    __table_args__ = (Index("idx_sessions_user_id", "user_id"),)

    def __repr__(self) -> str:
        return f"<UserSession(id={self.id}, user_id={self.user_id}, expires_at='{self.expires_at}')>"


class RefreshToken(Base):
    """A refresh JWT, stored as a digest. Revocation sets revoked_at."""

    __tablename__ = "refresh_tokens"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=id_factory("rtok"))
    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    token_hash: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, comment="SHA-256 hex digest of the refresh JWT"
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    revoked_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    replaced_by_token: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (Index("idx_refresh_tokens_user_id", "user_id"),)
