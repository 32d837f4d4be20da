"""
Arroyyan Backend — Authentication Service
===========================================

What:  Registration, login, logout and token refresh.
How:   Passwords are bcrypt-hashed. Login issues two JWTs:

           access token   returned in the body, recorded as a `sessions` row
           refresh token  returned as an HttpOnly cookie, recorded as a digest

       Logout deletes the session row (revoking the access token at once)
       and every refresh token of the user. Refresh verifies the cookie
       against its stored digest and issues a new access token + session.

Login Flow:
    ┌────────┐   ┌──────────────┐   ┌────────────┐   ┌────────────────────┐
    │  user  │──▶│ bcrypt check │──▶│ sign JWTs  │──▶│ insert session +   │
    │ lookup │   │              │   │            │   │ refresh digest row │
    └────────┘   └──────────────┘   └────────────┘   └────────────────────┘
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from arroyyan.exceptions import ConflictError, UnauthorizedError
from arroyyan.models.common import utcnow
from arroyyan.models.user import RefreshToken, User, UserSession
from arroyyan.schemas.auth import LoginResponse, RegisterRequest, TokenResponse, UserResponse
from arroyyan.security import (
    REFRESH_TOKEN_TYPE,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    token_digest,
    verify_password,
)

logger = logging.getLogger(__name__)


@dataclass
class ClientInfo:
    """Where a login/refresh came from; stored on session rows for auditing."""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


@dataclass
class LoginResult:
    response: LoginResponse
    refresh_token: str
    refresh_expires_at: datetime


class AuthService:
    async def register(self, db: AsyncSession, data: RegisterRequest) -> UserResponse:
        """
        Raises:
            ConflictError: username already taken (→ 409)
        """
        existing = await db.execute(select(User.id).where(User.username == data.username))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError("Username is already taken", field="username")

        user = User(
            username=data.username,
            name=data.name,
            password=hash_password(data.password),
            role=data.role,
        )
        db.add(user)
        await db.flush()
        logger.info("User registered: %s (role=%s)", user.username, user.role)
        return UserResponse.model_validate(user)

    async def login(
        self,
        db: AsyncSession,
        username: str,
        password: str,
        client: Optional[ClientInfo] = None,
    ) -> LoginResult:
        """
        Verifies credentials and opens a session.

        The same 401 message is used for an unknown username and a wrong
        password so the endpoint cannot be used to probe for accounts.
        """
        client = client or ClientInfo()
        result = await db.execute(select(User).where(User.username == username))
        user = result.scalar_one_or_none()
        if user is None or not verify_password(password, user.password):
            logger.warning("Failed login for username '%s'", username)
            raise UnauthorizedError("Invalid username or password")

        access_token, access_expires = await self._open_session(db, user, client)

        refresh_token, refresh_expires = create_refresh_token(user.id)
        db.add(
            RefreshToken(
                user_id=user.id,
                token_hash=token_digest(refresh_token),
                expires_at=refresh_expires,
                ip_address=client.ip_address,
                user_agent=client.user_agent,
            )
        )
        await db.flush()
        logger.info("User logged in: %s", user.username)

        return LoginResult(
            response=LoginResponse(
                token=access_token,
                expires_at=access_expires,
                user=UserResponse.model_validate(user),
            ),
            refresh_token=refresh_token,
            refresh_expires_at=refresh_expires,
        )

    async def logout(self, db: AsyncSession, access_token: Optional[str]) -> None:
        """
        Deletes the session row for `access_token` and, when the token is
        still verifiable, every refresh token of its user. Never fails:
        logging out with a bad or missing token is a no-op.
        """
        if not access_token:
            return

        await db.execute(delete(UserSession).where(UserSession.token == access_token))

        try:
            payload = decode_token(access_token)
        except UnauthorizedError:
            return

        await db.execute(delete(RefreshToken).where(RefreshToken.user_id == payload["sub"]))
        logger.info("User logged out: %s", payload.get("username", payload["sub"]))

    async def refresh(
        self,
        db: AsyncSession,
        refresh_token: Optional[str],
        client: Optional[ClientInfo] = None,
    ) -> TokenResponse:
        """
        Exchanges a valid refresh cookie for a new access token.

        Raises:
            UnauthorizedError: cookie missing, invalid, unknown, revoked or expired
        """
        if not refresh_token:
            raise UnauthorizedError("Refresh token not found")

        payload = decode_token(refresh_token, expected_type=REFRESH_TOKEN_TYPE)

        result = await db.execute(
            select(RefreshToken).where(
                RefreshToken.token_hash == token_digest(refresh_token),
                RefreshToken.user_id == payload["sub"],
                RefreshToken.revoked_at.is_(None),
                RefreshToken.expires_at > utcnow(),
            )
        )
        if result.scalar_one_or_none() is None:
            raise UnauthorizedError("Refresh token is invalid or has been revoked")

        user = await db.get(User, payload["sub"])
        if user is None:
            raise UnauthorizedError("User not found")

        token, expires_at = await self._open_session(db, user, client or ClientInfo())
        await db.flush()
        return TokenResponse(token=token, expires_at=expires_at)

    async def _open_session(self, db: AsyncSession, user: User, client: ClientInfo):
        token, expires_at = create_access_token(user.id, user.username, user.role)
        db.add(
            UserSession(
                user_id=user.id,
                token=token,
                expires_at=expires_at,
                ip_address=client.ip_address,
                user_agent=client.user_agent,
            )
        )
        return token, expires_at


auth_service = AuthService()
