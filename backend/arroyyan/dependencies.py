"""
Arroyyan Backend — Request Dependencies
=========================================

What:  FastAPI dependencies for authentication and role checks.
How:   `get_current_user` resolves the Bearer token to a User:

           1. header present and Bearer       else 401 "Token not found"
           2. JWT verifies, type == access    else 401 "Token has expired" / "Invalid token"
           3. live session row for the token  else 401 "Session has been revoked or expired"
           4. user still exists               else 401 "User not found"

       `require_role(*roles)` builds a dependency that additionally checks
       the user's role and raises 403 otherwise.

Usage:
    @router.post("/produk")
    async def create(user: User = Depends(require_role("admin")), ...):
"""

from typing import Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from arroyyan.database import get_db_session
from arroyyan.exceptions import ForbiddenError, UnauthorizedError
from arroyyan.models.common import utcnow
from arroyyan.models.user import User, UserSession
from arroyyan.security import decode_token

# auto_error=False: a missing header should produce our 401 envelope,
# not FastAPI's default 403.
bearer_scheme = HTTPBearer(auto_error=False)


async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None
    return credentials.credentials


async def get_current_user(
    token: Optional[str] = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    if not token:
        raise UnauthorizedError("Token not found")

    payload = decode_token(token)

    result = await db.execute(
        select(UserSession.id).where(
            UserSession.token == token,
            UserSession.expires_at > utcnow(),
        )
    )
    if result.scalar_one_or_none() is None:
        raise UnauthorizedError("Session has been revoked or expired")

    user = await db.get(User, payload["sub"])
    if user is None:
        raise UnauthorizedError("User not found")
    return user


def require_role(*roles: str) -> Callable:
    """Dependency factory: current user must have one of `roles`."""

    async def _check_role(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise ForbiddenError(
                f"Access denied. Required role: {' or '.join(roles)}",
                context={"required_roles": list(roles), "role": user.role},
            )
        return user

    return _check_role
