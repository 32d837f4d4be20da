"""
Arroyyan Backend — Password Hashing and JWT Helpers
=====================================================

What:  Thin wrappers over bcrypt and python-jose.
Why:   Keeps token claims, lifetimes and error translation in one place so
       the auth service and the request dependency agree on them.

Token types:
    access   claims: sub, username, role, type="access", jti, iat, exp
             lifetime ACCESS_TOKEN_EXPIRE_MINUTES, sent as Bearer header
    refresh  claims: sub, type="refresh", jti, iat, exp
             lifetime REFRESH_TOKEN_EXPIRE_DAYS, sent only as an HttpOnly cookie

Every token carries a random `jti`, so two logins in the same second still
produce distinct tokens (sessions.token is unique).
"""

import hashlib
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, Tuple

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from arroyyan.config import settings
from arroyyan.exceptions import UnauthorizedError
from arroyyan.models.common import utcnow

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


# ── Passwords ─────────────────────────────────────────────────────────────


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or an over-long password.
        return False


# ── Tokens ────────────────────────────────────────────────────────────────


def _encode(claims: Dict[str, Any], lifetime: timedelta) -> Tuple[str, datetime]:
    issued_at = utcnow()
    expires_at = issued_at + lifetime
    payload = {
        **claims,
        "jti": uuid.uuid4().hex,
        "iat": issued_at,
        "exp": expires_at,
    }
    token = jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return token, expires_at


def create_access_token(user_id: str, username: str, role: str) -> Tuple[str, datetime]:
    """Returns (token, expires_at)."""
    return _encode(
        {"sub": user_id, "username": username, "role": role, "type": ACCESS_TOKEN_TYPE},
        timedelta(minutes=settings.access_token_expire_minutes),
    )


def create_refresh_token(user_id: str) -> Tuple[str, datetime]:
    """Returns (token, expires_at)."""
    return _encode(
        {"sub": user_id, "type": REFRESH_TOKEN_TYPE},
        timedelta(days=settings.refresh_token_expire_days),
    )


def decode_token(token: str, expected_type: str = ACCESS_TOKEN_TYPE) -> Dict[str, Any]:
    """
    Verifies signature, expiry and token type.

    Raises:
        UnauthorizedError: "Token has expired" or "Invalid token"
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        raise UnauthorizedError("Token has expired")
    except JWTError:
        raise UnauthorizedError("Invalid token")

    if payload.get("type") != expected_type or not payload.get("sub"):
        raise UnauthorizedError("Invalid token")
    return payload


def token_digest(token: str) -> str:
    """SHA-256 hex digest used to store refresh tokens at rest."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
