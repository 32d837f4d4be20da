"""
Arroyyan Backend — Auth Routes
================================

What:  /api/auth/register, /login, /logout, /me, /refresh
How:   The access token travels in the response body and the Authorization
       header; the refresh token only ever travels in an HttpOnly cookie.

Cookie attributes:
    HttpOnly      not readable from JavaScript
    Secure        from settings (disable only for local http development)
    SameSite      Strict
    Path          /
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from arroyyan.config import settings
from arroyyan.database import get_db_session
from arroyyan.dependencies import get_bearer_token, get_current_user
from arroyyan.models.user import User
from arroyyan.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from arroyyan.schemas.common import ApiResponse, ErrorResponse, ok
from arroyyan.services.auth_service import ClientInfo, auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _client_info(request: Request) -> ClientInfo:
    return ClientInfo(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


def _set_refresh_cookie(response: Response, token: str, expires_at: datetime) -> None:
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=token,
        max_age=settings.refresh_token_expire_days * 24 * 60 * 60,
        expires=expires_at,
        httponly=True,
        secure=settings.refresh_cookie_secure,
        samesite="strict",
        path="/",
    )


@router.post(
    "/register",
    status_code=201,
    response_model=ApiResponse[UserResponse],
    responses={
        400: {"description": "Invalid input", "model": ErrorResponse},
        409: {"description": "Username already taken", "model": ErrorResponse},
        429: {"description": "Too many attempts", "model": ErrorResponse},
    },
    summary="Register a user account",
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[UserResponse]:
    user = await auth_service.register(db, body)
    return ok(user, "User registered successfully")


@router.post(
    "/login",
    response_model=ApiResponse[LoginResponse],
    responses={
        401: {"description": "Invalid username or password", "model": ErrorResponse},
        429: {"description": "Too many attempts", "model": ErrorResponse},
    },
    summary="Log in and receive an access token",
)
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[LoginResponse]:
    result = await auth_service.login(db, body.username, body.password, _client_info(request))
    _set_refresh_cookie(response, result.refresh_token, result.refresh_expires_at)
    return ok(result.response, "Login successful")


@router.post(
    "/logout",
    response_model=ApiResponse[None],
    summary="Revoke the current session",
    description="Always succeeds. Deletes the session row of the presented token and clears the refresh cookie.",
)
async def logout(
    response: Response,
    token: Optional[str] = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[None]:
    await auth_service.logout(db, token)
    response.delete_cookie(
        key=settings.refresh_cookie_name,
        httponly=True,
        secure=settings.refresh_cookie_secure,
        samesite="strict",
        path="/",
    )
    return ok(None, "Logout successful")


@router.get(
    "/me",
    response_model=ApiResponse[MeResponse],
    responses={401: {"description": "Not authenticated", "model": ErrorResponse}},
    summary="Current user profile",
)
async def me(user: User = Depends(get_current_user)) -> ApiResponse[MeResponse]:
    return ok(MeResponse.model_validate(user))


@router.post(
    "/refresh",
    response_model=ApiResponse[TokenResponse],
    responses={401: {"description": "Refresh token missing or invalid", "model": ErrorResponse}},
    summary="Exchange the refresh cookie for a new access token",
)
async def refresh(
    request: Request,
    refresh_token: Optional[str] = Cookie(default=None, alias=settings.refresh_cookie_name),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[TokenResponse]:
    token = await auth_service.refresh(db, refresh_token, _client_info(request))
    return ok(token, "Token refreshed")
