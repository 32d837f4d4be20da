"""
Auth request/response schemas.

Usernames are restricted to letters, digits and underscore so they are safe
to show in URLs and logs. Passwords are capped at 72 UTF-8 bytes, the most
bcrypt accepts.
"""

import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")
PASSWORD_MAX_BYTES = 72

Role = Literal["admin", "cashier", "guest"]


class RegisterRequest(BaseModel):
    model_config = {"str_strip_whitespace": True}

    username: str = Field(min_length=3, max_length=20)
    name: str = Field(min_length=4, max_length=50)
    password: str = Field(min_length=6, max_length=72)
    role: Role = "guest"

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        if not USERNAME_PATTERN.match(v):
            raise ValueError("Username may only contain letters, numbers and underscore")
        return v

    @field_validator("password")
    @classmethod
    def validate_password_bytes(cls, v: str) -> str:
        if len(v.encode("utf-8")) > PASSWORD_MAX_BYTES:
            raise ValueError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes in UTF-8")
        return v


class LoginRequest(BaseModel):
    username: str = Field(min_length=1, max_length=20)
    password: str = Field(min_length=1, max_length=72)


class UserResponse(BaseModel):
    id: str
    username: str
    name: str
    role: str

    model_config = {"from_attributes": True}


class MeResponse(UserResponse):
    created_at: datetime


class TokenResponse(BaseModel):
    token: str = Field(description="Access JWT for the Authorization: Bearer header")
    expires_at: datetime = Field(description="Access token expiry (UTC)")


class LoginResponse(TokenResponse):
    user: UserResponse
