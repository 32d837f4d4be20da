"""
Arroyyan Backend — Shared API Schemas
=======================================

What:  The response envelope, pagination block, error and health models.
Why:   Every endpoint answers in the same shape so clients parse one format:

           success:  {"success": true,  "message": "...", "data": {...}}
           error:    {"success": false, "error": "CODE", "message": "...",
                      "details": {...}, "request_id": "a1b2c3d4"}

The error shape is produced by the handlers in main.py; ErrorResponse only
documents it for OpenAPI.
"""

import math
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


# ══════════════════════════════════════════════════════════════════════════
# Envelope
# ══════════════════════════════════════════════════════════════════════════


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope. Routes declare `response_model=ApiResponse[Payload]`."""

    success: bool = Field(default=True, description="Always true for 2xx responses")
    message: Optional[str] = Field(default=None, description="Human-readable outcome")
    data: Optional[T] = Field(default=None, description="Endpoint payload")


def ok(data: Any = None, message: Optional[str] = None) -> ApiResponse:
    return ApiResponse(success=True, message=message, data=data)


class ErrorResponse(BaseModel):
    """
    Error envelope returned by every global exception handler.

    Example:
        {
            "success": false,
            "error": "INSUFFICIENT_STOCK",
            "message": "Insufficient display stock for product prod_1a2b. Requested: 5, available: 2",
            "details": {"product_id": "prod_1a2b", "requested": 5, "available": 2},
            "request_id": "a1b2c3d4"
        }
    """

    success: bool = Field(default=False)
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[Any] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


# ══════════════════════════════════════════════════════════════════════════
# Pagination
# ══════════════════════════════════════════════════════════════════════════


class Pagination(BaseModel):
    """Offset pagination metadata attached to every list payload."""

    page: int
    limit: int
    total: int
    total_pages: int
    has_more: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = math.ceil(total / limit) if limit else 0
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_more=page * limit < total,
        )

    @staticmethod
    def offset(page: int, limit: int) -> int:
        return (page - 1) * limit


# ══════════════════════════════════════════════════════════════════════════
# Health
# ══════════════════════════════════════════════════════════════════════════


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected or disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")


class ServiceInfo(BaseModel):
    name: str
    version: str
    docs: str
