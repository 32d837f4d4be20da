"""
Arroyyan Backend — Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions, one per error category.
Why:   Handlers in main.py map each class to an HTTP status and an error
       code, so services never deal with HTTP and no error is classified by
       inspecting its message text.
How:   Every exception carries a user-facing `message` and a `context` dict.
       For client errors the context is returned as `details`; for server
       errors it is logged only.

Exception Hierarchy:
    ArroyyanError (base)                  → 500
    ├── ValidationError                   → 400 VALIDATION_ERROR
    │   ├── InvalidProductError           → 400 INVALID_PRODUCT
    │   ├── InsufficientStockError        → 400 INSUFFICIENT_STOCK
    │   │   ├── InsufficientWarehouseStockError
    │   │   └── InsufficientDisplayStockError
    │   └── PaymentError                  → 400 PAYMENT_ERROR
    ├── UnauthorizedError                 → 401 UNAUTHORIZED
    ├── ForbiddenError                    → 403 FORBIDDEN
    ├── NotFoundError                     → 404 NOT_FOUND
    ├── ConflictError                     → 409 CONFLICT
    ├── RateLimitExceededError            → 429 RATE_LIMIT_EXCEEDED
    └── DatabaseError                     → 500 DATABASE_ERROR
"""

from typing import Any, Dict, Optional


class ArroyyanError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:     User-facing description (safe to return in API responses)
        context:     Structured extra info
        status_code: HTTP status used by the global handler
        code:        Machine-readable error code in the envelope
    """

    status_code: int = 500
    code: str = "INTERNAL_SERVER_ERROR"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(ArroyyanError):
    """
    Client input broke a business rule that schema validation cannot see
    (e.g. deleting a product that still has stock).
    """

    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class InvalidProductError(ValidationError):
    """A line item references a product that is missing or inactive."""

    code = "INVALID_PRODUCT"

    def __init__(self, product_id: str, reason: str):
        super().__init__(
            message=f"Product {product_id} is not valid: {reason}",
            context={"product_id": product_id, "reason": reason},
        )
        self.product_id = product_id
        self.reason = reason


class InsufficientStockError(ValidationError):
    """Requested quantity exceeds the stock counter it would be taken from."""

    code = "INSUFFICIENT_STOCK"
    location = "stock"

    def __init__(self, product_id: str, requested: int, available: int):
        super().__init__(
            message=(
                f"Insufficient {self.location} stock for product {product_id}. "
                f"Requested: {requested}, available: {available}"
            ),
            context={
                "product_id": product_id,
                "location": self.location,
                "requested": requested,
                "available": available,
            },
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class InsufficientWarehouseStockError(InsufficientStockError):
    location = "warehouse"


class InsufficientDisplayStockError(InsufficientStockError):
    location = "display"


class PaymentError(ValidationError):
    """Paid amount does not cover the sale total."""

    code = "PAYMENT_ERROR"

    def __init__(self, paid_amount: float, total_amount: float):
        super().__init__(
            message=f"Paid amount ({paid_amount:g}) is less than the total ({total_amount:g})",
            context={"paid_amount": paid_amount, "total_amount": total_amount},
        )
        self.paid_amount = paid_amount
        self.total_amount = total_amount


class UnauthorizedError(ArroyyanError):
    """Missing, invalid, expired or revoked credentials."""

    status_code = 401
    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Unauthorized", context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context=context)


class ForbiddenError(ArroyyanError):
    """Authenticated, but the user's role is not allowed here."""

    status_code = 403
    code = "FORBIDDEN"

    def __init__(self, message: str = "Access denied", context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context=context)


class NotFoundError(ArroyyanError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services turn that None into
    this exception so routes never check for it.
    """

    status_code = 404
    code = "NOT_FOUND"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found"
        if resource_id:
            message = f"{resource.capitalize()} '{resource_id}' not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(ArroyyanError):
    """A unique value (username, SKU, email) is already taken."""

    status_code = 409
    code = "CONFLICT"

    def __init__(
        self,
        message: str = "Resource already exists",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)


class RateLimitExceededError(ArroyyanError):
    """Client exceeded the per-IP attempt limit on credential endpoints."""

    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, retry_after: int = 60, context: Optional[Dict[str, Any]] = None):
        message = f"Too many attempts. Please wait {retry_after} seconds before retrying."
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class DatabaseError(ArroyyanError):
    """
    A database operation failed unexpectedly.

    The client always gets a generic message; the context (constraint
    names, original error type) is logged server-side only.
    """

    status_code = 500
    code = "DATABASE_ERROR"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
