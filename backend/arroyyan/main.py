"""
Arroyyan Backend — FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes configuration, middleware, route mounting, error mapping
       and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn (uvicorn arroyyan.main:app) and by the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                        FastAPI App                           │
    │                                                              │
    │  Middleware:  RateLimit → SecurityHeaders → RequestID →      │
    │               Logging → GZip → CORS                          │
    │                                                              │
    │  Routes:                                                     │
    │   /api/auth   /api/produk   /api/pasokan   /api/etalase      │
    │   /api/penjualan   /api/dashboard   /api/customers   /health │
    │                                                              │
    │  Exception Handlers:                                         │
    │   ArroyyanError → its status │ RequestValidation → 400       │
    │   HTTPException → its status │ IntegrityError → 409          │
    │   SQLAlchemyError → 500      │ Exception → 500 (+traceback)  │
    └──────────────────────────────────────────────────────────────┘

Every error leaves as the same envelope:
    {"success": false, "error": CODE, "message": ..., "details"?: ..., "request_id": ...}
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from arroyyan import __version__
from arroyyan.config import settings
from arroyyan.database import dispose_engine, init_models
from arroyyan.exceptions import ArroyyanError, RateLimitExceededError
from arroyyan.middleware.logging import RequestLoggingMiddleware
from arroyyan.middleware.rate_limit import RateLimitMiddleware
from arroyyan.middleware.request_id import RequestIDMiddleware, request_id_var
from arroyyan.middleware.security_headers import SecurityHeadersMiddleware
from arroyyan.routes import auth, customers, dashboard, etalase, health, pasokan, penjualan, produk

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: 2025-01-15T12:00:00 [INFO] arroyyan.services.sale_service: Sale INV-... created

    Module loggers (logging.getLogger(__name__)) inherit this root config;
    the access log is the `arroyyan.access` logger.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that are chatty at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Setup logging
        2. Validate production settings (refuses to start on a weak secret)
        3. Create missing tables when DB_AUTO_CREATE is on
    Shutdown:
        1. Dispose the database engine
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Arroyyan Backend %s starting up (%s)...", __version__, settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        raise

    if settings.db_auto_create:
        await init_models()
        logger.info("Database schema ensured (DB_AUTO_CREATE)")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Arroyyan Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return request_id_var.get("") or getattr(request.state, "request_id", "")


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {"success": False, "error": code, "message": message}
    if details:
        content["details"] = details
    content["request_id"] = _request_id(request)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to HTTP responses.

    Handler hierarchy:
        ArroyyanError           → exc.status_code / exc.code
                                  (4xx: context returned as details;
                                   5xx: context logged, generic message)
        RequestValidationError  → 400 VALIDATION_ERROR
        StarletteHTTPException  → its status (unknown route → 404)
        IntegrityError          → 409 CONFLICT (unique/foreign key race)
        SQLAlchemyError         → 500 DATABASE_ERROR
        Exception (fallback)    → 500 INTERNAL_SERVER_ERROR, traceback logged

    Responses never include stack traces, SQL or file paths.
    """

    @app.exception_handler(ArroyyanError)
    async def handle_app_error(request: Request, exc: ArroyyanError):
        rid = _request_id(request)
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, exc.code, exc.message, exc.context)
            return error_response(
                request,
                exc.status_code,
                exc.code,
                "An internal error occurred. Please try again later.",
            )

        logger.warning("[%s] %s: %s", rid, exc.code, exc.message)
        headers = None
        if isinstance(exc, RateLimitExceededError):
            headers = {"Retry-After": str(exc.retry_after)}
        return error_response(
            request, exc.status_code, exc.code, exc.message, exc.context or None, headers
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        details = [
            {
                "loc": [str(part) for part in err.get("loc", ())],
                "msg": err.get("msg", ""),
                "type": err.get("type", ""),
            }
            for err in exc.errors()
        ]
        logger.warning("[%s] Request validation failed: %d errors", _request_id(request), len(details))
        return error_response(request, 400, "VALIDATION_ERROR", "Validation failed", details)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return error_response(
                request, 404, "NOT_FOUND", f"Route {request.method} {request.url.path} not found"
            )
        if exc.status_code == 405:
            return error_response(request, 405, "METHOD_NOT_ALLOWED", "Method not allowed")
        return error_response(
            request, exc.status_code, "HTTP_ERROR", str(exc.detail), headers=exc.headers
        )

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError):
        logger.warning("[%s] Integrity error: %s", _request_id(request), str(exc.orig))
        return error_response(
            request,
            409,
            "CONFLICT",
            "The request conflicts with existing data (duplicate or referenced record)",
        )

    @app.exception_handler(SQLAlchemyError)
    async def handle_database_error(request: Request, exc: SQLAlchemyError):
        logger.error("[%s] Database error: %s", _request_id(request), str(exc), exc_info=True)
        return error_response(
            request, 500, "DATABASE_ERROR", "A database error occurred. Please try again later."
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = _request_id(request)
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return error_response(
            request,
            500,
            "INTERNAL_SERVER_ERROR",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    The test suite builds a fresh app per test and overrides the
    get_db_session dependency, so nothing here may depend on global state
    beyond `settings`.
    """
    app = FastAPI(
        title="Arroyyan Petshop API",
        description=(
            "Inventory and point-of-sale backend for the Arroyyan petshop: "
            "products, supply orders, warehouse-to-display transfers, sales and dashboards."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition (last added = first).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,     # refresh cookie
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RateLimitMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(produk.router)
    app.include_router(pasokan.router)
    app.include_router(etalase.router)
    app.include_router(penjualan.router)
    app.include_router(dashboard.router)
    app.include_router(customers.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `arroyyan.main:app` to be importable
app = create_app()
