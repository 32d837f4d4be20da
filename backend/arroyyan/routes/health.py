"""
Arroyyan Backend — Health Check Routes
========================================

What:  Service info and health probes for monitoring and container orchestration.
Why:   A process that is up but cannot reach its database cannot take a
       single sale, so readiness depends on the database.
How:   The database is probed with SELECT 1 (cheap enough for every 10-30 s).

Endpoints:
    GET /              service name, version, docs URL
    GET /health        aggregate status (always 200, body says healthy/unhealthy)
    GET /health/live   liveness: the process answers (always 200)
    GET /health/ready  readiness: 503 while the database is unreachable
"""

import logging
import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from arroyyan import __version__
from arroyyan.database import engine
from arroyyan.schemas.common import ApiResponse, HealthResponse, ServiceInfo, ok

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Initialized once when the module loads
_start_time = time.time()


async def _database_reachable() -> bool:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Health check: database unreachable: %s", str(e))
        return False


@router.get("/", response_model=ApiResponse[ServiceInfo], summary="Service info")
async def root() -> ApiResponse[ServiceInfo]:
    return ok(ServiceInfo(name="Arroyyan Petshop API", version=__version__, docs="/docs"))


@router.get(
    "/health",
    response_model=ApiResponse[HealthResponse],
    summary="Service health check",
)
async def health_check() -> ApiResponse[HealthResponse]:
    db_ok = await _database_reachable()
    return ok(
        HealthResponse(
            status="healthy" if db_ok else "unhealthy",
            version=__version__,
            database="connected" if db_ok else "disconnected",
            uptime_seconds=round(time.time() - _start_time, 2),
        )
    )


@router.get("/health/live", summary="Liveness probe")
async def liveness() -> dict:
    return {"success": True, "data": {"status": "alive"}, "message": None}


@router.get("/health/ready", summary="Readiness probe")
async def readiness() -> JSONResponse:
    if await _database_reachable():
        return JSONResponse(
            status_code=200,
            content={"success": True, "data": {"status": "ready"}, "message": None},
        )
    return JSONResponse(
        status_code=503,
        content={
            "success": False,
            "error": "SERVICE_UNAVAILABLE",
            "message": "Database is not reachable",
        },
    )
