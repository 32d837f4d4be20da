"""
Arroyyan Backend — Rate Limiting Middleware
=============================================

What:  Per-IP sliding window limiter on the credential endpoints
       (POST /api/auth/login, POST /api/auth/register).
Why:   Slows password guessing and bulk account creation. The rest of the
       API sits behind authentication and is not limited.
How:   Each IP keeps the timestamps of its recent attempts. Timestamps older
       than the window are dropped; once `limit` remain, the request is
       answered with 429 and a Retry-After header.

Defaults: 5 attempts per 900 s (RATE_LIMIT_REQUESTS / RATE_LIMIT_WINDOW).

State is in-process memory: each uvicorn worker counts on its own.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from arroyyan.config import settings

logger = logging.getLogger(__name__)

RATE_LIMITED_PATHS = frozenset({"/api/auth/login", "/api/auth/register"})


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app,
        limit: Optional[int] = None,
        window: Optional[int] = None,
        paths: Optional[Iterable[str]] = None,
    ):
        super().__init__(app)
        self.limit = limit or settings.rate_limit_requests
        self.window = window or settings.rate_limit_window
        self.paths = frozenset(paths) if paths is not None else RATE_LIMITED_PATHS
        self._requests: Dict[str, List[float]] = defaultdict(list)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method != "POST" or request.url.path not in self.paths:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window_start = now - self.window

        # ── Slide the window ──────────────────────────────────────────────
        recent = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = recent

        if len(recent) >= self.limit:
            retry_after = int(recent[0] + self.window - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s on %s: %d attempts in %ds window",
                client_ip,
                request.url.path,
                len(recent),
                self.window,
            )
            return JSONResponse(
                status_code=429,
                content={
                    "success": False,
                    "error": "RATE_LIMIT_EXCEEDED",
                    "message": f"Too many attempts. Please wait {retry_after} seconds before retrying.",
                    "details": {"retry_after": retry_after},
                },
                headers={"Retry-After": str(retry_after)},
            )

        recent.append(now)

        if len(self._requests) > 1000:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        """Drop IPs with no attempt inside the current window."""
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]

        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
