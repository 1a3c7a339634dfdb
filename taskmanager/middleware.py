"""Request pipeline: Recovery wraps Logging wraps the routers."""

from __future__ import annotations

import logging
import time

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


def client_ip(request: Request, trust_forwarded_for: bool = False) -> str:
    """Peer address, or the first X-Forwarded-For hop when running behind a trusted proxy."""
    forwarded = request.headers.get("x-forwarded-for") if trust_forwarded_for else None
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "-"


class RecoveryMiddleware(BaseHTTPMiddleware):
    """Turns any exception that escaped the app into a logged, generic 500."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.exception("unhandled error method=%s path=%s", request.method, request.url.path)
            return JSONResponse(status_code=500, content={"error": "internal server error"})


class LoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, trust_forwarded_for: bool = False):
        super().__init__(app)
        self.trust_forwarded_for = trust_forwarded_for

    async def dispatch(self, request: Request, call_next):
        started = time.monotonic()
        request.state.started_at = started
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            logger.info(
                "request method=%s path=%s status=%s duration_ms=%.1f ip=%s",
                request.method,
                request.url.path,
                status_code,
                (time.monotonic() - started) * 1000,
                client_ip(request, self.trust_forwarded_for),
            )
