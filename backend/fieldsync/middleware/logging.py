"""
FieldSync Backend: Access Log Middleware
=========================================

What:  One access line per request, correlated by request id.
How:   Measures wall time around the downstream app and logs
       `METHOD path -> status (ms) rid=... ip=...` on the "fieldsync.access"
       logger. Level follows the status class; a successful request slower
       than SLOW_REQUEST_MS is logged as a warning (a report upload holding
       its transaction open too long shows up here first).

Request bodies are never logged: /login and /register carry passwords.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from fieldsync.middleware.request_id import request_id_var

logger = logging.getLogger("fieldsync.access")

# Probes hit these every few seconds
QUIET_PATHS = {"/", "/health"}

SLOW_REQUEST_MS = 2000.0


def level_for(status: int, elapsed_ms: float) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400 or elapsed_ms >= SLOW_REQUEST_MS:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        peer = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")
        logger.log(
            level_for(response.status_code, elapsed_ms),
            "%s %s -> %d (%.1fms) rid=%s ip=%s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            rid,
            peer,
            extra={
                "request_id": rid,
                "http_method": request.method,
                "http_path": request.url.path,
                "http_status": response.status_code,
                "elapsed_ms": round(elapsed_ms, 2),
                "peer": peer,
            },
        )
        return response
