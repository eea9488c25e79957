"""
ThoughtJar Backend — Access Log Middleware
============================================

What:  One log line per HTTP request: method, path, status, duration, caller.
Why:   uvicorn's access log has no request ID and no duration; it is silenced
       in setup_logging() and replaced by this.
Who:   Installed in main.create_app(), inside RequestIDMiddleware.

Privacy:
    Logged: method, path, status, duration, client IP, request ID, and the
            verified subject id when the auth gate accepted the request.
    Never logged: request bodies (thought text is personal) or the
                  Authorization header.

Level by status class: 5xx → ERROR, 4xx → WARNING, otherwise INFO.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from thoughtjar.middleware.request_id import request_id_var

logger = logging.getLogger("thoughtjar.access")

# Probed by load balancers every few seconds; logging them is noise.
_SKIP_PATHS = frozenset({"/health"})


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in _SKIP_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        client_ip = request.client.host if request.client else "unknown"
        identity = getattr(request.state, "identity", None)
        subject = identity.subject_id if identity is not None else "-"
        rid = request_id_var.get("")
        status = response.status_code

        logger.log(
            _level_for(status),
            "%s %s %d %.1fms [%s] user=%s from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            subject,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
