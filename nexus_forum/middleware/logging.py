"""
Nexus Forum Backend — Request Logging Middleware
=================================================

What:  One access-log line per HTTP request with status and duration.
How:   Times the downstream call and logs method, path, status, duration,
       request id and client address once the response is ready.
When:  After RequestIDMiddleware (uses request ID for correlation).

Example line:
    2026-01-15T12:00:00 [INFO] nexus_forum.access: POST /api/posts 200 12.4ms [3f2a9c1e] from 10.0.0.7

Request bodies are never logged (they carry passwords on /api/register
and /api/login).
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from nexus_forum.middleware.request_id import request_id_var

logger = logging.getLogger("nexus_forum.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each request at a level picked from the response status:
    5xx → ERROR, 4xx → WARNING, everything else → INFO.

    Health checks are skipped; probes hit them every few seconds.
    """

    SKIPPED_PATHS = {"/health", "/api/health"}

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in self.SKIPPED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
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
