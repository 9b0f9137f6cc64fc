"""
NoteShelf Backend — Request Logging Middleware
=================================================

What:  One access-log line per HTTP request.
How:   Times the downstream call and logs method, path, status, duration,
       request id, client IP and (when authenticated) the username.

Log level follows the status class:
    5xx → ERROR, 4xx → WARNING, everything else → INFO

Never logged: request or response bodies, query strings, and the
Authorization header. Passwords and bearer tokens only travel in those.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from noteshelf.middleware.request_id import request_id_var

logger = logging.getLogger("noteshelf.access")


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access logger. Health probes are skipped, they arrive every few seconds."""

    QUIET_PATHS = {"/health"}

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in self.QUIET_PATHS:
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        client_ip = request.client.host if request.client else "unknown"
        # Set by the require_user / optional_user dependencies.
        user = getattr(request.state, "user", None)
        username = user.username if user is not None else "-"
        status = response.status_code

        logger.log(
            _level_for(status),
            "%s %s %d %.1fms [%s] user=%s from %s",
            request.method,
            path,
            status,
            duration_ms,
            request_id_var.get(""),
            username,
            client_ip,
            extra={
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
