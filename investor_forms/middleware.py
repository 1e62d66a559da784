"""
Custom middleware for observability.

Provides:
- **Request ID injection**: every request/response carries a trace ID
  (``X-Request-ID`` header).  The ID is also placed in
  :data:`investor_forms.core.logging.request_id_var` so every log line emitted
  while serving the request (including remote API failures) carries it.
- **Request timing**: logs wall-clock duration of every request.  Slow
  requests are usually slow remote uploads or submits.
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from investor_forms.core.logging import request_id_var

logger = logging.getLogger(__name__)

# Honoured if the gateway already supplies one; generated otherwise.
REQUEST_ID_HEADER = "X-Request-ID"

SLOW_REQUEST_MS = 2000


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Injects a unique request ID into every request/response cycle.

    - Reuses an incoming ``X-Request-ID`` header, otherwise generates a UUID4.
    - Stores it on ``request.state.request_id`` and in the logging context.
    - Echoes it back in the response ``X-Request-ID`` header.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Logs request duration and adds an ``X-Process-Time`` header."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers["X-Process-Time"] = f"{elapsed_ms:.2f}ms"

        extra = {
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "elapsed_ms": round(elapsed_ms, 2),
        }
        if elapsed_ms > SLOW_REQUEST_MS:
            logger.warning(
                "%s %s completed in %.2fms (SLOW)",
                request.method,
                request.url.path,
                elapsed_ms,
                extra=extra,
            )
        else:
            logger.debug(
                "%s %s completed in %.2fms",
                request.method,
                request.url.path,
                elapsed_ms,
                extra=extra,
            )

        return response
