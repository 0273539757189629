"""
Request/response logging middleware with request-id correlation.
"""
import logging
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from assessment.core.logging_config import request_id_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log every request and its outcome, tagged with a correlation id.

    The id is taken from the ``X-Request-ID`` header when the caller sends
    one, otherwise generated. It is stored in ``request_id_context`` so every
    log line emitted while handling the request carries it, and echoed back
    on the response.
    """

    # Health probes would drown the log at INFO
    QUIET_PATHS = ("/health", "/ping")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_context.set(request_id)

        method = request.method
        path = str(request.url.path)
        quiet = path.endswith(self.QUIET_PATHS)
        start_time = time.perf_counter()

        try:
            if not quiet:
                logger.info(
                    "Incoming request", extra={"method": method, "path": path}
                )

            response = await call_next(request)

            duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = request_id

            extra_fields = {
                "method": method,
                "path": path,
                "status_code": status_code,
                "duration_ms": duration_ms,
            }
            if status_code >= 500:
                logger.error("Server error response", extra=extra_fields)
            elif status_code >= 400:
                logger.warning("Client error response", extra=extra_fields)
            elif not quiet:
                logger.info("Request completed", extra=extra_fields)

            return response
        finally:
            request_id_context.reset(token)
