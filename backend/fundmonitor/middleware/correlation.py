# backend/fundmonitor/middleware/correlation.py
"""
Correlation ID middleware for request tracing.

For each request the middleware:
1. Takes the ID from X-Correlation-ID, then X-Request-ID, else generates a UUID
2. Stores it in the request context so every log line carries it
3. Echoes it back in the X-Correlation-ID response header

Usage:
    from fundmonitor.middleware import CorrelationIdMiddleware

    app.add_middleware(CorrelationIdMiddleware)
"""

import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from fundmonitor.utils.context import set_correlation_id, clear_correlation_id

CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Attach a correlation ID to the request context and the response."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        correlation_id = self._get_correlation_id(request)
        set_correlation_id(correlation_id)

        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response
        finally:
            clear_correlation_id()

    def _get_correlation_id(self, request: Request) -> str:
        """Header value if the caller supplied one, otherwise a fresh UUID."""
        for header in (CORRELATION_ID_HEADER, REQUEST_ID_HEADER):
            value = request.headers.get(header)
            if value:
                return value
        return str(uuid.uuid4())
