# backend/fundmonitor/middleware/__init__.py
"""HTTP middleware for the Fund Monitor API."""

from fundmonitor.middleware.correlation import (
    CorrelationIdMiddleware,
    CORRELATION_ID_HEADER,
    REQUEST_ID_HEADER,
)

__all__ = [
    "CorrelationIdMiddleware",
    "CORRELATION_ID_HEADER",
    "REQUEST_ID_HEADER",
]
