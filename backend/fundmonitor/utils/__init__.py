# backend/fundmonitor/utils/__init__.py
"""
Shared utilities: logging setup, request context and calendar helpers.

Usage:
    from fundmonitor.utils import setup_logging, get_correlation_id
"""

from fundmonitor.utils.context import (
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
)
from fundmonitor.utils.logging import setup_logging

__all__ = [
    "setup_logging",
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
]
