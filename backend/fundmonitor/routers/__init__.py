# backend/fundmonitor/routers/__init__.py
"""
API routers for the Fund Monitor.

Each router handles a specific report family:
- soi: Schedule of investments, asset breakdown, MOIC buckets
- monitoring: Top market value, top cost, new investments
- historical: Period rollups per TBV fund
"""

from fundmonitor.routers.historical import router as historical_router
from fundmonitor.routers.monitoring import router as monitoring_router
from fundmonitor.routers.soi import router as soi_router

__all__ = [
    "soi_router",
    "monitoring_router",
    "historical_router",
]
