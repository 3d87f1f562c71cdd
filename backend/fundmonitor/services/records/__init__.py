# backend/fundmonitor/services/records/__init__.py
"""
Record retrieval: raw record types, the typed query and the SQL source.

Architecture:
    records/
    ├── __init__.py      # This file - package exports
    ├── types.py         # Immutable raw records
    ├── query.py         # RecordQuery builder
    └── sql_source.py    # SqlRecordSource (SQLAlchemy)
"""

from fundmonitor.services.records.query import RecordQuery
from fundmonitor.services.records.sql_source import SqlRecordSource
from fundmonitor.services.records.types import (
    OwnershipDelta,
    MarketValueSnapshot,
    FlowEvent,
    NavPoint,
    PerformancePoint,
    TbvFund,
)

__all__ = [
    "RecordQuery",
    "SqlRecordSource",
    "OwnershipDelta",
    "MarketValueSnapshot",
    "FlowEvent",
    "NavPoint",
    "PerformancePoint",
    "TbvFund",
]
