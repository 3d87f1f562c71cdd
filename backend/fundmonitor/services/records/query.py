# backend/fundmonitor/services/records/query.py
"""
Typed query description for record retrieval.

A RecordQuery describes WHICH records a caller wants; the record source
decides HOW to fetch them. Filters compose through small builder methods,
each returning a new immutable query:

    query = (
        RecordQuery.for_vehicle("V1")
        .between(date(2025, 1, 1), date(2025, 3, 31))
        .with_ownership_types("Established", "Top Up")
    )

Date bounds are inclusive on both ends. A bound left as None is open.
The matches_* helpers give in-memory sources the exact semantics that
SqlRecordSource expresses as WHERE clauses.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date

from fundmonitor.services.exceptions import InvalidQueryError


@dataclass(frozen=True)
class RecordQuery:
    """
    Filter set for one record fetch.

    Attributes:
        vehicle_id: Vehicle (or TBV vehicle for fund-level records)
        project_id: Restrict to one project (None = all)
        start_date: Inclusive lower date bound (None = open)
        end_date: Inclusive upper date bound (None = open)
        ownership_types: Allowed ownership types (empty = all)
    """

    vehicle_id: str
    project_id: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    ownership_types: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.vehicle_id:
            raise InvalidQueryError("A record query needs a vehicle_id")
        if (
            self.start_date is not None
            and self.end_date is not None
            and self.start_date > self.end_date
        ):
            raise InvalidQueryError(
                f"Query start {self.start_date.isoformat()} is after "
                f"end {self.end_date.isoformat()}"
            )

    # =========================================================================
    # BUILDERS
    # =========================================================================

    @classmethod
    def for_vehicle(cls, vehicle_id: str) -> RecordQuery:
        return cls(vehicle_id=vehicle_id)

    def as_of(self, as_of_date: date) -> RecordQuery:
        """Everything reported on or before the date."""
        return replace(self, start_date=None, end_date=as_of_date)

    def since(self, start_date: date) -> RecordQuery:
        """Everything reported on or after the date."""
        return replace(self, start_date=start_date, end_date=None)

    def between(self, start_date: date, end_date: date) -> RecordQuery:
        return replace(self, start_date=start_date, end_date=end_date)

    def on(self, exact_date: date) -> RecordQuery:
        return replace(self, start_date=exact_date, end_date=exact_date)

    def for_project(self, project_id: str) -> RecordQuery:
        return replace(self, project_id=project_id)

    def with_ownership_types(self, *ownership_types: str) -> RecordQuery:
        return replace(self, ownership_types=tuple(ownership_types))

    # =========================================================================
    # PREDICATES
    # =========================================================================

    @property
    def exact_date(self) -> date | None:
        """The single date selected by on(), or None for a range."""
        if self.start_date is not None and self.start_date == self.end_date:
            return self.start_date
        return None

    def matches_date(self, value: date) -> bool:
        if self.start_date is not None and value < self.start_date:
            return False
        if self.end_date is not None and value > self.end_date:
            return False
        return True

    def matches_project(self, project_id: str) -> bool:
        return self.project_id is None or project_id == self.project_id

    def matches_ownership_type(self, ownership_type: str | None) -> bool:
        return not self.ownership_types or ownership_type in self.ownership_types
