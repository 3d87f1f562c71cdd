# backend/tests/services/records/test_record_query.py
"""
Unit tests for the RecordQuery builder and its in-memory predicates.
"""

from datetime import date

import pytest

from fundmonitor.services.exceptions import InvalidQueryError, ValidationError
from fundmonitor.services.records import RecordQuery


class TestBuilders:
    """Each builder returns a new query and leaves the original untouched."""

    def test_for_vehicle(self):
        query = RecordQuery.for_vehicle("V1")

        assert query.vehicle_id == "V1"
        assert (query.start_date, query.end_date) == (None, None)

    def test_builders_are_immutable(self):
        base = RecordQuery.for_vehicle("V1")

        ranged = base.between(date(2024, 1, 1), date(2024, 3, 31))

        assert base.start_date is None
        assert ranged.start_date == date(2024, 1, 1)

    def test_as_of_opens_the_lower_bound(self):
        query = RecordQuery.for_vehicle("V1").since(date(2024, 1, 1)).as_of(date(2024, 6, 30))

        assert query.start_date is None
        assert query.end_date == date(2024, 6, 30)

    def test_since_opens_the_upper_bound(self):
        query = RecordQuery.for_vehicle("V1").since(date(2024, 1, 1))

        assert query.end_date is None

    def test_on_sets_exact_date(self):
        query = RecordQuery.for_vehicle("V1").on(date(2024, 6, 30))

        assert query.exact_date == date(2024, 6, 30)
        assert RecordQuery.for_vehicle("V1").exact_date is None

    def test_chained_filters(self):
        query = (
            RecordQuery.for_vehicle("V1")
            .for_project("A")
            .with_ownership_types("Established", "Top Up")
        )

        assert query.project_id == "A"
        assert query.ownership_types == ("Established", "Top Up")


class TestValidation:
    def test_requires_vehicle(self):
        with pytest.raises(InvalidQueryError):
            RecordQuery.for_vehicle("")

    def test_inverted_range(self):
        with pytest.raises(InvalidQueryError) as exc_info:
            RecordQuery.for_vehicle("V1").between(date(2024, 6, 1), date(2024, 1, 1))

        assert isinstance(exc_info.value, ValidationError)
        assert exc_info.value.field == "query"


class TestPredicates:
    """Tests for the matches_* helpers."""

    def test_matches_date_inclusive(self):
        query = RecordQuery.for_vehicle("V1").between(date(2024, 1, 1), date(2024, 3, 31))

        assert query.matches_date(date(2024, 1, 1))
        assert query.matches_date(date(2024, 3, 31))
        assert not query.matches_date(date(2023, 12, 31))
        assert not query.matches_date(date(2024, 4, 1))

    def test_open_bounds_match_everything(self):
        query = RecordQuery.for_vehicle("V1")

        assert query.matches_date(date(1900, 1, 1))
        assert query.matches_project("anything")
        assert query.matches_ownership_type(None)

    def test_ownership_type_filter(self):
        query = RecordQuery.for_vehicle("V1").with_ownership_types("Top Up")

        assert query.matches_ownership_type("Top Up")
        assert not query.matches_ownership_type("Established")
        assert not query.matches_ownership_type(None)
