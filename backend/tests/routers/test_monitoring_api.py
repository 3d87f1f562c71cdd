# backend/tests/routers/test_monitoring_api.py
"""
API layer tests for the monitoring endpoints.

- /top-market-value: MV-ranked table with windowed cost
- /top-cost: cost-ranked table with ownership split
- /new-investments: entry cost per project
- /investment-dates: dates with entry activity
- drill-downs: per-project asset classes and ownership rows, outcome type chart
"""

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from fundmonitor.main import app
from fundmonitor.dependencies import get_record_source, clear_service_caches
from tests.conftest import (
    InMemoryRecordSource,
    FailingRecordSource,
    make_delta,
    make_snapshot,
    VEHICLE,
)

Q2_END = date(2024, 6, 30)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def source() -> InMemoryRecordSource:
    return InMemoryRecordSource(
        deltas=[
            make_delta("A", date(2024, 1, 10), "300", overall_valuation="40"),
            make_delta("A", date(2024, 5, 1), "100", ownership_type="Top Up",
                       asset_class="Tokens", overall_valuation="60"),
            make_delta("B", date(2024, 2, 1), "200"),
            make_delta("B", date(2024, 6, 1), "-100", ownership_type="Divested"),
            make_delta("C", date(2024, 4, 15), "50"),
            make_delta("D", date(2024, 4, 20), "75", outcome_type="Cash"),
        ],
        snapshots=[
            make_snapshot("A", Q2_END, unrealized="500"),
            make_snapshot("B", Q2_END, unrealized="80", realized="150"),
            make_snapshot("C", Q2_END, unrealized="60"),
            make_snapshot("E", Q2_END, unrealized="900"),
        ],
    )


@pytest.fixture
def client(source: InMemoryRecordSource) -> TestClient:
    app.dependency_overrides[get_record_source] = lambda: source
    clear_service_caches()

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


# =============================================================================
# TOP MARKET VALUE
# =============================================================================

class TestTopMarketValueApi:
    """Tests for GET /vehicles/{vehicle_id}/top-market-value."""

    def test_ranked_by_market_value(self, client):
        response = client.get(
            f"/vehicles/{VEHICLE}/top-market-value",
            params={"date": "2024-06-30", "from_date": "2024-04-01", "to_date": "2024-06-30"},
        )

        assert response.status_code == 200
        data = response.json()
        assert [r["project_id"] for r in data["rows"]] == ["E", "A", "B", "C"]
        assert data["date_start"] == "2024-04-01"
        assert data["date_end"] == "2024-06-30"

    def test_windowed_cost(self, client):
        response = client.get(
            f"/vehicles/{VEHICLE}/top-market-value",
            params={"date": "2024-06-30", "from_date": "2024-04-01", "to_date": "2024-06-30"},
        )

        rows = {r["project_id"]: r for r in response.json()["rows"]}
        assert Decimal(rows["A"]["cost"]) == Decimal("100")
        assert Decimal(rows["B"]["cost"]) == Decimal("-100")
        assert Decimal(rows["C"]["cost"]) == Decimal("50")
        assert Decimal(rows["E"]["cost"]) == Decimal("0")
        assert rows["E"]["moic"] is None

    def test_default_top_n_is_ten(self, client):
        response = client.get(
            f"/vehicles/{VEHICLE}/top-market-value",
            params={"date": "2024-06-30", "from_date": "2024-01-01", "to_date": "2024-06-30"},
        )

        assert response.json()["top_n"] == 10

    def test_long_tail(self, client):
        response = client.get(
            f"/vehicles/{VEHICLE}/top-market-value",
            params={
                "date": "2024-06-30",
                "from_date": "2024-01-01",
                "to_date": "2024-06-30",
                "top_n": 2,
            },
        )

        data = response.json()
        assert [r["project_id"] for r in data["rows"]] == ["E", "A"]
        assert data["long_tail"]["position_count"] == 2
        assert Decimal(data["long_tail"]["total_mv"]) == Decimal("290")

    def test_inverted_window(self, client):
        response = client.get(
            f"/vehicles/{VEHICLE}/top-market-value",
            params={"date": "2024-06-30", "from_date": "2024-06-30", "to_date": "2024-01-01"},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "InvalidDateRangeError"
        assert data["details"] == {"start_date": "2024-06-30", "end_date": "2024-01-01"}

    def test_missing_window(self, client):
        response = client.get(
            f"/vehicles/{VEHICLE}/top-market-value", params={"date": "2024-06-30"}
        )

        assert response.status_code == 422


# =============================================================================
# TOP COST
# =============================================================================

class TestTopCostApi:
    """Tests for GET /vehicles/{vehicle_id}/top-cost."""

    def test_rows_and_split(self, client):
        response = client.get(
            f"/vehicles/{VEHICLE}/top-cost",
            params={"from_date": "2024-01-01", "to_date": "2024-06-30"},
        )

        assert response.status_code == 200
        rows = response.json()["rows"]
        assert [r["project_id"] for r in rows] == ["A", "B", "C"]
        assert Decimal(rows[0]["established_percentage"]) == Decimal("75")
        assert Decimal(rows[0]["top_up_percentage"]) == Decimal("25")
        assert Decimal(rows[1]["divested_cost"]) == Decimal("-100")
        assert rows[0]["is_expandable"] is True
        assert rows[2]["is_expandable"] is False
        total = sum(Decimal(r["cost_percentage"]) for r in rows)
        assert abs(total - Decimal("100")) < Decimal("0.0001")

    def test_truncated_without_long_tail(self, client):
        response = client.get(
            f"/vehicles/{VEHICLE}/top-cost",
            params={"from_date": "2024-01-01", "to_date": "2024-06-30", "top_n": 1},
        )

        data = response.json()
        assert len(data["rows"]) == 1
        assert "long_tail" not in data
        assert Decimal(data["rows"][0]["cost_percentage"]) == Decimal("100")

    def test_upstream_failure(self, client):
        app.dependency_overrides[get_record_source] = lambda: FailingRecordSource()

        response = client.get(
            f"/vehicles/{VEHICLE}/top-cost",
            params={"from_date": "2024-01-01", "to_date": "2024-06-30"},
        )

        assert response.status_code == 503
        assert response.json()["status"] == "upstream_error"


# =============================================================================
# NEW INVESTMENTS
# =============================================================================

class TestNewInvestmentsApi:
    """Tests for GET /vehicles/{vehicle_id}/new-investments."""

    def test_all_entry_types(self, client):
        response = client.get(
            f"/vehicles/{VEHICLE}/new-investments",
            params={"from_date": "2024-01-01", "to_date": "2024-06-30"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["ownership_type"] == "All"
        assert [r["project_id"] for r in data["rows"]] == ["A", "B", "C"]
        assert Decimal(data["total_cost"]) == Decimal("650")
        row_a = data["rows"][0]
        assert row_a["asset_classes"] == ["Equity", "Tokens"]
        assert row_a["has_multiple_asset_classes"] is True
        assert Decimal(row_a["weighted_valuation"]) == Decimal("45")

    def test_filter_by_type(self, client):
        response = client.get(
            f"/vehicles/{VEHICLE}/new-investments",
            params={"from_date": "2024-01-01", "to_date": "2024-06-30", "ownership_type": "Top Up"},
        )

        data = response.json()
        assert [r["project_id"] for r in data["rows"]] == ["A"]
        assert data["rows"][0]["has_multiple_asset_classes"] is False

    def test_invalid_type(self, client):
        response = client.get(
            f"/vehicles/{VEHICLE}/new-investments",
            params={"from_date": "2024-01-01", "to_date": "2024-06-30", "ownership_type": "Divested"},
        )

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "ownership_type"


# =============================================================================
# INVESTMENT DATES
# =============================================================================

class TestInvestmentDatesApi:
    """Tests for GET /vehicles/{vehicle_id}/investment-dates."""

    def test_newest_first(self, client):
        response = client.get(f"/vehicles/{VEHICLE}/investment-dates")

        assert response.status_code == 200
        assert response.json()["dates"] == [
            "2024-05-01", "2024-04-15", "2024-02-01", "2024-01-10",
        ]

    def test_empty(self, client):
        response = client.get("/vehicles/UNKNOWN/investment-dates")

        data = response.json()
        assert data["status"] == "empty"
        assert data["dates"] == []


# =============================================================================
# DRILL-DOWNS
# =============================================================================

class TestTopMarketValueDetailsApi:
    """Tests for GET /vehicles/{vehicle_id}/top-market-value/{project_id}/assets."""

    def test_asset_classes(self, client):
        response = client.get(
            f"/vehicles/{VEHICLE}/top-market-value/A/assets",
            params={"date": "2024-06-30", "from_date": "2024-01-01", "to_date": "2024-06-30"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["project_id"] == "A"
        assert data["date_start"] == "2024-01-01"
        assert [r["asset_class"] for r in data["rows"]] == ["Equity", "Tokens"]
        assert Decimal(data["rows"][0]["total_mv"]) == Decimal("500")
        assert Decimal(data["rows"][1]["cost"]) == Decimal("100")

    def test_upstream_failure(self, client):
        app.dependency_overrides[get_record_source] = lambda: FailingRecordSource("market_values")

        response = client.get(
            f"/vehicles/{VEHICLE}/top-market-value/A/assets",
            params={"date": "2024-06-30", "from_date": "2024-01-01", "to_date": "2024-06-30"},
        )

        assert response.status_code == 503
        assert response.json()["rows"] == []


class TestTopCostDetailsApi:
    """Tests for GET /vehicles/{vehicle_id}/top-cost/{project_id}/entries."""

    def test_entries(self, client):
        response = client.get(
            f"/vehicles/{VEHICLE}/top-cost/B/entries",
            params={"from_date": "2024-01-01", "to_date": "2024-06-30"},
        )

        assert response.status_code == 200
        data = response.json()
        assert [r["date_reported"] for r in data["rows"]] == ["2024-02-01", "2024-06-01"]
        assert [r["ownership_type"] for r in data["rows"]] == ["Established", "Divested"]
        assert data["rows"][0]["ownership_id"] is None
        assert Decimal(data["total_cost"]) == Decimal("100")

    def test_inverted_window(self, client):
        response = client.get(
            f"/vehicles/{VEHICLE}/top-cost/B/entries",
            params={"from_date": "2024-06-30", "to_date": "2024-01-01"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidDateRangeError"


class TestNewInvestmentDrillDownsApi:
    def test_chart(self, client):
        response = client.get(
            f"/vehicles/{VEHICLE}/new-investments/chart",
            params={"from_date": "2024-01-01", "to_date": "2024-06-30"},
        )

        assert response.status_code == 200
        (row,) = response.json()["rows"]
        assert row["outcome_type"] == "Unknown"
        assert Decimal(row["established_cost"]) == Decimal("550")
        assert Decimal(row["top_up_cost"]) == Decimal("100")
        assert Decimal(row["total_cost"]) == Decimal("650")

    def test_chart_empty(self, client):
        response = client.get(
            f"/vehicles/{VEHICLE}/new-investments/chart",
            params={"from_date": "2020-01-01", "to_date": "2020-06-30"},
        )

        assert response.status_code == 200
        assert response.json()["status"] == "empty"

    def test_asset_breakdown(self, client):
        response = client.get(
            f"/vehicles/{VEHICLE}/new-investments/A/assets",
            params={"from_date": "2024-01-01", "to_date": "2024-06-30"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["ownership_type"] == "All"
        assert [(r["asset_class"], Decimal(r["cost"])) for r in data["rows"]] == [
            ("Equity", Decimal("300")),
            ("Tokens", Decimal("100")),
        ]
        assert data["rows"][0]["outcome_type"] is None

    def test_asset_breakdown_invalid_type(self, client):
        response = client.get(
            f"/vehicles/{VEHICLE}/new-investments/A/assets",
            params={"from_date": "2024-01-01", "to_date": "2024-06-30", "ownership_type": "Cash"},
        )

        assert response.status_code == 400
        assert response.json()["details"] == {"field": "ownership_type"}
