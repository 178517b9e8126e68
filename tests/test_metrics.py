import asyncio

import pytest

from fleet_core.data import prepare_context
from fleet_core.filters import DashboardFilters
from fleet_core.metrics_debug import compute_debug
from fleet_core.metrics_sheets import compute_sheet_view
from fleet_core.metrics_zones import compute_zone_analysis, priority_for


@pytest.fixture
def loaded_store(store):
    asyncio.run(store.refresh())
    return store


def test_sheet_view_kpis_and_chart(loaded_store):
    filters = DashboardFilters()
    ctx = prepare_context(filters, loaded_store.dataset)
    view = compute_sheet_view(filters, ctx, "onRouteVehicles")
    assert view["title"] == "On Route Vehicles"
    assert view["chart_data"]["labels"] == ["1", "2"]
    assert view["kpis"] == {"total": 11, "max": 9, "average": 5.5, "zones": 2, "records": 6}
    assert "bar" in view["charts"]


def test_sheet_view_with_no_matching_rows(loaded_store):
    filters = DashboardFilters(selected_zone="99")
    ctx = prepare_context(filters, loaded_store.dataset)
    view = compute_sheet_view(filters, ctx, "vehicleBreakdown")
    assert view["kpis"]["total"] == 0
    assert view["kpis"]["zones"] == 0
    assert view["charts"] == {}


def test_percentage_sheet_view_reads_point_values(loaded_store):
    filters = DashboardFilters()
    ctx = prepare_context(filters, loaded_store.dataset)
    view = compute_sheet_view(filters, ctx, "glitchPercentage")
    assert view["options"]["y_max"] == 100
    assert view["kpis"]["max"] == 87.0


@pytest.mark.parametrize("score, expected", [(0, "LOW"), (9.9, "LOW"), (10, "MEDIUM"), (25, "HIGH"), (50, "CRITICAL")])
def test_priority_bands(score, expected):
    assert priority_for(score) == expected


def test_zone_analysis_scores_and_recommendations():
    ctx = {
        "filtered": {
            "vehicleBreakdown": [
                {"Zone": "4", "Date": "2024-03-01", "Count": 3},
                {"Zone": "4", "Date": "2024-03-02", "Count": 3},
                {"Zone": "-1", "Date": "2024-03-02", "Count": 30},
            ],
            "issuesPost0710": [{"Zone": "4", "Date": "2024-03-01", "Count": 2}],
            "onBoardAfter3PM": [{"Zone": "5", "Date": "2024-03-01", "Count": 3}],
            "glitchPercentage": [{"Zone": "5", "Date": "2024-03-01", "Count": 90.0}],
        }
    }
    result = compute_zone_analysis(DashboardFilters(), ctx)

    zones = {z["zone"]: z for z in result["allZones"]}
    assert set(zones) == {"4", "5"}
    assert zones["4"]["riskScore"] == 23.0
    assert zones["4"]["priority"] == "MEDIUM"
    assert zones["4"]["issues"]["vehicleBreakdown"]["count"] == 6
    assert zones["5"]["riskScore"] == 3.0

    assert [z["zone"] for z in result["criticalZones"]] == ["4"]
    assert result["criticalZones"][0]["criticalReasons"] == ["Vehicle Breakdowns: 6 incidents"]
    assert [r["type"] for r in result["recommendations"]] == ["MAINTENANCE"]
    assert result["recommendations"][0]["zone"] == "4"
    assert result["riskDistribution"] == {"CRITICAL": 0, "HIGH": 0, "MEDIUM": 1, "LOW": 1}
    assert result["summary"]["totalZones"] == 2


def test_zone_analysis_on_empty_data():
    result = compute_zone_analysis(DashboardFilters(), {"filtered": {}})
    assert result["allZones"] == []
    assert result["summary"]["criticalZones"] == 0


def test_debug_payload(loaded_store):
    filters = DashboardFilters()
    ctx = prepare_context(filters, loaded_store.dataset)
    payload = compute_debug(filters, ctx, loaded_store)
    assert payload["refreshed_at"] is not None
    assert payload["sheets"]["sphereWorkshopExit"]["skipped"] == {"missing departure time": 1}
    assert payload["sheets"]["onRouteVehicles"]["shape"] == "wide_zones"
    assert payload["row_counts"]["onRouteVehicles"] == 6
    coverage = {row["sheet"]: row for row in payload["date_coverage"]}
    assert coverage["onRouteVehicles"]["dates_present"] == 2
