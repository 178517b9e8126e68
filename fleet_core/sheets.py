from __future__ import annotations

from typing import Dict, List

SPREADSHEET_ID = "1DsDk17Vyf2zj5kxr86JPVhYZ04ZstY0IAH7La4UeVa0"
CSV_EXPORT_URL = "https://docs.google.com/spreadsheets/d/{spreadsheet_id}/export?format=csv&gid={gid}"

ON_ROUTE_VEHICLES = "onRouteVehicles"
ON_BOARD_AFTER_3PM = "onBoardAfter3PM"
LESS_THAN_3_TRIPS = "lessThan3Trips"
GLITCH_PERCENTAGE = "glitchPercentage"
ISSUES_POST_0710 = "issuesPost0710"
FUEL_STATION = "fuelStation"
POST_06AM_OPEN_ISSUES = "post06AMOpenIssues"
VEHICLE_BREAKDOWN = "vehicleBreakdown"
VEHICLE_NUMBERS = "vehicleNumbers"
SPHERE_WORKSHOP_EXIT = "sphereWorkshopExit"

SHEET_GIDS: Dict[str, str] = {
    ON_ROUTE_VEHICLES: "0",
    ON_BOARD_AFTER_3PM: "1335240771",
    LESS_THAN_3_TRIPS: "1474814226",
    GLITCH_PERCENTAGE: "1163492617",
    ISSUES_POST_0710: "203626227",
    FUEL_STATION: "431461673",
    POST_06AM_OPEN_ISSUES: "1903869379",
    VEHICLE_BREAKDOWN: "213524255",
    VEHICLE_NUMBERS: "510665731",
    SPHERE_WORKSHOP_EXIT: "291765477",
}

LATE_ISSUE_SHEETS = {ISSUES_POST_0710, POST_06AM_OPEN_ISSUES}
# Sheets whose records carry IssueBreakdown/Details for drill-down.
ISSUE_SHEETS = {VEHICLE_BREAKDOWN, ISSUES_POST_0710, POST_06AM_OPEN_ISSUES, FUEL_STATION}

CHART_TITLES: Dict[str, str] = {
    ON_ROUTE_VEHICLES: "On Route Vehicles",
    ON_BOARD_AFTER_3PM: "Vehicles on Board after 3PM",
    LESS_THAN_3_TRIPS: "Vehicles with Less than 3 Trips",
    GLITCH_PERCENTAGE: "Glitch Percentage Report",
    ISSUES_POST_0710: "Vehicles Arriving After 07:10",
    FUEL_STATION: "Vehicles Going to Fuel Station",
    POST_06AM_OPEN_ISSUES: "Vehicles Leaving Zone After 6AM",
    VEHICLE_BREAKDOWN: "Vehicle Breakdown Information",
    VEHICLE_NUMBERS: "Vehicle Numbers",
    SPHERE_WORKSHOP_EXIT: "Sphere Workshop Exit",
}

DATASET_LABELS: Dict[str, str] = {
    ON_ROUTE_VEHICLES: "Vehicles On Route",
    ON_BOARD_AFTER_3PM: "Vehicles On Board",
    LESS_THAN_3_TRIPS: "Underutilized Vehicles",
    GLITCH_PERCENTAGE: "Software Glitch Rate",
    ISSUES_POST_0710: "Late Arrivals",
    FUEL_STATION: "Fuel Visits",
    POST_06AM_OPEN_ISSUES: "Late Departures",
    VEHICLE_BREAKDOWN: "Breakdowns",
    SPHERE_WORKSHOP_EXIT: "Workshop Exits",
}
DEFAULT_DATASET_LABEL = "Vehicle Count"


def _scheme(r: int, g: int, b: int) -> Dict[str, str]:
    return {
        "backgroundColor": f"rgba({r}, {g}, {b}, 0.8)",
        "borderColor": f"rgba({r}, {g}, {b}, 1)",
        "hoverBackgroundColor": f"rgba({r}, {g}, {b}, 0.9)",
    }


COLOR_SCHEMES: Dict[str, Dict[str, str]] = {
    ON_ROUTE_VEHICLES: _scheme(34, 197, 94),
    ON_BOARD_AFTER_3PM: _scheme(251, 191, 36),
    LESS_THAN_3_TRIPS: _scheme(239, 68, 68),
    GLITCH_PERCENTAGE: _scheme(168, 85, 247),
    ISSUES_POST_0710: _scheme(245, 101, 101),
    FUEL_STATION: _scheme(59, 130, 246),
    POST_06AM_OPEN_ISSUES: _scheme(249, 115, 22),
    VEHICLE_BREAKDOWN: _scheme(220, 38, 38),
}
DEFAULT_COLOR_SCHEME = _scheme(59, 130, 246)
ACTUAL_PERCENTAGE_COLOR_SCHEME = _scheme(34, 197, 94)

Y_AXIS_LABELS: Dict[str, str] = {
    ON_ROUTE_VEHICLES: "Number of Vehicles On Route",
    ON_BOARD_AFTER_3PM: "Vehicles Still On Board",
    LESS_THAN_3_TRIPS: "Vehicles with <3 Trips",
    GLITCH_PERCENTAGE: "Glitch Percentage (%)",
    ISSUES_POST_0710: "Late Arrival Count",
    FUEL_STATION: "Fuel Station Visits",
    POST_06AM_OPEN_ISSUES: "Late Departure Count",
    VEHICLE_BREAKDOWN: "Breakdown Count",
    SPHERE_WORKSHOP_EXIT: "Vehicles Leaving Workshop",
}
DEFAULT_Y_AXIS_LABEL = "Vehicle Count"


def sheet_names() -> List[str]:
    return list(SHEET_GIDS)


def build_csv_url(gid: str, spreadsheet_id: str = SPREADSHEET_ID) -> str:
    return CSV_EXPORT_URL.format(spreadsheet_id=spreadsheet_id, gid=gid)


def get_value_field(sheet_name: str) -> str:
    """Every transformed sheet exposes its aggregable quantity as ``Count``."""
    return "Count"


def get_label_field(sheet_name: str) -> str:
    return "Ward" if sheet_name == SPHERE_WORKSHOP_EXIT else "Zone"
