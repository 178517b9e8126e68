"""Per-sheet transformers: raw CSV records -> canonical zone/date records.

Every sheet comes in its own column layout. A transformer turns the raw,
header-keyed rows of one layout into records carrying at least ``Date``
(``YYYY-MM-DD`` when parseable), ``Zone`` and ``Count``, plus whatever detail
payload the layout supports. Rows a transformer cannot use are returned as
``Skipped(reason)`` and tallied on the outcome instead of disappearing.

``transform_sheet`` picks the transformer. It looks at the declared sheet name
first and only then at the header shape, in a fixed priority order, because
several sheets look alike structurally.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from fleet_core.csv_parser import RawRecord
from fleet_core.dates import normalize_date
from fleet_core.sheets import (
    FUEL_STATION,
    GLITCH_PERCENTAGE,
    ISSUES_POST_0710,
    LATE_ISSUE_SHEETS,
    LESS_THAN_3_TRIPS,
    POST_06AM_OPEN_ISSUES,
    SPHERE_WORKSHOP_EXIT,
    VEHICLE_BREAKDOWN,
    VEHICLE_NUMBERS,
)
from fleet_core.values import extract_zone, is_count_like, parse_int, parse_percentage

Record = Dict[str, Any]

ISSUE_COLUMNS = ["Driver Issue", "Helper Issue", "Breakdown Issue", "Workshop Issue", "Other Issue"]
TRIP_COUNT_COLUMNS = {
    "TripCount0": "0 Trip Count Vehicles",
    "TripCount1": "1 Trip Count Vehicles",
    "TripCount2": "2 Trip Count Vehicles",
}
WORKSHOP_COLUMNS = ["Ward", "Permanent Vehicle Number", "Spare Vehicle Number", "Workshop Departure Time"]
COUNT_COLUMN_ALIASES = ["Count", "On Route Vehicle Count"]

LATE_ISSUE_CONTEXT = {
    ISSUES_POST_0710: ("Late", "vehicle arrived at first point after 07:10"),
    POST_06AM_OPEN_ISSUES: ("Open", "vehicle left zone parking after 06:00"),
}

_VEHICLE_LIST_SEPARATORS = re.compile(r"[/,]")
_OPEN_MARKER = re.compile(r"\(?\bOPEN\b\)?", re.IGNORECASE)
_PLACEHOLDER_VEHICLE = re.compile(r"^Vehicle \d+$")


@dataclass(frozen=True)
class Skipped:
    reason: str


RowResult = Union[Record, Skipped]


class SheetShape(str, Enum):
    VEHICLE_BREAKDOWN = "vehicle_breakdown"
    WIDE_ZONES = "wide_zones"
    PERCENTAGE = "percentage"
    TRIP_COUNT = "trip_count"
    FUEL_STATION = "fuel_station"
    VEHICLE_NUMBERS = "vehicle_numbers"
    WORKSHOP = "workshop"
    LATE_ISSUES = "late_issues"
    MULTI_COLUMN = "multi_column"
    DEFAULT = "default"


@dataclass
class TransformOutcome:
    records: List[Record] = field(default_factory=list)
    skipped: Counter = field(default_factory=Counter)
    shape: Optional[SheetShape] = None

    @property
    def skipped_total(self) -> int:
        return sum(self.skipped.values())


def _cell(row: RawRecord, column: str) -> str:
    value = row.get(column)
    return "" if value is None else str(value).strip()


def _date_and_zone(row: RawRecord) -> Union[Tuple[str, str], Skipped]:
    date = normalize_date(_cell(row, "Date"))
    zone = extract_zone(_cell(row, "Zone"))
    if not date.strip():
        return Skipped("missing date")
    if not zone:
        return Skipped("missing zone")
    return date, zone


def _collect(results: Sequence[RowResult]) -> TransformOutcome:
    outcome = TransformOutcome()
    for result in results:
        if isinstance(result, Skipped):
            outcome.skipped[result.reason] += 1
        else:
            outcome.records.append(result)
    return outcome


def _merge_into(target: Record, incoming: Record) -> None:
    target["Count"] = target.get("Count", 0) + incoming.get("Count", 0)
    for key in TRIP_COUNT_COLUMNS:
        if key in incoming:
            target[key] = target.get(key, 0) + incoming[key]
    if "IssueBreakdown" in incoming:
        breakdown = target.setdefault("IssueBreakdown", {})
        for issue, count in incoming["IssueBreakdown"].items():
            breakdown[issue] = breakdown.get(issue, 0) + count
    if "Details" in incoming:
        target["Details"] = _renumber_placeholders(target.get("Details", []) + list(incoming["Details"]))
    if "VehicleNumbers" in incoming:
        target.setdefault("VehicleNumbers", []).extend(incoming["VehicleNumbers"])
        target["TotalVehicles"] = target.get("TotalVehicles", 0) + incoming.get("TotalVehicles", 0)
    if incoming.get("FuelStationTimes"):
        times = [t for t in [target.get("FuelStationTimes", ""), incoming["FuelStationTimes"]] if t]
        target["FuelStationTimes"] = ", ".join(times)


def _renumber_placeholders(details: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Keep synthesized ``Vehicle N`` labels sequential after details from several rows are joined."""
    out = []
    seq = 0
    for detail in details:
        if _PLACEHOLDER_VEHICLE.match(str(detail.get("vehicleNo", ""))):
            seq += 1
            detail = dict(detail, vehicleNo=f"Vehicle {seq}")
        out.append(detail)
    return out


def _copy_record(record: Record) -> Record:
    copied = dict(record)
    for key, value in copied.items():
        if isinstance(value, dict):
            copied[key] = dict(value)
        elif isinstance(value, list):
            copied[key] = list(value)
    return copied


def merge_by_zone_date(records: Sequence[Record], *, latest_wins: bool = False) -> List[Record]:
    """Fold records sharing (Zone, Date) into one, keeping first-seen order."""
    merged: Dict[Tuple[str, str], Record] = {}
    for record in records:
        key = (str(record.get("Zone", "")), str(record.get("Date", "")))
        if key not in merged or latest_wins:
            merged[key] = _copy_record(record)
        else:
            _merge_into(merged[key], record)
    return list(merged.values())


def _aggregate(results: Sequence[RowResult], *, latest_wins: bool = False) -> TransformOutcome:
    outcome = _collect(results)
    outcome.records = merge_by_zone_date(outcome.records, latest_wins=latest_wins)
    return outcome


# ---------------- Wide and multi-column layouts ----------------
def transform_wide_to_long(rows: Sequence[RawRecord]) -> TransformOutcome:
    """One record per ``Zone N`` column per row; zero counts are kept."""
    results: List[RowResult] = []
    for row in rows:
        date = normalize_date(_cell(row, "Date"))
        for key, value in row.items():
            if key != "Date" and key.startswith("Zone "):
                results.append({"Date": date, "Zone": key[len("Zone "):].strip(), "Count": parse_int(value, 0)})
    return _aggregate(results)


def _multi_column_row(row: RawRecord) -> RowResult:
    zone = extract_zone(_cell(row, "Zone"))
    total = 0
    for key, value in row.items():
        if key in ("Date", "Zone"):
            continue
        number = parse_int(value, None)
        if number is not None:
            total += number
    if total <= 0:
        return Skipped("zero total")
    return {"Date": normalize_date(_cell(row, "Date")), "Zone": zone, "Count": total}


def transform_multi_column(rows: Sequence[RawRecord]) -> TransformOutcome:
    """Sum every numeric column besides Date/Zone into ``Count``; rows summing to 0 are dropped."""
    return _aggregate([_multi_column_row(row) for row in rows])


# ---------------- Issue-oriented layouts ----------------
def _breakdown_row(row: RawRecord) -> RowResult:
    keys = _date_and_zone(row)
    if isinstance(keys, Skipped):
        return keys
    issue = _cell(row, "Issue")
    if not issue:
        return Skipped("missing issue")
    date, zone = keys
    detail = {
        "vehicleNo": _cell(row, "Vehicle No."),
        "issue": issue,
        "breakdownTime": _cell(row, "Breakdown Time"),
        "spareStatus": _cell(row, "Spare/OK"),
        "spareTime": _cell(row, "Spare/OK Time"),
    }
    return {"Date": date, "Zone": zone, "Count": 1, "IssueBreakdown": {issue: 1}, "Details": [detail]}


def transform_vehicle_breakdown(rows: Sequence[RawRecord]) -> TransformOutcome:
    return _aggregate([_breakdown_row(row) for row in rows])


def _fuel_station_row(row: RawRecord) -> RowResult:
    keys = _date_and_zone(row)
    if isinstance(keys, Skipped):
        return keys
    date, zone = keys
    number = parse_int(zone, None)
    if number is not None and zone.lstrip("-").isdigit():
        zone = str(abs(number))

    vehicle_count = parse_int(_cell(row, "Count of Vehicles"), 0)
    if vehicle_count == 0:
        return Skipped("no vehicles")

    raw_times = _cell(row, "Fuel Station Times")
    times = [t.strip() for t in raw_times.split(",") if t.strip()]
    details = [
        {
            "vehicleNo": f"Vehicle {idx + 1}",
            "time": time,
            "issue": "Fuel Station Visit",
            "status": "Completed",
            "remarks": f"Fuel station visit at {time}",
        }
        for idx, time in enumerate(times)
    ]
    for idx in range(len(times), vehicle_count):
        details.append(
            {
                "vehicleNo": f"Vehicle {idx + 1}",
                "time": "Time not specified",
                "issue": "Fuel Station Visit",
                "status": "Completed",
                "remarks": "Fuel station visit - time not recorded",
            }
        )
    return {"Date": date, "Zone": zone, "Count": vehicle_count, "FuelStationTimes": raw_times, "Details": details}


def transform_fuel_station(rows: Sequence[RawRecord]) -> TransformOutcome:
    return _aggregate([_fuel_station_row(row) for row in rows])


def _late_issue_row(row: RawRecord, sheet_name: str) -> RowResult:
    keys = _date_and_zone(row)
    if isinstance(keys, Skipped):
        return keys
    date, zone = keys
    breakdown = {column: parse_int(_cell(row, column), 0) or 0 for column in ISSUE_COLUMNS}
    total = sum(breakdown.values())
    if total <= 0:
        return Skipped("no issues")

    status, context = LATE_ISSUE_CONTEXT.get(sheet_name, ("Late", "vehicle reported late"))
    details = []
    for column in ISSUE_COLUMNS:
        for _ in range(max(0, breakdown[column])):
            details.append(
                {
                    "vehicleNo": f"Vehicle {len(details) + 1}",
                    "time": "",
                    "issue": column,
                    "status": status,
                    "remarks": f"{column} - {context}",
                }
            )
    return {"Date": date, "Zone": zone, "Count": total, "IssueBreakdown": breakdown, "Details": details}


def transform_late_issues(rows: Sequence[RawRecord], sheet_name: str = ISSUES_POST_0710) -> TransformOutcome:
    """Late arrival / late departure sheets: five issue columns summed per (Zone, Date)."""
    return _aggregate([_late_issue_row(row, sheet_name) for row in rows])


# ---------------- Sheet-specific layouts ----------------
def _trip_count_row(row: RawRecord) -> RowResult:
    counts = {key: parse_int(_cell(row, column), 0) or 0 for key, column in TRIP_COUNT_COLUMNS.items()}
    total = sum(counts.values())
    if total <= 0:
        return Skipped("no vehicles under 3 trips")
    record: Record = {"Date": normalize_date(_cell(row, "Date")), "Zone": extract_zone(_cell(row, "Zone")), "Count": total}
    record.update(counts)
    return record


def transform_trip_counts(rows: Sequence[RawRecord]) -> TransformOutcome:
    return _aggregate([_trip_count_row(row) for row in rows])


def _percentage_row(row: RawRecord) -> RowResult:
    software = parse_percentage(_cell(row, "Software %"))
    actual = parse_percentage(_cell(row, "Actual %"))
    percentage = software if software is not None else actual
    if percentage is None or percentage <= 0:
        return Skipped("non-positive percentage")
    return {
        "Date": normalize_date(_cell(row, "Date")),
        "Zone": extract_zone(_cell(row, "Zone")),
        "Count": percentage,
        "Percentage": percentage,
        "SoftwarePercentage": software,
        "ActualPercentage": actual,
        "Remarks": _cell(row, "Remarks"),
    }


def transform_percentages(rows: Sequence[RawRecord]) -> TransformOutcome:
    """Glitch percentages; the last row for a (Zone, Date) replaces earlier ones."""
    return _aggregate([_percentage_row(row) for row in rows], latest_wins=True)


def parse_vehicle_numbers(value: str) -> List[str]:
    """``"MH09AB1 / MH09AB2 OPEN"`` -> ``["MH09AB1", "MH09AB2"]``."""
    numbers = []
    for part in _VEHICLE_LIST_SEPARATORS.split(value or ""):
        part = _OPEN_MARKER.sub("", part).strip()
        if part:
            numbers.append(part)
    return numbers


def _vehicle_numbers_row(row: RawRecord) -> RowResult:
    keys = _date_and_zone(row)
    if isinstance(keys, Skipped):
        return keys
    date, zone = keys
    numbers = parse_vehicle_numbers(_cell(row, "Vehicle Numbers"))
    # A row with neither identifiers nor a total still stands for one vehicle.
    total = len(numbers) or parse_int(_cell(row, "Total Vehicles"), 0) or 1
    return {"Date": date, "Zone": zone, "Count": total, "VehicleNumbers": numbers, "TotalVehicles": total}


def transform_vehicle_numbers(rows: Sequence[RawRecord]) -> TransformOutcome:
    return _aggregate([_vehicle_numbers_row(row) for row in rows])


def _workshop_row(row: RawRecord) -> RowResult:
    keys = _date_and_zone(row)
    if isinstance(keys, Skipped):
        return keys
    if not _cell(row, "Workshop Departure Time"):
        return Skipped("missing departure time")
    date, zone = keys
    record: Record = {"Date": date, "Zone": zone}
    for column in WORKSHOP_COLUMNS:
        record[column] = _cell(row, column)
    record["Count"] = 1
    return record


def transform_workshop_exits(rows: Sequence[RawRecord]) -> TransformOutcome:
    """One record per departure row; rows are never merged."""
    return _collect([_workshop_row(row) for row in rows])


def _default_row(row: RawRecord) -> RowResult:
    keys = _date_and_zone(row)
    if isinstance(keys, Skipped):
        return keys
    date, zone = keys
    record: Record = dict(row)
    record["Date"] = date
    record["Zone"] = zone
    raw_count = next((_cell(row, c) for c in COUNT_COLUMN_ALIASES if _cell(row, c)), "")
    record["Count"] = parse_int(raw_count, 1) if raw_count else 1
    return record


def transform_default(rows: Sequence[RawRecord]) -> TransformOutcome:
    return _collect([_default_row(row) for row in rows])


# ---------------- Dispatch ----------------
def _has_zone_columns(headers: List[str]) -> bool:
    return any(h.startswith("Zone ") for h in headers)


def _has_issue_columns(headers: List[str]) -> bool:
    return any(issue in h for h in headers for issue in ISSUE_COLUMNS[:4])


def _has_multiple_count_columns(headers: List[str], first_row: RawRecord) -> bool:
    count_columns = [h for h in headers if h not in ("Date", "Zone") and is_count_like(first_row.get(h))]
    return len(count_columns) > 1


Matcher = Callable[[str, List[str], RawRecord], bool]
Transform = Callable[[Sequence[RawRecord], str], TransformOutcome]

# Checked top to bottom; the first match wins.
DISPATCH_TABLE: List[Tuple[SheetShape, Matcher]] = [
    (SheetShape.VEHICLE_BREAKDOWN, lambda s, h, r: s == VEHICLE_BREAKDOWN and "Issue" in h and "Vehicle No." in h),
    (SheetShape.WIDE_ZONES, lambda s, h, r: _has_zone_columns(h)),
    (SheetShape.PERCENTAGE, lambda s, h, r: s == GLITCH_PERCENTAGE),
    (SheetShape.TRIP_COUNT, lambda s, h, r: s == LESS_THAN_3_TRIPS),
    (SheetShape.FUEL_STATION, lambda s, h, r: s == FUEL_STATION),
    (SheetShape.VEHICLE_NUMBERS, lambda s, h, r: s == VEHICLE_NUMBERS),
    (SheetShape.WORKSHOP, lambda s, h, r: s == SPHERE_WORKSHOP_EXIT),
    (SheetShape.LATE_ISSUES, lambda s, h, r: s in LATE_ISSUE_SHEETS and _has_issue_columns(h)),
    (SheetShape.MULTI_COLUMN, lambda s, h, r: "Zone" in h and _has_multiple_count_columns(h, r)),
]

TRANSFORMERS: Dict[SheetShape, Transform] = {
    SheetShape.VEHICLE_BREAKDOWN: lambda rows, sheet: transform_vehicle_breakdown(rows),
    SheetShape.WIDE_ZONES: lambda rows, sheet: transform_wide_to_long(rows),
    SheetShape.PERCENTAGE: lambda rows, sheet: transform_percentages(rows),
    SheetShape.TRIP_COUNT: lambda rows, sheet: transform_trip_counts(rows),
    SheetShape.FUEL_STATION: lambda rows, sheet: transform_fuel_station(rows),
    SheetShape.VEHICLE_NUMBERS: lambda rows, sheet: transform_vehicle_numbers(rows),
    SheetShape.WORKSHOP: lambda rows, sheet: transform_workshop_exits(rows),
    SheetShape.LATE_ISSUES: transform_late_issues,
    SheetShape.MULTI_COLUMN: lambda rows, sheet: transform_multi_column(rows),
    SheetShape.DEFAULT: lambda rows, sheet: transform_default(rows),
}


def detect_shape(sheet_name: str, rows: Sequence[RawRecord]) -> SheetShape:
    if not rows:
        return SheetShape.DEFAULT
    first_row = rows[0]
    headers = list(first_row.keys())
    for shape, matches in DISPATCH_TABLE:
        if matches(sheet_name, headers, first_row):
            return shape
    return SheetShape.DEFAULT


def transform_sheet(sheet_name: str, rows: Sequence[RawRecord]) -> TransformOutcome:
    shape = detect_shape(sheet_name, rows)
    outcome = TRANSFORMERS[shape](rows, sheet_name)
    outcome.shape = shape
    return outcome
