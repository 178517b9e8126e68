"""Group filtered records into ``{labels, datasets}`` structures for bar/line charts."""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from fleet_core.sheets import (
    ACTUAL_PERCENTAGE_COLOR_SCHEME,
    CHART_TITLES,
    COLOR_SCHEMES,
    DATASET_LABELS,
    DEFAULT_COLOR_SCHEME,
    DEFAULT_DATASET_LABEL,
    DEFAULT_Y_AXIS_LABEL,
    GLITCH_PERCENTAGE,
    ISSUE_SHEETS,
    LESS_THAN_3_TRIPS,
    SPHERE_WORKSHOP_EXIT,
    Y_AXIS_LABELS,
)
from fleet_core.transformers import WORKSHOP_COLUMNS
from fleet_core.values import is_excluded_zone, parse_int

Record = Mapping[str, Any]

_INT_LABEL = re.compile(r"^[+-]?\d+$")


def dataset_label(sheet_name: str) -> str:
    return DATASET_LABELS.get(sheet_name, DEFAULT_DATASET_LABEL)


def color_scheme(sheet_name: str) -> Dict[str, str]:
    return dict(COLOR_SCHEMES.get(sheet_name, DEFAULT_COLOR_SCHEME))


def _dataset(label: str, data: List[Any], scheme: Mapping[str, str], **extra: Any) -> Dict[str, Any]:
    dataset: Dict[str, Any] = {"label": label, "data": data}
    dataset.update(scheme)
    dataset.update({"borderWidth": 2, "borderRadius": 4, "borderSkipped": False})
    dataset.update(extra)
    return dataset


def sort_labels(labels: Iterable[str]) -> List[str]:
    """Numeric order when every label is an integer, lexicographic otherwise."""
    labels = list(labels)
    if labels and all(_INT_LABEL.match(label) for label in labels):
        return sorted(labels, key=int)
    return sorted(labels)


def _label_of(row: Record, label_field: str) -> str:
    value = row.get(label_field)
    text = "" if value is None else str(value).strip()
    return text or "Unknown"


def _eligible(rows: Sequence[Record], label_field: str) -> List[Record]:
    out = []
    for row in rows:
        if is_excluded_zone(_label_of(row, label_field)):
            continue
        if label_field != "Zone" and is_excluded_zone(row.get("Zone")):
            continue
        out.append(row)
    return out


def _join_remarks(existing: str, remarks: str) -> str:
    if not remarks or remarks in existing:
        return existing
    return f"{existing}; {remarks}" if existing else remarks


def _sum_by_label(labels: List[str], values: List[float]) -> Dict[str, float]:
    if not labels:
        return {}
    frame = pd.DataFrame({"label": labels, "value": values})
    grouped = frame.groupby("label", sort=False)["value"].sum()
    return {str(label): value.item() if hasattr(value, "item") else value for label, value in grouped.items()}


def _trip_count_value(row: Record, trip_count_filter: str) -> int:
    return parse_int(row.get(f"TripCount{trip_count_filter}"), 0) or 0


def _empty_chart(sheet_name: str) -> Dict[str, Any]:
    return {"labels": [], "datasets": [_dataset(dataset_label(sheet_name), [], color_scheme(sheet_name))]}


def _percentage_chart(rows: Sequence[Record], value_field: str, label_field: str, sheet_name: str) -> Dict[str, Any]:
    software: Dict[str, float] = {}
    actual: Dict[str, float] = {}
    chosen: Dict[str, float] = {}
    remarks: Dict[str, str] = {}
    for row in rows:
        label = _label_of(row, label_field)
        # Latest row wins for a label.
        software[label] = row.get("SoftwarePercentage") or 0
        actual[label] = row.get("ActualPercentage") or 0
        chosen[label] = row.get(value_field) or row.get("Percentage") or 0
        remarks[label] = _join_remarks(remarks.get(label, ""), str(row.get("Remarks") or ""))

    labels = sort_labels(chosen)

    def points(values: Mapping[str, float]) -> List[Dict[str, Any]]:
        return [{"x": label, "y": values[label], "remarks": remarks[label]} for label in labels]

    has_both = any(row.get("SoftwarePercentage") and row.get("ActualPercentage") for row in rows)
    if has_both:
        return {
            "labels": labels,
            "datasets": [
                _dataset("Software Glitch Rate", points(software), color_scheme(GLITCH_PERCENTAGE)),
                _dataset("Actual Performance Rate", points(actual), ACTUAL_PERCENTAGE_COLOR_SCHEME),
            ],
        }
    return {"labels": labels, "datasets": [_dataset(dataset_label(sheet_name), points(chosen), color_scheme(sheet_name))]}


def _workshop_chart(rows: Sequence[Record], value_field: str, sheet_name: str) -> Dict[str, Any]:
    labels_seq = [_label_of(row, "Ward") for row in rows]
    totals = _sum_by_label(labels_seq, [parse_int(row.get(value_field), 1) or 0 for row in rows])
    vehicles: Dict[str, List[Dict[str, Any]]] = {}
    for label, row in zip(labels_seq, rows):
        entry = {"Date": row.get("Date", ""), "Zone": row.get("Zone", "")}
        entry.update({column: row.get(column, "") for column in WORKSHOP_COLUMNS})
        vehicles.setdefault(label, []).append(entry)

    labels = sort_labels(totals)
    return {
        "labels": labels,
        "datasets": [
            _dataset(
                dataset_label(sheet_name),
                [totals[label] for label in labels],
                color_scheme(sheet_name),
                details=[vehicles[label] for label in labels],
            )
        ],
    }


def build_chart_data(
    records: Optional[Sequence[Record]],
    value_field: str = "Count",
    label_field: str = "Zone",
    sheet_name: str = "",
    trip_count_filter: Optional[str] = None,
) -> Dict[str, Any]:
    """Aggregate records per label into a ``{labels, datasets}`` chart structure.

    Labels whose numeric value is zero or negative are dropped. Issue-oriented
    sheets also carry merged ``issueBreakdowns`` and ``details`` per label on
    the dataset so a drill-down view can show them.
    """
    if sheet_name == SPHERE_WORKSHOP_EXIT:
        label_field = "Ward"
    rows = _eligible(list(records or []), label_field)
    if not rows:
        return _empty_chart(sheet_name)

    if sheet_name == GLITCH_PERCENTAGE:
        return _percentage_chart(rows, value_field, label_field, sheet_name)
    if sheet_name == SPHERE_WORKSHOP_EXIT:
        return _workshop_chart(rows, value_field, sheet_name)

    label_seq = [_label_of(row, label_field) for row in rows]
    specific_trips = sheet_name == LESS_THAN_3_TRIPS and trip_count_filter not in (None, "", "all")
    if specific_trips:
        values = [_trip_count_value(row, trip_count_filter) for row in rows]
        series_label = f"Vehicles with {trip_count_filter} Trip{'' if trip_count_filter == '1' else 's'}"
    else:
        values = [parse_int(row.get(value_field), 0) or 0 for row in rows]
        series_label = dataset_label(sheet_name)

    totals = _sum_by_label(label_seq, values)
    labels = sort_labels(totals)
    extra: Dict[str, Any] = {}

    if sheet_name in ISSUE_SHEETS:
        breakdowns: Dict[str, Dict[str, int]] = {label: {} for label in labels}
        details: Dict[str, List[Dict[str, Any]]] = {label: [] for label in labels}
        for label, row in zip(label_seq, rows):
            for issue, count in (row.get("IssueBreakdown") or {}).items():
                breakdowns[label][issue] = breakdowns[label].get(issue, 0) + count
            details[label].extend(row.get("Details") or [])
        extra = {
            "issueBreakdowns": [breakdowns[label] for label in labels],
            "details": [details[label] for label in labels],
        }

    return {
        "labels": labels,
        "datasets": [_dataset(series_label, [totals[label] for label in labels], color_scheme(sheet_name), **extra)],
    }


def chart_options(sheet_name: str) -> Dict[str, Any]:
    is_percentage = sheet_name == GLITCH_PERCENTAGE
    return {
        "title": CHART_TITLES.get(sheet_name, sheet_name),
        "x_label": "Wards" if sheet_name == SPHERE_WORKSHOP_EXIT else "Vehicle Zones",
        "label_name": "Ward" if sheet_name == SPHERE_WORKSHOP_EXIT else "Zone",
        "y_label": Y_AXIS_LABELS.get(sheet_name, DEFAULT_Y_AXIS_LABEL),
        "y_max": 100 if is_percentage else None,
        "is_percentage": is_percentage,
    }
