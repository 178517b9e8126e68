from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from fleet_core.dates import normalize_date

TRIP_COUNT_FILTERS = ("all", "0", "1", "2")
TRIP_COUNT_FIELDS = ("TripCount0", "TripCount1", "TripCount2")


@dataclass(frozen=True)
class DashboardFilters:
    selected_date: str = ""
    start_date: str = ""
    end_date: str = ""
    selected_zone: str = ""
    trip_count_filter: str = "all"
    sheet_name: str = ""

    @property
    def has_date_constraint(self) -> bool:
        return bool(self.selected_date or self.start_date or self.end_date)


def _as_str(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _first(raw: Mapping[str, Any], *keys: str) -> str:
    for key in keys:
        value = _as_str(raw.get(key))
        if value:
            return value
    return ""


def normalize_filters(raw: Optional[Mapping[str, Any]]) -> DashboardFilters:
    """Build filters from either the UI shape or the engine shape.

    UI shape: ``{dateRange: {from, to}, quickDate, selectedZone, tripCountFilter, sheetName}``.
    Engine shape: ``{selectedDate, startDate, endDate, selectedZone, tripCountFilter}``.
    A UI quick date wins over a date range and the range is dropped. An
    engine-shape ``selectedDate`` keeps its range, so the two match with OR.
    """
    raw = raw or {}
    date_range = raw.get("dateRange") or {}
    if not isinstance(date_range, Mapping):
        date_range = {}

    quick_date = _first(raw, "quickDate")
    if quick_date:
        selected_date = quick_date
        start_date = end_date = ""
    else:
        selected_date = _first(raw, "selectedDate")
        start_date = _as_str(date_range.get("from")) or _first(raw, "startDate")
        end_date = _as_str(date_range.get("to")) or _first(raw, "endDate")

    trip_count_filter = _first(raw, "tripCountFilter") or "all"
    if trip_count_filter not in TRIP_COUNT_FILTERS:
        trip_count_filter = "all"

    return DashboardFilters(
        selected_date=selected_date,
        start_date=start_date,
        end_date=end_date,
        selected_zone=_first(raw, "selectedZone"),
        trip_count_filter=trip_count_filter,
        sheet_name=_first(raw, "sheetName"),
    )


# ---------------- Per-category predicates ----------------
def matches_specific_date(row_date: str, selected_date: str) -> bool:
    if not selected_date:
        return False
    return row_date == normalize_date(selected_date)


def matches_date_range(row_date: str, start_date: str, end_date: str) -> bool:
    if not start_date and not end_date:
        return False
    if start_date and row_date < normalize_date(start_date):
        return False
    if end_date and row_date > normalize_date(end_date):
        return False
    return True


def apply_date_filter(row_date: object, selected_date: str, start_date: str, end_date: str) -> bool:
    """Exact date OR range; no date constraint at all matches everything."""
    if not selected_date and not start_date and not end_date:
        return True
    normalized = normalize_date(row_date)
    return matches_specific_date(normalized, selected_date) or matches_date_range(normalized, start_date, end_date)


def apply_zone_filter(row_zone: object, selected_zone: str) -> bool:
    if not selected_zone:
        return True
    return _as_str(row_zone) == _as_str(selected_zone)


def apply_trip_count_filter(row: Mapping[str, Any], trip_count_filter: str) -> bool:
    if not trip_count_filter or trip_count_filter == "all":
        return True
    if not any(f in row for f in TRIP_COUNT_FIELDS):
        # Rows from other sheets are never excluded by this filter.
        return True
    if trip_count_filter not in ("0", "1", "2"):
        return True
    return (row.get(f"TripCount{trip_count_filter}") or 0) > 0


def record_matches(row: Mapping[str, Any], filters: DashboardFilters) -> bool:
    return (
        apply_date_filter(row.get("Date"), filters.selected_date, filters.start_date, filters.end_date)
        and apply_zone_filter(row.get("Zone"), filters.selected_zone)
        and apply_trip_count_filter(row, filters.trip_count_filter)
    )


def filter_records(
    records: Optional[Iterable[Dict[str, Any]]],
    filters: DashboardFilters | Mapping[str, Any],
) -> List[Dict[str, Any]]:
    if not records:
        return []
    filt = filters if isinstance(filters, DashboardFilters) else normalize_filters(filters)
    return [row for row in records if record_matches(row, filt)]
