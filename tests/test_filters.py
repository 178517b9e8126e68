from fleet_core.filters import (
    DashboardFilters,
    apply_date_filter,
    apply_trip_count_filter,
    filter_records,
    normalize_filters,
)


class TestNormalizeFilters:
    def test_quick_date_replaces_range(self):
        filters = normalize_filters(
            {"dateRange": {"from": "2024-02-01", "to": "2024-02-28"}, "quickDate": "2024-01-05", "selectedZone": "2"}
        )
        assert filters == DashboardFilters(selected_date="2024-01-05", selected_zone="2")

    def test_ui_range_shape(self):
        filters = normalize_filters({"dateRange": {"from": "2024-02-01", "to": None}, "tripCountFilter": "1"})
        assert filters.start_date == "2024-02-01"
        assert filters.end_date == ""
        assert filters.trip_count_filter == "1"
        assert filters.has_date_constraint

    def test_engine_shape(self):
        filters = normalize_filters({"startDate": "2024-02-01", "endDate": "2024-02-28", "selectedZone": 3})
        assert (filters.start_date, filters.end_date, filters.selected_zone) == ("2024-02-01", "2024-02-28", "3")

    def test_defaults_and_invalid_trip_filter(self):
        assert normalize_filters(None) == DashboardFilters()
        assert normalize_filters({"tripCountFilter": "5"}).trip_count_filter == "all"
        assert not DashboardFilters().has_date_constraint


class TestDateFilter:
    def test_no_constraint_matches_everything(self):
        assert apply_date_filter("2024-01-05", "", "", "")
        assert apply_date_filter("", "", "", "")

    def test_exact_date(self):
        assert apply_date_filter("2024-01-05", "2024-01-05", "", "")
        assert apply_date_filter("01/05/2024", "2024-01-05", "", "")
        assert not apply_date_filter("2024-01-06", "2024-01-05", "", "")

    def test_exact_date_or_range(self):
        assert apply_date_filter("2024-01-05", "2024-01-05", "2024-02-01", "2024-02-28")
        assert apply_date_filter("2024-02-15", "2024-01-05", "2024-02-01", "2024-02-28")
        assert not apply_date_filter("2024-03-15", "2024-01-05", "2024-02-01", "2024-02-28")

    def test_open_ended_range_is_inclusive(self):
        assert apply_date_filter("2024-02-01", "", "2024-02-01", "")
        assert not apply_date_filter("2024-01-31", "", "2024-02-01", "")
        assert apply_date_filter("2024-02-28", "", "", "2024-02-28")


class TestTripCountFilter:
    def test_records_without_trip_fields_always_pass(self):
        for value in ("all", "0", "1", "2"):
            assert apply_trip_count_filter({"Zone": "1", "Count": 4}, value)

    def test_trip_records_need_a_positive_bucket(self):
        record = {"TripCount0": 0, "TripCount1": 2, "TripCount2": 0}
        assert apply_trip_count_filter(record, "1")
        assert not apply_trip_count_filter(record, "0")
        assert apply_trip_count_filter(record, "all")


def test_zone_filter_keeps_matching_zone_only():
    records = [{"Zone": "1", "Date": "2024-03-01"}, {"Zone": "2", "Date": "2024-03-01"}]
    assert filter_records(records, {"selectedZone": "2"}) == [{"Zone": "2", "Date": "2024-03-01"}]


def test_filter_records_combines_categories():
    records = [
        {"Zone": "1", "Date": "2024-03-01", "TripCount0": 1, "TripCount1": 0, "TripCount2": 0},
        {"Zone": "1", "Date": "2024-03-02", "TripCount0": 0, "TripCount1": 2, "TripCount2": 0},
        {"Zone": "2", "Date": "2024-03-02", "TripCount0": 0, "TripCount1": 1, "TripCount2": 0},
    ]
    filters = {"dateRange": {"from": "03/02/2024"}, "selectedZone": "1", "tripCountFilter": "1"}
    assert filter_records(records, filters) == [records[1]]


def test_filter_records_handles_missing_input():
    assert filter_records(None, {}) == []
    assert filter_records([], DashboardFilters()) == []


def test_engine_shape_keeps_exact_date_or_range():
    records = [{"Date": "2024-01-05"}, {"Date": "2024-02-15"}, {"Date": "2024-03-15"}]
    filters = {"selectedDate": "2024-01-05", "startDate": "2024-02-01", "endDate": "2024-02-28"}
    assert normalize_filters(filters) == DashboardFilters(
        selected_date="2024-01-05", start_date="2024-02-01", end_date="2024-02-28"
    )
    assert filter_records(records, filters) == records[:2]


def test_quick_date_still_drops_engine_range():
    filters = normalize_filters({"quickDate": "2024-01-05", "startDate": "2024-02-01", "endDate": "2024-02-28"})
    assert (filters.selected_date, filters.start_date, filters.end_date) == ("2024-01-05", "", "")
