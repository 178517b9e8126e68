from fleet_core.chart_data import build_chart_data, chart_options, sort_labels


def test_non_positive_zones_are_excluded():
    chart = build_chart_data([{"Zone": "-1", "Count": 10}, {"Zone": "3", "Count": 4}])
    assert chart["labels"] == ["3"]
    assert chart["datasets"][0]["data"] == [4]


def test_counts_are_summed_per_label_in_numeric_order():
    records = [
        {"Zone": "10", "Count": 1},
        {"Zone": "2", "Count": 3},
        {"Zone": "10", "Count": "4"},
        {"Zone": "0", "Count": 9},
    ]
    chart = build_chart_data(records, sheet_name="onRouteVehicles")
    assert chart["labels"] == ["2", "10"]
    assert chart["datasets"][0]["data"] == [3, 5]
    assert chart["datasets"][0]["label"] == "Vehicles On Route"


def test_sort_labels_falls_back_to_text_order():
    assert sort_labels(["10", "2", "1"]) == ["1", "2", "10"]
    assert sort_labels(["b", "10", "a"]) == ["10", "a", "b"]


def test_empty_input_yields_one_empty_dataset():
    chart = build_chart_data([], sheet_name="fuelStation")
    assert chart["labels"] == []
    assert len(chart["datasets"]) == 1
    assert chart["datasets"][0]["data"] == []


def test_specific_trip_filter_charts_that_bucket():
    records = [
        {"Zone": "1", "Count": 3, "TripCount0": 1, "TripCount1": 2, "TripCount2": 0},
        {"Zone": "2", "Count": 1, "TripCount0": 0, "TripCount1": 1, "TripCount2": 0},
    ]
    chart = build_chart_data(records, "Count", "Zone", "lessThan3Trips", "1")
    assert chart["datasets"][0]["label"] == "Vehicles with 1 Trip"
    assert chart["datasets"][0]["data"] == [2, 1]

    chart = build_chart_data(records, "Count", "Zone", "lessThan3Trips", "0")
    assert chart["datasets"][0]["label"] == "Vehicles with 0 Trips"
    assert chart["datasets"][0]["data"] == [1, 0]


def test_percentage_chart_has_two_series_when_both_rates_exist():
    records = [
        {"Zone": "1", "Count": 87.0, "Percentage": 87.0, "SoftwarePercentage": 87.0, "ActualPercentage": 80.0, "Remarks": "GPS drift"},
        {"Zone": "2", "Count": 60.0, "Percentage": 60.0, "SoftwarePercentage": None, "ActualPercentage": 60.0, "Remarks": ""},
    ]
    chart = build_chart_data(records, sheet_name="glitchPercentage")
    assert [d["label"] for d in chart["datasets"]] == ["Software Glitch Rate", "Actual Performance Rate"]
    assert chart["datasets"][0]["data"][0] == {"x": "1", "y": 87.0, "remarks": "GPS drift"}
    assert chart["datasets"][1]["data"][1]["y"] == 60.0


def test_percentage_chart_single_series():
    records = [{"Zone": "1", "Count": 55.0, "Percentage": 55.0, "SoftwarePercentage": 55.0, "ActualPercentage": None}]
    chart = build_chart_data(records, sheet_name="glitchPercentage")
    assert len(chart["datasets"]) == 1
    assert chart["datasets"][0]["data"] == [{"x": "1", "y": 55.0, "remarks": ""}]


def test_workshop_chart_groups_by_ward():
    records = [
        {"Zone": "1", "Date": "2024-03-01", "Ward": "12", "Permanent Vehicle Number": "MH10", "Count": 1},
        {"Zone": "1", "Date": "2024-03-01", "Ward": "12", "Permanent Vehicle Number": "MH11", "Count": 1},
        {"Zone": "2", "Date": "2024-03-01", "Ward": "3", "Permanent Vehicle Number": "MH12", "Count": 1},
        {"Zone": "-1", "Date": "2024-03-01", "Ward": "4", "Permanent Vehicle Number": "MH13", "Count": 1},
    ]
    chart = build_chart_data(records, sheet_name="sphereWorkshopExit")
    assert chart["labels"] == ["3", "12"]
    assert chart["datasets"][0]["data"] == [1, 2]
    assert [d["Permanent Vehicle Number"] for d in chart["datasets"][0]["details"][1]] == ["MH10", "MH11"]


def test_issue_sheets_attach_breakdowns_and_details():
    records = [
        {"Zone": "1", "Count": 1, "IssueBreakdown": {"Engine": 1}, "Details": [{"vehicleNo": "MH01"}]},
        {"Zone": "1", "Count": 2, "IssueBreakdown": {"Engine": 1, "Tyre": 1}, "Details": [{"vehicleNo": "MH02"}, {"vehicleNo": "MH03"}]},
    ]
    dataset = build_chart_data(records, sheet_name="vehicleBreakdown")["datasets"][0]
    assert dataset["data"] == [3]
    assert dataset["issueBreakdowns"] == [{"Engine": 2, "Tyre": 1}]
    assert len(dataset["details"][0]) == 3


def test_chart_options():
    assert chart_options("glitchPercentage")["y_max"] == 100
    assert chart_options("glitchPercentage")["is_percentage"]
    assert chart_options("sphereWorkshopExit")["label_name"] == "Ward"
    assert chart_options("onRouteVehicles")["y_max"] is None
