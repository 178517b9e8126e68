from fleet_core.csv_parser import needs_single_line_repair, parse_csv, repair_single_line, split_csv_line


def test_parse_csv_maps_headers_to_values():
    rows = parse_csv("Date,Zone,Count\n2024-03-01,Zone 1,4\n2024-03-02,Zone 2,7\n")
    assert rows == [
        {"Date": "2024-03-01", "Zone": "Zone 1", "Count": "4"},
        {"Date": "2024-03-02", "Zone": "Zone 2", "Count": "7"},
    ]


def test_parse_csv_fills_missing_trailing_values_and_skips_blank_lines():
    rows = parse_csv("Date,Zone,Count\r\n2024-03-01,Zone 1\r\n\r\n   \r\n2024-03-02,Zone 2,3\r\n")
    assert rows == [
        {"Date": "2024-03-01", "Zone": "Zone 1", "Count": ""},
        {"Date": "2024-03-02", "Zone": "Zone 2", "Count": "3"},
    ]


def test_parse_csv_keeps_commas_inside_quotes():
    rows = parse_csv('Date,Zone,Fuel Station Times\n2024-03-01,Zone 1,"07:15, 07:40"\n')
    assert rows[0]["Fuel Station Times"] == "07:15, 07:40"


def test_parse_csv_strips_bom_and_quoted_headers():
    rows = parse_csv('\ufeff"Date","Zone"\n2024-03-01,Zone 4\n')
    assert rows == [{"Date": "2024-03-01", "Zone": "Zone 4"}]


def test_parse_csv_empty_inputs():
    assert parse_csv("") == []
    assert parse_csv("\n\n") == []
    assert parse_csv("Date,Zone\n") == []


def test_split_csv_line_trims_fields():
    assert split_csv_line(' a , "b, c" ,d ') == ["a", "b, c", "d"]


class TestSingleLineRepair:
    COLLAPSED = "Date,Zone,A,B,2024-03-01,Zone 1,3 4,2024-03-02,Zone 2,5 6"

    def test_detects_collapsed_exports_only(self):
        assert needs_single_line_repair(self.COLLAPSED)
        assert not needs_single_line_repair("Date,Zone\n2024-03-01,Zone 1")
        assert not needs_single_line_repair("Date,Zone,Count")

    def test_rebuilds_rows_at_date_boundaries(self):
        assert repair_single_line(self.COLLAPSED) == (
            "Date,Zone,A,B\n2024-03-01,Zone 1,3,4\n2024-03-02,Zone 2,5,6"
        )

    def test_parse_csv_uses_repaired_rows(self):
        rows = parse_csv(self.COLLAPSED)
        assert rows == [
            {"Date": "2024-03-01", "Zone": "Zone 1", "A": "3", "B": "4"},
            {"Date": "2024-03-02", "Zone": "Zone 2", "A": "5", "B": "6"},
        ]

    def test_text_starting_with_a_date_is_left_alone(self):
        assert repair_single_line("2024-03-01,Zone 1,3") == "2024-03-01,Zone 1,3"
