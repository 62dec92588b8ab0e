"""Tests for intake of spreadsheet rows."""

import pytest

from driver_ranking.ranking.constants import COLUMN_MAPPINGS
from driver_ranking.ranking.criteria import build_driver_hierarchy
from driver_ranking.ranking.exceptions import ValidationError
from driver_ranking.ranking.eligibility_filter import EligibilityFilter
from driver_ranking.ranking.intake import find_column, parse_cell, records_from_rows, resolve_columns


def headers_for(hierarchy):
    """One current header per leaf criterion."""
    headers = {}
    for header, criterion_id in COLUMN_MAPPINGS.items():
        headers.setdefault(criterion_id, header)
    return [headers[leaf_id] for leaf_id in hierarchy.leaf_ids()]


class TestIntake:
    """Test suite for records_from_rows and its helpers."""

    def setup_method(self):
        """Set up test fixtures."""
        self.hierarchy = build_driver_hierarchy()
        self.headers = headers_for(self.hierarchy)

    def create_row(self, driver_id, value=1, **extra):
        """Helper to create a spreadsheet row with every criterion set to value."""
        row = {"SicilNo": driver_id}
        row.update({header: value for header in self.headers})
        row.update(extra)
        return row

    def test_records_from_rows(self):
        rows = [
            self.create_row("1001", 2, **{"Sefer Sayısı": 30, "Yapılan Kilometre": "1250,5"}),
            self.create_row("1002", 0),
        ]

        records = records_from_rows(rows, self.hierarchy)

        assert [r.alternative_id for r in records] == ["1001", "1002"]
        assert set(records[0].values) == set(self.hierarchy.leaf_ids())
        assert records[0].values["speed"] == 2.0
        assert records[0].attributes == {"trip_count": 30.0, "distance_km": 1250.5}
        assert records[1].attributes == {}

    def test_display_names_match_first(self):
        """Test that a column named after the criterion is used directly."""
        rows = [self.create_row("1001", 1, **{"Speeding Violation Count": 7})]

        records = records_from_rows(rows, self.hierarchy)

        assert records[0].values["speed"] == 7.0

    def test_legacy_headers(self):
        """Test that older spreadsheet headers are recognized."""
        legacy = {
            "Motor (Kırmızı Lamba) Uyarısı": "engine",
            "1'nci Derece Disiplin İhlallerinden Sevk Sayısı Kilometreye Oranı": "first_degree_dismissal",
        }
        headers = [h for h in self.headers if COLUMN_MAPPINGS[h] not in legacy.values()]
        headers += list(legacy)

        columns = resolve_columns(headers, self.hierarchy)

        assert columns["engine"] == "Motor (Kırmızı Lamba) Uyarısı"
        assert columns["first_degree_dismissal"].startswith("1'nci Derece")

    def test_missing_column_rejected(self):
        row = self.create_row("1001")
        del row["Rölanti İhlal Sayısı"]

        with pytest.raises(ValidationError) as exc_info:
            records_from_rows([row], self.hierarchy)

        assert exc_info.value.criterion_id == "idle"

    def test_missing_id_gets_placeholder(self):
        rows = [self.create_row("1001"), self.create_row(None), self.create_row("")]

        records = records_from_rows(rows, self.hierarchy)

        assert [r.alternative_id for r in records] == ["1001", "Driver_1", "Driver_2"]

    def test_empty_rows(self):
        assert records_from_rows([], self.hierarchy) == []

    def test_unparseable_cell(self):
        rows = [self.create_row("1001", "many")]

        with pytest.raises(ValidationError) as exc_info:
            records_from_rows(rows, self.hierarchy)

        assert exc_info.value.details["row"] == 0

    def test_filter_columns_matched_by_substring(self):
        """Test that longer headers naming trips and distance are still found."""
        rows = [
            self.create_row(
                "1001", 1, **{"Toplam Sefer Sayısı": 3, "Yapılan Kilometre (km)": "80,5"}
            ),
        ]

        records = records_from_rows(rows, self.hierarchy)

        assert records[0].attributes == {"trip_count": 3.0, "distance_km": 80.5}

    def test_find_column(self):
        headers = [7, "SicilNo", "Toplam Sefer Sayısı"]

        assert find_column(headers, "Sefer Sayısı") == "Toplam Sefer Sayısı"
        assert find_column(headers, "Yapılan Kilometre") is None

    def test_short_records_kept_by_filter(self):
        """Test that drivers read without a distance column pass the activity filter."""
        rows = [self.create_row("1001", 1, **{"Sefer Sayısı": 3})]

        records = records_from_rows(rows, self.hierarchy)
        eligible, rejected = EligibilityFilter(25, 250.0).filter(records)

        assert records[0].attributes == {"trip_count": 3.0}
        assert [d.alternative_id for d in eligible] == ["1001"]
        assert rejected == []

    def test_parse_cell(self):
        assert parse_cell(None, 0, "x") == 0.0
        assert parse_cell("  ", 0, "x") == 0.0
        assert parse_cell("3,25", 0, "x") == 3.25
        assert parse_cell(4, 0, "x") == 4.0

        with pytest.raises(ValidationError):
            parse_cell(True, 0, "x")
        with pytest.raises(ValidationError):
            parse_cell([1], 0, "x")
