"""Tests for the ingest module: payload unwrapping, file loading, frame building."""
import json

import polars as pl
import pytest

from finance_insights.ingest import (
    extract_records,
    inventory_frame,
    load_inventory,
    load_payments,
    load_payroll,
    payments_frame,
    payroll_frame,
)
from tests.fixtures import make_inventory, make_payments, make_payroll


class TestExtractRecords:
    """Tests for extract_records()."""

    def test_bare_list(self):
        assert extract_records([{"a": 1}], ["data"]) == [{"a": 1}]

    def test_envelope_key(self):
        payload = {"success": True, "data": [{"a": 1}, {"a": 2}]}
        assert len(extract_records(payload, ["data"])) == 2

    def test_nested_envelope(self):
        """Inventory API nests items under data.items."""
        payload = {"success": True, "data": {"items": [{"a": 1}], "total": 1}}
        assert extract_records(payload, ["data", "items"]) == [{"a": 1}]

    def test_non_dict_entries_are_dropped(self):
        assert extract_records([{"a": 1}, None, 5, "x"], ["data"]) == [{"a": 1}]

    def test_missing_list_raises(self):
        with pytest.raises(ValueError):
            extract_records({"success": False, "message": "boom"}, ["data"])


class TestLoaders:
    """Tests for the JSON file loaders."""

    def test_loads_all_three_files(self, tmp_path):
        (tmp_path / "payments.json").write_text(json.dumps({"data": make_payments([{}, {}])}))
        (tmp_path / "payroll.json").write_text(json.dumps({"success": True, "data": make_payroll([{}])}))
        (tmp_path / "inventory.json").write_text(
            json.dumps({"success": True, "data": {"items": make_inventory([{}, {}, {}])}})
        )

        assert len(load_payments(str(tmp_path))) == 2
        assert len(load_payroll(str(tmp_path))) == 1
        assert len(load_inventory(str(tmp_path))) == 3

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_payments(str(tmp_path))


class TestFrames:
    """Tests for the typed frame builders."""

    def test_payments_frame_normalizes_amounts(self):
        records = make_payments([{"paid": "abc", "total": None}, {"paid": "50", "total": 80}])
        df = payments_frame(records)
        assert df["amount_paid"].to_list() == [0.0, 50.0]
        assert df["total_amount"].to_list() == [0.0, 80.0]
        assert df.schema["amount_paid"] == pl.Float64

    def test_payments_frame_defaults_and_periods(self):
        records = make_payments([{"method": None, "hospital": "", "date": "garbage"}])
        row = payments_frame(records).row(0, named=True)
        assert row["method"] == "Unknown"
        assert row["hospital"] == "Unknown"
        assert row["period_key"] is None

    def test_payroll_frame_parses_period(self):
        df = payroll_frame(make_payroll([{"month": "March", "year": "2024"}]))
        row = df.row(0, named=True)
        assert row["period_key"] == "2024-03"
        assert row["status"] == "Pending"

    def test_payroll_frame_invalid_period_is_null(self):
        df = payroll_frame(make_payroll([{"month": "Smarch", "year": 2024}]))
        row = df.row(0, named=True)
        assert row["period_key"] is None
        assert row["year"] is None

    def test_inventory_frame_defaults_category(self):
        df = inventory_frame([{"price": "5", "quantity": "3"}])
        row = df.row(0, named=True)
        assert row["category"] == "Uncategorized"
        assert row["price"] == 5.0
        assert row["quantity"] == 3.0

    def test_empty_inputs_give_empty_typed_frames(self):
        assert payments_frame([]).height == 0
        assert payroll_frame([]).schema["gross_salary"] == pl.Float64
        assert inventory_frame([]).width == 4
