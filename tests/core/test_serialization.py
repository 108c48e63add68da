"""
Unit Tests for Serialization Utilities

Tests for serialization and deserialization functions.
"""

import json
import pytest

from results_toolkit.core.errors import BoundaryGapError
from results_toolkit.core.models.records import ResultState
from results_toolkit.core.schemas.validator import SnapshotValidationError
from results_toolkit.core.utils.serialization import (
    deserialize_boundary_table,
    deserialize_record,
    load_boundary_table_json,
    load_records_jsonl,
    save_boundary_table_json,
    save_records_jsonl,
    serialize_boundary_table,
    serialize_record,
)
from results_toolkit.grading.engine import build_record


class TestBoundaryTableSerialization:
    """Tests for boundary table serialization/deserialization."""

    def test_serialize_when_table_given_then_writes_full_snapshot(self, a_level):
        data = serialize_boundary_table(a_level)
        assert [b["grade"] for b in data["boundaries"]] == ["A*", "A", "B", "C", "D", "E", "U"]
        assert data["points"]["A*"] == 56

    def test_deserialize_when_valid_then_equals_original(self, a_level):
        assert deserialize_boundary_table(serialize_boundary_table(a_level), strict=True) == a_level

    def test_deserialize_when_table_has_gap_then_raises_configuration_error(self):
        """Structurally valid data still goes through table validation."""
        data = {"boundaries": [{"grade": "A", "min_score": 50}], "points": {"A": 1}}
        with pytest.raises(BoundaryGapError):
            deserialize_boundary_table(data)

    def test_save_load_json_when_written_then_reads_back(self, a_level, tmp_path):
        path = tmp_path / "tables" / "a_level.json"
        save_boundary_table_json(a_level, path)
        assert load_boundary_table_json(path) == a_level

    def test_load_json_when_missing_then_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_boundary_table_json(tmp_path / "missing.json")


class TestRecordSerialization:
    """Tests for result record serialization/deserialization."""

    def test_deserialize_when_grade_tampered_then_raises(self, a_level):
        data = serialize_record(build_record("cand-1", "MATH", 72, a_level))
        data["grade"] = "A"
        data["points"] = 48
        with pytest.raises(SnapshotValidationError, match="maps to 'B'"):
            deserialize_record(data)

    def test_deserialize_when_state_stored_then_restored(self, a_level):
        data = serialize_record(build_record("cand-1", "MATH", 72, a_level))
        data["state"] = "verified"
        assert deserialize_record(data).state is ResultState.VERIFIED

    def test_jsonl_round_trip_preserves_records(self, a_level, tmp_path):
        records = [
            build_record("cand-1", "MATH", 90, a_level),
            build_record("cand-2", "MATH", 39, a_level),
        ]
        path = tmp_path / "records.jsonl"
        save_records_jsonl(records, path)

        loaded = load_records_jsonl(path)

        assert loaded == records
        assert [r.raw_score for r in loaded] == [90, 39]

    def test_load_jsonl_when_bad_line_then_reports_line_number(self, a_level, tmp_path):
        path = tmp_path / "records.jsonl"
        good = json.dumps(serialize_record(build_record("cand-1", "MATH", 90, a_level)))
        path.write_text(good + "\n{not json\n", encoding="utf-8")

        with pytest.raises(SnapshotValidationError, match="line 2"):
            load_records_jsonl(path)
