"""
Unit Tests for Batch Lifecycle

Tests for Open → Grading → Verifying → Finalized and the per-result
operations a batch exposes.
"""

import logging

import pytest

from results_toolkit.core.errors import (
    BatchLockedError,
    IncompleteVerificationError,
    InvalidTransitionError,
    RecordNotFoundError,
    ScoreOutOfRangeError,
)
from results_toolkit.core.models.records import ResultState
from results_toolkit.core.schemas.validator import SnapshotValidationError
from results_toolkit.grading.batch import Batch, BatchState
from results_toolkit.grading.config import GradingConfig


def _finalize_all(batch):
    batch.verify_pending()
    batch.finalize_verified()
    batch.finalize()


class TestBatchConstruction:
    """Tests for Batch creation."""

    def test_init_when_created_then_open_and_empty(self):
        batch = Batch("b1", "June", 2025, total_candidates=10)
        assert batch.lifecycle_state is BatchState.OPEN
        assert batch.records == ()
        assert batch.boundary_table is None
        assert batch.progress == 0.0

    def test_init_when_negative_total_then_raises(self):
        with pytest.raises(ValueError, match="total_candidates"):
            Batch("b1", "June", 2025, total_candidates=-1)

    def test_init_when_empty_id_then_raises(self):
        with pytest.raises(ValueError):
            Batch("", "June", 2025, total_candidates=1)


class TestGrading:
    """Tests for Batch.grade()."""

    def test_grade_when_open_then_moves_to_grading(self, graded_batch, a_level):
        assert graded_batch.lifecycle_state is BatchState.GRADING
        assert graded_batch.boundary_table is a_level
        assert len(graded_batch.records) == 3

    def test_grade_when_invalid_score_then_batch_unchanged(self, a_level):
        batch = Batch("b1", "June", 2025, total_candidates=2)
        with pytest.raises(ScoreOutOfRangeError):
            batch.grade([("c1", "MATH", 50), ("c2", "MATH", 101)], a_level)
        assert batch.lifecycle_state is BatchState.OPEN
        assert batch.records == ()
        assert batch.boundary_table is None

    def test_grade_when_already_graded_then_raises(self, graded_batch, a_level):
        """Grading is one-shot, not incremental."""
        with pytest.raises(InvalidTransitionError, match="one-shot"):
            graded_batch.grade([("c9", "MATH", 50)], a_level)

    def test_grade_when_partial_load_then_allowed(self, a_level):
        batch = Batch("b1", "June", 2025, total_candidates=100)
        batch.grade([("c1", "MATH", 50)], a_level)
        assert len(batch.records) == 1

    def test_grade_when_more_than_expected_then_warns(self, a_level, caplog):
        batch = Batch("b1", "June", 2025, total_candidates=1)
        with caplog.at_level(logging.WARNING, logger="results_toolkit.grading.batch"):
            batch.grade([("c1", "MATH", 50), ("c2", "MATH", 60)], a_level)
        assert "expected 1" in caplog.text

    def test_table_snapshot_unaffected_by_later_tables(self, graded_batch, pass_fail_table):
        """A new table for a later sitting does not touch graded results."""
        before = [(r.grade, r.points) for r in graded_batch.records]
        _ = pass_fail_table
        assert [(r.grade, r.points) for r in graded_batch.records] == before


class TestLifecycle:
    """Tests for batch-level transitions."""

    def test_begin_verification_when_open_then_raises(self):
        batch = Batch("b1", "June", 2025, total_candidates=1)
        with pytest.raises(InvalidTransitionError):
            batch.begin_verification()

    def test_finalize_when_grading_then_raises(self, graded_batch):
        with pytest.raises(InvalidTransitionError):
            graded_batch.finalize()

    def test_finalize_when_all_finalized_then_finalized(self, verifying_batch):
        _finalize_all(verifying_batch)
        assert verifying_batch.lifecycle_state is BatchState.FINALIZED
        assert verifying_batch.progress == 100.0

    def test_finalize_when_one_verified_then_raises_naming_it(self, verifying_batch):
        verifying_batch.verify_pending()
        verifying_batch.finalize_record("cand-1", "MATH")
        verifying_batch.finalize_record("cand-2", "MATH")

        with pytest.raises(IncompleteVerificationError) as exc:
            verifying_batch.finalize()

        assert exc.value.blocking == (("cand-3", "MATH"),)
        assert exc.value.blocking_count == 1
        assert "cand-3/MATH" in str(exc.value)
        assert verifying_batch.lifecycle_state is BatchState.VERIFYING

    def test_finalize_when_many_blocking_then_lists_limit_and_count(self, a_level):
        batch = Batch("b1", "June", 2025, total_candidates=30,
                      config=GradingConfig(max_blocking_records_listed=5))
        batch.grade([(f"c{i:02d}", "MATH", 50) for i in range(30)], a_level)
        batch.begin_verification()

        with pytest.raises(IncompleteVerificationError) as exc:
            batch.finalize()

        assert len(exc.value.blocking) == 5
        assert exc.value.blocking_count == 30
        assert "(+25 more)" in str(exc.value)

    def test_finalize_when_results_missing_then_raises(self, a_level):
        batch = Batch("b1", "June", 2025, total_candidates=2)
        batch.grade([("c1", "MATH", 50)], a_level)
        batch.begin_verification()
        batch.verify_pending()
        batch.finalize_verified()

        with pytest.raises(IncompleteVerificationError, match="1 result\\(s\\) present, 2 expected"):
            batch.finalize()

    def test_finalized_batch_rejects_all_mutations(self, verifying_batch, a_level):
        _finalize_all(verifying_batch)

        with pytest.raises(BatchLockedError):
            verifying_batch.regrade_record("cand-1", "MATH", 10)
        with pytest.raises(BatchLockedError):
            verifying_batch.rerun_grading(a_level)
        with pytest.raises(BatchLockedError):
            verifying_batch.verify_record("cand-1", "MATH")
        with pytest.raises(BatchLockedError):
            verifying_batch.finalize()
        with pytest.raises(BatchLockedError):
            verifying_batch.grade([], a_level)


class TestRecordOperations:
    """Tests for per-result operations through the batch."""

    def test_verify_record_when_grading_then_raises(self, graded_batch):
        with pytest.raises(InvalidTransitionError, match="not in verification"):
            graded_batch.verify_record("cand-1", "MATH")

    def test_verify_then_finalize_record(self, verifying_batch):
        verifying_batch.verify_record("cand-1", "MATH")
        record = verifying_batch.finalize_record("cand-1", "MATH")
        assert record.state is ResultState.FINALIZED
        assert verifying_batch.record("cand-1", "MATH") is record

    def test_finalize_record_when_pending_then_raises(self, verifying_batch):
        with pytest.raises(InvalidTransitionError):
            verifying_batch.finalize_record("cand-1", "MATH")

    def test_record_when_unknown_then_raises(self, verifying_batch):
        with pytest.raises(RecordNotFoundError, match="cand-x/MATH"):
            verifying_batch.record("cand-x", "MATH")

    def test_record_not_found_is_a_key_error(self, verifying_batch):
        with pytest.raises(KeyError):
            verifying_batch.verify_record("cand-x", "MATH")

    def test_verify_pending_and_finalize_verified_counts(self, verifying_batch):
        verifying_batch.verify_record("cand-1", "MATH")
        assert verifying_batch.verify_pending() == 2
        assert verifying_batch.finalize_verified() == 3
        assert verifying_batch.verify_pending() == 0

    def test_state_counts_and_progress(self, verifying_batch):
        verifying_batch.verify_pending()
        verifying_batch.finalize_record("cand-1", "MATH")
        counts = verifying_batch.state_counts()
        assert counts == {
            ResultState.PENDING: 0,
            ResultState.VERIFIED: 2,
            ResultState.FINALIZED: 1,
        }
        assert verifying_batch.progress == 33.33

    def test_finalized_records_only_returns_finalized(self, verifying_batch):
        verifying_batch.verify_pending()
        verifying_batch.finalize_record("cand-2", "MATH")
        assert [r.key for r in verifying_batch.finalized_records()] == [("cand-2", "MATH")]


class TestRegrading:
    """Tests for regrade_record() and rerun_grading()."""

    def test_regrade_record_resets_finalized_result(self, verifying_batch):
        verifying_batch.verify_pending()
        verifying_batch.finalize_verified()

        updated = verifying_batch.regrade_record("cand-2", "MATH", 81, reason="appeal upheld")

        assert updated.state is ResultState.PENDING
        assert updated.grade == "A"
        assert verifying_batch.blocking_records() == [("cand-2", "MATH")]
        assert verifying_batch.regrade_events[-1].reason == "appeal upheld"

    def test_regrade_record_when_grading_then_allowed(self, graded_batch):
        assert graded_batch.regrade_record("cand-3", "MATH", 45).grade == "E"

    def test_regrade_record_when_open_then_raises(self):
        batch = Batch("b1", "June", 2025, total_candidates=1)
        with pytest.raises(InvalidTransitionError, match="not been graded"):
            batch.regrade_record("c1", "MATH", 40)

    def test_regrade_record_when_invalid_score_then_record_unchanged(self, verifying_batch):
        before = verifying_batch.record("cand-1", "MATH")
        with pytest.raises(ScoreOutOfRangeError):
            verifying_batch.regrade_record("cand-1", "MATH", 200)
        assert verifying_batch.record("cand-1", "MATH") is before
        assert verifying_batch.regrade_events == ()

    def test_regrade_record_with_own_score_keeps_grade(self, verifying_batch):
        verifying_batch.verify_pending()
        before = verifying_batch.record("cand-1", "MATH")
        after = verifying_batch.regrade_record("cand-1", "MATH", before.raw_score)
        assert (after.grade, after.points) == (before.grade, before.points)
        assert after.state is ResultState.PENDING

    def test_rerun_grading_replaces_snapshot_and_resets_all(self, verifying_batch, pass_fail_table):
        verifying_batch.verify_pending()

        records = verifying_batch.rerun_grading(pass_fail_table)

        assert verifying_batch.boundary_table is pass_fail_table
        assert [r.grade for r in records] == ["P", "P", "F"]
        assert all(r.state is ResultState.PENDING for r in records)
        assert len(verifying_batch.regrade_events) == 3
        assert verifying_batch.lifecycle_state is BatchState.VERIFYING


class TestBatchSerialization:
    """Tests for Batch.to_dict() / Batch.from_dict()."""

    def test_round_trip_preserves_everything(self, verifying_batch):
        verifying_batch.verify_pending()
        verifying_batch.finalize_record("cand-1", "MATH")
        verifying_batch.regrade_record("cand-3", "MATH", 41)

        restored = Batch.from_dict(verifying_batch.to_dict(), strict=True)

        assert restored.lifecycle_state is BatchState.VERIFYING
        assert restored.boundary_table == verifying_batch.boundary_table
        assert restored.records == verifying_batch.records
        assert restored.regrade_events == verifying_batch.regrade_events
        assert restored.to_dict() == verifying_batch.to_dict()

    def test_to_dict_stores_table_once(self, graded_batch):
        data = graded_batch.to_dict()
        assert data["boundary_table"]["points"]["A*"] == 56
        assert all("boundary_table" not in r for r in data["records"])

    def test_from_dict_when_open_batch_has_records_then_raises(self, graded_batch):
        data = graded_batch.to_dict()
        data["lifecycle_state"] = "open"
        with pytest.raises(SnapshotValidationError, match="Open batch"):
            Batch.from_dict(data)

    def test_from_dict_when_finalized_with_pending_then_raises(self, graded_batch):
        data = graded_batch.to_dict()
        data["lifecycle_state"] = "finalized"
        with pytest.raises(SnapshotValidationError, match="unfinalized"):
            Batch.from_dict(data)

    def test_from_dict_when_duplicate_results_then_raises(self, graded_batch):
        data = graded_batch.to_dict()
        data["records"].append(dict(data["records"][0]))
        with pytest.raises(SnapshotValidationError, match="Duplicate result"):
            Batch.from_dict(data)

    def test_from_dict_when_grade_tampered_then_raises(self, graded_batch):
        data = graded_batch.to_dict()
        data["records"][0]["grade"] = "U"
        data["records"][0]["points"] = 0
        with pytest.raises(SnapshotValidationError) as exc:
            Batch.from_dict(data)
        assert exc.value.path == "records[0]"

    def test_from_dict_when_total_candidates_not_integer_then_raises(self, graded_batch):
        data = graded_batch.to_dict()
        data["total_candidates"] = "3"
        with pytest.raises(SnapshotValidationError) as exc:
            Batch.from_dict(data, strict=False)
        assert exc.value.path == "total_candidates"
