"""
Module: grading.batch

Purpose:
    A Batch is every result of one examination sitting, processed and
    finalized as a unit. It owns the lifecycle
    Open → Grading → Verifying → Finalized, the boundary table snapshot
    captured at grading time, and the regrade audit trail.

Key Classes:
    - BatchState: Lifecycle states
    - Batch: Results container and lifecycle operations

Concurrency:
    A Batch is single-writer. Callers serialize mutating calls on one
    batch (see grading.locks); distinct batches share no mutable state.

Dependencies:
    - grading.engine: Bulk grading
    - grading.workflow: Per-result transitions
    - core.utils.serialization: Snapshot round trip

Used By:
    - grading.aggregator
    - storage.snapshots
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from results_toolkit.common.numbers import percentage
from results_toolkit.core.errors import (
    BatchLockedError,
    ConfigurationError,
    IncompleteVerificationError,
    InvalidTransitionError,
    RecordNotFoundError,
    RecordKey,
)
from results_toolkit.core.models.boundaries import BoundaryTable
from results_toolkit.core.models.records import RegradeEvent, ResultRecord, ResultState
from results_toolkit.core.schemas.validator import (
    BATCH_SCHEMA_VERSION,
    SnapshotValidationError,
    validate_batch,
)
from results_toolkit.core.utils.serialization import (
    deserialize_boundary_table,
    deserialize_record,
)

from . import workflow
from .config import DEFAULT_CONFIG, GradingConfig
from .engine import ScoreInput, batch_grade

logger = logging.getLogger(__name__)


class BatchState(str, Enum):
    """Lifecycle state of a batch."""
    OPEN = "open"
    GRADING = "grading"
    VERIFYING = "verifying"
    FINALIZED = "finalized"

    def __str__(self) -> str:
        return self.value


BATCH_TRANSITIONS: Dict[BatchState, FrozenSet[BatchState]] = {
    BatchState.OPEN: frozenset({BatchState.GRADING}),
    BatchState.GRADING: frozenset({BatchState.VERIFYING}),
    BatchState.VERIFYING: frozenset({BatchState.FINALIZED}),
    BatchState.FINALIZED: frozenset(),
}

_REGRADABLE = frozenset({BatchState.GRADING, BatchState.VERIFYING})


class Batch:
    """
    Results of one examination sitting.

    Usage:
        batch = Batch("2025-jun", "June 2025 A-Level", 2025, total_candidates=3)
        batch.grade(scores, a_level_table())
        batch.begin_verification()
        batch.verify_pending()
        batch.finalize_verified()
        batch.finalize()

    Attributes:
        id: Batch identifier
        name: Display name
        exam_year: Year of the sitting
        total_candidates: Number of results expected before finalization
        lifecycle_state: Current BatchState
    """

    def __init__(
        self,
        id: str,
        name: str,
        exam_year: int,
        total_candidates: int,
        *,
        config: Optional[GradingConfig] = None,
    ):
        if not id:
            raise ValueError("Batch id cannot be empty")
        if total_candidates < 0:
            raise ValueError(f"total_candidates must be non-negative: {total_candidates}")

        self.id = id
        self.name = name
        self.exam_year = exam_year
        self.total_candidates = total_candidates
        self.config = config or DEFAULT_CONFIG
        self.lifecycle_state = BatchState.OPEN
        self._boundary_table: Optional[BoundaryTable] = None
        self._records: Dict[RecordKey, ResultRecord] = {}
        self._regrade_events: List[RegradeEvent] = []

    # ─────────────────────────────────────────────────────────────────────────
    # Read access
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def boundary_table(self) -> Optional[BoundaryTable]:
        """Table snapshot captured at grading time (None while Open)."""
        return self._boundary_table

    @property
    def records(self) -> Tuple[ResultRecord, ...]:
        return tuple(self._records.values())

    @property
    def regrade_events(self) -> Tuple[RegradeEvent, ...]:
        return tuple(self._regrade_events)

    @property
    def is_finalized(self) -> bool:
        return self.lifecycle_state is BatchState.FINALIZED

    @property
    def progress(self) -> float:
        """Percentage of expected results that are Finalized."""
        finalized = sum(1 for r in self._records.values() if r.is_finalized)
        expected = self.total_candidates or len(self._records)
        return percentage(finalized, expected, self.config.decimal_places)

    def record(self, candidate_id: str, subject_id: str) -> ResultRecord:
        """
        Look up one result.

        Raises:
            RecordNotFoundError: If no such result exists
        """
        key = (candidate_id, subject_id)
        try:
            return self._records[key]
        except KeyError:
            raise RecordNotFoundError(key, self.id) from None

    def state_counts(self) -> Dict[ResultState, int]:
        counts = {state: 0 for state in ResultState}
        for record in self._records.values():
            counts[record.state] += 1
        return counts

    def blocking_records(self) -> List[RecordKey]:
        """Keys of results that are not yet Finalized."""
        return [k for k, r in self._records.items() if not r.is_finalized]

    def finalized_records(self) -> Tuple[ResultRecord, ...]:
        """Only Finalized results; the sole input for eligibility decisions."""
        return tuple(r for r in self._records.values() if r.is_finalized)

    # ─────────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    def _ensure_unlocked(self, operation: str) -> None:
        if self.is_finalized:
            raise BatchLockedError(self.id, operation)

    def _transition(self, target: BatchState) -> None:
        if target not in BATCH_TRANSITIONS[self.lifecycle_state]:
            raise InvalidTransitionError(f"batch {self.id!r}", self.lifecycle_state, target)
        logger.info(f"Batch {self.id!r}: {self.lifecycle_state} -> {target}")
        self.lifecycle_state = target

    def grade(self, scores: Iterable[ScoreInput], table: BoundaryTable) -> Tuple[ResultRecord, ...]:
        """
        Grade the whole sitting in one call (Open → Grading).

        All-or-nothing: if any score is invalid the batch stays Open with
        no records and no table.

        Args:
            scores: (candidate_id, subject_id, raw_score) rows
            table: Boundary table; captured as this batch's snapshot

        Returns:
            The graded Pending records

        Raises:
            BatchLockedError: If the batch is Finalized
            InvalidTransitionError: If the batch has already been graded
            ScoreOutOfRangeError / DuplicateResultError: On bad input
        """
        self._ensure_unlocked("grade")
        if self.lifecycle_state is not BatchState.OPEN or self._records:
            raise InvalidTransitionError(
                f"batch {self.id!r}",
                self.lifecycle_state,
                BatchState.GRADING,
                reason="grading is a one-shot operation; use rerun_grading() to apply a new table",
            )

        graded = batch_grade(scores, table)

        if len(graded) > self.total_candidates:
            logger.warning(
                f"Batch {self.id!r}: graded {len(graded)} results but expected "
                f"{self.total_candidates}; finalization will be refused until they match"
            )

        self._boundary_table = table
        self._records = {r.key: r for r in graded}
        self._transition(BatchState.GRADING)
        logger.info(f"Batch {self.id!r}: graded {len(graded)} result(s)")
        return tuple(graded)

    def begin_verification(self) -> None:
        """Grading → Verifying. No per-result precondition."""
        self._ensure_unlocked("begin verification")
        self._transition(BatchState.VERIFYING)

    def finalize(self) -> None:
        """
        Verifying → Finalized.

        Raises:
            BatchLockedError: If already Finalized
            InvalidTransitionError: If the batch is not Verifying
            IncompleteVerificationError: If any result is not Finalized, or
                the number of results differs from total_candidates
        """
        self._ensure_unlocked("finalize")
        if self.lifecycle_state is not BatchState.VERIFYING:
            raise InvalidTransitionError(f"batch {self.id!r}", self.lifecycle_state, BatchState.FINALIZED)

        blocking = self.blocking_records()
        if blocking:
            limit = self.config.max_blocking_records_listed
            raise IncompleteVerificationError(self.id, blocking[:limit], blocking_count=len(blocking))

        if len(self._records) != self.total_candidates:
            raise IncompleteVerificationError(
                self.id,
                reason=f"{len(self._records)} result(s) present, {self.total_candidates} expected",
            )

        self._transition(BatchState.FINALIZED)

    # ─────────────────────────────────────────────────────────────────────────
    # Per-result workflow
    # ─────────────────────────────────────────────────────────────────────────

    def _require_verifying(self, operation: str, target: ResultState) -> None:
        self._ensure_unlocked(operation)
        if self.lifecycle_state is not BatchState.VERIFYING:
            raise InvalidTransitionError(
                f"results of batch {self.id!r}",
                self.lifecycle_state,
                target,
                reason="batch is not in verification",
            )

    def verify_record(self, candidate_id: str, subject_id: str) -> ResultRecord:
        """
        Pending → Verified for one result.

        Raises:
            BatchLockedError, InvalidTransitionError, RecordNotFoundError
        """
        self._require_verifying("verify results", ResultState.VERIFIED)
        updated = workflow.verify(self.record(candidate_id, subject_id))
        self._records[updated.key] = updated
        return updated

    def finalize_record(self, candidate_id: str, subject_id: str) -> ResultRecord:
        """
        Verified → Finalized for one result.

        Raises:
            BatchLockedError, InvalidTransitionError, RecordNotFoundError
        """
        self._require_verifying("finalize results", ResultState.FINALIZED)
        updated = workflow.finalize(self.record(candidate_id, subject_id))
        self._records[updated.key] = updated
        return updated

    def verify_pending(self) -> int:
        """Verify every Pending result. Returns the number verified."""
        self._require_verifying("verify results", ResultState.VERIFIED)
        moved = 0
        for key, record in list(self._records.items()):
            if record.state is ResultState.PENDING:
                self._records[key] = workflow.verify(record)
                moved += 1
        logger.info(f"Batch {self.id!r}: verified {moved} result(s)")
        return moved

    def finalize_verified(self) -> int:
        """Finalize every Verified result. Returns the number finalized."""
        self._require_verifying("finalize results", ResultState.FINALIZED)
        moved = 0
        for key, record in list(self._records.items()):
            if record.state is ResultState.VERIFIED:
                self._records[key] = workflow.finalize(record)
                moved += 1
        logger.info(f"Batch {self.id!r}: finalized {moved} result(s)")
        return moved

    def regrade_record(
        self,
        candidate_id: str,
        subject_id: str,
        new_raw_score: int,
        *,
        reason: str = "",
    ) -> ResultRecord:
        """
        Regrade one result against the batch's table snapshot.

        The result returns to Pending whatever its previous state.

        Raises:
            BatchLockedError: If the batch is Finalized
            InvalidTransitionError: If the batch has not been graded
            RecordNotFoundError: If no such result exists
            ScoreOutOfRangeError: If new_raw_score is outside [0, 100]
        """
        self._ensure_unlocked("regrade")
        if self.lifecycle_state not in _REGRADABLE:
            raise InvalidTransitionError(
                f"results of batch {self.id!r}", self.lifecycle_state, ResultState.PENDING,
                reason="batch has not been graded",
            )
        current = self.record(candidate_id, subject_id)
        updated, event = workflow.regrade(current, new_raw_score, self._boundary_table, reason=reason)
        self._records[updated.key] = updated
        self._regrade_events.append(event)
        return updated

    def rerun_grading(self, table: BoundaryTable, *, reason: str = "") -> Tuple[ResultRecord, ...]:
        """
        Explicitly regrade every result under a new table.

        Replaces the batch's snapshot; every result returns to Pending.
        This is the only way the table of a graded batch changes.

        Raises:
            BatchLockedError: If the batch is Finalized
            InvalidTransitionError: If the batch has not been graded
        """
        self._ensure_unlocked("rerun grading")
        if self.lifecycle_state not in _REGRADABLE:
            raise InvalidTransitionError(
                f"batch {self.id!r}", self.lifecycle_state, BatchState.GRADING,
                reason="batch has not been graded",
            )

        regraded = [
            workflow.regrade(r, r.raw_score, table, reason=reason or "grading re-run")
            for r in self._records.values()
        ]
        self._boundary_table = table
        self._records = {r.key: r for r, _ in regraded}
        self._regrade_events.extend(e for _, e in regraded)
        logger.info(f"Batch {self.id!r}: re-ran grading of {len(regraded)} result(s) against {table!r}")
        return self.records

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        """
        Serialize the complete batch state.

        The table snapshot is stored once; records omit it.
        """
        return {
            "schema_version": BATCH_SCHEMA_VERSION,
            "id": self.id,
            "name": self.name,
            "exam_year": self.exam_year,
            "total_candidates": self.total_candidates,
            "lifecycle_state": self.lifecycle_state.value,
            "boundary_table": self._boundary_table.to_dict() if self._boundary_table else None,
            "records": [r.to_dict(include_table=False) for r in self._records.values()],
            "regrade_events": [e.to_dict() for e in self._regrade_events],
        }

    @classmethod
    def from_dict(
        cls,
        data: dict,
        *,
        strict: bool = False,
        config: Optional[GradingConfig] = None,
    ) -> Batch:
        """
        Restore a batch exactly as it was serialized.

        Raises:
            SnapshotValidationError: If the data is malformed or describes
                an impossible state
        """
        validate_batch(data, strict=strict)

        batch = cls(
            data["id"],
            data["name"],
            data["exam_year"],
            data["total_candidates"],
            config=config,
        )
        state = BatchState(data["lifecycle_state"])

        table = None
        if data.get("boundary_table") is not None:
            try:
                table = deserialize_boundary_table(data["boundary_table"], validate=False)
            except (ValueError, KeyError, TypeError, ConfigurationError) as e:
                raise SnapshotValidationError(
                    f"Invalid boundary table snapshot: {e}",
                    path="boundary_table",
                    errors=[str(e)],
                ) from e

        records: Dict[RecordKey, ResultRecord] = {}
        for i, item in enumerate(data["records"]):
            record = deserialize_record(item, table=table, validate=False, path=f"records[{i}]")
            if record.boundary_table != table:
                raise SnapshotValidationError(
                    "Record was graded with a different table than the batch snapshot",
                    path=f"records[{i}]",
                )
            if record.key in records:
                raise SnapshotValidationError(
                    f"Duplicate result {record.candidate_id}/{record.subject_id}",
                    path=f"records[{i}]",
                )
            records[record.key] = record

        if state is BatchState.OPEN and records:
            raise SnapshotValidationError("Open batch cannot contain results", path="records")
        if state is not BatchState.OPEN and table is None:
            raise SnapshotValidationError(
                "Graded batch must carry its boundary table snapshot", path="boundary_table"
            )
        if state is BatchState.FINALIZED:
            if any(not r.is_finalized for r in records.values()) or len(records) != batch.total_candidates:
                raise SnapshotValidationError(
                    "Finalized batch contains unfinalized or missing results", path="records"
                )

        events: List[RegradeEvent] = []
        for i, item in enumerate(data.get("regrade_events", [])):
            try:
                events.append(RegradeEvent.from_dict(item))
            except (ValueError, KeyError, TypeError) as e:
                raise SnapshotValidationError(
                    f"Invalid regrade event: {e}",
                    path=f"regrade_events[{i}]",
                    errors=[str(e)],
                ) from e

        batch.lifecycle_state = state
        batch._boundary_table = table
        batch._records = records
        batch._regrade_events = events
        return batch

    def __repr__(self) -> str:
        return (
            f"Batch({self.id!r}, {self.lifecycle_state}, "
            f"results={len(self._records)}/{self.total_candidates})"
        )
