"""
Module: grading.workflow

Purpose:
    Per-result state machine: Pending → Verified → Finalized.

    No skipping and no reverting. The only backward move is regrade(),
    which recomputes grade/points and resets the result to Pending from
    any state. Every regrade is logged and returns an audit event.

Key Functions:
    - can_transition(): Check the transition table
    - verify(): Pending → Verified
    - finalize(): Verified → Finalized
    - regrade(): Any → Pending with new score

Dependencies:
    - grading.engine: Grade computation for regrade
    - core.models.records

Used By:
    - grading.batch
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, FrozenSet, Tuple

from results_toolkit.core.errors import InvalidTransitionError, format_key
from results_toolkit.core.models.boundaries import BoundaryTable
from results_toolkit.core.models.records import RegradeEvent, ResultRecord, ResultState

from .engine import build_record

logger = logging.getLogger(__name__)


TRANSITIONS: Dict[ResultState, FrozenSet[ResultState]] = {
    ResultState.PENDING: frozenset({ResultState.VERIFIED}),
    ResultState.VERIFIED: frozenset({ResultState.FINALIZED}),
    ResultState.FINALIZED: frozenset(),
}


def can_transition(current: ResultState, target: ResultState) -> bool:
    return target in TRANSITIONS[current]


def _advance(record: ResultRecord, target: ResultState) -> ResultRecord:
    if not can_transition(record.state, target):
        raise InvalidTransitionError(
            f"result {format_key(record.key)}", record.state, target
        )
    logger.debug(f"Result {format_key(record.key)}: {record.state} -> {target}")
    return replace(record, state=target)


def verify(record: ResultRecord) -> ResultRecord:
    """
    Mark a Pending result as Verified. Scores are not recomputed.

    Raises:
        InvalidTransitionError: If record is not Pending
    """
    return _advance(record, ResultState.VERIFIED)


def finalize(record: ResultRecord) -> ResultRecord:
    """
    Mark a Verified result as Finalized.

    Nothing reaches publication without verification, so a Pending
    result cannot be finalized directly.

    Raises:
        InvalidTransitionError: If record is not Verified
    """
    return _advance(record, ResultState.FINALIZED)


def regrade(
    record: ResultRecord,
    new_raw_score: int,
    table: BoundaryTable,
    *,
    reason: str = "",
) -> Tuple[ResultRecord, RegradeEvent]:
    """
    Recompute a result and reset it to Pending.

    Permitted from any state. Regrading with the record's own raw score
    under the same table yields the same grade and points.

    Args:
        record: Result to regrade
        new_raw_score: Corrected raw score
        table: Table to grade against
        reason: Free-text reason for the audit trail

    Returns:
        (new record, audit event)

    Raises:
        ScoreOutOfRangeError: If new_raw_score is outside [0, 100]
    """
    updated = build_record(
        record.candidate_id,
        record.subject_id,
        new_raw_score,
        table,
        revision=record.revision + 1,
    )
    event = RegradeEvent(
        candidate_id=record.candidate_id,
        subject_id=record.subject_id,
        previous_score=record.raw_score,
        new_score=updated.raw_score,
        previous_grade=record.grade,
        new_grade=updated.grade,
        previous_state=record.state,
        revision=updated.revision,
        reason=reason,
        recorded_at=datetime.now(timezone.utc).isoformat(),
    )
    logger.info(
        f"Regraded {format_key(record.key)}: {record.raw_score} ({record.grade}) -> "
        f"{updated.raw_score} ({updated.grade}), state {record.state} -> {updated.state}"
        + (f", reason: {reason}" if reason else "")
    )
    return updated, event
