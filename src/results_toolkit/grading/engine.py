"""
Module: grading.engine

Purpose:
    Pure score → grade transformation. Maps raw scores through a
    BoundaryTable and builds Pending ResultRecords for a whole sitting.

Key Functions:
    - normalize_score(): Moderation hook (identity)
    - grade(): One raw score → GradedScore
    - batch_grade(): All-or-nothing grading of many scores

Key Classes:
    - RawScore: (candidate_id, subject_id, raw_score) input row
    - GradedScore: (grade, points, normalized_score) output

Dependencies:
    - core.models.boundaries
    - core.models.records

Used By:
    - grading.workflow: regrade()
    - grading.batch: Batch.grade()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, NamedTuple, Tuple, Union

from results_toolkit.core.errors import DuplicateResultError, ScoreOutOfRangeError
from results_toolkit.core.models.boundaries import BoundaryTable, is_valid_score
from results_toolkit.core.models.records import ResultRecord, ResultState

logger = logging.getLogger(__name__)


class RawScore(NamedTuple):
    """One submitted score, as supplied by the candidate registry."""
    candidate_id: str
    subject_id: str
    raw_score: int


@dataclass(frozen=True, slots=True)
class GradedScore:
    """Fields derived from a raw score under one table."""
    grade: str
    points: int
    normalized_score: int


ScoreInput = Union[RawScore, Tuple[str, str, int]]


def normalize_score(raw_score: int) -> int:
    """
    Moderation/scaling hook. Currently the identity.

    Raises:
        ScoreOutOfRangeError: If raw_score is not an integer in [0, 100]
    """
    if not is_valid_score(raw_score):
        raise ScoreOutOfRangeError(raw_score)
    return raw_score


def grade(raw_score: int, table: BoundaryTable) -> GradedScore:
    """
    Grade one raw score.

    Args:
        raw_score: Integer score in [0, 100]
        table: Validated boundary table

    Returns:
        GradedScore with grade, points and normalized score

    Raises:
        ScoreOutOfRangeError: If raw_score is outside [0, 100]
    """
    normalized = normalize_score(raw_score)
    letter, points = table.grade_for(normalized)
    return GradedScore(grade=letter, points=points, normalized_score=normalized)


def build_record(
    candidate_id: str,
    subject_id: str,
    raw_score: int,
    table: BoundaryTable,
    *,
    revision: int = 0,
) -> ResultRecord:
    """Grade one score and wrap it in a Pending ResultRecord."""
    try:
        graded = grade(raw_score, table)
    except ScoreOutOfRangeError:
        raise ScoreOutOfRangeError(raw_score, candidate_id, subject_id) from None
    return ResultRecord(
        candidate_id=candidate_id,
        subject_id=subject_id,
        raw_score=raw_score,
        normalized_score=graded.normalized_score,
        grade=graded.grade,
        points=graded.points,
        boundary_table=table,
        state=ResultState.PENDING,
        revision=revision,
    )


def batch_grade(scores: Iterable[ScoreInput], table: BoundaryTable) -> List[ResultRecord]:
    """
    Grade every score, or none.

    The first invalid score aborts the call and nothing is returned, so a
    corrupted input can never leak a partial distribution into a sitting.

    Args:
        scores: (candidate_id, subject_id, raw_score) rows
        table: Boundary table snapshot for the sitting

    Returns:
        Pending records ordered by (candidate_id, subject_id)

    Raises:
        ScoreOutOfRangeError: On the first score outside [0, 100]
        DuplicateResultError: If a (candidate, subject) pair repeats
    """
    records: dict[Tuple[str, str], ResultRecord] = {}
    for row in scores:
        candidate_id, subject_id, raw_score = RawScore(*row)
        key = (candidate_id, subject_id)
        if key in records:
            raise DuplicateResultError(key)
        records[key] = build_record(candidate_id, subject_id, raw_score, table)

    graded = [records[k] for k in sorted(records)]
    logger.debug(f"Graded {len(graded)} result(s) against {table!r}")
    return graded
