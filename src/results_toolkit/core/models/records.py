"""
Module: records

Purpose:
    Provides the ResultRecord dataclass - one candidate/subject outcome
    with its raw score, derived grade and points, and verification state.
    Records are frozen; every workflow step returns a new instance.

Key Classes:
    - ResultState: Pending → Verified → Finalized
    - ResultRecord: Graded result plus the boundary table snapshot used
    - RegradeEvent: Audit entry written whenever a result is regraded

Dependencies:
    - dataclasses (std)
    - enum (std)
    - .boundaries.BoundaryTable

Used By:
    - grading.engine: Creates Pending records
    - grading.workflow: Advances state / regrades
    - grading.batch: Stores records per (candidate, subject)
    - grading.aggregator: Reads grades and points
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .boundaries import BoundaryTable, is_valid_score


class ResultState(str, Enum):
    """Verification state of a single result."""
    PENDING = "pending"
    VERIFIED = "verified"
    FINALIZED = "finalized"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ResultRecord:
    """
    One candidate's graded result in one subject (immutable).

    Attributes:
        candidate_id: Candidate identifier from the registry
        subject_id: Subject identifier from the registry
        raw_score: Integer score 0-100 as submitted
        normalized_score: Score actually graded (equals raw_score)
        grade: Grade derived from normalized_score
        points: Equivalence points of grade
        boundary_table: Table snapshot the grade was derived from
        state: Verification state
        revision: Number of times this result has been regraded

    Invariants:
        - raw_score and normalized_score are integers in [0, 100]
        - (grade, points) == boundary_table.grade_for(normalized_score)
        - revision >= 0

    Example:
        >>> record.key
        ('cand-1', 'MATH')
        >>> record.state
        <ResultState.PENDING: 'pending'>
    """

    candidate_id: str
    subject_id: str
    raw_score: int
    normalized_score: int
    grade: str
    points: int
    boundary_table: BoundaryTable
    state: ResultState = ResultState.PENDING
    revision: int = 0

    def __post_init__(self) -> None:
        """Validate that the derived fields match the table snapshot."""
        if not is_valid_score(self.raw_score):
            raise ValueError(f"raw_score must be an integer 0-100: {self.raw_score!r}")
        if not is_valid_score(self.normalized_score):
            raise ValueError(f"normalized_score must be an integer 0-100: {self.normalized_score!r}")
        if not isinstance(self.state, ResultState):
            raise ValueError(f"Invalid result state: {self.state!r}")
        if self.revision < 0:
            raise ValueError(f"revision cannot be negative: {self.revision}")

        expected = self.boundary_table.grade_for(self.normalized_score)
        if (self.grade, self.points) != expected:
            raise ValueError(
                f"Result {self.candidate_id}/{self.subject_id} has grade "
                f"{self.grade!r} ({self.points} pts) but score {self.normalized_score} "
                f"maps to {expected[0]!r} ({expected[1]} pts)"
            )

    @property
    def key(self) -> Tuple[str, str]:
        return (self.candidate_id, self.subject_id)

    @property
    def is_finalized(self) -> bool:
        return self.state is ResultState.FINALIZED

    def to_dict(self, *, include_table: bool = True) -> dict:
        """
        Serialize to dictionary.

        Args:
            include_table: Embed the boundary table snapshot. Batches store
                the table once and omit it per record.
        """
        d = {
            "candidate_id": self.candidate_id,
            "subject_id": self.subject_id,
            "raw_score": self.raw_score,
            "normalized_score": self.normalized_score,
            "grade": self.grade,
            "points": self.points,
            "state": self.state.value,
            "revision": self.revision,
        }
        if include_table:
            d["boundary_table"] = self.boundary_table.to_dict()
        return d

    @classmethod
    def from_dict(cls, data: dict, table: Optional[BoundaryTable] = None) -> ResultRecord:
        """
        Deserialize from dictionary.

        Args:
            data: Dict produced by to_dict()
            table: Table snapshot to use when the dict does not embed one

        Raises:
            ValueError: If no table is available or the stored grade does
                not match the table
        """
        if "boundary_table" in data:
            table = BoundaryTable.from_dict(data["boundary_table"])
        if table is None:
            raise ValueError(
                f"No boundary table for result {data.get('candidate_id')}/{data.get('subject_id')}"
            )
        return cls(
            candidate_id=data["candidate_id"],
            subject_id=data["subject_id"],
            raw_score=data["raw_score"],
            normalized_score=data.get("normalized_score", data["raw_score"]),
            grade=data["grade"],
            points=data["points"],
            boundary_table=table,
            state=ResultState(data.get("state", ResultState.PENDING.value)),
            revision=data.get("revision", 0),
        )

    def __repr__(self) -> str:
        return (
            f"ResultRecord({self.candidate_id}/{self.subject_id}, "
            f"{self.raw_score} -> {self.grade!r}, {self.state})"
        )


@dataclass(frozen=True, slots=True)
class RegradeEvent:
    """
    Audit entry for one regrade.

    Attributes:
        candidate_id / subject_id: Result that was regraded
        previous_score / new_score: Raw scores before and after
        previous_grade / new_grade: Grades before and after
        previous_state: State the result was reset from
        revision: Revision number after the regrade
        reason: Free-text reason supplied by the caller
        recorded_at: ISO-8601 UTC timestamp
    """

    candidate_id: str
    subject_id: str
    previous_score: int
    new_score: int
    previous_grade: str
    new_grade: str
    previous_state: ResultState
    revision: int
    reason: str = ""
    recorded_at: str = ""

    def to_dict(self) -> dict:
        return {
            "candidate_id": self.candidate_id,
            "subject_id": self.subject_id,
            "previous_score": self.previous_score,
            "new_score": self.new_score,
            "previous_grade": self.previous_grade,
            "new_grade": self.new_grade,
            "previous_state": self.previous_state.value,
            "revision": self.revision,
            "reason": self.reason,
            "recorded_at": self.recorded_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> RegradeEvent:
        return cls(
            candidate_id=data["candidate_id"],
            subject_id=data["subject_id"],
            previous_score=data["previous_score"],
            new_score=data["new_score"],
            previous_grade=data["previous_grade"],
            new_grade=data["new_grade"],
            previous_state=ResultState(data["previous_state"]),
            revision=data["revision"],
            reason=data.get("reason", ""),
            recorded_at=data.get("recorded_at", ""),
        )
