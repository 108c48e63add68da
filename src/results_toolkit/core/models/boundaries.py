"""
Module: boundaries

Purpose:
    Provides the BoundaryTable dataclass - the validated, immutable mapping
    from score ranges to grades and from grades to equivalence points.
    One table is configured per examination level and sitting, and a batch
    captures it as a snapshot at grading time.

Key Functions:
    - BoundaryTable(boundaries, points): Validate and freeze a table
    - BoundaryTable.grade_for(score): Highest applicable boundary wins
    - BoundaryTable.points_of(grade): Equivalence points of a grade
    - BoundaryTable.to_dict() / BoundaryTable.from_dict(data): Serialization

Dependencies:
    - dataclasses (std)
    - typing (std)
    - core.errors

Used By:
    - core.models.records.ResultRecord
    - grading.engine
    - grading.aggregator
    - core.utils.serialization
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Mapping, Tuple, Union

from ..errors import (
    BoundaryGapError,
    BoundaryOverlapError,
    BoundaryRangeError,
    ScoreOutOfRangeError,
    UnmappedGradePointsError,
)

MIN_SCORE = 0
MAX_SCORE = 100


def is_valid_score(score: object) -> bool:
    """True if score is an integer (not bool) within [MIN_SCORE, MAX_SCORE]."""
    return isinstance(score, int) and not isinstance(score, bool) and MIN_SCORE <= score <= MAX_SCORE


@dataclass(frozen=True, slots=True)
class GradeBoundary:
    """
    One row of a boundary table.

    Attributes:
        grade: Grade label, e.g. "A*"
        min_score: Lowest score (inclusive) that earns this grade
    """

    grade: str
    min_score: int

    def __repr__(self) -> str:
        return f"GradeBoundary({self.grade!r}, {self.min_score})"


BoundaryInput = Union[GradeBoundary, Tuple[str, int]]


@dataclass(frozen=True, slots=True)
class BoundaryTable:
    """
    Score to grade mapping for one examination sitting (immutable).

    Construction validates the table; an instance that exists is always
    valid. Entries are stored sorted by ``min_score`` descending, so the
    first entry is the top grade and the last is the lowest (minimum 0).

    Attributes:
        boundaries: Grade boundaries, descending by min_score
        points: (grade, points) pairs in the same order as boundaries

    Invariants:
        - Every integer score in [0, 100] maps to exactly one grade
        - Grades are unique; min scores are unique
        - Every grade has a non-negative integer points entry

    Example:
        >>> table = BoundaryTable([("A", 70), ("B", 40), ("U", 0)],
        ...                       {"A": 3, "B": 2, "U": 0})
        >>> table.grade_for(70)
        ('A', 3)
        >>> table.grade_for(69)
        ('B', 2)
    """

    boundaries: Tuple[GradeBoundary, ...]
    points: Tuple[Tuple[str, int], ...]

    def __init__(
        self,
        boundaries: Iterable[BoundaryInput],
        points: Union[Mapping[str, int], Iterable[Tuple[str, int]]],
    ) -> None:
        entries = tuple(_coerce_boundary(b) for b in boundaries)
        points_map = dict(points.items() if isinstance(points, Mapping) else points)

        ordered = _validate_boundaries(entries)
        _validate_points(ordered, points_map)

        object.__setattr__(self, "boundaries", ordered)
        object.__setattr__(
            self, "points", tuple((b.grade, points_map[b.grade]) for b in ordered)
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Properties
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def grades(self) -> Tuple[str, ...]:
        """Grades from highest to lowest."""
        return tuple(b.grade for b in self.boundaries)

    @property
    def top_grade(self) -> str:
        return self.boundaries[0].grade

    @property
    def lowest_grade(self) -> str:
        """The grade whose boundary is 0; results with it count as fails."""
        return self.boundaries[-1].grade

    @property
    def points_map(self) -> dict[str, int]:
        """Points as a fresh dictionary (safe to mutate)."""
        return dict(self.points)

    # ─────────────────────────────────────────────────────────────────────────
    # Lookup
    # ─────────────────────────────────────────────────────────────────────────

    def grade_for(self, score: int) -> Tuple[str, int]:
        """
        Map a score to (grade, points).

        The grade is the one whose min_score is the greatest value <= score,
        so a score exactly on a boundary receives that boundary's grade.

        Args:
            score: Integer score in [0, 100]

        Returns:
            (grade, points) tuple

        Raises:
            ScoreOutOfRangeError: If score is not an integer in [0, 100]
        """
        if not is_valid_score(score):
            raise ScoreOutOfRangeError(score)
        for boundary in self.boundaries:
            if score >= boundary.min_score:
                return boundary.grade, self.points_of(boundary.grade)
        # Unreachable: validation guarantees a boundary at 0
        raise BoundaryGapError(f"No boundary covers score {score}", unmapped_scores=(score,))

    def points_of(self, grade: str) -> int:
        for g, p in self.points:
            if g == grade:
                return p
        raise UnmappedGradePointsError(f"Unknown grade: {grade!r}", grades=(grade,))

    def rank_of(self, grade: str) -> int:
        """Zero-based rank of a grade (0 = top grade)."""
        try:
            return self.grades.index(grade)
        except ValueError:
            raise UnmappedGradePointsError(f"Unknown grade: {grade!r}", grades=(grade,)) from None

    def top_grades(self, n: int) -> Tuple[str, ...]:
        """The n highest-ranked grades (all grades if n exceeds the count)."""
        if n < 1:
            raise ValueError(f"n must be >= 1: {n}")
        return self.grades[:n]

    def score_range(self, grade: str) -> Tuple[int, int]:
        """Inclusive (low, high) score range covered by a grade."""
        rank = self.rank_of(grade)
        low = self.boundaries[rank].min_score
        high = MAX_SCORE if rank == 0 else self.boundaries[rank - 1].min_score - 1
        return low, high

    def __iter__(self) -> Iterator[GradeBoundary]:
        return iter(self.boundaries)

    def __len__(self) -> int:
        return len(self.boundaries)

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        """
        Serialize the full table (not just an identifier).

        Returns:
            Dict with ordered boundaries and points
        """
        return {
            "boundaries": [
                {"grade": b.grade, "min_score": b.min_score} for b in self.boundaries
            ],
            "points": {g: p for g, p in self.points},
        }

    @classmethod
    def from_dict(cls, data: dict) -> BoundaryTable:
        """Deserialize and re-validate a table."""
        return cls(
            [(b["grade"], b["min_score"]) for b in data["boundaries"]],
            data["points"],
        )

    def __repr__(self) -> str:
        rows = ", ".join(f"{b.grade}={b.min_score}" for b in self.boundaries)
        return f"BoundaryTable({rows})"


# ─────────────────────────────────────────────────────────────────────────────
# Validation helpers
# ─────────────────────────────────────────────────────────────────────────────

def _coerce_boundary(entry: BoundaryInput) -> GradeBoundary:
    if isinstance(entry, GradeBoundary):
        return entry
    if not isinstance(entry, (tuple, list)) or len(entry) != 2:
        raise BoundaryRangeError(
            f"Boundary entry must be a (grade, min_score) pair: {entry!r}",
            value=entry,
        )
    grade, min_score = entry
    return GradeBoundary(grade=grade, min_score=min_score)


def _validate_boundaries(entries: Tuple[GradeBoundary, ...]) -> Tuple[GradeBoundary, ...]:
    """Check ranges, uniqueness and coverage; return entries sorted descending."""
    if not entries:
        raise BoundaryGapError(
            "Boundary table is empty",
            unmapped_scores=tuple(range(MIN_SCORE, MAX_SCORE + 1)),
        )

    for entry in entries:
        if not isinstance(entry.grade, str) or not entry.grade:
            raise BoundaryRangeError(f"Invalid grade label: {entry.grade!r}", value=entry.grade)
        if not is_valid_score(entry.min_score):
            raise BoundaryRangeError(
                f"Boundary for {entry.grade!r} must be an integer 0-100: {entry.min_score!r}",
                grade=entry.grade,
                value=entry.min_score,
            )

    seen_grades: dict[str, int] = {}
    seen_scores: dict[int, str] = {}
    for entry in entries:
        if entry.grade in seen_grades:
            raise BoundaryOverlapError(
                f"Grade {entry.grade!r} appears more than once",
                grades=(entry.grade,),
            )
        if entry.min_score in seen_scores:
            other = seen_scores[entry.min_score]
            raise BoundaryOverlapError(
                f"Grades {other!r} and {entry.grade!r} share boundary {entry.min_score}",
                grades=(other, entry.grade),
                min_score=entry.min_score,
            )
        seen_grades[entry.grade] = entry.min_score
        seen_scores[entry.min_score] = entry.grade

    ordered = tuple(sorted(entries, key=lambda b: b.min_score, reverse=True))

    lowest = ordered[-1]
    if lowest.min_score != MIN_SCORE:
        raise BoundaryGapError(
            f"Scores {MIN_SCORE}-{lowest.min_score - 1} map to no grade "
            f"(lowest boundary is {lowest.grade!r} at {lowest.min_score})",
            unmapped_scores=tuple(range(MIN_SCORE, lowest.min_score)),
        )
    return ordered


def _validate_points(ordered: Tuple[GradeBoundary, ...], points: dict[str, int]) -> None:
    grades = [b.grade for b in ordered]

    missing = [g for g in grades if g not in points]
    if missing:
        raise UnmappedGradePointsError(f"Grades without points: {missing}", grades=missing)

    unknown = sorted(g for g in points if g not in grades)
    if unknown:
        raise UnmappedGradePointsError(f"Points given for unknown grades: {unknown}", grades=unknown)

    for grade in grades:
        value = points[grade]
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise BoundaryRangeError(
                f"Points for {grade!r} must be a non-negative integer: {value!r}",
                grade=grade,
                value=value,
            )
