"""
Module: summary

Purpose:
    Provides the StatisticsSummary dataclass - the derived, publishable
    view of a batch. Never stored and never mutates the batch; it is
    recomputed on demand by grading.aggregator.

Dependencies:
    - dataclasses (std)

Used By:
    - grading.aggregator
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class StatisticsSummary:
    """
    Aggregate statistics for one batch (or one subject within a batch).

    Percentages are in [0, 100] and, like averages, rounded half-up to
    the configured number of decimal places. Empty inputs report 0 rather
    than dividing by zero.

    Attributes:
        batch_id: Batch the summary was computed from
        lifecycle_state: Batch lifecycle state at computation time; callers
            must treat anything but "finalized" as provisional
        total_results: Number of results summarized
        expected_results: Batch total_candidates
        grade_counts: Grade -> count, in table order (top grade first)
        grade_percentages: Grade -> share of total_results
        pass_rate: Share of results not in the lowest grade
        average_points: Mean equivalence points
        top_grade_count: N used for top_grade_share
        top_grade_share: Share of results in the N highest grades
        state_counts: ResultState value -> count
        progress: Share of expected results that are Finalized
        mean_score / median_score / standard_deviation: Over normalized scores
        min_score / max_score: None when there are no results
        mode_score: Most frequent score (the lowest on a tie); None when empty
        quartiles: "q1" / "q2" / "q3" over the sorted scores; empty when empty
        grade_score_ranges: Grade -> (lowest, highest) score observed in
            that grade; grades nobody received are omitted
        subject_id: Set for per-subject summaries
    """

    batch_id: str
    lifecycle_state: str
    total_results: int
    expected_results: int
    grade_counts: Dict[str, int]
    grade_percentages: Dict[str, float]
    pass_rate: float
    average_points: float
    top_grade_count: int
    top_grade_share: float
    state_counts: Dict[str, int] = field(default_factory=dict)
    progress: float = 0.0
    mean_score: float = 0.0
    median_score: float = 0.0
    standard_deviation: float = 0.0
    min_score: Optional[int] = None
    max_score: Optional[int] = None
    mode_score: Optional[int] = None
    quartiles: Dict[str, float] = field(default_factory=dict)
    grade_score_ranges: Dict[str, Tuple[int, int]] = field(default_factory=dict)
    subject_id: Optional[str] = None

    # Holds dicts, so instances compare by value but are not hashable.
    __hash__ = None  # type: ignore[assignment]

    @property
    def is_provisional(self) -> bool:
        return self.lifecycle_state != "finalized"

    def to_dict(self) -> dict:
        """Serialize for reporting consumers."""
        d = {
            "batch_id": self.batch_id,
            "lifecycle_state": self.lifecycle_state,
            "total_results": self.total_results,
            "expected_results": self.expected_results,
            "grade_counts": dict(self.grade_counts),
            "grade_percentages": dict(self.grade_percentages),
            "pass_rate": self.pass_rate,
            "average_points": self.average_points,
            "top_grade_count": self.top_grade_count,
            "top_grade_share": self.top_grade_share,
            "state_counts": dict(self.state_counts),
            "progress": self.progress,
            "mean_score": self.mean_score,
            "median_score": self.median_score,
            "standard_deviation": self.standard_deviation,
            "min_score": self.min_score,
            "max_score": self.max_score,
            "mode_score": self.mode_score,
            "quartiles": dict(self.quartiles),
            "grade_score_ranges": {
                g: {"min": lo, "max": hi} for g, (lo, hi) in self.grade_score_ranges.items()
            },
        }
        if self.subject_id is not None:
            d["subject_id"] = self.subject_id
        return d
