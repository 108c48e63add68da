"""
Module: grading.aggregator

Purpose:
    Read-only statistics over a batch's results: grade distribution,
    pass rate, average points, top-grade share, verification progress
    and score spread.

    Every figure is computed from integer counts and sums, then divided
    exactly and rounded half-up, so results never depend on the order in
    which records were processed. Empty inputs yield 0, not an error.

Key Functions:
    - summarize(): Whole-batch StatisticsSummary (incl. mode, quartiles,
      per-grade score ranges)
    - summarize_by_subject(): One summary per subject id
    - top_grade_share(): Share of results in the n highest grades

Dependencies:
    - statistics (std): median / mode / population standard deviation
    - common.numbers: Half-up rounding

Used By:
    - Reporting/publication consumers
"""

from __future__ import annotations

import statistics
from collections import Counter
from typing import TYPE_CHECKING, Dict, Optional, Sequence, Tuple

from results_toolkit.common.numbers import percentage, ratio, round_half_up
from results_toolkit.core.models.boundaries import BoundaryTable
from results_toolkit.core.models.records import ResultRecord, ResultState
from results_toolkit.core.models.summary import StatisticsSummary

from .config import GradingConfig

if TYPE_CHECKING:
    from .batch import Batch


def top_grade_share(
    batch: Batch,
    n: int,
    *,
    places: Optional[int] = None,
) -> float:
    """
    Percentage of results whose grade is among the n highest in the table.

    Args:
        batch: Batch to read
        n: Number of top grades (all grades if n exceeds the table size)
        places: Decimal places (defaults to the batch config)

    Raises:
        ValueError: If n < 1
    """
    if n < 1:
        raise ValueError(f"n must be >= 1: {n}")
    places = batch.config.decimal_places if places is None else places
    table = batch.boundary_table
    if table is None:
        return 0.0
    return _top_share(batch.records, table, n, places)


def _top_share(records: Sequence[ResultRecord], table: BoundaryTable, n: int, places: int) -> float:
    top = set(table.top_grades(n))
    return percentage(sum(1 for r in records if r.grade in top), len(records), places)


def _quartiles(scores: Sequence[int], median_score: float) -> Dict[str, float]:
    """Nearest-rank q1/q3 (index floor(n*p) of the sorted scores); q2 is the median."""
    ordered = sorted(scores)
    n = len(ordered)
    return {
        "q1": ordered[n // 4],
        "q2": median_score,
        "q3": ordered[(3 * n) // 4],
    }


def _summarize_records(
    records: Sequence[ResultRecord],
    table: Optional[BoundaryTable],
    *,
    batch_id: str,
    lifecycle_state: str,
    expected: int,
    config: GradingConfig,
    subject_id: Optional[str] = None,
) -> StatisticsSummary:
    places = config.decimal_places
    total = len(records)

    counts = Counter(r.grade for r in records)
    grades = table.grades if table is not None else tuple(sorted(counts))
    grade_counts = {g: counts.get(g, 0) for g in grades}
    grade_percentages = {g: percentage(c, total, places) for g, c in grade_counts.items()}

    passed = 0
    if table is not None:
        passed = sum(1 for r in records if r.grade != table.lowest_grade)

    state_counts = Counter(r.state for r in records)
    finalized = state_counts.get(ResultState.FINALIZED, 0)

    scores = [r.normalized_score for r in records]
    if scores:
        mean_score = ratio(sum(scores), total, places)
        median_score = round_half_up(statistics.median(scores), places)
        std_dev = round_half_up(statistics.pstdev(scores), places)
        mode_score = min(statistics.multimode(scores))
        quartiles = _quartiles(scores, median_score)
    else:
        mean_score = median_score = std_dev = 0.0
        mode_score = None
        quartiles = {}

    ranges: Dict[str, Tuple[int, int]] = {}
    for r in records:
        lo, hi = ranges.get(r.grade, (r.normalized_score, r.normalized_score))
        ranges[r.grade] = (min(lo, r.normalized_score), max(hi, r.normalized_score))
    grade_score_ranges = {g: ranges[g] for g in grades if g in ranges}

    return StatisticsSummary(
        batch_id=batch_id,
        lifecycle_state=lifecycle_state,
        total_results=total,
        expected_results=expected,
        grade_counts=grade_counts,
        grade_percentages=grade_percentages,
        pass_rate=percentage(passed, total, places),
        average_points=ratio(sum(r.points for r in records), total, places),
        top_grade_count=config.top_grade_count,
        top_grade_share=(
            _top_share(records, table, config.top_grade_count, places) if table is not None else 0.0
        ),
        state_counts={s.value: state_counts.get(s, 0) for s in ResultState},
        progress=percentage(finalized, expected or total, places),
        mean_score=mean_score,
        median_score=median_score,
        standard_deviation=std_dev,
        min_score=min(scores) if scores else None,
        max_score=max(scores) if scores else None,
        mode_score=mode_score,
        quartiles=quartiles,
        grade_score_ranges=grade_score_ranges,
        subject_id=subject_id,
    )


def summarize(batch: Batch, *, config: Optional[GradingConfig] = None) -> StatisticsSummary:
    """
    Summarize a batch at any lifecycle state.

    The aggregator does not judge whether a summary is publishable; it
    reports lifecycle_state alongside the counts and the caller must treat
    a non-finalized summary as provisional.

    Args:
        batch: Batch to read (never modified)
        config: Overrides the batch's GradingConfig

    Returns:
        StatisticsSummary

    Example:
        >>> summary = summarize(batch)
        >>> summary.pass_rate
        66.67
    """
    config = config or batch.config
    return _summarize_records(
        batch.records,
        batch.boundary_table,
        batch_id=batch.id,
        lifecycle_state=batch.lifecycle_state.value,
        expected=batch.total_candidates,
        config=config,
    )


def summarize_by_subject(
    batch: Batch,
    *,
    config: Optional[GradingConfig] = None,
) -> Dict[str, StatisticsSummary]:
    """
    One summary per subject, keyed by subject id in sorted order.

    Per-subject summaries use the subject's own result count as
    expected_results.
    """
    config = config or batch.config
    by_subject: Dict[str, list[ResultRecord]] = {}
    for record in batch.records:
        by_subject.setdefault(record.subject_id, []).append(record)

    return {
        subject_id: _summarize_records(
            by_subject[subject_id],
            batch.boundary_table,
            batch_id=batch.id,
            lifecycle_state=batch.lifecycle_state.value,
            expected=len(by_subject[subject_id]),
            config=config,
            subject_id=subject_id,
        )
        for subject_id in sorted(by_subject)
    }
