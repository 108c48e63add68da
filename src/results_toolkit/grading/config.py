"""
Module: grading.config

Purpose:
    Configuration dataclass for the grading workflow and statistics.
    Immutable configuration with validation on construction.

Key Classes:
    - GradingConfig: Statistics and error-reporting settings

Dependencies:
    - dataclasses (std)

Used By:
    - grading.batch: Blocking-record listing limit
    - grading.aggregator: Top-grade count, rounding
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GradingConfig:
    """
    Configuration for grading statistics (immutable).

    Attributes:
        top_grade_count: N for top_grade_share (3 = A*/A/B on A-Level)
        decimal_places: Places for half-up rounding of percentages/averages
        max_blocking_records_listed: How many blocking results an
            IncompleteVerificationError names before giving only a count

    Example:
        >>> config = GradingConfig(top_grade_count=2)
        >>> config.decimal_places
        2
    """

    top_grade_count: int = 3
    decimal_places: int = 2
    max_blocking_records_listed: int = 20

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if self.top_grade_count < 1:
            raise ValueError(f"top_grade_count must be >= 1: {self.top_grade_count}")
        if not 0 <= self.decimal_places <= 6:
            raise ValueError(f"decimal_places must be 0-6: {self.decimal_places}")
        if self.max_blocking_records_listed < 0:
            raise ValueError(
                f"max_blocking_records_listed must be non-negative: {self.max_blocking_records_listed}"
            )


DEFAULT_CONFIG = GradingConfig()
