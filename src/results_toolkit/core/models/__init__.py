"""
Core Models Package

Immutable, validated data models for grading.

All models in this package are frozen dataclasses. A workflow step never
edits a record in place; it produces a new record, and the owning batch
swaps it in. Tables are captured by value, so editing boundaries for a
future sitting cannot reclassify results that were already graded.

| Model | Role |
|-------|------|
| `BoundaryTable` | Validated score → grade → points mapping |
| `ResultRecord` | One candidate/subject result and its state |
| `RegradeEvent` | Audit entry for a regrade |
| `StatisticsSummary` | Derived batch statistics |
"""

from .boundaries import BoundaryTable, GradeBoundary, MIN_SCORE, MAX_SCORE
from .records import ResultRecord, ResultState, RegradeEvent
from .summary import StatisticsSummary

__all__ = [
    "BoundaryTable",
    "GradeBoundary",
    "MIN_SCORE",
    "MAX_SCORE",
    "ResultRecord",
    "ResultState",
    "RegradeEvent",
    "StatisticsSummary",
]
