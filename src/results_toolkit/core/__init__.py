"""
Results Toolkit Core Package

Shared data models, errors and snapshot utilities. Everything here is
pure data: no workflow rules, no I/O beyond explicit load/save helpers.

1. **Immutable Data Models**
   Frozen dataclasses; a state change produces a new record.

2. **Derived Values Are Checked**
   A record's grade and points must match its table snapshot, on
   construction and on every load.

3. **Tables Are Captured By Value**
   Results carry the exact table they were graded with.
"""

from .models import BoundaryTable, ResultRecord, ResultState, StatisticsSummary

__all__ = [
    "BoundaryTable",
    "ResultRecord",
    "ResultState",
    "StatisticsSummary",
]
