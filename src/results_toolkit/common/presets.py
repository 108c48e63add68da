"""Preset boundary tables.

Grading configuration screens describe a table as two dictionaries:
``{grade: min_score}`` and ``{grade: points}``. This module turns that
form into a validated BoundaryTable and ships the A-Level and O-Level
presets.
"""

from __future__ import annotations

from typing import Mapping

from results_toolkit.core.models.boundaries import BoundaryTable

# A-Level boundaries (percentage of max mark)
A_LEVEL_BOUNDARIES: dict[str, int] = {
    "A*": 90,
    "A": 80,
    "B": 70,
    "C": 60,
    "D": 50,
    "E": 40,
    "U": 0,
}

# UCAS tariff points per A-Level grade
A_LEVEL_POINTS: dict[str, int] = {
    "A*": 56,
    "A": 48,
    "B": 40,
    "C": 32,
    "D": 24,
    "E": 16,
    "U": 0,
}


def table_from_mapping(
    boundaries: Mapping[str, int],
    points: Mapping[str, int],
) -> BoundaryTable:
    """
    Build a BoundaryTable from ``{grade: min_score}`` and ``{grade: points}``.

    Raises:
        ConfigurationError: Any of the boundary table construction errors
    """
    return BoundaryTable(list(boundaries.items()), dict(points))


def a_level_table() -> BoundaryTable:
    """A*-U boundaries with UCAS points."""
    return table_from_mapping(A_LEVEL_BOUNDARIES, A_LEVEL_POINTS)


# O-Level boundaries (A1 distinction down to F9 fail)
O_LEVEL_BOUNDARIES: dict[str, int] = {
    "A1": 80,
    "B2": 70,
    "B3": 60,
    "C4": 50,
    "C5": 45,
    "C6": 40,
    "D7": 30,
    "E8": 20,
    "F9": 0,
}

# Points descend one per grade so averages rank like A-Level points
O_LEVEL_POINTS: dict[str, int] = {
    "A1": 8,
    "B2": 7,
    "B3": 6,
    "C4": 5,
    "C5": 4,
    "C6": 3,
    "D7": 2,
    "E8": 1,
    "F9": 0,
}


def o_level_table() -> BoundaryTable:
    """A1-F9 boundaries; F9 is the failing grade."""
    return table_from_mapping(O_LEVEL_BOUNDARIES, O_LEVEL_POINTS)
