"""Exact rounding helpers for published figures.

Float division followed by round() gives banker's rounding and can
differ with summation order. These helpers divide integers as Decimals
and round half-up, so a figure depends only on the counts.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

Number = Union[int, float, Decimal]


def round_half_up(value: Number, places: int = 2) -> float:
    """Round half away from zero to ``places`` decimals."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def ratio(numerator: int, denominator: int, places: int = 2) -> float:
    """numerator / denominator, half-up rounded; 0 when denominator is 0."""
    if denominator == 0:
        return 0.0
    return round_half_up(Decimal(numerator) / Decimal(denominator), places)


def percentage(part: int, whole: int, places: int = 2) -> float:
    """part / whole * 100, half-up rounded; 0 when whole is 0."""
    if whole == 0:
        return 0.0
    return round_half_up(Decimal(part) * 100 / Decimal(whole), places)
