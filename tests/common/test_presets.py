"""
Unit Tests for Presets and Rounding Helpers
"""

import pytest

from results_toolkit.common.numbers import percentage, ratio, round_half_up
from results_toolkit.common.presets import (
    A_LEVEL_BOUNDARIES,
    A_LEVEL_POINTS,
    O_LEVEL_POINTS,
    a_level_table,
    o_level_table,
    table_from_mapping,
)
from results_toolkit.core.errors import UnmappedGradePointsError


class TestPresets:
    """Tests for preset boundary tables."""

    def test_a_level_table_orders_grades_from_top(self):
        assert a_level_table().grades == ("A*", "A", "B", "C", "D", "E", "U")

    def test_a_level_table_uses_ucas_points(self):
        assert a_level_table().points_map == A_LEVEL_POINTS

    def test_table_from_mapping_when_points_missing_then_raises(self):
        points = dict(A_LEVEL_POINTS)
        del points["E"]
        with pytest.raises(UnmappedGradePointsError):
            table_from_mapping(A_LEVEL_BOUNDARIES, points)

    def test_preset_dicts_are_not_shared_with_table(self):
        table = a_level_table()
        table.points_map["A*"] = 0
        assert table.points_of("A*") == 56


class TestRounding:
    """Tests for half-up rounding helpers."""

    @pytest.mark.parametrize(
        "value,expected",
        [(2.675, 2.68), (0.125, 0.13), (66.665, 66.67), (1.0, 1.0), (-0.125, -0.13)],
    )
    def test_round_half_up_when_exact_half_then_rounds_away_from_zero(self, value, expected):
        assert round_half_up(value, 2) == expected

    def test_percentage_when_two_of_three_then_66_67(self):
        assert percentage(2, 3) == 66.67

    def test_percentage_when_whole_is_zero_then_zero(self):
        assert percentage(0, 0) == 0.0

    def test_ratio_when_denominator_zero_then_zero(self):
        assert ratio(10, 0) == 0.0

    def test_ratio_when_exact_then_unchanged(self):
        assert ratio(96, 3) == 32.0

    def test_ratio_when_repeating_decimal_then_half_up(self):
        assert ratio(1, 8, 2) == 0.13


class TestOLevelPreset:
    """Tests for the O-Level preset table."""

    def test_o_level_table_orders_grades_from_top(self):
        assert o_level_table().grades == ("A1", "B2", "B3", "C4", "C5", "C6", "D7", "E8", "F9")

    @pytest.mark.parametrize(
        "score,expected",
        [(80, "A1"), (79, "B2"), (45, "C5"), (44, "C6"), (20, "E8"), (19, "F9"), (0, "F9")],
    )
    def test_o_level_grade_for(self, score, expected):
        assert o_level_table().grade_for(score)[0] == expected

    def test_o_level_fail_grade_is_f9(self):
        table = o_level_table()
        assert table.lowest_grade == "F9"
        assert table.points_of("F9") == 0
        assert table.points_map == O_LEVEL_POINTS
