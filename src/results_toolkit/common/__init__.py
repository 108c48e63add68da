from .presets import (
    A_LEVEL_BOUNDARIES,
    A_LEVEL_POINTS,
    O_LEVEL_BOUNDARIES,
    O_LEVEL_POINTS,
    a_level_table,
    o_level_table,
    table_from_mapping,
)

__all__ = [
    "A_LEVEL_BOUNDARIES",
    "A_LEVEL_POINTS",
    "O_LEVEL_BOUNDARIES",
    "O_LEVEL_POINTS",
    "a_level_table",
    "o_level_table",
    "table_from_mapping",
]
