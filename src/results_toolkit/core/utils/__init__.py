"""
Utils Package

Serialization and utility functions.
"""

from .serialization import (
    serialize_boundary_table,
    deserialize_boundary_table,
    serialize_record,
    deserialize_record,
    load_boundary_table_json,
    save_boundary_table_json,
    load_records_jsonl,
    save_records_jsonl,
)

__all__ = [
    "serialize_boundary_table",
    "deserialize_boundary_table",
    "serialize_record",
    "deserialize_record",
    "load_boundary_table_json",
    "save_boundary_table_json",
    "load_records_jsonl",
    "save_records_jsonl",
]
