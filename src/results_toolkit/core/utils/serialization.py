"""
Serialization Utilities

Provides to/from JSON utilities for boundary tables and result records.

- Clean separation: `serialize_*` and `deserialize_*` functions
- All models have `to_dict()` and `from_dict()` methods
- Validation via schemas before deserialization
- Derived values (grade, points) are stored but re-checked against the
  table snapshot on load, so a tampered or stale file fails loudly
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from ..errors import ConfigurationError
from ..models.boundaries import BoundaryTable
from ..models.records import ResultRecord
from ..schemas.validator import (
    SnapshotValidationError,
    validate_boundary_table,
    validate_result_record,
)


# ─────────────────────────────────────────────────────────────────────────────
# Boundary Table Serialization
# ─────────────────────────────────────────────────────────────────────────────

def serialize_boundary_table(table: BoundaryTable) -> dict[str, Any]:
    """
    Serialize a BoundaryTable to a dictionary.

    The full table is written, never just a name, so audits can reproduce
    every grade.
    """
    return table.to_dict()


def deserialize_boundary_table(
    data: dict[str, Any],
    *,
    validate: bool = True,
    strict: bool = False,
) -> BoundaryTable:
    """
    Deserialize a BoundaryTable from a dictionary.

    Args:
        data: Dictionary from JSON
        validate: Whether to validate structure first
        strict: Whether to also validate against the JSON schema

    Returns:
        BoundaryTable instance

    Raises:
        SnapshotValidationError: If validate=True and data is malformed
        ConfigurationError: If the table breaks coverage/overlap rules
    """
    if validate:
        validate_boundary_table(data, strict=strict)
    return BoundaryTable.from_dict(data)


# ─────────────────────────────────────────────────────────────────────────────
# Result Record Serialization
# ─────────────────────────────────────────────────────────────────────────────

def serialize_record(record: ResultRecord, *, include_table: bool = True) -> dict[str, Any]:
    """Serialize a ResultRecord to a dictionary."""
    return record.to_dict(include_table=include_table)


def deserialize_record(
    data: dict[str, Any],
    *,
    table: Optional[BoundaryTable] = None,
    validate: bool = True,
    strict: bool = False,
    path: str = "",
) -> ResultRecord:
    """
    Deserialize a ResultRecord from a dictionary.

    Args:
        data: Dictionary from JSON
        table: Table snapshot for records that do not embed one
        validate: Whether to validate structure first
        strict: Whether to also validate against the JSON schema
        path: Location prefix for error messages

    Raises:
        SnapshotValidationError: If the data is malformed or inconsistent
            with its boundary table
    """
    if validate:
        validate_result_record(data, strict=strict, path=path)
    try:
        return ResultRecord.from_dict(data, table=table)
    except (ValueError, ConfigurationError) as e:
        raise SnapshotValidationError(str(e), path=path, errors=[str(e)]) from e


# ─────────────────────────────────────────────────────────────────────────────
# File Utilities
# ─────────────────────────────────────────────────────────────────────────────

def load_boundary_table_json(path: Path, *, strict: bool = False) -> BoundaryTable:
    """
    Load a boundary table from a JSON file.

    Raises:
        FileNotFoundError: If file doesn't exist
    """
    if not path.exists():
        raise FileNotFoundError(f"Boundary table file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    return deserialize_boundary_table(data, strict=strict)


def save_boundary_table_json(table: BoundaryTable, path: Path) -> None:
    """Save a boundary table to a JSON file."""
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(serialize_boundary_table(table), f, indent=2, ensure_ascii=False)


def load_records_jsonl(path: Path, *, validate: bool = True) -> list[ResultRecord]:
    """
    Load standalone result records (each embedding its table) from JSONL.

    Raises:
        FileNotFoundError: If file doesn't exist
        SnapshotValidationError: If any line is invalid
    """
    if not path.exists():
        raise FileNotFoundError(f"Records file not found: {path}")

    records = []
    with open(path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue

            try:
                data = json.loads(line)
            except json.JSONDecodeError as e:
                raise SnapshotValidationError(
                    f"Error parsing line {line_no}: {e}",
                    path=str(path),
                    errors=[str(e)],
                ) from e
            records.append(deserialize_record(data, validate=validate, path=f"line {line_no}"))

    return records


def save_records_jsonl(records: list[ResultRecord], path: Path) -> None:
    """Save result records, each with its table snapshot, to JSONL."""
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        for record in records:
            f.write(json.dumps(serialize_record(record), ensure_ascii=False))
            f.write("\n")
