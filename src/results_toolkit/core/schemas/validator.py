"""
Schema Validation Utilities

Validates snapshot payloads (boundary tables, result records, batches)
before they are turned back into models.

Basic checks run on every load and catch the mistakes that would corrupt
an audit: a missing field, a non-integer raw score, an unknown state.
Strict mode additionally validates against the bundled JSON Schema files.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema


# Schema version constants
BATCH_SCHEMA_VERSION = 1

RESULT_STATES = ("pending", "verified", "finalized")
BATCH_STATES = ("open", "grading", "verifying", "finalized")


# Load schemas lazily
_SCHEMAS: dict[str, dict] = {}


def _load_schema(name: str) -> dict:
    """Load a schema from the schemas directory."""
    if name not in _SCHEMAS:
        schema_path = Path(__file__).parent / f"{name}.schema.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")
        with open(schema_path, "r", encoding="utf-8") as f:
            _SCHEMAS[name] = json.load(f)
    return _SCHEMAS[name]


class SnapshotValidationError(Exception):
    """Raised when snapshot data fails schema validation."""

    def __init__(self, message: str, path: str = "", errors: list[str] | None = None):
        super().__init__(message)
        self.path = path
        self.errors = errors or []


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _require(data: dict[str, Any], required: list[str], path: str) -> None:
    missing = [f for f in required if f not in data]
    if missing:
        raise SnapshotValidationError(
            f"Missing required fields: {missing}",
            path=path,
            errors=[f"Missing field: {f}" for f in missing],
        )


def _strict(data: Any, schema_name: str) -> None:
    schema = _load_schema(schema_name)
    try:
        jsonschema.validate(data, schema)
    except jsonschema.ValidationError as e:
        raise SnapshotValidationError(
            f"Schema validation failed: {e.message}",
            path=".".join(str(p) for p in e.absolute_path),
            errors=[e.message],
        ) from e


def validate_boundary_table(data: dict[str, Any], *, strict: bool = False, path: str = "") -> None:
    """
    Validate a serialized boundary table.

    Only structural checks happen here; coverage and overlap rules are
    enforced by BoundaryTable itself on construction.

    Args:
        data: Boundary table dictionary
        strict: If True, also validate against the JSON schema
        path: Location prefix for error messages

    Raises:
        SnapshotValidationError: If data is invalid
    """
    if not isinstance(data, dict):
        raise SnapshotValidationError("boundary table must be a dict", path=path)
    _require(data, ["boundaries", "points"], path)

    boundaries = data["boundaries"]
    if not isinstance(boundaries, list) or not boundaries:
        raise SnapshotValidationError(
            "boundaries must be a non-empty list",
            path=f"{path}.boundaries".lstrip("."),
        )
    for i, row in enumerate(boundaries):
        row_path = f"{path}.boundaries[{i}]".lstrip(".")
        if not isinstance(row, dict):
            raise SnapshotValidationError("boundary must be a dict", path=row_path)
        _require(row, ["grade", "min_score"], row_path)
        if not _is_int(row["min_score"]):
            raise SnapshotValidationError(
                f"Invalid min_score: {row['min_score']!r} (must be an integer)",
                path=f"{row_path}.min_score",
            )

    if not isinstance(data["points"], dict):
        raise SnapshotValidationError("points must be a dict", path=f"{path}.points".lstrip("."))

    if strict:
        _strict(data, "boundary_table")


def validate_result_record(data: dict[str, Any], *, strict: bool = False, path: str = "") -> None:
    """
    Validate a serialized result record.

    Args:
        data: Record dictionary
        strict: If True, also validate against the JSON schema
        path: Location prefix for error messages

    Raises:
        SnapshotValidationError: If data is invalid
    """
    if not isinstance(data, dict):
        raise SnapshotValidationError("record must be a dict", path=path)
    _require(data, ["candidate_id", "subject_id", "raw_score", "grade", "points", "state"], path)

    # Raw scores must survive a round trip exactly
    for name in ("raw_score", "normalized_score", "points"):
        if name in data and not _is_int(data[name]):
            raise SnapshotValidationError(
                f"Invalid {name}: {data[name]!r} (must be an integer)",
                path=f"{path}.{name}".lstrip("."),
            )

    if data["state"] not in RESULT_STATES:
        raise SnapshotValidationError(
            f"Invalid state: {data['state']!r}",
            path=f"{path}.state".lstrip("."),
        )

    if "boundary_table" in data:
        validate_boundary_table(data["boundary_table"], strict=strict, path=f"{path}.boundary_table".lstrip("."))

    if strict:
        _strict(data, "result_record")


def validate_batch(data: dict[str, Any], *, strict: bool = False) -> None:
    """
    Validate a serialized batch snapshot.

    Args:
        data: Batch dictionary
        strict: If True, also validate against the JSON schemas

    Raises:
        SnapshotValidationError: If data is invalid
    """
    _require(
        data,
        ["schema_version", "id", "name", "exam_year", "total_candidates", "lifecycle_state", "records"],
        "",
    )

    version = data.get("schema_version")
    if version != BATCH_SCHEMA_VERSION:
        raise SnapshotValidationError(
            f"Unsupported batch schema version: {version} (expected {BATCH_SCHEMA_VERSION})",
            path="schema_version",
        )

    if not isinstance(data["id"], str) or not data["id"]:
        raise SnapshotValidationError(f"Invalid batch id: {data['id']!r}", path="id")
    if not _is_int(data["exam_year"]):
        raise SnapshotValidationError(f"Invalid exam_year: {data['exam_year']!r}", path="exam_year")
    if not _is_int(data["total_candidates"]) or data["total_candidates"] < 0:
        raise SnapshotValidationError(
            f"Invalid total_candidates: {data['total_candidates']!r} (must be a non-negative integer)",
            path="total_candidates",
        )

    if data["lifecycle_state"] not in BATCH_STATES:
        raise SnapshotValidationError(
            f"Invalid lifecycle_state: {data['lifecycle_state']!r}",
            path="lifecycle_state",
        )

    records = data["records"]
    if not isinstance(records, list):
        raise SnapshotValidationError("records must be a list", path="records")

    table = data.get("boundary_table")
    if records and table is None:
        raise SnapshotValidationError(
            "Graded batch must carry its boundary table snapshot",
            path="boundary_table",
        )
    if table is not None:
        validate_boundary_table(table, strict=strict, path="boundary_table")

    for i, record in enumerate(records):
        validate_result_record(record, strict=strict, path=f"records[{i}]")

    if strict:
        _strict(data, "batch")
