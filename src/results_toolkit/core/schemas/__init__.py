"""
Schemas Package

JSON schema definitions and validation utilities.
"""

from .validator import (
    validate_boundary_table,
    validate_result_record,
    validate_batch,
    SnapshotValidationError,
    BATCH_SCHEMA_VERSION,
)

__all__ = [
    "validate_boundary_table",
    "validate_result_record",
    "validate_batch",
    "SnapshotValidationError",
    "BATCH_SCHEMA_VERSION",
]
