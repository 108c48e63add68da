"""
Module: storage.snapshots

Purpose:
    Save and restore complete batch snapshots, and keep a JSONL audit
    trail of regrades. A snapshot preserves exact integer raw scores, the
    full boundary table used for grading, every result state, and the
    batch lifecycle state.

Key Functions:
    - save_batch_snapshot(): Batch → JSON file
    - load_batch_snapshot(): JSON file → Batch (validated)
    - append_audit_events(): RegradeEvents → JSONL
    - read_audit_events(): JSONL → RegradeEvents

Dependencies:
    - storage.file_locking: portalocker-guarded access
    - grading.batch: Batch.to_dict / Batch.from_dict
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, List, Optional

import portalocker

from results_toolkit.core.models.records import RegradeEvent
from results_toolkit.core.schemas.validator import SnapshotValidationError
from results_toolkit.grading.batch import Batch
from results_toolkit.grading.config import GradingConfig

from .file_locking import locked_append_jsonl, locked_file, locked_read_json, locked_write_json

logger = logging.getLogger(__name__)


def save_batch_snapshot(batch: Batch, path: Path) -> None:
    """
    Write a batch snapshot under an exclusive lock.

    Args:
        batch: Batch to save
        path: Output path for the JSON snapshot
    """
    locked_write_json(path, batch.to_dict())
    logger.info(f"Saved batch {batch.id!r} ({batch.lifecycle_state}) to {path}")


def load_batch_snapshot(
    path: Path,
    *,
    strict: bool = True,
    config: Optional[GradingConfig] = None,
) -> Batch:
    """
    Load and validate a batch snapshot.

    Args:
        path: Snapshot JSON file
        strict: Validate against the JSON schemas as well as basic checks
        config: GradingConfig for the restored batch

    Raises:
        FileNotFoundError: If the file doesn't exist
        SnapshotValidationError: If the snapshot is malformed or inconsistent
    """
    try:
        data = locked_read_json(path)
    except json.JSONDecodeError as e:
        raise SnapshotValidationError(
            f"Snapshot is not valid JSON: {e}",
            path=str(path),
            errors=[str(e)],
        ) from e
    return Batch.from_dict(data, strict=strict, config=config)


def append_audit_events(path: Path, events: Iterable[RegradeEvent]) -> int:
    """
    Append regrade events to a JSONL audit file.

    Returns:
        Number of events written
    """
    return locked_append_jsonl(path, (e.to_dict() for e in events))


def read_audit_events(path: Path) -> List[RegradeEvent]:
    """
    Read every regrade event from a JSONL audit file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        SnapshotValidationError: If a line cannot be parsed
    """
    if not path.exists():
        raise FileNotFoundError(f"Audit file not found: {path}")

    events = []
    with locked_file(path, 'r', lock_type=portalocker.LOCK_SH) as f:
        for line_no, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                events.append(RegradeEvent.from_dict(json.loads(line)))
            except (json.JSONDecodeError, KeyError, ValueError) as e:
                raise SnapshotValidationError(
                    f"Error parsing audit line {line_no}: {e}",
                    path=str(path),
                    errors=[str(e)],
                ) from e
    return events
