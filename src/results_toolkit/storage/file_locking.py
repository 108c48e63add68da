"""
Module: storage.file_locking

Purpose:
    Cross-platform file locking for snapshot and audit files that several
    processes may touch at once (e.g. a grading worker and a reporting job).
    Uses portalocker for Mac, Windows, and Linux compatibility.

Key Functions:
    - locked_file: Context manager for locked file access
    - locked_write_json: Replace a JSON file under an exclusive lock
    - locked_read_json: Read a JSON file under a shared lock
    - locked_append_jsonl: Append records to a JSONL file under an exclusive lock

Dependencies:
    - portalocker: Cross-platform file locking

Used By:
    - storage.snapshots
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Any, Dict, Generator, Iterable

import portalocker

logger = logging.getLogger(__name__)


@contextmanager
def locked_file(
    path: Path,
    mode: str = 'r',
    lock_type: int = portalocker.LOCK_EX,
) -> Generator[IO[str], None, None]:
    """
    Context manager for cross-platform locked file access.

    Args:
        path: Path to file.
        mode: File open mode ('r', 'a', 'a+', ...). Avoid 'w': it truncates
            before the lock is held.
        lock_type: Lock type (LOCK_EX for exclusive, LOCK_SH for shared).

    Yields:
        Open file handle with lock held.

    Example:
        >>> with locked_file(path, 'a') as f:
        ...     f.write('data')
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    # Ensure file exists for read modes
    if 'r' in mode and not path.exists():
        path.touch()

    with open(path, mode, encoding='utf-8') as f:
        portalocker.lock(f, lock_type)
        try:
            yield f
        finally:
            portalocker.unlock(f)


def locked_write_json(path: Path, data: Dict[str, Any]) -> None:
    """
    Replace the contents of a JSON file while holding an exclusive lock.

    Args:
        path: Target JSON file.
        data: JSON-serializable dictionary.
    """
    with locked_file(path, 'a+', portalocker.LOCK_EX) as f:
        f.seek(0)
        f.truncate()
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.flush()

    logger.debug(f"Wrote {path.name}")


def locked_read_json(path: Path) -> Dict[str, Any]:
    """
    Read a JSON file while holding a shared lock.

    Raises:
        FileNotFoundError: If the file doesn't exist
        json.JSONDecodeError: If the file is not valid JSON
    """
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with locked_file(path, 'r', portalocker.LOCK_SH) as f:
        return json.load(f)


def locked_append_jsonl(path: Path, records: Iterable[Dict[str, Any]]) -> int:
    """
    Append records to a JSONL file with one exclusive lock.

    Thread/process-safe for concurrent writers.

    Args:
        path: Path to JSONL file.
        records: Dictionaries to append, one per line.

    Returns:
        Number of lines written.

    Example:
        >>> locked_append_jsonl(audit_path, [{"candidate_id": "c1", "new_grade": "B"}])
        1
    """
    written = 0
    with locked_file(path, 'a', portalocker.LOCK_EX) as f:
        for record in records:
            f.write(json.dumps(record, ensure_ascii=False) + '\n')
            written += 1

    logger.debug(f"Appended {written} record(s) to {path.name}")
    return written
