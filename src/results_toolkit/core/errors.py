"""
Module: errors

Purpose:
    Exception taxonomy for the grading core. Every error is raised to the
    immediate caller with enough context (grades, scores, record keys) for
    an operator to act on it.

Hierarchy:
    ResultsError
    ├── ConfigurationError        (boundary table construction)
    │   ├── BoundaryOverlapError
    │   ├── BoundaryGapError
    │   ├── BoundaryRangeError
    │   └── UnmappedGradePointsError
    ├── InputError                (grading input)
    │   ├── ScoreOutOfRangeError
    │   ├── DuplicateResultError
    │   └── RecordNotFoundError
    └── StateError                (workflow preconditions)
        ├── InvalidTransitionError
        ├── IncompleteVerificationError
        └── BatchLockedError

Used By:
    - core.models.boundaries
    - grading.engine, grading.workflow, grading.batch
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

RecordKey = Tuple[str, str]


def format_key(key: RecordKey) -> str:
    """Render a (candidate_id, subject_id) key as ``candidate/subject``."""
    return f"{key[0]}/{key[1]}"


class ResultsError(Exception):
    """Base class for all grading core errors."""


# ─────────────────────────────────────────────────────────────────────────────
# Configuration errors
# ─────────────────────────────────────────────────────────────────────────────

class ConfigurationError(ResultsError):
    """Boundary table is invalid. Blocks grading until fixed."""


class BoundaryOverlapError(ConfigurationError):
    """Two entries share a minimum score, or a grade appears twice."""

    def __init__(self, message: str, grades: Sequence[str] = (), min_score: Optional[int] = None):
        super().__init__(message)
        self.grades = tuple(grades)
        self.min_score = min_score


class BoundaryGapError(ConfigurationError):
    """Some integer score in [0, 100] maps to no grade."""

    def __init__(self, message: str, unmapped_scores: Sequence[int] = ()):
        super().__init__(message)
        self.unmapped_scores = tuple(unmapped_scores)


class BoundaryRangeError(ConfigurationError):
    """A minimum score or points value is not a valid integer."""

    def __init__(self, message: str, grade: str = "", value: object = None):
        super().__init__(message)
        self.grade = grade
        self.value = value


class UnmappedGradePointsError(ConfigurationError):
    """Grade set of the boundaries and of the points table differ."""

    def __init__(self, message: str, grades: Sequence[str] = ()):
        super().__init__(message)
        self.grades = tuple(grades)


# ─────────────────────────────────────────────────────────────────────────────
# Input errors
# ─────────────────────────────────────────────────────────────────────────────

class InputError(ResultsError):
    """Grading input is invalid. Aborts the whole grading call."""


class ScoreOutOfRangeError(InputError):
    """Score is not an integer in [0, 100]."""

    def __init__(
        self,
        score: object,
        candidate_id: Optional[str] = None,
        subject_id: Optional[str] = None,
    ):
        where = ""
        if candidate_id is not None:
            where = f" for {candidate_id}/{subject_id}"
        super().__init__(f"Score out of range{where}: {score!r} (must be an integer 0-100)")
        self.score = score
        self.candidate_id = candidate_id
        self.subject_id = subject_id


class DuplicateResultError(InputError):
    """Same (candidate, subject) pair submitted more than once."""

    def __init__(self, key: RecordKey):
        super().__init__(f"Duplicate result for {format_key(key)}")
        self.key = key


class RecordNotFoundError(InputError, KeyError):
    """No record with the given key exists in the batch."""

    def __init__(self, key: RecordKey, batch_id: str = ""):
        super().__init__(f"No result {format_key(key)} in batch {batch_id!r}")
        self.key = key
        self.batch_id = batch_id

    def __str__(self) -> str:
        return str(self.args[0])


# ─────────────────────────────────────────────────────────────────────────────
# State errors
# ─────────────────────────────────────────────────────────────────────────────

class StateError(ResultsError):
    """Workflow precondition violated. Caller may retry a valid operation."""


class InvalidTransitionError(StateError):
    """Requested state change is not in the transition table."""

    def __init__(self, subject: str, current: object, target: object, reason: str = ""):
        message = f"Cannot move {subject} from {current} to {target}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.subject = subject
        self.current = current
        self.target = target


class IncompleteVerificationError(StateError):
    """Batch cannot finalize while results are missing or not Finalized."""

    def __init__(
        self,
        batch_id: str,
        blocking: Sequence[RecordKey] = (),
        blocking_count: Optional[int] = None,
        reason: str = "",
    ):
        self.batch_id = batch_id
        self.blocking = tuple(blocking)
        self.blocking_count = len(self.blocking) if blocking_count is None else blocking_count

        if reason:
            message = f"Batch {batch_id!r} cannot finalize: {reason}"
        else:
            listed = ", ".join(format_key(k) for k in self.blocking)
            hidden = self.blocking_count - len(self.blocking)
            if hidden > 0:
                listed = f"{listed} (+{hidden} more)"
            message = (
                f"Batch {batch_id!r} cannot finalize: "
                f"{self.blocking_count} result(s) not finalized: {listed}"
            )
        super().__init__(message)


class BatchLockedError(StateError):
    """Batch is Finalized and rejects further changes."""

    def __init__(self, batch_id: str, operation: str = "modify"):
        super().__init__(f"Batch {batch_id!r} is finalized; cannot {operation}")
        self.batch_id = batch_id
        self.operation = operation
