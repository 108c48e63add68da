"""
Grading Package

Grade computation and results workflow:

    BoundaryTable → batch_grade() → Batch (Pending results)
        → verify / finalize each result → Batch.finalize()
        → summarize()

Modules:
    - engine: Pure score → grade mapping
    - workflow: Per-result state machine
    - batch: Batch lifecycle
    - aggregator: Statistics
    - locks: Per-batch locks
    - config: GradingConfig
"""

from .aggregator import summarize, summarize_by_subject, top_grade_share
from .batch import Batch, BatchState
from .config import GradingConfig
from .engine import GradedScore, RawScore, batch_grade, grade
from .locks import BatchLockRegistry
from .workflow import finalize, regrade, verify

__all__ = [
    "Batch",
    "BatchState",
    "BatchLockRegistry",
    "GradingConfig",
    "GradedScore",
    "RawScore",
    "batch_grade",
    "grade",
    "verify",
    "finalize",
    "regrade",
    "summarize",
    "summarize_by_subject",
    "top_grade_share",
]
