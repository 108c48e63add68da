import pytest
import sys
from pathlib import Path

# Add src to sys.path so we can import results_toolkit
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from results_toolkit.common.presets import a_level_table  # noqa: E402
from results_toolkit.core.models.boundaries import BoundaryTable  # noqa: E402
from results_toolkit.grading.batch import Batch  # noqa: E402


# Common test fixtures
@pytest.fixture
def a_level():
    """A*=90 … U=0 with UCAS points."""
    return a_level_table()


@pytest.fixture
def pass_fail_table():
    """Two-grade table: P from 50, F below."""
    return BoundaryTable([("P", 50), ("F", 0)], {"P": 1, "F": 0})


@pytest.fixture
def scenario_scores():
    """Three results graded A*, B, U under the A-Level table."""
    return [
        ("cand-1", "MATH", 95),
        ("cand-2", "MATH", 72),
        ("cand-3", "MATH", 12),
    ]


@pytest.fixture
def graded_batch(a_level, scenario_scores):
    """A batch of three graded results, in Grading state."""
    batch = Batch("jun-2025", "June 2025 A-Level", 2025, total_candidates=3)
    batch.grade(scenario_scores, a_level)
    return batch


@pytest.fixture
def verifying_batch(graded_batch):
    """graded_batch moved to Verifying."""
    graded_batch.begin_verification()
    return graded_batch
