"""
Module: grading.locks

Purpose:
    One re-entrant lock per batch id. Batches are single-writer; callers
    that drive a batch from several threads take its lock around every
    mutating call, and around summarize() when they need a consistent
    snapshot. Distinct batches never contend.

Key Classes:
    - BatchLockRegistry: Lazily creates and hands out per-batch locks

Dependencies:
    - threading (std)
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Generator

logger = logging.getLogger(__name__)


class BatchLockRegistry:
    """
    Per-batch lock table.

    Usage:
        locks = BatchLockRegistry()
        with locks.hold(batch.id):
            batch.verify_record("cand-1", "MATH")
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.RLock] = {}

    def lock_for(self, batch_id: str) -> threading.RLock:
        """Return the lock for batch_id, creating it on first use."""
        with self._guard:
            lock = self._locks.get(batch_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[batch_id] = lock
                logger.debug(f"Created lock for batch {batch_id!r}")
            return lock

    @contextmanager
    def hold(self, batch_id: str) -> Generator[None, None, None]:
        """Hold the batch's lock for the duration of the block."""
        lock = self.lock_for(batch_id)
        with lock:
            yield

    def discard(self, batch_id: str) -> None:
        """Forget a batch's lock (e.g. after the batch is archived)."""
        with self._guard:
            self._locks.pop(batch_id, None)

    def __contains__(self, batch_id: str) -> bool:
        with self._guard:
            return batch_id in self._locks

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
