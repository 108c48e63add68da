"""
Storage Package

Locked snapshot and audit files for batches.
"""

from .snapshots import (
    save_batch_snapshot,
    load_batch_snapshot,
    append_audit_events,
    read_audit_events,
)

__all__ = [
    "save_batch_snapshot",
    "load_batch_snapshot",
    "append_audit_events",
    "read_audit_events",
]
