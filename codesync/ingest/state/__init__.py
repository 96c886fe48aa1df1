# codesync/ingest/state/__init__.py
"""
Snapshot state for incremental sync.

Key exports:
- SnapshotStore: load snapshots, journal per-file mutations, compact
- Snapshot: root Pydantic model
- FileEntry: per-file fingerprint and owned chunk ids
"""

from codesync.ingest.state.manager import SnapshotStore
from codesync.ingest.state.schema import (
    FileEntry,
    FileFailure,
    RunRecord,
    RunStatus,
    Snapshot,
)

__all__ = [
    "SnapshotStore",
    "Snapshot",
    "FileEntry",
    "FileFailure",
    "RunRecord",
    "RunStatus",
]
