# codesync/ingest/sync/__init__.py
"""
Run coordination for incremental sync.

Key exports:
- SyncOrchestrator: start_sync / sync / get_sync_status / clear_index / search
- SyncRun: handle to a background run (progress, cancel, wait)
- SyncOptions, SyncReport, SyncStatus, SyncState
"""

from codesync.ingest.sync.orchestrator import SyncOrchestrator, SyncRun
from codesync.ingest.sync.status import SyncOptions, SyncReport, SyncState, SyncStatus

__all__ = [
    "SyncOrchestrator",
    "SyncRun",
    "SyncOptions",
    "SyncReport",
    "SyncState",
    "SyncStatus",
]
