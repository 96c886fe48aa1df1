# codesync/ingest/sync/status.py
"""
Run-level types for the sync orchestrator.

- SyncState: where a run is in its lifecycle
- SyncOptions: per-run knobs
- SyncReport: what a finished run did
- SyncStatus: answer to "what is the state of this codebase's index"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional

from codesync.ingest.state.schema import FileFailure, RunRecord, RunStatus, Snapshot

ProgressCallback = Callable[[int, int, str], None]


class SyncState(str, Enum):
    """
    Lifecycle of one run.

    IDLE -> SCANNING -> DIFFING -> RECONCILING -> COMPLETED
    RECONCILING -> INTERRUPTED on cancellation; any state -> FAILED on a
    fatal error. Resuming is simply a new run.
    """

    IDLE = "idle"
    SCANNING = "scanning"
    DIFFING = "diffing"
    RECONCILING = "reconciling"
    COMPLETED = "completed"
    INTERRUPTED = "interrupted"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SyncState.COMPLETED, SyncState.INTERRUPTED, SyncState.FAILED)


@dataclass
class SyncOptions:
    """
    Options for a single run.

    batch_size / max_workers override the configured values when set.
    on_progress is called as (processed, total, path) after every file; it
    runs on a worker thread.
    """

    force: bool = False
    batch_size: Optional[int] = None
    max_workers: Optional[int] = None
    on_progress: Optional[ProgressCallback] = None


@dataclass
class SyncReport:
    """Summary of a sync run."""

    root: str
    collection: str
    state: SyncState = SyncState.IDLE
    scanned: int = 0
    added: int = 0
    modified: int = 0
    removed: int = 0
    processed: int = 0
    total: int = 0
    chunks_added: int = 0
    chunks_deleted: int = 0
    failures: List[FileFailure] = field(default_factory=list)
    scan_errors: List[tuple] = field(default_factory=list)
    error: Optional[str] = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None

    @property
    def status(self) -> RunStatus:
        if self.state is SyncState.FAILED:
            return RunStatus.FAILED
        if self.state is SyncState.INTERRUPTED:
            return RunStatus.INTERRUPTED
        if self.state is SyncState.COMPLETED:
            if self.failures:
                return RunStatus.COMPLETED_WITH_FAILURES
            return RunStatus.COMPLETED
        if self.state is SyncState.IDLE:
            return RunStatus.NOT_STARTED
        return RunStatus.IN_PROGRESS

    @property
    def ok(self) -> bool:
        return self.status is RunStatus.COMPLETED

    @property
    def unchanged(self) -> int:
        return max(self.scanned - self.added - self.modified, 0)

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

    def to_record(self) -> RunRecord:
        return RunRecord(
            status=self.status,
            started_at=self.started_at,
            finished_at=self.finished_at,
            processed=self.processed,
            total=self.total,
            failures=list(self.failures),
            error=self.error,
        )

    def __str__(self) -> str:
        return (
            f"added {self.added}, modified {self.modified}, removed {self.removed}, "
            f"failed {len(self.failures)}, "
            f"chunks +{self.chunks_added}/-{self.chunks_deleted}"
        )


@dataclass
class SyncStatus:
    """Queryable status of a codebase's index."""

    root: str
    collection: str
    status: RunStatus
    processed: int = 0
    total: int = 0
    failures: List[FileFailure] = field(default_factory=list)
    error: Optional[str] = None
    state: Optional[SyncState] = None
    files: int = 0
    chunks: int = 0
    last_sync_at: Optional[datetime] = None

    @property
    def percentage(self) -> float:
        if self.total == 0:
            return 100.0 if self.status is not RunStatus.IN_PROGRESS else 0.0
        return round(100.0 * self.processed / self.total, 1)

    @classmethod
    def not_started(cls, root: str, collection: str) -> "SyncStatus":
        return cls(root=root, collection=collection, status=RunStatus.NOT_STARTED)

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> "SyncStatus":
        """
        Status from the last persisted run.

        A run recorded as in progress with no live run behind it was cut short
        by a crash and is reported as interrupted.
        """
        run = snapshot.last_run
        status = run.status if run else RunStatus.NOT_STARTED
        if status is RunStatus.IN_PROGRESS:
            status = RunStatus.INTERRUPTED
        return cls(
            root=snapshot.root,
            collection=snapshot.collection,
            status=status,
            processed=run.processed if run else 0,
            total=run.total if run else 0,
            failures=list(run.failures) if run else [],
            error=run.error if run else None,
            files=len(snapshot.files),
            chunks=snapshot.total_chunks(),
            last_sync_at=snapshot.last_sync_at,
        )

    def __str__(self) -> str:
        if self.status is RunStatus.IN_PROGRESS:
            return f"in progress ({self.processed}/{self.total})"
        if self.status is RunStatus.COMPLETED_WITH_FAILURES:
            return f"completed with failures ({len(self.failures)})"
        if self.status is RunStatus.FAILED:
            return f"failed: {self.error}"
        return self.status.value.replace("_", " ")


__all__ = [
    "ProgressCallback",
    "SyncState",
    "SyncOptions",
    "SyncReport",
    "SyncStatus",
]
