# codesync/ingest/state/schema.py
"""
Snapshot schema for incremental sync.

A snapshot (one per codebase identity) records the last successfully
synchronized state:
- per file: the fingerprint it was indexed with and the chunk ids it owns
- pending chunk ids written for a file whose commit never happened
- the outcome of the last run, so status survives a restart

Every chunk id listed under `files` exists in the bound collection. The
snapshot, not the vector store, answers "which chunks does file X own".
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from codesync.ingest.fingerprint import FileFingerprint


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FileEntry(BaseModel):
    """State entry for a single file."""

    model_config = ConfigDict(extra="forbid")

    content_hash: str = Field(..., description="SHA-256 hash of file content")
    size_bytes: int = Field(..., description="File size in bytes")
    mtime_ns: int = Field(default=0, description="Modification time in nanoseconds")
    chunk_ids: List[str] = Field(
        default_factory=list, description="Chunk ids owned by this file, in chunk order"
    )
    synced_at: datetime = Field(default_factory=_utcnow)

    def fingerprint(self, path: str) -> FileFingerprint:
        return FileFingerprint(
            path=path,
            content_hash=self.content_hash,
            size_bytes=self.size_bytes,
            mtime_ns=self.mtime_ns,
        )

    @classmethod
    def from_fingerprint(cls, fp: FileFingerprint, chunk_ids: List[str]) -> "FileEntry":
        return cls(
            content_hash=fp.content_hash,
            size_bytes=fp.size_bytes,
            mtime_ns=fp.mtime_ns,
            chunk_ids=list(chunk_ids),
        )


class RunStatus(str, Enum):
    """Outcome of a sync run as seen by callers."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    COMPLETED_WITH_FAILURES = "completed_with_failures"
    FAILED = "failed"
    INTERRUPTED = "interrupted"


class FileFailure(BaseModel):
    """A file whose reconciliation failed; its snapshot entry was left alone."""

    model_config = ConfigDict(extra="forbid")

    path: str
    stage: str = Field(..., description="read, delete, embed, upsert or commit")
    error: str


class RunRecord(BaseModel):
    """Summary of the last sync run."""

    model_config = ConfigDict(extra="forbid")

    status: RunStatus
    started_at: datetime
    finished_at: Optional[datetime] = None
    processed: int = 0
    total: int = 0
    failures: List[FileFailure] = Field(default_factory=list)
    error: Optional[str] = None


class Snapshot(BaseModel):
    """
    Root model of a snapshot file.

    `generation` grows by one with every durable mutation.
    """

    model_config = ConfigDict(extra="forbid")

    schema_version: int = Field(default=1)
    identity: str = Field(..., description="MD5 of the resolved codebase root")
    root: str = Field(..., description="Resolved absolute codebase root")
    collection: str = Field(..., description="Bound vector store collection")
    generation: int = Field(default=0)
    created_at: datetime = Field(default_factory=_utcnow)
    last_sync_at: Optional[datetime] = None
    files: Dict[str, FileEntry] = Field(
        default_factory=dict, description="Files keyed by relative POSIX path"
    )
    pending: Dict[str, List[str]] = Field(
        default_factory=dict,
        description="Chunk ids upserted for a path but not yet committed",
    )
    last_run: Optional[RunRecord] = None

    def fingerprints(self) -> Dict[str, FileFingerprint]:
        return {path: entry.fingerprint(path) for path, entry in self.files.items()}

    def chunk_ids_for(self, path: str) -> List[str]:
        entry = self.files.get(path)
        return list(entry.chunk_ids) if entry else []

    def stale_ids_for(self, path: str) -> List[str]:
        """Owned ids plus pending ids from an interrupted attempt, deduplicated."""
        seen: Dict[str, None] = dict.fromkeys(self.chunk_ids_for(path))
        seen.update(dict.fromkeys(self.pending.get(path, [])))
        return list(seen)

    def total_chunks(self) -> int:
        return sum(len(e.chunk_ids) for e in self.files.values())


__all__ = [
    "FileEntry",
    "RunStatus",
    "FileFailure",
    "RunRecord",
    "Snapshot",
]
