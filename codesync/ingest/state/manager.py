# codesync/ingest/state/manager.py
"""
Durable snapshot storage.

Layout, one pair of files per codebase identity:

    <dir>/<identity>.json            # compacted snapshot (atomic replace)
    <dir>/<identity>.journal.jsonl   # append-only per-file mutations

Every mutation is appended to the journal and fsynced before it is applied to
the in-memory Snapshot, so a crash loses at most the mutation being written.
compact() folds the journal into the base file (write temp, fsync,
os.replace) and truncates the journal. Journal records carry the generation
they produce; on load, records at or below the base generation are skipped,
which makes a crash between replace and truncate harmless.
"""

from __future__ import annotations

import json
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from codesync.core.exceptions import SnapshotPersistError
from codesync.ingest.hashing import codebase_identity, collection_name, resolve_root
from codesync.ingest.state.schema import FileEntry, RunRecord, Snapshot
from codesync.logging.logger import get_logger
from codesync.logging.tags import SNAPSHOT

logger = get_logger(__name__)

DEFAULT_COMPACT_EVERY = 1000
TOMBSTONE_SUFFIX = ".clearing"


def _apply(snapshot: Snapshot, record: Dict[str, Any]) -> None:
    """Apply one journal record to a snapshot in memory."""
    op = record["op"]
    path = record.get("path")

    if op == "put":
        snapshot.files[path] = FileEntry.model_validate(record["entry"])
        snapshot.pending.pop(path, None)
    elif op == "drop":
        snapshot.files.pop(path, None)
        snapshot.pending.pop(path, None)
    elif op == "pending":
        snapshot.pending[path] = list(record["ids"])
    elif op == "run":
        snapshot.last_run = RunRecord.model_validate(record["run"])
        if record.get("last_sync_at"):
            snapshot.last_sync_at = datetime.fromisoformat(record["last_sync_at"])
    elif op == "reset":
        snapshot.files.clear()
        snapshot.pending.clear()
    else:
        raise ValueError(f"Unknown journal op '{op}'")

    snapshot.generation = record["gen"]


class SnapshotStore:
    """
    Loads, mutates and persists snapshots.

    The store holds no snapshot of its own: callers pass the Snapshot value
    they got from load() into every mutation. Writes are serialized by one
    lock so concurrent file pipelines can commit safely.

    Usage:
        store = SnapshotStore(CodeSyncPaths.snapshots())
        snapshot = store.load("./repo")
        store.commit_file(snapshot, "src/a.ts", entry)
        store.compact(snapshot)
    """

    def __init__(self, directory: str | Path, compact_every: int = DEFAULT_COMPACT_EVERY) -> None:
        self._dir = Path(directory)
        self._compact_every = compact_every
        self._lock = threading.RLock()
        self._journal_lengths: Dict[str, int] = {}

    @property
    def directory(self) -> Path:
        return self._dir

    def base_path(self, identity: str) -> Path:
        return self._dir / f"{identity}.json"

    def journal_path(self, identity: str) -> Path:
        return self._dir / f"{identity}.journal.jsonl"

    def exists(self, root: str | Path) -> bool:
        identity = codebase_identity(root)
        return self.base_path(identity).exists() or self.journal_path(identity).exists()

    # -------------------------------------------------------------------------
    # Load
    # -------------------------------------------------------------------------

    def load(self, root: str | Path) -> Snapshot:
        """
        Load the snapshot for a codebase, replaying its journal.

        Returns an empty snapshot if none exists. A torn journal tail (crash
        mid-append) is dropped and the snapshot is compacted right away.
        """
        resolved = resolve_root(root)
        identity = codebase_identity(resolved)
        base = self.base_path(identity)

        with self._lock:
            if base.exists():
                try:
                    snapshot = Snapshot.model_validate_json(base.read_text(encoding="utf-8"))
                except (OSError, ValidationError, ValueError) as e:
                    raise SnapshotPersistError(f"Unreadable snapshot {base}: {e}") from e
            else:
                snapshot = Snapshot(
                    identity=identity,
                    root=resolved,
                    collection=collection_name(resolved),
                )

            replayed, torn = self._replay(snapshot)
            self._journal_lengths[identity] = replayed

            if torn or replayed >= self._compact_every:
                self.compact(snapshot)

        logger.debug(
            f"{SNAPSHOT} Loaded {identity}: {len(snapshot.files)} files, "
            f"generation {snapshot.generation}, {replayed} journal records"
        )
        return snapshot

    def _replay(self, snapshot: Snapshot) -> tuple[int, bool]:
        journal = self.journal_path(snapshot.identity)
        if not journal.exists():
            return 0, False

        replayed = 0
        base_generation = snapshot.generation
        try:
            with journal.open("r", encoding="utf-8") as f:
                for line_no, line in enumerate(f, start=1):
                    if not line.endswith("\n"):
                        logger.warning(f"{SNAPSHOT} Dropping torn journal tail at line {line_no}")
                        return replayed, True
                    try:
                        record = json.loads(line)
                        if record["gen"] <= base_generation:
                            continue
                        _apply(snapshot, record)
                    except (ValueError, KeyError, ValidationError) as e:
                        logger.warning(
                            f"{SNAPSHOT} Stopping journal replay at line {line_no}: {e}"
                        )
                        return replayed, True
                    replayed += 1
        except OSError as e:
            raise SnapshotPersistError(f"Unreadable snapshot journal {journal}: {e}") from e
        return replayed, False

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def commit_file(self, snapshot: Snapshot, path: str, entry: FileEntry) -> None:
        """Record a file's new fingerprint and chunk ids; clears its pending ids."""
        self._append(
            snapshot,
            {"op": "put", "path": path, "entry": entry.model_dump(mode="json")},
        )

    def drop_file(self, snapshot: Snapshot, path: str) -> None:
        """Forget a removed file."""
        self._append(snapshot, {"op": "drop", "path": path})

    def record_pending(self, snapshot: Snapshot, path: str, ids: List[str]) -> None:
        """Remember ids about to be upserted, so a crash cannot orphan them."""
        self._append(snapshot, {"op": "pending", "path": path, "ids": list(ids)})

    def record_run(self, snapshot: Snapshot, run: RunRecord, *, synced: bool) -> None:
        """Store the last run's outcome; `synced` also stamps last_sync_at."""
        record: Dict[str, Any] = {"op": "run", "run": run.model_dump(mode="json")}
        if synced:
            record["last_sync_at"] = (run.finished_at or datetime.now(timezone.utc)).isoformat()
        self._append(snapshot, record)

    def reset(self, snapshot: Snapshot) -> None:
        """Forget every file (used when the bound collection vanished)."""
        self._append(snapshot, {"op": "reset"})

    def _append(self, snapshot: Snapshot, record: Dict[str, Any]) -> None:
        with self._lock:
            record["gen"] = snapshot.generation + 1
            line = json.dumps(record, separators=(",", ":")) + "\n"
            journal = self.journal_path(snapshot.identity)
            try:
                self._dir.mkdir(parents=True, exist_ok=True)
                with journal.open("a", encoding="utf-8") as f:
                    f.write(line)
                    f.flush()
                    os.fsync(f.fileno())
            except OSError as e:
                raise SnapshotPersistError(f"Cannot append to {journal}: {e}") from e

            _apply(snapshot, record)

            count = self._journal_lengths.get(snapshot.identity, 0) + 1
            self._journal_lengths[snapshot.identity] = count
            if count >= self._compact_every:
                self.compact(snapshot)

    # -------------------------------------------------------------------------
    # Compaction and removal
    # -------------------------------------------------------------------------

    def compact(self, snapshot: Snapshot) -> None:
        """Write the full snapshot atomically and truncate the journal."""
        with self._lock:
            base = self.base_path(snapshot.identity)
            tmp = base.with_name(base.name + ".tmp")
            try:
                self._dir.mkdir(parents=True, exist_ok=True)
                with tmp.open("w", encoding="utf-8") as f:
                    f.write(snapshot.model_dump_json(indent=2))
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp, base)
                with self.journal_path(snapshot.identity).open("w", encoding="utf-8") as f:
                    f.flush()
                    os.fsync(f.fileno())
            except OSError as e:
                raise SnapshotPersistError(f"Cannot write snapshot {base}: {e}") from e

            self._journal_lengths[snapshot.identity] = 0
        logger.debug(f"{SNAPSHOT} Compacted {snapshot.identity} at generation {snapshot.generation}")

    def move_aside(self, identity: str) -> Optional[List[Path]]:
        """
        Rename the snapshot files to tombstones.

        Returns the tombstone paths (None if there was nothing to move), to be
        passed to restore() or purge().
        """
        moved: List[Path] = []
        with self._lock:
            try:
                for path in (self.base_path(identity), self.journal_path(identity)):
                    if path.exists():
                        tombstone = path.with_name(path.name + TOMBSTONE_SUFFIX)
                        os.replace(path, tombstone)
                        moved.append(tombstone)
            except OSError as e:
                self.restore(moved)
                raise SnapshotPersistError(f"Cannot move snapshot {identity} aside: {e}") from e
            self._journal_lengths.pop(identity, None)
        return moved or None

    def restore(self, tombstones: Optional[List[Path]]) -> None:
        for tombstone in tombstones or []:
            original = tombstone.with_name(tombstone.name[: -len(TOMBSTONE_SUFFIX)])
            os.replace(tombstone, original)

    def purge(self, tombstones: Optional[List[Path]]) -> None:
        for tombstone in tombstones or []:
            tombstone.unlink(missing_ok=True)


__all__ = ["SnapshotStore", "DEFAULT_COMPACT_EVERY"]
