# codesync/ingest/sync/orchestrator.py
"""
Sync orchestrator.

Coordinates one run per codebase:

    SCANNING     load snapshot, bootstrap collection, fingerprint the tree
    DIFFING      compute_plan(snapshot, scan)
    RECONCILING  plan paths in batches, each batch on a thread pool
    COMPLETED / INTERRUPTED / FAILED

Only one run per codebase identity may be active in a process; a second
request raises SyncInProgressError. Cancellation is checked between batches,
so in-flight files always finish their delete/upsert/commit sequence.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from codesync.core.config.schema import CodeSyncConfig, ScanConfig, SyncConfig
from codesync.core.exceptions import CodeSyncError, ScanError, SyncInProgressError
from codesync.core.paths import CodeSyncPaths
from codesync.ingest.chunking.base import Chunker
from codesync.ingest.chunking.line import LineChunker
from codesync.ingest.diff.differ import SyncPlan, compute_plan
from codesync.ingest.diff.executor import FileOutcome, ReconciliationPipeline
from codesync.ingest.diff.ignore import IgnoreRules
from codesync.ingest.diff.scanner import FileScanner
from codesync.ingest.fingerprint import FileFingerprint
from codesync.ingest.hashing import codebase_identity, collection_name, resolve_root
from codesync.ingest.retry import RetryPolicy
from codesync.ingest.state.manager import SnapshotStore
from codesync.ingest.state.schema import RunRecord, RunStatus, Snapshot
from codesync.ingest.sync.status import SyncOptions, SyncReport, SyncState, SyncStatus
from codesync.llm.embedding.base import EmbeddingPlugin
from codesync.llm.embedding.registry import get_embedding_plugin
from codesync.logging.logger import get_logger
from codesync.logging.tags import DIFF, SYNC
from codesync.vector_db.base import Filter, SearchResult, VectorDBPlugin
from codesync.vector_db.registry import get_vector_db_plugin

logger = get_logger(__name__)

# identity -> lock held for the duration of a run or a clear
_IDENTITY_LOCKS: Dict[str, threading.Lock] = {}
_IDENTITY_LOCKS_GUARD = threading.Lock()


def _identity_lock(identity: str) -> threading.Lock:
    with _IDENTITY_LOCKS_GUARD:
        lock = _IDENTITY_LOCKS.get(identity)
        if lock is None:
            lock = _IDENTITY_LOCKS[identity] = threading.Lock()
        return lock


def _under_skipped(path: str, scan_errors: List[Tuple[str, str]]) -> bool:
    """True if path, or a directory containing it, was skipped by the scanner."""
    for skipped, _reason in scan_errors:
        if skipped == ".":
            return True
        skipped = skipped.rstrip("/")
        if path == skipped or path.startswith(f"{skipped}/"):
            return True
    return False


class _Cancelled(Exception):
    pass


class SyncRun:
    """
    Handle to a run executing on a background thread.

    Usage:
        run = orchestrator.start_sync("./repo")
        run.progress        # (processed, total)
        run.cancel()        # stops after the current batch
        report = run.wait()
    """

    def __init__(self, root: str, collection: str) -> None:
        self.root = root
        self.identity = codebase_identity(root)
        self.report = SyncReport(root=root, collection=collection)
        self.exception: Optional[BaseException] = None
        self._cancel = threading.Event()
        self._done = threading.Event()
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> SyncState:
        return self.report.state

    @property
    def progress(self) -> Tuple[int, int]:
        with self._lock:
            return self.report.processed, self.report.total

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def done(self) -> bool:
        return self._done.is_set()

    def cancel(self) -> None:
        """Request cancellation; takes effect at the next batch boundary."""
        self._cancel.set()

    def wait(self, timeout: Optional[float] = None, *, raise_on_error: bool = False) -> SyncReport:
        """
        Block until the run finishes and return its report.

        Raises:
            TimeoutError: the run did not finish within timeout.
            CodeSyncError: the run failed and raise_on_error is set.
        """
        if not self._done.wait(timeout):
            raise TimeoutError(f"Sync of {self.root} still running after {timeout}s")
        if raise_on_error and self.exception is not None:
            raise self.exception
        return self.report

    def status(self) -> SyncStatus:
        processed, total = self.progress
        return SyncStatus(
            root=self.root,
            collection=self.report.collection,
            status=self.report.status,
            processed=processed,
            total=total,
            failures=list(self.report.failures),
            error=self.report.error,
            state=self.state,
        )

    def _set_state(self, state: SyncState) -> None:
        logger.debug(f"{SYNC} {self.root}: {self.report.state.value} -> {state.value}")
        self.report.state = state

    def _advance(self, outcome: FileOutcome) -> int:
        with self._lock:
            report = self.report
            report.processed += 1
            report.chunks_added += len(outcome.chunk_ids)
            report.chunks_deleted += outcome.deleted
            if outcome.failure is not None:
                report.failures.append(outcome.failure)
            return report.processed


class SyncOrchestrator:
    """
    Entry point for syncing codebases into a vector store.

    Usage:
        orchestrator = SyncOrchestrator.from_config(load_config())
        report = orchestrator.sync("./repo")
        status = orchestrator.get_sync_status("./repo")
        orchestrator.clear_index("./repo")
    """

    def __init__(
        self,
        *,
        vector_db: VectorDBPlugin,
        embedder: EmbeddingPlugin,
        chunker: Optional[Chunker] = None,
        store: Optional[SnapshotStore] = None,
        retry: Optional[RetryPolicy] = None,
        scan_config: Optional[ScanConfig] = None,
        sync_config: Optional[SyncConfig] = None,
    ) -> None:
        self._sync_cfg = sync_config or SyncConfig()
        self._scan_cfg = scan_config or ScanConfig()
        self._vdb = vector_db
        self._embedder = embedder
        self._chunker = chunker or LineChunker()
        self._store = store or SnapshotStore(CodeSyncPaths.snapshots(self._sync_cfg.data_dir))
        self._retry = retry or RetryPolicy.from_config(self._sync_cfg.retry)
        self._runs: Dict[str, SyncRun] = {}
        self._runs_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: CodeSyncConfig) -> "SyncOrchestrator":
        """Build an orchestrator with the plugins named in a config."""
        embedder = get_embedding_plugin(config.embedding.plugin_name, **config.embedding.kwargs)
        vector_db = get_vector_db_plugin(config.vector_db.kind, **config.vector_db.kwargs)
        chunker = LineChunker(
            chunk_lines=config.chunking.chunk_lines,
            overlap_lines=config.chunking.overlap_lines,
            max_chars=config.chunking.max_chars,
        )
        return cls(
            vector_db=vector_db,
            embedder=embedder,
            chunker=chunker,
            store=SnapshotStore(CodeSyncPaths.snapshots(config.sync.data_dir)),
            retry=RetryPolicy.from_config(config.sync.retry),
            scan_config=config.scan,
            sync_config=config.sync,
        )

    @property
    def store(self) -> SnapshotStore:
        return self._store

    @property
    def vector_db(self) -> VectorDBPlugin:
        return self._vdb

    def close(self) -> None:
        """Release the vector store client. Active runs must have finished."""
        self._vdb.close()

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def start_sync(self, root: str | Path, options: Optional[SyncOptions] = None) -> SyncRun:
        """
        Start a run on a background thread.

        Raises:
            ScanError: root is not an existing directory.
            SyncInProgressError: a run or clear is already active for root.
        """
        resolved = resolve_root(root)
        if not Path(resolved).is_dir():
            raise ScanError(resolved, "not an existing directory")
        run = SyncRun(resolved, collection_name(resolved))
        lock = _identity_lock(run.identity)
        if not lock.acquire(blocking=False):
            raise SyncInProgressError(resolved)

        with self._runs_lock:
            self._runs[run.identity] = run

        thread = threading.Thread(
            target=self._run,
            args=(run, options or SyncOptions(), lock),
            name=f"codesync-sync-{run.identity[:8]}",
            daemon=True,
        )
        run._thread = thread
        thread.start()
        return run

    def sync(self, root: str | Path, options: Optional[SyncOptions] = None) -> SyncReport:
        """
        Run a sync and block until it finishes.

        Per-file failures are reported in the returned SyncReport. Fatal
        errors (ScanError, SnapshotPersistError, collection bootstrap
        failures) are raised after the failed run has been recorded.
        """
        return self.start_sync(root, options).wait(raise_on_error=True)

    def get_sync_status(self, root: str | Path) -> SyncStatus:
        """Status of the active run, or of the last persisted run."""
        resolved = resolve_root(root)
        identity = codebase_identity(resolved)

        with self._runs_lock:
            run = self._runs.get(identity)
        if run is not None and not run.done():
            return run.status()

        if not self._store.exists(resolved):
            return SyncStatus.not_started(resolved, collection_name(resolved))
        return SyncStatus.from_snapshot(self._store.load(resolved))

    def clear_index(self, root: str | Path) -> bool:
        """
        Drop the collection and the snapshot of a codebase, both or neither.

        The snapshot is moved aside first; if dropping the collection fails it
        is put back and the error is raised.

        Returns:
            True if there was anything to clear.

        Raises:
            SyncInProgressError: a run is active for root.
        """
        resolved = resolve_root(root)
        identity = codebase_identity(resolved)
        collection = collection_name(resolved)
        lock = _identity_lock(identity)
        if not lock.acquire(blocking=False):
            raise SyncInProgressError(resolved)

        try:
            tombstones = self._store.move_aside(identity)
            try:
                existed = self._vdb.has_collection(collection)
                if existed:
                    self._vdb.drop_collection(collection)
            except Exception:
                self._store.restore(tombstones)
                logger.error(f"{SYNC} Could not drop '{collection}', snapshot restored")
                raise
            self._store.purge(tombstones)

            with self._runs_lock:
                self._runs.pop(identity, None)
        finally:
            lock.release()

        logger.info(f"{SYNC} Cleared index for {resolved}")
        return existed or tombstones is not None

    def search(
        self,
        root: str | Path,
        query: str,
        limit: int = 10,
        filter: Optional[Filter] = None,
    ) -> List[SearchResult]:
        """Similarity search over a synced codebase. Empty if it was never synced."""
        collection = collection_name(root)
        if not self._vdb.has_collection(collection):
            return []
        vector = self._retry.call(self._embedder.embed, [query], description="embed query")[0]
        return self._vdb.search(collection, vector, limit=limit, filter=filter)

    # -------------------------------------------------------------------------
    # Run
    # -------------------------------------------------------------------------

    def _run(self, run: SyncRun, options: SyncOptions, lock: threading.Lock) -> None:
        report = run.report
        snapshot: Optional[Snapshot] = None
        try:
            run._set_state(SyncState.SCANNING)
            snapshot = self._store.load(run.root)
            self._bootstrap_collection(snapshot)
            self._store.record_run(
                snapshot,
                RunRecord(status=RunStatus.IN_PROGRESS, started_at=report.started_at),
                synced=False,
            )
            fresh = self._scan(run, snapshot)

            run._set_state(SyncState.DIFFING)
            plan = self._plan(snapshot, fresh, options.force, report.scan_errors)
            report.added = len(plan.added)
            report.modified = len(plan.modified)
            report.removed = len(plan.removed)
            report.total = plan.total

            run._set_state(SyncState.RECONCILING)
            self._reconcile(run, snapshot, plan, fresh, options)
            run._set_state(SyncState.COMPLETED)

        except _Cancelled:
            run._set_state(SyncState.INTERRUPTED)
        except Exception as e:
            run.exception = e
            report.error = str(e)
            run._set_state(SyncState.FAILED)
            logger.error(f"{SYNC} Sync of {run.root} failed: {e}")
        finally:
            report.finished_at = datetime.now(timezone.utc)
            try:
                if snapshot is not None:
                    self._finish(snapshot, report)
            except CodeSyncError as e:
                if run.exception is None:
                    run.exception = e
                    report.error = str(e)
                    run._set_state(SyncState.FAILED)
                logger.error(f"{SYNC} Could not record run for {run.root}: {e}")
            finally:
                lock.release()
                run._done.set()

        logger.info(f"{SYNC} Sync of {run.root} {report.status.value}: {report}")

    def _bootstrap_collection(self, snapshot: Snapshot) -> None:
        collection = snapshot.collection
        if self._retry.call(self._vdb.has_collection, collection, description="has_collection"):
            return
        if snapshot.files or snapshot.pending:
            logger.warning(
                f"{SYNC} Collection '{collection}' is missing; "
                f"forgetting {len(snapshot.files)} indexed files"
            )
            self._store.reset(snapshot)
        self._retry.call(
            self._vdb.create_collection,
            collection,
            self._embedder.dimension,
            description=f"create collection {collection}",
        )

    def _scan(self, run: SyncRun, snapshot: Snapshot) -> Dict[str, FileFingerprint]:
        cfg = self._scan_cfg
        rules = IgnoreRules.for_root(
            run.root,
            extra_patterns=cfg.ignore_patterns,
            extra_extensions=cfg.extensions,
            use_ignore_files=cfg.use_ignore_files,
        )
        scanner = FileScanner(
            rules,
            previous=snapshot.fingerprints() if cfg.trust_mtime else None,
            trust_mtime=cfg.trust_mtime,
        )
        fresh = {fp.path: fp for fp in scanner.iter_fingerprints(run.root)}
        run.report.scanned = len(fresh)
        run.report.scan_errors = list(scanner.errors)
        return fresh

    def _plan(
        self,
        snapshot: Snapshot,
        fresh: Dict[str, FileFingerprint],
        force: bool,
        scan_errors: List[Tuple[str, str]],
    ) -> SyncPlan:
        plan = compute_plan(snapshot.fingerprints(), fresh, force=force)
        removed = set(plan.removed)
        modified = set(plan.modified)

        # A pending path was interrupted after its old ids were deleted. If it
        # is still on disk it must be re-indexed even when its content matches
        # the snapshot; if it is gone, its pending ids are cleaned up like a
        # removal.
        if snapshot.pending:
            pending = set(snapshot.pending)
            interrupted = (pending & set(fresh)) - plan.added
            orphaned = pending - set(snapshot.files) - set(fresh)
            if interrupted or orphaned:
                logger.info(
                    f"{SYNC} Resuming {len(interrupted)} interrupted files, "
                    f"cleaning {len(orphaned)} orphaned"
                )
            modified |= interrupted
            removed |= orphaned

        # A path the scanner could not read is absent from the scan but not
        # deleted from disk; its index entries stay until it is readable again.
        unreadable = {path for path in removed if _under_skipped(path, scan_errors)}
        if unreadable:
            logger.warning(
                f"{SYNC} Keeping {len(unreadable)} indexed files that could not be read"
            )
            removed -= unreadable

        result = SyncPlan(
            added=plan.added,
            modified=frozenset(modified),
            removed=frozenset(removed),
        )
        logger.info(f"{DIFF} Plan computed: {result.summary}")
        return result

    def _reconcile(
        self,
        run: SyncRun,
        snapshot: Snapshot,
        plan: SyncPlan,
        fresh: Dict[str, FileFingerprint],
        options: SyncOptions,
    ) -> None:
        work: List[Tuple[str, Optional[FileFingerprint]]] = [
            (path, None) for path in sorted(plan.removed)
        ]
        work.extend((path, fresh[path]) for path in plan.to_index)
        if not work:
            logger.info(f"{SYNC} {run.root} is up to date")
            return

        pipeline = ReconciliationPipeline(
            root=run.root,
            store=self._store,
            snapshot=snapshot,
            vector_db=self._vdb,
            embedder=self._embedder,
            chunker=self._chunker,
            retry=self._retry,
            embedding_batch_size=self._sync_cfg.embedding_batch_size,
            upsert_batch_size=self._sync_cfg.upsert_batch_size,
        )
        batch_size = options.batch_size or self._sync_cfg.batch_size
        max_workers = options.max_workers or self._sync_cfg.max_workers
        total = len(work)
        logger.info(f"{SYNC} Reconciling {total} files ({plan.summary})")

        def _process(item: Tuple[str, Optional[FileFingerprint]]) -> FileOutcome:
            outcome = pipeline.reconcile(*item)
            processed = run._advance(outcome)
            if options.on_progress is not None:
                options.on_progress(processed, total, outcome.path)
            return outcome

        with ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="codesync-file"
        ) as pool:
            for start in range(0, total, batch_size):
                if run.cancelled:
                    logger.info(f"{SYNC} Sync of {run.root} cancelled at {start}/{total}")
                    raise _Cancelled()
                batch = work[start : start + batch_size]
                futures = [pool.submit(_process, item) for item in batch]
                # Every file of the batch finishes before a fatal error (snapshot
                # persistence) is raised.
                wait(futures)
                for future in futures:
                    future.result()

    def _finish(self, snapshot: Snapshot, report: SyncReport) -> None:
        synced = report.status in (RunStatus.COMPLETED, RunStatus.COMPLETED_WITH_FAILURES)
        self._store.record_run(snapshot, report.to_record(), synced=synced)
        self._store.compact(snapshot)


__all__ = ["SyncOrchestrator", "SyncRun"]
