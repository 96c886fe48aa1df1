# codesync/ingest/diff/executor.py
"""
Reconciliation pipeline for incremental sync.

Turns one planned path into vector store mutations and one snapshot commit.

For an added or modified file:
1. read the file, chunk it, assign deterministic chunk ids
2. embed chunk texts in bounded batches
3. delete every id the snapshot says the path owns, plus pending ids left by
   an interrupted attempt
4. record the new ids as pending, upsert them in bounded batches
5. commit the file entry (fingerprint + chunk ids) to the snapshot

For a removed file: delete its ids, then drop its entry.

Steps 1-2 touch neither the store nor the snapshot, so a read or embedding
failure leaves both exactly as they were. Delete always happens before the
re-upsert for the same path. Every store and embedding call goes through the
RetryPolicy; once it gives up, the file is reported as failed and its
snapshot entry is left untouched so the next run selects it again.

SnapshotPersistError is never turned into a file failure: it propagates and
fails the run.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, TypeVar

from codesync.core.exceptions import EmbeddingError, FileReadError, SnapshotPersistError
from codesync.ingest.chunking.base import Chunker, CodeChunk
from codesync.ingest.chunking.language import extension_to_language
from codesync.ingest.diff.differ import SyncPlan
from codesync.ingest.fingerprint import FileFingerprint
from codesync.ingest.hashing import compute_chunk_id
from codesync.ingest.retry import RetryPolicy
from codesync.ingest.state.manager import SnapshotStore
from codesync.ingest.state.schema import FileEntry, FileFailure, Snapshot
from codesync.llm.embedding.base import EmbeddingPlugin
from codesync.logging.logger import get_logger
from codesync.logging.tags import SYNC
from codesync.vector_db.base import VectorDBPlugin, VectorPoint

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_EMBEDDING_BATCH_SIZE = 64
DEFAULT_UPSERT_BATCH_SIZE = 100


def _batched(items: Sequence[T], size: int) -> List[Sequence[T]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


class _StageError(Exception):
    """Internal wrapper that tags an exception with the stage it happened in."""

    def __init__(self, stage: str, error: BaseException):
        self.stage = stage
        self.error = error
        super().__init__(str(error))


@dataclass
class FileOutcome:
    """Result of reconciling one path."""

    path: str
    action: str  # "indexed" or "removed"
    chunk_ids: List[str] = field(default_factory=list)
    deleted: int = 0
    failure: Optional[FileFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class ReconciliationPipeline:
    """
    Applies a SyncPlan to a vector store collection, one file at a time.

    Thread-safe across files: each call to reconcile() works on one path, and
    snapshot mutations are serialized by the SnapshotStore.

    Usage:
        pipeline = ReconciliationPipeline(
            root="/repo",
            store=snapshot_store,
            snapshot=snapshot,
            vector_db=vector_db,
            embedder=embedder,
            chunker=LineChunker(),
            retry=RetryPolicy(),
        )
        outcome = pipeline.reconcile("src/a.ts", fresh["src/a.ts"])
        outcome = pipeline.reconcile("src/old.ts", None)  # removed
    """

    def __init__(
        self,
        *,
        root: str | Path,
        store: SnapshotStore,
        snapshot: Snapshot,
        vector_db: VectorDBPlugin,
        embedder: EmbeddingPlugin,
        chunker: Chunker,
        retry: Optional[RetryPolicy] = None,
        embedding_batch_size: int = DEFAULT_EMBEDDING_BATCH_SIZE,
        upsert_batch_size: int = DEFAULT_UPSERT_BATCH_SIZE,
    ) -> None:
        if embedding_batch_size < 1 or upsert_batch_size < 1:
            raise ValueError("batch sizes must be >= 1")

        self._root = Path(root)
        self._store = store
        self._snapshot = snapshot
        self._vdb = vector_db
        self._embedder = embedder
        self._chunker = chunker
        self._retry = retry or RetryPolicy()
        self._embedding_batch_size = embedding_batch_size
        self._upsert_batch_size = upsert_batch_size

    @property
    def collection(self) -> str:
        return self._snapshot.collection

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def reconcile(self, path: str, fingerprint: Optional[FileFingerprint]) -> FileOutcome:
        """
        Reconcile one path.

        Args:
            path: Relative POSIX path.
            fingerprint: Fresh fingerprint, or None if the path was removed.

        Returns:
            FileOutcome; `failure` is set when the file could not be reconciled.

        Raises:
            SnapshotPersistError: the snapshot could not be written.
        """
        action = "removed" if fingerprint is None else "indexed"
        try:
            if fingerprint is None:
                return self._remove(path)
            return self._index(path, fingerprint)
        except SnapshotPersistError:
            raise
        except _StageError as e:
            failure = FileFailure(path=path, stage=e.stage, error=str(e.error))
        except Exception as e:
            failure = FileFailure(path=path, stage="unknown", error=str(e))

        logger.warning(f"{SYNC} Failed to reconcile {path} ({failure.stage}): {failure.error}")
        return FileOutcome(path=path, action=action, failure=failure)

    def run(
        self,
        plan: SyncPlan,
        fresh: Dict[str, FileFingerprint],
    ) -> List[FileOutcome]:
        """Reconcile every path of a plan sequentially: removals first, then sorted."""
        outcomes = [self.reconcile(path, None) for path in sorted(plan.removed)]
        outcomes.extend(self.reconcile(path, fresh[path]) for path in plan.to_index)
        return outcomes

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def _remove(self, path: str) -> FileOutcome:
        deleted = self._delete_stale(path)
        self._store.drop_file(self._snapshot, path)
        logger.debug(f"{SYNC} Removed {path} ({deleted} chunks)")
        return FileOutcome(path=path, action="removed", deleted=deleted)

    def _index(self, path: str, fingerprint: FileFingerprint) -> FileOutcome:
        data = self._read(path)
        if b"\x00" in data:
            logger.debug(f"{SYNC} {path} looks binary, indexing with zero chunks")
            chunks: List[CodeChunk] = []
        else:
            try:
                text = data.decode("utf-8")
            except UnicodeDecodeError as e:
                raise _StageError("read", FileReadError(path, f"not valid UTF-8: {e}")) from e
            try:
                chunks = self._chunker.chunk(text, path)
            except Exception as e:
                raise _StageError("chunk", e) from e

        # Ids and the committed fingerprint describe the bytes actually read,
        # which may differ from the scan if the file changed in between.
        content_hash = f"sha256:{hashlib.sha256(data).hexdigest()}"
        actual = FileFingerprint(
            path=path,
            content_hash=content_hash,
            size_bytes=len(data),
            mtime_ns=fingerprint.mtime_ns,
        )
        chunk_ids = [compute_chunk_id(path, content_hash, i) for i in range(len(chunks))]
        vectors = self._embed(path, chunks)

        deleted = self._delete_stale(path)

        if chunks:
            self._store.record_pending(self._snapshot, path, chunk_ids)
            points = [
                VectorPoint(id=cid, vector=vec, payload=self._payload(path, i, chunk, actual))
                for i, (cid, chunk, vec) in enumerate(zip(chunk_ids, chunks, vectors))
            ]
            for batch in _batched(points, self._upsert_batch_size):
                try:
                    self._retry.call(
                        self._vdb.upsert,
                        self.collection,
                        list(batch),
                        description=f"upsert {path} ({len(batch)} chunks)",
                    )
                except Exception as e:
                    raise _StageError("upsert", e) from e

        self._store.commit_file(self._snapshot, path, FileEntry.from_fingerprint(actual, chunk_ids))
        logger.debug(f"{SYNC} Indexed {path}: {len(chunk_ids)} chunks, {deleted} stale deleted")
        return FileOutcome(path=path, action="indexed", chunk_ids=chunk_ids, deleted=deleted)

    def _read(self, path: str) -> bytes:
        try:
            return (self._root / path).read_bytes()
        except OSError as e:
            raise _StageError("read", FileReadError(path, e.strerror or str(e))) from e

    def _embed(self, path: str, chunks: List[CodeChunk]) -> List[List[float]]:
        vectors: List[List[float]] = []
        texts = [c.text for c in chunks]
        for offset in range(0, len(texts), self._embedding_batch_size):
            batch = texts[offset : offset + self._embedding_batch_size]
            try:
                result = self._retry.call(
                    self._embedder.embed,
                    batch,
                    description=f"embed {path}[{offset}:{offset + len(batch)}]",
                )
            except Exception as e:
                raise _StageError("embed", e) from e
            if len(result) != len(batch):
                raise _StageError(
                    "embed",
                    EmbeddingError(f"expected {len(batch)} vectors, got {len(result)}"),
                )
            vectors.extend(list(v) for v in result)
        return vectors

    def _delete_stale(self, path: str) -> int:
        stale = self._snapshot.stale_ids_for(path)
        for batch in _batched(stale, self._upsert_batch_size):
            try:
                self._retry.call(
                    self._vdb.delete,
                    self.collection,
                    list(batch),
                    description=f"delete {path} ({len(batch)} chunks)",
                )
            except Exception as e:
                raise _StageError("delete", e) from e
        return len(stale)

    @staticmethod
    def _payload(
        path: str, index: int, chunk: CodeChunk, fingerprint: FileFingerprint
    ) -> Dict[str, Any]:
        return {
            "relative_path": path,
            "start_line": chunk.start_line,
            "end_line": chunk.end_line,
            "file_extension": fingerprint.ext,
            "language": extension_to_language(fingerprint.ext),
            "content": chunk.text,
            "chunk_index": index,
            "content_hash": fingerprint.content_hash,
        }


__all__ = [
    "FileOutcome",
    "ReconciliationPipeline",
    "DEFAULT_EMBEDDING_BATCH_SIZE",
    "DEFAULT_UPSERT_BATCH_SIZE",
]
