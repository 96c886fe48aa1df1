# tests/test_snapshot_store.py
"""
Tests for codesync.ingest.state.

Key tests verify that:
1. Every mutation is durable before it is visible
2. A torn journal tail is dropped, earlier records survive
3. Compaction is atomic and replay never applies a record twice
4. Tombstones allow clear to be undone
"""

import json
from datetime import datetime, timezone

import pytest

from codesync.core.exceptions import SnapshotPersistError
from codesync.ingest.hashing import codebase_identity, collection_name
from codesync.ingest.state import (
    FileEntry,
    FileFailure,
    RunRecord,
    RunStatus,
    Snapshot,
    SnapshotStore,
)


def entry(content_hash: str = "sha256:aa", ids=("c1", "c2")) -> FileEntry:
    return FileEntry(content_hash=content_hash, size_bytes=10, mtime_ns=5, chunk_ids=list(ids))


@pytest.fixture
def root(tmp_path):
    path = tmp_path / "repo"
    path.mkdir()
    return path


@pytest.fixture
def store(tmp_path):
    return SnapshotStore(tmp_path / "snapshots")


class TestSnapshotModel:
    """Snapshot helpers."""

    def test_stale_ids_include_pending_without_duplicates(self):
        snapshot = Snapshot(identity="x", root="/r", collection="c")
        snapshot.files["a.ts"] = entry(ids=("c1", "c2"))
        snapshot.pending["a.ts"] = ["c2", "c3"]

        assert snapshot.stale_ids_for("a.ts") == ["c1", "c2", "c3"]
        assert snapshot.stale_ids_for("missing.ts") == []

    def test_fingerprints_and_totals(self):
        snapshot = Snapshot(identity="x", root="/r", collection="c")
        snapshot.files["a.ts"] = entry(ids=("c1", "c2"))
        snapshot.files["b.ts"] = entry(content_hash="sha256:bb", ids=("c3",))

        fps = snapshot.fingerprints()

        assert fps["a.ts"].content_hash == "sha256:aa"
        assert fps["a.ts"].path == "a.ts"
        assert snapshot.total_chunks() == 3


class TestLoad:
    """Loading and identity binding."""

    def test_new_snapshot_is_empty_and_bound(self, store, root):
        snapshot = store.load(root)

        assert snapshot.files == {}
        assert snapshot.generation == 0
        assert snapshot.identity == codebase_identity(root)
        assert snapshot.collection == collection_name(root)
        assert not store.exists(root)

    def test_corrupt_base_is_fatal(self, store, root):
        store.directory.mkdir(parents=True)
        store.base_path(codebase_identity(root)).write_text("{not json")

        with pytest.raises(SnapshotPersistError):
            store.load(root)


class TestMutations:
    """Per-file journal writes."""

    def test_commit_is_durable_without_compaction(self, store, root):
        snapshot = store.load(root)
        store.commit_file(snapshot, "a.ts", entry())

        reloaded = SnapshotStore(store.directory).load(root)

        assert reloaded.files["a.ts"].chunk_ids == ["c1", "c2"]
        assert reloaded.generation == 1

    def test_generation_grows_by_one_per_mutation(self, store, root):
        snapshot = store.load(root)

        store.record_pending(snapshot, "a.ts", ["c1"])
        store.commit_file(snapshot, "a.ts", entry())
        store.drop_file(snapshot, "a.ts")

        assert snapshot.generation == 3

    def test_commit_clears_pending(self, store, root):
        snapshot = store.load(root)
        store.record_pending(snapshot, "a.ts", ["c1", "c2"])
        assert snapshot.pending == {"a.ts": ["c1", "c2"]}

        store.commit_file(snapshot, "a.ts", entry())

        assert snapshot.pending == {}

    def test_pending_survives_reload(self, store, root):
        snapshot = store.load(root)
        store.record_pending(snapshot, "a.ts", ["c9"])

        reloaded = SnapshotStore(store.directory).load(root)

        assert reloaded.pending == {"a.ts": ["c9"]}
        assert reloaded.stale_ids_for("a.ts") == ["c9"]

    def test_drop_file(self, store, root):
        snapshot = store.load(root)
        store.commit_file(snapshot, "a.ts", entry())
        store.drop_file(snapshot, "a.ts")

        assert "a.ts" not in SnapshotStore(store.directory).load(root).files

    def test_reset_forgets_files_and_pending(self, store, root):
        snapshot = store.load(root)
        store.commit_file(snapshot, "a.ts", entry())
        store.record_pending(snapshot, "b.ts", ["x"])

        store.reset(snapshot)

        reloaded = SnapshotStore(store.directory).load(root)
        assert reloaded.files == {}
        assert reloaded.pending == {}

    def test_record_run(self, store, root):
        snapshot = store.load(root)
        finished = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        run = RunRecord(
            status=RunStatus.COMPLETED_WITH_FAILURES,
            started_at=finished,
            finished_at=finished,
            processed=2,
            total=2,
            failures=[FileFailure(path="b.ts", stage="embed", error="boom")],
        )

        store.record_run(snapshot, run, synced=True)

        reloaded = SnapshotStore(store.directory).load(root)
        assert reloaded.last_run.status is RunStatus.COMPLETED_WITH_FAILURES
        assert reloaded.last_run.failures[0].path == "b.ts"
        assert reloaded.last_sync_at == finished

    def test_unsynced_run_keeps_last_sync_at(self, store, root):
        snapshot = store.load(root)
        run = RunRecord(status=RunStatus.FAILED, started_at=datetime.now(timezone.utc))

        store.record_run(snapshot, run, synced=False)

        assert snapshot.last_sync_at is None

    def test_failed_append_leaves_memory_untouched(self, tmp_path, root):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        store = SnapshotStore(blocker / "snapshots")
        snapshot = store.load(root)

        with pytest.raises(SnapshotPersistError):
            store.commit_file(snapshot, "a.ts", entry())

        assert snapshot.files == {}
        assert snapshot.generation == 0


class TestJournalRecovery:
    """Crash scenarios."""

    def test_torn_tail_is_dropped_and_compacted(self, store, root):
        snapshot = store.load(root)
        store.commit_file(snapshot, "a.ts", entry())
        journal = store.journal_path(snapshot.identity)
        with journal.open("a", encoding="utf-8") as f:
            f.write('{"op":"put","path":"b.ts","entry":{"content_ha')

        reloaded = SnapshotStore(store.directory).load(root)

        assert set(reloaded.files) == {"a.ts"}
        assert journal.read_text() == ""
        assert store.base_path(snapshot.identity).exists()

    def test_replay_skips_records_already_in_base(self, store, root):
        """Crash between os.replace and journal truncation."""
        snapshot = store.load(root)
        store.record_pending(snapshot, "a.ts", ["c1", "c2"])
        store.commit_file(snapshot, "a.ts", entry())
        journal = store.journal_path(snapshot.identity)
        stale_journal = journal.read_text()

        store.compact(snapshot)
        journal.write_text(stale_journal)

        reloaded = SnapshotStore(store.directory).load(root)

        assert reloaded.generation == 2
        assert reloaded.pending == {}
        assert reloaded.files["a.ts"].chunk_ids == ["c1", "c2"]

    def test_compact_writes_base_and_truncates_journal(self, store, root):
        snapshot = store.load(root)
        store.commit_file(snapshot, "a.ts", entry())

        store.compact(snapshot)

        base = json.loads(store.base_path(snapshot.identity).read_text())
        assert base["generation"] == 1
        assert "a.ts" in base["files"]
        assert store.journal_path(snapshot.identity).read_text() == ""
        assert not store.base_path(snapshot.identity).with_name(
            store.base_path(snapshot.identity).name + ".tmp"
        ).exists()

    def test_compacts_automatically_after_threshold(self, tmp_path, root):
        store = SnapshotStore(tmp_path / "snapshots", compact_every=3)
        snapshot = store.load(root)

        for i in range(3):
            store.commit_file(snapshot, f"f{i}.ts", entry(ids=(f"c{i}",)))

        assert store.base_path(snapshot.identity).exists()
        assert store.journal_path(snapshot.identity).read_text() == ""
        assert len(SnapshotStore(store.directory).load(root).files) == 3


class TestTombstones:
    """move_aside / restore / purge used by clear_index."""

    def test_move_aside_then_restore(self, store, root):
        snapshot = store.load(root)
        store.commit_file(snapshot, "a.ts", entry())
        store.compact(snapshot)

        tombstones = store.move_aside(snapshot.identity)

        assert tombstones is not None
        assert not store.exists(root)

        store.restore(tombstones)

        assert store.exists(root)
        assert "a.ts" in SnapshotStore(store.directory).load(root).files

    def test_move_aside_then_purge(self, store, root):
        snapshot = store.load(root)
        store.commit_file(snapshot, "a.ts", entry())

        tombstones = store.move_aside(snapshot.identity)
        store.purge(tombstones)

        assert not store.exists(root)
        assert all(not t.exists() for t in tombstones)
        assert SnapshotStore(store.directory).load(root).files == {}

    def test_move_aside_nothing(self, store, root):
        assert store.move_aside(codebase_identity(root)) is None
