# tests/test_differ.py
"""
Tests for codesync.ingest.diff.differ.

Key properties:
1. Every path lands in exactly one of added / modified / removed / unchanged
2. Equality is content hash + size; mtime never decides
3. compute_plan is pure
"""

import logging

from codesync.ingest.diff.differ import SyncPlan, compute_plan
from codesync.ingest.fingerprint import FileFingerprint


def fp(path: str, content_hash: str, size: int = 10, mtime_ns: int = 0) -> FileFingerprint:
    return FileFingerprint(path=path, content_hash=content_hash, size_bytes=size, mtime_ns=mtime_ns)


def as_map(*fps: FileFingerprint) -> dict:
    return {f.path: f for f in fps}


class TestFileFingerprint:
    """Equality semantics."""

    def test_equal_when_hash_and_size_match(self):
        assert fp("a.ts", "sha256:1", mtime_ns=1) == fp("b.ts", "sha256:1", mtime_ns=999)

    def test_unequal_when_hash_differs(self):
        assert fp("a.ts", "sha256:1") != fp("a.ts", "sha256:2")

    def test_unequal_when_size_differs(self):
        assert fp("a.ts", "sha256:1", size=10) != fp("a.ts", "sha256:1", size=11)

    def test_ext(self):
        assert fp("src/App.TSX", "h").ext == ".tsx"
        assert fp("Makefile", "h").ext == ""
        assert fp(".env", "h").ext == ""


class TestComputePlan:
    """Classification rules."""

    def test_classifies_each_path(self):
        prior = as_map(fp("same.ts", "h1"), fp("changed.ts", "h2"), fp("gone.ts", "h3"))
        fresh = as_map(fp("same.ts", "h1"), fp("changed.ts", "h2b"), fp("new.ts", "h4"))

        plan = compute_plan(prior, fresh)

        assert plan.added == frozenset({"new.ts"})
        assert plan.modified == frozenset({"changed.ts"})
        assert plan.removed == frozenset({"gone.ts"})

    def test_sets_are_disjoint_and_cover_both_sides(self):
        prior = as_map(fp("a", "1"), fp("b", "2"), fp("c", "3"))
        fresh = as_map(fp("b", "2x"), fp("c", "3"), fp("d", "4"))

        plan = compute_plan(prior, fresh)
        unchanged = set(prior) & set(fresh) - plan.modified

        assert not (plan.added & plan.modified)
        assert not (plan.added & plan.removed)
        assert not (plan.modified & plan.removed)
        assert plan.added | plan.modified | unchanged == set(fresh)
        assert plan.removed | plan.modified | unchanged == set(prior)

    def test_mtime_change_alone_is_unchanged(self):
        prior = as_map(fp("a.ts", "h", mtime_ns=1))
        fresh = as_map(fp("a.ts", "h", mtime_ns=2))

        assert compute_plan(prior, fresh).is_empty

    def test_same_size_different_hash_is_modified(self):
        prior = as_map(fp("a.ts", "h1", size=5))
        fresh = as_map(fp("a.ts", "h2", size=5))

        assert compute_plan(prior, fresh).modified == frozenset({"a.ts"})

    def test_identical_inputs_give_empty_plan(self):
        state = as_map(fp("a", "1"), fp("b", "2"))

        plan = compute_plan(state, dict(state))

        assert plan.is_empty
        assert plan.total == 0
        assert plan == SyncPlan()

    def test_only_the_changed_file_is_selected(self):
        files = [fp(f"src/f{i}.ts", f"h{i}") for i in range(50)]
        prior = as_map(*files)
        fresh = dict(prior)
        fresh["src/f17.ts"] = fp("src/f17.ts", "h17-edited")

        plan = compute_plan(prior, fresh)

        assert plan == SyncPlan(modified=frozenset({"src/f17.ts"}))

    def test_first_sync_adds_everything(self):
        fresh = as_map(fp("a", "1"), fp("b", "2"))

        plan = compute_plan({}, fresh)

        assert plan.added == frozenset({"a", "b"})
        assert plan.to_index == ["a", "b"]

    def test_force_marks_everything_present_as_modified(self):
        prior = as_map(fp("a", "1"), fp("gone", "2"))
        fresh = as_map(fp("a", "1"), fp("new", "3"))

        plan = compute_plan(prior, fresh, force=True)

        assert plan.modified == frozenset({"a"})
        assert plan.added == frozenset({"new"})
        assert plan.removed == frozenset({"gone"})

    def test_accepts_iterables(self):
        plan = compute_plan([fp("a", "1")], [fp("a", "2"), fp("b", "3")])

        assert plan.modified == frozenset({"a"})
        assert plan.added == frozenset({"b"})

    def test_inputs_are_not_modified(self):
        prior = as_map(fp("a", "1"))
        fresh = as_map(fp("b", "2"))

        compute_plan(prior, fresh)

        assert list(prior) == ["a"]
        assert list(fresh) == ["b"]

    def test_logs_nothing(self):
        records = []
        handler = logging.Handler(level=logging.DEBUG)
        handler.emit = records.append
        package_logger = logging.getLogger("codesync")
        previous_level = package_logger.level
        package_logger.addHandler(handler)
        package_logger.setLevel(logging.DEBUG)
        try:
            compute_plan(as_map(fp("a", "1"), fp("b", "2")), as_map(fp("b", "3"), fp("c", "4")))
        finally:
            package_logger.removeHandler(handler)
            package_logger.setLevel(previous_level)

        assert records == []

    def test_summary(self):
        plan = SyncPlan(added=frozenset({"a"}), removed=frozenset({"b", "c"}))
        assert plan.summary == "added=1, modified=0, removed=2"
        assert plan.total == 3
