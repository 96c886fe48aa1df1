# codesync/ingest/diff/differ.py
"""
Diff computation for incremental sync.

Compares the fingerprints recorded in the prior snapshot with a fresh scan
and classifies every path:

- only in the fresh scan          -> added
- in both, fingerprints unequal   -> modified
- in both, fingerprints equal     -> unchanged (not part of the plan)
- only in the prior snapshot      -> removed

Fingerprint equality is content hash plus size; mtime never decides that a
file is unchanged.

This module ONLY computes the plan - it does NOT execute it.
Execution is handled by the executor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Mapping, Union

from codesync.ingest.fingerprint import FileFingerprint

FingerprintSource = Union[Mapping[str, FileFingerprint], Iterable[FileFingerprint]]


@dataclass(frozen=True)
class SyncPlan:
    """
    Paths that need reconciliation, split by kind of change.

    The three sets are pairwise disjoint. Not persisted.
    """

    added: FrozenSet[str] = field(default_factory=frozenset)
    modified: FrozenSet[str] = field(default_factory=frozenset)
    removed: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.modified or self.removed)

    @property
    def total(self) -> int:
        return len(self.added) + len(self.modified) + len(self.removed)

    @property
    def to_index(self) -> List[str]:
        """Added and modified paths, sorted."""
        return sorted(self.added | self.modified)

    @property
    def summary(self) -> str:
        return (
            f"added={len(self.added)}, "
            f"modified={len(self.modified)}, "
            f"removed={len(self.removed)}"
        )

    def __str__(self) -> str:
        return self.summary


def _as_mapping(source: FingerprintSource) -> Mapping[str, FileFingerprint]:
    if isinstance(source, Mapping):
        return source
    return {fp.path: fp for fp in source}


def compute_plan(
    prior: FingerprintSource,
    fresh: FingerprintSource,
    force: bool = False,
) -> SyncPlan:
    """
    Compute the sync plan between two fingerprint sets.

    Pure: neither input is modified, nothing is read from disk and nothing
    is logged.

    Args:
        prior: Fingerprints from the last snapshot, keyed by path (or an
            iterable of fingerprints).
        fresh: Fingerprints from a fresh scan, same shape.
        force: Treat every path present on both sides as modified.

    Returns:
        SyncPlan with added, modified and removed paths.
    """
    prior_map = _as_mapping(prior)
    fresh_map = _as_mapping(fresh)

    added = set()
    modified = set()

    for path, fp in fresh_map.items():
        old = prior_map.get(path)
        if old is None:
            added.add(path)
        elif force or old != fp:
            modified.add(path)

    removed = {path for path in prior_map if path not in fresh_map}

    return SyncPlan(
        added=frozenset(added),
        modified=frozenset(modified),
        removed=frozenset(removed),
    )


__all__ = ["SyncPlan", "compute_plan"]
