# codesync/ingest/diff/scanner.py
"""
Fingerprint scanner.

Walks a codebase root and yields one FileFingerprint per non-ignored regular
file. The walk is iterative and sorted (deterministic within a run), never
follows symlinks, and streams each file through SHA-256 without buffering it.

Unreadable files and subdirectories are skipped and recorded in
`scanner.errors`; only an unreadable root raises ScanError.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from codesync.core.exceptions import ScanError
from codesync.ingest.fingerprint import FileFingerprint
from codesync.ingest.hashing import hash_file
from codesync.logging.logger import get_logger
from codesync.logging.tags import SCAN

logger = get_logger(__name__)

IgnorePredicate = Callable[[str], bool]


def _never_ignore(rel_path: str) -> bool:
    return False


@dataclass
class ScanResult:
    """Materialized scan: fingerprints keyed by relative path, plus skipped paths."""

    root: str
    fingerprints: Dict[str, FileFingerprint] = field(default_factory=dict)
    errors: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def total_scanned(self) -> int:
        return len(self.fingerprints)


class FileScanner:
    """
    Produces fingerprints for a codebase.

    Args:
        ignore: Predicate over relative POSIX paths (directories end with "/");
            True skips the path. Ignored directories are not descended into.
        previous: Fingerprints from the last snapshot, used only when
            trust_mtime is enabled.
        trust_mtime: Reuse the previous hash when size and mtime_ns are
            unchanged instead of hashing the file again.

    Usage:
        scanner = FileScanner(IgnoreRules.for_root(root))
        for fp in scanner.iter_fingerprints(root):
            ...
        print(scanner.errors)
    """

    def __init__(
        self,
        ignore: Optional[IgnorePredicate] = None,
        *,
        previous: Optional[Mapping[str, FileFingerprint]] = None,
        trust_mtime: bool = False,
    ) -> None:
        self._ignore = ignore or _never_ignore
        self._previous = previous or {}
        self._trust_mtime = trust_mtime
        self.errors: List[Tuple[str, str]] = []
        self.hashed = 0
        self.reused = 0

    def iter_fingerprints(self, root: str | Path) -> Iterator[FileFingerprint]:
        """
        Lazily yield fingerprints under root.

        Raises:
            ScanError: root is missing, not a directory or unreadable.
        """
        root_path = Path(root)
        if not root_path.exists():
            raise ScanError(str(root), "does not exist")
        if not root_path.is_dir():
            raise ScanError(str(root), "not a directory")
        try:
            with os.scandir(root_path):
                pass
        except OSError as e:
            raise ScanError(str(root), e.strerror or str(e)) from e

        self.errors = []
        self.hashed = 0
        self.reused = 0
        return self._walk(root_path)

    def scan(self, root: str | Path) -> ScanResult:
        """Run a full scan and collect the results into a ScanResult."""
        result = ScanResult(root=str(root))
        for fp in self.iter_fingerprints(root):
            result.fingerprints[fp.path] = fp
        result.errors = list(self.errors)
        logger.info(
            f"{SCAN} Scanned {result.total_scanned} files under {root} "
            f"(hashed {self.hashed}, reused {self.reused}, skipped {len(result.errors)})"
        )
        return result

    def _walk(self, root: Path) -> Iterator[FileFingerprint]:
        # Stack of (absolute dir, relative prefix); subdirectories are pushed in
        # reverse so they pop in sorted order.
        stack: List[Tuple[str, str]] = [(str(root), "")]

        while stack:
            abs_dir, prefix = stack.pop()
            try:
                with os.scandir(abs_dir) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except OSError as e:
                self._skip(prefix or ".", e)
                continue

            subdirs: List[Tuple[str, str]] = []
            for entry in entries:
                rel = f"{prefix}{entry.name}"
                try:
                    if entry.is_symlink():
                        continue
                    if entry.is_dir(follow_symlinks=False):
                        if not self._ignore(f"{rel}/"):
                            subdirs.append((entry.path, f"{rel}/"))
                        continue
                    if not entry.is_file(follow_symlinks=False):
                        continue
                except OSError as e:
                    self._skip(rel, e)
                    continue

                if self._ignore(rel):
                    continue

                fp = self._fingerprint(entry, rel)
                if fp is not None:
                    yield fp

            stack.extend(reversed(subdirs))

    def _fingerprint(self, entry: os.DirEntry, rel: str) -> Optional[FileFingerprint]:
        try:
            st = entry.stat(follow_symlinks=False)
        except OSError as e:
            self._skip(rel, e)
            return None

        if self._trust_mtime:
            prior = self._previous.get(rel)
            if (
                prior is not None
                and prior.size_bytes == st.st_size
                and prior.mtime_ns == st.st_mtime_ns
            ):
                self.reused += 1
                return FileFingerprint(
                    path=rel,
                    content_hash=prior.content_hash,
                    size_bytes=prior.size_bytes,
                    mtime_ns=st.st_mtime_ns,
                )

        try:
            content_hash, size = hash_file(entry.path)
        except OSError as e:
            self._skip(rel, e)
            return None

        self.hashed += 1
        return FileFingerprint(
            path=rel,
            content_hash=content_hash,
            size_bytes=size,
            mtime_ns=st.st_mtime_ns,
        )

    def _skip(self, rel: str, error: OSError) -> None:
        reason = error.strerror or str(error)
        self.errors.append((rel, reason))
        logger.warning(f"{SCAN} Skipping {rel}: {reason}")


def scan_directory(
    root: str | Path,
    ignore: Optional[IgnorePredicate] = None,
) -> ScanResult:
    """Convenience function for a full scan."""
    return FileScanner(ignore).scan(root)


__all__ = [
    "FileFingerprint",
    "FileScanner",
    "ScanResult",
    "scan_directory",
]
