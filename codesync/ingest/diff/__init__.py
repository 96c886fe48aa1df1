# codesync/ingest/diff/__init__.py
"""
Incremental (diff) sync for codesync.

Content-hash based change detection and reconciliation:
- Only re-embed files whose content changed
- Delete the chunks of modified and removed files by id
- Commit each file to the snapshot once its store operations succeeded

Key components:
- FileScanner: walks a root and fingerprints files
- IgnoreRules: default, configured and .contextignore patterns
- compute_plan: pure diff of two fingerprint sets into a SyncPlan
- ReconciliationPipeline: applies a plan one file at a time
"""

from codesync.ingest.diff.differ import SyncPlan, compute_plan
from codesync.ingest.diff.executor import FileOutcome, ReconciliationPipeline
from codesync.ingest.diff.ignore import (
    DEFAULT_EXTENSIONS,
    DEFAULT_IGNORE_PATTERNS,
    IgnoreRules,
    read_ignore_file,
)
from codesync.ingest.diff.scanner import FileScanner, ScanResult, scan_directory

__all__ = [
    # Scanner
    "DEFAULT_EXTENSIONS",
    "DEFAULT_IGNORE_PATTERNS",
    "IgnoreRules",
    "read_ignore_file",
    "FileScanner",
    "ScanResult",
    "scan_directory",
    # Differ
    "SyncPlan",
    "compute_plan",
    # Executor
    "FileOutcome",
    "ReconciliationPipeline",
]
