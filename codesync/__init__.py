# codesync/__init__.py
"""
codesync - incremental synchronization of a source tree into a vector store.

Usage:
    from codesync import SyncOrchestrator

    orchestrator = SyncOrchestrator.from_config(load_config())
    report = orchestrator.sync("./my-project")
    print(report)  # "added 3, modified 1, removed 0, failed 0, chunks +12/-4"
"""

from codesync.ingest.sync import SyncOrchestrator, SyncOptions, SyncReport, SyncRun

__version__ = "0.3.0"

__all__ = [
    "SyncOrchestrator",
    "SyncOptions",
    "SyncReport",
    "SyncRun",
    "__version__",
]
