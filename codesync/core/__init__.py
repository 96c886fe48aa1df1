# codesync/core/__init__.py
from codesync.core.exceptions import (
    CodeSyncError,
    ConfigError,
    ConfigNotFoundError,
    EmbeddingError,
    FileReadError,
    OperationTimeoutError,
    PluginNotFoundError,
    ScanError,
    SnapshotPersistError,
    StoreError,
    SyncInProgressError,
)
from codesync.core.paths import CodeSyncPaths

__all__ = [
    "CodeSyncError",
    "ConfigError",
    "ConfigNotFoundError",
    "EmbeddingError",
    "FileReadError",
    "OperationTimeoutError",
    "PluginNotFoundError",
    "ScanError",
    "SnapshotPersistError",
    "StoreError",
    "SyncInProgressError",
    "CodeSyncPaths",
]
