# codesync/core/exceptions.py
"""
Exception hierarchy for codesync.

Fatal to a run:
- ScanError: codebase root cannot be walked
- SnapshotPersistError: snapshot cannot be written durably

Per file (collected, never abort sibling files):
- FileReadError: a single file cannot be read
- EmbeddingError / StoreError: transient, retried by RetryPolicy first
"""

from __future__ import annotations


class CodeSyncError(Exception):
    """Base class for all codesync errors."""


class ConfigError(CodeSyncError):
    """Invalid or unreadable configuration."""


class ConfigNotFoundError(ConfigError, FileNotFoundError):
    """Configuration file does not exist."""


class PluginNotFoundError(CodeSyncError, KeyError):
    """Requested plugin name or backend kind is not registered."""

    def __str__(self) -> str:
        return Exception.__str__(self)


class ScanError(CodeSyncError):
    """The codebase root is missing, not a directory, or unreadable."""

    def __init__(self, root: str, reason: str):
        self.root = root
        self.reason = reason
        super().__init__(f"Cannot scan {root}: {reason}")


class FileReadError(CodeSyncError):
    """A single file could not be read."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read {path}: {reason}")


class EmbeddingError(CodeSyncError):
    """The embedding provider failed."""


class StoreError(CodeSyncError):
    """A vector store operation failed."""


class OperationTimeoutError(CodeSyncError):
    """An embedding or vector store call exceeded its timeout."""


class SnapshotPersistError(CodeSyncError):
    """The snapshot could not be written. The previous snapshot file is intact."""


class SyncInProgressError(CodeSyncError):
    """Another sync run holds the lock for this codebase."""

    def __init__(self, root: str):
        self.root = root
        super().__init__(f"A sync run is already active for {root}")


__all__ = [
    "CodeSyncError",
    "ConfigError",
    "ConfigNotFoundError",
    "PluginNotFoundError",
    "ScanError",
    "FileReadError",
    "EmbeddingError",
    "StoreError",
    "OperationTimeoutError",
    "SnapshotPersistError",
    "SyncInProgressError",
]
