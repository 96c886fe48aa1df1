# codesync/core/paths.py
"""
Filesystem locations used by codesync.

Everything lives under CODESYNC_HOME (default: ~/.codesync):

    ~/.codesync/
        config.yaml
        .contextignore          # global ignore patterns
        snapshots/<identity>.json
        qdrant/                 # embedded vector store
"""

from __future__ import annotations

import os
from pathlib import Path


class CodeSyncPaths:
    """Resolves codesync directories. Nothing is created until asked for."""

    ENV_HOME = "CODESYNC_HOME"

    @classmethod
    def home(cls) -> Path:
        env = os.getenv(cls.ENV_HOME)
        if env:
            return Path(env).expanduser()
        return Path.home() / ".codesync"

    @classmethod
    def config(cls) -> Path:
        return cls.home() / "config.yaml"

    @classmethod
    def global_ignore_file(cls) -> Path:
        return cls.home() / ".contextignore"

    @classmethod
    def snapshots(cls, data_dir: str | Path | None = None) -> Path:
        base = Path(data_dir).expanduser() if data_dir else cls.home()
        return base / "snapshots"

    @classmethod
    def vector_db(cls) -> Path:
        return cls.home() / "qdrant"


__all__ = ["CodeSyncPaths"]
