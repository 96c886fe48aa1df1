# codesync/ingest/hashing.py
"""
Hashing helpers.

- compute_content_hash: streamed SHA-256 over file bytes
- codebase_identity / collection_name: stable names for a codebase root
- compute_chunk_id: deterministic chunk ids
"""

from __future__ import annotations

import hashlib
import os
from pathlib import Path

HASH_BLOCK_SIZE = 1024 * 1024
COLLECTION_PREFIX = "code_chunks"


def hash_file(path: str | os.PathLike) -> tuple[str, int]:
    """
    Compute ("sha256:<hex>", byte count) over a file.

    Reads in fixed-size blocks; the file is never held in memory. The size is
    counted from the bytes actually hashed, so both values describe the same
    content even if the file changes after a stat().
    """
    digest = hashlib.sha256()
    size = 0
    with open(path, "rb") as f:
        for block in iter(lambda: f.read(HASH_BLOCK_SIZE), b""):
            digest.update(block)
            size += len(block)
    return f"sha256:{digest.hexdigest()}", size


def compute_content_hash(path: str | os.PathLike) -> str:
    """Compute "sha256:<hex>" over a file's bytes."""
    return hash_file(path)[0]


def resolve_root(root: str | os.PathLike) -> str:
    """Absolute, symlink-resolved root path as a string."""
    return str(Path(root).expanduser().resolve())


def codebase_identity(root: str | os.PathLike) -> str:
    """MD5 of the resolved absolute root path."""
    return hashlib.md5(resolve_root(root).encode("utf-8")).hexdigest()


def collection_name(root: str | os.PathLike) -> str:
    """Vector store collection bound to a codebase."""
    return f"{COLLECTION_PREFIX}_{codebase_identity(root)}"


def compute_chunk_id(path: str, content_hash: str, ordinal: int) -> str:
    """
    Deterministic chunk id.

    Same file content re-chunked yields the same ids, so a retried upsert
    overwrites instead of duplicating. A different content of the same path
    yields a disjoint id set.
    """
    raw = f"{path}\x00{content_hash}\x00{ordinal}"
    return f"chunk_{hashlib.sha256(raw.encode('utf-8')).hexdigest()[:32]}"


__all__ = [
    "HASH_BLOCK_SIZE",
    "hash_file",
    "compute_content_hash",
    "resolve_root",
    "codebase_identity",
    "collection_name",
    "compute_chunk_id",
]
