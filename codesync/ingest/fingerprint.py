# codesync/ingest/fingerprint.py
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class FileFingerprint:
    """
    Content identity of one file.

    Equal iff content_hash and size_bytes are equal. path and mtime_ns never
    take part in equality; mtime is only a hint for skipping the hash.
    """

    path: str = field(compare=False)  # relative POSIX path
    content_hash: str
    size_bytes: int
    mtime_ns: int = field(default=0, compare=False)

    @property
    def ext(self) -> str:
        name = self.path.rsplit("/", 1)[-1]
        dot = name.rfind(".")
        return name[dot:].lower() if dot > 0 else ""


__all__ = ["FileFingerprint"]
