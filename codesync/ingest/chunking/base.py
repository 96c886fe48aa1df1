# codesync/ingest/chunking/base.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol, runtime_checkable


@dataclass(frozen=True)
class CodeChunk:
    """
    A contiguous piece of a file.

    Lines are 1-based and the range is half-open: [start_line, end_line).
    """

    text: str
    start_line: int
    end_line: int


@runtime_checkable
class Chunker(Protocol):
    """
    Chunker contract.

    Must be deterministic: identical (content, path) yields identical chunks,
    which keeps chunk ids stable across runs. May return an empty list.
    """

    @property
    def chunker_id(self) -> str:
        ...

    def chunk(self, content: str, path: str) -> List[CodeChunk]:
        ...
