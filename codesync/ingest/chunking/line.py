# codesync/ingest/chunking/line.py
"""
Line-window chunker.

Chunker ID format: "lines:{chunk_lines}:{overlap_lines}:{max_chars}"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from codesync.ingest.chunking.base import CodeChunk


@dataclass
class LineChunker:
    """
    Splits text into overlapping windows of whole lines.

    A window holds at most chunk_lines lines and, once it has one line, stops
    growing before it would exceed max_chars. Consecutive windows share
    overlap_lines lines. Whitespace-only windows are dropped.

    Example:
        >>> chunker = LineChunker(chunk_lines=2, overlap_lines=0)
        >>> [(c.start_line, c.end_line) for c in chunker.chunk("a\\nb\\nc\\n", "x.py")]
        [(1, 3), (3, 4)]
    """

    plugin_name: str = field(default="lines", repr=False)
    chunk_lines: int = 60
    overlap_lines: int = 10
    max_chars: int = 2500

    def __post_init__(self) -> None:
        if self.chunk_lines < 1:
            raise ValueError(f"chunk_lines must be >= 1, got {self.chunk_lines}")
        if self.overlap_lines < 0:
            raise ValueError(f"overlap_lines must be >= 0, got {self.overlap_lines}")
        if self.overlap_lines >= self.chunk_lines:
            raise ValueError(
                f"overlap_lines ({self.overlap_lines}) must be < chunk_lines ({self.chunk_lines})"
            )
        if self.max_chars < 1:
            raise ValueError(f"max_chars must be >= 1, got {self.max_chars}")

    @property
    def chunker_id(self) -> str:
        return f"{self.plugin_name}:{self.chunk_lines}:{self.overlap_lines}:{self.max_chars}"

    def chunk(self, content: str, path: str) -> List[CodeChunk]:
        if not content or not content.strip():
            return []

        lines = content.splitlines(keepends=True)
        chunks: List[CodeChunk] = []
        start = 0

        while start < len(lines):
            end = start
            size = 0
            while end < len(lines) and end - start < self.chunk_lines:
                if end > start and size + len(lines[end]) > self.max_chars:
                    break
                size += len(lines[end])
                end += 1

            text = "".join(lines[start:end])
            if text.strip():
                chunks.append(CodeChunk(text=text, start_line=start + 1, end_line=end + 1))

            if end >= len(lines):
                break
            start = max(start + 1, end - self.overlap_lines)

        return chunks


__all__ = ["LineChunker"]
