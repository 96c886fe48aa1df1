# tests/test_chunking.py
"""Tests for the line-window chunker and language lookup."""

import pytest

from codesync.ingest.chunking import Chunker, LineChunker, extension_to_language


def spans(chunks):
    return [(c.start_line, c.end_line) for c in chunks]


class TestLineChunker:
    def test_windows_without_overlap(self):
        chunker = LineChunker(chunk_lines=2, overlap_lines=0)

        chunks = chunker.chunk("a\nb\nc\n", "x.py")

        assert spans(chunks) == [(1, 3), (3, 4)]
        assert chunks[0].text == "a\nb\n"
        assert chunks[1].text == "c\n"

    def test_windows_with_overlap(self):
        chunker = LineChunker(chunk_lines=3, overlap_lines=1)

        chunks = chunker.chunk("1\n2\n3\n4\n5\n", "x.py")

        assert spans(chunks) == [(1, 4), (3, 6)]

    def test_last_line_without_newline(self):
        chunks = LineChunker(chunk_lines=2, overlap_lines=0).chunk("a\nb\nc", "x.py")

        assert spans(chunks) == [(1, 3), (3, 4)]
        assert chunks[-1].text == "c"

    def test_max_chars_caps_window(self):
        line = "123456789\n"
        chunker = LineChunker(chunk_lines=10, overlap_lines=0, max_chars=25)

        chunks = chunker.chunk(line * 4, "x.py")

        assert spans(chunks) == [(1, 3), (3, 5)]
        assert all(len(c.text) <= 25 for c in chunks)

    def test_oversized_line_is_its_own_chunk(self):
        chunker = LineChunker(chunk_lines=5, overlap_lines=0, max_chars=10)

        chunks = chunker.chunk("x" * 50 + "\nshort\n", "x.py")

        assert spans(chunks) == [(1, 2), (2, 3)]

    def test_empty_and_whitespace_content(self):
        chunker = LineChunker()

        assert chunker.chunk("", "x.py") == []
        assert chunker.chunk("\n\n   \n", "x.py") == []

    def test_whitespace_windows_are_dropped(self):
        chunker = LineChunker(chunk_lines=2, overlap_lines=0)

        chunks = chunker.chunk("a\nb\n\n\nc\n", "x.py")

        assert spans(chunks) == [(1, 3), (5, 6)]

    def test_deterministic(self):
        chunker = LineChunker(chunk_lines=3, overlap_lines=1)
        content = "\n".join(f"line {i}" for i in range(20))

        assert chunker.chunk(content, "a.ts") == chunker.chunk(content, "a.ts")

    def test_chunker_id(self):
        assert LineChunker(chunk_lines=40, overlap_lines=5, max_chars=900).chunker_id == (
            "lines:40:5:900"
        )

    def test_satisfies_protocol(self):
        assert isinstance(LineChunker(), Chunker)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"chunk_lines": 0},
            {"overlap_lines": -1},
            {"chunk_lines": 3, "overlap_lines": 3},
            {"max_chars": 0},
        ],
    )
    def test_invalid_settings(self, kwargs):
        with pytest.raises(ValueError):
            LineChunker(**kwargs)


class TestLanguage:
    @pytest.mark.parametrize(
        "ext, language",
        [
            (".ts", "typescript"),
            (".TSX", "typescript"),
            (".py", "python"),
            (".rs", "rust"),
            (".md", "markdown"),
            (".xyz", "unknown"),
            ("", "unknown"),
            (None, "unknown"),
        ],
    )
    def test_extension_to_language(self, ext, language):
        assert extension_to_language(ext) == language
