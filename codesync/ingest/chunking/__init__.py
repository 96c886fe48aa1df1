# codesync/ingest/chunking/__init__.py
from codesync.ingest.chunking.base import Chunker, CodeChunk
from codesync.ingest.chunking.language import extension_to_language
from codesync.ingest.chunking.line import LineChunker

__all__ = ["Chunker", "CodeChunk", "LineChunker", "extension_to_language"]
