# codesync/ingest/chunking/language.py
"""File extension to language name, stored in chunk metadata."""

from __future__ import annotations

_LANGUAGES = {
    ".ts": "typescript",
    ".tsx": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".py": "python",
    ".java": "java",
    ".cs": "csharp",
    ".go": "go",
    ".rs": "rust",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".cxx": "cpp",
    ".hpp": "cpp",
    ".c": "c",
    ".h": "c",
    ".php": "php",
    ".rb": "ruby",
    ".swift": "swift",
    ".kt": "kotlin",
    ".scala": "scala",
    ".m": "objective-c",
    ".mm": "objective-c",
    ".html": "html",
    ".css": "css",
    ".json": "json",
    ".md": "markdown",
    ".markdown": "markdown",
    ".ipynb": "jupyter",
}


def extension_to_language(ext: str | None) -> str:
    if not ext:
        return "unknown"
    return _LANGUAGES.get(ext.lower(), "unknown")


__all__ = ["extension_to_language"]
