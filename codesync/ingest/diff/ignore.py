# codesync/ingest/diff/ignore.py
"""
Ignore rules for the fingerprint scanner.

Sources, merged in this order and deduplicated:
1. DEFAULT_IGNORE_PATTERNS
2. Patterns from config (scan.ignore_patterns)
3. CODESYNC_CUSTOM_IGNORE_PATTERNS (comma-separated)
4. <root>/.contextignore
5. the global ignore file (CODESYNC_HOME/.contextignore)

Pattern semantics:
- "name/"      matches any path segment equal to name (globs allowed)
- "a/b*", "x/**" contain a slash: matched against the whole relative path
- "*.log"      no slash: matched against the basename

Files must also carry an allowed extension.
"""

from __future__ import annotations

import os
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from codesync.core.paths import CodeSyncPaths
from codesync.logging.logger import get_logger
from codesync.logging.tags import SCAN

logger = get_logger(__name__)

IGNORE_FILE_NAME = ".contextignore"
ENV_CUSTOM_IGNORE = "CODESYNC_CUSTOM_IGNORE_PATTERNS"
ENV_CUSTOM_EXTENSIONS = "CODESYNC_CUSTOM_EXTENSIONS"

DEFAULT_EXTENSIONS = (
    # Programming languages
    ".ts", ".tsx", ".js", ".jsx", ".py", ".java", ".cpp", ".c", ".h", ".hpp",
    ".cs", ".go", ".rs", ".php", ".rb", ".swift", ".kt", ".scala", ".m", ".mm",
    # Text and markup
    ".md", ".markdown", ".ipynb",
)

DEFAULT_IGNORE_PATTERNS = (
    # Build output and dependencies
    "node_modules", "dist", "build", "out", "target", "coverage", ".nyc_output",
    # IDE and editor files
    ".vscode", ".idea", "*.swp", "*.swo",
    # Version control
    ".git", ".svn", ".hg",
    # Caches
    ".cache", "__pycache__", ".pytest_cache",
    # Logs and temporary files
    "logs", "tmp", "temp", "*.log",
    # Environment files
    ".env", ".env.*", "*.local",
    # Minified and bundled files
    "*.min.js", "*.min.css", "*.min.map", "*.bundle.js", "*.bundle.css",
    "*.chunk.js", "*.vendor.js", "*.polyfills.js", "*.runtime.js", "*.map",
)


def read_ignore_file(path: str | Path) -> List[str]:
    """Patterns from an ignore file; blank lines and # comments are skipped."""
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return []
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"{SCAN} Cannot read ignore file {path}: {e}")
        return []

    patterns = [
        line.strip()
        for line in content.splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]
    if patterns:
        logger.info(f"{SCAN} Loaded {len(patterns)} ignore patterns from {path}")
    return patterns


def _split_env(name: str) -> List[str]:
    raw = os.getenv(name, "")
    return [part.strip() for part in raw.split(",") if part.strip()]


def _normalize_ext(ext: str) -> str:
    ext = ext.strip().lower()
    return ext if ext.startswith(".") else f".{ext}"


class IgnoreRules:
    """
    Path predicate: True means "skip".

    Paths are relative POSIX paths; directories end with "/".

    Usage:
        rules = IgnoreRules.for_root("./repo", extra_patterns=["fixtures/"])
        rules("node_modules/")   # True
        rules("src/app.ts")      # False
        rules("README.txt")      # True (extension not allowed)
    """

    def __init__(
        self,
        patterns: Iterable[str] = DEFAULT_IGNORE_PATTERNS,
        extensions: Optional[Iterable[str]] = DEFAULT_EXTENSIONS,
    ) -> None:
        self.patterns: List[str] = list(dict.fromkeys(p.strip() for p in patterns if p.strip()))
        self.extensions = (
            frozenset(_normalize_ext(e) for e in extensions) if extensions is not None else None
        )

    @classmethod
    def for_root(
        cls,
        root: str | Path,
        *,
        extra_patterns: Sequence[str] = (),
        extra_extensions: Sequence[str] = (),
        use_ignore_files: bool = True,
    ) -> "IgnoreRules":
        patterns: List[str] = list(DEFAULT_IGNORE_PATTERNS)
        patterns.extend(extra_patterns)
        patterns.extend(_split_env(ENV_CUSTOM_IGNORE))
        if use_ignore_files:
            patterns.extend(read_ignore_file(Path(root) / IGNORE_FILE_NAME))
            patterns.extend(read_ignore_file(CodeSyncPaths.global_ignore_file()))

        extensions = list(DEFAULT_EXTENSIONS)
        extensions.extend(extra_extensions)
        extensions.extend(_split_env(ENV_CUSTOM_EXTENSIONS))

        return cls(patterns, extensions)

    def __call__(self, rel_path: str) -> bool:
        is_dir = rel_path.endswith("/")
        path = rel_path.rstrip("/")
        if not path:
            return False

        for pattern in self.patterns:
            if self._matches(path, pattern, is_dir):
                return True

        if is_dir or self.extensions is None:
            return False
        name = path.rsplit("/", 1)[-1]
        dot = name.rfind(".")
        ext = name[dot:].lower() if dot > 0 else ""
        return ext not in self.extensions

    @staticmethod
    def _matches(path: str, pattern: str, is_dir: bool) -> bool:
        if pattern.endswith("/"):
            dir_pattern = pattern.rstrip("/")
            segments = path.split("/")
            if not is_dir:
                segments = segments[:-1]
            return any(fnmatchcase(segment, dir_pattern) for segment in segments)

        if "/" in pattern:
            pattern = pattern.lstrip("/")
            if fnmatchcase(path, pattern):
                return True
            return is_dir and fnmatchcase(f"{path}/", pattern)

        name = path.rsplit("/", 1)[-1]
        return fnmatchcase(name, pattern)


__all__ = [
    "IgnoreRules",
    "DEFAULT_EXTENSIONS",
    "DEFAULT_IGNORE_PATTERNS",
    "IGNORE_FILE_NAME",
    "read_ignore_file",
]
