# codesync/logging/tags.py
"""
Log message prefixes.

Usage:
    logger.info(f"{SYNC} Reconciling {n} files")
"""

SCAN = "[SCAN]"
DIFF = "[DIFF]"
SYNC = "[SYNC]"
SNAPSHOT = "[SNAPSHOT]"
EMBEDDING = "[EMBEDDING]"
VECTOR_DB = "[VECTOR_DB]"
CLI = "[CLI]"

__all__ = [
    "SCAN",
    "DIFF",
    "SYNC",
    "SNAPSHOT",
    "EMBEDDING",
    "VECTOR_DB",
    "CLI",
]
