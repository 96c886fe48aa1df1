# codesync/vector_db/__init__.py
from codesync.vector_db.base import (
    FieldCondition,
    Filter,
    FilterOp,
    SearchResult,
    VectorDBKind,
    VectorDBPlugin,
    VectorPoint,
)
from codesync.vector_db.registry import available_vector_db_plugins, get_vector_db_plugin

__all__ = [
    "FieldCondition",
    "Filter",
    "FilterOp",
    "SearchResult",
    "VectorDBKind",
    "VectorDBPlugin",
    "VectorPoint",
    "available_vector_db_plugins",
    "get_vector_db_plugin",
]
