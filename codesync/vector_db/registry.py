# codesync/vector_db/registry.py
"""
Vector DB backend registry.

Backends are selected by an explicit VectorDBKind tag. There is no detection
from client objects and no silent fallback: asking for "qdrant" gives Qdrant
or an error.
"""

from __future__ import annotations

import importlib
from typing import Any, Callable, Dict

from codesync.core.exceptions import PluginNotFoundError
from codesync.vector_db.base import VectorDBKind, VectorDBPlugin

# kind -> "module:ClassName"; imported lazily so optional clients stay optional
VECTOR_DB_REGISTRY: Dict[VectorDBKind, str] = {
    VectorDBKind.MEMORY: "codesync.vector_db.plugins.memory:MemoryVectorDB",
    VectorDBKind.QDRANT: "codesync.vector_db.plugins.qdrant:QdrantVectorDB",
}


def _resolve(kind: VectorDBKind) -> Callable[..., VectorDBPlugin]:
    target = VECTOR_DB_REGISTRY.get(kind)
    if target is None:
        raise PluginNotFoundError(f"No vector DB backend registered for '{kind.value}'")
    module_name, _, attr = target.partition(":")
    module = importlib.import_module(module_name)
    return getattr(module, attr)


def get_vector_db_plugin(kind: VectorDBKind | str, **kwargs: Any) -> VectorDBPlugin:
    """
    Instantiate a vector DB backend.

    Args:
        kind: Backend tag ("memory", "qdrant") or VectorDBKind.
        **kwargs: Backend init kwargs.
    """
    try:
        kind = VectorDBKind(kind)
    except ValueError:
        available = ", ".join(k.value for k in VectorDBKind)
        raise PluginNotFoundError(f"Unknown vector DB kind '{kind}'. Available: {available}")
    return _resolve(kind)(**kwargs)


def available_vector_db_plugins() -> list[str]:
    return sorted(k.value for k in VECTOR_DB_REGISTRY)


__all__ = ["VECTOR_DB_REGISTRY", "get_vector_db_plugin", "available_vector_db_plugins"]
