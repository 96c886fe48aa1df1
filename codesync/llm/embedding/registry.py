# codesync/llm/embedding/registry.py
"""
Embedding plugin registry.

Design principle: NO SILENT FALLBACK
- If the config says "openai", you get openai or an error
"""

from __future__ import annotations

import importlib
from typing import Any, Dict

from codesync.core.exceptions import PluginNotFoundError
from codesync.llm.embedding.base import EmbeddingPlugin

EMBEDDING_REGISTRY: Dict[str, str] = {
    "local": "codesync.llm.embedding.plugins.local:LocalEmbedding",
    "openai": "codesync.llm.embedding.plugins.openai:OpenAIEmbedding",
}


def get_embedding_plugin(plugin_name: str, **kwargs: Any) -> EmbeddingPlugin:
    target = EMBEDDING_REGISTRY.get(plugin_name)
    if target is None:
        available = ", ".join(sorted(EMBEDDING_REGISTRY))
        raise PluginNotFoundError(
            f"Unknown embedding plugin '{plugin_name}'. Available: {available}"
        )
    module_name, _, attr = target.partition(":")
    cls = getattr(importlib.import_module(module_name), attr)
    return cls(**kwargs)


def available_embedding_plugins() -> list[str]:
    return sorted(EMBEDDING_REGISTRY)


__all__ = ["EMBEDDING_REGISTRY", "get_embedding_plugin", "available_embedding_plugins"]
