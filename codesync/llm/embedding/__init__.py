# codesync/llm/embedding/__init__.py
from codesync.llm.embedding.base import EmbeddingPlugin
from codesync.llm.embedding.registry import available_embedding_plugins, get_embedding_plugin

__all__ = ["EmbeddingPlugin", "available_embedding_plugins", "get_embedding_plugin"]
