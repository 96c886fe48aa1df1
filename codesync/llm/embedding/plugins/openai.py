# codesync/llm/embedding/plugins/openai.py
"""
OpenAI-compatible embeddings over HTTP.

Works against api.openai.com and any server exposing the same
POST /embeddings contract (Ollama, vLLM, LiteLLM, Azure proxies).
"""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional, Sequence

import httpx

from codesync.core.exceptions import EmbeddingError
from codesync.logging.logger import get_logger
from codesync.logging.tags import EMBEDDING

logger = get_logger(__name__)

# Known output sizes; anything else must be given explicitly or is measured once.
KNOWN_DIMENSIONS: Dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


class OpenAIEmbedding:
    """
    Embedding client for OpenAI-style /embeddings endpoints.

    Environment:
        OPENAI_API_KEY: API key (required unless api_key is passed)
        OPENAI_BASE_URL: Base URL (default: https://api.openai.com/v1)
        EMBEDDING_MODEL: Model name (default: text-embedding-3-small)
    """

    plugin_name = "openai"

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        dimensions: Optional[int] = None,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        key = api_key or os.getenv("OPENAI_API_KEY")
        if not key and client is None:
            raise EmbeddingError("OPENAI_API_KEY is not set")

        self.model = model or os.getenv("EMBEDDING_MODEL") or "text-embedding-3-small"
        self._dimensions = dimensions
        base_url = base_url or os.getenv("OPENAI_BASE_URL") or "https://api.openai.com/v1"

        self._client = client or httpx.Client(
            base_url=base_url,
            headers={"Authorization": f"Bearer {key}"},
            timeout=timeout,
        )
        logger.info(f"{EMBEDDING} OpenAI-compatible embeddings: {self.model} @ {base_url}")

    @property
    def dimension(self) -> int:
        if self._dimensions is None:
            self._dimensions = KNOWN_DIMENSIONS.get(self.model)
        if self._dimensions is None:
            self._dimensions = len(self.embed(["dimension check"])[0])
        return self._dimensions

    def embed(self, texts: Sequence[str]) -> List[list[float]]:
        if not texts:
            return []

        body: Dict[str, Any] = {"model": self.model, "input": list(texts)}
        if self._dimensions is not None and self.model.startswith("text-embedding-3"):
            body["dimensions"] = self._dimensions

        try:
            response = self._client.post("/embeddings", json=body)
            response.raise_for_status()
            data = response.json()["data"]
        except httpx.HTTPStatusError as e:
            raise EmbeddingError(
                f"Embedding request failed with HTTP {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except (httpx.HTTPError, KeyError, ValueError) as e:
            raise EmbeddingError(f"Embedding request failed: {e}") from e

        ordered = sorted(data, key=lambda item: item.get("index", 0))
        if len(ordered) != len(texts):
            raise EmbeddingError(f"Expected {len(texts)} embeddings, got {len(ordered)}")
        return [item["embedding"] for item in ordered]


__all__ = ["OpenAIEmbedding", "KNOWN_DIMENSIONS"]
