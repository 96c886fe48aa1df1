# tests/test_embedding.py
"""Tests for embedding plugins."""

import json
import math

import httpx
import pytest

from codesync.core.exceptions import EmbeddingError, PluginNotFoundError
from codesync.llm.embedding import (
    EmbeddingPlugin,
    available_embedding_plugins,
    get_embedding_plugin,
)
from codesync.llm.embedding.plugins.local import LocalEmbedding
from codesync.llm.embedding.plugins.openai import OpenAIEmbedding


class TestLocalEmbedding:
    def test_shape_and_norm(self):
        emb = LocalEmbedding(dim=16)

        vectors = emb.embed(["a", "b"])

        assert len(vectors) == 2
        assert all(len(v) == 16 for v in vectors)
        assert math.isclose(sum(x * x for x in vectors[0]), 1.0, rel_tol=1e-9)

    def test_deterministic_and_text_sensitive(self):
        emb = LocalEmbedding(dim=8)

        assert emb.embed(["same"]) == emb.embed(["same"])
        assert emb.embed(["one"]) != emb.embed(["two"])

    def test_seed_changes_vectors(self):
        assert LocalEmbedding(dim=8, seed=1).embed(["x"]) != LocalEmbedding(dim=8, seed=2).embed(["x"])

    def test_invalid_dim(self):
        with pytest.raises(ValueError):
            LocalEmbedding(dim=0)

    def test_satisfies_protocol(self):
        assert isinstance(LocalEmbedding(dim=4), EmbeddingPlugin)


def openai_client(handler) -> httpx.Client:
    return httpx.Client(base_url="https://embeddings.test/v1", transport=httpx.MockTransport(handler))


class TestOpenAIEmbedding:
    def test_embed_orders_by_index(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "data": [
                        {"index": 1, "embedding": [0.0, 1.0]},
                        {"index": 0, "embedding": [1.0, 0.0]},
                    ]
                },
            )

        emb = OpenAIEmbedding(model="custom-model", dimensions=2, client=openai_client(handler))

        assert emb.embed(["first", "second"]) == [[1.0, 0.0], [0.0, 1.0]]
        assert seen["path"] == "/v1/embeddings"
        assert seen["body"] == {"model": "custom-model", "input": ["first", "second"]}

    def test_dimensions_sent_for_v3_models(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"data": [{"index": 0, "embedding": [0.1] * 256}]})

        emb = OpenAIEmbedding(
            model="text-embedding-3-small", dimensions=256, client=openai_client(handler)
        )
        emb.embed(["x"])

        assert bodies[0]["dimensions"] == 256

    def test_http_error_becomes_embedding_error(self):
        client = openai_client(lambda request: httpx.Response(429, text="slow down"))
        emb = OpenAIEmbedding(model="custom-model", dimensions=2, client=client)

        with pytest.raises(EmbeddingError, match="HTTP 429"):
            emb.embed(["x"])

    def test_count_mismatch(self):
        client = openai_client(lambda request: httpx.Response(200, json={"data": []}))
        emb = OpenAIEmbedding(model="custom-model", dimensions=2, client=client)

        with pytest.raises(EmbeddingError, match="Expected 1 embeddings, got 0"):
            emb.embed(["x"])

    def test_malformed_response(self):
        client = openai_client(lambda request: httpx.Response(200, json={"oops": True}))
        emb = OpenAIEmbedding(model="custom-model", dimensions=2, client=client)

        with pytest.raises(EmbeddingError):
            emb.embed(["x"])

    def test_known_dimension(self):
        emb = OpenAIEmbedding(model="text-embedding-3-large", client=openai_client(None))

        assert emb.dimension == 3072

    def test_unknown_dimension_is_measured_once(self):
        calls = []

        def handler(request):
            calls.append(1)
            return httpx.Response(200, json={"data": [{"index": 0, "embedding": [0.5] * 5}]})

        emb = OpenAIEmbedding(model="nomic-embed-text", client=openai_client(handler))

        assert emb.dimension == 5
        assert emb.dimension == 5
        assert len(calls) == 1

    def test_empty_input_makes_no_request(self):
        def handler(request):
            raise AssertionError("no request expected")

        emb = OpenAIEmbedding(model="m", dimensions=2, client=openai_client(handler))

        assert emb.embed([]) == []

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        with pytest.raises(EmbeddingError, match="OPENAI_API_KEY"):
            OpenAIEmbedding()


class TestRegistry:
    def test_get_local(self):
        emb = get_embedding_plugin("local", dim=12)

        assert emb.dimension == 12

    def test_unknown(self):
        with pytest.raises(PluginNotFoundError, match="Available: local, openai"):
            get_embedding_plugin("cohere")

    def test_available(self):
        assert available_embedding_plugins() == ["local", "openai"]
