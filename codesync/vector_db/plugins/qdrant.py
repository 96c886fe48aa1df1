# codesync/vector_db/plugins/qdrant.py
"""
Qdrant vector database plugin.

Features:
- Connection from explicit kwargs, else QDRANT_URL / QDRANT_HOST / QDRANT_PORT,
  else embedded on-disk storage that survives between processes
- Converts string chunk ids to deterministic UUIDs (Qdrant only accepts
  unsigned ints and UUIDs) and keeps the original id in the payload
- Translates the backend-neutral Filter into qdrant models.Filter
- Wraps every client failure in StoreError
"""

from __future__ import annotations

import os
import threading
import uuid
from contextlib import nullcontext
from pathlib import Path
from typing import Any, ContextManager, List, Optional, Sequence

from qdrant_client import QdrantClient, models

from codesync.core.exceptions import StoreError
from codesync.core.paths import CodeSyncPaths
from codesync.logging.logger import get_logger
from codesync.logging.tags import VECTOR_DB
from codesync.vector_db.base import (
    FieldCondition,
    Filter,
    FilterOp,
    SearchResult,
    VectorDBKind,
    VectorPoint,
)

logger = get_logger(__name__)

ORIGINAL_ID_KEY = "_original_id"


def _string_to_uuid(s: str) -> str:
    """Convert any string to a deterministic UUID."""
    return str(uuid.uuid5(uuid.NAMESPACE_DNS, s))


def _to_qdrant_condition(cond: FieldCondition) -> tuple[str, Any]:
    """Return ("must" | "must_not", qdrant condition)."""
    if cond.op is FilterOp.EQ:
        return "must", models.FieldCondition(key=cond.key, match=models.MatchValue(value=cond.value))
    if cond.op is FilterOp.NE:
        return "must_not", models.FieldCondition(
            key=cond.key, match=models.MatchValue(value=cond.value)
        )
    if cond.op is FilterOp.IN:
        return "must", models.FieldCondition(
            key=cond.key, match=models.MatchAny(any=list(cond.value))
        )
    bound = {
        FilterOp.GT: "gt",
        FilterOp.GTE: "gte",
        FilterOp.LT: "lt",
        FilterOp.LTE: "lte",
    }[cond.op]
    return "must", models.FieldCondition(key=cond.key, range=models.Range(**{bound: cond.value}))


def to_qdrant_filter(filter: Filter | None) -> Optional[models.Filter]:
    """Translate a backend-neutral Filter."""
    if not filter:
        return None
    must: list = []
    must_not: list = []
    for cond in filter.must:
        slot, qcond = _to_qdrant_condition(cond)
        (must if slot == "must" else must_not).append(qcond)
    return models.Filter(must=must or None, must_not=must_not or None)


def _hit_to_result(point: Any, score: float | None) -> SearchResult:
    payload = dict(point.payload or {})
    original_id = payload.pop(ORIGINAL_ID_KEY, None)
    return SearchResult(id=original_id or str(point.id), score=score, payload=payload)


class QdrantVectorDB:
    """
    Qdrant implementation of VectorDBPlugin.

    Connection resolution (in order):
    1. Explicit path (embedded, on disk) / location / url / host+port kwargs
    2. QDRANT_URL, then QDRANT_HOST / QDRANT_PORT environment variables
    3. Embedded on-disk storage under CODESYNC_HOME/qdrant

    Embedded storage is locked by the client that opens it: only one
    QdrantVectorDB per path may be open at a time, so close() it before
    opening the same path again. Embedded clients serialize their calls.

    Usage:
        db = QdrantVectorDB()  # embedded, ~/.codesync/qdrant
        db = QdrantVectorDB(host="localhost", port=6333)
        db = QdrantVectorDB(location=":memory:")  # embedded, for experiments
    """

    kind = VectorDBKind.QDRANT

    def __init__(
        self,
        *,
        path: Optional[str] = None,
        url: Optional[str] = None,
        host: Optional[str] = None,
        port: Optional[int] = None,
        api_key: Optional[str] = None,
        location: Optional[str] = None,
        timeout: int = 10,
        client: Optional[QdrantClient] = None,
    ) -> None:
        self._guard: ContextManager = nullcontext()
        if client is not None:
            self._client = client
            return

        api_key = api_key or os.getenv("QDRANT_API_KEY")
        url = url or os.getenv("QDRANT_URL")
        host = host or os.getenv("QDRANT_HOST")
        port = port or os.getenv("QDRANT_PORT")
        try:
            if path is None and location is None and not (url or host or port):
                path = str(CodeSyncPaths.vector_db())
            if path is not None:
                storage = Path(path).expanduser()
                storage.mkdir(parents=True, exist_ok=True)
                self._client = QdrantClient(path=str(storage))
                self._guard = threading.RLock()
                target = str(storage)
            elif location is not None:
                self._client = QdrantClient(location=location)
                self._guard = threading.RLock()
                target = location
            elif url:
                self._client = QdrantClient(url=url, api_key=api_key, timeout=timeout)
                target = url
            else:
                host = host or "localhost"
                port = int(port or 6333)
                self._client = QdrantClient(host=host, port=port, api_key=api_key, timeout=timeout)
                target = f"{host}:{port}"
        except Exception as e:
            raise StoreError(f"Cannot create Qdrant client: {e}") from e

        logger.info(f"{VECTOR_DB} Qdrant client ready ({target})")

    def close(self) -> None:
        """Release the client; for embedded storage this frees the path lock."""
        with self._guard:
            try:
                self._client.close()
            except Exception as e:
                raise StoreError(f"Failed to close Qdrant client: {e}") from e

    # =========================================================================
    # Collection Management
    # =========================================================================

    def create_collection(self, collection: str, dimension: int) -> None:
        try:
            with self._guard:
                if self._client.collection_exists(collection):
                    return
                self._client.create_collection(
                    collection_name=collection,
                    vectors_config=models.VectorParams(
                        size=dimension, distance=models.Distance.COSINE
                    ),
                )
        except Exception as e:
            raise StoreError(f"Failed to create collection '{collection}': {e}") from e
        logger.info(f"{VECTOR_DB} Created Qdrant collection '{collection}' (dim={dimension})")

    def has_collection(self, collection: str) -> bool:
        try:
            with self._guard:
                return bool(self._client.collection_exists(collection))
        except Exception as e:
            raise StoreError(f"Failed to check collection '{collection}': {e}") from e

    def drop_collection(self, collection: str) -> None:
        try:
            with self._guard:
                self._client.delete_collection(collection_name=collection)
        except Exception as e:
            raise StoreError(f"Failed to drop collection '{collection}': {e}") from e
        logger.info(f"{VECTOR_DB} Dropped Qdrant collection '{collection}'")

    # =========================================================================
    # Points
    # =========================================================================

    def upsert(self, collection: str, points: Sequence[VectorPoint]) -> None:
        if not points:
            return
        structs = []
        for point in points:
            payload = dict(point.payload)
            payload[ORIGINAL_ID_KEY] = point.id
            structs.append(
                models.PointStruct(
                    id=_string_to_uuid(point.id),
                    vector=list(point.vector),
                    payload=payload,
                )
            )
        try:
            with self._guard:
                self._client.upsert(collection_name=collection, points=structs, wait=True)
        except Exception as e:
            raise StoreError(f"Upsert of {len(structs)} points into '{collection}' failed: {e}") from e
        logger.debug(f"{VECTOR_DB} Upserted {len(structs)} points into '{collection}'")

    def delete(self, collection: str, ids: Sequence[str]) -> None:
        if not ids:
            return
        try:
            with self._guard:
                self._client.delete(
                    collection_name=collection,
                    points_selector=models.PointIdsList(points=[_string_to_uuid(i) for i in ids]),
                    wait=True,
                )
        except Exception as e:
            raise StoreError(f"Delete of {len(ids)} points from '{collection}' failed: {e}") from e

    def query(
        self,
        collection: str,
        filter: Filter | None = None,
        limit: int = 100,
    ) -> List[SearchResult]:
        try:
            with self._guard:
                records, _ = self._client.scroll(
                    collection_name=collection,
                    scroll_filter=to_qdrant_filter(filter),
                    limit=limit,
                    with_payload=True,
                    with_vectors=False,
                )
        except Exception as e:
            raise StoreError(f"Query on '{collection}' failed: {e}") from e
        return [_hit_to_result(r, None) for r in records]

    def search(
        self,
        collection: str,
        query_vector: List[float],
        limit: int = 10,
        filter: Filter | None = None,
    ) -> List[SearchResult]:
        try:
            with self._guard:
                response = self._client.query_points(
                    collection_name=collection,
                    query=query_vector,
                    query_filter=to_qdrant_filter(filter),
                    limit=limit,
                    with_payload=True,
                )
        except Exception as e:
            raise StoreError(f"Search on '{collection}' failed: {e}") from e
        return [_hit_to_result(hit, hit.score) for hit in response.points]

    def count(self, collection: str) -> int:
        try:
            with self._guard:
                return int(self._client.count(collection_name=collection, exact=True).count)
        except Exception as e:
            raise StoreError(f"Count on '{collection}' failed: {e}") from e


__all__ = ["QdrantVectorDB", "to_qdrant_filter"]
