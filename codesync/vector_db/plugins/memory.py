# codesync/vector_db/plugins/memory.py
"""
In-process vector store.

Keeps collections in dictionaries guarded by a lock. Nothing is persisted, so
it suits tests, dry runs and small experiments. Search uses cosine similarity.
"""

from __future__ import annotations

import math
import threading
from typing import Dict, List, Sequence

from codesync.core.exceptions import StoreError
from codesync.logging.logger import get_logger
from codesync.logging.tags import VECTOR_DB
from codesync.vector_db.base import Filter, SearchResult, VectorDBKind, VectorPoint

logger = get_logger(__name__)


class _Collection:
    def __init__(self, dimension: int) -> None:
        self.dimension = dimension
        self.points: Dict[str, VectorPoint] = {}


def _cosine(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    na = math.sqrt(sum(x * x for x in a))
    nb = math.sqrt(sum(y * y for y in b))
    if na == 0 or nb == 0:
        return 0.0
    return dot / (na * nb)


class MemoryVectorDB:
    """
    Thread-safe in-memory implementation of VectorDBPlugin.

    Usage:
        db = MemoryVectorDB()
        db.create_collection("docs", 4)
        db.upsert("docs", [VectorPoint("a", [0.1, 0.2, 0.3, 0.4], {"relative_path": "a.ts"})])
    """

    kind = VectorDBKind.MEMORY

    def __init__(self) -> None:
        self._collections: Dict[str, _Collection] = {}
        self._lock = threading.RLock()

    def close(self) -> None:
        """Nothing to release; the collections live as long as this object."""

    def _get(self, collection: str) -> _Collection:
        coll = self._collections.get(collection)
        if coll is None:
            raise StoreError(f"Collection '{collection}' does not exist")
        return coll

    def create_collection(self, collection: str, dimension: int) -> None:
        if dimension < 1:
            raise StoreError(f"Invalid dimension {dimension} for '{collection}'")
        with self._lock:
            if collection in self._collections:
                return
            self._collections[collection] = _Collection(dimension)
        logger.info(f"{VECTOR_DB} Created collection '{collection}' (dim={dimension})")

    def has_collection(self, collection: str) -> bool:
        with self._lock:
            return collection in self._collections

    def drop_collection(self, collection: str) -> None:
        with self._lock:
            self._collections.pop(collection, None)
        logger.info(f"{VECTOR_DB} Dropped collection '{collection}'")

    def upsert(self, collection: str, points: Sequence[VectorPoint]) -> None:
        with self._lock:
            coll = self._get(collection)
            for point in points:
                if len(point.vector) != coll.dimension:
                    raise StoreError(
                        f"Vector for '{point.id}' has dimension {len(point.vector)}, "
                        f"collection '{collection}' expects {coll.dimension}"
                    )
            for point in points:
                coll.points[point.id] = VectorPoint(
                    id=point.id,
                    vector=list(point.vector),
                    payload=dict(point.payload),
                )

    def delete(self, collection: str, ids: Sequence[str]) -> None:
        with self._lock:
            coll = self._get(collection)
            for id_ in ids:
                coll.points.pop(id_, None)

    def query(
        self,
        collection: str,
        filter: Filter | None = None,
        limit: int = 100,
    ) -> List[SearchResult]:
        with self._lock:
            coll = self._get(collection)
            hits = [
                SearchResult(id=p.id, score=None, payload=dict(p.payload))
                for p in coll.points.values()
                if filter is None or filter.matches(p.payload)
            ]
        hits.sort(key=lambda h: h.id)
        return hits[:limit]

    def search(
        self,
        collection: str,
        query_vector: List[float],
        limit: int = 10,
        filter: Filter | None = None,
    ) -> List[SearchResult]:
        with self._lock:
            coll = self._get(collection)
            candidates = [
                p for p in coll.points.values() if filter is None or filter.matches(p.payload)
            ]
        scored = [
            SearchResult(id=p.id, score=_cosine(query_vector, p.vector), payload=dict(p.payload))
            for p in candidates
        ]
        scored.sort(key=lambda h: (-(h.score or 0.0), h.id))
        return scored[:limit]

    def count(self, collection: str) -> int:
        with self._lock:
            return len(self._get(collection).points)

    def ids(self, collection: str) -> set[str]:
        """All point ids in a collection."""
        with self._lock:
            return set(self._get(collection).points)

    def get(self, collection: str, id_: str) -> VectorPoint | None:
        with self._lock:
            return self._get(collection).points.get(id_)


__all__ = ["MemoryVectorDB"]
