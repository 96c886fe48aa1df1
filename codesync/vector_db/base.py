# codesync/vector_db/base.py
"""
Base types for vector database plugins.

This module defines the canonical types that every vector store backend must
conform to. The sync engine only talks to VectorDBPlugin; backend specifics
(query syntax, id formats, batching limits) stay inside the adapters.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, Sequence, runtime_checkable


class VectorDBKind(str, Enum):
    """Explicit backend tag, chosen at construction time."""

    MEMORY = "memory"
    QDRANT = "qdrant"


class FilterOp(str, Enum):
    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"


@dataclass(frozen=True, slots=True)
class FieldCondition:
    """One payload condition, e.g. FieldCondition("file_extension", FilterOp.EQ, ".ts")."""

    key: str
    op: FilterOp
    value: Any

    def matches(self, payload: dict[str, Any]) -> bool:
        if self.key not in payload:
            return False
        actual = payload[self.key]
        if self.op is FilterOp.EQ:
            return actual == self.value
        if self.op is FilterOp.NE:
            return actual != self.value
        if self.op is FilterOp.IN:
            return actual in self.value
        try:
            if self.op is FilterOp.GT:
                return actual > self.value
            if self.op is FilterOp.GTE:
                return actual >= self.value
            if self.op is FilterOp.LT:
                return actual < self.value
            if self.op is FilterOp.LTE:
                return actual <= self.value
        except TypeError:
            return False
        return False


@dataclass(frozen=True, slots=True)
class Filter:
    """
    Backend-neutral filter: all conditions must hold.

    Adapters translate this into their own query syntax.
    """

    must: tuple[FieldCondition, ...] = ()

    @classmethod
    def where(cls, **equals: Any) -> "Filter":
        """Shorthand for equality / membership conditions."""
        conditions = []
        for key, value in equals.items():
            if value is None:
                continue
            if isinstance(value, (list, tuple, set, frozenset)):
                conditions.append(FieldCondition(key, FilterOp.IN, tuple(value)))
            else:
                conditions.append(FieldCondition(key, FilterOp.EQ, value))
        return cls(must=tuple(conditions))

    def matches(self, payload: dict[str, Any]) -> bool:
        return all(c.matches(payload) for c in self.must)

    def __bool__(self) -> bool:
        return bool(self.must)


@dataclass(frozen=True, slots=True)
class VectorPoint:
    """A point to upsert: chunk id, embedding and payload."""

    id: str
    vector: list[float]
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class SearchResult:
    """
    Canonical vector search hit shape.

    score is None for plain filtered queries.
    """

    id: str
    score: float | None
    payload: dict[str, Any]


@runtime_checkable
class VectorDBPlugin(Protocol):
    """
    Protocol for vector database plugins.

    All operations are per collection and idempotent on the point id:
    re-upserting an id overwrites it, deleting a missing id is a no-op.
    Failures surface as StoreError.
    """

    kind: VectorDBKind

    def create_collection(self, collection: str, dimension: int) -> None:
        ...

    def has_collection(self, collection: str) -> bool:
        ...

    def drop_collection(self, collection: str) -> None:
        ...

    def upsert(self, collection: str, points: Sequence[VectorPoint]) -> None:
        ...

    def delete(self, collection: str, ids: Sequence[str]) -> None:
        ...

    def query(
        self,
        collection: str,
        filter: Filter | None = None,
        limit: int = 100,
    ) -> list[SearchResult]:
        ...

    def search(
        self,
        collection: str,
        query_vector: list[float],
        limit: int = 10,
        filter: Filter | None = None,
    ) -> list[SearchResult]:
        """Results ordered by similarity, highest first."""
        ...

    def count(self, collection: str) -> int:
        ...

    def close(self) -> None:
        """Release client resources. The plugin is unusable afterwards."""
        ...


__all__ = [
    "VectorDBKind",
    "FilterOp",
    "FieldCondition",
    "Filter",
    "VectorPoint",
    "SearchResult",
    "VectorDBPlugin",
]
