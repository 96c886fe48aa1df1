# codesync/llm/embedding/base.py
from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable


@runtime_checkable
class EmbeddingPlugin(Protocol):
    """
    Canonical embedding plugin contract.

    embed() returns one vector per input text, in input order, each of
    length `dimension`. Provider failures raise EmbeddingError.
    """

    plugin_name: str

    @property
    def dimension(self) -> int:
        ...

    def embed(self, texts: Sequence[str]) -> list[list[float]]:
        ...
