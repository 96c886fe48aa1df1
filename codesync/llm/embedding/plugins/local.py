# codesync/llm/embedding/plugins/local.py
from __future__ import annotations

from dataclasses import dataclass
from hashlib import blake2b
from typing import List, Sequence

from codesync.logging.logger import get_logger
from codesync.logging.tags import EMBEDDING

logger = get_logger(__name__)


@dataclass
class LocalEmbedding:
    """
    Deterministic hash-embedding backend.

    Not semantic. Stable across machines and needs no network, which makes it
    the default for wiring checks and tests.
    """

    plugin_name: str = "local"
    dim: int = 384
    seed: int = 0

    def __post_init__(self) -> None:
        if self.dim < 1:
            raise ValueError(f"dim must be >= 1, got {self.dim}")
        logger.debug(f"{EMBEDDING} Using local hash embeddings (dim={self.dim})")

    @property
    def dimension(self) -> int:
        return self.dim

    def embed(self, texts: Sequence[str]) -> List[list[float]]:
        return [_hash_embed(t or "", dim=self.dim, seed=self.seed) for t in texts]


def _hash_embed(text: str, *, dim: int, seed: int) -> list[float]:
    # blake2b over (seed + text + counter) until there are 2 bytes per dimension,
    # mapped to [-1, 1] and L2-normalized.
    msg = f"{seed}\n{text}".encode("utf-8", errors="ignore")

    out = bytearray()
    ctr = 0
    while len(out) < dim * 2:
        h = blake2b(msg + ctr.to_bytes(4, "little"), digest_size=32)
        out.extend(h.digest())
        ctr += 1

    vec = [(((out[2 * i] << 8) | out[2 * i + 1]) / 32767.5) - 1.0 for i in range(dim)]

    norm = sum(x * x for x in vec) ** 0.5
    if norm > 0:
        vec = [x / norm for x in vec]
    return vec


__all__ = ["LocalEmbedding"]
