"""Text similarity capabilities used for domain detection and term matching.

Two implementations share one async interface:

  LexicalSimilarity    hashed bag-of-words vectors, no model needed
  EmbeddingSimilarity  vectors from any provider exposing `async embed(text)`

Both report cosine similarity clamped to [0, 1].
"""

from __future__ import annotations

import hashlib
import re
from abc import ABC, abstractmethod
from typing import Protocol

import numpy as np

_WORD_RE = re.compile(r"[a-z0-9]+")


class Embedder(Protocol):
    async def embed(self, text: str) -> list[float]: ...


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine similarity clamped to [0, 1]; zero vectors score 0."""
    norm_a = float(np.linalg.norm(a))
    norm_b = float(np.linalg.norm(b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    score = float(np.dot(a, b) / (norm_a * norm_b))
    return min(1.0, max(0.0, score))


class SimilarityCapability(ABC):
    """Bounded text similarity plus the embedding behind it."""

    @abstractmethod
    async def embed(self, text: str) -> np.ndarray:
        ...

    async def similarity(self, text_a: str, text_b: str) -> float:
        vec_a = await self.embed(text_a)
        vec_b = await self.embed(text_b)
        return cosine_similarity(vec_a, vec_b)


class LexicalSimilarity(SimilarityCapability):
    """Term-frequency vectors hashed into a fixed number of buckets.

    Hashing uses blake2b so vectors are stable across processes
    (the builtin `hash` is salted per interpreter).
    """

    def __init__(self, dimensions: int = 512) -> None:
        self.dimensions = dimensions

    def _bucket(self, token: str) -> int:
        digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
        return int.from_bytes(digest, "big") % self.dimensions

    async def embed(self, text: str) -> np.ndarray:
        vec = np.zeros(self.dimensions, dtype=np.float64)
        for token in _WORD_RE.findall(text.lower()):
            vec[self._bucket(token)] += 1.0
        return vec


class EmbeddingSimilarity(SimilarityCapability):
    """Similarity over model embeddings, memoizing one vector per text."""

    def __init__(self, embedder: Embedder, max_cached: int = 2048) -> None:
        self.embedder = embedder
        self.max_cached = max_cached
        self._vectors: dict[str, np.ndarray] = {}

    async def embed(self, text: str) -> np.ndarray:
        cached = self._vectors.get(text)
        if cached is not None:
            return cached
        vec = np.asarray(await self.embedder.embed(text), dtype=np.float64)
        if len(self._vectors) >= self.max_cached:
            # Drop the oldest entry (dicts keep insertion order)
            self._vectors.pop(next(iter(self._vectors)))
        self._vectors[text] = vec
        return vec
