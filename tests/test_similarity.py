"""Tests for the similarity capabilities."""

from __future__ import annotations

import numpy as np
import pytest

from bizcontext.similarity import EmbeddingSimilarity, LexicalSimilarity, cosine_similarity


class CountingEmbedder:
    def __init__(self) -> None:
        self.calls = 0

    async def embed(self, text: str) -> list[float]:
        self.calls += 1
        return [float(len(text)), 1.0, 0.0]


class TestCosineSimilarity:
    def test_identical(self):
        v = np.array([1.0, 2.0, 3.0])
        assert cosine_similarity(v, v) == pytest.approx(1.0)

    def test_orthogonal(self):
        assert cosine_similarity(np.array([1.0, 0.0]), np.array([0.0, 1.0])) == 0.0

    def test_opposite_clamped(self):
        assert cosine_similarity(np.array([1.0, 0.0]), np.array([-1.0, 0.0])) == 0.0

    def test_zero_vector(self):
        assert cosine_similarity(np.zeros(3), np.array([1.0, 2.0, 3.0])) == 0.0


class TestLexicalSimilarity:
    @pytest.mark.asyncio
    async def test_identical_text(self):
        sim = LexicalSimilarity()
        assert await sim.similarity("player deposits", "player deposits") == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_unrelated_text(self):
        sim = LexicalSimilarity(dimensions=4096)
        assert await sim.similarity("deposits", "weather") < 0.5

    @pytest.mark.asyncio
    async def test_bounded(self):
        sim = LexicalSimilarity()
        score = await sim.similarity("revenue by country", "country revenue totals")
        assert 0.0 <= score <= 1.0

    @pytest.mark.asyncio
    async def test_empty_text(self):
        assert await LexicalSimilarity().similarity("", "revenue") == 0.0


class TestEmbeddingSimilarity:
    @pytest.mark.asyncio
    async def test_memoizes_vectors(self):
        embedder = CountingEmbedder()
        sim = EmbeddingSimilarity(embedder)
        await sim.similarity("abc", "abcd")
        await sim.similarity("abc", "abcd")
        assert embedder.calls == 2

    @pytest.mark.asyncio
    async def test_evicts_oldest(self):
        embedder = CountingEmbedder()
        sim = EmbeddingSimilarity(embedder, max_cached=2)
        await sim.embed("a")
        await sim.embed("b")
        await sim.embed("c")
        await sim.embed("a")
        assert embedder.calls == 4
