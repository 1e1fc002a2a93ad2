"""Tests for EmbeddingService and SimilarityIndexService degradation rules."""

import asyncio

import pytest

from feedback_resolver.core import LLMException
from feedback_resolver.resolution.application import EmbeddingService, SimilarityIndexService
from feedback_resolver.resolution.domain import EmbeddingVector


class TestEmbeddingService:

    @pytest.mark.asyncio
    async def test_returns_vector_of_index_dimension(self, fakes):
        service = EmbeddingService(fakes.EmbeddingClient(vector=[0.1, 0.2, 0.3, 0.4]), dimension=4)

        vector = await service.embed("printer on fire")

        assert vector.values == [0.1, 0.2, 0.3, 0.4]
        assert vector.model == "fake-embedding"
        assert not vector.is_empty

    @pytest.mark.asyncio
    async def test_service_error_returns_empty(self, fakes):
        service = EmbeddingService(fakes.EmbeddingClient(error=LLMException("503")), dimension=4)

        assert (await service.embed("text")).is_empty

    @pytest.mark.asyncio
    async def test_dimension_mismatch_returns_empty(self, fakes):
        service = EmbeddingService(fakes.EmbeddingClient(vector=[0.1, 0.2]), dimension=4)

        assert (await service.embed("text")).is_empty

    @pytest.mark.asyncio
    async def test_empty_payload_returns_empty(self, fakes):
        service = EmbeddingService(fakes.EmbeddingClient(vector=[]), dimension=4)

        assert (await service.embed("text")).is_empty

    @pytest.mark.asyncio
    async def test_non_numeric_payload_returns_empty(self, fakes):
        service = EmbeddingService(fakes.EmbeddingClient(vector=["a", "b", "c", "d"]), dimension=4)

        assert (await service.embed("text")).is_empty

    @pytest.mark.asyncio
    async def test_timeout_returns_empty(self, fakes):
        class SlowEmbeddings(fakes.EmbeddingClient):
            async def generate_embedding(self, text):
                await asyncio.sleep(1)
                return await super().generate_embedding(text)

        service = EmbeddingService(SlowEmbeddings(), dimension=4, timeout_seconds=0.01)

        assert (await service.embed("text")).is_empty


class TestSimilarityIndexService:

    @pytest.mark.asyncio
    async def test_empty_vector_skips_search(self, fakes):
        index = fakes.VectorIndex()
        service = SimilarityIndexService(index)

        assert await service.query(EmbeddingVector.empty(), top_k=3) == []
        assert index.searches == []

    @pytest.mark.asyncio
    async def test_orders_by_score_and_truncates(self, fakes, make_match):
        index = fakes.VectorIndex(matches=[
            make_match(0.5, match_id="a"),
            make_match(0.9, match_id="b"),
            make_match(0.7, match_id="c"),
            make_match(0.8, match_id="d"),
        ])
        service = SimilarityIndexService(index)

        matches = await service.query(EmbeddingVector(values=[0.1] * 4), top_k=3)

        assert [m.id for m in matches] == ["b", "d", "c"]
        assert index.searches[0][1] == 3

    @pytest.mark.asyncio
    async def test_search_failure_returns_no_matches(self, fakes, index_down):
        service = SimilarityIndexService(fakes.VectorIndex(search_error=index_down))

        assert await service.query(EmbeddingVector(values=[0.1] * 4), top_k=3) == []

    @pytest.mark.asyncio
    async def test_insert_reports_success(self, fakes):
        index = fakes.VectorIndex()
        service = SimilarityIndexService(index)

        stored = await service.insert("complaint-1-1", EmbeddingVector(values=[0.1] * 4), {"sentiment": "neutral"})

        assert stored is True
        assert index.added["complaint-1-1"]["metadata"] == {"sentiment": "neutral"}

    @pytest.mark.asyncio
    async def test_insert_failure_is_swallowed(self, fakes, index_down):
        service = SimilarityIndexService(fakes.VectorIndex(add_error=index_down))

        assert await service.insert("complaint-1-1", EmbeddingVector(values=[0.1] * 4), {}) is False

    @pytest.mark.asyncio
    async def test_insert_of_empty_vector_is_skipped(self, fakes):
        index = fakes.VectorIndex()
        service = SimilarityIndexService(index)

        assert await service.insert("complaint-1-1", EmbeddingVector.empty(), {}) is False
        assert index.added == {}
