"""Tests for solution seeding and pipeline wiring."""

from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError

from feedback_resolver.config import Settings
from feedback_resolver.infrastructure.llm import MockLLMClient
from feedback_resolver.resolution.domain import SolutionRecord
from feedback_resolver.resolution.infrastructure import PipelineComponents, SQLAlchemySolutionRepository
from feedback_resolver.resolution.infrastructure.seeding import load_solution_seeds, seed_solutions


SOLUTIONS_YAML = """
solutions:
  - normalized_key: Billing
    solution_text: Refunds take 3-5 days.
  - normalized_key: technical
    solution_text: Clear your cache.
"""


class TestSeeding:

    def test_load_normalizes_keys(self, tmp_path):
        path = tmp_path / "solutions.yaml"
        path.write_text(SOLUTIONS_YAML)

        seeds = load_solution_seeds(path)

        assert [s.normalized_key for s in seeds.solutions] == ["billing", "technical"]

    def test_rejects_unknown_category(self, tmp_path):
        path = tmp_path / "solutions.yaml"
        path.write_text("solutions:\n  - normalized_key: shipping\n    solution_text: Track it.\n")

        with pytest.raises(ValidationError):
            load_solution_seeds(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "solutions.yaml"
        path.write_text("")

        assert load_solution_seeds(path).solutions == []

    @pytest.mark.asyncio
    async def test_seed_upserts_each_entry(self, tmp_path):
        path = tmp_path / "solutions.yaml"
        path.write_text(SOLUTIONS_YAML)
        repository = AsyncMock(spec=SQLAlchemySolutionRepository)
        repository.upsert.side_effect = lambda key, text: SolutionRecord(id=1, normalized_key=key, solution_text=text)

        stored = await seed_solutions(repository, load_solution_seeds(path))

        assert [r.normalized_key for r in stored] == ["billing", "technical"]
        assert repository.upsert.await_count == 2


class TestSettings:

    def test_stock_reply_template_requires_placeholder(self):
        with pytest.raises(ValidationError):
            Settings(stock_reply_template="Thanks for writing in.")

    def test_rejects_unknown_llm_provider(self):
        with pytest.raises(ValidationError):
            Settings(llm_provider="llama")


class TestPipelineComponents:

    def test_engine_uses_configured_policy(self, fakes):
        config = Settings(llm_provider="mock", similarity_threshold=0.8, similarity_top_k=5, embedding_dimension=8)
        components = PipelineComponents(
            llm_client=MockLLMClient(dimension=8),
            vector_index=fakes.VectorIndex(),
            config=config
        )

        engine = components.engine_for_session(AsyncMock())

        assert engine.policy.similarity_threshold == 0.8
        assert engine.policy.top_k == 5
        assert engine.policy.reply_subject == "Re: Your Support Request"
