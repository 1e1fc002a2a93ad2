"""Tests for analytics aggregation."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from feedback_resolver.analytics.application import AnalyticsAggregator, AnalyticsResponse, IComplaintStatsRepository
from feedback_resolver.analytics.domain import AnalyticsSnapshot, ComplaintCounts, percentage
from feedback_resolver.analytics.infrastructure import SQLAlchemyComplaintStatsRepository
from feedback_resolver.core import RepositoryException


class StaticStatsRepository(IComplaintStatsRepository):
    def __init__(self, counts: ComplaintCounts):
        self.counts = counts
        self.calls = 0

    async def get_counts(self) -> ComplaintCounts:
        self.calls += 1
        return self.counts


class TestPercentage:

    def test_zero_total(self):
        assert percentage(0, 0) == Decimal("0.00")

    def test_rounds_half_up(self):
        # 1/8 = 12.5%, 1/3 = 33.333..%, 2/3 = 66.666..%
        assert percentage(1, 8) == Decimal("12.50")
        assert percentage(1, 3) == Decimal("33.33")
        assert percentage(2, 3) == Decimal("66.67")
        assert percentage(1, 16) == Decimal("6.25")
        assert percentage(1, 1600) == Decimal("0.06")

    def test_whole(self):
        assert percentage(5, 5) == Decimal("100.00")


class TestAnalyticsSnapshot:

    def test_empty_store(self):
        payload = AnalyticsSnapshot(ComplaintCounts()).to_dict()

        assert payload == {
            "total_complaints": 0,
            "sentiment": {"positive": 0, "negative": 0},
            "answer_types": {
                "known_solution": {"count": 0, "percentage": 0.0},
                "stock": {"count": 0, "percentage": 0.0},
            },
        }

    def test_neutral_is_counted_in_total_only(self):
        counts = ComplaintCounts(total=3, positive=1, negative=1, known_solution=2, stock=1)

        payload = AnalyticsSnapshot(counts).to_dict()

        assert payload["total_complaints"] == 3
        assert payload["sentiment"] == {"positive": 1, "negative": 1}
        assert payload["answer_types"]["known_solution"] == {"count": 2, "percentage": 66.67}
        assert payload["answer_types"]["stock"] == {"count": 1, "percentage": 33.33}

    def test_response_model_matches_payload(self):
        counts = ComplaintCounts(total=4, positive=0, negative=3, known_solution=1, stock=3)

        response = AnalyticsResponse.from_snapshot(AnalyticsSnapshot(counts))

        assert response.model_dump() == AnalyticsSnapshot(counts).to_dict()


class TestAnalyticsAggregator:

    @pytest.mark.asyncio
    async def test_snapshot_is_idempotent(self):
        repository = StaticStatsRepository(ComplaintCounts(total=2, negative=2, stock=2))
        aggregator = AnalyticsAggregator(repository)

        first = await aggregator.snapshot()
        second = await aggregator.snapshot()

        assert first == second
        assert first.to_dict() == second.to_dict()
        assert repository.calls == 2


class TestSQLAlchemyComplaintStatsRepository:

    @staticmethod
    def _rows(rows):
        result = MagicMock()
        result.all.return_value = rows
        return result

    @pytest.mark.asyncio
    async def test_counts_from_grouped_queries(self):
        session = AsyncMock()
        session.scalar.return_value = 5
        session.execute.side_effect = [
            self._rows([("positive", 1), ("neutral", 2), ("negative", 2)]),
            self._rows([("KNOWN_SOLUTION", 3), ("STOCK", 2)]),
        ]

        counts = await SQLAlchemyComplaintStatsRepository(session).get_counts()

        assert counts == ComplaintCounts(total=5, positive=1, negative=2, known_solution=3, stock=2)

    @pytest.mark.asyncio
    async def test_empty_table(self):
        session = AsyncMock()
        session.scalar.return_value = None
        session.execute.side_effect = [self._rows([]), self._rows([])]

        counts = await SQLAlchemyComplaintStatsRepository(session).get_counts()

        assert counts == ComplaintCounts()

    @pytest.mark.asyncio
    async def test_database_error_becomes_repository_exception(self):
        session = AsyncMock()
        session.scalar.side_effect = OperationalError("SELECT", {}, Exception("down"))

        with pytest.raises(RepositoryException):
            await SQLAlchemyComplaintStatsRepository(session).get_counts()
