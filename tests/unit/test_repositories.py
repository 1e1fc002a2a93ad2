"""Tests for the SQLAlchemy resolution repositories against a mocked AsyncSession."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from feedback_resolver.core import RepositoryException
from feedback_resolver.resolution.domain import ComplaintRecord
from feedback_resolver.resolution.infrastructure import (
    ComplaintModel,
    SolutionModel,
    SQLAlchemyComplaintRepository,
    SQLAlchemySolutionRepository,
)


def _session() -> AsyncMock:
    session = AsyncMock()
    session.add = MagicMock()
    return session


def _record() -> ComplaintRecord:
    return ComplaintRecord(
        id=None,
        customer_email="jane@example.com",
        text="I was charged twice",
        sentiment="negative",
        normalized_key="billing",
        answer_type="KNOWN_SOLUTION",
    )


class TestSQLAlchemyComplaintRepository:

    @pytest.mark.asyncio
    async def test_create_assigns_id_and_commits(self):
        session = _session()
        created_at = datetime(2024, 5, 1, tzinfo=timezone.utc)

        async def refresh(model):
            model.id = 7
            model.created_at = created_at

        session.refresh.side_effect = refresh

        stored = await SQLAlchemyComplaintRepository(session).create(_record())

        added = session.add.call_args.args[0]
        assert isinstance(added, ComplaintModel)
        assert added.answered is True
        assert stored.id == 7
        assert stored.created_at == created_at
        assert stored.answer_type == "KNOWN_SOLUTION"
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_create_failure_rolls_back(self):
        session = _session()
        session.flush.side_effect = IntegrityError("INSERT", {}, Exception("constraint"))

        with pytest.raises(RepositoryException):
            await SQLAlchemyComplaintRepository(session).create(_record())

        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()


class TestSQLAlchemySolutionRepository:

    @pytest.mark.asyncio
    async def test_get_by_key_found(self):
        session = _session()
        result = MagicMock()
        result.scalar_one_or_none.return_value = SolutionModel(
            id=3, normalized_key="billing", solution_text="Refund issued"
        )
        session.execute.return_value = result

        solution = await SQLAlchemySolutionRepository(session).get_by_key("billing")

        assert solution.id == 3
        assert solution.solution_text == "Refund issued"
        assert solution.is_usable

    @pytest.mark.asyncio
    async def test_get_by_key_missing(self):
        session = _session()
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        session.execute.return_value = result

        assert await SQLAlchemySolutionRepository(session).get_by_key("general") is None

    @pytest.mark.asyncio
    async def test_get_by_key_database_error(self):
        session = _session()
        session.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))

        with pytest.raises(RepositoryException):
            await SQLAlchemySolutionRepository(session).get_by_key("billing")

    @pytest.mark.asyncio
    async def test_upsert_updates_existing(self):
        session = _session()
        existing = SolutionModel(id=1, normalized_key="billing", solution_text="old")
        result = MagicMock()
        result.scalar_one_or_none.return_value = existing
        session.execute.return_value = result

        stored = await SQLAlchemySolutionRepository(session).upsert("billing", "new")

        assert existing.solution_text == "new"
        assert stored.solution_text == "new"
        session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_upsert_inserts_new(self):
        session = _session()
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        session.execute.return_value = result

        stored = await SQLAlchemySolutionRepository(session).upsert("technical", "Restart it")

        added = session.add.call_args.args[0]
        assert added.normalized_key == "technical"
        assert stored.solution_text == "Restart it"
