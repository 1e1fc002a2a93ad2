"""
Resolution Infrastructure Repositories
=======================================

SQLAlchemy implementations of resolution repositories.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from feedback_resolver.core import RepositoryException
from feedback_resolver.resolution.application import IComplaintRepository, ISolutionRepository
from feedback_resolver.resolution.domain import ComplaintRecord, SolutionRecord
from feedback_resolver.resolution.infrastructure.models import ComplaintModel, SolutionModel
from feedback_resolver.shared.infrastructure.logging import get_logger, log_latency

logger = get_logger(__name__)


def _to_solution(model: SolutionModel) -> SolutionRecord:
    return SolutionRecord(
        id=model.id,
        normalized_key=model.normalized_key,
        solution_text=model.solution_text
    )


class SQLAlchemyComplaintRepository(IComplaintRepository):
    """
    SQLAlchemy implementation for complaints.

    create commits straight away: the assigned id is used to key the
    complaint's embedding, so it must be durable first.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, record: ComplaintRecord) -> ComplaintRecord:
        """Insert a complaint and return it with id and created_at set."""
        model = ComplaintModel(
            customer_email=record.customer_email,
            text=record.text,
            sentiment=record.sentiment,
            normalized_key=record.normalized_key,
            answer_type=record.answer_type,
            answered=record.answered
        )

        try:
            with log_latency(logger, "complaint_insert", table="complaints"):
                self._session.add(model)
                await self._session.flush()
                await self._session.refresh(model)
                await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise RepositoryException(
                f"Failed to store complaint: {str(e)}",
                details={"table": "complaints"}
            )

        return ComplaintRecord(
            id=model.id,
            customer_email=model.customer_email,
            text=model.text,
            sentiment=model.sentiment,
            normalized_key=model.normalized_key,
            answer_type=model.answer_type,
            answered=model.answered,
            created_at=model.created_at
        )


class SQLAlchemySolutionRepository(ISolutionRepository):
    """SQLAlchemy implementation for curated solutions."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_key(self, normalized_key: str) -> Optional[SolutionRecord]:
        """Get the solution for a category; the lowest id wins on duplicates."""
        stmt = (
            select(SolutionModel)
            .where(SolutionModel.normalized_key == normalized_key)
            .order_by(SolutionModel.id)
            .limit(1)
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryException(
                f"Failed to read solution: {str(e)}",
                details={"table": "solutions", "normalized_key": normalized_key}
            )

        model = result.scalar_one_or_none()
        return _to_solution(model) if model is not None else None

    async def upsert(self, normalized_key: str, solution_text: str) -> SolutionRecord:
        """Replace the text of a category's solution, or add one."""
        stmt = (
            select(SolutionModel)
            .where(SolutionModel.normalized_key == normalized_key)
            .order_by(SolutionModel.id)
            .limit(1)
        )
        try:
            result = await self._session.execute(stmt)
            model = result.scalar_one_or_none()
            if model is None:
                model = SolutionModel(normalized_key=normalized_key, solution_text=solution_text)
                self._session.add(model)
            else:
                model.solution_text = solution_text
            await self._session.flush()
        except SQLAlchemyError as e:
            raise RepositoryException(
                f"Failed to store solution: {str(e)}",
                details={"table": "solutions", "normalized_key": normalized_key}
            )
        return _to_solution(model)
