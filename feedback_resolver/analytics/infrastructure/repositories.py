"""
Analytics Infrastructure Repositories
======================================

SQLAlchemy aggregate queries over the complaints table.
"""

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from feedback_resolver.analytics.application import IComplaintStatsRepository
from feedback_resolver.analytics.domain import ComplaintCounts
from feedback_resolver.config import AnswerType, Sentiment
from feedback_resolver.core import RepositoryException
from feedback_resolver.resolution.infrastructure.models import ComplaintModel


class SQLAlchemyComplaintStatsRepository(IComplaintStatsRepository):
    """SQLAlchemy implementation for complaint statistics."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_counts(self) -> ComplaintCounts:
        try:
            total = await self._session.scalar(select(func.count(ComplaintModel.id)))

            result = await self._session.execute(
                select(ComplaintModel.sentiment, func.count(ComplaintModel.id))
                .group_by(ComplaintModel.sentiment)
            )
            sentiment_distribution = {row[0]: row[1] for row in result.all()}

            result = await self._session.execute(
                select(ComplaintModel.answer_type, func.count(ComplaintModel.id))
                .group_by(ComplaintModel.answer_type)
            )
            answer_distribution = {row[0]: row[1] for row in result.all()}
        except SQLAlchemyError as e:
            raise RepositoryException(f"Failed to read complaint statistics: {str(e)}")

        return ComplaintCounts(
            total=total or 0,
            positive=sentiment_distribution.get(Sentiment.POSITIVE, 0),
            negative=sentiment_distribution.get(Sentiment.NEGATIVE, 0),
            known_solution=answer_distribution.get(AnswerType.KNOWN_SOLUTION, 0),
            stock=answer_distribution.get(AnswerType.STOCK, 0)
        )
