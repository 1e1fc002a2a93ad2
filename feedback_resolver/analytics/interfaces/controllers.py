"""
Analytics Controllers (API Routes)
===================================

FastAPI routes for complaint analytics.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from feedback_resolver.analytics.application import AnalyticsAggregator, AnalyticsResponse
from feedback_resolver.analytics.infrastructure import SQLAlchemyComplaintStatsRepository
from feedback_resolver.core import RepositoryException
from feedback_resolver.infrastructure.database import get_session
from feedback_resolver.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["Analytics"])


ANALYTICS_RESPONSE_EXAMPLE = {
    "total_complaints": 120,
    "sentiment": {"positive": 18, "negative": 71},
    "answer_types": {
        "known_solution": {"count": 80, "percentage": 66.67},
        "stock": {"count": 40, "percentage": 33.33}
    }
}


def get_analytics_aggregator(db: AsyncSession = Depends(get_session)) -> AnalyticsAggregator:
    return AnalyticsAggregator(SQLAlchemyComplaintStatsRepository(db))


@router.get(
    "/analytics",
    response_model=AnalyticsResponse,
    summary="Get complaint analytics",
    description="""
    Totals over all processed complaints:
    - positive and negative sentiment counts (neutral is not reported)
    - known-solution and stock reply counts with their share of the total
    """,
    responses={
        200: {
            "description": "Analytics",
            "content": {"application/json": {"example": ANALYTICS_RESPONSE_EXAMPLE}}
        },
        500: {"description": "Complaint store unavailable"}
    }
)
async def get_analytics(
    request: Request,
    aggregator: AnalyticsAggregator = Depends(get_analytics_aggregator)
):
    try:
        snapshot = await aggregator.snapshot()
    except RepositoryException as e:
        logger.error(
            "Analytics query failed",
            extra={
                "correlation_id": getattr(request.state, "correlation_id", "unknown"),
                "error": e.message
            }
        )
        return JSONResponse(status_code=500, content={"error": "Failed to fetch analytics"})

    return AnalyticsResponse.from_snapshot(snapshot)
