"""
Resolution Controllers (API Routes)
====================================

FastAPI routes for complaint intake.

Controllers delegate to the ResolutionEngine.
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from feedback_resolver.core import RepositoryException, ValidationException
from feedback_resolver.infrastructure.database import get_session
from feedback_resolver.resolution.application import (
    ComplaintRequest,
    ComplaintResponse,
    ErrorResponse,
    ResolutionEngine,
)
from feedback_resolver.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["Complaints"])


# ========== Example payloads for Swagger ==========

COMPLAINT_REQUEST_EXAMPLE = {
    "customer_email": "jane@example.com",
    "text": "I was charged twice for my subscription this month."
}

COMPLAINT_RESPONSE_EXAMPLE = {
    "success": True,
    "message": "Complaint processed successfully",
    "result": {
        "normalized_key": "billing",
        "sentiment": "negative",
        "answer_type": "KNOWN_SOLUTION",
        "email_sent": True
    },
    "similarMatches": [
        {"score": 0.91, "category": "billing", "sentiment": "negative"}
    ]
}


# ========== Dependencies ==========

async def get_resolution_engine(
    request: Request,
    db: AsyncSession = Depends(get_session)
) -> ResolutionEngine:
    """Build a resolution engine bound to the request's session."""
    components = getattr(request.app.state, "pipeline", None)
    if components is None:
        raise HTTPException(
            status_code=503,
            detail="Resolution pipeline not initialized"
        )
    return components.engine_for_session(db)


# ========== Route Handlers ==========

@router.post(
    "/complaints",
    response_model=ComplaintResponse,
    response_model_exclude_none=True,
    response_model_by_alias=True,
    summary="Submit a complaint for automatic resolution",
    description="""
    Classify a customer message, pick a reply and send it.

    The reply is a curated solution for the message's category, a curated
    solution reused from a very similar past complaint, or a stock reply.
    """,
    responses={
        200: {
            "description": "Complaint processed",
            "content": {"application/json": {"example": COMPLAINT_RESPONSE_EXAMPLE}}
        },
        400: {"description": "Missing required fields", "model": ErrorResponse},
        500: {"description": "Complaint could not be processed", "model": ErrorResponse}
    }
)
async def submit_complaint(
    request: Request,
    payload: ComplaintRequest,
    engine: ResolutionEngine = Depends(get_resolution_engine)
):
    correlation_id = getattr(request.state, "correlation_id", "unknown")

    try:
        outcome = await engine.process(payload.customer_email, payload.text)
    except ValidationException as e:
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(error=e.message).model_dump(exclude_none=True)
        )
    except RepositoryException as e:
        logger.error(
            "Complaint processing failed",
            extra={"correlation_id": correlation_id, "error": e.message}
        )
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="Failed to process complaint",
                details=e.message
            ).model_dump()
        )

    logger.info(
        "Complaint processed",
        extra={
            "correlation_id": correlation_id,
            "complaint_id": outcome.complaint_id,
            "answer_type": outcome.answer_type,
            "resolution_tier": outcome.resolution_tier
        }
    )

    return ComplaintResponse.from_outcome(outcome)
