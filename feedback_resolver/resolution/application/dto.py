"""
Resolution Application DTOs
============================

Data Transfer Objects for the resolution API and queue layers.

Pydantic models for request/response validation.
"""

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from feedback_resolver.core import ValidationException


# ========== Type Aliases for Literals ==========
NormalizedKeyStr = Literal["billing", "technical", "general"]
SentimentStr = Literal["positive", "neutral", "negative"]
AnswerTypeStr = Literal["KNOWN_SOLUTION", "STOCK"]


# ========== Request DTOs ==========

class ComplaintRequest(BaseModel):
    """A customer message submitted for automatic resolution."""
    customer_email: str = Field(..., min_length=1, description="Address the reply is sent to")
    text: str = Field(..., min_length=1, description="Free-text customer message")

    @field_validator("customer_email", "text")
    @classmethod
    def reject_blank(cls, v: str) -> str:
        """Whitespace-only values count as missing."""
        if not v.strip():
            raise ValueError("must not be blank")
        return v


def parse_complaint_payload(payload: Any) -> ComplaintRequest:
    """
    Validate a raw message body.

    Raises:
        ValidationException: If customer_email or text is missing or empty
    """
    if not isinstance(payload, dict):
        raise ValidationException(
            "Missing required fields: customer_email and text",
            fields=["customer_email", "text"]
        )
    try:
        return ComplaintRequest.model_validate(payload)
    except ValidationError as e:
        fields = sorted({str(error["loc"][0]) for error in e.errors() if error.get("loc")})
        raise ValidationException(
            "Missing required fields: customer_email and text",
            fields=fields
        )


# ========== Response DTOs ==========

class SimilarMatchInfo(BaseModel):
    """A similar past complaint, without its id or raw metadata."""
    score: float
    category: Optional[str] = None
    sentiment: Optional[str] = None


class ResolutionInfo(BaseModel):
    """Decision reported back for a processed complaint."""
    normalized_key: NormalizedKeyStr
    sentiment: SentimentStr
    answer_type: AnswerTypeStr
    email_sent: bool


class ComplaintResponse(BaseModel):
    """Response model for POST /complaints."""
    success: bool = True
    message: str = "Complaint processed successfully"
    result: ResolutionInfo
    similar_matches: Optional[List[SimilarMatchInfo]] = Field(
        default=None,
        serialization_alias="similarMatches"
    )

    @classmethod
    def from_outcome(cls, outcome: Any) -> "ComplaintResponse":
        """Build from a ResolutionOutcome."""
        summaries = outcome.similar_match_summaries()
        return cls(
            result=ResolutionInfo(
                normalized_key=outcome.normalized_key,
                sentiment=outcome.sentiment,
                answer_type=outcome.answer_type,
                email_sent=outcome.email_sent
            ),
            similar_matches=[SimilarMatchInfo(**s) for s in summaries] or None
        )


class ErrorResponse(BaseModel):
    """Structured error payload."""
    error: str
    details: Optional[Any] = None
