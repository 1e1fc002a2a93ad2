"""
Analytics Application DTOs
===========================
"""

from pydantic import BaseModel, Field

from feedback_resolver.analytics.domain import AnalyticsSnapshot


class SentimentCounts(BaseModel):
    positive: int
    negative: int


class AnswerTypeShare(BaseModel):
    count: int
    percentage: float = Field(..., description="Percent of all complaints, two decimals")


class AnswerTypeBreakdown(BaseModel):
    known_solution: AnswerTypeShare
    stock: AnswerTypeShare


class AnalyticsResponse(BaseModel):
    """Response model for GET /analytics."""
    total_complaints: int
    sentiment: SentimentCounts
    answer_types: AnswerTypeBreakdown

    @classmethod
    def from_snapshot(cls, snapshot: AnalyticsSnapshot) -> "AnalyticsResponse":
        return cls.model_validate(snapshot.to_dict())
