"""
Analytics Application Layer
============================
"""

from feedback_resolver.analytics.application.dto import (
    AnalyticsResponse,
    AnswerTypeBreakdown,
    AnswerTypeShare,
    SentimentCounts,
)
from feedback_resolver.analytics.application.services import (
    AnalyticsAggregator,
    IComplaintStatsRepository,
)

__all__ = [
    "AnalyticsResponse",
    "AnswerTypeBreakdown",
    "AnswerTypeShare",
    "SentimentCounts",
    "AnalyticsAggregator",
    "IComplaintStatsRepository",
]
