"""
Analytics Infrastructure Layer
===============================
"""

from feedback_resolver.analytics.infrastructure.repositories import SQLAlchemyComplaintStatsRepository

__all__ = ["SQLAlchemyComplaintStatsRepository"]
