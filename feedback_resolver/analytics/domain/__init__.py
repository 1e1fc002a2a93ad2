"""
Analytics Domain Layer
=======================
"""

from feedback_resolver.analytics.domain.entities import (
    ComplaintCounts,
    AnalyticsSnapshot,
    percentage,
)

__all__ = ["ComplaintCounts", "AnalyticsSnapshot", "percentage"]
