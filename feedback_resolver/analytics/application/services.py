"""
Analytics Application Services
===============================
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from feedback_resolver.analytics.domain import AnalyticsSnapshot, ComplaintCounts
from feedback_resolver.shared.infrastructure.logging import get_logger


class IComplaintStatsRepository(ABC):
    """Read-only aggregate queries over complaints."""

    @abstractmethod
    async def get_counts(self) -> ComplaintCounts:
        """Total, sentiment and answer-type counts."""


class AnalyticsAggregator:
    """
    Computes the analytics snapshot.

    Read-only and idempotent: two calls with no intervening complaints
    return equal snapshots.
    """

    def __init__(
        self,
        stats_repository: IComplaintStatsRepository,
        logger: Optional[logging.Logger] = None
    ):
        self._stats = stats_repository
        self._logger = logger or get_logger(__name__)

    async def snapshot(self) -> AnalyticsSnapshot:
        counts = await self._stats.get_counts()
        self._logger.debug(
            "Analytics computed",
            extra={"total_complaints": counts.total}
        )
        return AnalyticsSnapshot(counts=counts)
