"""
Analytics Domain Entities
==========================

Aggregate counts over stored complaints and the percentages derived
from them.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP


_TWO_PLACES = Decimal("0.01")


def percentage(count: int, total: int) -> Decimal:
    """
    Share of count in total, in percent, rounded half up to two places.

    A zero total yields 0.00.
    """
    if total <= 0:
        return Decimal("0.00")
    return (Decimal(count) * 100 / Decimal(total)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class ComplaintCounts:
    """Raw counts read from the complaint store."""
    total: int = 0
    positive: int = 0
    negative: int = 0
    known_solution: int = 0
    stock: int = 0


@dataclass(frozen=True)
class AnalyticsSnapshot:
    """Counts plus answer-type percentages relative to all complaints."""
    counts: ComplaintCounts

    @property
    def known_solution_percentage(self) -> Decimal:
        return percentage(self.counts.known_solution, self.counts.total)

    @property
    def stock_percentage(self) -> Decimal:
        return percentage(self.counts.stock, self.counts.total)

    def to_dict(self) -> dict:
        """Analytics payload; percentages as numbers with two decimals."""
        return {
            "total_complaints": self.counts.total,
            "sentiment": {
                "positive": self.counts.positive,
                "negative": self.counts.negative,
            },
            "answer_types": {
                "known_solution": {
                    "count": self.counts.known_solution,
                    "percentage": float(self.known_solution_percentage),
                },
                "stock": {
                    "count": self.counts.stock,
                    "percentage": float(self.stock_percentage),
                },
            },
        }
