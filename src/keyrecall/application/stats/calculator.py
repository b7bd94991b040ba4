"""
Statistics calculator for deriving summary metrics from review items.

This is a pure computation module with no I/O.
"""

from collections.abc import Sequence
from datetime import datetime

from keyrecall.domain.constants import MASTERY_REPETITIONS
from keyrecall.domain.review.models import ReviewItem, Statistics, ensure_utc


class StatisticsCalculator:
    """
    Computes Statistics from a snapshot of review items.

    Stateless and side-effect free.
    """

    def __init__(self, mastery_repetitions: int = MASTERY_REPETITIONS):
        if mastery_repetitions < 1:
            raise ValueError("mastery_repetitions must be >= 1")
        self.mastery_repetitions = mastery_repetitions

    def compute(self, items: Sequence[ReviewItem], now: datetime) -> Statistics:
        """
        An empty sequence yields all-zero statistics.
        """
        if not items:
            return Statistics()

        now = ensure_utc(now)
        total = len(items)
        return Statistics(
            total_shortcuts=total,
            due_shortcuts=sum(1 for item in items if item.is_due(now)),
            average_ease_factor=sum(item.ease_factor for item in items) / total,
            mastery_level=sum(self.item_mastery(item) for item in items) / total,
        )

    def item_mastery(self, item: ReviewItem) -> float:
        """
        Mastery of one item on a 0-100 scale.

        Grows linearly with consecutive successes and saturates at
        ``mastery_repetitions``; never-reviewed items score 0.
        """
        capped = min(item.repetition_count, self.mastery_repetitions)
        return capped / self.mastery_repetitions * 100
