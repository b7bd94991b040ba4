"""
In-memory repository, used for ephemeral runs and tests.
"""

from keyrecall.domain.review.models import ReviewItem
from keyrecall.domain.review.ports import ReviewItemRepository


class InMemoryItemRepository(ReviewItemRepository):
    def __init__(self, items: list[ReviewItem] | None = None):
        self.items: list[ReviewItem] = list(items or [])
        self.save_count = 0

    def load(self) -> list[ReviewItem]:
        return list(self.items)

    def save(self, items: list[ReviewItem]) -> None:
        self.items = list(items)
        self.save_count += 1
