"""
Review Service: Application layer orchestrator.

Exposes the operations the review UI calls: initialize the system, build a
session, complete it, and read statistics. Wires the item store, session
builder, completion handler and statistics calculator around one clock.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timezone

from keyrecall.domain.constants import DEFAULT_MAX_ITEMS
from keyrecall.domain.review.models import (
    CompletionOutcome,
    ReviewItem,
    ReviewResult,
    ReviewSession,
    SessionConfig,
    Statistics,
)

from .completion import SessionCompletionHandler
from .item_store import ItemStore
from .session_builder import SessionBuilder
from .stats import StatisticsCalculator

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ReviewService:
    """
    Facade over one learner's review state.

    Depends on an injected clock so scheduling is deterministic under test.
    """

    def __init__(
        self,
        store: ItemStore,
        clock: Callable[[], datetime] = utc_now,
        calculator: StatisticsCalculator | None = None,
        session_builder: SessionBuilder | None = None,
        default_max_items: int = DEFAULT_MAX_ITEMS,
    ):
        self.store = store
        self._clock = clock
        self._calc = calculator or StatisticsCalculator()
        self._builder = session_builder or SessionBuilder(store)
        self._completion = SessionCompletionHandler(store, clock, self._calc)
        self.default_max_items = default_max_items

    def now(self) -> datetime:
        return self._clock()

    def initialize_system(self, shortcut_ids: Iterable[str]) -> list[str]:
        """
        Track the given shortcut ids; ids already tracked keep their state.

        Returns:
            The ids that were newly added.

        Raises:
            InvalidId: If any id is empty or malformed (nothing is added).
        """
        return self.store.initialize(shortcut_ids, self._clock())

    def create_review_session(self, config: SessionConfig | None = None) -> ReviewSession:
        if config is None:
            config = SessionConfig(max_items=self.default_max_items)
        return self._builder.create_session(self._clock(), config)

    def complete_review_session(
        self, session: ReviewSession, results: Iterable[ReviewResult]
    ) -> CompletionOutcome:
        return self._completion.complete(session, results)

    def get_statistics(self) -> Statistics:
        return self._calc.compute(self.store.all_items(), self._clock())

    def due_items(self) -> list[ReviewItem]:
        return self.store.all_due(self._clock())

    def get_item(self, shortcut_id: str) -> ReviewItem:
        return self.store.get(shortcut_id)

    def export_system(self) -> list[ReviewItem]:
        """Snapshot of every tracked record, suitable for load_system()."""
        return self.store.all_items()

    def load_system(self, items: Iterable[ReviewItem]) -> None:
        """Replace all tracked records, e.g. with a snapshot restored from elsewhere."""
        items = list(items)
        self.store.replace_all(items)
        logger.info(f"Loaded review system with {len(items)} shortcuts")
