"""
Session completion: applies a batch of review results to the item store.

Each result is validated on its own. A bad result is reported as a
ResultFailure and never discards progress on the rest of the batch.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import datetime

from keyrecall.domain.review.errors import ResultNotInSession, ReviewError
from keyrecall.domain.review.models import (
    CompletionOutcome,
    Rating,
    ResultFailure,
    ReviewResult,
    ReviewSession,
)

from .item_store import ItemStore
from .stats import StatisticsCalculator

logger = logging.getLogger(__name__)


def _failure(shortcut_id: str, error: ReviewError) -> ResultFailure:
    return ResultFailure(shortcut_id=shortcut_id, reason=error.code, message=str(error))


class SessionCompletionHandler:
    def __init__(
        self,
        store: ItemStore,
        clock: Callable[[], datetime],
        calculator: StatisticsCalculator | None = None,
    ):
        self._store = store
        self._clock = clock
        self._calc = calculator or StatisticsCalculator()

    def complete(
        self, session: ReviewSession, results: Iterable[ReviewResult]
    ) -> CompletionOutcome:
        """
        Apply the results of a session in one batch.

        - Results for ids outside the session snapshot fail with ResultNotInSession.
        - Results with an unknown rating token fail with InvalidRating.
        - When an id appears more than once, only its last valid result is applied.
        - Session items without a result are left untouched and stay due.

        All reviews in the batch share one review instant.
        """
        now = self._clock()
        outcome = CompletionOutcome(session_id=session.id, completed_at=now)

        latest: dict[str, ReviewResult] = {}
        for result in results:
            sid = result.shortcut_id
            try:
                if sid not in session:
                    raise ResultNotInSession(sid, session.id)
                rating = Rating.parse(result.performance)
            except ReviewError as e:
                logger.warning(f"Rejected review result for {sid!r}: {e}")
                outcome.failures.append(_failure(sid, e))
                continue
            # re-insert so the batch applies in order of each id's final entry
            latest.pop(sid, None)
            latest[sid] = ReviewResult(sid, rating, result.response_time_ms)

        with self._store.batch():
            for sid, result in latest.items():
                try:
                    self._store.apply(sid, result.performance, now, result.response_time_ms)
                except ReviewError as e:
                    # the store may have been reloaded since the session was built
                    logger.warning(f"Could not apply review for {sid!r}: {e}")
                    outcome.failures.append(_failure(sid, e))
                    continue
                outcome.updated_ids.append(sid)

        outcome.statistics = self._calc.compute(self._store.all_items(), now)
        logger.info(
            f"Completed session {session.id}: {outcome.updated_count} updated, "
            f"{len(outcome.failures)} failed"
        )
        return outcome
