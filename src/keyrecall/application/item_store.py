"""
Item store: the single owner of every shortcut's scheduling state.

All mutations are serialized behind one re-entrant lock. After each committed
mutation the full snapshot is handed to the configured repository; inside
``batch()`` that save is deferred until the batch exits.
"""

import logging
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime

from keyrecall.domain.constants import DEFAULT_HISTORY_LIMIT
from keyrecall.domain.review.errors import InvalidId, StorageError, UnknownItem
from keyrecall.domain.review.models import (
    Rating,
    ReviewItem,
    ReviewLogEntry,
    ensure_utc,
    validate_shortcut_id,
)
from keyrecall.domain.review.ports import ReviewItemRepository

from .scheduler import DEFAULT_POLICY, SchedulingPolicy, schedule

logger = logging.getLogger(__name__)


class ItemStore:
    """
    Map from shortcut id to ReviewItem.

    Construct one per learner and pass it to collaborators; there is no
    module-level instance.
    """

    def __init__(
        self,
        repository: ReviewItemRepository | None = None,
        policy: SchedulingPolicy = DEFAULT_POLICY,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        """
        Args:
            repository: Optional persistence port; loaded now, saved after each commit.
            policy: Scheduling constants used by apply() and initialize().
            history_limit: Most recent review log entries kept per item (0 keeps none).
        """
        self._repo = repository
        self.policy = policy
        self.history_limit = history_limit
        self._items: dict[str, ReviewItem] = {}
        self._lock = threading.RLock()
        self._batch_depth = 0
        self._dirty = False

        if repository is not None:
            stored = repository.load()
            try:
                self._items = self._index(stored)
            except ValueError as e:
                raise StorageError(f"Stored review state is invalid: {e}") from e
            if stored:
                logger.info(f"Loaded {len(stored)} review items from storage")

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, shortcut_id: object) -> bool:
        return shortcut_id in self._items

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, shortcut_id: str) -> ReviewItem:
        try:
            return self._items[shortcut_id]
        except KeyError:
            raise UnknownItem(shortcut_id) from None

    def all_items(self) -> list[ReviewItem]:
        """Snapshot of every tracked item in insertion order."""
        with self._lock:
            return list(self._items.values())

    def all_due(self, now: datetime) -> list[ReviewItem]:
        """
        Items with ``due_at <= now``, earliest due first.

        Equally-due items are ordered by ascending ease so the hardest surface first.
        """
        now = ensure_utc(now)
        due = [item for item in self.all_items() if item.is_due(now)]
        due.sort(key=lambda item: (item.due_at, item.ease_factor))
        return due

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def initialize(self, shortcut_ids: Iterable[str], now: datetime) -> list[str]:
        """
        Start tracking every id not tracked yet; existing entries are untouched.

        All ids are validated before anything is added, so an InvalidId leaves
        the store unchanged.

        Returns:
            The ids that were newly added, in input order.
        """
        if isinstance(shortcut_ids, str):
            # a bare string would otherwise be tracked one character at a time
            raise InvalidId(shortcut_ids)
        now = ensure_utc(now)
        ids = [validate_shortcut_id(sid) for sid in shortcut_ids]

        added: list[str] = []
        with self.batch():
            for sid in ids:
                if sid in self._items:
                    continue
                self._items[sid] = ReviewItem(
                    id=sid,
                    ease_factor=self.policy.initial_ease,
                    interval_days=0,
                    repetition_count=0,
                    due_at=now,
                )
                added.append(sid)

            if added:
                logger.info(f"Now tracking {len(added)} new shortcuts ({len(self._items)} total)")
                self._dirty = True
        return added

    def apply(
        self,
        shortcut_id: str,
        rating: Rating | str,
        now: datetime,
        response_time_ms: int | None = None,
    ) -> ReviewItem:
        """
        Schedule one review and store the result.

        Raises:
            UnknownItem: If the id is not tracked.
            InvalidRating: If the token is not one of the four ratings.
        """
        parsed = Rating.parse(rating)
        now = ensure_utc(now)

        with self.batch():
            current = self.get(shortcut_id)
            updated = schedule(current, parsed, now, self.policy)
            updated = replace(
                updated,
                history=self._trim_history(
                    current.history
                    + (
                        ReviewLogEntry(
                            reviewed_at=now,
                            rating=parsed,
                            interval_days=updated.interval_days,
                            response_time_ms=response_time_ms,
                        ),
                    )
                ),
            )
            self._items[shortcut_id] = updated
            logger.debug(
                f"Reviewed {shortcut_id}: {parsed.value} -> interval={updated.interval_days}d "
                f"ease={updated.ease_factor}"
            )
            self._dirty = True
        return updated

    def replace_all(self, items: Iterable[ReviewItem]) -> None:
        """
        Swap the whole store contents for the given records.

        Raises:
            ValueError: If any record breaks the store invariants (nothing is replaced).
        """
        replacement = self._index(items)
        with self.batch():
            self._items = replacement
            self._dirty = True

    @contextmanager
    def batch(self) -> Iterator["ItemStore"]:
        """
        Hold the store lock for a group of mutations and save once at the end.

        The save happens even if the block raises, so mutations that already
        succeeded are not lost. If the save itself fails, the in-memory state
        is rolled back to what it was when the outermost batch began and the
        error propagates.
        """
        with self._lock:
            snapshot = dict(self._items) if self._batch_depth == 0 else None
            self._batch_depth += 1
            try:
                yield self
            finally:
                self._batch_depth -= 1
                if self._batch_depth == 0 and self._dirty:
                    try:
                        self._save()
                    except Exception:
                        self._items = snapshot
                        logger.error("Could not save review state; in-memory changes rolled back")
                        raise

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _index(self, items: Iterable[ReviewItem]) -> dict[str, ReviewItem]:
        """Key records by id, rejecting any that break the store invariants."""
        indexed: dict[str, ReviewItem] = {}
        for item in items:
            validate_shortcut_id(item.id)
            if item.ease_factor < self.policy.min_ease:
                raise ValueError(
                    f"{item.id!r}: ease_factor {item.ease_factor} is below the floor "
                    f"{self.policy.min_ease}"
                )
            indexed[item.id] = item
        return indexed

    def _trim_history(self, history: tuple[ReviewLogEntry, ...]) -> tuple[ReviewLogEntry, ...]:
        if self.history_limit <= 0:
            return ()
        return history[-self.history_limit :]

    def _save(self) -> None:
        self._dirty = False
        if self._repo is None:
            return
        self._repo.save(list(self._items.values()))
        logger.debug(f"Saved {len(self._items)} review items")
