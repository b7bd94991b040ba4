"""
Session builder for review passes.

Builds a bounded, immutable snapshot of due shortcut ids:
1. Query due items (earliest due first, hardest first on ties)
2. Optionally reorder by ascending ease factor
3. Truncate to the configured size
"""

import logging
from collections.abc import Callable
from datetime import datetime

from ulid import ULID

from keyrecall.domain.review.models import ReviewSession, SessionConfig, ensure_utc

from .item_store import ItemStore

logger = logging.getLogger(__name__)


def generate_session_id() -> str:
    """Generate a unique, time-sortable session id using ULID."""
    return f"review-{ULID()}"


class SessionBuilder:
    def __init__(
        self,
        store: ItemStore,
        id_factory: Callable[[], str] = generate_session_id,
    ):
        self._store = store
        self._id_factory = id_factory

    def create_session(self, now: datetime, config: SessionConfig | None = None) -> ReviewSession:
        """
        Select due items into a new session.

        An empty due set yields an empty session rather than an error.
        """
        config = config or SessionConfig()
        now = ensure_utc(now)

        candidates = self._store.all_due(now)
        if config.focus_on_difficult:
            # stable sort keeps due order among equal ease
            candidates.sort(key=lambda item: item.ease_factor)

        if config.max_items:
            candidates = candidates[: config.max_items]

        # the store is keyed by id, so the snapshot cannot hold duplicates
        session = ReviewSession(
            id=self._id_factory(),
            created_at=now,
            items=tuple(item.id for item in candidates),
            config=config,
        )

        if session.is_empty:
            logger.info("No shortcuts due for review")
        else:
            logger.info(f"Created session {session.id} with {len(session)} shortcuts")
        return session
