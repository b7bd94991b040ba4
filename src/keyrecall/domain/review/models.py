"""
Domain models for review scheduling.

These are pure data structures with no I/O or external dependencies.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from keyrecall.domain.constants import DEFAULT_MAX_ITEMS

from .errors import InvalidId, InvalidRating

_SHORTCUT_ID_RE = re.compile(r"[^\s\x00-\x1f\x7f]{1,256}")


class Rating(str, Enum):
    """
    Self-reported recall performance.

    - again: failed to recall the shortcut
    - hard: recalled with significant difficulty
    - good: recalled with some effort
    - easy: recalled with no difficulty
    """

    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, token: "Rating | str") -> "Rating":
        """Turn a textual token into a Rating, raising InvalidRating otherwise."""
        if isinstance(token, cls):
            return token
        if isinstance(token, str):
            try:
                return cls(token)
            except ValueError:
                pass
        raise InvalidRating(token)


def validate_shortcut_id(shortcut_id: object) -> str:
    """Return the id unchanged if it is a usable shortcut id, else raise InvalidId."""
    if not isinstance(shortcut_id, str) or not _SHORTCUT_ID_RE.fullmatch(shortcut_id):
        raise InvalidId(shortcut_id)
    return shortcut_id


def ensure_utc(value: datetime) -> datetime:
    """Normalize a timestamp to an aware UTC datetime (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_timestamp(raw: str | None) -> datetime | None:
    if raw is None:
        return None
    return ensure_utc(datetime.fromisoformat(raw))


@dataclass(frozen=True)
class ReviewLogEntry:
    """
    A single applied review.

    Attributes:
        reviewed_at: The review instant.
        rating: Rating that was applied.
        interval_days: Interval assigned by this review.
        response_time_ms: Time the learner took to answer, if reported.
    """

    reviewed_at: datetime
    rating: Rating
    interval_days: int
    response_time_ms: int | None = None

    def __post_init__(self):
        object.__setattr__(self, "reviewed_at", ensure_utc(self.reviewed_at))

    def to_dict(self) -> dict[str, Any]:
        return {
            "reviewed_at": self.reviewed_at.isoformat(),
            "rating": self.rating.value,
            "interval_days": self.interval_days,
            "response_time_ms": self.response_time_ms,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReviewLogEntry":
        return cls(
            reviewed_at=ensure_utc(datetime.fromisoformat(data["reviewed_at"])),
            rating=Rating.parse(data["rating"]),
            interval_days=int(data["interval_days"]),
            response_time_ms=data.get("response_time_ms"),
        )


@dataclass(frozen=True)
class ReviewItem:
    """
    Scheduling state for one tracked shortcut.

    Attributes:
        id: Catalog id of the shortcut.
        ease_factor: Interval growth multiplier, never below the policy floor.
        interval_days: Days from the last review to the next due date.
        repetition_count: Consecutive successful reviews since the last failure.
        due_at: Next scheduled review.
        last_reviewed_at: None until the first review.
        last_performance: None until the first review.
        history: Applied reviews, oldest first.
    """

    id: str
    ease_factor: float
    interval_days: int
    repetition_count: int
    due_at: datetime
    last_reviewed_at: datetime | None = None
    last_performance: Rating | None = None
    history: tuple[ReviewLogEntry, ...] = ()

    def __post_init__(self):
        if self.interval_days < 0:
            raise ValueError(f"interval_days must be >= 0, got {self.interval_days}")
        if self.repetition_count < 0:
            raise ValueError(f"repetition_count must be >= 0, got {self.repetition_count}")
        # naive timestamps are taken as UTC so they compare with the clock
        object.__setattr__(self, "due_at", ensure_utc(self.due_at))
        if self.last_reviewed_at is not None:
            object.__setattr__(self, "last_reviewed_at", ensure_utc(self.last_reviewed_at))

    def is_due(self, now: datetime) -> bool:
        return self.due_at <= now

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "ease_factor": self.ease_factor,
            "interval_days": self.interval_days,
            "repetition_count": self.repetition_count,
            "due_at": self.due_at.isoformat(),
            "last_reviewed_at": (
                self.last_reviewed_at.isoformat() if self.last_reviewed_at else None
            ),
            "last_performance": (
                self.last_performance.value if self.last_performance else None
            ),
            "history": [entry.to_dict() for entry in self.history],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReviewItem":
        performance = data.get("last_performance")
        return cls(
            id=validate_shortcut_id(data["id"]),
            ease_factor=float(data["ease_factor"]),
            interval_days=int(data["interval_days"]),
            repetition_count=int(data["repetition_count"]),
            due_at=ensure_utc(datetime.fromisoformat(data["due_at"])),
            last_reviewed_at=_parse_timestamp(data.get("last_reviewed_at")),
            last_performance=Rating.parse(performance) if performance is not None else None,
            history=tuple(ReviewLogEntry.from_dict(e) for e in data.get("history", [])),
        )


@dataclass(frozen=True)
class ReviewResult:
    """One learner answer collected during a session."""

    shortcut_id: str
    performance: Rating | str  # raw tokens are validated at completion
    response_time_ms: int = 0


@dataclass(frozen=True)
class SessionConfig:
    """
    Options for building a review session.

    Attributes:
        max_items: Upper bound on session size. 0 means no cap.
        focus_on_difficult: Order candidates by ascending ease before truncating.
    """

    max_items: int = DEFAULT_MAX_ITEMS
    focus_on_difficult: bool = False

    def __post_init__(self):
        if self.max_items < 0:
            raise ValueError(f"max_items must be >= 0, got {self.max_items}")


@dataclass(frozen=True)
class ReviewSession:
    """Immutable snapshot of the shortcut ids selected for one review pass."""

    id: str
    created_at: datetime
    items: tuple[str, ...]
    config: SessionConfig = field(default_factory=SessionConfig)

    def __contains__(self, shortcut_id: object) -> bool:
        return shortcut_id in self.items

    def __len__(self) -> int:
        return len(self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items


@dataclass(frozen=True)
class Statistics:
    """Summary metrics derived from the item store."""

    total_shortcuts: int = 0
    due_shortcuts: int = 0
    average_ease_factor: float = 0.0
    mastery_level: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_shortcuts": self.total_shortcuts,
            "due_shortcuts": self.due_shortcuts,
            "average_ease_factor": self.average_ease_factor,
            "mastery_level": self.mastery_level,
        }


@dataclass(frozen=True)
class ResultFailure:
    """A completion result that was rejected without aborting the batch."""

    shortcut_id: str
    reason: str  # error code, e.g. "ResultNotInSession"
    message: str = ""


@dataclass
class CompletionOutcome:
    """What a completed session changed."""

    session_id: str
    completed_at: datetime
    updated_ids: list[str] = field(default_factory=list)
    failures: list[ResultFailure] = field(default_factory=list)
    statistics: Statistics = field(default_factory=Statistics)

    @property
    def updated_count(self) -> int:
        return len(self.updated_ids)
