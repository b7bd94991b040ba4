# Domain Review Package
from .errors import (
    InvalidId,
    InvalidRating,
    ResultNotInSession,
    ReviewError,
    StorageError,
    UnknownItem,
)
from .models import (
    CompletionOutcome,
    Rating,
    ResultFailure,
    ReviewItem,
    ReviewLogEntry,
    ReviewResult,
    ReviewSession,
    SessionConfig,
    Statistics,
)
from .ports import ReviewItemRepository

__all__ = [
    "CompletionOutcome",
    "InvalidId",
    "InvalidRating",
    "Rating",
    "ResultFailure",
    "ResultNotInSession",
    "ReviewError",
    "ReviewItem",
    "ReviewItemRepository",
    "ReviewLogEntry",
    "ReviewResult",
    "ReviewSession",
    "SessionConfig",
    "Statistics",
    "StorageError",
    "UnknownItem",
]
