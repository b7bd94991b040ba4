"""
SM-2 style scheduler discretized to four ratings.

This is a pure computation module with no I/O. The transition table:

    again  ease - 0.20   repetitions -> 0   interval -> relearn interval
    hard   ease - 0.15   repetitions + 1    interval -> max(prev * 1.2, prev + 1)
    good   ease          repetitions + 1    interval -> 1 if new, else prev * ease
    easy   ease + 0.15   repetitions + 1    interval -> 2 if new, else prev * ease * 1.3

Ease never drops below the policy floor. The next due date is always counted
from the review instant, never from the previous due date.
"""

import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from keyrecall.domain import constants
from keyrecall.domain.review.models import Rating, ReviewItem


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3)."""
    return math.floor(value + 0.5)


@dataclass(frozen=True)
class SchedulingPolicy:
    """
    Tunable constants of the scheduler.

    Defaults follow the classic SM-2 approximation; every value can be
    overridden through AppConfig.
    """

    initial_ease: float = constants.INITIAL_EASE_FACTOR
    min_ease: float = constants.MIN_EASE_FACTOR
    again_ease_penalty: float = constants.AGAIN_EASE_PENALTY
    hard_ease_penalty: float = constants.HARD_EASE_PENALTY
    easy_ease_bonus: float = constants.EASY_EASE_BONUS
    relearn_interval_days: int = constants.RELEARN_INTERVAL_DAYS
    hard_interval_factor: float = constants.HARD_INTERVAL_FACTOR
    easy_interval_factor: float = constants.EASY_INTERVAL_FACTOR
    first_good_interval_days: int = constants.FIRST_GOOD_INTERVAL_DAYS
    first_easy_interval_days: int = constants.FIRST_EASY_INTERVAL_DAYS

    def __post_init__(self):
        if self.min_ease < 1.0:
            raise ValueError(f"min_ease must be >= 1.0, got {self.min_ease}")
        if self.initial_ease < self.min_ease:
            raise ValueError("initial_ease must not be below min_ease")
        for name in ("again_ease_penalty", "hard_ease_penalty", "easy_ease_bonus"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        for name in (
            "relearn_interval_days",
            "first_good_interval_days",
            "first_easy_interval_days",
        ):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1")
        if self.hard_interval_factor < 1.0 or self.easy_interval_factor < 1.0:
            raise ValueError("interval factors must be >= 1.0")

    def clamp_ease(self, ease: float) -> float:
        return max(self.min_ease, round(ease, constants.EASE_PRECISION))


DEFAULT_POLICY = SchedulingPolicy()


def next_ease(ease: float, rating: Rating, policy: SchedulingPolicy = DEFAULT_POLICY) -> float:
    if rating is Rating.AGAIN:
        return policy.clamp_ease(ease - policy.again_ease_penalty)
    if rating is Rating.HARD:
        return policy.clamp_ease(ease - policy.hard_ease_penalty)
    if rating is Rating.EASY:
        return policy.clamp_ease(ease + policy.easy_ease_bonus)
    return policy.clamp_ease(ease)


def next_interval(
    interval: int, ease: float, rating: Rating, policy: SchedulingPolicy = DEFAULT_POLICY
) -> int:
    """
    Compute the next interval in days.

    Args:
        interval: Interval before this review (0 for a never-passed item).
        ease: Ease factor after this review's adjustment.
        rating: The applied rating.
    """
    if rating is Rating.AGAIN:
        return policy.relearn_interval_days
    if rating is Rating.HARD:
        return max(round_half_up(interval * policy.hard_interval_factor), interval + 1)
    if rating is Rating.GOOD:
        if interval == 0:
            return policy.first_good_interval_days
        return max(1, round_half_up(interval * ease))
    # easy
    if interval == 0:
        return policy.first_easy_interval_days
    return max(1, round_half_up(interval * ease * policy.easy_interval_factor))


def schedule(
    item: ReviewItem,
    rating: Rating,
    now: datetime,
    policy: SchedulingPolicy = DEFAULT_POLICY,
) -> ReviewItem:
    """
    Return the item's scheduling state after a review at ``now``.

    Total over all four ratings; the input item is not modified and its
    history is carried over untouched.
    """
    ease = next_ease(item.ease_factor, rating, policy)
    interval = next_interval(item.interval_days, ease, rating, policy)
    repetitions = 0 if rating is Rating.AGAIN else item.repetition_count + 1

    return replace(
        item,
        ease_factor=ease,
        interval_days=interval,
        repetition_count=repetitions,
        due_at=now + timedelta(days=interval),
        last_reviewed_at=now,
        last_performance=rating,
    )
