import itertools
from datetime import datetime, timedelta, timezone

import pytest

from keyrecall.application.scheduler import (
    SchedulingPolicy,
    next_interval,
    round_half_up,
    schedule,
)
from keyrecall.domain.review import Rating, ReviewItem

T0 = datetime(2023, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_item(**overrides) -> ReviewItem:
    fields = dict(
        id="vscode.save",
        ease_factor=2.5,
        interval_days=0,
        repetition_count=0,
        due_at=T0,
    )
    fields.update(overrides)
    return ReviewItem(**fields)


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(2.49) == 2
    assert round_half_up(1.2) == 1


# --- again ---


def test_again_on_fresh_item():
    """Ease 2.5 rated again -> 2.3, relearn interval, repetitions reset."""
    item = schedule(make_item(repetition_count=3, interval_days=12), Rating.AGAIN, T0)

    assert item.ease_factor == pytest.approx(2.3)
    assert item.interval_days == 1
    assert item.repetition_count == 0
    assert item.due_at == T0 + timedelta(days=1)
    assert item.last_reviewed_at == T0
    assert item.last_performance is Rating.AGAIN


@pytest.mark.parametrize(
    "ease,interval,reps", [(2.5, 0, 0), (1.3, 40, 7), (3.1, 200, 12), (1.4, 1, 1)]
)
def test_again_always_resets(ease, interval, reps):
    before = make_item(ease_factor=ease, interval_days=interval, repetition_count=reps)
    item = schedule(before, Rating.AGAIN, T0)
    assert item.repetition_count == 0
    assert item.interval_days == 1


def test_again_respects_custom_relearn_interval():
    policy = SchedulingPolicy(relearn_interval_days=2)
    item = schedule(make_item(interval_days=30), Rating.AGAIN, T0, policy)
    assert item.interval_days == 2
    assert item.due_at == T0 + timedelta(days=2)


# --- hard ---


@pytest.mark.parametrize("prev,expected", [(0, 1), (1, 2), (4, 5), (5, 6), (10, 12), (20, 24)])
def test_hard_interval(prev, expected):
    item = schedule(make_item(interval_days=prev, repetition_count=2), Rating.HARD, T0)
    assert item.interval_days == expected
    assert item.repetition_count == 3
    assert item.ease_factor == pytest.approx(2.35)


# --- good ---


def test_good_twice_from_fresh():
    """Fresh item rated good, good -> intervals [1, round(1 * 2.5)] = [1, 3]."""
    first = schedule(make_item(), Rating.GOOD, T0)
    later = T0 + timedelta(days=1)
    second = schedule(first, Rating.GOOD, later)

    assert first.interval_days == 1
    assert second.interval_days == round_half_up(1 * 2.5) == 3
    assert second.ease_factor == pytest.approx(2.5)
    assert second.repetition_count == 2
    assert second.due_at == later + timedelta(days=3)


def test_good_scales_by_ease():
    item = schedule(make_item(interval_days=10, ease_factor=2.0), Rating.GOOD, T0)
    assert item.interval_days == 20


# --- easy ---


def test_easy_on_fresh_item():
    item = schedule(make_item(), Rating.EASY, T0)
    assert item.ease_factor == pytest.approx(2.65)
    assert item.interval_days == 2
    assert item.due_at == T0 + timedelta(days=2)


def test_easy_uses_updated_ease():
    # 10 * 2.65 * 1.3 = 34.45
    item = schedule(make_item(interval_days=10), Rating.EASY, T0)
    assert item.interval_days == 34


# --- invariants ---


def test_ease_never_below_floor_for_any_sequence():
    ratings = list(Rating)
    for sequence in itertools.product(ratings, repeat=5):
        item = make_item()
        now = T0
        for rating in sequence:
            item = schedule(item, rating, now)
            now = item.due_at
            assert item.ease_factor >= 1.3


def test_ease_floor_is_exact():
    item = make_item(ease_factor=1.35)
    item = schedule(item, Rating.AGAIN, T0)
    assert item.ease_factor == 1.3
    item = schedule(item, Rating.HARD, T0)
    assert item.ease_factor == 1.3


def test_due_at_counts_from_review_instant_not_stale_due():
    """A review done 30 days late is scheduled from the late instant."""
    overdue = make_item(interval_days=5, repetition_count=2, due_at=T0)
    late = T0 + timedelta(days=30)
    item = schedule(overdue, Rating.GOOD, late)
    assert item.due_at == late + timedelta(days=item.interval_days)


def test_schedule_does_not_mutate_input():
    original = make_item()
    schedule(original, Rating.EASY, T0)
    assert original.interval_days == 0
    assert original.last_performance is None


def test_next_interval_never_zero_after_review():
    for rating in Rating:
        assert next_interval(0, 1.3, rating) >= 1


# --- policy validation ---


@pytest.mark.parametrize(
    "kwargs",
    [
        {"min_ease": 0.5},
        {"initial_ease": 1.2},
        {"again_ease_penalty": -0.1},
        {"relearn_interval_days": 0},
        {"first_easy_interval_days": 0},
        {"hard_interval_factor": 0.9},
    ],
)
def test_policy_rejects_inconsistent_values(kwargs):
    with pytest.raises(ValueError):
        SchedulingPolicy(**kwargs)
