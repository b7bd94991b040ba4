from datetime import datetime, timedelta, timezone

import pytest

from keyrecall.application.stats import StatisticsCalculator
from keyrecall.domain.review import ReviewItem, Statistics

T0 = datetime(2023, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def calculator():
    return StatisticsCalculator()


def item(sid: str, ease: float = 2.5, reps: int = 0, due_in_days: int = 0) -> ReviewItem:
    return ReviewItem(
        id=sid,
        ease_factor=ease,
        interval_days=max(due_in_days, 0),
        repetition_count=reps,
        due_at=T0 + timedelta(days=due_in_days),
    )


def test_empty_store_is_all_zero(calculator):
    stats = calculator.compute([], T0)
    assert stats == Statistics(0, 0, 0.0, 0.0)


def test_counts_and_average_ease(calculator):
    items = [
        item("a", ease=2.5, due_in_days=0),
        item("b", ease=1.3, due_in_days=-2),
        item("c", ease=2.8, due_in_days=4),
    ]

    stats = calculator.compute(items, T0)

    assert stats.total_shortcuts == 3
    assert stats.due_shortcuts == 2
    assert stats.average_ease_factor == pytest.approx((2.5 + 1.3 + 2.8) / 3)


def test_mastery_is_mean_of_capped_repetitions(calculator):
    items = [item("a", reps=0), item("b", reps=2), item("c", reps=5), item("d", reps=9)]

    stats = calculator.compute(items, T0)

    # (0 + 40 + 100 + 100) / 4
    assert stats.mastery_level == pytest.approx(60.0)


def test_never_reviewed_items_have_zero_mastery(calculator):
    assert calculator.compute([item("a"), item("b")], T0).mastery_level == 0


def test_custom_mastery_threshold():
    calc = StatisticsCalculator(mastery_repetitions=2)
    assert calc.item_mastery(item("a", reps=1)) == pytest.approx(50.0)
    assert calc.item_mastery(item("a", reps=3)) == pytest.approx(100.0)


def test_mastery_threshold_must_be_positive():
    with pytest.raises(ValueError):
        StatisticsCalculator(mastery_repetitions=0)
