import json
from datetime import datetime, timedelta, timezone

import pytest

from keyrecall.application.item_store import ItemStore
from keyrecall.domain.review import Rating, ReviewItem, ReviewLogEntry, StorageError
from keyrecall.infrastructure.adapters.json_store import JsonFileItemRepository

T0 = datetime(2023, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def reviewed_item():
    return ReviewItem(
        id="vscode.command-palette",
        ease_factor=2.35,
        interval_days=2,
        repetition_count=1,
        due_at=T0 + timedelta(days=2),
        last_reviewed_at=T0,
        last_performance=Rating.HARD,
        history=(ReviewLogEntry(T0, Rating.HARD, 2, 4100),),
    )


def test_missing_file_loads_empty(tmp_path):
    assert JsonFileItemRepository(tmp_path / "nope.json").load() == []


def test_save_then_load_is_lossless(tmp_path, reviewed_item):
    fresh = ReviewItem(id="a", ease_factor=2.5, interval_days=0, repetition_count=0, due_at=T0)
    repo = JsonFileItemRepository(tmp_path / "nested" / "state.json")

    repo.save([reviewed_item, fresh])

    assert repo.load() == [reviewed_item, fresh]


def test_ratings_are_stored_as_plain_tokens(tmp_path, reviewed_item):
    path = tmp_path / "state.json"
    JsonFileItemRepository(path).save([reviewed_item])

    data = json.loads(path.read_text())

    assert data["version"] == 1
    stored = data["items"][0]
    assert stored["last_performance"] == "hard"
    assert stored["history"][0]["rating"] == "hard"
    assert stored["due_at"] == "2023-05-03T12:00:00+00:00"


def test_save_replaces_previous_snapshot(tmp_path, reviewed_item):
    repo = JsonFileItemRepository(tmp_path / "state.json")
    repo.save([reviewed_item])
    repo.save([])
    assert repo.load() == []
    assert [p.name for p in tmp_path.iterdir()] == ["state.json"]


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        "[]",
        '{"items": 3}',
        '{"version": 99, "items": []}',
        '{"version": 1, "items": [{"id": "a"}]}',
        '{"version": 1, "items": [{"id": "a", "ease_factor": 2.5, "interval_days": 0,'
        ' "repetition_count": 0, "due_at": "2023-05-01T12:00:00+00:00",'
        ' "last_performance": "meh"}]}',
    ],
)
def test_corrupt_state_raises_storage_error(tmp_path, content):
    path = tmp_path / "state.json"
    path.write_text(content)
    with pytest.raises(StorageError):
        JsonFileItemRepository(path).load()


def _state_with(**fields):
    raw = {
        "id": "a",
        "ease_factor": 2.5,
        "interval_days": 0,
        "repetition_count": 0,
        "due_at": "2023-05-01T12:00:00+00:00",
        **fields,
    }
    return json.dumps({"version": 1, "items": [raw]})


@pytest.mark.parametrize(
    "fields",
    [
        {"interval_days": -3},
        {"repetition_count": -2},
        {"ease_factor": 0.4, "interval_days": -3, "repetition_count": -2},
    ],
)
def test_negative_counts_raise_storage_error(tmp_path, fields):
    path = tmp_path / "state.json"
    path.write_text(_state_with(**fields))
    with pytest.raises(StorageError):
        JsonFileItemRepository(path).load()


def test_store_rejects_ease_below_floor_on_load(tmp_path):
    path = tmp_path / "state.json"
    path.write_text(_state_with(ease_factor=0.4))
    with pytest.raises(StorageError):
        ItemStore(JsonFileItemRepository(path))


def test_naive_timestamps_load_as_utc(tmp_path):
    path = tmp_path / "state.json"
    path.write_text(_state_with(due_at="2023-05-01T12:00:00"))
    [item] = JsonFileItemRepository(path).load()
    assert item.due_at == T0
