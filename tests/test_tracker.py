# tests/test_tracker.py

from __future__ import annotations

import copy
import json

import pytest

from models import InvalidStatus, Status, Task, TaskNotFound, TaskUpdate, ValidationError
from storage import MemoryStorage
from tracker import FILTER_NAMES, TaskTracker, format_listing, format_task, next_id

from .fakes import FakeClock


def test_next_id_starts_at_one_and_follows_max() -> None:
    assert next_id([]) == 1
    tasks = [Task(id=5, description="a"), Task(id=2, description="b")]
    assert next_id(tasks) == 6


def test_add_creates_todo_task(tracker: TaskTracker, memory_storage: MemoryStorage, clock: FakeClock) -> None:
    task = tracker.add("buy milk")
    assert task.id == 1
    assert task.description == "buy milk"
    assert task.status is Status.TODO
    assert task.created_at == task.updated_at == clock.last
    assert memory_storage.load() == [task]
    assert memory_storage.save_count == 1


def test_add_strips_description(tracker: TaskTracker) -> None:
    assert tracker.add("  walk dog  ").description == "walk dog"


@pytest.mark.parametrize("description", ["", "   "])
def test_add_rejects_empty_description(tracker: TaskTracker, memory_storage: MemoryStorage, description) -> None:
    with pytest.raises(ValidationError):
        tracker.add(description)
    assert memory_storage.save_count == 0


def test_ids_increase_and_are_not_reused(tracker: TaskTracker) -> None:
    assert tracker.add("buy milk").id == 1
    assert tracker.add("walk dog").id == 2
    tracker.delete(1)
    assert tracker.add("feed cat").id == 3
    assert [t.id for t in tracker.list_tasks()] == [2, 3]


def test_deleting_highest_id_allows_max_plus_one(tracker: TaskTracker) -> None:
    for name in ("a", "b", "c"):
        tracker.add(name)
    tracker.delete(2)
    assert tracker.add("d").id == 4


def test_update_description_and_status(tracker: TaskTracker, clock: FakeClock) -> None:
    created = tracker.add("buy milk")
    updated = tracker.update(created.id, TaskUpdate(description="buy oat milk", status=Status.DONE))
    assert updated.description == "buy oat milk"
    assert updated.status is Status.DONE
    assert updated.created_at == created.created_at
    assert updated.updated_at == clock.last
    assert updated.updated_at > updated.created_at
    assert tracker.list_tasks() == [updated]


def test_update_only_touches_populated_slots(tracker: TaskTracker) -> None:
    tracker.add("buy milk")
    updated = tracker.update(1, TaskUpdate(status=Status.IN_PROGRESS))
    assert updated.description == "buy milk"
    assert updated.status is Status.IN_PROGRESS


def test_update_invalid_status_leaves_task_unchanged(clock: FakeClock) -> None:
    storage = MemoryStorage()
    tracker = TaskTracker(storage, clock=clock)
    tracker.add("buy milk")
    before = storage.load()
    saves = storage.save_count
    with pytest.raises(InvalidStatus):
        tracker.update(1, TaskUpdate(description="changed", status="bogus"))
    assert storage.load() == before
    assert storage.save_count == saves


def test_update_empty_description_rejected(tracker: TaskTracker, memory_storage: MemoryStorage) -> None:
    tracker.add("buy milk")
    with pytest.raises(ValidationError):
        tracker.update(1, TaskUpdate(description="  "))
    assert memory_storage.load()[0].description == "buy milk"


def test_update_with_no_changes_rejected(tracker: TaskTracker, memory_storage: MemoryStorage) -> None:
    tracker.add("buy milk")
    with pytest.raises(ValidationError):
        tracker.update(1, TaskUpdate())
    assert memory_storage.save_count == 1


@pytest.mark.parametrize(
    "operation",
    [
        lambda t: t.update(99, TaskUpdate(description="x")),
        lambda t: t.delete(99),
        lambda t: t.mark(99, Status.DONE),
    ],
)
def test_unknown_id_leaves_collection_unchanged(tracker: TaskTracker, memory_storage: MemoryStorage, operation) -> None:
    tracker.add("buy milk")
    tracker.add("walk dog")
    before = copy.deepcopy(memory_storage.load())
    with pytest.raises(TaskNotFound) as excinfo:
        operation(tracker)
    assert excinfo.value.task_id == 99
    assert memory_storage.load() == before
    assert memory_storage.save_count == 2


def test_delete_returns_removed_task(tracker: TaskTracker) -> None:
    tracker.add("buy milk")
    tracker.add("walk dog")
    removed = tracker.delete(1)
    assert removed.description == "buy milk"
    assert [t.description for t in tracker.list_tasks()] == ["walk dog"]


def test_mark_sets_status_and_refreshes_timestamp(tracker: TaskTracker, clock: FakeClock) -> None:
    tracker.add("buy milk")
    task = tracker.mark(1, "done")
    assert task.status is Status.DONE
    assert task.updated_at == clock.last


def test_mark_twice_only_changes_updated_at(tracker: TaskTracker) -> None:
    tracker.add("buy milk")
    first = tracker.mark(1, Status.IN_PROGRESS)
    second = tracker.mark(1, Status.IN_PROGRESS)
    assert first.status is second.status is Status.IN_PROGRESS
    assert (first.id, first.description, first.created_at) == (second.id, second.description, second.created_at)
    assert second.updated_at > first.updated_at


def test_mark_invalid_status_leaves_task_unchanged(tracker: TaskTracker, memory_storage: MemoryStorage) -> None:
    tracker.add("buy milk")
    before = memory_storage.load()
    with pytest.raises(InvalidStatus):
        tracker.mark(1, "bogus")
    assert memory_storage.load() == before


def test_mark_missing_id_with_legacy_status_spelling(tracker: TaskTracker, memory_storage: MemoryStorage) -> None:
    tracker.add("buy milk")
    before = memory_storage.load()
    with pytest.raises(TaskNotFound):
        tracker.mark(2, "in progress")
    assert memory_storage.load() == before


@pytest.fixture()
def mixed(tracker: TaskTracker) -> TaskTracker:
    tracker.add("one")
    tracker.add("two")
    tracker.add("three")
    tracker.add("four")
    tracker.mark(2, Status.DONE)
    tracker.mark(3, Status.IN_PROGRESS)
    return tracker


@pytest.mark.parametrize(
    "filter_name, expected",
    [
        ("all", [1, 2, 3, 4]),
        ("done", [2]),
        ("not-done", [1, 3, 4]),
        ("not done", [1, 3, 4]),
        ("in-progress", [3]),
        ("In Progress", [3]),
        ("todo", [1, 4]),
    ],
)
def test_list_filters_preserve_insertion_order(mixed: TaskTracker, filter_name, expected) -> None:
    assert [t.id for t in mixed.list_tasks(filter_name)] == expected


def test_list_defaults_to_all(mixed: TaskTracker) -> None:
    assert len(mixed.list_tasks()) == 4


def test_list_unknown_filter_rejected(mixed: TaskTracker) -> None:
    with pytest.raises(ValidationError, match="Invalid filter"):
        mixed.list_tasks("someday")


def test_filter_names() -> None:
    assert FILTER_NAMES == ("all", "done", "not-done", "in-progress", "todo")


def test_format_task_shows_all_fields() -> None:
    task = Task(
        id=7,
        description="feed cat",
        status=Status.IN_PROGRESS,
        created_at="2024-01-01T00:00:00.000Z",
        updated_at="2024-01-02T00:00:00.000Z",
    )
    assert format_task(task) == (
        "#7 [in-progress] feed cat\n"
        "   Created: 2024-01-01T00:00:00.000Z, Updated: 2024-01-02T00:00:00.000Z"
    )


def test_format_listing_empty_reports_no_tasks() -> None:
    assert format_listing([], "todo") == "No tasks found"


def test_format_listing_has_header_and_tasks(mixed: TaskTracker) -> None:
    text = format_listing(mixed.list_tasks("todo"), "todo")
    lines = text.splitlines()
    assert lines[0] == "Tasks (todo):"
    assert lines[1] == "#1 [todo] one"
    assert lines[3] == "#4 [todo] four"


def test_file_backed_round_trip(file_tracker: TaskTracker, tasks_path) -> None:
    file_tracker.add("buy milk")
    file_tracker.add("walk dog")
    file_tracker.mark(2, "ip")
    reloaded = TaskTracker(type(file_tracker.storage)(tasks_path), clock=FakeClock())
    assert [(t.id, t.status) for t in reloaded.list_tasks()] == [
        (1, Status.TODO),
        (2, Status.IN_PROGRESS),
    ]


def test_add_after_unreadable_record_keeps_it_and_skips_its_id(file_tracker: TaskTracker, tasks_path) -> None:
    records = [
        {"id": 1, "description": "buy milk", "status": "todo",
         "createdAt": "2024-01-01T00:00:00.000Z", "updatedAt": "2024-01-01T00:00:00.000Z"},
        {"id": 2, "description": "walk dog", "status": "blocked"},
    ]
    tasks_path.write_text(json.dumps(records), encoding="utf-8")

    assert file_tracker.add("feed cat").id == 3

    on_disk = json.loads(tasks_path.read_text(encoding="utf-8"))
    assert {"id": 2, "description": "walk dog", "status": "blocked"} in on_disk
    assert sorted(r["id"] for r in on_disk) == [1, 2, 3]


def test_next_id_counts_reserved_ids() -> None:
    assert next_id([], reserved=[4]) == 5
    assert next_id([Task(id=2, description="a")], reserved={1}) == 3
