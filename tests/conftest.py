# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest

import theme
from storage import MemoryStorage, Storage
from tracker import TaskTracker

from .fakes import FakeClock


@pytest.fixture(autouse=True)
def plain_output(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep ANSI colour codes out of asserted output."""
    monkeypatch.setattr(theme, "_ENABLE", False)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture()
def tracker(memory_storage: MemoryStorage, clock: FakeClock) -> TaskTracker:
    return TaskTracker(memory_storage, clock=clock)


@pytest.fixture()
def tasks_path(tmp_path: Path) -> Path:
    return tmp_path / "tasks.json"


@pytest.fixture()
def file_tracker(tasks_path: Path, clock: FakeClock) -> TaskTracker:
    """TaskTracker wired to a real JSON file in a temp dir."""
    return TaskTracker(Storage(tasks_path), clock=clock)
