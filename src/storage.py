"""Persistence helpers (load/save) for the task list.

The whole collection is one JSON array, rewritten on every save. A missing
file is an empty list (first run). A file that cannot be read or parsed is
logged and treated as empty so the command can still run.
"""
import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, List, Optional, Set, Tuple, Union

from models import StorageError, Task, ValidationError

logger = logging.getLogger(__name__)

TASKS_FILE = Path('tasks.json')
ENV_TASKS_FILE = 'TASK_TRACKER_FILE'


def default_tasks_file() -> Path:
    """TASK_TRACKER_FILE if set, else tasks.json in the working directory."""
    raw = os.getenv(ENV_TASKS_FILE)
    if raw and raw.strip():
        return Path(raw).expanduser()
    return TASKS_FILE


class Storage:
    def __init__(self, path: Union[str, Path, None] = None):
        self.path: Path = Path(path) if path is not None else default_tasks_file()
        # raw records from the last load that could not be read; written back on save
        self._skipped: List[Any] = []

    def load(self) -> List[Task]:
        """Load tasks from disk in stored order.

        Missing file -> empty list. Unreadable or malformed file -> logged,
        empty list. Individual unusable records are skipped with a warning
        and kept aside so save() writes them back unchanged.
        """
        self._skipped = []
        if not self.path.exists():
            return []
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            logger.error("Error reading tasks from %s: %s", self.path, exc)
            return []
        if not isinstance(data, list):
            logger.error("Error reading tasks from %s: expected a JSON array", self.path)
            return []
        tasks, self._skipped = _tasks_from_entries(data, self.path)
        return tasks

    def reserved_ids(self) -> Set[int]:
        """Ids held by records skipped on the last load."""
        return {
            raw["id"] for raw in self._skipped
            if isinstance(raw, dict) and isinstance(raw.get("id"), int) and not isinstance(raw["id"], bool)
        }

    def save(self, tasks: List[Task]) -> None:
        """Persist tasks to disk (pretty-printed), replacing the file in one step."""
        entries: List[Any] = [task.to_dict() for task in tasks]
        entries.extend(self._skipped)
        directory = self.path.parent
        tmp_name: Optional[str] = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f'.{self.path.name}.', suffix='.tmp', dir=str(directory)
            )
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(entries, f, indent=2, ensure_ascii=False)
                f.write('\n')
            os.replace(tmp_name, self.path)
        except OSError as exc:
            logger.error("Error writing tasks to %s: %s", self.path, exc)
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageError(f"Could not save tasks to {self.path}: {exc}") from exc
        logger.debug("Saved %d task(s) to %s", len(entries), self.path)


class MemoryStorage:
    """Storage stand-in that keeps the collection in memory."""

    def __init__(self, tasks: Optional[List[Task]] = None):
        self._tasks: List[Task] = copy.deepcopy(tasks or [])
        self.save_count = 0

    def load(self) -> List[Task]:
        return copy.deepcopy(self._tasks)

    def reserved_ids(self) -> Set[int]:
        return set()

    def save(self, tasks: List[Task]) -> None:
        self._tasks = copy.deepcopy(tasks)
        self.save_count += 1


def _tasks_from_entries(entries: List[Any], source: Path) -> Tuple[List[Task], List[Any]]:
    tasks: List[Task] = []
    skipped: List[Any] = []
    seen = set()
    for raw in entries:
        if not isinstance(raw, dict):
            logger.warning("Skipping non-object entry in %s: %r", source, raw)
            skipped.append(raw)
            continue
        try:
            task = Task.from_dict(raw)
        except (ValueError, ValidationError) as exc:
            logger.warning("Skipping unreadable task in %s: %s", source, exc)
            skipped.append(raw)
            continue
        if task.id in seen:
            logger.warning("Skipping duplicate task id %d in %s", task.id, source)
            skipped.append(raw)
            continue
        seen.add(task.id)
        tasks.append(task)
    return tasks, skipped
