"""Tracker logic: id management, task mutation, filtering and formatting.

Every mutation is a single load -> change one task -> save cycle against the
injected storage. Validation runs before anything is changed, so a rejected
call never saves.
"""
import logging
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Set, Union

from models import Status, Task, TaskNotFound, TaskUpdate, ValidationError, now_timestamp
from theme import color, HEADER_COLOR, ID_COLOR, META_COLOR, STATUS_COLOR

logger = logging.getLogger(__name__)

TaskFilter = Callable[[Task], bool]

FILTERS: Dict[str, TaskFilter] = {
    'all': lambda t: True,
    'done': lambda t: t.status is Status.DONE,
    'not-done': lambda t: t.status is not Status.DONE,
    'in-progress': lambda t: t.status is Status.IN_PROGRESS,
    'todo': lambda t: t.status is Status.TODO,
}
FILTER_NAMES = tuple(FILTERS)


class TaskStorage(Protocol):
    def load(self) -> List[Task]: ...

    def save(self, tasks: List[Task]) -> None: ...

    def reserved_ids(self) -> Set[int]: ...


def next_id(tasks: List[Task], reserved: Iterable[int] = ()) -> int:
    """Max existing id + 1, or 1 for an empty list. Ids are never reused.

    `reserved` holds ids of stored records that could not be loaded.
    """
    ids = [t.id for t in tasks]
    ids.extend(reserved)
    if not ids:
        return 1
    return max(ids) + 1


def normalize_filter(name: str) -> str:
    key = name.strip().lower().replace(' ', '-').replace('_', '-')
    if key not in FILTERS:
        raise ValidationError(f"Invalid filter: {name}. Use: {', '.join(FILTER_NAMES)}")
    return key


def _find(tasks: List[Task], task_id: int) -> Task:
    for task in tasks:
        if task.id == task_id:
            return task
    raise TaskNotFound(task_id)


class TaskTracker:
    def __init__(self, storage: TaskStorage, clock: Callable[[], str] = now_timestamp):
        self.storage = storage
        self.clock = clock

    # -------------------- task operations --------------------
    def add(self, description: str) -> Task:
        description = (description or '').strip()
        if not description:
            raise ValidationError("Task description must not be empty")
        tasks = self.storage.load()
        now = self.clock()
        task = Task(
            id=next_id(tasks, self.storage.reserved_ids()),
            description=description,
            status=Status.TODO,
            created_at=now,
            updated_at=now,
        )
        tasks.append(task)
        self.storage.save(tasks)
        logger.debug("Added task %d", task.id)
        return task

    def update(self, task_id: int, changes: TaskUpdate) -> Task:
        """Apply the populated slots of `changes` to one task."""
        tasks = self.storage.load()
        task = _find(tasks, task_id)
        if changes.is_empty():
            raise ValidationError("No updates provided")
        description: Optional[str] = None
        if changes.description is not None:
            description = changes.description.strip()
            if not description:
                raise ValidationError("Task description must not be empty")
        status = Status.parse(changes.status) if changes.status is not None else None
        if description is not None:
            task.description = description
        if status is not None:
            task.status = status
        task.updated_at = self.clock()
        self.storage.save(tasks)
        logger.debug("Updated task %d", task.id)
        return task

    def delete(self, task_id: int) -> Task:
        tasks = self.storage.load()
        task = _find(tasks, task_id)
        remaining = [t for t in tasks if t.id != task_id]
        self.storage.save(remaining)
        logger.debug("Deleted task %d", task_id)
        return task

    def mark(self, task_id: int, status: Union[Status, str]) -> Task:
        new_status = Status.parse(status)
        tasks = self.storage.load()
        task = _find(tasks, task_id)
        task.status = new_status
        task.updated_at = self.clock()
        self.storage.save(tasks)
        logger.debug("Marked task %d as %s", task.id, new_status.value)
        return task

    # -------------------- queries --------------------
    def list_tasks(self, filter_name: str = 'all') -> List[Task]:
        """Tasks matching the named filter, in stored order."""
        predicate = FILTERS[normalize_filter(filter_name)]
        return [t for t in self.storage.load() if predicate(t)]


# -------------------- display --------------------
def format_task(task: Task) -> str:
    status = task.status.value
    head = (
        color(f"#{task.id}", ID_COLOR) + ' '
        + color(f"[{status}]", STATUS_COLOR.get(status, '')) + ' '
        + task.description
    )
    meta = color(f"   Created: {task.created_at}, Updated: {task.updated_at}", META_COLOR)
    return f"{head}\n{meta}"


def format_listing(tasks: List[Task], filter_name: str = 'all') -> str:
    if not tasks:
        return "No tasks found"
    lines = [color(f"Tasks ({filter_name}):", HEADER_COLOR)]
    lines.extend(format_task(t) for t in tasks)
    return '\n'.join(lines)
