"""Data models for the task tracker.

Internal status keys are "todo", "in-progress", "done". Older task files
written by the first version of the tool stored "in progress" (with a
space); those spellings are migrated when a record is read back.
"""
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, Optional


class TrackerError(Exception):
    """Base class for failures reported back to the user."""


class ValidationError(TrackerError):
    pass


class InvalidStatus(ValidationError):
    def __init__(self, raw: str):
        super().__init__(f"Invalid status: {raw}. Use todo, in-progress, or done.")
        self.raw = raw


class TaskNotFound(TrackerError):
    def __init__(self, task_id: int):
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class StorageError(TrackerError):
    pass


class Status(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"

    @classmethod
    def parse(cls, raw: str) -> "Status":
        """Map user or file text onto a status; raise InvalidStatus otherwise."""
        key = str(raw).strip().lower()
        status = STATUS_ALIASES.get(key)
        if status is None:
            raise InvalidStatus(raw)
        return status

    def __str__(self) -> str:
        return self.value


STATUS_ALIASES: Dict[str, Status] = {
    't': Status.TODO,
    'todo': Status.TODO,
    'ip': Status.IN_PROGRESS,
    'in-progress': Status.IN_PROGRESS,
    'in progress': Status.IN_PROGRESS,  # legacy
    'in_progress': Status.IN_PROGRESS,
    'doing': Status.IN_PROGRESS,  # legacy
    'd': Status.DONE,
    'done': Status.DONE,
}

UPDATABLE_FIELDS = ('description', 'status')


def now_timestamp() -> str:
    """Current UTC time as ISO-8601 with milliseconds, e.g. 2024-05-01T12:00:00.000Z."""
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


@dataclass
class Task:
    """A single tracked task.

    Fields:
        id: Positive integer, unique within the store, never reused.
        description: Non-empty free text.
        status: One of the Status values.
        created_at: Timestamp set once when the task is added.
        updated_at: Timestamp refreshed on every mutation.
    """
    id: int
    description: str
    status: Status = Status.TODO
    created_at: str = ''
    updated_at: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'description': self.description,
            'status': self.status.value,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Task":
        """Build a Task from a persisted record.

        Raises ValueError (or InvalidStatus) for records that cannot be used:
        non-integer id, missing description, unknown status.
        """
        tid = raw.get('id')
        if not isinstance(tid, int) or isinstance(tid, bool) or tid < 1:
            raise ValueError(f"bad id {tid!r}")
        description = raw.get('description')
        if not isinstance(description, str) or not description.strip():
            raise ValueError(f"task {tid} has no description")
        created_at = str(raw.get('createdAt') or '')
        return cls(
            id=tid,
            description=description,
            status=Status.parse(raw.get('status', 'todo')),
            created_at=created_at,
            updated_at=str(raw.get('updatedAt') or created_at),
        )


@dataclass
class TaskUpdate:
    """Partial update: only populated slots are applied."""
    description: Optional[str] = None
    status: Optional[Status] = None

    def is_empty(self) -> bool:
        return self.description is None and self.status is None

    @classmethod
    def from_pairs(cls, pairs: Iterable[str]) -> "TaskUpdate":
        """Parse command-line tokens of the form field=value."""
        update = cls()
        for token in pairs:
            key, sep, value = token.partition('=')
            key = key.strip().lower()
            if not sep or not key:
                raise ValidationError(f"Expected field=value, got: {token}")
            if key not in UPDATABLE_FIELDS:
                raise ValidationError(
                    f"Unknown field: {key}. Fields: {', '.join(UPDATABLE_FIELDS)}"
                )
            if not value.strip():
                raise ValidationError(f"Empty value for field: {key}")
            if key == 'status':
                update.status = Status.parse(value)
            else:
                update.description = value.strip()
        return update
