"""Command-line dispatch for the task tracker.

One invocation runs one command: parse positional arguments, call the
tracker, print the result. Expected failures end in a message and a
non-zero exit code, never a traceback.
"""
import sys
from typing import List, Optional, Sequence, TextIO

from models import StorageError, TaskNotFound, TaskUpdate, ValidationError
from tracker import TaskTracker, format_listing, format_task, normalize_filter

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2

COMMANDS = ('add', 'update', 'delete', 'mark', 'list')
PROG = 'task-cli'


class CLI:
    def __init__(self, tracker: TaskTracker, out: Optional[TextIO] = None, err: Optional[TextIO] = None):
        self.tracker: TaskTracker = tracker
        # None means the current sys.stdout / sys.stderr at write time
        self.out = out
        self.err = err

    def _print(self, text: str) -> None:
        print(text, file=self.out or sys.stdout)

    def _error(self, message: str) -> None:
        print(f"Error: {message}", file=self.err or sys.stderr)

    def _parse_id(self, raw: str) -> Optional[int]:
        raw = raw.strip().lstrip('#').rstrip('.')
        if not raw.isdecimal():
            self._error(f"Invalid task ID: {raw}")
            return None
        return int(raw)

    def run(self, argv: Sequence[str]) -> int:
        """Run one command; returns the process exit code."""
        args = list(argv)
        if not args or args[0] in ('help', '-h', '--help'):
            self._help()
            return EXIT_OK
        try:
            return self._handle_command(args[0], args[1:])
        except TaskNotFound as exc:
            self._print(str(exc))
            return EXIT_FAILED
        except ValidationError as exc:
            self._error(str(exc))
            return EXIT_USAGE
        except StorageError as exc:
            self._error(str(exc))
            return EXIT_FAILED

    # -------------------- command dispatch --------------------
    def _handle_command(self, cmd: str, rest: List[str]) -> int:
        if cmd == 'add':
            return self._cmd_add(rest)
        if cmd == 'update':
            return self._cmd_update(rest)
        if cmd == 'delete':
            return self._cmd_delete(rest)
        if cmd == 'mark':
            return self._cmd_mark(rest)
        if cmd == 'list':
            return self._cmd_list(rest)
        self._error(f"Unknown command '{cmd}'. Commands: {', '.join(COMMANDS)}")
        return EXIT_USAGE

    # ---- individual command helpers ----
    def _cmd_add(self, rest: List[str]) -> int:
        description = ' '.join(rest).strip()
        if not description:
            self._error("Missing task description")
            return EXIT_USAGE
        task = self.tracker.add(description)
        self._print(f"Task added:\n{format_task(task)}")
        return EXIT_OK

    def _cmd_update(self, rest: List[str]) -> int:
        if not rest:
            self._error("Missing task ID")
            return EXIT_USAGE
        task_id = self._parse_id(rest[0])
        if task_id is None:
            return EXIT_USAGE
        if len(rest) < 2:
            self._error('No updates provided (e.g., description="New desc" status=done)')
            return EXIT_USAGE
        changes = TaskUpdate.from_pairs(rest[1:])
        task = self.tracker.update(task_id, changes)
        self._print(f"Task updated:\n{format_task(task)}")
        return EXIT_OK

    def _cmd_delete(self, rest: List[str]) -> int:
        if not rest:
            self._error("Missing task ID")
            return EXIT_USAGE
        task_id = self._parse_id(rest[0])
        if task_id is None:
            return EXIT_USAGE
        self.tracker.delete(task_id)
        self._print(f"Task deleted: {task_id}")
        return EXIT_OK

    def _cmd_mark(self, rest: List[str]) -> int:
        if not rest:
            self._error("Missing task ID")
            return EXIT_USAGE
        task_id = self._parse_id(rest[0])
        if task_id is None:
            return EXIT_USAGE
        if len(rest) < 2:
            self._error(f"Missing status. Usage: {PROG} mark <id> <status>")
            return EXIT_USAGE
        # allow an unquoted "in progress"
        task = self.tracker.mark(task_id, ' '.join(rest[1:]))
        self._print(f"Task marked as {task.status.value}:\n{format_task(task)}")
        return EXIT_OK

    def _cmd_list(self, rest: List[str]) -> int:
        filter_name = normalize_filter(' '.join(rest) if rest else 'all')
        tasks = self.tracker.list_tasks(filter_name)
        self._print(format_listing(tasks, filter_name))
        return EXIT_OK

    # -------------------- help --------------------
    def _help(self) -> None:
        self._print(f"Usage: {PROG} <command> [arguments]")
        self._print("Commands:")
        self._print("  add <description>              Add a new task")
        self._print("  update <id> <field=value>...   Update description and/or status")
        self._print("  delete <id>                    Delete a task")
        self._print("  mark <id> <status>             Set status: todo, in-progress, done (t/ip/d)")
        self._print("  list [filter]                  List tasks; filter: all, done, not-done, in-progress, todo")
