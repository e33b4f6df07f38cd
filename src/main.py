"""Main entry point for the task tracker."""
import sys
from typing import Optional, Sequence

from cli import CLI
from logging_setup import setup_logging
from storage import Storage
from tracker import TaskTracker


def main(argv: Optional[Sequence[str]] = None) -> int:
    setup_logging()
    tracker = TaskTracker(Storage())
    return CLI(tracker).run(sys.argv[1:] if argv is None else argv)

if __name__ == "__main__":
    sys.exit(main())
