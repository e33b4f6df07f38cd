"""Logging configuration for the command-line entry point."""
from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Union

ENV_LOG_LEVEL = 'TASK_TRACKER_LOG_LEVEL'
DEFAULT_LEVEL = logging.WARNING


def resolve_level(raw: Optional[str]) -> int:
    """Level name or number from the environment; unknown values fall back to WARNING."""
    if raw is None or not raw.strip():
        return DEFAULT_LEVEL
    raw = raw.strip()
    if raw.isdecimal():
        return int(raw)
    level = logging.getLevelName(raw.upper())
    return level if isinstance(level, int) else DEFAULT_LEVEL


def setup_logging(level: Union[int, str, None] = None) -> None:
    """Send log records to stderr so they never mix with command output.

    Call this once, before the first command runs. Existing root handlers
    are removed to avoid duplicate lines.
    """
    if level is None:
        level = resolve_level(os.getenv(ENV_LOG_LEVEL))
    elif isinstance(level, str):
        level = resolve_level(level)

    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    root.addHandler(handler)
