"""Color & style helpers for task listings.

Decisions:
- Truecolor preferred; falls back to 256-color cube if unsupported.
- Disables automatically when not a TTY unless FORCE_COLOR=1.
- Honors NO_COLOR for complete disable.
- Palette overrides via environment or project .env file
  (TASK_TRACKER_PRIMARY, TASK_TRACKER_TODO, TASK_TRACKER_INPROGRESS, TASK_TRACKER_DONE).
"""
from __future__ import annotations
import logging
import os, sys
from pathlib import Path

logger = logging.getLogger(__name__)

_FORCE = os.environ.get("FORCE_COLOR", "").lower() in {"1", "true", "yes", "on"}
_NO_COLOR = os.environ.get("NO_COLOR") is not None
_ENABLE = (_FORCE or sys.stdout.isatty()) and not _NO_COLOR
_COLORTERM = os.environ.get("COLORTERM", "").lower()
_USE_TRUECOLOR = _ENABLE and any(tok in _COLORTERM for tok in ("truecolor", "24bit"))

PALETTE_KEYS = ('TASK_TRACKER_PRIMARY', 'TASK_TRACKER_TODO', 'TASK_TRACKER_INPROGRESS', 'TASK_TRACKER_DONE')

def _code(part: str) -> str:
    return f"\033[{part}m" if _ENABLE else ''

def is_hex_color(value: str) -> bool:
    h = value.strip().lstrip('#')
    return len(h) == 6 and all(c in '0123456789abcdefABCDEF' for c in h)

def _hex_to_rgb(hex_code: str) -> tuple[int,int,int]:
    h = hex_code.lstrip('#')
    return int(h[0:2],16), int(h[2:4],16), int(h[4:6],16)

def _fg_256(r: int, g: int, b: int) -> str:
    """Approximate RGB to xterm 256-color cube."""
    def to_6(x: int) -> int:
        return int(round(x / 255 * 5))
    return f"\033[38;5;{16 + 36 * to_6(r) + 6 * to_6(g) + to_6(b)}m"

def _from_hex(hex_code: str) -> str:
    if not _ENABLE:
        return ''
    r, g, b = _hex_to_rgb(hex_code)
    if _USE_TRUECOLOR:
        return f"\033[38;2;{r};{g};{b}m"
    return _fg_256(r, g, b)

def read_env_file(path: Path) -> dict[str, str]:
    """Palette overrides from a KEY=VALUE file; invalid hex values are ignored."""
    overrides: dict[str, str] = {}
    try:
        lines = path.read_text(encoding='utf-8').splitlines()
    except OSError as exc:
        logger.debug("Could not read %s: %s", path, exc)
        return overrides
    for line in lines:
        line = line.strip()
        if not line or line.startswith('#') or '=' not in line:
            continue
        k, v = (part.strip() for part in line.split('=', 1))
        if k in PALETTE_KEYS and is_hex_color(v):
            overrides[k] = '#' + v.lstrip('#')
    return overrides

def _resolve(key: str, default: str) -> str:
    """Priority: real env var > .env override > default."""
    value = os.environ.get(key)
    if value and is_hex_color(value):
        return '#' + value.strip().lstrip('#')
    return _ENV_OVERRIDES.get(key, default)

RESET = _code('0')
BOLD = _code('1')
DIM = _code('2')

_env_path = Path(__file__).resolve().parent.parent / '.env'
_ENV_OVERRIDES: dict[str, str] = read_env_file(_env_path) if _env_path.exists() else {}

PRIMARY = _from_hex(_resolve('TASK_TRACKER_PRIMARY', '#476EAE'))
STATUS_COLOR = {
    'todo': _from_hex(_resolve('TASK_TRACKER_TODO', '#48B3AF')),
    'in-progress': _from_hex(_resolve('TASK_TRACKER_INPROGRESS', '#F6FF99')),
    'done': _from_hex(_resolve('TASK_TRACKER_DONE', '#A7E399')),
}

HEADER_COLOR = PRIMARY
ID_COLOR = PRIMARY + BOLD
META_COLOR = DIM

def color(text: str, *styles: str) -> str:
    """Apply ANSI styles to a given text."""
    if not _ENABLE:
        return text
    return ''.join(styles) + text + RESET

__all__ = [
    'color', 'read_env_file', 'is_hex_color', 'RESET', 'BOLD', 'DIM',
    'STATUS_COLOR', 'HEADER_COLOR', 'ID_COLOR', 'META_COLOR',
]
