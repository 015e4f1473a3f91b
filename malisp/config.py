from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Iterable, List


def _sep() -> str:
    return ';' if os.name == 'nt' else ':'


# Resolve installation dir (malisp package directory)
_MALISP_DIR = Path(__file__).resolve().parent

# Defaults
_DEFAULT_PRELUDE_DIR = _MALISP_DIR / 'prelude'
DEFAULT_LOG_LEVEL = 'WARNING'
DEFAULT_REPL_HOST = '127.0.0.1'
DEFAULT_REPL_PORT = 8765


def paths_from_env(var: str, defaults: Iterable[Path]) -> List[Path]:
    raw = os.environ.get(var)
    if not raw:
        return [Path(p) for p in defaults]
    sep = _sep()
    return [Path(p.strip()) for p in raw.split(sep) if p.strip()]


def get_prelude_root() -> Path:
    roots = paths_from_env('MALISP_PRELUDE_PATH', [_DEFAULT_PRELUDE_DIR])
    # treat as single directory; if a file path is set, return its parent
    p = roots[0]
    return p if p.is_dir() else p.parent


def get_log_level() -> int:
    name = os.environ.get('MALISP_LOG_LEVEL', DEFAULT_LOG_LEVEL).strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.WARNING


def get_repl_address() -> tuple[str, int]:
    host = os.environ.get('MALISP_REPL_HOST') or DEFAULT_REPL_HOST
    raw_port = os.environ.get('MALISP_REPL_PORT')
    try:
        port = int(raw_port) if raw_port else DEFAULT_REPL_PORT
    except ValueError:
        port = DEFAULT_REPL_PORT
    return host, port
