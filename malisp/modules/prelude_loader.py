from __future__ import annotations
import logging
from typing import Protocol

from malisp.config import get_prelude_root

logger = logging.getLogger(__name__)

SYSTEM_PRELUDE = 'system.lisp'


class _HasEvalPrelude(Protocol):
    def eval_prelude(self, code: str) -> None: ...


def load_prelude(itp: _HasEvalPrelude) -> None:
    """Evaluate system.lisp from the prelude root into the interpreter."""
    path = get_prelude_root() / SYSTEM_PRELUDE
    if not path.is_file():
        raise FileNotFoundError(f"Cannot find {SYSTEM_PRELUDE} in MALISP_PRELUDE_PATH ({path.parent})")
    logger.debug("loading prelude from %s", path)
    itp.eval_prelude(path.read_text(encoding='utf-8'))
