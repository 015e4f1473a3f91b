"""Read-eval-print loop and script runner for the command line."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

from malisp.config import get_log_level
from malisp.interpreter import Interpreter
from malisp.printer import pr_str
from malisp.types.values import Error

logger = logging.getLogger(__name__)


def _prompt(itp: Interpreter) -> str:
    package = itp.package
    return f"{package.name if package is not None else '?'}> "


def print_result(value, out: Optional[TextIO] = None, err: Optional[TextIO] = None) -> None:
    out = out or sys.stdout
    err = err or sys.stderr
    if isinstance(value, Error):
        print(f"Error: {pr_str(value.payload, True)}", file=err)
    else:
        print(pr_str(value, True), file=out)


def repl(itp: Interpreter) -> None:
    """Read lines with input() until EOF, printing each form's value."""
    print(f"; malisp running on python {sys.version.split()[0]}")
    while True:
        try:
            line = input(_prompt(itp))
        except EOFError:
            print()
            return
        except KeyboardInterrupt:
            print()
            continue
        for value in itp.eval_forms(line):
            print_result(value)


def run_file(itp: Interpreter, path: str) -> int:
    """Evaluate every form in the file at `path`; 1 if any of them failed."""
    logger.debug("running %s", path)
    status = 0
    for value in itp.eval_forms(Path(path).read_text(encoding="utf-8")):
        if isinstance(value, Error):
            print(f"Error: {pr_str(value.payload, True)}", file=sys.stderr)
            status = 1
    return status


def main(argv: Optional[list[str]] = None) -> int:
    logging.basicConfig(level=get_log_level(), format="%(levelname)s %(name)s: %(message)s")
    args = sys.argv[1:] if argv is None else argv

    itp = Interpreter()
    if not args:
        repl(itp)
        return 0
    script, *script_args = args
    itp.set_argv(script_args)
    try:
        return run_file(itp, script)
    except OSError as ex:
        print(f"malisp: cannot read {script}: {ex.strerror}", file=sys.stderr)
        return 2
