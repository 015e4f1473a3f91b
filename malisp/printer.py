"""Printer: render Lisp values as text.

`pr_str(value, readably=True)` produces text the reader can read back for
data values (strings quoted and escaped); with `readably=False` strings are
written raw, which is what `str` and `println` use.
"""

from __future__ import annotations

from malisp import LispValue
from malisp.package_registry import Package
from malisp.types.closure import Closure
from malisp.types.nil import Nil
from malisp.types.symbol import Keyword, Symbol
from malisp.types.values import Atom, Error, Vector


def escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _join(items, readably: bool) -> str:
    return " ".join(pr_str(x, readably) for x in items)


def pr_str(value: LispValue, readably: bool = True) -> str:
    if value is Nil:
        return "nil"
    # bool before int: True is an int in Python
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return f'"{escape(value)}"' if readably else value
    if isinstance(value, (Symbol, Keyword)):
        return str(value)
    if isinstance(value, Vector):
        return f"[{_join(value, readably)}]"
    if isinstance(value, list):
        return f"({_join(value, readably)})"
    if isinstance(value, dict):
        pairs = (f"{pr_str(k, readably)} {pr_str(v, readably)}" for k, v in value.items())
        return "{" + " ".join(pairs) + "}"
    if isinstance(value, Closure):
        return "#<macro>" if value.is_macro else "#<function>"
    if isinstance(value, Atom):
        return f"(atom {pr_str(value.value, readably)})"
    if isinstance(value, Error):
        return f"Error: {pr_str(value.payload, readably)}"
    if isinstance(value, Package):
        return repr(value)
    if callable(value):
        name = getattr(value, "__name__", None) or getattr(getattr(value, "func", None), "__name__", "?")
        return f"#<builtin {name}>"
    return repr(value)
