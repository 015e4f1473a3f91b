"""Runtime environment for malisp.

The Environment stores bindings of symbol names to evaluated Lisp values and
supports nested scopes via an `outer` link. Package-level resolution lives in
the PackageRegistry; an Environment only knows its own chain.
"""

from __future__ import annotations

from io import StringIO
from typing import Iterable, Optional

from malisp import LispValue
from malisp.errors import MalispInvalidSymbol, MalispUnboundSymbol
from malisp.types.symbol import Symbol


def _key(name: Symbol | str) -> str:
    if isinstance(name, Symbol):
        return name.name
    if isinstance(name, str):
        return name
    raise MalispInvalidSymbol(f"Cannot bind {name!r}: not a symbol")


class Environment:
    """Hierarchical mapping from symbol names to Lisp values."""

    __slots__ = ("vars", "outer")

    def __init__(
        self,
        outer: Optional[Environment] = None,
        binds: Iterable[Symbol] = (),
        exprs: Iterable[LispValue] = (),
        rest: Optional[Symbol] = None,
    ):
        self.vars: dict[str, LispValue] = {}
        self.outer: Environment | None = outer

        # Positional binding; the rest parameter collects whatever is left over.
        args = list(exprs)
        binds = list(binds)
        for sym, value in zip(binds, args):
            self.define(sym, value)
        if rest is not None:
            self.define(rest, args[len(binds):])

    def define(self, name: Symbol | str, value: LispValue) -> None:
        """Bind `name` to `value` in this frame."""
        self.vars[_key(name)] = value

    def find(self, name: Symbol | str) -> Optional[Environment]:
        """Find the nearest environment in the chain that contains `name`."""
        key = _key(name)
        env: Optional[Environment] = self
        while env is not None:
            if key in env.vars:
                return env
            env = env.outer
        return None

    def set(self, name: Symbol | str, value: LispValue) -> None:
        """Update the nearest existing binding for `name`, or create one here.

        A new binding always goes into this (innermost) frame, never into an
        ancestor.
        """
        env = self.find(name)
        if env is None:
            env = self
        env.vars[_key(name)] = value

    def lookup(self, name: Symbol | str) -> LispValue:
        """Look up the value bound to `name` along the chain.

        Raises MalispUnboundSymbol if not found.
        """
        env = self.find(name)
        if env is None:
            raise MalispUnboundSymbol(f"'{_key(name)}' not found")
        return env.vars[_key(name)]

    def root(self) -> Environment:
        env = self
        while env.outer is not None:
            env = env.outer
        return env

    def update(self, mapping: dict[Symbol | str, LispValue]) -> None:
        """Bulk-define a mapping of name -> value in the current frame."""
        for k, v in mapping.items():
            self.define(k, v)

    def __contains__(self, name: Symbol | str) -> bool:
        return self.find(name) is not None

    def _write_vars(self, buffer: StringIO) -> None:
        """Write this frame's variables into the buffer in a compact form."""
        buffer.write("{")
        first = True
        for k, v in self.vars.items():
            if not first:
                buffer.write(", ")
            buffer.write(f"{k}: {v!r}")
            first = False
        buffer.write("}")

    def __str__(self) -> str:
        """Human-readable single-frame view with an indicator for parent."""
        with StringIO() as buffer:
            self._write_vars(buffer)
            if self.outer is not None:
                buffer.write(" -> ...")  # indicate parent exists
            return buffer.getvalue()

    def __repr__(self) -> str:
        """Detailed chain representation for debugging purposes."""
        chain = []
        env: Optional[Environment] = self
        while env is not None:
            with StringIO() as env_buf:
                # Package environments can hold hundreds of primitives
                if len(env.vars) > 16:
                    env_buf.write(f"{{<{len(env.vars)} bindings>}}")
                else:
                    env._write_vars(env_buf)
                chain.append(env_buf.getvalue())
            env = env.outer
        return "<Environment chain: " + " -> ".join(chain) + ">"
