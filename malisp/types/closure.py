"""Closure representation and the closure/macro builders for malisp."""

from __future__ import annotations

from io import StringIO
from typing import Optional

from malisp import SExpression, LispValue
from malisp.errors import MalispArityError, MalispSyntaxError, MalispTypeError
from malisp.types.environment import Environment
from malisp.types.nil import Nil
from malisp.types.symbol import Symbol, is_named

REST_MARKER = "&"


class Closure:
    """A first-class function: parameters, body and the captured defining env."""

    __slots__ = ("params", "rest", "body", "env", "is_macro", "meta")

    def __init__(
        self,
        params: list[Symbol],
        body: SExpression,
        env: Environment,
        rest: Optional[Symbol] = None,
        is_macro: bool = False,
        meta: LispValue = Nil,
    ):
        self.params: list[Symbol] = params
        self.rest: Optional[Symbol] = rest
        self.body: SExpression = body
        # Captured, not copied: later mutations of the defining scope stay visible
        self.env: Environment = env
        self.is_macro: bool = is_macro
        self.meta: LispValue = meta

    def __str__(self) -> str:
        with StringIO() as buffer:
            buffer.write("(macro* (" if self.is_macro else "(fn* (")
            names = [p.name for p in self.params]
            if self.rest is not None:
                names += [REST_MARKER, self.rest.name]
            buffer.write(" ".join(names))
            buffer.write(") ...)")
            return buffer.getvalue()

    def __repr__(self) -> str:
        return str(self)

    def extend_env(self, args: list[LispValue]) -> Environment:
        """Check arity and bind `args` in a fresh frame under the captured env."""
        required = len(self.params)
        if len(args) < required:
            raise MalispArityError(
                f"Expected {required} arguments, but got {len(args)}"
            )
        if len(args) > required and self.rest is None:
            raise MalispArityError(
                f"Too many arguments: expected {required}, but got {len(args)}"
            )
        return Environment(self.env, self.params, args, self.rest)


def build_closure(env: Environment, param_form: SExpression, body: SExpression) -> Closure:
    """Build a Closure from a parameter list such as (a b & more)."""
    if not isinstance(param_form, list):
        raise MalispSyntaxError(f"fn*: expected a parameter list, got {param_form!r}")

    params: list[Symbol] = []
    rest: Optional[Symbol] = None
    for i, p in enumerate(param_form):
        if not isinstance(p, Symbol):
            raise MalispSyntaxError(f"fn*: parameters must be symbols, got {p!r}")
        if p.name == REST_MARKER:
            following = param_form[i + 1:]
            if len(following) != 1:
                raise MalispSyntaxError(
                    "fn*: '&' must be followed by exactly one symbol receiving the rest of the arguments"
                )
            if not isinstance(following[0], Symbol) or is_named(following[0], REST_MARKER):
                raise MalispSyntaxError(f"fn*: invalid rest parameter {following[0]!r}")
            rest = following[0]
            break
        params.append(p)

    return Closure(params, body, env, rest)


def promote_to_macro(value: LispValue) -> Closure:
    """Return a shallow copy of `value` marked as a macro."""
    if not isinstance(value, Closure):
        raise MalispTypeError(f"defmacro!: expected a closure, got {value!r}")
    return Closure(value.params, value.body, value.env, value.rest, is_macro=True)
