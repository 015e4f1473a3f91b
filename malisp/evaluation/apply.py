"""Function application outside the trampoline.

Used by primitives that call back into Lisp (apply, map, swap!). The
evaluator itself applies closures inline so that calls in tail position do
not grow the Python stack; this helper is for non-tail calls only.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional

from malisp import LispValue
from malisp.errors import MalispThrow, MalispTypeError
from malisp.evaluation.evaluator import evaluate0
from malisp.types.closure import Closure
from malisp.types.environment import Environment
from malisp.types.values import Error

if TYPE_CHECKING:
    from malisp.runtime_context import RuntimeContext


def apply(
    head: Closure | Callable[[Environment, list[LispValue]], LispValue] | object,
    args: list[LispValue],
    env: Environment,
    ctx: Optional[RuntimeContext] = None,
) -> LispValue:
    """Apply either a Closure or a Python callable to evaluated arguments.

    - Closures get an arity-checked frame and their body is evaluated in it.
    - Python callables (primitives) are invoked with the caller env and args;
      an Error value they return is raised as a throw.
    - Otherwise, raise a type error.
    """
    if isinstance(head, Closure):
        return evaluate0(head.body, head.extend_env(list(args)), ctx)
    elif callable(head):
        result = head(env, list(args))
        if isinstance(result, Error):
            raise MalispThrow(result.payload)
        return result
    else:
        raise MalispTypeError(f"Cannot apply non-function {head!r}")
