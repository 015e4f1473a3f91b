"""Core evaluator and trampoline for the malisp interpreter.

Implements macro expansion, special-form dispatch and tail-call-safe
application. Every tail position reassigns the loop-local (expr, env) pair
instead of recursing, so tail-recursive Lisp programs run in constant Python
stack depth.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from malisp import SExpression, LispValue
from malisp.errors import MalispError, MalispThrow, MalispTypeError
from malisp.evaluation import macro_expander
from malisp.evaluation.special_forms import SPECIAL_FORMS
from malisp.types.closure import Closure
from malisp.types.environment import Environment
from malisp.types.symbol import Symbol
from malisp.types.tail_call import TailCall
from malisp.types.values import Error, Vector

if TYPE_CHECKING:
    from malisp.runtime_context import RuntimeContext


def evaluate(
    expr: SExpression, env: Environment, ctx: Optional[RuntimeContext] = None
) -> LispValue:
    """Evaluate `expr` and return its value, or an Error value on failure.

    This is the entry point for hosts: Lisp errors never escape as exceptions.
    """
    try:
        return evaluate0(expr, env, ctx)
    except MalispError as ex:
        return Error(ex.payload)
    except RecursionError:
        return Error("maximum recursion depth exceeded")


def eval_ast(expr: SExpression, env: Environment, ctx: Optional[RuntimeContext]) -> LispValue:
    """Structural evaluation: resolve symbols, evaluate collection elements."""
    if isinstance(expr, Symbol):
        return macro_expander.resolve(expr, env, ctx)
    if isinstance(expr, Vector):
        return Vector(evaluate0(e, env, ctx) for e in expr)
    if isinstance(expr, list):
        return [evaluate0(e, env, ctx) for e in expr]
    if isinstance(expr, dict):
        return {k: evaluate0(v, env, ctx) for k, v in expr.items()}
    return expr


def evaluate0(
    expr: SExpression, env: Environment, ctx: Optional[RuntimeContext] = None
) -> LispValue:
    """
    Trampoline evaluator. Raises MalispError subclasses on failure; special
    forms and primitives call this one so errors unwind to the nearest try*.
    """
    while True:
        if isinstance(expr, Error):
            return expr

        expr = macro_expander.expand(expr, env, ctx, evaluate0)

        if not isinstance(expr, list) or isinstance(expr, Vector):
            return eval_ast(expr, env, ctx)

        if not expr:
            return expr

        head = expr[0]

        # --- Special forms handling ---
        if isinstance(head, Symbol) and head.name in SPECIAL_FORMS:
            result = SPECIAL_FORMS[head.name](expr[1:], env, ctx, evaluate0)
            if isinstance(result, TailCall):
                expr, env = result.expr, result.env
                continue
            return result

        # --- Application ---
        fn, *args = eval_ast(expr, env, ctx)

        if isinstance(fn, Closure):
            env = fn.extend_env(args)
            expr = fn.body
            continue

        if callable(fn):
            result = fn(env, args)
            if isinstance(result, Error):
                raise MalispThrow(result.payload)
            return result

        raise MalispTypeError(f"Not callable: {fn!r}")
