"""Head-position macro expansion.

A macro is a Closure with `is_macro` set. Expanding a call binds the
*unevaluated* argument forms to the macro's parameters and evaluates its
body once; the result is the expansion, which is not evaluated here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from malisp import EvaluatorFn, LispValue, SExpression
from malisp.types.closure import Closure
from malisp.types.environment import Environment
from malisp.types.symbol import Symbol
from malisp.types.values import Vector

if TYPE_CHECKING:
    from malisp.runtime_context import RuntimeContext


def resolve(sym: Symbol, env: Environment, ctx: Optional[RuntimeContext]) -> LispValue:
    """Value of `sym`; without a context only the lexical chain is searched."""
    if ctx is None:
        return env.lookup(sym)
    return ctx.resolve(sym, env)


def macro_for(expr: SExpression, env: Environment, ctx: Optional[RuntimeContext]) -> Optional[Closure]:
    """The macro `expr` calls, if it is a list whose head symbol names one."""
    if not isinstance(expr, list) or isinstance(expr, Vector) or not expr:
        return None
    head = expr[0]
    if not isinstance(head, Symbol):
        return None
    if ctx is None:
        frame = env.find(head.name)
        value = frame.vars[head.name] if frame is not None else None
    else:
        value = ctx.find_value(head, env)
    if isinstance(value, Closure) and value.is_macro:
        return value
    return None


def expand_1(
    expr: SExpression, env: Environment, ctx: Optional[RuntimeContext], evaluate_fn: EvaluatorFn
) -> SExpression:
    """Expand the head macro once; any other form is returned unchanged."""
    macro = macro_for(expr, env, ctx)
    if macro is None:
        return expr
    return evaluate_fn(macro.body, macro.extend_env(list(expr[1:])), ctx)


def expand(
    expr: SExpression, env: Environment, ctx: Optional[RuntimeContext], evaluate_fn: EvaluatorFn
) -> SExpression:
    """Expand head macros until the head no longer names one.

    A macro that always expands to another call of itself never terminates.
    """
    macro = macro_for(expr, env, ctx)
    while macro is not None:
        expr = evaluate_fn(macro.body, macro.extend_env(list(expr[1:])), ctx)
        macro = macro_for(expr, env, ctx)
    return expr
