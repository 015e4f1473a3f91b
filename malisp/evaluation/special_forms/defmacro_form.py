"""Special form: defmacro!.

Evaluates a closure-valued expression and binds its macro copy.

    (defmacro! unless (fn* (pred a b) `(if ~pred ~b ~a)))
"""

from __future__ import annotations

from malisp import EvaluatorFn, SExpression, LispValue
from malisp.errors import MalispArityError, MalispInvalidSymbol
from malisp.types.closure import promote_to_macro
from malisp.types.environment import Environment
from malisp.types.symbol import Symbol


def defmacro_form(
    tail: list[SExpression],
    env: Environment,
    ctx,
    evaluate_fn: EvaluatorFn,
) -> LispValue:
    if len(tail) != 2:
        raise MalispArityError("defmacro! requires a name and a closure expression")

    macro_name, val_expr = tail
    if not isinstance(macro_name, Symbol):
        raise MalispInvalidSymbol(f"Macro name must be a Symbol, got {macro_name!r}")

    macro = promote_to_macro(evaluate_fn(val_expr, env, ctx))
    env.set(macro_name, macro)
    return macro
