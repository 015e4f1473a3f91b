"""Special forms that expose the macro expander to Lisp code.

macroexpand-1: expand a single step at the head position if it is a macro.
macroexpand: repeatedly expand the head position to a fixpoint.

Both take their argument unevaluated and return the expansion without
evaluating it.

    (defmacro! unless (fn* (p a b) `(if ~p ~b ~a)))
    (macroexpand (unless x 1 2))   ; => (if x 2 1)
"""

from malisp import SExpression, EvaluatorFn
from malisp.errors import MalispArityError
from malisp.evaluation import macro_expander
from malisp.types.nil import Nil


def macroexpand1_form(tail: list[SExpression], env, ctx, evaluate_fn: EvaluatorFn):
    """(macroexpand-1 form): expand the head macro once and return the result."""
    if len(tail) != 1:
        raise MalispArityError("macroexpand-1 expects exactly 1 argument")
    return macro_expander.expand_1(tail[0], env, ctx, evaluate_fn)


def macroexpand_form(tail: list[SExpression], env, ctx, evaluate_fn: EvaluatorFn):
    """(macroexpand form): expand head macros until none remains."""
    if not tail:
        return Nil
    if len(tail) != 1:
        raise MalispArityError("macroexpand expects exactly 1 argument")
    return macro_expander.expand(tail[0], env, ctx, evaluate_fn)
