from malisp import SExpression, LispValue, EvaluatorFn
from malisp.errors import MalispArityError
from malisp.evaluation.quasiquote import quasiquote
from malisp.types.tail_call import TailCall


def quote_form(tail: list[SExpression], env, ctx, evaluate_fn: EvaluatorFn) -> LispValue:
    if len(tail) != 1:
        raise MalispArityError("quote expects exactly 1 argument")
    return tail[0]


def quasiquote_form(tail: list[SExpression], env, ctx, evaluate_fn: EvaluatorFn) -> LispValue:
    if len(tail) != 1:
        raise MalispArityError("quasiquote expects exactly 1 argument")
    # The rewritten form is evaluated by the trampoline
    return TailCall(quasiquote(tail[0]), env)


def quasiquoteexpand_form(tail: list[SExpression], env, ctx, evaluate_fn: EvaluatorFn) -> LispValue:
    """(quasiquoteexpand form): the rewrite quasiquote would evaluate, unevaluated."""
    if len(tail) != 1:
        raise MalispArityError("quasiquoteexpand expects exactly 1 argument")
    return quasiquote(tail[0])
