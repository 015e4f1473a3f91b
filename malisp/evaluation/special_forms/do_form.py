from malisp import EvaluatorFn
from malisp import SExpression, LispValue
from malisp.types.environment import Environment
from malisp.types.nil import Nil
from malisp.types.tail_call import TailCall


def do_form(
    tail: list[SExpression],
    env: Environment,
    ctx,
    evaluate_fn: EvaluatorFn,
) -> LispValue:
    if not tail:
        return Nil
    for e in tail[:-1]:
        evaluate_fn(e, env, ctx)
    return TailCall(tail[-1], env)
