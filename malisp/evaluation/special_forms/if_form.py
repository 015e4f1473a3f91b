from malisp import EvaluatorFn
from malisp import SExpression, LispValue
from malisp.errors import MalispArityError
from malisp.types.environment import Environment
from malisp.types.nil import Nil, is_truthy
from malisp.types.tail_call import TailCall


def if_form(
    tail: list[SExpression],
    env: Environment,
    ctx,
    evaluate_fn: EvaluatorFn,
) -> LispValue:
    if len(tail) not in (2, 3):
        raise MalispArityError("if requires a condition, a then-expression and an optional else-expression")

    cond = evaluate_fn(tail[0], env, ctx)
    # Lisp truthiness: anything but nil and false is true
    if is_truthy(cond):
        return TailCall(tail[1], env)
    elif len(tail) > 2:
        return TailCall(tail[2], env)
    else:
        return Nil
