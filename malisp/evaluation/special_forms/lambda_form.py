from malisp import EvaluatorFn
from malisp import SExpression, LispValue
from malisp.errors import MalispSyntaxError
from malisp.types.closure import build_closure
from malisp.types.environment import Environment
from malisp.types.symbol import Symbol


def lambda_form(
    tail: list[SExpression],
    env: Environment,
    ctx,
    evaluate_fn: EvaluatorFn,
) -> LispValue:
    # (fn* (params) body...): several body forms are an implicit do.
    if len(tail) < 2:
        raise MalispSyntaxError("fn* requires a parameter list and a body")

    params = tail[0]
    body_forms = tail[1:]

    if len(body_forms) == 1:
        body = body_forms[0]
    else:
        body = [Symbol("do"), *body_forms]

    return build_closure(env, params, body)
