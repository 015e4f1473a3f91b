from malisp import EvaluatorFn
from malisp import SExpression, LispValue
from malisp.errors import MalispSyntaxError
from malisp.types.environment import Environment
from malisp.types.nil import Nil
from malisp.types.symbol import Symbol
from malisp.types.tail_call import TailCall


def let_form(
    tail: list[SExpression],
    env: Environment,
    ctx,
    evaluate_fn: EvaluatorFn,
) -> LispValue:
    """
    (let* (name1 value1 name2 value2 ...) body...)
    Bindings are evaluated in order in the new frame, so later ones see
    earlier ones. The body is evaluated in tail position.
    """
    if not tail:
        raise MalispSyntaxError("let* requires a binding list")

    bindings, *body = tail
    if not isinstance(bindings, list):
        raise MalispSyntaxError(f"let*: expected a binding list, got {bindings!r}")
    if len(bindings) % 2 != 0:
        raise MalispSyntaxError("let*: binding list must have an even number of forms")

    new_env = Environment(outer=env)
    for name, val_expr in zip(bindings[::2], bindings[1::2]):
        if not isinstance(name, Symbol):
            raise MalispSyntaxError(f"let*: cannot bind {name!r}, not a symbol")
        new_env.define(name, evaluate_fn(val_expr, new_env, ctx))

    if not body:
        return Nil
    if len(body) == 1:
        return TailCall(body[0], new_env)
    return TailCall([Symbol("do"), *body], new_env)
