"""Special form: try*/catch*.

    (try* expr)
    (try* expr (catch* name handler))

Any error raised while evaluating expr, including a `throw`, is caught and
its payload bound to name in a new frame; handler is then evaluated in tail
position. Without a catch* clause errors propagate unchanged.
"""

from malisp import SExpression, LispValue, EvaluatorFn
from malisp.errors import MalispError, MalispSyntaxError
from malisp.types.environment import Environment
from malisp.types.symbol import Symbol, is_named
from malisp.types.tail_call import TailCall
from malisp.types.values import Error, Vector

CATCH_MARKER = "catch*"


def _parse_catch_clause(clause: SExpression) -> tuple[Symbol, SExpression]:
    if not isinstance(clause, list) or isinstance(clause, Vector) or not clause:
        raise MalispSyntaxError(f"try*: expected a catch* clause, got {clause!r}")
    if not is_named(clause[0], CATCH_MARKER):
        raise MalispSyntaxError(f"try*: clause must start with catch*, got {clause[0]!r}")
    if len(clause) != 3:
        raise MalispSyntaxError("catch* requires a symbol and a handler expression")
    name = clause[1]
    if not isinstance(name, Symbol):
        raise MalispSyntaxError(f"catch*: expected a symbol, got {name!r}")
    return name, clause[2]


def try_catch_form(
    tail: list[SExpression],
    env: Environment,
    ctx,
    evaluate_fn: EvaluatorFn,
) -> LispValue:
    if len(tail) not in (1, 2):
        raise MalispSyntaxError("try* requires an expression and an optional catch* clause")

    if len(tail) == 1:
        return TailCall(tail[0], env)

    name, handler = _parse_catch_clause(tail[1])
    try:
        result = evaluate_fn(tail[0], env, ctx)
    except MalispError as ex:
        payload = ex.payload
    else:
        if not isinstance(result, Error):
            return result
        payload = result.payload

    catch_env = Environment(outer=env)
    catch_env.define(name, payload)
    return TailCall(handler, catch_env)
