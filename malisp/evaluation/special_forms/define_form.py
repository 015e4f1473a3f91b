from malisp import EvaluatorFn
from malisp import SExpression, LispValue
from malisp.errors import MalispArityError, MalispInvalidSymbol, MalispTypeError
from malisp.package_registry import Package
from malisp.runtime_context import PACKAGE_VARIABLE
from malisp.types.environment import Environment
from malisp.types.symbol import Symbol


def define_form(
    tail: list[SExpression],
    env: Environment,
    ctx,
    evaluate_fn: EvaluatorFn,
) -> LispValue:
    """
    (def! name value)
    Updates the nearest existing binding of name, else binds it in env. The
    value is returned; if its evaluation fails nothing is bound.
    """
    if len(tail) != 2:
        raise MalispArityError("def! requires exactly 2 arguments")

    name, val_expr = tail
    if not isinstance(name, Symbol):
        raise MalispInvalidSymbol(f"def!: expected a symbol, got {name!r}")
    value = evaluate_fn(val_expr, env, ctx)
    if ctx is not None and name.name == PACKAGE_VARIABLE and env.find(name) is ctx.root:
        # The root binding is the current package and must stay one
        if not isinstance(value, Package):
            raise MalispTypeError(f"def!: {PACKAGE_VARIABLE} must be a package, got {value!r}")
        ctx.current_package = value
        return value
    env.set(name, value)
    return value
