from malisp import SExpression
from malisp.types.environment import Environment


class TailCall:
    """Returned by special forms whose result is another evaluation in tail position.

    The trampoline in evaluate0 replaces its current (expr, env) pair with this
    one and continues looping instead of recursing.
    """

    __slots__ = ("expr", "env")

    def __init__(self, expr: SExpression, env: Environment):
        self.expr = expr
        self.env = env
