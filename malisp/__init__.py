# Core type aliases for malisp's data model.
# Plain Python types (int, str, list, dict, bool) represent both code (forms)
# and runtime values; small classes in malisp.types cover the rest
# (Symbol, Keyword, Vector, Closure, Atom, Error).
#
# Naming guidance:
# - SExpression: use in reader/quasiquote/macro code to denote syntactic forms (code-as-data).
# - LispValue:  use in evaluator/runtime code to denote evaluated values.
# Both aliases resolve to `Any` and are interchangeable.

from typing import Any, Callable

# Runtime value alias
LispValue = Any
# Forms alias (code is data, so this is the same type)
SExpression = LispValue

# Evaluator function type: the raising evaluator passed into special forms
EvaluatorFn = Callable[..., LispValue]

__version__ = "0.3.0"
