"""Quasiquote expansion as a pure form-to-form rewrite.

    `(1 ~x ~@ys)  =>  (cons 1 (cons x (concat ys ())))

The result is an ordinary expression; the evaluator evaluates it for
`quasiquote` and returns it as-is for `quasiquoteexpand`.
"""

from __future__ import annotations

from malisp import SExpression
from malisp.errors import MalispArityError
from malisp.package_registry import SYSTEM_PACKAGE
from malisp.types.symbol import Symbol, is_named
from malisp.types.values import Vector

# Generated code refers to the system package's functions, so expansions work
# from packages that do not use it.
CONCAT = Symbol("concat", SYSTEM_PACKAGE)
CONS = Symbol("cons", SYSTEM_PACKAGE)
QUOTE = Symbol("quote", SYSTEM_PACKAGE)
VEC = Symbol("vec", SYSTEM_PACKAGE)


def _quasiquote_list(items: list) -> SExpression:
    if not items:
        return []

    head = items[0]
    if is_named(head, "unquote"):
        if len(items) != 2:
            raise MalispArityError("'unquote' expects exactly one argument")
        return items[1]

    if isinstance(head, list) and not isinstance(head, Vector) and head and is_named(head[0], "splice-unquote"):
        if len(head) != 2:
            raise MalispArityError("'splice-unquote' expects exactly one argument")
        return [CONCAT, head[1], _quasiquote_list(items[1:])]

    return [CONS, quasiquote(head), _quasiquote_list(items[1:])]


def quasiquote(form: SExpression) -> SExpression:
    if isinstance(form, Vector):
        if form and is_named(form[0], "unquote"):
            return [QUOTE, form]
        return [VEC, _quasiquote_list(list(form))]
    if isinstance(form, list):
        return _quasiquote_list(form)
    if isinstance(form, (dict, Symbol)):
        return [QUOTE, form]
    return form
