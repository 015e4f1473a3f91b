"""Built-in functions for the malisp runtime.

This module defines core arithmetic, comparison, sequence and map processing,
predicates, atoms, metadata, string/IO helpers and the application helpers exposed to
Lisp code. Every function has the primitive signature `fn(env, args)`;
functions that need the runtime context take it as a leading argument and
are bound with functools.partial in `core_namespace`.

nil is treated as the empty list by count, empty?, seq, first, rest, concat,
cons and conj; `=` never equates nil with ().
"""

from __future__ import annotations

import time
from functools import partial
from typing import TYPE_CHECKING, Any, Callable

from malisp import LispValue
from malisp.builtin.package_builtin import package_namespace
from malisp.errors import MalispArityError, MalispError, MalispThrow, MalispTypeError
from malisp.evaluation.apply import apply as apply_engine
from malisp.evaluation.evaluator import evaluate0
from malisp.package_registry import Package
from malisp.printer import pr_str
from malisp.reader.parser import read_str
from malisp.types.closure import Closure
from malisp.types.environment import Environment
from malisp.types.nil import Nil
from malisp.types.symbol import Keyword, Symbol
from malisp.types.values import Atom, MetaList, MetaMap, Vector

if TYPE_CHECKING:
    from malisp.runtime_context import RuntimeContext

Primitive = Callable[[Environment, list[LispValue]], LispValue]


def _expect(name: str, args: list[LispValue], count: int) -> None:
    if len(args) != count:
        raise MalispArityError(f"{name} requires exactly {count} argument{'s' if count != 1 else ''}, got {len(args)}")


def _is_number(x: Any) -> bool:
    return isinstance(x, int) and not isinstance(x, bool)


def _numbers(name: str, args: list[LispValue]) -> list[int]:
    for x in args:
        if not _is_number(x):
            raise MalispTypeError(f"All arguments to {name} must be numbers, got {pr_str(x)}")
    return args


def _as_list(name: str, x: LispValue) -> list[LispValue]:
    """Sequence argument as a plain list; nil is the empty list."""
    if x is Nil:
        return []
    if isinstance(x, list):
        return list(x)
    raise MalispTypeError(f"{name} expects a list or vector, got {pr_str(x)}")


def _is_list(x: Any) -> bool:
    return isinstance(x, list) and not isinstance(x, Vector)


def is_equal(a, b) -> bool:
    """Deep equality: lists and vectors compare element-wise, maps by key."""
    if a is b:
        return True
    if isinstance(a, list) and isinstance(b, list):
        if len(a) != len(b):
            return False
        return all(is_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, dict) and isinstance(b, dict):
        if a.keys() != b.keys():
            return False
        return all(is_equal(v, b[k]) for k, v in a.items())
    # True is an int in Python; (= true 1) must not hold
    if isinstance(a, bool) or isinstance(b, bool):
        return False
    if type(a) != type(b):
        return False
    return a == b


# -------------------------------
# Arithmetic
# -------------------------------
def add(env: Environment, args: list[LispValue]) -> LispValue:
    """Return the sum of all arguments; 0 for none."""
    return sum(_numbers("+", args))


def sub(env: Environment, args: list[LispValue]) -> LispValue:
    """Subtract all subsequent numbers from the first; unary negation for one arg."""
    if not args:
        raise MalispArityError("- requires at least 1 argument")
    first, *rest = _numbers("-", args)
    if not rest:
        return -first
    for x in rest:
        first -= x
    return first


def mul(env: Environment, args: list[LispValue]) -> LispValue:
    """Return the product of all arguments; 1 for none."""
    result = 1
    for x in _numbers("*", args):
        result *= x
    return result


def _truncating_div(n: int, d: int) -> int:
    if d == 0:
        raise MalispError("Division by zero")
    q = abs(n) // abs(d)
    return q if (n < 0) == (d < 0) else -q


def div(env: Environment, args: list[LispValue]) -> LispValue:
    """Integer division left-to-right, truncating toward zero."""
    if len(args) < 2:
        raise MalispArityError("/ requires at least 2 arguments")
    first, *rest = _numbers("/", args)
    for x in rest:
        first = _truncating_div(first, x)
    return first


def _comparison(name: str, op: Callable[[int, int], bool]) -> Primitive:
    def compare(env: Environment, args: list[LispValue]) -> bool:
        if len(args) < 2:
            raise MalispArityError(f"{name} requires at least 2 arguments")
        _numbers(name, args)
        return all(op(a, b) for a, b in zip(args, args[1:]))

    compare.__name__ = name
    return compare


lt = _comparison("<", lambda a, b: a < b)
lte = _comparison("<=", lambda a, b: a <= b)
gt = _comparison(">", lambda a, b: a > b)
gte = _comparison(">=", lambda a, b: a >= b)


def equals(env: Environment, args: list[LispValue]) -> bool:
    """True if all arguments are equal."""
    if not args:
        raise MalispArityError("= requires at least 1 argument")
    first = args[0]
    return all(is_equal(first, other) for other in args[1:])


# -------------------------------
# Sequences
# -------------------------------
def list_builtin(env: Environment, args: list[LispValue]) -> list[LispValue]:
    return list(args)


def is_list(env: Environment, args: list[LispValue]) -> bool:
    _expect("list?", args, 1)
    return _is_list(args[0])


def is_empty(env: Environment, args: list[LispValue]) -> bool:
    _expect("empty?", args, 1)
    x = args[0]
    if x is Nil:
        return True
    if isinstance(x, (list, str, dict)):
        return len(x) == 0
    raise MalispTypeError(f"empty? expects a sequence, got {pr_str(x)}")


def count(env: Environment, args: list[LispValue]) -> int:
    _expect("count", args, 1)
    x = args[0]
    if x is Nil:
        return 0
    if isinstance(x, (list, str, dict)):
        return len(x)
    raise MalispTypeError(f"count expects a sequence, got {pr_str(x)}")


def nth(env: Environment, args: list[LispValue]) -> LispValue:
    _expect("nth", args, 2)
    seq = _as_list("nth", args[0])
    index = args[1]
    if not _is_number(index):
        raise MalispTypeError(f"nth: index must be a number, got {pr_str(index)}")
    if not 0 <= index < len(seq):
        raise MalispError(f"nth: index {index} out of range")
    return seq[index]


def first(env: Environment, args: list[LispValue]) -> LispValue:
    """First element; nil for nil or an empty sequence."""
    _expect("first", args, 1)
    seq = _as_list("first", args[0])
    return seq[0] if seq else Nil


def rest(env: Environment, args: list[LispValue]) -> list[LispValue]:
    """All but the first element as a list; () for nil or an empty sequence."""
    _expect("rest", args, 1)
    return _as_list("rest", args[0])[1:]


def cons(env: Environment, args: list[LispValue]) -> list[LispValue]:
    """Prepend head to a sequence, non-destructively; the result is a list."""
    _expect("cons", args, 2)
    head, tail = args
    return [head, *_as_list("cons", tail)]


def concat(env: Environment, args: list[LispValue]) -> list[LispValue]:
    """Concatenate sequences into a new list. nil is the empty list."""
    result = []
    for item in args:
        result.extend(_as_list("concat", item))
    return result


def vec(env: Environment, args: list[LispValue]) -> Vector:
    _expect("vec", args, 1)
    return Vector(_as_list("vec", args[0]))


def vector(env: Environment, args: list[LispValue]) -> Vector:
    return Vector(args)


def is_vector(env: Environment, args: list[LispValue]) -> bool:
    _expect("vector?", args, 1)
    return isinstance(args[0], Vector)


def is_sequential(env: Environment, args: list[LispValue]) -> bool:
    _expect("sequential?", args, 1)
    return isinstance(args[0], list)


def seq(env: Environment, args: list[LispValue]) -> LispValue:
    """nil for nil and empty collections; lists for vectors; characters for strings."""
    _expect("seq", args, 1)
    x = args[0]
    if x is Nil:
        return Nil
    if isinstance(x, (list, str)):
        return list(x) if x else Nil
    raise MalispTypeError(f"seq expects a list, vector or string, got {pr_str(x)}")


def conj(env: Environment, args: list[LispValue]) -> LispValue:
    """Add elements the collection's natural way: lists at the front, vectors at the end."""
    if not args:
        raise MalispArityError("conj requires a collection")
    coll, *items = args
    if isinstance(coll, Vector):
        return Vector([*coll, *items])
    return [*reversed(items), *_as_list("conj", coll)]


# -------------------------------
# Maps
# -------------------------------
def _is_key(x: Any) -> bool:
    return isinstance(x, (str, Symbol, Keyword))


def _check_key(key: LispValue) -> LispValue:
    if not _is_key(key):
        raise MalispTypeError(f"Map keys must be strings, symbols or keywords, got {pr_str(key)}")
    return key


def _pairs(name: str, args: list[LispValue]) -> dict:
    if len(args) % 2 != 0:
        raise MalispArityError(f"{name} requires an even number of key/value arguments")
    return {_check_key(k): v for k, v in zip(args[::2], args[1::2])}


def _as_map(name: str, x: LispValue) -> dict:
    if isinstance(x, dict):
        return x
    raise MalispTypeError(f"{name} expects a map, got {pr_str(x)}")


def hash_map(env: Environment, args: list[LispValue]) -> dict:
    return _pairs("hash-map", args)


def assoc(env: Environment, args: list[LispValue]) -> dict:
    if not args:
        raise MalispArityError("assoc requires a map")
    m = _as_map("assoc", args[0])
    return {**m, **_pairs("assoc", args[1:])}


def dissoc(env: Environment, args: list[LispValue]) -> dict:
    if not args:
        raise MalispArityError("dissoc requires a map")
    m = _as_map("dissoc", args[0])
    removed = args[1:]
    return {k: v for k, v in m.items() if k not in removed}


def get(env: Environment, args: list[LispValue]) -> LispValue:
    _expect("get", args, 2)
    m, key = args
    if m is Nil:
        return Nil
    m = _as_map("get", m)
    return m.get(key, Nil) if _is_key(key) else Nil


def contains(env: Environment, args: list[LispValue]) -> bool:
    _expect("contains?", args, 2)
    m, key = args
    return _is_key(key) and key in _as_map("contains?", m)


def keys(env: Environment, args: list[LispValue]) -> list[LispValue]:
    _expect("keys", args, 1)
    return list(_as_map("keys", args[0]).keys())


def vals(env: Environment, args: list[LispValue]) -> list[LispValue]:
    _expect("vals", args, 1)
    return list(_as_map("vals", args[0]).values())


# -------------------------------
# Predicates and constructors
# -------------------------------
def _predicate(name: str, test: Callable[[Any], bool]) -> Primitive:
    def predicate(env: Environment, args: list[LispValue]) -> bool:
        _expect(name, args, 1)
        return test(args[0])

    predicate.__name__ = name
    return predicate


def _is_fn(x: Any) -> bool:
    if isinstance(x, Closure):
        return not x.is_macro
    return callable(x) and not isinstance(x, type)


PREDICATES: dict[str, Primitive] = {
    name: _predicate(name, test)
    for name, test in {
        "nil?": lambda x: x is Nil,
        "true?": lambda x: x is True,
        "false?": lambda x: x is False,
        "symbol?": lambda x: isinstance(x, Symbol),
        "keyword?": lambda x: isinstance(x, Keyword),
        "string?": lambda x: isinstance(x, str),
        "number?": _is_number,
        "fn?": _is_fn,
        "macro?": lambda x: isinstance(x, Closure) and x.is_macro,
        "atom?": lambda x: isinstance(x, Atom),
        "map?": lambda x: isinstance(x, dict),
        "package?": lambda x: isinstance(x, Package),
    }.items()
}


# -------------------------------
# Metadata
# -------------------------------
def _accepts_meta(x: Any) -> bool:
    return isinstance(x, (list, dict, Closure)) or _is_fn(x)


def meta(env: Environment, args: list[LispValue]) -> LispValue:
    """(meta value): the metadata attached by with-meta, or nil."""
    _expect("meta", args, 1)
    x = args[0]
    if not _accepts_meta(x):
        raise MalispTypeError(f"meta expects a collection or function, got {pr_str(x)}")
    return getattr(x, "meta", Nil)


def with_meta(env: Environment, args: list[LispValue]) -> LispValue:
    """(with-meta value m): a copy of value carrying m; value itself is unchanged."""
    _expect("with-meta", args, 2)
    x, m = args
    if isinstance(x, Closure):
        copy = Closure(x.params, x.body, x.env, x.rest, x.is_macro)
    elif isinstance(x, Vector):
        copy = Vector(x)
    elif isinstance(x, list):
        copy = MetaList(x)
    elif isinstance(x, dict):
        copy = MetaMap(x)
    elif _is_fn(x):
        copy = partial(x)
    else:
        raise MalispTypeError(f"with-meta expects a collection or function, got {pr_str(x)}")
    copy.meta = m
    return copy


def symbol(ctx: RuntimeContext, env: Environment, args: list[LispValue]) -> Symbol:
    """(symbol "name"): the symbol called name, interned in the current package."""
    _expect("symbol", args, 1)
    name = args[0]
    if not isinstance(name, str):
        raise MalispTypeError(f"symbol expects a string, got {pr_str(name)}")
    return ctx.read_symbol(name)


def keyword(env: Environment, args: list[LispValue]) -> Keyword:
    _expect("keyword", args, 1)
    x = args[0]
    if isinstance(x, Keyword):
        return x
    if isinstance(x, str):
        return Keyword(x)
    raise MalispTypeError(f"keyword expects a string, got {pr_str(x)}")


# -------------------------------
# Atoms
# -------------------------------
def _as_atom(name: str, x: LispValue) -> Atom:
    if not isinstance(x, Atom):
        raise MalispTypeError(f"{name} expects an atom, got {pr_str(x)}")
    return x


def atom(env: Environment, args: list[LispValue]) -> Atom:
    _expect("atom", args, 1)
    return Atom(args[0])


def deref(env: Environment, args: list[LispValue]) -> LispValue:
    _expect("deref", args, 1)
    return _as_atom("deref", args[0]).value


def reset(env: Environment, args: list[LispValue]) -> LispValue:
    _expect("reset!", args, 2)
    cell = _as_atom("reset!", args[0])
    cell.value = args[1]
    return cell.value


def swap(ctx: RuntimeContext, env: Environment, args: list[LispValue]) -> LispValue:
    """(swap! atom f args...): set atom to (f @atom args...) and return it."""
    if len(args) < 2:
        raise MalispArityError("swap! requires an atom and a function")
    cell = _as_atom("swap!", args[0])
    cell.value = apply_engine(args[1], [cell.value, *args[2:]], env, ctx)
    return cell.value


# -------------------------------
# Strings and IO
# -------------------------------
def pr_str_builtin(env: Environment, args: list[LispValue]) -> str:
    return " ".join(pr_str(a, True) for a in args)


def str_builtin(env: Environment, args: list[LispValue]) -> str:
    return "".join(pr_str(a, False) for a in args)


def prn(env: Environment, args: list[LispValue]) -> LispValue:
    """Print readable representations of args separated by spaces; returns nil."""
    print(" ".join(pr_str(a, True) for a in args))
    return Nil


def println(env: Environment, args: list[LispValue]) -> LispValue:
    """Print args as raw text separated by spaces; returns nil."""
    print(" ".join(pr_str(a, False) for a in args))
    return Nil


def read_string(ctx: RuntimeContext, env: Environment, args: list[LispValue]) -> LispValue:
    _expect("read-string", args, 1)
    source = args[0]
    if not isinstance(source, str):
        raise MalispTypeError(f"read-string expects a string, got {pr_str(source)}")
    return read_str(source, ctx.read_symbol)


def slurp(env: Environment, args: list[LispValue]) -> str:
    _expect("slurp", args, 1)
    path = args[0]
    if not isinstance(path, str):
        raise MalispTypeError(f"slurp expects a file name, got {pr_str(path)}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as ex:
        raise MalispError(f"slurp: cannot read {path!r}: {ex.strerror}") from ex


def time_ms(env: Environment, args: list[LispValue]) -> int:
    return int(time.time() * 1000)


# -------------------------------
# Control
# -------------------------------
def throw(env: Environment, args: list[LispValue]) -> LispValue:
    """(throw value): raise value, catchable by try*/catch*."""
    _expect("throw", args, 1)
    raise MalispThrow(args[0])


def apply(ctx: RuntimeContext, env: Environment, args: list[LispValue]) -> LispValue:
    """(apply f a b ... seq): call f with a, b, ... followed by the elements of seq."""
    if len(args) < 2:
        raise MalispArityError("apply requires a function and an argument list")
    fn, *fixed, last = args
    return apply_engine(fn, [*fixed, *_as_list("apply", last)], env, ctx)


def map_builtin(ctx: RuntimeContext, env: Environment, args: list[LispValue]) -> list[LispValue]:
    """(map f seq): the list of (f x) for each x in seq."""
    _expect("map", args, 2)
    fn, items = args
    return [apply_engine(fn, [x], env, ctx) for x in _as_list("map", items)]


def eval_builtin(ctx: RuntimeContext, env: Environment, args: list[LispValue]) -> LispValue:
    """(eval form): evaluate form in the current package's environment."""
    _expect("eval", args, 1)
    package = ctx.current_package
    return evaluate0(args[0], package.env if package is not None else ctx.root, ctx)


def core_namespace(ctx: RuntimeContext) -> dict[str, Primitive]:
    """All primitive functions by name, context-dependent ones bound to ctx."""
    namespace: dict[str, Primitive] = {
        "+": add,
        "-": sub,
        "*": mul,
        "/": div,
        "<": lt,
        "<=": lte,
        ">": gt,
        ">=": gte,
        "=": equals,
        "list": list_builtin,
        "list?": is_list,
        "empty?": is_empty,
        "count": count,
        "nth": nth,
        "first": first,
        "rest": rest,
        "cons": cons,
        "concat": concat,
        "vec": vec,
        "vector": vector,
        "vector?": is_vector,
        "sequential?": is_sequential,
        "seq": seq,
        "conj": conj,
        "hash-map": hash_map,
        "assoc": assoc,
        "dissoc": dissoc,
        "get": get,
        "contains?": contains,
        "keys": keys,
        "vals": vals,
        "symbol": partial(symbol, ctx),
        "keyword": keyword,
        "atom": atom,
        "deref": deref,
        "reset!": reset,
        "meta": meta,
        "with-meta": with_meta,
        "swap!": partial(swap, ctx),
        "pr-str": pr_str_builtin,
        "str": str_builtin,
        "prn": prn,
        "println": println,
        "read-string": partial(read_string, ctx),
        "slurp": slurp,
        "time-ms": time_ms,
        "throw": throw,
        "apply": partial(apply, ctx),
        "map": partial(map_builtin, ctx),
        "eval": partial(eval_builtin, ctx),
    }
    namespace.update(PREDICATES)
    namespace.update(package_namespace(ctx))
    return namespace
