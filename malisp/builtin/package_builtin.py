"""Package functions exposed to Lisp code.

Thin wrappers over the PackageRegistry owned by the runtime context. Package
designators may be strings, symbols, keywords or packages. Functions taking an
optional package argument default to the current package.

    (make-package "geometry" "system")
    (in-package "geometry")
    (def! area (fn* (w h) (* w h)))
    (export 'area)
    (in-package "user")
    (use-package "geometry")
    (area 2 3)                      ; => 6
"""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING

from malisp import LispValue
from malisp.errors import MalispArityError, MalispPackageError, MalispTypeError
from malisp.package_registry import Package, package_name
from malisp.types.environment import Environment
from malisp.types.nil import Nil
from malisp.types.symbol import Keyword, Symbol

if TYPE_CHECKING:
    from malisp.runtime_context import RuntimeContext


def _target_package(ctx: RuntimeContext, name: str, args: list[LispValue]) -> Package:
    """The optional trailing package argument, else the current package."""
    if args:
        return ctx.registry.require(args[0])
    current = ctx.current_package
    if current is None:
        raise MalispPackageError(f"{name}: there is no current package")
    return current


def _symbol_name(name: str, x: LispValue) -> str:
    if isinstance(x, (Symbol, str)):
        return x.name if isinstance(x, Symbol) else x
    raise MalispTypeError(f"{name}: expected a symbol or string, got {x!r}")


def find_package(ctx: RuntimeContext, env: Environment, args: list[LispValue]) -> LispValue:
    if len(args) != 1:
        raise MalispArityError("find-package requires exactly 1 argument")
    pkg = ctx.registry.find_package(args[0])
    return pkg if pkg is not None else Nil


def make_package(ctx: RuntimeContext, env: Environment, args: list[LispValue]) -> Package:
    """(make-package name used...)"""
    if not args:
        raise MalispArityError("make-package requires a package name")
    name, *used = args
    return ctx.registry.make_package(name, used, parent=ctx.root)


def use_package(ctx: RuntimeContext, env: Environment, args: list[LispValue]) -> bool:
    """(use-package target [package])"""
    if len(args) not in (1, 2):
        raise MalispArityError("use-package requires a package to use and an optional user package")
    target, *rest = args
    ctx.registry.use_package(_target_package(ctx, "use-package", rest), target)
    return True


def in_package(ctx: RuntimeContext, env: Environment, args: list[LispValue]) -> Package:
    if len(args) != 1:
        raise MalispArityError("in-package requires exactly 1 argument")
    ctx.current_package = args[0]
    return ctx.current_package


def intern(ctx: RuntimeContext, env: Environment, args: list[LispValue]) -> Symbol:
    """(intern name [package])"""
    if len(args) not in (1, 2):
        raise MalispArityError("intern requires a name and an optional package")
    name, *rest = args
    sym, _ = ctx.registry.intern(_target_package(ctx, "intern", rest), _symbol_name("intern", name))
    return sym


def find_symbol(ctx: RuntimeContext, env: Environment, args: list[LispValue]) -> LispValue:
    """(find-symbol name [package]) => (symbol :status), or nil when not accessible."""
    if len(args) not in (1, 2):
        raise MalispArityError("find-symbol requires a name and an optional package")
    name, *rest = args
    sym, status = _target_package(ctx, "find-symbol", rest).find_symbol(_symbol_name("find-symbol", name))
    if sym is None:
        return Nil
    return [sym, Keyword(status)]


def export(ctx: RuntimeContext, env: Environment, args: list[LispValue]) -> bool:
    """(export symbols [package]); symbols is one symbol or a list of them."""
    if len(args) not in (1, 2):
        raise MalispArityError("export requires symbols and an optional package")
    symbols, *rest = args
    if not isinstance(symbols, list):
        symbols = [symbols]
    ctx.registry.export(_target_package(ctx, "export", rest), symbols)
    return True


def symbol_package(ctx: RuntimeContext, env: Environment, args: list[LispValue]) -> LispValue:
    if len(args) != 1:
        raise MalispArityError("symbol-package requires exactly 1 argument")
    sym = args[0]
    if not isinstance(sym, Symbol):
        raise MalispTypeError(f"symbol-package: expected a symbol, got {sym!r}")
    if sym.package is None:
        return Nil
    pkg = ctx.registry.find_package(sym.package)
    return pkg if pkg is not None else Nil


def package_name_builtin(ctx: RuntimeContext, env: Environment, args: list[LispValue]) -> str:
    if len(args) != 1:
        raise MalispArityError("package-name requires exactly 1 argument")
    return package_name(ctx.registry.require(args[0]))


def list_all_packages(ctx: RuntimeContext, env: Environment, args: list[LispValue]) -> list[Package]:
    return list(ctx.registry.all().values())


def package_namespace(ctx: RuntimeContext) -> dict:
    return {
        name: partial(fn, ctx)
        for name, fn in {
            "find-package": find_package,
            "make-package": make_package,
            "use-package": use_package,
            "in-package": in_package,
            "intern": intern,
            "find-symbol": find_symbol,
            "export": export,
            "symbol-package": symbol_package,
            "package-name": package_name_builtin,
            "list-all-packages": list_all_packages,
        }.items()
    }
