from __future__ import annotations

from typing import Iterator, Optional

from malisp import LispValue
from malisp.errors import MalispPackageError, MalispUnboundInPackageChain, MalispUnboundSymbol
from malisp.package_registry import EXTERNAL, Package, PackageRegistry
from malisp.types.environment import Environment
from malisp.types.nil import Nil
from malisp.types.symbol import Symbol

PACKAGE_VARIABLE = "*package*"


class RuntimeContext:
    """Owns the package registry and the root environment.

    One context per interpreter; it is threaded explicitly through the
    evaluator instead of living in module-level globals. The current package
    is an ordinary variable, `*package*`, bound in the root environment.
    """

    def __init__(self):
        self.registry = PackageRegistry()
        self.root = Environment()
        self.root.define(PACKAGE_VARIABLE, Nil)

    @property
    def current_package(self) -> Optional[Package]:
        value = self.root.vars.get(PACKAGE_VARIABLE, Nil)
        return value if isinstance(value, Package) else None

    @current_package.setter
    def current_package(self, designator) -> None:
        self.root.define(PACKAGE_VARIABLE, self.registry.require(designator))

    def _resolution_order(self, sym: Symbol) -> Iterator[Package]:
        current = self.current_package
        if current is not None:
            yield current
        if sym.package is not None:
            home = self.registry.find_package(sym.package)
            if home is not None and home is not current:
                yield home

    def resolve(self, sym: Symbol, env: Environment) -> LispValue:
        """Value of `sym`: lexical chain first, then the package chains.

        Packages are tried in order: the current package, then the symbol's
        home package when that is a different one.
        """
        frame = env.find(sym.name)
        if frame is not None:
            return frame.vars[sym.name]
        error: Optional[MalispUnboundInPackageChain] = None
        for pkg in self._resolution_order(sym):
            try:
                return self.registry.lookup_in_package(pkg, sym)
            except MalispUnboundInPackageChain as ex:
                error = error or ex
        if error is not None:
            raise error
        raise MalispUnboundSymbol(f"'{sym.name}' not found")

    def find_value(self, sym: Symbol, env: Environment, default: LispValue = None) -> LispValue:
        """Value of `sym` by the same search as resolve, or `default` when unbound."""
        frame = env.find(sym.name)
        if frame is not None:
            return frame.vars[sym.name]
        for pkg in self._resolution_order(sym):
            value = self.registry.find_value(pkg, sym.name, default)
            if value is not default:
                return value
        return default

    def read_symbol(self, name: str, package: Optional[str] = None, internal: bool = False) -> Symbol:
        """Symbol factory for the reader.

        Unqualified names are interned in the current package; `pkg:name`
        must be external in pkg, `pkg::name` is interned there.
        """
        if package is None:
            current = self.current_package
            if current is None:
                return Symbol(name)
            return self.registry.intern(current, name)[0]
        pkg = self.registry.require(package)
        if internal:
            return self.registry.intern(pkg, name)[0]
        sym, status = pkg.find_symbol(name)
        if status != EXTERNAL:
            raise MalispPackageError(f"symbol '{name}' is not external in package '{pkg.name}'")
        return sym
