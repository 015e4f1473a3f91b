"""Package registry: Common-Lisp-style symbol visibility and package lookup.

Resolving an identifier happens in two separate steps. Interning decides which
*symbol* a name denotes inside a package (internal, external or inherited
tables). Value lookup then walks the package's own environment frame and the
frames of the packages it uses. The two are consulted in sequence, never
merged, so a name can be visible as a symbol yet unbound as a value.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from malisp import LispValue
from malisp.errors import (
    MalispPackageError,
    MalispTypeError,
    MalispUnboundInPackage,
    MalispUnboundInPackageChain,
)
from malisp.types.environment import Environment
from malisp.types.symbol import Keyword, Symbol

logger = logging.getLogger(__name__)

SYSTEM_PACKAGE = "system"
USER_PACKAGE = "user"

# intern / find-symbol status tags
INTERNAL = "internal"
EXTERNAL = "external"
INHERITED = "inherited"
NEW = "new"


@dataclass(eq=False)
class Package:
    name: str
    env: Environment
    internal: Dict[str, Symbol] = field(default_factory=dict)
    external: Dict[str, Symbol] = field(default_factory=dict)
    inherited: Dict[str, Symbol] = field(default_factory=dict)
    use_list: List[str] = field(default_factory=list)  # package names, in use order

    def find_symbol(self, name: str) -> Tuple[Optional[Symbol], Optional[str]]:
        """Resolve `name` to an accessible symbol without creating one."""
        if name in self.internal:
            return self.internal[name], INTERNAL
        if name in self.external:
            return self.external[name], EXTERNAL
        if name in self.inherited:
            return self.inherited[name], INHERITED
        return None, None

    def lookup(self, name: Symbol | str) -> LispValue:
        """Value of `name` in this package's own frame only."""
        key = name.name if isinstance(name, Symbol) else name
        if key not in self.env.vars:
            raise MalispUnboundInPackage(f"'{key}' not bound in package '{self.name}'")
        return self.env.vars[key]

    def __repr__(self):
        return f"#<package {self.name}>"


def package_name(designator) -> str:
    """Accept a Package, string, Symbol or Keyword naming a package."""
    if isinstance(designator, Package):
        return designator.name
    if isinstance(designator, str):
        return designator
    if isinstance(designator, (Symbol, Keyword)):
        return designator.name
    raise MalispTypeError(f"Expected a package designator, got: {designator!r}")


class PackageRegistry:
    """Append-only table of packages, owned by a RuntimeContext."""

    def __init__(self):
        self._packages: Dict[str, Package] = {}

    def find_package(self, designator) -> Optional[Package]:
        if isinstance(designator, Package):
            return designator
        return self._packages.get(package_name(designator))

    def require(self, designator) -> Package:
        pkg = self.find_package(designator)
        if pkg is None:
            raise MalispPackageError(f"package '{package_name(designator)}' not found")
        return pkg

    def make_package(
        self,
        name,
        used: Iterable = (),
        parent: Optional[Environment] = None,
    ) -> Package:
        """Create and register a package, then use each package in `used`.

        The package is registered only once every use succeeded.
        """
        pkg_name = package_name(name)
        if pkg_name in self._packages:
            raise MalispPackageError(f"A package with name '{pkg_name}' already exists")
        pkg = Package(name=pkg_name, env=Environment(parent))
        for target in used:
            self.use_package(pkg, target)
        self._packages[pkg_name] = pkg
        logger.debug("created package %s using %s", pkg_name, pkg.use_list)
        return pkg

    def use_package(self, package, target) -> None:
        """Make `target`'s external symbols inherited in `package`."""
        pkg = self.require(package)
        tgt = self.require(target)
        if tgt is pkg:
            raise MalispPackageError(f"package '{pkg.name}' cannot use itself")
        if tgt.name in pkg.use_list:
            return
        # Check for conflicts before copying anything
        for name, sym in tgt.external.items():
            existing = pkg.inherited.get(name)
            if existing is not None and existing != sym:
                raise MalispPackageError(
                    f"use-package {tgt.name}: '{name}' conflicts with {existing.package}:{name} "
                    f"inherited by '{pkg.name}'"
                )
        pkg.inherited.update(tgt.external)
        pkg.use_list.append(tgt.name)
        logger.debug("package %s now uses %s", pkg.name, tgt.name)

    def intern(self, package, name: str) -> Tuple[Symbol, str]:
        """Find or create the symbol called `name` in `package`."""
        pkg = self.require(package)
        found, status = pkg.find_symbol(name)
        if found is not None:
            return found, status
        sym = Symbol(name, pkg.name)
        pkg.internal[name] = sym
        return sym, NEW

    def find_symbol(self, name: str, package) -> Tuple[Optional[Symbol], Optional[str]]:
        return self.require(package).find_symbol(name)

    def export(self, package, symbols: Iterable) -> List[Symbol]:
        """Make `symbols` external in `package`, all or nothing.

        Exported symbols also become inherited in every package already using
        `package`.
        """
        pkg = self.require(package)

        to_export: List[Symbol] = []
        for s in symbols:
            if isinstance(s, Symbol):
                name = s.name
            elif isinstance(s, str):
                name = s
            else:
                raise MalispTypeError(f"export: expected a symbol, got {s!r}")
            found, _ = pkg.find_symbol(name)
            if found is None or (isinstance(s, Symbol) and s.package is not None and found != s):
                raise MalispPackageError(
                    f"export: symbol '{name}' is not accessible in package '{pkg.name}'"
                )
            to_export.append(found)

        users = [p for p in self._packages.values() if pkg.name in p.use_list]
        for user in users:
            for sym in to_export:
                existing = user.inherited.get(sym.name)
                if existing is not None and existing != sym:
                    raise MalispPackageError(
                        f"export: '{sym.name}' conflicts with {existing.package}:{sym.name} "
                        f"inherited by '{user.name}'"
                    )

        for sym in to_export:
            pkg.internal.pop(sym.name, None)
            pkg.inherited.pop(sym.name, None)
            pkg.external[sym.name] = sym
            for user in users:
                user.inherited[sym.name] = sym
        logger.debug("package %s exported %d symbols", pkg.name, len(to_export))
        return to_export

    def lookup_in_package(self, package, name: Symbol | str) -> LispValue:
        """Runtime value of `name`: the package's own frame, then used packages in order."""
        pkg = self.require(package)
        try:
            return pkg.lookup(name)
        except MalispUnboundInPackage:
            pass
        for used in pkg.use_list:
            try:
                return self._packages[used].lookup(name)
            except MalispUnboundInPackage:
                continue
        key = name.name if isinstance(name, Symbol) else name
        raise MalispUnboundInPackageChain(f"'{key}' not found in package chain of '{pkg.name}'")

    def find_value(self, package: Package, key: str, default: LispValue = None) -> LispValue:
        """Like lookup_in_package but returns `default` instead of raising."""
        if key in package.env.vars:
            return package.env.vars[key]
        for used in package.use_list:
            frame = self._packages[used].env.vars
            if key in frame:
                return frame[key]
        return default

    def all(self) -> Dict[str, Package]:
        return self._packages
