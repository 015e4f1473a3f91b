from __future__ import annotations
import sys
from typing import Optional


class Symbol:
    """An identifier: a name plus the name of its home package.

    Two symbols are the same identifier only when both the name and the home
    package match. Uninterned symbols (package None) are produced by the
    plain reader and by the `symbol` primitive.
    """

    __slots__ = ("name", "package")

    def __init__(self, name: str, package: Optional[str] = None):
        # Intern to ensure fast equality/hash and reduce memory
        self.name = sys.intern(name)
        self.package = package

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, Symbol)
            and self.name == other.name
            and self.package == other.package
        )

    def __hash__(self) -> int:
        return hash((self.name, self.package))

    def __repr__(self):
        if self.package is None:
            return f"Symbol({self.name!r})"
        return f"Symbol({self.name!r}, {self.package!r})"

    def __str__(self):
        return self.name


class Keyword:
    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name = sys.intern(name[1:] if name.startswith(":") else name)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Keyword) and self.name == other.name

    def __hash__(self) -> int:
        return hash((Keyword, self.name))

    def __repr__(self):
        return f"Keyword({self.name!r})"

    def __str__(self):
        return f":{self.name}"


def is_named(value, name: str) -> bool:
    """True if `value` is a symbol called `name`, whatever its home package."""
    return isinstance(value, Symbol) and value.name == name
