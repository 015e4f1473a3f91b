"""Small value classes that have no direct Python counterpart."""

from __future__ import annotations

from malisp import LispValue


class Vector(list):
    """A list tagged as a vector. Compares element-wise with plain lists.

    `meta` is only set on copies made by with-meta.
    """

    __slots__ = ("meta",)

    def __repr__(self):
        return f"Vector({list.__repr__(self)})"


class MetaList(list):
    """A list with metadata attached."""

    __slots__ = ("meta",)


class MetaMap(dict):
    """A hash-map with metadata attached."""

    __slots__ = ("meta",)


class Atom:
    """The only mutable cell in the value model."""

    __slots__ = ("value",)

    def __init__(self, value: LispValue):
        self.value = value

    def __repr__(self):
        return f"Atom({self.value!r})"


class Error:
    """A first-class error value carrying an arbitrary payload."""

    __slots__ = ("payload",)

    def __init__(self, payload: LispValue):
        self.payload = payload

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Error) and self.payload == other.payload

    def __hash__(self) -> int:
        return hash((Error, repr(self.payload)))

    def __repr__(self):
        return f"Error({self.payload!r})"
