from __future__ import annotations


class NilType:
    """The empty value. Falsy, equal only to itself."""

    __slots__ = ()

    def __repr__(self):
        return "nil"

    def __bool__(self):
        return False

    def __eq__(self, other):
        return isinstance(other, NilType)

    def __hash__(self):
        return hash(NilType)


Nil = NilType()


def is_truthy(value) -> bool:
    """Lisp truthiness: everything except nil and false selects the then-branch."""
    return value is not Nil and value is not False
