from typing import Any


class MalispError(Exception):
    """ Base class for all malisp errors"""

    @property
    def payload(self) -> Any:
        """The value bound by catch* when this error is caught."""
        return str(self)


class MalispSyntaxError(MalispError):
    """ Raised for unreadable input and malformed special forms"""


class MalispArityError(MalispError):
    """ Raised when the number of arguments passed to a function is incorrect"""


class MalispTypeError(MalispError):
    """ Raised when the types of arguments passed to a function are incorrect"""


class MalispInvalidSymbol(MalispError):
    """ Raised when a non-symbol is used where a symbol is required"""


class MalispUnboundSymbol(MalispError):
    """ Raised when a symbol is used before it is bound"""


class MalispUnboundInPackage(MalispUnboundSymbol):
    """ Raised when a symbol has no value in one specific package"""


class MalispUnboundInPackageChain(MalispUnboundSymbol):
    """ Raised when neither a package nor any package it uses binds a symbol"""


class MalispPackageError(MalispError):
    """ Raised for duplicate packages, missing packages and name conflicts"""


class MalispThrow(MalispError):
    """Raised by (throw value); carries an arbitrary Lisp value."""

    def __init__(self, value: Any):
        super().__init__(f"MalispThrow(value={value!r})")
        self.value: Any = value

    @property
    def payload(self) -> Any:
        return self.value
