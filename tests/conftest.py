import pytest

from malisp.interpreter import Interpreter


@pytest.fixture
def itp():
    """Interpreter with the primitives only; the Lisp prelude is not loaded."""
    return Interpreter(prelude=None)


@pytest.fixture
def full_itp():
    """Interpreter with the system prelude loaded."""
    return Interpreter()
