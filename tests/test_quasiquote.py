import pytest

from malisp.errors import MalispArityError
from malisp.evaluation.quasiquote import CONCAT, CONS, QUOTE, VEC, quasiquote
from malisp.types.symbol import Keyword, Symbol
from malisp.types.values import Vector

x, xs = Symbol("x"), Symbol("xs")
unquote, splice = Symbol("unquote"), Symbol("splice-unquote")


@pytest.mark.parametrize("form", [1, "text", True, Keyword("k")])
def test_atoms_are_unchanged(form):
    assert quasiquote(form) == form


def test_symbols_and_maps_are_quoted():
    assert quasiquote(x) == [QUOTE, x]
    assert quasiquote({Keyword("a"): x}) == [QUOTE, {Keyword("a"): x}]


def test_empty_list():
    assert quasiquote([]) == []


def test_plain_list_becomes_cons_chain():
    assert quasiquote([1, x]) == [CONS, 1, [CONS, [QUOTE, x], []]]


def test_unquote_yields_the_form_itself():
    assert quasiquote([unquote, x]) == x
    assert quasiquote([1, [unquote, x]]) == [CONS, 1, [CONS, x, []]]


def test_splice_unquote_concatenates():
    assert quasiquote([[splice, xs], 2]) == [CONCAT, xs, [CONS, 2, []]]


def test_vector_is_rebuilt_with_vec():
    assert quasiquote(Vector([1, [unquote, x]])) == [VEC, [CONS, 1, [CONS, x, []]]]


def test_vector_starting_with_unquote_is_quoted():
    form = Vector([unquote, x])
    assert quasiquote(form) == [QUOTE, form]


def test_generated_symbols_live_in_system():
    assert {CONS.package, CONCAT.package, QUOTE.package, VEC.package} == {"system"}


@pytest.mark.parametrize("form", [[unquote], [unquote, x, x], [[splice]]])
def test_unquote_arity(form):
    with pytest.raises(MalispArityError):
        quasiquote(form)
