import pytest

from malisp.builtin.core_builtin import add, core_namespace
from malisp.printer import escape, pr_str
from malisp.types.closure import build_closure
from malisp.types.environment import Environment
from malisp.types.nil import Nil
from malisp.types.symbol import Keyword, Symbol
from malisp.types.values import Atom, Error, Vector


@pytest.mark.parametrize(
    "value,expected",
    [
        (Nil, "nil"),
        (True, "true"),
        (False, "false"),
        (0, "0"),
        (-12, "-12"),
        (Symbol("abc", "user"), "abc"),
        (Keyword("kw"), ":kw"),
        ([], "()"),
        ([1, [2, 3]], "(1 (2 3))"),
        (Vector([1, "a"]), '[1 "a"]'),
        ({Keyword("a"): 1}, "{:a 1}"),
        (Atom(Vector()), "(atom [])"),
        (Error("bad"), 'Error: "bad"'),
    ],
)
def test_pr_str(value, expected):
    assert pr_str(value) == expected


def test_strings_readably_and_raw():
    assert pr_str('say "hi"\n\\') == '"say \\"hi\\"\\n\\\\"'
    assert pr_str('say "hi"', readably=False) == 'say "hi"'
    assert pr_str(["a", Vector(["b"])], readably=False) == "(a [b])"


def test_escape():
    assert escape('a"b') == 'a\\"b'
    assert escape("a\nb") == "a\\nb"
    assert escape("a\\b") == "a\\\\b"


def test_functions():
    env = Environment()
    closure = build_closure(env, [Symbol("x")], Symbol("x"))
    assert pr_str(closure) == "#<function>"
    closure.is_macro = True
    assert pr_str(closure) == "#<macro>"
    assert pr_str(add) == "#<builtin add>"


def test_context_bound_builtins_print_their_function_name(itp):
    namespace = core_namespace(itp.ctx)
    assert pr_str(namespace["swap!"]) == "#<builtin swap>"
    assert pr_str(namespace["<"]) == "#<builtin <>"


def test_packages(itp):
    assert pr_str(itp.eval('(find-package "user")')) == "#<package user>"


@pytest.mark.parametrize(
    "source,expected",
    [
        ('(pr-str "a" 1 nil)', '"a" 1 nil'),
        ('(str "a" 1 nil [2 "b"])', 'a1nil[2 b]'),
        ("(str)", ""),
        ('(pr-str (list "x"))', '("x")'),
    ],
)
def test_string_builtins(itp, source, expected):
    assert itp.eval(source) == expected


def test_prn_and_println(itp, capsys):
    assert itp.eval('(prn "a" :b)') is Nil
    assert itp.eval('(println "a" :b)') is Nil
    assert capsys.readouterr().out == '"a" :b\na :b\n'
