import pytest

from malisp.errors import MalispError
from malisp.interpreter import Interpreter
from malisp.printer import pr_str
from malisp.types.nil import Nil
from malisp.types.symbol import Keyword, Symbol
from malisp.types.values import Error

GEOMETRY = """
(make-package "geometry" "system")
(in-package "geometry")
(def! area (fn* (w h) (* w h)))
(def! hidden 7)
(export 'area)
(in-package "user")
"""


def test_startup_packages(itp):
    assert itp.package.name == "user"
    assert pr_str(itp.eval("(list-all-packages)")) == "(#<package system> #<package user>)"
    assert itp.eval('(package-name (symbol-package \'+))') == "system"


def test_eval_contract(itp):
    assert itp.eval("") is Nil
    assert itp.eval("1") == 1
    assert itp.eval("1 2") == [1, 2]


def test_read_error_stops_evaluation(itp):
    results = list(itp.eval_forms("(def! a 1) (oops"))
    assert results[0] == 1
    assert isinstance(results[1], Error)
    assert len(results) == 2


def test_user_definitions_shadow_system(itp):
    itp.eval("(def! + (fn* (a b) (list a b)))")
    assert itp.eval("(+ 1 2)") == [1, 2]


def test_in_package_switches_reading_and_definition(itp):
    itp.eval(GEOMETRY)
    assert itp.package.name == "user"
    assert isinstance(itp.eval("(area 2 3)"), Error)
    assert itp.eval("(geometry:area 2 3)") == 6
    assert itp.eval("(package-name (symbol-package 'geometry:area))") == "geometry"


def test_use_package_after_export(itp):
    itp.eval(GEOMETRY)
    assert itp.eval('(use-package "geometry")') is True
    assert itp.eval("(area 2 3)") == 6


def test_external_qualifier_requires_export(itp):
    itp.eval(GEOMETRY)
    result = itp.eval("geometry:hidden")
    assert isinstance(result, Error)
    assert "not external" in result.payload
    assert itp.eval("geometry::hidden") == 7


def test_resolution_prefers_local_binding_over_used_package(itp):
    itp.eval("""
        (make-package "p" "system")
        (in-package "p")
        (def! s 1)
        (export 's)
        (in-package "user")
        (make-package "u" "system" "p")
        (in-package "u")
    """)
    assert itp.eval("s") == 1
    itp.eval("(def! s 2)")
    assert itp.eval("s") == 2
    assert itp.eval("(let* (s 3) s)") == 3


def test_package_without_system_reaches_it_through_qualified_symbols(itp):
    itp.eval('(make-package "bare")')
    itp.eval('(in-package "bare")')
    assert itp.package.name == "bare"
    assert isinstance(itp.eval("(+ 1 2)"), Error)
    assert itp.eval("(system:+ 1 2)") == 3
    assert itp.eval("`(1 ~(system:+ 1 1))") == [1, 2]
    assert itp.eval("(def! x 5)") == 5
    itp.eval('(system:in-package "user")')
    assert itp.package.name == "user"
    assert itp.eval("bare::x") == 5


def test_find_symbol_and_intern(itp):
    assert itp.eval('(find-symbol "+")') == [Symbol("+", "system"), Keyword("inherited")]
    assert itp.eval('(find-symbol "nothing-here")') is Nil
    assert itp.eval('(intern "fresh")') == Symbol("fresh", "user")
    assert itp.eval('(find-symbol "fresh")') == [Symbol("fresh", "user"), Keyword("internal")]
    assert itp.eval('(find-symbol "+" "system")') == [Symbol("+", "system"), Keyword("external")]


def test_intern_and_export_into_named_package(itp):
    itp.eval('(make-package "lib" "system")')
    assert itp.eval('(intern "tool" "lib")') == Symbol("tool", "lib")
    assert itp.eval('(export (list (intern "tool" "lib")) "lib")') is True
    assert itp.eval('(find-symbol "tool" "lib")') == [Symbol("tool", "lib"), Keyword("external")]


def test_find_package(itp):
    assert pr_str(itp.eval("(find-package :system)")) == "#<package system>"
    assert itp.eval('(find-package "nowhere")') is Nil


@pytest.mark.parametrize(
    "source",
    [
        '(make-package "user")',
        '(make-package "x" "nowhere")',
        '(in-package "nowhere")',
        '(use-package "nowhere")',
        '(use-package "user")',
        "(export 'never-seen \"system\")",
        "(make-package)",
        "(make-package 1)",
    ],
)
def test_package_errors(itp, source):
    assert isinstance(itp.eval(source), Error)


def test_failed_make_package_leaves_registry_unchanged(itp):
    itp.eval('(make-package "x" "nowhere")')
    assert itp.eval('(find-package "x")') is Nil


def test_use_package_conflict(itp):
    itp.eval("""
        (make-package "one" "system")
        (in-package "one")
        (def! clash 1)
        (export 'clash)
        (make-package "two" "system")
        (in-package "two")
        (def! clash 2)
        (export 'clash)
        (in-package "user")
        (use-package "one")
    """)
    result = itp.eval('(use-package "two")')
    assert isinstance(result, Error)
    assert "conflicts" in result.payload
    assert itp.eval("clash") == 1


def test_prelude_parameter_names_stay_internal(full_itp):
    assert full_itp.eval('(find-symbol "xs" "system")') == [Symbol("xs", "system"), Keyword("internal")]
    assert full_itp.eval('(find-symbol "xs" "user")') is Nil
    assert full_itp.eval('(find-symbol "cond" "user")') == [Symbol("cond", "system"), Keyword("inherited")]


def test_use_package_exporting_a_prelude_parameter_name(full_itp):
    result = full_itp.eval("""
        (make-package "geo")
        (in-package "geo")
        (def! f 1)
        (system:export 'f)
        (system:in-package "user")
        (use-package "geo")
    """)
    assert result[-1] is True
    assert full_itp.eval("f") == 1


def test_package_variable_only_holds_packages(itp):
    result = itp.eval("(def! *package* 1)")
    assert isinstance(result, Error)
    assert "must be a package" in result.payload
    assert itp.eval("(+ 1 1)") == 2
    itp.eval('(make-package "scratch" "system")')
    assert pr_str(itp.eval('(def! *package* (find-package "scratch"))')) == "#<package scratch>"
    assert itp.package.name == "scratch"
    assert itp.eval("(+ 1 2)") == 3


def test_argv(itp):
    assert itp.eval("*ARGV*") == []
    itp.set_argv(["a", "b"])
    assert itp.eval("*ARGV*") == ["a", "b"]


def test_custom_prelude_is_exported():
    itp = Interpreter(prelude="(def! answer 42)")
    assert itp.eval("answer") == 42
    assert itp.eval("(package-name (symbol-package 'answer))") == "system"


def test_failing_prelude_aborts_startup():
    with pytest.raises(MalispError, match="prelude failed"):
        Interpreter(prelude='(throw "bad")')


# -------------------------------
# System prelude
# -------------------------------

def test_prelude_definitions(full_itp):
    assert full_itp.eval("*host-language*") == "python"
    assert full_itp.eval("(not nil)") is True
    assert full_itp.eval("(not 0)") is False


@pytest.mark.parametrize(
    "source,expected",
    [
        ("(cond)", Nil),
        ("(cond true 1)", 1),
        ("(cond false 1 true 2)", 2),
        ("(cond false 1 nil 2)", Nil),
    ],
)
def test_cond(full_itp, source, expected):
    assert full_itp.eval(source) == expected


def test_cond_with_odd_forms(full_itp):
    assert full_itp.eval("(cond false 1 true)") == Error("odd number of forms to cond")


def test_load_file(full_itp, tmp_path):
    path = tmp_path / "lib.lisp"
    path.write_text('; helper\n(def! loaded 41)\n(def! bump (fn* (x) (+ x 1)))\n', encoding="utf-8")
    assert full_itp.eval(f'(load-file "{path}")') is Nil
    assert full_itp.eval("(bump loaded)") == 42


def test_load_file_missing(full_itp, tmp_path):
    assert isinstance(full_itp.eval(f'(load-file "{tmp_path / "none.lisp"}")'), Error)


def test_prelude_loaded_from_configured_path(tmp_path, monkeypatch):
    (tmp_path / "system.lisp").write_text("(def! custom-prelude true)", encoding="utf-8")
    monkeypatch.setenv("MALISP_PRELUDE_PATH", str(tmp_path))
    assert Interpreter().eval("custom-prelude") is True


def test_missing_prelude(tmp_path, monkeypatch):
    monkeypatch.setenv("MALISP_PRELUDE_PATH", str(tmp_path))
    with pytest.raises(FileNotFoundError):
        Interpreter()
