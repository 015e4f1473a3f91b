import pytest

from malisp_lsp.indexer import BUILTIN_SIGNATURES, build_index, split_qualified, system_exports

SOURCE = """\
(make-package "geometry" "system")
(in-package "geometry")
(def! area (fn* (w h) (* w h)))
(defmacro! unless (fn* (c a b) (list 'if c b a)))
(def! origin [0 0])
(export '(area unless))
(prn shapes:circle geometry::origin)
(in-package "user")
(use-package "geometry")
"""


def test_definitions_land_in_current_package():
    idx = build_index(SOURCE)
    geometry = idx.packages["geometry"]
    assert set(geometry.definitions) == {"area", "unless", "origin"}
    assert geometry.definitions["area"].kind == "function"
    assert geometry.definitions["unless"].kind == "macro"
    assert geometry.definitions["origin"].kind == "var"
    assert (geometry.definitions["area"].line, geometry.definitions["area"].col) == (2, 6)
    assert idx.packages["user"].definitions == {}


def test_function_parameters():
    area = build_index(SOURCE).packages["geometry"].definitions["area"]
    assert area.params == ["w", "h"]
    assert area.signature == "(area w h)"
    rest = build_index("(def! f (fn* [a & more] a))").packages["user"].definitions["f"]
    assert rest.signature == "(f a & more)"
    assert build_index("(def! x 1)").packages["user"].definitions["x"].signature is None


def test_package_declarations():
    idx = build_index(SOURCE)
    geometry = idx.packages["geometry"]
    assert geometry.uses == ["system"]
    assert (geometry.line, geometry.col) == (0, 14)
    assert idx.is_declared("geometry")
    assert idx.is_declared("system") and idx.is_declared("user")
    assert not idx.is_declared("shapes")


def test_exports_and_use_package():
    idx = build_index(SOURCE)
    assert idx.exported("geometry") == {"area", "unless"}
    assert idx.packages["user"].uses == ["system", "geometry"]


@pytest.mark.parametrize(
    "text,package,expected",
    [
        ("(export 'x)", "user", {"x"}),
        ('(export \'(a b) "lib")', "lib", {"a", "b"}),
        ("(export 'lib::y :lib)", "lib", {"y"}),
        ("(export (list 'x))", "user", set()),
    ],
)
def test_export_forms(text, package, expected):
    assert build_index(text).exported(package) == expected


def test_system_exports_builtins_and_special_forms():
    names = system_exports()
    assert {"+", "cons", "make-package", "def!", "if", "not", "cond", "*ARGV*"} <= names
    assert "xs" not in names
    assert names <= build_index("").exported("system")


def test_package_at_follows_in_package():
    idx = build_index(SOURCE)
    assert idx.package_at(0) == "user"
    assert idx.package_at(1) == "user"
    assert idx.package_at(2) == "geometry"
    assert idx.package_at(8) == "user"


def test_accessible_names():
    idx = build_index(SOURCE)
    user = idx.accessible("user")
    assert user["area"].package == "geometry"
    assert "origin" not in user
    assert "+" in user and user["+"] is None
    assert "origin" in idx.accessible("geometry")
    assert idx.accessible("nowhere") == {}


def test_find_definition():
    idx = build_index(SOURCE)
    assert idx.find_definition("geometry::origin", 0).name == "origin"
    assert idx.find_definition("area", 8).package == "geometry"
    assert idx.find_definition("origin", 8) is None
    assert idx.find_definition("origin", 4).package == "geometry"


def test_qualified_references():
    idx = build_index(SOURCE)
    assert [(r.package, r.name, r.internal, r.line) for r in idx.references] == [
        ("shapes", "circle", False, 6),
        ("geometry", "origin", True, 6),
    ]


def test_qualified_definition_binds_unqualified_name():
    idx = build_index("(def! tools::helper 1)")
    assert "helper" in idx.packages["user"].definitions
    assert "tools" not in idx.packages


def test_duplicate_packages_and_mentions():
    idx = build_index('(make-package "a")\n(make-package "a")\n(make-package "user")\n(use-package "b")')
    assert [(d.name, d.line) for d in idx.duplicate_packages] == [("a", 1), ("user", 2)]
    assert [m.name for m in idx.package_mentions] == ["b"]


def test_balanced_document():
    idx = build_index(SOURCE)
    assert idx.paren_balance == 0
    assert not idx.has_unmatched_quote


@pytest.mark.parametrize(
    "text,balance",
    [
        ("(def! x (+ 1 2)", 1),
        ("[1 2]]", -1),
        ("{:a (list 1}", 1),
        ("; (((\n(a)", 0),
        ('"(" (a)', 0),
    ],
)
def test_paren_balance(text, balance):
    assert build_index(text).paren_balance == balance


def test_unterminated_string():
    assert build_index('(prn "oops)').has_unmatched_quote
    assert not build_index('(prn "fine \\" quote")').has_unmatched_quote


def test_partial_buffers_do_not_raise():
    for text in ["(", "(def!", "(def! ", "(def! f (fn*", "(make-package", '(in-package "', "(export '", "(export '(a", "(use-package", "pkg:", "::"]:
        build_index(text)


@pytest.mark.parametrize(
    "name,expected",
    [
        ("pkg:sym", ("pkg", "sym")),
        ("pkg::sym", ("pkg", "sym")),
        (":keyword", None),
        ("plain", None),
        ("pkg:", None),
        ('"a:b"', None),
    ],
)
def test_split_qualified(name, expected):
    assert split_qualified(name) == expected


def test_builtin_signatures_cover_special_forms():
    for form in ("def!", "let*", "do", "if", "fn*", "quote", "quasiquote", "defmacro!", "macroexpand", "try*"):
        assert form in BUILTIN_SIGNATURES
