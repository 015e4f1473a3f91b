import pytest

from malisp.errors import (
    MalispPackageError,
    MalispTypeError,
    MalispUnboundInPackage,
    MalispUnboundInPackageChain,
)
from malisp.package_registry import (
    EXTERNAL,
    INHERITED,
    INTERNAL,
    NEW,
    PackageRegistry,
    package_name,
)
from malisp.types.symbol import Keyword, Symbol


@pytest.fixture
def registry():
    return PackageRegistry()


def test_make_and_find_package(registry):
    pkg = registry.make_package("geo")
    assert registry.find_package("geo") is pkg
    assert registry.find_package(Symbol("geo")) is pkg
    assert registry.find_package(Keyword("geo")) is pkg
    assert registry.find_package(pkg) is pkg
    assert registry.find_package("missing") is None
    assert repr(pkg) == "#<package geo>"


def test_duplicate_package_name(registry):
    registry.make_package("geo")
    with pytest.raises(MalispPackageError, match="already exists"):
        registry.make_package("geo")


def test_make_package_with_unknown_used_package_is_not_registered(registry):
    with pytest.raises(MalispPackageError, match="not found"):
        registry.make_package("geo", ["nowhere"])
    assert registry.find_package("geo") is None


def test_require_missing_package(registry):
    with pytest.raises(MalispPackageError):
        registry.require("nowhere")


def test_package_name_rejects_numbers():
    with pytest.raises(MalispTypeError):
        package_name(1)


def test_intern_status(registry):
    pkg = registry.make_package("p")
    sym, status = registry.intern(pkg, "x")
    assert sym == Symbol("x", "p")
    assert status == NEW
    again, status = registry.intern(pkg, "x")
    assert again is sym
    assert status == INTERNAL


def test_export_makes_symbol_external_and_inherited(registry):
    lib = registry.make_package("lib")
    user = registry.make_package("app", ["lib"])
    sym, _ = registry.intern(lib, "area")
    registry.export(lib, [sym])

    assert lib.find_symbol("area") == (sym, EXTERNAL)
    assert user.find_symbol("area") == (sym, INHERITED)
    assert registry.intern(user, "area") == (sym, INHERITED)


def test_use_after_export_inherits(registry):
    lib = registry.make_package("lib")
    registry.intern(lib, "a")
    registry.export(lib, ["a"])
    app = registry.make_package("app")
    registry.use_package(app, "lib")
    assert app.find_symbol("a") == (Symbol("a", "lib"), INHERITED)
    assert app.use_list == ["lib"]


def test_use_package_twice_is_a_no_op(registry):
    registry.make_package("lib")
    app = registry.make_package("app", ["lib"])
    registry.use_package(app, "lib")
    assert app.use_list == ["lib"]


def test_package_cannot_use_itself(registry):
    registry.make_package("lib")
    with pytest.raises(MalispPackageError):
        registry.use_package("lib", "lib")


def test_export_is_all_or_nothing(registry):
    lib = registry.make_package("lib")
    registry.intern(lib, "a")
    with pytest.raises(MalispPackageError, match="not accessible"):
        registry.export(lib, ["a", "missing"])
    assert lib.find_symbol("a")[1] == INTERNAL
    assert lib.external == {}


def test_export_rejects_symbol_from_another_package(registry):
    lib = registry.make_package("lib")
    registry.intern(lib, "a")
    with pytest.raises(MalispPackageError):
        registry.export(lib, [Symbol("a", "other")])


def test_use_conflict(registry):
    for name in ("one", "two"):
        pkg = registry.make_package(name)
        registry.intern(pkg, "x")
        registry.export(pkg, ["x"])
    app = registry.make_package("app", ["one"])
    with pytest.raises(MalispPackageError, match="conflicts"):
        registry.use_package(app, "two")
    assert app.use_list == ["one"]
    assert app.find_symbol("x") == (Symbol("x", "one"), INHERITED)


def test_export_conflict_with_existing_user(registry):
    one = registry.make_package("one")
    registry.intern(one, "x")
    registry.export(one, ["x"])
    two = registry.make_package("two")
    registry.make_package("app", ["one", "two"])
    registry.intern(two, "x")
    with pytest.raises(MalispPackageError, match="conflicts"):
        registry.export(two, ["x"])
    assert two.external == {}


def test_lookup_in_package_prefers_own_frame(registry):
    lib = registry.make_package("lib")
    app = registry.make_package("app", ["lib"])
    lib.env.define("s", 1)
    assert registry.lookup_in_package(app, "s") == 1
    app.env.define("s", 2)
    assert registry.lookup_in_package(app, "s") == 2


def test_lookup_in_package_follows_use_order(registry):
    first = registry.make_package("first")
    second = registry.make_package("second")
    app = registry.make_package("app", ["first", "second"])
    first.env.define("v", "first")
    second.env.define("v", "second")
    assert registry.lookup_in_package(app, Symbol("v")) == "first"


def test_lookup_in_package_unbound(registry):
    registry.make_package("app")
    with pytest.raises(MalispUnboundInPackageChain):
        registry.lookup_in_package("app", "nothing")


def test_package_lookup_checks_own_frame_only(registry):
    lib = registry.make_package("lib")
    app = registry.make_package("app", ["lib"])
    lib.env.define("s", 1)
    assert lib.lookup(Symbol("s")) == 1
    with pytest.raises(MalispUnboundInPackage, match="not bound in package 'app'"):
        app.lookup("s")


def test_unbound_in_chain_is_distinct_from_unbound_in_package(registry):
    registry.make_package("lib")
    registry.make_package("app", ["lib"])
    with pytest.raises(MalispUnboundInPackageChain) as info:
        registry.lookup_in_package("app", "nothing")
    assert not isinstance(info.value, MalispUnboundInPackage)
    assert "package chain of 'app'" in info.value.payload


def test_find_value_does_not_raise(registry):
    lib = registry.make_package("lib")
    app = registry.make_package("app", ["lib"])
    lib.env.define("s", 1)
    assert registry.find_value(app, "s") == 1
    assert registry.find_value(app, "nothing") is None
    assert registry.find_value(app, "nothing", "missing") == "missing"


def test_all_lists_packages_in_creation_order(registry):
    registry.make_package("a")
    registry.make_package("b")
    assert list(registry.all()) == ["a", "b"]
