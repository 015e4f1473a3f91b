"""
Static package model of a malisp document, built without evaluating it.

The scanner walks the token stream and replays the package operations the
runtime would perform, so the index knows:
- which package each (def! ...) / (defmacro! ...) lands in, following
  (in-package ...) the way the reader does; qualified names bind by their
  unqualified name, as environments do
- the packages a document declares with (make-package "name" "used" ...),
  and those it adds with (use-package "target" ["package"])
- what each package exports with (export 'sym) or (export '(a b) ["package"])
- every package-qualified reference, and whether it is pkg:sym or pkg::sym

`system` and `user` exist in every image: system exports what a freshly
started interpreter exports (primitives, prelude and special forms), user
uses system.

The scanner is tolerant: it never raises on partial/incomplete buffers.
"""

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, FrozenSet, Iterator, List, Optional, Set, Tuple
import re

from malisp.interpreter import Interpreter

# Simple token patterns for scanning; commas are whitespace
TOKEN_REGEX = re.compile(
    r"[\s,]+|;.*$|~@|[\[\](){}'`~@]|\"(?:\\.|[^\\\"])*\"|\"|[^\s\[\](){}'\"`~@,;]+",
    re.MULTILINE,
)

OPENERS = ("(", "[", "{")
CLOSERS = (")", "]", "}")

SYSTEM_PACKAGE = "system"
USER_PACKAGE = "user"

Token = Tuple[str, int, int]


@dataclass
class Definition:
    name: str
    package: str
    kind: str  # "var" | "function" | "macro"
    line: int
    col: int
    params: Optional[List[str]] = None  # fn* parameter names, for functions and macros

    @property
    def signature(self) -> Optional[str]:
        if self.params is None:
            return None
        return f"({' '.join([self.name, *self.params])})"


@dataclass
class PackageModel:
    name: str
    uses: List[str] = field(default_factory=list)
    definitions: Dict[str, Definition] = field(default_factory=dict)
    exports: Set[str] = field(default_factory=set)
    # where make-package declared it; None for packages every image has
    line: Optional[int] = None
    col: Optional[int] = None


@dataclass
class Reference:
    package: str
    name: str
    internal: bool  # written pkg::name
    line: int
    col: int


@dataclass
class Located:
    """A package name as written in a package form."""

    name: str
    line: int
    col: int


@dataclass
class DocumentIndex:
    packages: Dict[str, PackageModel] = field(default_factory=dict)
    references: List[Reference] = field(default_factory=list)
    switches: List[Tuple[int, str]] = field(default_factory=list)  # (line, package) per in-package
    duplicate_packages: List[Located] = field(default_factory=list)
    package_mentions: List[Located] = field(default_factory=list)  # every used/entered package name
    paren_balance: int = 0
    has_unmatched_quote: bool = False

    def package_at(self, line: int) -> str:
        """Package in effect on `line`: the last in-package before it, else user."""
        current = USER_PACKAGE
        for switch_line, name in self.switches:
            if switch_line >= line:
                break
            current = name
        return current

    def is_declared(self, package: str) -> bool:
        """True for system, user and the packages this document makes."""
        model = self.packages.get(package)
        return model is not None and (model.line is not None or package in (SYSTEM_PACKAGE, USER_PACKAGE))

    def exported(self, package: str) -> Set[str]:
        model = self.packages.get(package)
        return set(model.exports) if model is not None else set()

    def accessible(self, package: str) -> Dict[str, Optional[Definition]]:
        """Names usable unqualified in `package`, own definitions first.

        Inherited builtins map to None since they have no definition here.
        """
        model = self.packages.get(package)
        if model is None:
            return {}
        names: Dict[str, Optional[Definition]] = dict(model.definitions)
        for used in model.uses:
            used_model = self.packages.get(used)
            if used_model is None:
                continue
            for name in sorted(used_model.exports):
                names.setdefault(name, used_model.definitions.get(name))
        return names

    def find_definition(self, word: str, line: int) -> Optional[Definition]:
        """Definition `word` denotes when read on `line`."""
        qualified = split_qualified(word)
        if qualified:
            model = self.packages.get(qualified[0])
            return model.definitions.get(qualified[1]) if model is not None else None
        return self.accessible(self.package_at(line)).get(word)


@lru_cache(maxsize=None)
def system_exports() -> FrozenSet[str]:
    """Names a freshly started interpreter exports from its system package."""
    return frozenset(Interpreter().ctx.registry.require(SYSTEM_PACKAGE).external)


def iter_tokens(text: str) -> Iterator[Token]:
    for m in TOKEN_REGEX.finditer(text):
        tok = m.group(0)
        if not tok.strip(", \t\r\n") or tok.startswith(";"):
            continue
        yield tok, m.start(), m.end()


def _position_from_offset(text: str, offset: int) -> Tuple[int, int]:
    # Return (line, col), 0-based
    line = text.count("\n", 0, offset)
    last_nl = text.rfind("\n", 0, offset)
    col = offset if last_nl == -1 else offset - last_nl - 1
    return line, col


def split_qualified(name: str) -> Optional[Tuple[str, str]]:
    """("pkg", "sym") for pkg:sym or pkg::sym, else None. Keywords are not qualified."""
    if name.startswith(":") or name.startswith('"'):
        return None
    sep = "::" if "::" in name else ":"
    if sep not in name:
        return None
    pkg, sym = name.split(sep, 1)
    if not pkg or not sym:
        return None
    return pkg, sym


def _is_string(tok: Optional[str]) -> bool:
    return tok is not None and len(tok) >= 2 and tok.startswith('"') and tok.endswith('"')


def _designator(tok: Optional[str]) -> Optional[str]:
    """Package name written as "name" or :name."""
    if _is_string(tok):
        return tok[1:-1]
    if tok is not None and tok.startswith(":") and len(tok) > 1:
        return tok[1:]
    return None


def _is_symbol(tok: Optional[str]) -> bool:
    return (
        tok is not None
        and tok not in OPENERS + CLOSERS
        and tok[0] not in "\"':`~@"
    )


def _unqualified(name: str) -> str:
    qualified = split_qualified(name)
    return qualified[1] if qualified else name


class _Scanner:
    """Replays one document's package operations over its tokens."""

    def __init__(self, text: str):
        self.text = text
        self.tokens = list(iter_tokens(text))
        self.idx = DocumentIndex()
        self.idx.packages[SYSTEM_PACKAGE] = PackageModel(SYSTEM_PACKAGE, exports=set(system_exports()))
        self.idx.packages[USER_PACKAGE] = PackageModel(USER_PACKAGE, uses=[SYSTEM_PACKAGE])
        self.current = USER_PACKAGE

    def tok(self, k: int) -> Optional[str]:
        return self.tokens[k][0] if k < len(self.tokens) else None

    def where(self, k: int) -> Tuple[int, int]:
        return _position_from_offset(self.text, self.tokens[k][1])

    def package(self, name: str) -> PackageModel:
        return self.idx.packages.setdefault(name, PackageModel(name))

    def run(self) -> DocumentIndex:
        for i, (tok, _, _) in enumerate(self.tokens):
            if tok in OPENERS:
                self.idx.paren_balance += 1
                if tok == "(":
                    self.form(i)
            elif tok in CLOSERS:
                self.idx.paren_balance -= 1
            else:
                qualified = split_qualified(tok)
                if qualified:
                    line, col = self.where(i)
                    self.idx.references.append(
                        Reference(qualified[0], qualified[1], "::" in tok, line, col)
                    )
        # a lone '"' token is a string that never closes
        self.idx.has_unmatched_quote = any(tok == '"' for tok, _, _ in self.tokens)
        return self.idx

    def form(self, i: int) -> None:
        head = self.tok(i + 1)
        if head in ("def!", "defmacro!"):
            self.definition(i, head)
        elif head == "make-package":
            self.make_package(i)
        elif head == "in-package":
            name = _designator(self.tok(i + 2))
            if name is not None:
                line, col = self.where(i + 2)
                self.idx.switches.append((line, name))
                self.idx.package_mentions.append(Located(name, line, col))
                self.current = name
        elif head == "use-package":
            self.use_package(i)
        elif head == "export":
            self.export(i)

    def definition(self, i: int, head: str) -> None:
        name = self.tok(i + 2)
        if not _is_symbol(name):
            return
        params = self.fn_params(i + 3)
        if head == "defmacro!":
            kind = "macro"
        elif params is not None:
            kind = "function"
        else:
            kind = "var"
        line, col = self.where(i + 2)
        bare = _unqualified(name)
        self.package(self.current).definitions[bare] = Definition(bare, self.current, kind, line, col, params)

    def fn_params(self, k: int) -> Optional[List[str]]:
        """Parameter names of a (fn* (params) ...) form starting at token k."""
        if self.tok(k) != "(" or self.tok(k + 1) != "fn*" or self.tok(k + 2) not in ("(", "["):
            return None
        params = []
        k += 3
        while self.tok(k) is not None and self.tok(k) not in CLOSERS:
            if _is_symbol(self.tok(k)):
                params.append(self.tok(k))
            k += 1
        return params

    def make_package(self, i: int) -> None:
        name = _designator(self.tok(i + 2))
        if name is None:
            return
        line, col = self.where(i + 2)
        if self.idx.is_declared(name):
            self.idx.duplicate_packages.append(Located(name, line, col))
            return
        model = self.package(name)
        model.line, model.col = line, col
        k = i + 3
        while self.tok(k) is not None and self.tok(k) not in CLOSERS:
            used = _designator(self.tok(k))
            if used is not None:
                model.uses.append(used)
                self.idx.package_mentions.append(Located(used, *self.where(k)))
            k += 1

    def use_package(self, i: int) -> None:
        target = _designator(self.tok(i + 2))
        if target is None:
            return
        self.idx.package_mentions.append(Located(target, *self.where(i + 2)))
        user = _designator(self.tok(i + 3)) or self.current
        model = self.package(user)
        if target not in model.uses:
            model.uses.append(target)

    def export(self, i: int) -> None:
        k = i + 2
        if self.tok(k) != "'":
            return
        k += 1
        names = []
        if self.tok(k) == "(":
            k += 1
            while self.tok(k) is not None and self.tok(k) not in CLOSERS:
                if _is_symbol(self.tok(k)):
                    names.append(_unqualified(self.tok(k)))
                k += 1
        elif _is_symbol(self.tok(k)):
            names.append(_unqualified(self.tok(k)))
        else:
            return
        target = _designator(self.tok(k + 1)) or self.current
        self.package(target).exports.update(names)


def build_index(text: str) -> DocumentIndex:
    return _Scanner(text).run()


# Builtin signatures for quick hover/signature help without eval
BUILTIN_SIGNATURES: Dict[str, str] = {
    "def!": "(def! name value)",
    "defmacro!": "(defmacro! name fn)",
    "let*": "(let* (name value ...) body)",
    "do": "(do form ...)",
    "if": "(if test then else)",
    "fn*": "(fn* (params & rest) body)",
    "quote": "(quote form)",
    "quasiquote": "(quasiquote form)",
    "quasiquoteexpand": "(quasiquoteexpand form)",
    "macroexpand": "(macroexpand form)",
    "macroexpand-1": "(macroexpand-1 form)",
    "try*": "(try* form (catch* name handler))",
    "+": "(+ & nums)",
    "-": "(- x & ys)",
    "*": "(* & nums)",
    "/": "(/ x y & ys)",
    "=": "(= x & ys)",
    "<": "(< x y & ys)",
    "list": "(list & xs)",
    "cons": "(cons x seq)",
    "concat": "(concat & seqs)",
    "first": "(first seq)",
    "rest": "(rest seq)",
    "nth": "(nth seq index)",
    "count": "(count seq)",
    "conj": "(conj coll & xs)",
    "hash-map": "(hash-map & kvs)",
    "assoc": "(assoc map & kvs)",
    "get": "(get map key)",
    "apply": "(apply f & args seq)",
    "map": "(map f seq)",
    "atom": "(atom value)",
    "swap!": "(swap! atom f & args)",
    "reset!": "(reset! atom value)",
    "meta": "(meta value)",
    "with-meta": "(with-meta value meta)",
    "throw": "(throw value)",
    "str": "(str & xs)",
    "prn": "(prn & xs)",
    "println": "(println & xs)",
    "read-string": "(read-string text)",
    "eval": "(eval form)",
    "load-file": "(load-file path)",
    "make-package": "(make-package name & used)",
    "in-package": "(in-package name)",
    "use-package": "(use-package target package)",
    "export": "(export symbols package)",
    "intern": "(intern name package)",
    "find-symbol": "(find-symbol name package)",
    "find-package": "(find-package name)",
}
