"""
  Lisp Reader, Lexer and Parser

- Streaming, lazy parsing: `parse_all` yields one form at a time, so a host
  can evaluate each form before the next one is read (symbols are interned in
  whatever package is current at read time).
- Emits Python values:

    - nil / true / false -> Nil / True / False
    - lists -> Python list
    - vectors -> Vector
    - maps -> dict
    - symbols -> Symbol, created through the `make_symbol` factory
    - keywords -> Keyword
    - strings -> str
    - integers -> int
    - quote forms -> [Symbol("quote"), expr], etc.
"""

from __future__ import annotations

import re
from typing import Callable, Iterator, Optional

from malisp import SExpression
from malisp.errors import MalispSyntaxError
from malisp.package_registry import SYSTEM_PACKAGE
from malisp.types.nil import Nil
from malisp.types.symbol import Keyword, Symbol
from malisp.types.values import Vector

# make_symbol(name, package=None, internal=False) -> Symbol
SymbolFactory = Callable[..., Symbol]

TOKEN_RE = re.compile(
    r"[\s,]*(?:"
    r"(?P<comment>;[^\n]*)"  # single-line comment
    r"|(?P<splice>~@)"  # ~@
    r"|(?P<quote>['`~@])"  # ' ` ~ @
    r"|(?P<lparen>\()"  # (
    r"|(?P<rparen>\))"  # )
    r"|(?P<lbracket>\[)"  # [
    r"|(?P<rbracket>\])"  # ]
    r"|(?P<lbrace>\{)"  # {
    r"|(?P<rbrace>\})"  # }
    r'|(?P<string>"(?:\\.|[^\\"])*")'  # double-quoted strings
    r'|(?P<bad_string>"(?:\\.|[^\\"])*)'  # string running into end of input
    r'|(?P<symbol>[^\s\[\]{}()\'"`~@,;]+)'  # fallback: symbols, numbers, keywords
    r")?",
    re.DOTALL,
)

INT_RE = re.compile(r"-?\d+")

# Reader shorthands expand to calls of system symbols, so they work in
# packages that do not use the system package.
QUOTE_FORMS: dict[str, Symbol] = {
    "'": Symbol("quote", SYSTEM_PACKAGE),
    "`": Symbol("quasiquote", SYSTEM_PACKAGE),
    "~": Symbol("unquote", SYSTEM_PACKAGE),
    "~@": Symbol("splice-unquote", SYSTEM_PACKAGE),
    "@": Symbol("deref", SYSTEM_PACKAGE),
}

LITERALS = {"nil": Nil, "true": True, "false": False}

CLOSERS = {"lparen": "rparen", "lbracket": "rbracket", "lbrace": "rbrace"}
CLOSER_CHARS = {"rparen": ")", "rbracket": "]", "rbrace": "}"}

ESCAPES = {"n": "\n", "\\": "\\", '"': '"'}
ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)


def lex(source: str) -> Iterator[tuple[str, str]]:
    """Token generator: yields (token_type, token_value) tuples. Comments are dropped."""
    pos = 0
    n = len(source)
    while pos < n:
        m = TOKEN_RE.match(source, pos)
        if not m or m.end() == pos:
            raise MalispSyntaxError(f"Unexpected char at {pos}: {source[pos]!r}")
        pos = m.end()
        if m.lastgroup is None or m.lastgroup == "comment":
            continue
        if m.lastgroup == "bad_string":
            raise MalispSyntaxError("Unbalanced string: expected '\"', got EOF")
        yield m.lastgroup, m.group(m.lastgroup)


def unescape(literal: str) -> str:
    """Decode the body of a string token, quotes included."""
    return ESCAPE_RE.sub(lambda m: ESCAPES.get(m.group(1), m.group(1)), literal[1:-1])


def default_symbol(name: str, package: Optional[str] = None, internal: bool = False) -> Symbol:
    return Symbol(name, package)


class TokenStream:
    def __init__(self, token_iter: Iterator[tuple[str, str]], make_symbol: Optional[SymbolFactory] = None):
        self.tokens = iter(token_iter)
        self.buffer: list[tuple[str, str]] = []
        self.make_symbol: SymbolFactory = make_symbol or default_symbol

    def peek(self) -> tuple[Optional[str], Optional[str]]:
        if not self.buffer:
            try:
                self.buffer.append(next(self.tokens))
            except StopIteration:
                return None, None
        return self.buffer[0]

    def advance(self) -> tuple[Optional[str], Optional[str]]:
        if self.buffer:
            return self.buffer.pop(0)
        return next(self.tokens, (None, None))

    def read_atom(self, tok_val: str) -> SExpression:
        if tok_val in LITERALS:
            return LITERALS[tok_val]
        if INT_RE.fullmatch(tok_val):
            return int(tok_val)
        if tok_val.startswith(":"):
            if len(tok_val) == 1:
                raise MalispSyntaxError("Empty keyword")
            return Keyword(tok_val[1:])
        return self.read_symbol(tok_val)

    def read_symbol(self, tok_val: str) -> Symbol:
        """Plain `name`, external `pkg:name` or internal `pkg::name`."""
        if "::" in tok_val:
            package, name = tok_val.split("::", 1)
            internal = True
        elif ":" in tok_val:
            package, name = tok_val.split(":", 1)
            internal = False
        else:
            return self.make_symbol(tok_val)
        if not package or not name:
            raise MalispSyntaxError(f"Malformed qualified symbol: {tok_val!r}")
        return self.make_symbol(name, package, internal)

    def read_sequence(self, open_type: str) -> list[SExpression]:
        close_type = CLOSERS[open_type]
        items = []
        while True:
            tok_type, _ = self.peek()
            if tok_type is None:
                raise MalispSyntaxError(f"Unbalanced input: expected '{CLOSER_CHARS[close_type]}', got EOF")
            if tok_type == close_type:
                self.advance()
                return items
            items.append(self.parse_expr())

    def parse_expr(self) -> SExpression:
        tok_type, tok_val = self.peek()
        if tok_type is None:
            raise MalispSyntaxError("Unexpected EOF")

        if tok_type == "symbol":
            self.advance()
            return self.read_atom(tok_val)

        if tok_type == "string":
            self.advance()
            return unescape(tok_val)

        # Quote forms
        if tok_type in ("quote", "splice"):
            self.advance()
            if self.peek()[0] is None:
                raise MalispSyntaxError(f"Expected a form after {tok_val!r}, got EOF")
            return [QUOTE_FORMS[tok_val], self.parse_expr()]

        if tok_type == "lparen":
            self.advance()
            return self.read_sequence(tok_type)

        if tok_type == "lbracket":
            self.advance()
            return Vector(self.read_sequence(tok_type))

        if tok_type == "lbrace":
            self.advance()
            items = self.read_sequence(tok_type)
            if len(items) % 2 != 0:
                raise MalispSyntaxError("Map literal must contain an even number of forms")
            result = {}
            for key, value in zip(items[::2], items[1::2]):
                if not isinstance(key, (str, Symbol, Keyword)):
                    raise MalispSyntaxError(f"Map keys must be strings, symbols or keywords, got {key!r}")
                result[key] = value
            return result

        if tok_type in CLOSER_CHARS:
            raise MalispSyntaxError(f"Unexpected '{tok_val}'")

        raise MalispSyntaxError(f"Unknown token: {tok_type} {tok_val}")

    def parse_all(self) -> Iterator[SExpression]:
        while True:
            tok_type, _ = self.peek()
            if tok_type is None:
                break
            yield self.parse_expr()


def read_str(source: str, make_symbol: Optional[SymbolFactory] = None) -> SExpression:
    """Read the first form in `source`; nil when it holds no form at all."""
    stream = TokenStream(lex(source), make_symbol)
    if stream.peek()[0] is None:
        return Nil
    return stream.parse_expr()
