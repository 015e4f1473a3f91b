"""
Language features computed from a DocumentIndex.

Everything here is a pure function of the document text, its index and a
position, so the pygls handlers in `malisp_lsp.server` stay thin. Name
resolution follows the reader: an unqualified name means whatever is
accessible in the package in effect at that line, `pkg:name` must be
exported by pkg and `pkg::name` reaches any of its symbols.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from lsprotocol.types import (
    CompletionItem,
    CompletionItemKind,
    CompletionList,
    Diagnostic,
    DiagnosticSeverity,
    DocumentSymbol,
    Hover,
    MarkupContent,
    MarkupKind,
    ParameterInformation,
    Position,
    Range,
    SignatureHelp,
    SignatureInformation,
    SymbolKind,
)

from malisp.evaluation.special_forms import SPECIAL_FORMS
from malisp_lsp.indexer import (
    BUILTIN_SIGNATURES,
    CLOSERS,
    OPENERS,
    SYSTEM_PACKAGE,
    Definition,
    DocumentIndex,
    iter_tokens,
    split_qualified,
)

SOURCE = "malisp-ls"

WORD_BREAKS = " \t\n\r,()[]{}'`~@\""
READER_PREFIXES = ("'", "`", "~", "~@", "@")

_COMPLETION_KINDS = {
    "var": CompletionItemKind.Variable,
    "function": CompletionItemKind.Function,
    "macro": CompletionItemKind.Keyword,
}

_SYMBOL_KINDS = {
    "var": SymbolKind.Variable,
    "function": SymbolKind.Function,
    "macro": SymbolKind.Operator,
}


def _span(line: int, col: int, length: int = 1) -> Range:
    return Range(start=Position(line=line, character=col), end=Position(line=line, character=col + length))


def _offset(text: str, pos: Position) -> int:
    lines = text.splitlines(True)
    if pos.line >= len(lines):
        return len(text)
    return sum(len(line) for line in lines[: pos.line]) + min(pos.character, len(lines[pos.line]))


def line_prefix(text: str, pos: Position) -> str:
    """Text from the start of the line up to `pos`."""
    lines = text.splitlines(True)
    if pos.line >= len(lines):
        return ""
    return lines[pos.line][: pos.character]


def word_at(text: str, pos: Position) -> Optional[str]:
    lines = text.splitlines(True)
    if pos.line >= len(lines):
        return None
    line = lines[pos.line]
    start = end = pos.character
    while start > 0 and line[start - 1] not in WORD_BREAKS:
        start -= 1
    while end < len(line) and line[end] not in WORD_BREAKS:
        end += 1
    return line[start:end] or None


def open_call(source: str) -> Optional[Tuple[str, int]]:
    """Head of the innermost unclosed call in `source` and the argument index being written."""
    frames: List[List] = []  # [is_call, head, completed elements]
    for tok, _, _ in iter_tokens(source):
        if tok in OPENERS:
            if frames:
                _add_element(frames[-1], "")
            frames.append([tok == "(", None, 0])
        elif tok in CLOSERS:
            if frames:
                frames.pop()
        elif tok not in READER_PREFIXES and frames:
            _add_element(frames[-1], tok)

    for depth in range(len(frames) - 1, -1, -1):
        is_call, head, count = frames[depth]
        if not is_call or not head:
            continue
        # a token touching the cursor is still being typed
        typing = depth == len(frames) - 1 and source[-1:] not in WORD_BREAKS
        return head, max(count - 1, 0) if typing else count
    return None


def _add_element(frame: List, tok: str) -> None:
    if frame[1] is None:
        frame[1] = tok
    else:
        frame[2] += 1


def _builtin_name(idx: DocumentIndex, word: str, line: int) -> Optional[str]:
    """The system name `word` reaches from `line`, if it reaches one."""
    qualified = split_qualified(word)
    if qualified:
        return qualified[1] if qualified[0] == SYSTEM_PACKAGE else None
    if word in SPECIAL_FORMS or word in idx.accessible(idx.package_at(line)):
        return word
    return None


def _parameters(names: List[str]) -> List[str]:
    """Parameter labels, with '&' folded into the rest parameter."""
    labels: List[str] = []
    names = iter(names)
    for name in names:
        labels.append(f"& {next(names, '')}".rstrip() if name == "&" else name)
    return labels


# --- Diagnostics ---

def diagnostics(idx: DocumentIndex) -> List[Diagnostic]:
    diags: List[Diagnostic] = []

    def report(rng: Range, message: str, severity: DiagnosticSeverity) -> None:
        diags.append(Diagnostic(range=rng, message=message, severity=severity, source=SOURCE))

    if idx.paren_balance != 0:
        report(_span(0, 0), "Unbalanced brackets detected", DiagnosticSeverity.Warning)
    if idx.has_unmatched_quote:
        report(_span(0, 0), "Unterminated string literal", DiagnosticSeverity.Warning)

    for dup in idx.duplicate_packages:
        report(
            _span(dup.line, dup.col, len(dup.name) + 2),
            f"A package with name '{dup.name}' already exists",
            DiagnosticSeverity.Error,
        )

    for mention in idx.package_mentions:
        if not idx.is_declared(mention.name):
            report(
                _span(mention.line, mention.col, len(mention.name) + 2),
                f"Package '{mention.name}' is not created in this document",
                DiagnosticSeverity.Warning,
            )

    # The package may still exist at runtime, so unknown qualifiers are informational
    unknown = set()
    for ref in idx.references:
        length = len(ref.package) + len(ref.name) + (2 if ref.internal else 1)
        if not idx.is_declared(ref.package):
            if ref.package not in unknown:
                unknown.add(ref.package)
                report(
                    _span(ref.line, ref.col, length),
                    f"Unknown package '{ref.package}'. Consider (make-package \"{ref.package}\").",
                    DiagnosticSeverity.Information,
                )
        elif not ref.internal and ref.name not in idx.exported(ref.package):
            report(
                _span(ref.line, ref.col, length),
                f"'{ref.name}' is not external in package '{ref.package}'; "
                f"write {ref.package}::{ref.name} or export it",
                DiagnosticSeverity.Warning,
            )

    for model in idx.packages.values():
        owners: Dict[str, str] = {}
        for used in model.uses:
            for name in sorted(idx.exported(used)):
                owner = owners.setdefault(name, used)
                if owner != used:
                    report(
                        _span(model.line or 0, model.col or 0, len(model.name) + 2),
                        f"'{name}' is exported by both '{owner}' and '{used}', which '{model.name}' uses",
                        DiagnosticSeverity.Warning,
                    )
    return diags


# --- Hover ---

def hover(text: str, idx: DocumentIndex, pos: Position) -> Optional[Hover]:
    word = word_at(text, pos)
    if not word:
        return None

    definition = idx.find_definition(word, pos.line)
    if definition is not None:
        status = "external" if definition.name in idx.exported(definition.package) else "internal"
        lines = [f"{definition.package}:{definition.name} ({definition.kind}, {status})"]
        if definition.signature:
            lines.append(definition.signature)
        lines.append(f"defined at {definition.line + 1}:{definition.col + 1}")
    else:
        name = _builtin_name(idx, word, pos.line)
        if name not in BUILTIN_SIGNATURES:
            return None
        lines = [f"{SYSTEM_PACKAGE}:{name} (builtin)", BUILTIN_SIGNATURES[name]]
    return Hover(contents=MarkupContent(kind=MarkupKind.PlainText, value="\n".join(lines)))


# --- Completion ---

def _completion_item(label: str, name: str, definition: Optional[Definition]) -> CompletionItem:
    if definition is None:
        return CompletionItem(
            label=label,
            kind=CompletionItemKind.Function,
            detail=BUILTIN_SIGNATURES.get(name, SYSTEM_PACKAGE),
        )
    return CompletionItem(
        label=label,
        kind=_COMPLETION_KINDS[definition.kind],
        detail=definition.signature or f"{definition.package} {definition.kind}",
    )


def completions(text: str, idx: DocumentIndex, pos: Position) -> CompletionList:
    prefix = line_prefix(text, pos)
    start = len(prefix)
    while start > 0 and prefix[start - 1] not in WORD_BREAKS:
        start -= 1
    typed = prefix[start:]
    items: List[CompletionItem] = []

    if ":" in typed and not typed.startswith(":"):
        internal = "::" in typed
        pkg = typed.split(":", 1)[0]
        model = idx.packages.get(pkg)
        if model is not None:
            # pkg: only reaches exported symbols; pkg:: reaches every symbol
            names = set(model.exports)
            if internal:
                names.update(model.definitions)
            sep = "::" if internal else ":"
            for name in sorted(names):
                items.append(_completion_item(f"{pkg}{sep}{name}", name, model.definitions.get(name)))
        return CompletionList(is_incomplete=False, items=items)

    accessible = idx.accessible(idx.package_at(pos.line))
    for name, definition in accessible.items():
        items.append(_completion_item(name, name, definition))
    for name in SPECIAL_FORMS:
        if name not in accessible:
            items.append(_completion_item(name, name, None))
    return CompletionList(is_incomplete=False, items=items)


# --- Signature Help ---

def signature_help(text: str, idx: DocumentIndex, pos: Position) -> Optional[SignatureHelp]:
    call = open_call(text[: _offset(text, pos)])
    if call is None:
        return None
    callee, arg_index = call

    definition = idx.find_definition(callee, pos.line)
    if definition is not None and definition.params is not None:
        label, names = definition.signature, definition.params
    else:
        name = _builtin_name(idx, callee, pos.line)
        if name not in BUILTIN_SIGNATURES:
            return None
        label = BUILTIN_SIGNATURES[name]
        names = label[1:-1].split()[1:]

    params = _parameters(names)
    active = arg_index
    if params and params[-1].startswith("&"):
        active = min(active, len(params) - 1)
    return SignatureHelp(
        signatures=[SignatureInformation(label=label, parameters=[ParameterInformation(label=p) for p in params])],
        active_signature=0,
        active_parameter=active,
    )


# --- Document Symbols ---

def document_symbols(idx: DocumentIndex) -> List[DocumentSymbol]:
    """One Package symbol per package with definitions, its definitions as children."""
    symbols: List[DocumentSymbol] = []
    for model in idx.packages.values():
        if not model.definitions and model.line is None:
            continue
        children = [
            DocumentSymbol(
                name=d.name,
                detail=("exported " if d.name in model.exports else "") + (d.signature or d.kind),
                kind=_SYMBOL_KINDS[d.kind],
                range=_span(d.line, d.col, len(d.name)),
                selection_range=_span(d.line, d.col, len(d.name)),
            )
            for d in model.definitions.values()
        ]
        if model.line is not None:
            selection = _span(model.line, model.col, len(model.name) + 2)
        else:
            selection = children[0].selection_range
        starts = [selection.start, *(c.range.start for c in children)]
        ends = [selection.end, *(c.range.end for c in children)]
        full = Range(
            start=min(starts, key=lambda p: (p.line, p.character)),
            end=max(ends, key=lambda p: (p.line, p.character)),
        )
        symbols.append(
            DocumentSymbol(
                name=model.name,
                detail=f"uses {', '.join(model.uses)}" if model.uses else None,
                kind=SymbolKind.Package,
                range=full,
                selection_range=selection,
                children=children,
            )
        )
    return symbols
