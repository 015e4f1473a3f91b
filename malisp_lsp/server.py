"""
pygls language server for malisp.

Documents are never evaluated: each open or change rebuilds the document's
static package model (`malisp_lsp.indexer`) and the handlers below answer
from it through `malisp_lsp.features`. Capabilities are derived by pygls
from the registered features and their options.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from lsprotocol.types import (
    TEXT_DOCUMENT_COMPLETION,
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_CLOSE,
    TEXT_DOCUMENT_DID_OPEN,
    TEXT_DOCUMENT_DOCUMENT_SYMBOL,
    TEXT_DOCUMENT_HOVER,
    TEXT_DOCUMENT_SIGNATURE_HELP,
    CompletionList,
    CompletionOptions,
    CompletionParams,
    DidChangeTextDocumentParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    DocumentSymbol,
    DocumentSymbolParams,
    Hover,
    HoverParams,
    SignatureHelp,
    SignatureHelpOptions,
    SignatureHelpParams,
    TextDocumentSyncKind,
)
from pygls.server import LanguageServer

from malisp import __version__
from malisp.config import get_log_level
from malisp_lsp import features
from malisp_lsp.indexer import DocumentIndex, build_index

logger = logging.getLogger(__name__)


class MalispLanguageServer(LanguageServer):
    CMD_NAME = "malisp-ls"

    def __init__(self):
        # didChange carries the whole document
        super().__init__(self.CMD_NAME, f"v{__version__}", text_document_sync_kind=TextDocumentSyncKind.Full)
        self.analyses: Dict[str, Tuple[str, DocumentIndex]] = {}

    def analyse(self, uri: str, text: str) -> DocumentIndex:
        """Re-index `uri` and publish its diagnostics."""
        idx = build_index(text)
        self.analyses[uri] = (text, idx)
        diags = features.diagnostics(idx)
        logger.debug("publishing %d diagnostics for %s", len(diags), uri)
        self.publish_diagnostics(uri, diags)
        return idx

    def forget(self, uri: str) -> None:
        self.analyses.pop(uri, None)
        self.publish_diagnostics(uri, [])


ls = MalispLanguageServer()


@ls.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: MalispLanguageServer, params: DidOpenTextDocumentParams):
    ls.analyse(params.text_document.uri, params.text_document.text or "")


@ls.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: MalispLanguageServer, params: DidChangeTextDocumentParams):
    uri = params.text_document.uri
    if params.content_changes:
        text = params.content_changes[-1].text
    else:
        text = ls.analyses.get(uri, ("", None))[0]
    ls.analyse(uri, text)


@ls.feature(TEXT_DOCUMENT_DID_CLOSE)
def did_close(ls: MalispLanguageServer, params: DidCloseTextDocumentParams):
    ls.forget(params.text_document.uri)


@ls.feature(TEXT_DOCUMENT_HOVER)
def on_hover(ls: MalispLanguageServer, params: HoverParams) -> Optional[Hover]:
    analysis = ls.analyses.get(params.text_document.uri)
    if analysis is None:
        return None
    return features.hover(*analysis, params.position)


@ls.feature(TEXT_DOCUMENT_COMPLETION, CompletionOptions(trigger_characters=[":", "("]))
def on_completion(ls: MalispLanguageServer, params: CompletionParams) -> CompletionList:
    analysis = ls.analyses.get(params.text_document.uri)
    if analysis is None:
        return CompletionList(is_incomplete=False, items=[])
    return features.completions(*analysis, params.position)


@ls.feature(TEXT_DOCUMENT_SIGNATURE_HELP, SignatureHelpOptions(trigger_characters=["(", " "]))
def on_signature_help(ls: MalispLanguageServer, params: SignatureHelpParams) -> Optional[SignatureHelp]:
    analysis = ls.analyses.get(params.text_document.uri)
    if analysis is None:
        return None
    return features.signature_help(*analysis, params.position)


@ls.feature(TEXT_DOCUMENT_DOCUMENT_SYMBOL)
def on_document_symbols(ls: MalispLanguageServer, params: DocumentSymbolParams) -> Optional[List[DocumentSymbol]]:
    analysis = ls.analyses.get(params.text_document.uri)
    if analysis is None:
        return None
    return features.document_symbols(analysis[1])


def main():
    logging.basicConfig(level=get_log_level())
    # stdout carries the protocol
    ls.start_io()


if __name__ == "__main__":
    main()
