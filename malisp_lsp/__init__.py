"""malisp editor and REPL integration.

- `indexer`: static package model of a document (definitions per package,
  exports, used packages, qualified references), built without evaluation.
- `features`: diagnostics, hover, completion, signature help and document
  symbols answered from that model.
- `server`: the pygls language server wiring them up.
- `repl_server`: a TCP REPL evaluating code via the Interpreter.
"""

__all__ = [
    "features",
    "indexer",
    "repl_server",
    "server",
]
