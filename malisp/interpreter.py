from __future__ import annotations

import logging
from typing import Iterable, Iterator, Literal

from malisp import LispValue
from malisp.builtin.core_builtin import core_namespace
from malisp.errors import MalispError
from malisp.evaluation.evaluator import evaluate
from malisp.evaluation.special_forms import SPECIAL_FORMS
from malisp.package_registry import SYSTEM_PACKAGE, USER_PACKAGE, Package
from malisp.reader.parser import TokenStream, lex
from malisp.runtime_context import RuntimeContext
from malisp.types.closure import REST_MARKER
from malisp.types.environment import Environment
from malisp.types.nil import Nil
from malisp.types.values import Error

logger = logging.getLogger(__name__)

ARGV_VARIABLE = "*ARGV*"

# Symbols with meaning to the evaluator that are not bound to values
SYNTAX_MARKERS = (REST_MARKER, "unquote", "splice-unquote", "catch*")


class Interpreter:
    """
    Orchestrates reading and evaluating malisp code.

    Owns a RuntimeContext and performs the startup sequence: a `system`
    package holding the primitives and the prelude, with every bound name in it
    exported, and a `user` package using it, which becomes current.
    """

    def __init__(self, prelude: str | None | Literal['auto'] = 'auto'):
        self.ctx = RuntimeContext()
        registry = self.ctx.registry

        system = registry.make_package(SYSTEM_PACKAGE, parent=self.ctx.root)
        for name, fn in core_namespace(self.ctx).items():
            registry.intern(system, name)
            system.env.define(name, fn)
        for name in (*SPECIAL_FORMS, *SYNTAX_MARKERS, ARGV_VARIABLE):
            registry.intern(system, name)
        system.env.define(ARGV_VARIABLE, [])

        self.ctx.current_package = system
        if prelude is None:
            pass  # explicit: no prelude
        elif prelude == 'auto':
            # Lazy import to avoid circular imports
            from malisp.modules.prelude_loader import load_prelude
            load_prelude(self)
        elif prelude:
            self.eval_prelude(prelude)

        # Bound names and evaluator syntax only; prelude parameter names stay internal
        exported = (*system.env.vars, *SPECIAL_FORMS, *SYNTAX_MARKERS)
        registry.export(system, [registry.intern(system, name)[0] for name in exported])
        registry.make_package(USER_PACKAGE, [system], parent=self.ctx.root)
        self.ctx.current_package = USER_PACKAGE
        logger.debug("interpreter ready, %d symbols exported from %s", len(system.external), SYSTEM_PACKAGE)

    @property
    def package(self) -> Package | None:
        return self.ctx.current_package

    @property
    def env(self) -> Environment:
        """Environment top-level forms are evaluated in: the current package's."""
        package = self.ctx.current_package
        return package.env if package is not None else self.ctx.root

    def set_argv(self, args: Iterable[str]) -> None:
        self.ctx.registry.require(SYSTEM_PACKAGE).env.define(ARGV_VARIABLE, list(args))

    def eval_prelude(self, code: str) -> None:
        """Evaluate startup code; the first error aborts startup."""
        for result in self.eval_forms(code):
            if isinstance(result, Error):
                raise MalispError(f"prelude failed: {result.payload}")

    def eval_forms(self, code: str) -> Iterator[LispValue]:
        """Read and evaluate the forms in `code` one at a time, yielding each result.

        Each form is read only after the previous one was evaluated, so
        in-package takes effect for the forms that follow it. A read error is
        yielded as an Error value and ends the sequence.
        """
        forms = TokenStream(lex(code), self.ctx.read_symbol).parse_all()
        while True:
            try:
                expr = next(forms)
            except StopIteration:
                return
            except MalispError as ex:
                yield Error(ex.payload)
                return
            yield evaluate(expr, self.env, self.ctx)

    def eval(self, code: str) -> LispValue:
        results = list(self.eval_forms(code))
        if not results:
            return Nil
        if len(results) == 1:
            return results[0]
        return results
