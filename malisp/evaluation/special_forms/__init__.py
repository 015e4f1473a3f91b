"""Registry of special forms for the malisp evaluator.

Maps special-form names to handler functions that implement non-standard
evaluation rules. Forms are matched by symbol name whatever the symbol's home
package, so they work in every package. A handler returns either a value or a
TailCall, which the trampoline continues with instead of recursing.
"""

from malisp.evaluation.special_forms.define_form import define_form
from malisp.evaluation.special_forms.defmacro_form import defmacro_form
from malisp.evaluation.special_forms.do_form import do_form
from malisp.evaluation.special_forms.if_form import if_form
from malisp.evaluation.special_forms.lambda_form import lambda_form
from malisp.evaluation.special_forms.let_form import let_form
from malisp.evaluation.special_forms.macroexpand_forms import macroexpand_form, macroexpand1_form
from malisp.evaluation.special_forms.quote_forms import quote_form, quasiquote_form, quasiquoteexpand_form
from malisp.evaluation.special_forms.try_catch_form import try_catch_form

SPECIAL_FORMS = {
    "def!": define_form,
    "let*": let_form,
    "do": do_form,
    "if": if_form,
    "fn*": lambda_form,
    "quote": quote_form,
    "quasiquote": quasiquote_form,
    "quasiquoteexpand": quasiquoteexpand_form,
    "defmacro!": defmacro_form,
    "macroexpand": macroexpand_form,
    "macroexpand-1": macroexpand1_form,
    "try*": try_catch_form,
}
