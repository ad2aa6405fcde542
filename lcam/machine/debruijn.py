"""Named terms to de Bruijn (index-addressed) terms.

A variable's index is the number of binders between the variable and the binder it refers to, so in `λx.λy.(x y)`
x becomes #1 and y becomes #0. The converted term keeps no identifier spellings at all, which means alpha-equivalent
terms convert to equal terms.

Free variables are not allowed: the machine has nowhere to look them up, so an unbound name is an error.

Source: https://en.wikipedia.org/wiki/De_Bruijn_index
"""

from lcam.lang.error import MalformedProgram, UnboundVariable
from lcam.pure.terms import Application, BinaryOp, Constant, Lambda, Number, Variable


def convert(term, binding_depths=None, depth=0):
    """Returns term with every Variable replaced by its de Bruijn index. binding_depths maps each name bound around
    term to the depth of its binder, and depth is the number of binders around term. Raises UnboundVariable for a name
    that isn't bound.
    """
    if binding_depths is None:
        binding_depths = {}

    if isinstance(term, Variable):
        if term.index is not None:
            raise MalformedProgram("'{}' has already been converted", term)
        if term.name not in binding_depths:
            raise UnboundVariable(term.name)
        return Variable(None, depth - binding_depths[term.name] - 1)

    elif isinstance(term, (Constant, Number)):
        return term

    elif isinstance(term, Lambda):
        # new dict, so the binding is forgotten (and any outer binding of the same name restored) on the way out
        body = convert(term.body, {**binding_depths, term.param: depth}, depth + 1)
        return Lambda(None, body, term.param_type)

    elif isinstance(term, Application):
        return Application(convert(term.func, binding_depths, depth), convert(term.arg, binding_depths, depth))

    elif isinstance(term, BinaryOp):
        return BinaryOp(term.op, convert(term.left, binding_depths, depth), convert(term.right, binding_depths, depth))

    raise MalformedProgram("'{}' is not a term", repr(term))
