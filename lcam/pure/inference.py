"""Monomorphic type inference for lcam terms.

Inference walks a term against a typing context (name: Type), allocating a fresh type variable for every unannotated
parameter and every application result, and unifying as it goes. There is no let and no generalization: a type
variable, once bound, is bound for the rest of the run.
"""

from lcam.lang.error import MalformedProgram, TypeMismatch, UnboundVariable
from lcam.pure.terms import Application, BinaryOp, Constant, Lambda, Number, Variable
from lcam.pure.type_system import INT, Substitution, TypeArrow, TypeVarGenerator, unify


class TypeInferencer:
    """Infers types of terms. Each call to infer starts from an empty Substitution, but type variable ids come from
    self.generator, so several calls on the same TypeInferencer never reuse an id.
    """

    def __init__(self, generator=None):
        self.generator = generator if generator is not None else TypeVarGenerator()
        self.substitution = Substitution()

    def infer(self, term, context=None):
        """Returns the fully resolved type of term under context. Raises UnboundVariable, a TypeMismatch or
        OccursCheckFailure, in which case no type is returned at all.
        """
        self.substitution = Substitution()
        return self.substitution.apply(self._infer(term, dict(context) if context else {}))

    def _infer(self, term, context):
        if isinstance(term, Constant):
            return term.declared_type

        elif isinstance(term, Number):
            return INT

        elif isinstance(term, Variable):
            if term.name is None:
                raise MalformedProgram("cannot infer the type of index-addressed variable '{}'", term)
            if term.name not in context:
                raise UnboundVariable(term.name)
            return context[term.name]

        elif isinstance(term, Lambda):
            if term.param is None:
                raise MalformedProgram("cannot infer the type of index-addressed abstraction '{}'", term)
            param_type = term.param_type if term.param_type is not None else self.generator.fresh()
            body_type = self._infer(term.body, {**context, term.param: param_type})  # shadows outer term.param
            return TypeArrow(param_type, body_type)

        elif isinstance(term, Application):
            func_type = self._infer(term.func, context)
            arg_type = self._infer(term.arg, context)
            result_type = self.generator.fresh()

            try:
                unify(func_type, TypeArrow(arg_type, result_type), self.substitution)
            except TypeMismatch as error:
                raise error.in_application(self.substitution.apply(func_type), self.substitution.apply(arg_type))

            return self.substitution.resolve(result_type)

        elif isinstance(term, BinaryOp):
            for operand in (term.left, term.right):
                unify(self._infer(operand, context), INT, self.substitution)
            return INT

        raise MalformedProgram("'{}' is not a term", repr(term))


def infer(term, context=None, generator=None):
    """Shorthand for TypeInferencer(generator).infer(term, context)."""
    return TypeInferencer(generator).infer(term, context)
