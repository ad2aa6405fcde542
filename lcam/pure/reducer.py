"""Substitution-based reference evaluator.

NormalOrderReducer repeatedly contracts the leftmost outermost redex of a term until none is left. There are two
kinds of redex:

- β: `((λx. M) N)` becomes `M[x := N]` (capture-avoiding, see terms.substitute)
- δ: `(n + m)` / `(n * m)` with both sides numbers becomes a number

Reduction also happens under abstractions, so the result is the β-normal form. It works directly on named terms and
knows nothing about environments or bytecode, which is what makes it a useful oracle for the abstract machine.
"""

from lcam.lang.error import MalformedProgram, ResourceExhausted
from lcam.pure.terms import Application, BinaryOp, Constant, Lambda, Number, Variable, substitute


class NormalOrderReducer:
    """Implements normal-order reduction of a term. tracer is anything with a register_step(kind, expr) method (usually
    an ErrorHandler), and is told about every step taken.
    """
    STEP_LIMIT = 10000

    def __init__(self, term, tracer=None, step_limit=None):
        self.original = term
        self.term = term
        self.tracer = tracer
        self.step_limit = step_limit if step_limit is not None else NormalOrderReducer.STEP_LIMIT

        self.steps = 0
        self.reduced = False

    @staticmethod
    def step(term):
        """Contracts the leftmost outermost redex of term. Returns (new term, 'β' or 'δ'), or (term, None) if term is
        already in normal form.
        """
        if isinstance(term, (Variable, Constant, Number)):
            return term, None

        elif isinstance(term, Lambda):
            body, kind = NormalOrderReducer.step(term.body)
            if kind is None:
                return term, None
            return Lambda(term.param, body, term.param_type), kind

        elif isinstance(term, Application):
            if isinstance(term.func, Lambda):
                return substitute(term.func.body, term.func.param, term.arg), "β"

            func, kind = NormalOrderReducer.step(term.func)
            if kind is not None:
                return Application(func, term.arg), kind

            arg, kind = NormalOrderReducer.step(term.arg)
            if kind is not None:
                return Application(term.func, arg), kind
            return term, None

        elif isinstance(term, BinaryOp):
            if isinstance(term.left, Number) and isinstance(term.right, Number):
                if term.op == "+":
                    return Number(term.left.value + term.right.value), "δ"
                return Number(term.left.value * term.right.value), "δ"

            left, kind = NormalOrderReducer.step(term.left)
            if kind is not None:
                return BinaryOp(term.op, left, term.right), kind

            right, kind = NormalOrderReducer.step(term.right)
            if kind is not None:
                return BinaryOp(term.op, term.left, right), kind
            return term, None

        raise MalformedProgram("'{}' is not a term", repr(term))

    def reduce(self):
        """Reduces self.term to normal form and returns it. Raises ResourceExhausted if the term has no normal form:
        either a term repeats (e.g. Ω = (λx.(x x)) (λx.(x x))) or more than self.step_limit steps are needed. No
        step past the limit is ever taken.
        """
        seen = {self.term}

        while True:
            term, kind = NormalOrderReducer.step(self.term)
            if kind is None:
                break

            if self.steps >= self.step_limit:
                raise ResourceExhausted("reduction step", self.step_limit)

            self.steps += 1
            self.term = term
            if self.tracer is not None:
                self.tracer.register_step(kind, str(term))

            if term in seen:  # a repeated term repeats forever
                raise ResourceExhausted("reduction step", self.step_limit)
            seen.add(term)

        self.reduced = True
        return self.term

    def __repr__(self):
        return f"NormalOrderReducer({self.term}, steps={self.steps})"


def normalize(term, tracer=None, step_limit=None):
    """Returns the normal form of term."""
    return NormalOrderReducer(term, tracer, step_limit).reduce()
