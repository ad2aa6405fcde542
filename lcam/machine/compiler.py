"""de Bruijn terms to abstract machine code.

```
[[#i]]          = ACCESS(i)
[[n]]           = PUSH(n)
[[c]]           = PUSH(c)                      ; constants are their own runtime value
[[λ. M]]        = CUR[GRAB; [[M]]; RETURN]
[[(M N)]]       = [[N]]; [[M]]; APPLY         ; the argument is evaluated before the function
[[(M + N)]]     = [[M]]; [[N]]; ADD           ; likewise MUL for *
```

A closure's entry code starts with GRAB, which moves the argument into environment slot 0 and shifts every other
binding up by one. That is exactly one more binder between the body and every outer variable, so ACCESS(i) in the body
finds the binding that de Bruijn index i refers to.
"""

from lcam.lang.error import MalformedProgram
from lcam.machine.instructions import Access, Add, Apply, Cur, Grab, Mul, Push, Return
from lcam.pure.terms import Application, BinaryOp, Constant, Lambda, Number, Variable


class Compiler:
    """Compiles converted (de Bruijn) terms. Refuses terms the machine could not run: named variables and indices
    that point past every enclosing binder.
    """
    OPCODES = {"+": Add, "*": Mul}

    def compile(self, term):
        """Returns the program for the closed de Bruijn term term."""
        return tuple(self._compile(term, 0))

    def _compile(self, term, depth):
        """Yields the instructions of term, which sits under depth binders."""
        if isinstance(term, Variable):
            if term.index is None:
                raise MalformedProgram("variable '{}' has not been converted to a de Bruijn index", term)
            if not 0 <= term.index < depth:
                raise MalformedProgram("index {} is out of scope under {} binders", (term.index, depth))
            yield Access(term.index)

        elif isinstance(term, (Number, Constant)):
            yield Push(term.value if isinstance(term, Number) else term)

        elif isinstance(term, Lambda):
            yield Cur((Grab(), *self._compile(term.body, depth + 1), Return()))

        elif isinstance(term, Application):
            yield from self._compile(term.arg, depth)
            yield from self._compile(term.func, depth)
            yield Apply()

        elif isinstance(term, BinaryOp):
            yield from self._compile(term.left, depth)
            yield from self._compile(term.right, depth)
            yield Compiler.OPCODES[term.op]()

        else:
            raise MalformedProgram("'{}' is not a term", repr(term))


def compile(term):
    """Shorthand for Compiler().compile(term)."""
    return Compiler().compile(term)
