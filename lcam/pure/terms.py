"""Typed lambda calculus terms.

Formally, the terms handled by lcam can be defined as

```
<term> ::= <number>                          ; "number", a natural number literal of type Int
         | <identifier>                      ; "variable" or, if declared, "constant"
         | "(" "λ" <identifier> "." <term> ")"           ; "abstraction"
         | "(" "λ" <identifier> ":" <type> "." <term> ")"  ; abstraction with an annotated parameter
         | "(" <term> <term> ")"             ; "application"
         | "(" <term> ("+" | "*") <term> ")"   ; "binary operation" on Ints
```

Every node is immutable. Substitution, alpha-renaming and de Bruijn conversion all build new trees; subtrees that
don't change are shared between the old and new tree, which is safe because nobody ever writes to them. str() of a
term gives back text that the reader accepts.

Sources: https://plato.stanford.edu/entries/lambda-calculus/#Com,
         http://pages.cs.wisc.edu/~horwitz/CS704-NOTES/1.LAMBDA-CALCULUS.html#NOR
"""

from dataclasses import dataclass
from typing import Optional

from lcam.lang.error import MalformedProgram
from lcam.pure.type_system import Type


SUBS = ["₀", "₁", "₂", "₃", "₄", "₅", "₆", "₇", "₈", "₉"]
OPERATORS = ("+", "*")


class Term:
    """Superclass of every term node."""
    __slots__ = ()


@dataclass(frozen=True)
class Variable(Term):
    """Named reference to a binder. After de Bruijn conversion, name is None and index is the number of binders between
    this reference and its own binder (0 = innermost).
    """
    name: Optional[str]
    index: Optional[int] = None

    def __str__(self):
        if self.index is not None:
            return f"#{self.index}"
        return self.name


@dataclass(frozen=True)
class Constant(Term):
    """Opaque value with a declared type, e.g. true : Bool."""
    name: str
    declared_type: Type

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class Number(Term):
    value: int

    def __str__(self):
        return str(self.value)


@dataclass(frozen=True)
class Lambda(Term):
    """Abstraction. param_type is None for an unannotated parameter, in which case inference picks a fresh type
    variable for it.
    """
    param: Optional[str]
    body: Term
    param_type: Optional[Type] = None

    def __str__(self):
        param = self.param if self.param is not None else ""
        if self.param_type is not None:
            param += f":{self.param_type}"
        return f"(λ{param}. {self.body})"


@dataclass(frozen=True)
class Application(Term):
    func: Term
    arg: Term

    def __str__(self):
        return f"({self.func} {self.arg})"


@dataclass(frozen=True)
class BinaryOp(Term):
    op: str
    left: Term
    right: Term

    def __post_init__(self):
        if self.op not in OPERATORS:
            raise ValueError(f"unsupported operator '{self.op}'")

    def __str__(self):
        return f"({self.left} {self.op} {self.right})"


def free_variables(term):
    """Returns the set of names that occur free in term."""
    if isinstance(term, Variable):
        return {term.name} if term.index is None else set()
    elif isinstance(term, (Constant, Number)):
        return set()
    elif isinstance(term, Lambda):
        return free_variables(term.body) - {term.param}
    elif isinstance(term, Application):
        return free_variables(term.func) | free_variables(term.arg)
    elif isinstance(term, BinaryOp):
        return free_variables(term.left) | free_variables(term.right)
    raise MalformedProgram("'{}' is not a term", repr(term))


def split_subscript(name):
    """Splits name into base name and subscript (-1 if there is none)."""
    digits = []
    while name and name[-1] in SUBS:
        digits.insert(0, SUBS.index(name[-1]))
        name = name[:-1]
    return name, int("".join(str(digit) for digit in digits)) if digits else -1


def subscript(name, num):
    """Returns name with subscript of num."""
    return name + "".join(SUBS[int(digit)] for digit in str(num))


def fresh_name(name, used):
    """Returns the next name that is like name but isn't in used: x -> x₀, x₀ -> x₁, ..."""
    base, __ = split_subscript(name)
    max_subscript = -1

    for other in used:
        other_base, other_subscript = split_subscript(other)
        if other_base == base and other_subscript > max_subscript:
            max_subscript = other_subscript

    return subscript(base, max_subscript + 1)


def substitute(term, var, value):
    """Capture-avoiding substitution of value for the free occurences of var in term. A binder that would capture a
    free variable of value is renamed first (alpha conversion).
    """
    if isinstance(term, Variable):
        return value if term.name == var and term.index is None else term

    elif isinstance(term, (Constant, Number)):
        return term

    elif isinstance(term, Lambda):
        if term.param == var:
            return term  # var is shadowed here

        body_free = free_variables(term.body)
        if var not in body_free:
            return term

        param, body = term.param, term.body
        value_free = free_variables(value)
        if param in value_free:
            param = fresh_name(param, value_free | body_free | {var})
            body = substitute(body, term.param, Variable(param))

        return Lambda(param, substitute(body, var, value), term.param_type)

    elif isinstance(term, Application):
        func = substitute(term.func, var, value)
        arg = substitute(term.arg, var, value)
        if func is term.func and arg is term.arg:
            return term
        return Application(func, arg)

    elif isinstance(term, BinaryOp):
        left = substitute(term.left, var, value)
        right = substitute(term.right, var, value)
        if left is term.left and right is term.right:
            return term
        return BinaryOp(term.op, left, right)

    raise MalformedProgram("'{}' is not a term", repr(term))


def alpha_equals(term, other, mapping=None, other_mapping=None, depth=0):
    """Whether or not two terms are equal up to renaming of bound variables. mapping represents the binders of term
    mapped to the depth at which they were introduced, other_mapping is the same for other.
    """
    if mapping is None:
        mapping = {}
    if other_mapping is None:
        other_mapping = {}

    if isinstance(term, Variable) and isinstance(other, Variable):
        if term.index is not None or other.index is not None:
            return term.index == other.index
        if term.name in mapping or other.name in other_mapping:
            return mapping.get(term.name) == other_mapping.get(other.name)
        return term.name == other.name

    elif isinstance(term, Lambda) and isinstance(other, Lambda):
        if term.param_type != other.param_type:
            return False
        return alpha_equals(term.body, other.body, {**mapping, term.param: depth},
                            {**other_mapping, other.param: depth}, depth + 1)

    elif isinstance(term, Application) and isinstance(other, Application):
        return (alpha_equals(term.func, other.func, mapping, other_mapping, depth)
                and alpha_equals(term.arg, other.arg, mapping, other_mapping, depth))

    elif isinstance(term, BinaryOp) and isinstance(other, BinaryOp):
        return (term.op == other.op and alpha_equals(term.left, other.left, mapping, other_mapping, depth)
                and alpha_equals(term.right, other.right, mapping, other_mapping, depth))

    return term == other
