"""Monomorphic types and unification.

```
<type> ::= <const>               ; "Int", "Bool", ...
         | <type> "->" <type>    ; arrows associate right
         | "?" <id>              ; type variable, only produced by inference
```

Types render as `Name`, `(A -> B)` and `?<id>`. That rendering is what ends up in type error messages.

Unification follows Robinson's algorithm over a Substitution (id: type) with an occurs check, so a term like
`λx.(x x)` is rejected instead of silently getting an infinite type.

Source: https://en.wikipedia.org/wiki/Unification_(computer_science)#Syntactic_unification_of_first-order_terms
"""

from dataclasses import dataclass

from lcam.lang.error import ConstantMismatch, KindMismatch, MalformedProgram, OccursCheckFailure


class Type:
    """Superclass of every type. Types are immutable and compare structurally."""
    __slots__ = ()


@dataclass(frozen=True)
class TypeVar(Type):
    id: int

    def __str__(self):
        return f"?{self.id}"


@dataclass(frozen=True)
class TypeArrow(Type):
    domain: Type
    codomain: Type

    def __str__(self):
        return f"({self.domain} -> {self.codomain})"


@dataclass(frozen=True)
class TypeConst(Type):
    name: str

    def __str__(self):
        return self.name


INT = TypeConst("Int")
BOOL = TypeConst("Bool")


class TypeVarGenerator:
    """Source of fresh type variables. One generator is owned by whoever runs inference, so ids never collide within a
    run and independent runs never share a counter.
    """

    def __init__(self, start=0):
        self.start = start
        self.counter = start

    def fresh(self):
        """Returns a TypeVar with an id that this generator has not handed out since its last reset."""
        var = TypeVar(self.counter)
        self.counter += 1
        return var

    def reset(self):
        self.counter = self.start

    def __repr__(self):
        return f"TypeVarGenerator(next={self.counter})"


class Substitution:
    """Mapping of type variable id to Type. Bindings may chain (?0 -> ?1 -> Int), so lookups always go through resolve
    or apply. bind refuses to create a cycle.
    """

    def __init__(self, mapping=None):
        self.mapping = dict(mapping) if mapping else {}

    def resolve(self, t):
        """Follows variable bindings until reaching a non-variable or an unbound variable. Only the top level of t is
        resolved: arrow components are left as is.
        """
        while isinstance(t, TypeVar) and t.id in self.mapping:
            t = self.mapping[t.id]
        return t

    def apply(self, t):
        """Fully resolves t, including the components of arrows."""
        t = self.resolve(t)
        if isinstance(t, TypeArrow):
            return TypeArrow(self.apply(t.domain), self.apply(t.codomain))
        return t

    def occurs(self, var_id, t):
        """Whether or not the type variable var_id appears anywhere in t (looking through bindings)."""
        t = self.resolve(t)
        if isinstance(t, TypeVar):
            return t.id == var_id
        elif isinstance(t, TypeArrow):
            return self.occurs(var_id, t.domain) or self.occurs(var_id, t.codomain)
        return False

    def bind(self, var_id, t):
        """Binds var_id to t. Raises OccursCheckFailure if t contains var_id."""
        if self.occurs(var_id, t):
            raise OccursCheckFailure(TypeVar(var_id), self.apply(t))
        self.mapping[var_id] = t

    def __contains__(self, var_id):
        return var_id in self.mapping

    def __getitem__(self, var_id):
        return self.mapping[var_id]

    def __len__(self):
        return len(self.mapping)

    def __iter__(self):
        return iter(self.mapping)

    def __repr__(self):
        bindings = ", ".join(f"?{var_id} := {t}" for var_id, t in self.mapping.items())
        return f"Substitution({bindings})"


def unify(left, right, substitution):
    """Extends substitution so that left and right resolve to the same type. Returns substitution. Raises
    OccursCheckFailure, ConstantMismatch or KindMismatch if that's impossible; the domains of two arrows are unified
    before (and instead of, on failure) their codomains.
    """
    left = substitution.resolve(left)
    right = substitution.resolve(right)

    if isinstance(left, TypeVar) and isinstance(right, TypeVar) and left.id == right.id:
        return substitution

    if isinstance(left, TypeVar):
        substitution.bind(left.id, right)
    elif isinstance(right, TypeVar):
        substitution.bind(right.id, left)

    elif isinstance(left, TypeArrow) and isinstance(right, TypeArrow):
        unify(left.domain, right.domain, substitution)
        unify(left.codomain, right.codomain, substitution)

    elif isinstance(left, TypeConst) and isinstance(right, TypeConst):
        if left.name != right.name:
            raise ConstantMismatch(left.name, right.name)

    elif isinstance(left, (TypeArrow, TypeConst)) and isinstance(right, (TypeArrow, TypeConst)):
        raise KindMismatch(substitution.apply(left), substitution.apply(right))

    else:
        raise MalformedProgram("cannot unify non-types '{}' and '{}'", (repr(left), repr(right)))

    return substitution


def types_equivalent(left, right, mapping=None, other_mapping=None):
    """Whether or not two fully-resolved types are equal up to a consistent renaming of type variables. mapping
    represents the renaming from left's variables to right's, other_mapping is the reverse.
    """
    if mapping is None:
        mapping = {}
    if other_mapping is None:
        other_mapping = {}

    if isinstance(left, TypeVar) and isinstance(right, TypeVar):
        if left.id in mapping or right.id in other_mapping:
            return mapping.get(left.id) == right.id and other_mapping.get(right.id) == left.id
        mapping[left.id] = right.id
        other_mapping[right.id] = left.id
        return True

    elif isinstance(left, TypeArrow) and isinstance(right, TypeArrow):
        return (types_equivalent(left.domain, right.domain, mapping, other_mapping)
                and types_equivalent(left.codomain, right.codomain, mapping, other_mapping))

    return isinstance(left, TypeConst) and left == right
