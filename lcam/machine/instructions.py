"""Instruction set of the abstract machine. A program is a tuple of instructions.

| instruction | effect                                                                |
|-------------|-----------------------------------------------------------------------|
| ACCESS(i)   | push environment[i]                                                   |
| PUSH(v)     | push the literal v                                                    |
| CUR[c]      | push a closure of code c over the current environment                 |
| GRAB        | pop a value and bind it at environment index 0                        |
| APPLY       | call the closure on top of the stack, saving code/environment on dump |
| RETURN      | return to the code/environment on top of the dump                     |
| ADD, MUL    | pop two numbers and push their sum/product                            |
"""

from dataclasses import dataclass
from typing import Any, Tuple


class Instruction:
    """Superclass of every instruction."""
    __slots__ = ()

    def __str__(self):
        return type(self).__name__.upper()


@dataclass(frozen=True)
class Access(Instruction):
    index: int

    def __str__(self):
        return f"ACCESS({self.index})"


@dataclass(frozen=True)
class Push(Instruction):
    value: Any

    def __str__(self):
        return f"PUSH({self.value})"


@dataclass(frozen=True)
class Cur(Instruction):
    """Closure construction. code is the closure's entry code: GRAB, the body, then RETURN."""
    code: Tuple[Instruction, ...]

    def __str__(self):
        return f"CUR[{format_program(self.code)}]"


@dataclass(frozen=True)
class Grab(Instruction):
    pass


@dataclass(frozen=True)
class Return(Instruction):
    pass


@dataclass(frozen=True)
class Apply(Instruction):
    pass


@dataclass(frozen=True)
class Add(Instruction):
    pass


@dataclass(frozen=True)
class Mul(Instruction):
    pass


def format_program(program):
    """Renders program as 'PUSH(1); PUSH(2); ADD'."""
    return "; ".join(str(instruction) for instruction in program)
