"""Categorical Abstract Machine.

The machine state is (code, environment, stack, dump):

- code: the instructions left to run (a program plus a program counter)
- environment: bound values, index 0 being the innermost binding, the same numbering as de Bruijn indices
- stack: operand stack
- dump: saved (code, environment) pairs, one per closure call that hasn't returned yet

A run starts with the program, an empty environment, stack and dump, and stops when the program has run out and the
dump is empty. At that point exactly one value, the result, must be left on the stack.

Transitions (one instruction per step):

```
  code              environment   stack          dump             ->  code       environment   stack        dump
  ACCESS(i); c      e             s              d                    c          e             e[i]; s      d
  PUSH(v); c        e             s              d                    c          e             v; s         d
  CUR[c']; c        e             s              d                    c          e             <c', e>; s   d
  GRAB; c           e             v; s           d                    c          v; e          s            d
  APPLY; c          e             <c', e'>; v; s d                    c'         e'            v; s         (c, e); d
  RETURN; c         e             v; s           (c', e'); d          c'         e'            v; s         d
  ADD; c            e             m; n; s        d                    c          e             n + m; s     d
```

Sources: Cousineau, Curien, Mauny, "The Categorical Abstract Machine" (1987),
         https://en.wikipedia.org/wiki/Categorical_abstract_machine
"""

from dataclasses import dataclass
from typing import Any, Tuple

from lcam.lang.error import (IndexOutOfRange, InvalidFinalState, MachineTypeError, MalformedProgram,
                             ResourceExhausted, StackUnderflow)
from lcam.machine.instructions import Access, Add, Apply, Cur, Grab, Instruction, Mul, Push, Return, format_program


@dataclass(frozen=True)
class Closure:
    """Runtime function value: entry code plus the environment it was created in."""
    code: Tuple[Instruction, ...]
    environment: Tuple[Any, ...]

    def __str__(self):
        return f"<closure [{format_program(self.code)}] over {len(self.environment)} bindings>"


class Machine:
    """Runs programs produced by lcam.machine.compiler. Every run starts from a fresh state, so a failed run leaves
    nothing behind for the next one. tracer is anything with a register_step(kind, expr) method.
    """
    STEP_LIMIT = 100000
    DUMP_LIMIT = 10000
    STACK_LIMIT = 10000

    def __init__(self, tracer=None, step_limit=None, dump_limit=None, stack_limit=None):
        self.tracer = tracer
        self.step_limit = step_limit if step_limit is not None else Machine.STEP_LIMIT
        self.dump_limit = dump_limit if dump_limit is not None else Machine.DUMP_LIMIT
        self.stack_limit = stack_limit if stack_limit is not None else Machine.STACK_LIMIT

        self.reset(())

    def reset(self, program):
        """Loads program with an empty environment, stack and dump."""
        self.code = tuple(program)
        self.pc = 0
        self.environment = ()
        self.stack = []
        self.dump = []

        self.steps = 0
        self.halted = False

    def run(self, program):
        """Runs program to completion and returns its result."""
        self.reset(program)

        while not self.halted:
            if self.pc >= len(self.code):
                if self.dump:
                    raise MalformedProgram("code ran out inside a closure call ({} frames on the dump)", len(self.dump))
                break
            self.step()

        if len(self.stack) != 1:
            raise InvalidFinalState(self.stack)
        return self.stack[0]

    def step(self):
        """Executes the next instruction."""
        if self.steps >= self.step_limit:
            raise ResourceExhausted("instruction", self.step_limit)

        instruction = self.code[self.pc]
        self.pc += 1
        self.steps += 1

        if isinstance(instruction, Push):
            self._push(instruction.value)

        elif isinstance(instruction, Access):
            if not 0 <= instruction.index < len(self.environment):
                raise IndexOutOfRange(instruction.index, len(self.environment))
            self._push(self.environment[instruction.index])

        elif isinstance(instruction, Cur):
            self._push(Closure(instruction.code, self.environment))

        elif isinstance(instruction, Grab):
            self.environment = (self._pop(instruction),) + self.environment

        elif isinstance(instruction, Apply):
            # [[(M N)]] = [[N]]; [[M]]; APPLY, so the closure is on top and its argument is right below it. The
            # argument stays on the stack for the GRAB at the closure's entry.
            closure = self._pop(instruction)
            if not isinstance(closure, Closure):
                raise MachineTypeError(instruction, closure)
            if not self.stack:
                raise StackUnderflow(instruction)
            if len(self.dump) >= self.dump_limit:
                raise ResourceExhausted("dump depth", self.dump_limit)

            self.dump.append((self.code, self.pc, self.environment))
            self.code, self.pc, self.environment = closure.code, 0, closure.environment

        elif isinstance(instruction, Return):
            result = self._pop(instruction)
            if not self.dump:
                self._push(result)
                self.halted = True
            else:
                self.code, self.pc, self.environment = self.dump.pop()
                self._push(result)

        elif isinstance(instruction, (Add, Mul)):
            right = self._pop(instruction)
            left = self._pop(instruction)
            for operand in (left, right):
                if not isinstance(operand, int) or isinstance(operand, bool):
                    raise MachineTypeError(instruction, operand)
            self._push(left + right if isinstance(instruction, Add) else left * right)

        else:
            raise MalformedProgram("'{}' is not an instruction", repr(instruction))

        if self.tracer is not None:
            self.tracer.register_step(str(instruction) if not isinstance(instruction, Cur) else "CUR", self.describe())

    def describe(self):
        """One line summary of the current state."""
        env = ", ".join(Machine.show(value) for value in self.environment)
        stack = ", ".join(Machine.show(value) for value in reversed(self.stack))
        return f"env=[{env}] stack=[{stack}] dump={len(self.dump)}"

    @staticmethod
    def show(value):
        """Short rendering of a runtime value."""
        if isinstance(value, Closure):
            return f"<closure/{len(value.environment)}>"
        return str(value)

    def _push(self, value):
        if len(self.stack) >= self.stack_limit:
            raise ResourceExhausted("operand stack", self.stack_limit)
        self.stack.append(value)

    def _pop(self, instruction):
        if not self.stack:
            raise StackUnderflow(instruction)
        return self.stack.pop()


def execute(program, tracer=None):
    """Shorthand for Machine(tracer).run(program)."""
    return Machine(tracer).run(program)
