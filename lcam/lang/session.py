"""Session control for lcam. Runs statements through the whole pipeline, either in command line mode or file
interpretation mode:

    read -> infer -> convert -> compile -> execute
               \\-> normalize (cross-check against the machine's value)

Every statement is a single term. Statements are independent: a failed statement doesn't affect the next one.
"""

from dataclasses import dataclass
from typing import Any, Optional, Tuple

from lcam.lang.error import GenericException, ResourceExhausted, StrategyMismatch, UnboundVariable
from lcam.lang.reader import free_occurrence, read
from lcam.machine.cam import Closure, Machine
from lcam.machine.compiler import Compiler
from lcam.machine.debruijn import convert
from lcam.machine.instructions import Instruction
from lcam.pure.inference import TypeInferencer
from lcam.pure.reducer import NormalOrderReducer
from lcam.pure.terms import Constant, Number, Term
from lcam.pure.type_system import BOOL, Type, TypeVarGenerator


@dataclass(frozen=True)
class Evaluation:
    """Everything a session found out about one statement."""
    source: str
    term: Term
    type: Type
    program: Tuple[Instruction, ...]
    value: Any
    normal_form: Optional[Term] = None

    def __str__(self):
        return f"{Machine.show(self.value)} : {self.type}"


class Session:
    """Governs a lcam session: the constants in scope, the statements waiting to be run and their results."""
    SH_FILE = "<in>"  # command-line interpreter filename
    DEFAULT_CONSTANTS = {"true": BOOL, "false": BOOL}

    def __init__(self, error_handler, path, cmd_line, constants=None, check=True, step_limit=None):
        self.error_handler = error_handler
        self.error_handler.register_file(path)

        self.path = path                # used for error messages
        self.cmd_line = cmd_line        # whether or not in command-line mode
        self.check = check              # whether or not to cross-check the machine against the reducer
        self.step_limit = step_limit    # machine instruction limit (None = Machine.STEP_LIMIT)

        self.constants = dict(Session.DEFAULT_CONSTANTS if constants is None else constants)
        self.generator = TypeVarGenerator()  # shared by every statement, so ?ids are unique within the session

        self.to_exec = {}   # dict of line num: (source, term) to execute
        self.results = []   # list of Evaluations, oldest first

        if self.cmd_line:
            self.error_handler.fatal = False

        if path != Session.SH_FILE:
            exprs = []
            add_to_prev = False

            try:
                with open(path, "r", encoding="utf-8") as file:
                    for line_num, line in enumerate(file):
                        __, add_to_prev = self.preprocess_line(line, line_num + 1, add_to_prev, exprs)
            except OSError:
                raise GenericException("'{}' could not be opened", path, diagnosis=False)

            for expr, line_num in exprs:
                self.add(expr, line_num)

        elif not cmd_line:
            raise GenericException("'<in>' is a reserved filename")

    @staticmethod
    def preprocess_line(line, line_num, add_to_prev, exprs=None):
        """Preprocesses a line from a file or command-line. In command-line mode, exprs can be ignored (used to keep
        track of file's exprs), but add_to_prev will indicate whether a line continuation is necessary. Returns
        updated value of line and add_to_prev. Must be called before calling add.
        """
        if ";;" in line:
            line = line[:line.index(";;")]  # get rid of comments

        line = line.strip()
        if not line:
            return line, bool(add_to_prev)  # blank and comment-only lines don't end a continuation

        if exprs is not None:
            if add_to_prev and exprs:
                prev, prev_num = exprs.pop()
                line = f"{prev} {line}"
                line_num = prev_num
            exprs.append((line, line_num))

        return line, line.count("(") > line.count(")")

    def add(self, expr, line_num):
        """Reads expr and queues it to be run. Evaluation is delayed until run is called."""
        self.error_handler.register_line(self.path, expr, line_num)  # in case error is raised

        self.to_exec[line_num] = (expr, read(expr, self.constants))

        self.error_handler.remove_line(self.path)  # error was not raised

    def run(self):
        """Runs this session's queued statements in order, appending an Evaluation per statement to self.results. Will
        raise any errors that are encountered.
        """
        for line_num, (expr, term) in list(self.to_exec.items()):
            self.error_handler.register_line(self.path, expr, line_num)
            self.error_handler.clear_steps()

            try:
                self.results.append(self.evaluate(expr, term))
            except UnboundVariable as error:
                token = free_occurrence(expr, error.name)
                if token is not None:
                    error.locate(expr, token.start, token.end)
                raise
            finally:
                del self.to_exec[line_num]  # never rerun a statement, even one that failed

            self.error_handler.remove_line(self.path)

    def evaluate(self, expr, term):
        """Types, compiles, runs and (if self.check) cross-checks term. expr is term's source text. A cross-check
        that runs out of reduction steps is skipped with a warning, leaving normal_form None.
        """
        tracer = self.error_handler if self.error_handler.trace else None
        term_type = TypeInferencer(self.generator).infer(term, self.constants)

        program = Compiler().compile(convert(term))
        value = Machine(tracer, step_limit=self.step_limit).run(program)

        normal_form = None
        if self.check:
            try:
                normal_form = NormalOrderReducer(term, tracer).reduce()
            except ResourceExhausted as error:
                self.error_handler.warn("'{}' was not cross-checked: {}", (expr, error), diagnosis=False)

            if normal_form is not None and not Session.agree(value, normal_form):
                raise StrategyMismatch(expr, Machine.show(value), normal_form)

        return Evaluation(expr, term, term_type, program, value, normal_form)

    @staticmethod
    def agree(value, normal_form):
        """Whether or not a machine value and a normal form describe the same value. Closures can't be compared with
        terms, so any closure agrees with any normal form that isn't a first-order value.
        """
        if isinstance(value, Closure):
            return not isinstance(normal_form, (Number, Constant))
        elif isinstance(value, Constant):
            return value == normal_form
        return isinstance(normal_form, Number) and normal_form.value == value

    def pop(self):
        """Removes and returns the oldest result."""
        return self.results.pop(0)
