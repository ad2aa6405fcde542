"""Error handling for lcam. Only GenericExceptions should be encountered during running: if another type of error is
raised and makes it all the way to ErrorHandler, it is assumed to be an internal issue.

Errors come in two flavors. Recoverable errors (ParseError, UnboundVariable, TypeMismatch, OccursCheckFailure and the
RuntimeFailures) are expected outcomes of ill-formed input. Internal errors (MalformedProgram, InvalidFinalState,
StrategyMismatch) mean the compiler or the machine broke an invariant, and are reported as such.
"""

import sys

from termcolor import colored


class GenericException(Exception):
    """Templates an error/warning message so that it can be used to throw a lcam error/warning."""

    def __init__(self, msg, exprs=None, start=0, end=-1, diagnosis=True, internal=False):
        """Parses args for GenericException or warning."""
        if exprs is None:
            exprs = ""
        if not isinstance(exprs, (list, tuple)):
            exprs = [exprs]
        exprs = [str(expr) for expr in exprs]

        super().__init__(msg.format(*exprs))
        self.msg = msg.format(*(colored(expr, attrs=["bold"]) for expr in exprs))  # color expr snippets
        self.expr = exprs[0]  # exprs[0] should be the offending expr that caused the error
        self.end = end if end != -1 else len(self.expr)  # needed for error display

        self.start = start
        self.diagnosis = diagnosis
        self.internal = internal

    def locate(self, line, start, end):
        """Points this error's diagnosis at line[start:end]. Returns self."""
        self.expr = line
        self.start = start
        self.end = end
        self.diagnosis = True
        return self


class ParseError(GenericException):
    """Raised by the reader when text is not valid term or type grammar."""

    def __init__(self, msg, exprs, start=0, end=-1):
        super().__init__(msg, exprs, start=start, end=end)


class UnboundVariable(GenericException):
    """A variable was referenced outside of any binder and is not in the typing context."""

    def __init__(self, name):
        super().__init__("unbound variable '{}'", name, diagnosis=False)
        self.name = name


class TypeMismatch(GenericException):
    """Two types could not be unified."""

    def __init__(self, msg, left, right):
        super().__init__(msg, (left, right), diagnosis=False)
        self.left = str(left)
        self.right = str(right)

        self.function_type = None
        self.argument_type = None

    def in_application(self, function_type, argument_type):
        """Annotates this error with the rendered operand types of the application that caused it. Returns self."""
        self.function_type = str(function_type)
        self.argument_type = str(argument_type)

        note = " in application of '{}' to '{}'"
        self.args = (self.args[0] + note.format(self.function_type, self.argument_type),)
        self.msg += note.format(colored(self.function_type, attrs=["bold"]),
                                colored(self.argument_type, attrs=["bold"]))
        return self


class ConstantMismatch(TypeMismatch):
    """Two distinct type constants, e.g. Bool and Int."""

    def __init__(self, left, right):
        super().__init__("type '{}' does not match type '{}'", left, right)


class KindMismatch(TypeMismatch):
    """A function type was unified with a type constant."""

    def __init__(self, left, right):
        super().__init__("'{}' and '{}' are not the same kind of type", left, right)


class OccursCheckFailure(TypeMismatch):
    """Binding a type variable would produce an infinite type."""

    def __init__(self, var, other):
        super().__init__("'{}' occurs in '{}' (infinite type)", var, other)


class RuntimeFailure(GenericException):
    """Superclass for errors raised while running a program."""

    def __init__(self, msg, exprs=None):
        super().__init__(msg, exprs, diagnosis=False)


class StackUnderflow(RuntimeFailure):

    def __init__(self, instruction):
        super().__init__("'{}' popped an empty operand stack", instruction)
        self.instruction = instruction


class IndexOutOfRange(RuntimeFailure):

    def __init__(self, index, size):
        super().__init__("access to index {} in an environment of size {}", (index, size))
        self.index = index
        self.size = size


class MachineTypeError(RuntimeFailure):
    """An operand had the wrong runtime shape, e.g. adding a closure or applying a number."""

    def __init__(self, instruction, value):
        super().__init__("'{}' cannot operate on '{}'", (instruction, value))
        self.instruction = instruction
        self.value = value


class ResourceExhausted(RuntimeFailure):
    """A run went past one of its configured limits."""

    def __init__(self, resource, limit):
        super().__init__("{} limit of {} exceeded", (resource, limit))
        self.resource = resource
        self.limit = limit


class MalformedProgram(GenericException):
    """A term or instruction sequence that the compiler/machine should never have been handed."""

    def __init__(self, msg, exprs=None):
        super().__init__(msg, exprs, diagnosis=False, internal=True)


class InvalidFinalState(GenericException):

    def __init__(self, stack):
        super().__init__("machine halted with {} values on the operand stack", len(stack), diagnosis=False,
                         internal=True)
        self.stack = list(stack)


class StrategyMismatch(GenericException):
    """The abstract machine and the reducer disagree on a term's value."""

    def __init__(self, term, machine_value, normal_form):
        msg = "'{}' evaluates to '{}' on the machine but reduces to '{}'"
        super().__init__(msg, (term, machine_value, normal_form), diagnosis=False, internal=True)


class ErrorHandler:
    """Context manager that will silently suppress Python errors and raise custom lcam errors/warnings. Also records
    the reduction/machine steps of the statement currently being run.
    """
    ERROR = "red"
    WARNING = "magenta"

    def __init__(self, fatal=True, trace=False):
        self.fatal = fatal
        self.trace = trace
        self.traceback = {}
        self.steps = []

    def register_file(self, path):
        """Registers path in traceback."""
        self.traceback[path] = (None, None)

    def register_line(self, path, line, line_num):
        """Registers line in traceback given path. Should be called prior to Session add/run."""
        self.traceback[path] = (line, line_num)

    def remove_line(self, path):
        """Removes line from traceback given path. Should be called after successful Session add/run."""
        self.traceback[path] = (None, None)

    def register_step(self, kind, expr):
        """Records a single evaluation step. kind is 'β'/'δ' for the reducer and an instruction name for the machine.
        """
        self.steps.append((kind, expr))
        if self.trace:
            print(colored(f"  {kind:<8} {expr}", attrs=["dark"]))

    def clear_steps(self):
        self.steps = []

    @staticmethod
    def diagnose(error, warning=False):
        """Returns offending part of error.expr highlighted and bolded."""
        color = ErrorHandler.WARNING if warning else ErrorHandler.ERROR

        diagnosis = "  " + error.expr[:error.start]

        end = max(error.end, 1)
        diagnosis += colored(error.expr[error.start:end], color, attrs=["bold"])
        diagnosis += error.expr[end:] + "\n"

        diagnosis += "  " + " " * error.start
        diagnosis += colored("^" + "~" * (end - error.start - 1), color, attrs=["bold"])

        return diagnosis

    def warn(self, *args, **kwargs):
        """Generates and prints runtime warning message based on args."""
        error = GenericException(*args, **kwargs)

        location = ""
        for file, (line, line_num) in self.traceback.items():
            if line:
                col = max(line.find(error.expr), 0) + error.start
                location = colored(f"{file}:{line_num}:{col}: ", attrs=["bold"])
                break

        print(location + colored("warning: ", ErrorHandler.WARNING, attrs=["bold"]) + error.msg)

        if not error.internal and error.expr and error.diagnosis:
            print(ErrorHandler.diagnose(error, warning=True))

    def throw(self, error):
        """Throws error using error and self.traceback. error must be a GenericException, and self.traceback must be a
        dict of file: (line, line_num) representing origination of error.
        """
        error_msg = ""
        lines = 0
        for file, (line, line_num) in self.traceback.items():  # assumes dict is insertion-ordered
            if line:
                error_msg += f"  File '{file}', line {line_num}:\n"
                error_msg += f"    {line}\n"
                lines += 1

        if lines > 1:
            error_msg = "Traceback:\n" + error_msg

        if error.internal:
            error_msg += colored("[internal] ", ErrorHandler.ERROR, attrs=["bold"])

        error_msg += colored("error: ", ErrorHandler.ERROR, attrs=["bold"]) + error.msg
        print(error_msg)

        if not error.internal and error.expr and error.diagnosis:
            print(ErrorHandler.diagnose(error))

        if self.fatal:
            sys.exit(1)
        self.traceback = {path: (None, None) for path in self.traceback}  # if error occurred, reset traceback

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        do_exit = False
        if exc_type is KeyboardInterrupt:
            self.throw(GenericException("keyboard interrupt"))
        elif exc_type is SystemExit:
            do_exit = True
        elif exc_type is RecursionError:
            self.throw(GenericException("term is nested too deeply: maximum recursion depth exceeded"))
        elif exc_type is not None and issubclass(exc_type, GenericException):
            self.throw(exc_val)
        elif exc_type is not None:
            self.throw(GenericException("unknown error: '{}: {}'", (exc_type.__name__, exc_val), internal=True))
            do_exit = True

        return not do_exit
