"""Handles interactive/command-line mode for lcam. Uses cmd as backend."""

import cmd

from lcam.lang.reader import read
from lcam.machine.compiler import Compiler
from lcam.machine.debruijn import convert
from lcam.machine.instructions import format_program
from lcam.pure.inference import TypeInferencer


class Shell(cmd.Cmd):
    """lcam interpreter shell."""
    intro = "Typed lambda calculus :: CAM backend\nType '?' or 'help' for more information."
    prompt = "> "
    secondary_prompt = ". "  # used for line continuations
    _tmp_prompt = "> "       # also used for prompt swapping in line continuations

    def __init__(self, sess, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.sess = sess

        self._tmp_line = ""
        self.line_num = 0

    def default(self, line):
        """Evaluates an arbitrary lcam term."""
        with self.sess.error_handler:  # needed because cmd.Cmd automatically exits on Exception
            self.line_num += 1
            line, add_to_prev = self.sess.preprocess_line(f"{self._tmp_line} {line}", self.line_num, self._tmp_line)

            if add_to_prev:
                self._tmp_line = line
                self.prompt = self.secondary_prompt
            else:
                self._tmp_line = ""
                self.prompt = self._tmp_prompt

                if not line:
                    return

                self.sess.add(line, self.line_num)
                self.sess.run()

                if self.sess.results:
                    print(self.sess.pop())

    def do_type(self, arg):
        """Prints the type of a term without running it: type TERM"""
        with self.sess.error_handler:
            self.line_num += 1
            self.sess.error_handler.register_line(self.sess.path, arg, self.line_num)
            print(TypeInferencer(self.sess.generator).infer(read(arg, self.sess.constants), self.sess.constants))
            self.sess.error_handler.remove_line(self.sess.path)

    def do_code(self, arg):
        """Prints the compiled program of a term without running it: code TERM"""
        with self.sess.error_handler:
            self.line_num += 1
            self.sess.error_handler.register_line(self.sess.path, arg, self.line_num)
            print(format_program(Compiler().compile(convert(read(arg, self.sess.constants)))))
            self.sess.error_handler.remove_line(self.sess.path)

    def do_help(self, arg):
        """Doesnt return docs, but rather a short intro."""
        print("Welcome to the lcam interpreter!\n\n"
              "Every line is a term of the simply typed lambda calculus with numbers: \n"
              "'((lambda x. (x + 1)) 41)' or '((λf:(Int -> Int). (f 1)) (λx. (x * 2)))'. \n"
              "A term is type checked, compiled for a Categorical Abstract Machine and run, \n"
              "and the result is cross-checked against plain beta reduction.\n\n"
              "'type TERM' prints a term's type and 'code TERM' its compiled program.")

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        return ""

    def do_EOF(self, arg):
        """Exits interpreter."""
        print()
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits interpreter."""
        return True
