import dataclasses
import unittest

from lcam.lang.reader import read
from lcam.pure.terms import (Application, BinaryOp, Lambda, Number, Variable, alpha_equals, free_variables,
                             fresh_name, split_subscript, substitute)
from lcam.pure.type_system import BOOL, INT, TypeArrow


class TermTestCase(unittest.TestCase):

    def test_str(self):
        cases = {
            "(λx. (x + 1))": Lambda("x", BinaryOp("+", Variable("x"), Number(1))),
            "(λf:(Int -> Int). (f 1))": Lambda("f", Application(Variable("f"), Number(1)), TypeArrow(INT, INT)),
            "((λx:Bool. x) y)": Application(Lambda("x", Variable("x"), BOOL), Variable("y")),
            "(λ. #0)": Lambda(None, Variable(None, 0)),
            "(2 * 21)": BinaryOp("*", Number(2), Number(21)),
        }
        for expected, case in cases.items():
            self.assertEqual(expected, str(case), expected)

    def test_str_reads_back(self):
        cases = [
            "((lambda x. (x + 1)) 42)",
            "(lambda f:(Int -> Int). (lambda x. (f (f x))))",
            "((lambda x:Bool. x) y)",
            "(lambda g:((Int -> Bool) -> Int). g)",
        ]
        for case in cases:
            term = read(case)
            self.assertEqual(term, read(str(term)), case)

    def test_immutable(self):
        term = Lambda("x", Variable("x"))
        with self.assertRaises(dataclasses.FrozenInstanceError):
            term.param = "y"

    def test_operators(self):
        self.assertRaises(ValueError, BinaryOp, "-", Number(1), Number(2))


class FreeVariablesTestCase(unittest.TestCase):

    def test_free_variables(self):
        cases = {
            "x": {"x"},
            "(lambda x. x)": set(),
            "(lambda x. (x y))": {"y"},
            "((lambda x. x) x)": {"x"},
            "(lambda x. (lambda y. ((x + y) + z)))": {"z"},
            "(1 + 2)": set(),
        }
        for case, expected in cases.items():
            self.assertEqual(expected, free_variables(read(case)), case)

        self.assertEqual(set(), free_variables(Variable(None, 3)))


class NamingTestCase(unittest.TestCase):

    def test_split_subscript(self):
        cases = {"x": ("x", -1), "x₀": ("x", 0), "x₁₂": ("x", 12), "abc₃": ("abc", 3)}
        for case, expected in cases.items():
            self.assertEqual(expected, split_subscript(case), case)

    def test_fresh_name(self):
        self.assertEqual("x₀", fresh_name("x", {"x"}))
        self.assertEqual("x₄", fresh_name("x", {"x", "x₀", "x₃"}))
        self.assertEqual("x₁", fresh_name("x₀", {"x₀"}))
        self.assertEqual("y₀", fresh_name("y", {"y", "x₅"}))


class SubstituteTestCase(unittest.TestCase):

    def test_substitute(self):
        cases = [
            ("x", "x", Number(1), Number(1)),
            ("y", "x", Number(1), Variable("y")),
            ("(x + x)", "x", Number(2), BinaryOp("+", Number(2), Number(2))),
            ("(lambda y. (x y))", "x", Number(3), Lambda("y", Application(Number(3), Variable("y")))),
            ("(lambda x. x)", "x", Number(3), Lambda("x", Variable("x"))),  # shadowed
        ]
        for text, var, value, expected in cases:
            self.assertEqual(expected, substitute(read(text), var, value), text)

    def test_capture_avoiding(self):
        term = substitute(read("(lambda y. x)"), "x", Variable("y"))
        self.assertNotEqual("y", term.param)
        self.assertEqual(Variable("y"), term.body)
        self.assertTrue(alpha_equals(term, Lambda("z", Variable("y"))))

        term = substitute(read("(lambda y. (lambda y₀. (x y)))"), "x", Variable("y"))
        self.assertFalse(free_variables(term) - {"y"})
        self.assertTrue(alpha_equals(term, read("(lambda a. (lambda b. (y a)))")))

    def test_shares_unchanged_subtrees(self):
        term = read("(f (g (lambda x. x)))")
        self.assertIs(term, substitute(term, "h", Number(1)))

        term = read("(lambda x. (x + 1))")
        self.assertIs(term, substitute(term, "x", Number(1)))

        term = read("((f 1) (g 2))")
        result = substitute(term, "f", Variable("h"))
        self.assertIs(term.arg, result.arg)


class AlphaEqualsTestCase(unittest.TestCase):

    def test_alpha_equals(self):
        should_pass = [
            ("(lambda x. x)", "(lambda y. y)"),
            ("(lambda x. (lambda y. (x y)))", "(lambda a. (lambda b. (a b)))"),
            ("(lambda x. (lambda x. x))", "(lambda a. (lambda b. b))"),
            ("(lambda x. z)", "(lambda y. z)"),
            ("x", "x"),
            ("(1 + 2)", "(1 + 2)"),
        ]
        for left, right in should_pass:
            self.assertTrue(alpha_equals(read(left), read(right)), (left, right))

        should_fail = [
            ("(lambda x. (lambda y. x))", "(lambda a. (lambda b. b))"),
            ("(lambda x. x)", "(lambda x. y)"),
            ("x", "y"),
            ("(1 + 2)", "(1 * 2)"),
            ("(lambda x:Int. x)", "(lambda x:Bool. x)"),
            ("(lambda x. x)", "x"),
        ]
        for left, right in should_fail:
            self.assertFalse(alpha_equals(read(left), read(right)), (left, right))


if __name__ == '__main__':
    unittest.main()
