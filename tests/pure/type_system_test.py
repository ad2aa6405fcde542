import unittest

from lcam.lang.error import ConstantMismatch, KindMismatch, OccursCheckFailure, TypeMismatch
from lcam.pure.type_system import (BOOL, INT, Substitution, TypeArrow, TypeConst, TypeVar, TypeVarGenerator,
                                   types_equivalent, unify)


def arrow(*types):
    """arrow(a, b, c) == a -> (b -> c)"""
    if len(types) == 1:
        return types[0]
    return TypeArrow(types[0], arrow(*types[1:]))


class TypeTestCase(unittest.TestCase):

    def test_str(self):
        cases = {
            "Int": INT,
            "?3": TypeVar(3),
            "(Int -> Bool)": TypeArrow(INT, BOOL),
            "(Int -> (Bool -> ?3))": arrow(INT, BOOL, TypeVar(3)),
            "((?0 -> ?0) -> Int)": TypeArrow(TypeArrow(TypeVar(0), TypeVar(0)), INT),
        }
        for expected, case in cases.items():
            self.assertEqual(expected, str(case), expected)

    def test_structural_equality(self):
        self.assertEqual(TypeConst("Int"), INT)
        self.assertEqual(TypeArrow(TypeVar(1), INT), TypeArrow(TypeVar(1), INT))
        self.assertNotEqual(TypeVar(1), TypeVar(2))


class TypeVarGeneratorTestCase(unittest.TestCase):

    def test_fresh(self):
        generator = TypeVarGenerator()
        self.assertEqual([TypeVar(0), TypeVar(1), TypeVar(2)], [generator.fresh() for __ in range(3)])

        generator.reset()
        self.assertEqual(TypeVar(0), generator.fresh())

    def test_independent(self):
        first, second = TypeVarGenerator(), TypeVarGenerator(start=10)
        first.fresh()
        first.fresh()
        self.assertEqual(TypeVar(10), second.fresh())
        self.assertEqual(TypeVar(2), first.fresh())


class SubstitutionTestCase(unittest.TestCase):

    def test_resolve(self):
        subs = Substitution({0: TypeVar(1), 1: TypeVar(2), 2: INT})
        self.assertEqual(INT, subs.resolve(TypeVar(0)))
        self.assertEqual(TypeVar(5), subs.resolve(TypeVar(5)))

        # resolve only looks at the top level
        self.assertEqual(TypeArrow(TypeVar(0), TypeVar(1)), subs.resolve(TypeArrow(TypeVar(0), TypeVar(1))))

    def test_apply(self):
        subs = Substitution({0: TypeVar(1), 1: TypeArrow(INT, TypeVar(2)), 2: BOOL})
        self.assertEqual(TypeArrow(INT, BOOL), subs.apply(TypeVar(0)))
        expected = arrow(arrow(INT, BOOL), TypeVar(3), BOOL)
        self.assertEqual(expected, subs.apply(arrow(TypeVar(1), TypeVar(3), TypeVar(2))))

    def test_occurs(self):
        subs = Substitution({1: TypeArrow(TypeVar(0), INT)})
        self.assertTrue(subs.occurs(0, TypeVar(1)))
        self.assertTrue(subs.occurs(0, TypeArrow(BOOL, TypeVar(0))))
        self.assertFalse(subs.occurs(0, TypeArrow(BOOL, TypeVar(2))))
        self.assertFalse(subs.occurs(0, INT))

    def test_bind(self):
        subs = Substitution()
        subs.bind(0, INT)
        self.assertIn(0, subs)
        self.assertEqual(1, len(subs))

        self.assertRaises(OccursCheckFailure, subs.bind, 1, TypeArrow(TypeVar(1), INT))
        self.assertNotIn(1, subs)


class UnifyTestCase(unittest.TestCase):

    def test_constants(self):
        self.assertEqual(0, len(unify(INT, INT, Substitution())))

        with self.assertRaises(ConstantMismatch) as context:
            unify(BOOL, INT, Substitution())
        self.assertEqual(("Bool", "Int"), (context.exception.left, context.exception.right))

    def test_variables(self):
        subs = unify(TypeVar(0), TypeArrow(INT, BOOL), Substitution())
        self.assertEqual(TypeArrow(INT, BOOL), subs.apply(TypeVar(0)))

        subs = unify(INT, TypeVar(0), Substitution())
        self.assertEqual(INT, subs.apply(TypeVar(0)))

        self.assertEqual(0, len(unify(TypeVar(4), TypeVar(4), Substitution())))

    def test_through_chains(self):
        subs = Substitution({0: TypeVar(1)})
        unify(TypeVar(0), INT, subs)
        self.assertEqual(INT, subs.apply(TypeVar(1)))

        self.assertRaises(ConstantMismatch, unify, TypeVar(1), BOOL, subs)

    def test_arrows(self):
        subs = unify(TypeArrow(TypeVar(0), TypeVar(1)), TypeArrow(INT, TypeVar(0)), Substitution())
        self.assertEqual(INT, subs.apply(TypeVar(0)))
        self.assertEqual(INT, subs.apply(TypeVar(1)))

    def test_domain_failure_is_not_masked(self):
        with self.assertRaises(ConstantMismatch) as context:
            unify(TypeArrow(BOOL, INT), TypeArrow(INT, TypeArrow(INT, INT)), Substitution())
        self.assertEqual(("Bool", "Int"), (context.exception.left, context.exception.right))

    def test_kind_mismatch(self):
        should_raise = [(TypeArrow(INT, INT), INT), (BOOL, TypeArrow(TypeVar(0), INT))]
        for left, right in should_raise:
            self.assertRaises(KindMismatch, unify, left, right, Substitution())

    def test_occurs_check(self):
        should_raise = [
            (TypeVar(0), TypeArrow(TypeVar(0), INT)),
            (TypeArrow(INT, TypeVar(0)), TypeVar(0)),
            (TypeVar(0), arrow(INT, BOOL, TypeVar(0))),
        ]
        for left, right in should_raise:
            self.assertRaises(OccursCheckFailure, unify, left, right, Substitution())

        subs = Substitution({1: TypeVar(0)})
        self.assertRaises(OccursCheckFailure, unify, TypeVar(0), TypeArrow(TypeVar(1), INT), subs)

    def test_symmetric(self):
        cases = [
            (TypeVar(0), INT),
            (INT, BOOL),
            (TypeVar(0), TypeVar(1)),
            (TypeArrow(TypeVar(0), TypeVar(1)), TypeArrow(INT, TypeVar(0))),
            (TypeArrow(TypeVar(0), TypeVar(1)), TypeArrow(TypeVar(1), TypeVar(0))),
            (TypeArrow(TypeVar(0), INT), BOOL),
            (TypeArrow(TypeVar(0), TypeVar(0)), TypeArrow(INT, BOOL)),
            (TypeVar(0), TypeArrow(TypeVar(0), INT)),
            (arrow(TypeVar(0), TypeVar(1), TypeVar(2)), arrow(TypeVar(1), TypeVar(2), INT)),
        ]
        for left, right in cases:
            results = []
            for first, second in ((left, right), (right, left)):
                try:
                    results.append(unify(first, second, Substitution()))
                except TypeMismatch:
                    results.append(None)

            forward, backward = results
            self.assertEqual(forward is None, backward is None, (left, right))
            if forward is not None:
                both = TypeArrow(left, right)
                self.assertTrue(types_equivalent(forward.apply(both), backward.apply(both)), (left, right))


class TypesEquivalentTestCase(unittest.TestCase):

    def test_types_equivalent(self):
        should_pass = [
            (INT, INT),
            (TypeVar(0), TypeVar(7)),
            (TypeArrow(TypeVar(0), TypeVar(0)), TypeArrow(TypeVar(5), TypeVar(5))),
            (arrow(TypeVar(0), TypeVar(1), TypeVar(0)), arrow(TypeVar(1), TypeVar(0), TypeVar(1))),
        ]
        for left, right in should_pass:
            self.assertTrue(types_equivalent(left, right), (left, right))

        should_fail = [
            (INT, BOOL),
            (INT, TypeVar(0)),
            (TypeArrow(TypeVar(0), TypeVar(1)), TypeArrow(TypeVar(2), TypeVar(2))),
            (TypeArrow(TypeVar(0), TypeVar(0)), TypeArrow(TypeVar(1), TypeVar(2))),
            (TypeArrow(INT, INT), INT),
        ]
        for left, right in should_fail:
            self.assertFalse(types_equivalent(left, right), (left, right))


if __name__ == '__main__':
    unittest.main()
