import random
import unittest

from zymogen import mir
from zymogen.normalize import lift_let, normalize, rename
from zymogen.optimize import free_variables
from zymogen.symtab import Symtab
from zymogen.utils import expand_source


def V(name):
    return mir.Var(name)


def I(n):
    return mir.Val(mir.Value.integer(n))


def App(op, *operands):
    if isinstance(op, str):
        op = V(op)
    return mir.App(op, list(operands))


def is_anf(expr):
    for e in mir.walk(expr):
        match e:
            case mir.App():
                if not e.operator.is_atomic():
                    return False
                if not all(o.is_atomic() for o in e.operands):
                    return False
            case mir.If():
                if not e.test.is_atomic():
                    return False
            case mir.Let():
                if isinstance(e.value, mir.Let):
                    return False
    return True


class RandomTrees:
    names = ['a', 'b', 'c', 'f', 'g']

    def __init__(self, seed):
        self.rnd = random.Random(seed)

    def atom(self):
        if self.rnd.random() < 0.5:
            return V(self.rnd.choice(self.names))
        return I(self.rnd.randint(0, 9))

    def expr(self, depth):
        if depth == 0:
            return self.atom()

        kind = self.rnd.choice(['atom', 'app', 'app', 'if', 'let',
                                'lambda', 'set'])
        sub = lambda: self.expr(depth - 1)
        match kind:
            case 'atom':
                return self.atom()
            case 'app':
                n = self.rnd.randint(0, 3)
                return mir.App(sub(), [sub() for _ in range(n)])
            case 'if':
                alternative = sub() if self.rnd.random() < 0.7 else None
                return mir.If(sub(), sub(), alternative)
            case 'let':
                return mir.Let(self.rnd.choice(self.names), sub(), sub())
            case 'lambda':
                return mir.Lambda([self.rnd.choice(self.names)], None, sub())
            case 'set':
                return mir.Set(self.rnd.choice(self.names), sub())


class TestNormalize(unittest.TestCase):
    def _normalize(self, text):
        exprs = expand_source(text)
        self.assertEqual(1, len(exprs))
        return normalize(exprs[0], Symtab())

    def _test(self, text, expected):
        result = self._normalize(text)
        self.assertEqual(expected, result)
        self.assertTrue(is_anf(result))
        return result

    def test_atomic_call(self):
        self._test('(f x 1)', App('f', V('x'), I(1)))

    def test_atoms(self):
        self._test('x', V('x'))
        self._test('1', I(1))

    def test_nested_operands(self):
        self._test('(f (g x) (h y))', mir.Let(
            '$g0', App('g', V('x')),
            mir.Let('$g1', App('h', V('y')),
                    App('f', V('$g0'), V('$g1')))))

    def test_deeply_nested_operand(self):
        self._test('(f (g (h x)))', mir.Let(
            '$g1', App('h', V('x')),
            mir.Let('$g0', App('g', V('$g1')),
                    App('f', V('$g0')))))

    def test_operator(self):
        self._test('((f x) y)', mir.Let(
            '$g0', App('f', V('x')),
            App('$g0', V('y'))))

    def test_operator_is_evaluated_first(self):
        self._test('((f) (g))', mir.Let(
            '$g0', App('f'),
            mir.Let('$g1', App('g'),
                    App('$g0', V('$g1')))))

    def test_if_test(self):
        self._test('(if (f x) 1 2)', mir.Let(
            '$g0', App('f', V('x')),
            mir.If(V('$g0'), I(1), I(2))))

    def test_if_branches_stay_in_place(self):
        self._test('(if a (f (g x)) 2)', mir.If(
            V('a'),
            mir.Let('$g0', App('g', V('x')), App('f', V('$g0'))),
            I(2)))

    def test_lambda_body(self):
        self._test('(lambda (x) (f (g x)))', mir.Lambda(
            ['x'], None,
            mir.Let('$g0', App('g', V('x')), App('f', V('$g0')))))

    def test_set(self):
        self._test('(set! x (f (g y)))', mir.Set(
            'x', mir.Let('$g0', App('g', V('y')), App('f', V('$g0')))))

    def test_let(self):
        # the lambda in operator position gets a name of its own
        self._test('(let ((x 1)) x)', mir.Let(
            '$g0', mir.Lambda(['x'], None, V('x')),
            App('$g0', I(1))))

    def test_gensym_avoids_program_names(self):
        self._test('(f (g $g0))', mir.Let(
            '$g0~0', App('g', V('$g0')),
            App('f', V('$g0~0'))))

    def test_random_trees_are_normalized(self):
        for seed in range(200):
            expr = RandomTrees(seed).expr(4)
            result = normalize(expr, Symtab())
            self.assertTrue(is_anf(result), f'seed={seed}: {result}')
            self.assertEqual(free_variables(expr), free_variables(result),
                             f'seed={seed}')

    def test_normalize_is_idempotent(self):
        for seed in range(50):
            expr = RandomTrees(seed).expr(4)
            symtab = Symtab()
            once = normalize(expr, symtab)
            self.assertEqual(once, normalize(once, symtab), f'seed={seed}')


class TestLiftLet(unittest.TestCase):
    def test_lift(self):
        expr = mir.Let('x', mir.Let('y', App('+', V('n'), I(1)), V('y')),
                       V('x'))
        self.assertEqual(
            mir.Let('y', App('+', V('n'), I(1)),
                    mir.Let('x', V('y'), V('x'))),
            lift_let(expr))

    def test_lift_nested(self):
        expr = mir.Let(
            'x', mir.Let('y', mir.Let('z', I(1), V('z')), V('y')),
            V('x'))
        self.assertEqual(
            mir.Let('z', I(1),
                    mir.Let('y', V('z'),
                            mir.Let('x', V('y'), V('x')))),
            lift_let(expr))

    def test_lift_inside_lambda(self):
        expr = mir.Lambda(['a'], None, mir.Let(
            'x', mir.Let('y', V('a'), V('y')), V('x')))
        self.assertEqual(
            mir.Lambda(['a'], None, mir.Let(
                'y', V('a'), mir.Let('x', V('y'), V('x')))),
            lift_let(expr))

    def test_lift_is_idempotent(self):
        for seed in range(100):
            expr = RandomTrees(seed).expr(4)
            once = lift_let(expr)
            self.assertEqual(once, lift_let(once), f'seed={seed}')

    def test_capture_without_symtab(self):
        expr = mir.Let('x', mir.Let('y', I(1), V('y')),
                       App('f', V('x'), V('y')))
        self.assertEqual(
            mir.Let('y', I(1),
                    mir.Let('x', V('y'), App('f', V('x'), V('y')))),
            lift_let(expr))

    def test_capture_is_avoided_with_symtab(self):
        expr = mir.Let('x', mir.Let('y', I(1), V('y')),
                       App('f', V('x'), V('y')))
        self.assertEqual(
            mir.Let('$g0', I(1),
                    mir.Let('x', V('$g0'), App('f', V('x'), V('y')))),
            lift_let(expr, Symtab()))


class TestRename(unittest.TestCase):
    def test_rename(self):
        expr = App('f', V('x'), mir.Set('x', V('x')))
        self.assertEqual(App('f', V('z'), mir.Set('z', V('z'))),
                         rename(expr, 'x', 'z'))

    def test_rename_stops_at_binders(self):
        expr = mir.Let('x', V('x'), V('x'))
        self.assertEqual(mir.Let('x', V('z'), V('x')),
                         rename(expr, 'x', 'z'))

        expr = mir.Lambda(['x'], None, V('x'))
        self.assertEqual(expr, rename(expr, 'x', 'z'))

        expr = mir.Lambda([], 'x', V('x'))
        self.assertEqual(expr, rename(expr, 'x', 'z'))


if __name__ == '__main__':
    unittest.main()
