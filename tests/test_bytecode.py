import unittest

from zymogen import mir
from zymogen.bytecode import (
    Bind, Bound, BoundCell, Call, Closure, Constant, Context, Jump,
    JumpNotEqual, MakeCell, Procedure, Return, StoreBound, StoreCell,
    StoreVar, Var, compile_program,
)
from zymogen.exceptions import CompileError
from zymogen.symtab import Symtab
from zymogen.utils import compile_source


def I(n):
    return mir.Val(mir.Value.integer(n))


class TestContext(unittest.TestCase):
    def _compile(self, expr):
        context = Context()
        context.compile(expr)
        return context

    def test_global_variable(self):
        context = self._compile(mir.Var('x'))
        self.assertEqual([Var('x')], context.code)
        self.assertIn('x', context.symtab)

    def test_constants(self):
        context = self._compile(mir.App(mir.Var('f'), [I(1), I(1)]))
        self.assertEqual(
            [Constant(0), Constant(1), Var('f'), Call(2)],
            context.code)
        # literals are not de-duplicated
        self.assertEqual([mir.Value.integer(1), mir.Value.integer(1)],
                         context.constants)

    def test_quote(self):
        context = self._compile(mir.Quote(mir.Value.symbol('a')))
        self.assertEqual([Constant(0)], context.code)
        self.assertEqual([mir.Value.symbol('a')], context.constants)

    def test_let(self):
        context = self._compile(mir.Let(
            'x', I(1), mir.App(mir.Var('x'), [])))
        self.assertEqual([Constant(0), Bind(0), Bound(0), Call(0)],
                         context.code)
        self.assertEqual(['x'], context.locals)
        self.assertEqual([], context.visible)

    def test_let_value_does_not_see_its_name(self):
        context = self._compile(mir.Let('x', mir.Var('x'), mir.Var('x')))
        self.assertEqual([Var('x'), Bind(0), Bound(0)], context.code)

    def test_shadowing(self):
        context = self._compile(mir.Let(
            'x', I(1), mir.Let('x', I(2), mir.Var('x'))))
        self.assertEqual(
            [Constant(0), Bind(0), Constant(1), Bind(1), Bound(1)],
            context.code)
        self.assertEqual(2, context.next_slot)

    def test_if(self):
        context = self._compile(mir.If(mir.Var('a'), I(1), I(2)))
        self.assertEqual(
            [Var('a'), JumpNotEqual(4), Constant(0), Jump(5), Constant(1)],
            context.code)

    def test_if_without_alternative(self):
        context = self._compile(mir.If(mir.Var('a'), I(1)))
        self.assertEqual(
            [Var('a'), JumpNotEqual(4), Constant(0), Jump(5), Constant(1)],
            context.code)
        self.assertEqual(mir.FALSE, context.constants[1])

    def test_set(self):
        context = self._compile(mir.Set('x', I(1)))
        self.assertEqual([Constant(0), StoreVar('x')], context.code)

        context = self._compile(mir.Let('x', I(1), mir.Set('x', I(2))))
        self.assertEqual(
            [Constant(0), Bind(0), Constant(1), StoreBound(0)],
            context.code)

    def test_closure(self):
        expr = mir.Let('y', I(1), mir.Lambda(
            ['x'], None,
            mir.App(mir.Var('+'), [mir.Var('x'), mir.Var('y')])))
        context = self._compile(expr)
        self.assertEqual(
            [Constant(0), Bind(0), Bound(0), Closure(1, 1)],
            context.code)

        proc = context.constants[1]
        self.assertEqual(
            Procedure([Bound(1), Bound(0), Var('+'), Call(2), Return()],
                      nparams=1, rest=False, captured=['y'], frame_size=2),
            proc)

    def test_rest_parameter(self):
        context = self._compile(mir.Lambda(['a'], 'r', mir.Var('r')))
        self.assertEqual([Closure(0, 0)], context.code)
        self.assertEqual(
            Procedure([Bound(1), Return()],
                      nparams=1, rest=True, captured=[], frame_size=2),
            context.constants[0])

    def test_nested_closures(self):
        expr = mir.Let('y', I(1), mir.Lambda(
            [], None, mir.Lambda([], None, mir.Var('y'))))
        context = self._compile(expr)

        inner = context.constants[1]
        outer = context.constants[2]
        self.assertEqual(['y'], inner.captured)
        self.assertEqual([Bound(0), Return()], inner.code)
        self.assertEqual(['y'], outer.captured)
        self.assertEqual([Bound(0), Closure(1, 1), Return()], outer.code)
        self.assertEqual([Constant(0), Bind(0), Bound(0), Closure(2, 1)],
                         context.code)

    def test_captured_names_are_sorted(self):
        expr = mir.Let('b', I(1), mir.Let('a', I(2), mir.Lambda(
            [], None, mir.App(mir.Var('b'), [mir.Var('a')]))))
        context = self._compile(expr)
        proc = context.constants[2]
        self.assertEqual(['a', 'b'], proc.captured)
        self.assertEqual([Bound(1), Bound(0), Closure(2, 2)],
                         context.code[-3:])

    def test_recursive_binding_shares_a_cell(self):
        # what letrec expands to: the closure captures f before it is set
        expr = mir.Let('f', mir.Val(mir.FALSE), mir.Let(
            '$t',
            mir.Set('f', mir.Lambda(
                ['n'], None, mir.App(mir.Var('f'), [mir.Var('n')]))),
            mir.App(mir.Var('f'), [I(1)])))
        context = self._compile(expr)
        self.assertEqual(
            [Constant(0), MakeCell(), Bind(0),
             Bound(0), Closure(1, 1), StoreCell(0), Bind(1),
             Constant(2), BoundCell(0), Call(1)],
            context.code)
        self.assertEqual({0}, context.cells)
        self.assertEqual(
            Procedure([Bound(1), BoundCell(0), Call(1), Return()],
                      nparams=1, rest=False, captured=['f'], frame_size=2),
            context.constants[1])

    def test_assignment_inside_closure(self):
        expr = mir.Let('x', I(0), mir.Lambda([], None, mir.Set('x', I(1))))
        context = self._compile(expr)
        self.assertEqual(
            [Constant(0), MakeCell(), Bind(0), Bound(0), Closure(2, 1)],
            context.code)
        self.assertEqual(
            Procedure([Constant(1), StoreCell(0), Return()],
                      nparams=0, rest=False, captured=['x'], frame_size=1),
            context.constants[2])

    def test_closure_sees_later_assignment(self):
        expr = mir.Let('x', I(0), mir.Let(
            'f', mir.Lambda([], None, mir.Var('x')),
            mir.Set('x', I(1))))
        context = self._compile(expr)
        self.assertEqual(
            [Constant(0), MakeCell(), Bind(0),
             Bound(0), Closure(1, 1), Bind(1),
             Constant(2), StoreCell(0)],
            context.code)
        self.assertEqual([BoundCell(0), Return()], context.constants[1].code)

    def test_parameter_in_a_cell(self):
        expr = mir.Lambda(['n'], None, mir.Let(
            'g', mir.Lambda([], None, mir.Set('n', I(1))),
            mir.App(mir.Var('g'), [])))
        context = self._compile(expr)
        self.assertEqual([Closure(2, 0)], context.code)
        self.assertEqual(
            [Bound(0), MakeCell(), Bind(0),
             Bound(0), Closure(1, 1), Bind(1),
             Bound(1), Call(0), Return()],
            context.constants[2].code)
        self.assertEqual([Constant(0), StoreCell(0), Return()],
                         context.constants[1].code)

    def test_unknown_expression(self):
        with self.assertRaises(CompileError):
            Context().compile('(f x)')


class TestCompileProgram(unittest.TestCase):
    def test_program(self):
        symtab = Symtab()
        program = compile_program([mir.Let('x', I(1), mir.Var('x')),
                                   mir.Var('x')], symtab)
        self.assertEqual(
            [Constant(0), Bind(0), Bound(0), Var('x'), Return()],
            program.code)
        self.assertEqual(1, program.frame_size)
        self.assertIs(symtab, program.symtab)

    def test_empty_program(self):
        program = compile_program([])
        self.assertEqual([Return()], program.code)
        self.assertEqual([], program.constants)

    def test_procedures(self):
        program = compile_program([
            mir.App(mir.Lambda(['x'], None, mir.Var('x')), [I(1)])])
        procs = list(program.procedures())
        self.assertEqual(1, len(procs))
        self.assertEqual(1, procs[0][0])

    def test_listing(self):
        program = compile_program([mir.Lambda(['x'], None, mir.Var('x'))])
        listing = program.listing()
        self.assertIn('   0  closure 0 0', listing)
        self.assertIn('   1  return', listing)
        self.assertIn('; procedure 0: 1 param(s), captured: -, '
                      'frame size: 1', listing)
        self.assertIn('   0  bound 0', listing)

    def _procedure_capturing(self, program, name):
        procs = [proc for _, proc in program.procedures()
                 if proc.captured == [name]]
        self.assertEqual(1, len(procs))
        return procs[0]

    def test_letrec(self):
        program = compile_source('(letrec ((f (lambda (n) (f n)))) (f 1))',
                                 optimize=False)
        proc = self._procedure_capturing(program, 'f')
        self.assertIn(BoundCell(0), proc.code)
        self.assertNotIn(Bound(0), proc.code)
        self.assertIn(MakeCell(), program.code)
        self.assertIn(StoreCell(0), program.code)
        self.assertNotIn(StoreBound(0), program.code)

    def test_named_let(self):
        program = compile_source('(let loop ((i 0)) (loop i))',
                                 optimize=False)
        proc = self._procedure_capturing(program, 'loop')
        self.assertIn(BoundCell(0), proc.code)

    def test_assignment_to_captured_let_variable(self):
        program = compile_source('(let ((x 0)) (lambda () (set! x 1)))',
                                 optimize=False)
        proc = self._procedure_capturing(program, 'x')
        self.assertIn(StoreCell(0), proc.code)
        self.assertNotIn(StoreBound(0), proc.code)


class TestOperations(unittest.TestCase):
    def test_str(self):
        self.assertEqual('call 2', str(Call(2)))
        self.assertEqual('closure 1 0', str(Closure(1, 0)))
        self.assertEqual('return', str(Return()))
        self.assertEqual('makecell', str(MakeCell()))
        self.assertEqual('storecell 0', str(StoreCell(0)))
        self.assertEqual('jumpnotequal 3', str(JumpNotEqual(3)))

    def test_equality(self):
        self.assertEqual(Bound(1), Bound(1))
        self.assertNotEqual(Bound(1), Bind(1))
        self.assertNotEqual(Bound(1), Bound(2))


if __name__ == '__main__':
    unittest.main()
