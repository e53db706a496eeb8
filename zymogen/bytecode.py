"""
Stack machine bytecode and the code generator that produces it from
normalized MIR.

Every expression leaves exactly one value on the stack. Local variables live
in numbered slots of the current frame; names that are not bound in any
enclosing let or lambda are referenced by name and resolved by whatever runs
the code.

Closures capture the contents of slots. A local that is both assigned and
captured by a nested lambda is kept in a cell instead, so that the closure and
the frame that created it share a single mutable location.
"""

import logging

from . import mir
from .exceptions import CompileError
from .optimize import assigned_variables, captured_variables, free_variables
from .program import Program
from .symtab import Symtab


logger = logging.getLogger(__name__)


class Operation:
    _fields = ()

    def __init__(self, *args):
        assert len(args) == len(self._fields), \
            f'{type(self).__name__} takes {len(self._fields)} argument(s)'
        for field, arg in zip(self._fields, args):
            setattr(self, field, arg)

    @property
    def args(self):
        return tuple(getattr(self, f) for f in self._fields)

    def __eq__(self, other):
        if type(self) != type(other):
            return False
        return self.args == other.args

    def __hash__(self):
        return hash((type(self).__name__, self.args))

    def __repr__(self):
        args = ', '.join(repr(a) for a in self.args)
        return f'{type(self).__name__}({args})'

    def __str__(self):
        args = ' '.join(str(a) for a in self.args)
        name = type(self).__name__.lower()
        return f'{name} {args}' if args else name


class Bind(Operation):
    "pop the top of the stack into a local slot"
    _fields = ('slot',)


class Var(Operation):
    "push the value of a free (global) variable"
    _fields = ('name',)


class Bound(Operation):
    "push the value of a local slot"
    _fields = ('slot',)


class Constant(Operation):
    "push an entry of the constant pool"
    _fields = ('index',)


class JumpNotEqual(Operation):
    "pop the top of the stack and jump to target if it is false"
    _fields = ('target',)


class Jump(Operation):
    _fields = ('target',)


class Call(Operation):
    "call the procedure on top of the stack with the arity values below it"
    _fields = ('arity',)


class Closure(Operation):
    """
    make a closure from the procedure at a constant pool index, and the
    ncaptured values on top of the stack
    """
    _fields = ('index', 'ncaptured')


class StoreBound(Operation):
    "store the top of the stack into a local slot, leaving it on the stack"
    _fields = ('slot',)


class StoreVar(Operation):
    "store the top of the stack into a free variable, leaving it on the stack"
    _fields = ('name',)


class MakeCell(Operation):
    "pop the top of the stack and push a new cell holding it"


class BoundCell(Operation):
    "push the value held by the cell in a local slot"
    _fields = ('slot',)


class StoreCell(Operation):
    """
    store the top of the stack into the cell in a local slot, leaving it on
    the stack
    """
    _fields = ('slot',)


class Return(Operation):
    pass


class Procedure:
    """
    A compiled lambda, stored in the constant pool. Its frame starts with the
    captured values, followed by the parameters and then the rest parameter.
    A captured value is a cell when the variable is assigned anywhere.
    """

    def __init__(self, code: list[Operation], nparams: int, rest: bool,
                 captured: list[str], frame_size: int):
        self.code = code
        self.nparams = nparams
        self.rest = rest
        self.captured = captured
        self.frame_size = frame_size

    def __eq__(self, other):
        if not isinstance(other, Procedure):
            return False
        return self.code == other.code and \
            self.nparams == other.nparams and \
            self.rest == other.rest and \
            self.captured == other.captured and \
            self.frame_size == other.frame_size

    def __repr__(self):
        return f'<Procedure nparams={self.nparams} rest={self.rest} ' \
            f'captured={self.captured} frame={self.frame_size}>'

    def __str__(self):
        return repr(self)


class Context:
    def __init__(self, symtab: (None | Symtab) = None, *,
                 constants: (None | list) = None):
        self.symtab = symtab if symtab is not None else Symtab()

        # slot number => name of the variable that was given the slot
        self.locals = []

        # (name, slot) pairs of variables currently in scope, innermost last
        self.visible = []

        # slots that hold a cell rather than a value
        self.cells = set()

        self.code = []
        self.constants = constants if constants is not None else []

    @property
    def next_slot(self) -> int:
        return len(self.locals)

    def _allocate(self, name: str) -> int:
        slot = len(self.locals)
        self.locals.append(name)
        return slot

    def find_var(self, name: str) -> (None | int):
        for visible_name, slot in reversed(self.visible):
            if visible_name == name:
                return slot
        return None

    @staticmethod
    def _needs_cell(name: str, scope: mir.Expr) -> bool:
        return name in assigned_variables(scope) and \
            name in captured_variables(scope)

    def _emit(self, op: Operation) -> int:
        self.code.append(op)
        return len(self.code) - 1

    def _add_constant(self, value) -> int:
        self.constants.append(value)
        return len(self.constants) - 1

    def compile(self, expr: mir.Expr):
        match expr:
            case mir.Var():
                slot = self.find_var(expr.name)
                if slot is None:
                    self.symtab.intern(expr.name)
                    self._emit(Var(expr.name))
                elif slot in self.cells:
                    self._emit(BoundCell(slot))
                else:
                    self._emit(Bound(slot))

            case mir.Val() | mir.Quote():
                # no de-duplication; each literal gets its own entry
                index = self._add_constant(expr.value)
                self._emit(Constant(index))

            case mir.App():
                for operand in expr.operands:
                    self.compile(operand)
                self.compile(expr.operator)
                self._emit(Call(len(expr.operands)))

            case mir.Let():
                # slots are never reused within a frame, but the name goes
                # out of scope after the body.
                slot = self._allocate(expr.name)
                self.compile(expr.value)
                if self._needs_cell(expr.name, expr.body):
                    self._emit(MakeCell())
                    self.cells.add(slot)
                self._emit(Bind(slot))
                self.visible.append((expr.name, slot))
                self.compile(expr.body)
                self.visible.pop()

            case mir.If():
                self._compile_if(expr)

            case mir.Lambda():
                self._compile_lambda(expr)

            case mir.Set():
                self.compile(expr.value)
                slot = self.find_var(expr.name)
                if slot is None:
                    self.symtab.intern(expr.name)
                    self._emit(StoreVar(expr.name))
                elif slot in self.cells:
                    self._emit(StoreCell(slot))
                else:
                    self._emit(StoreBound(slot))

            case _:
                raise CompileError(f'Cannot compile expression: {expr!r}')

    def _compile_if(self, expr: mir.If):
        self.compile(expr.test)
        jump_to_else = self._emit(JumpNotEqual(None))
        self.compile(expr.consequent)
        jump_to_end = self._emit(Jump(None))

        self.code[jump_to_else].target = len(self.code)
        if expr.alternative is None:
            self._emit(Constant(self._add_constant(mir.FALSE)))
        else:
            self.compile(expr.alternative)

        self.code[jump_to_end].target = len(self.code)

    def _compile_lambda(self, expr: mir.Lambda):
        captured = sorted(
            name for name in free_variables(expr)
            if self.find_var(name) is not None)

        child = Context(self.symtab, constants=self.constants)
        for name in captured:
            slot = child._allocate(name)
            if self.find_var(name) in self.cells:
                child.cells.add(slot)
            child.visible.append((name, slot))

        params = list(expr.params)
        if expr.rest is not None:
            params.append(expr.rest)
        for name in params:
            slot = child._allocate(name)
            child.visible.append((name, slot))
            if self._needs_cell(name, expr.body):
                # box the argument in place before the body runs
                child._emit(Bound(slot))
                child._emit(MakeCell())
                child._emit(Bind(slot))
                child.cells.add(slot)

        child.compile(expr.body)
        child._emit(Return())

        proc = Procedure(child.code,
                         nparams=len(expr.params),
                         rest=expr.rest is not None,
                         captured=captured,
                         frame_size=len(child.locals))
        index = self._add_constant(proc)

        for name in captured:
            self._emit(Bound(self.find_var(name)))
        self._emit(Closure(index, len(captured)))


def compile_program(exprs: list[mir.Expr],
                    symtab: (None | Symtab) = None) -> Program:
    """
    Compile a series of normalized top-level expressions into a single
    program. The value of the last expression is the value of the program.
    """
    context = Context(symtab)
    for expr in exprs:
        context.compile(expr)
    context._emit(Return())

    logger.debug('Compiled %d instruction(s), %d constant(s)',
                 len(context.code), len(context.constants))

    return Program(context.code, context.constants,
                   frame_size=len(context.locals),
                   symtab=context.symtab)
