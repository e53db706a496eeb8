"""
Transformation into administrative normal form (ANF).

After normalization every operator and operand of an application, and the test
of every conditional, is atomic (a variable, a value or a quote). Anything more
complicated is bound to a fresh variable by an enclosing let, in left-to-right
evaluation order. For example:

    (f (g x) (h y))
    ===>
    (let (($g0 (g x)))
        (let (($g1 (h y)))
            (f $g0 $g1)))
"""

import logging

from . import mir
from .optimize import free_variables
from .symtab import Symtab


logger = logging.getLogger(__name__)


def intern_names(expr: mir.Expr, symtab: Symtab):
    "intern every name used in expr, so that gensyms never collide with them"
    for e in mir.walk(expr):
        match e:
            case mir.Var() | mir.Set():
                symtab.intern(e.name)
            case mir.Let():
                symtab.intern(e.name)
            case mir.Lambda():
                for param in e.params:
                    symtab.intern(param)
                if e.rest is not None:
                    symtab.intern(e.rest)


def rename(expr: mir.Expr, old: str, new: str) -> mir.Expr:
    "rename free occurrences of a variable in expr"
    match expr:
        case mir.Var():
            return mir.Var(new) if expr.name == old else expr
        case mir.Val() | mir.Quote():
            return expr
        case mir.Let():
            value = rename(expr.value, old, new)
            body = expr.body
            if expr.name != old:
                body = rename(body, old, new)
            return mir.Let(expr.name, value, body)
        case mir.Lambda():
            if old in expr.params or old == expr.rest:
                return expr
            return mir.Lambda(expr.params, expr.rest,
                              rename(expr.body, old, new))
        case mir.App():
            return mir.App(rename(expr.operator, old, new),
                           [rename(e, old, new) for e in expr.operands])
        case mir.If():
            alternative = expr.alternative
            if alternative is not None:
                alternative = rename(alternative, old, new)
            return mir.If(rename(expr.test, old, new),
                          rename(expr.consequent, old, new),
                          alternative)
        case mir.Set():
            name = new if expr.name == old else expr.name
            return mir.Set(name, rename(expr.value, old, new))
        case _:
            assert False, f'Unknown MIR expression: {expr!r}'


def lift_let(expr: mir.Expr, symtab: (None | Symtab) = None) -> mir.Expr:
    """
    Lift let expressions out of bind positions, everywhere in expr:

    (let ((x (let ((y (+ n 1))) y)))
        x)
    ===>
    (let ((y (+ n 1)))
        (let ((x y))
            x))

    If a symbol table is given, an inner variable that would capture a free
    variable of the outer body is renamed to a fresh name first.
    """
    match expr:
        case mir.Var() | mir.Val() | mir.Quote():
            return expr
        case mir.Let():
            value = lift_let(expr.value, symtab)
            body = lift_let(expr.body, symtab)
            return _hoist(expr.name, value, body, symtab)
        case mir.Lambda():
            return mir.Lambda(expr.params, expr.rest,
                              lift_let(expr.body, symtab))
        case mir.App():
            return mir.App(lift_let(expr.operator, symtab),
                           [lift_let(e, symtab) for e in expr.operands])
        case mir.If():
            alternative = expr.alternative
            if alternative is not None:
                alternative = lift_let(alternative, symtab)
            return mir.If(lift_let(expr.test, symtab),
                          lift_let(expr.consequent, symtab),
                          alternative)
        case mir.Set():
            return mir.Set(expr.name, lift_let(expr.value, symtab))
        case _:
            assert False, f'Unknown MIR expression: {expr!r}'


def _hoist(name, value, body, symtab):
    # value and body have already been lifted.
    if not isinstance(value, mir.Let):
        return mir.Let(name, value, body)

    inner_name = value.name
    inner_body = value.body
    if symtab is not None and inner_name != name and \
       inner_name in free_variables(body):
        fresh = symtab.gensym()
        logger.debug('Renaming %s to %s while lifting let', inner_name, fresh)
        inner_body = rename(inner_body, inner_name, fresh)
        inner_name = fresh

    return mir.Let(inner_name, value.value,
                   _hoist(name, inner_body, body, symtab))


class Normalizer:
    def __init__(self, symtab: Symtab):
        self.symtab = symtab

    def normalize(self, expr: mir.Expr) -> mir.Expr:
        match expr:
            case mir.Var() | mir.Val() | mir.Quote():
                return expr
            case mir.Lambda():
                return mir.Lambda(expr.params, expr.rest,
                                  self.normalize(expr.body))
            case mir.Let():
                return mir.Let(expr.name,
                               self.normalize(expr.value),
                               self.normalize(expr.body))
            case mir.Set():
                return mir.Set(expr.name, self.normalize(expr.value))
            case mir.If():
                return self._normalize_if(expr)
            case mir.App():
                return self._normalize_app(expr)
            case _:
                assert False, f'Unknown MIR expression: {expr!r}'

    def _normalize_if(self, expr: mir.If) -> mir.Expr:
        if expr.test.is_atomic():
            g = None
            test = expr.test
        else:
            g = self.symtab.gensym()
            logger.debug('Hoisting if test into %s', g)
            test = self.normalize(expr.test)

        consequent = self.normalize(expr.consequent)
        alternative = expr.alternative
        if alternative is not None:
            alternative = self.normalize(alternative)

        if g is None:
            return mir.If(test, consequent, alternative)

        return mir.Let(g, test, mir.If(mir.Var(g), consequent, alternative))

    def _normalize_app(self, expr: mir.App) -> mir.Expr:
        operator = expr.operator
        operator_binding = None
        if not operator.is_atomic():
            # the operator is evaluated before any of the arguments
            g = self.symtab.gensym()
            logger.debug('Hoisting operator into %s', g)
            operator_binding = (g, self.normalize(operator))
            operator = mir.Var(g)

        args = []
        pending = []
        for operand in expr.operands:
            if operand.is_atomic():
                args.append(operand)
            else:
                g = self.symtab.gensym()
                logger.debug('Hoisting operand into %s', g)
                args.append(mir.Var(g))
                pending.append((g, self.normalize(operand)))

        result = mir.App(operator, args)
        for g, value in reversed(pending):
            result = mir.Let(g, value, result)

        if operator_binding is not None:
            g, value = operator_binding
            result = mir.Let(g, value, result)

        return result


def normalize(expr: mir.Expr, symtab: Symtab) -> mir.Expr:
    intern_names(expr, symtab)
    result = Normalizer(symtab).normalize(expr)
    result = lift_let(result, symtab)
    logger.debug('Normalized: %s', result)
    return result
