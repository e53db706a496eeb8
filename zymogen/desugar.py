import logging

from . import hir, mir
from .sexpr import Pair


logger = logging.getLogger(__name__)

SEQUENCE_VAR_PREFIX = '$s'


class Desugarer:
    """
    Rewrites HIR into MIR. Primitive forms map directly onto MIR nodes;
    derived forms are expanded into combinations of primitive ones.
    """

    def desugar(self, expr: hir.Expression) -> mir.Expr:
        match expr:
            case hir.Literal():
                return mir.Val(mir.Value.from_sexp(expr.value))
            case hir.Variable():
                return mir.Var(expr.name)
            case hir.Quotation():
                assert not isinstance(expr.value, Pair), \
                    'quoted lists should have been expanded during analysis'
                return mir.Quote(mir.Value.from_sexp(expr.value))
            case hir.Call():
                return mir.App(self.desugar(expr.operator),
                               [self.desugar(e) for e in expr.operands])
            case hir.Lambda():
                return mir.Lambda(list(expr.params), expr.rest,
                                  self.desugar_begin(expr.body))
            case hir.If():
                alternative = None
                if expr.alternative is not None:
                    alternative = self.desugar(expr.alternative)
                return mir.If(self.desugar(expr.test),
                              self.desugar(expr.consequent),
                              alternative)
            case hir.Assignment():
                return mir.Set(expr.name, self.desugar(expr.value))
            case hir.Let():
                return self.desugar_let(expr)
            case hir.NamedLet():
                return self.desugar_named_let(expr)
            case hir.LetRec():
                return self.desugar_letrec(expr)
            case hir.Begin():
                return self.desugar_begin(expr.body)
            case hir.Cond():
                return self.desugar_cond(expr.clauses, expr.else_clause)
            case hir.And():
                return self.desugar_and(expr.body)
            case hir.Or():
                return self.desugar_or(expr.body)
            case hir.Quasiquoted():
                # already expanded into cons/append calls by the analyzer
                return self.desugar(expr.body)
            case _:
                assert False, f'Unknown HIR expression: {expr!r}'

    def desugar_let(self, expr: hir.Let) -> mir.Expr:
        """
        (let ((x 0) (y 1)) body...)
        ===>
        ((λ (x y) body...) 0 1)
        """
        names = [b.name for b in expr.bindings]
        values = [self.desugar(b.expr) for b in expr.bindings]
        return mir.App(
            mir.Lambda(names, None, self.desugar_begin(expr.body)),
            values)

    def desugar_named_let(self, expr: hir.NamedLet) -> mir.Expr:
        """
        (let loop ((x 0)) body...)
        ===>
        (letrec ((loop (λ (x) body...))) (loop 0))
        """
        names = [b.name for b in expr.bindings]
        proc = hir.Lambda(names, None, expr.body)
        call = hir.Call(hir.Variable(expr.name),
                        [b.expr for b in expr.bindings])
        return self.desugar_letrec(
            hir.LetRec([hir.Binding(expr.name, proc)], [call]))

    def desugar_letrec(self, expr: hir.LetRec) -> mir.Expr:
        """
        (letrec ((x e1) (y e2)) body...)
        ===>
        (let ((x #f)) (let ((y #f)) (begin (set! x e1) (set! y e2) body...)))
        """
        assignments = [hir.Assignment(b.name, b.expr) for b in expr.bindings]
        body = self.desugar_begin(assignments + expr.body)

        for binding in reversed(expr.bindings):
            body = mir.Let(binding.name, mir.Val(mir.FALSE), body)

        return body

    def desugar_begin(self, body: list[hir.Expression]) -> mir.Expr:
        """
        (begin e1 ... eN)
        ===>
        ((λ ($s0 ... $sN-1) $sN-1) e1 ... eN)

        Arguments are evaluated left to right, so side effects happen in
        order and the value of the last expression is the result.
        """
        assert len(body) > 0, 'empty sequence'

        if len(body) == 1:
            return self.desugar(body[0])

        exprs = [self.desugar(e) for e in body]
        params = [f'{SEQUENCE_VAR_PREFIX}{i}' for i in range(len(exprs))]
        return mir.App(mir.Lambda(params, None, mir.Var(params[-1])), exprs)

    def desugar_cond(self, clauses: list[hir.CondClause],
                     else_clause: (None | list[hir.Expression])) -> mir.Expr:
        if else_clause:
            result = self.desugar_begin(else_clause)
        else:
            result = mir.Val(mir.FALSE)

        for clause in reversed(clauses):
            result = mir.If(self.desugar(clause.test),
                            self.desugar_begin(clause.body),
                            result)

        return result

    def desugar_and(self, body: list[hir.Expression]) -> mir.Expr:
        if not body:
            return mir.Val(mir.FALSE)

        # once every test has passed, the whole thing is true
        result = mir.Val(mir.TRUE)
        for e in reversed(body):
            result = mir.If(self.desugar(e), result, mir.Val(mir.FALSE))

        return result

    def desugar_or(self, body: list[hir.Expression]) -> mir.Expr:
        result = mir.Val(mir.FALSE)
        for e in reversed(body):
            result = mir.If(self.desugar(e), mir.Val(mir.TRUE), result)

        return result


def desugar(expr: hir.Expression) -> mir.Expr:
    result = Desugarer().desugar(expr)
    logger.debug('Desugared: %s', result)
    return result
