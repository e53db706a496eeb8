from . import hir, mir
from .sexpr import Bool, Integer, Keyword, Keywords, Nil, Pair, Sexp, String, Symbol


MIR_INDENT = 4

SIGILS = {
    Keywords.QUOTE: "'",
    Keywords.QUASIQUOTE: '`',
    Keywords.UNQUOTE: ',',
    Keywords.UNQUOTE_SPLICING: ',@',
}


def format_string(s: str) -> str:
    # the reader has no escape sequences, so neither does the printer
    return f'"{s}"'


def format_params(params: list[str], rest: (None | str)) -> str:
    if rest is None:
        return '(' + ' '.join(params) + ')'
    elif not params:
        return rest
    else:
        return '(' + ' '.join(params) + ' . ' + rest + ')'


class Printer:
    """
    Renders s-expressions, HIR trees and MIR trees in a readable, lisp-like
    syntax. MIR is laid out on multiple lines, indented by nesting level.
    """

    def __init__(self, obj):
        self._obj = obj

    def print(self):
        obj = self._obj
        if isinstance(obj, Sexp):
            return self._print_sexp(obj)
        elif isinstance(obj, hir.Expression):
            return self._print_hir(obj)
        elif isinstance(obj, mir.Expr):
            return self._print_mir(obj, 0)
        elif isinstance(obj, mir.Value):
            return str(obj)
        else:
            raise TypeError(f'Cannot print object of type {type(obj)}')

    def _print_sexp(self, obj: Sexp) -> str:
        match obj:
            case Bool():
                return '#t' if obj.value else '#f'
            case Integer():
                return str(int(obj))
            case String():
                return format_string(obj.value)
            case Symbol():
                return obj.name
            case Keyword():
                return obj.name
            case Nil():
                return '()'
            case Pair():
                return self._print_pair(obj)
            case _:
                raise TypeError(f'Unknown s-expression: {obj!r}')

    def _print_pair(self, pair: Pair) -> str:
        if isinstance(pair.car, Keyword) and \
           pair.car.keyword in SIGILS and \
           isinstance(pair.cdr, Pair) and \
           isinstance(pair.cdr.cdr, Nil):
            return SIGILS[pair.car.keyword] + self._print_sexp(pair.cdr.car)

        s = '('
        while isinstance(pair, Pair):
            if s != '(':
                s += ' '
            s += self._print_sexp(pair.car)
            pair = pair.cdr

        if not isinstance(pair, Nil):
            s += ' . '
            s += self._print_sexp(pair)

        s += ')'
        return s

    def _print_hir(self, expr: hir.Expression) -> str:
        p = self._print_hir
        seq = lambda exprs: ' '.join(p(e) for e in exprs)

        match expr:
            case hir.Literal():
                return self._print_sexp(expr.value)
            case hir.Variable():
                return expr.name
            case hir.Quotation():
                return "'" + self._print_sexp(expr.value)
            case hir.Call():
                if not expr.operands:
                    return f'({p(expr.operator)})'
                return f'({p(expr.operator)} {seq(expr.operands)})'
            case hir.Lambda():
                params = format_params(expr.params, expr.rest)
                return f'(λ {params} {seq(expr.body)})'
            case hir.If():
                if expr.alternative is None:
                    return f'(if {p(expr.test)} {p(expr.consequent)})'
                return f'(if {p(expr.test)} {p(expr.consequent)} ' \
                    f'{p(expr.alternative)})'
            case hir.Assignment():
                return f'(set! {expr.name} {p(expr.value)})'
            case hir.Let():
                return f'(let {self._print_bindings(expr.bindings)} ' \
                    f'{seq(expr.body)})'
            case hir.LetRec():
                return f'(letrec {self._print_bindings(expr.bindings)} ' \
                    f'{seq(expr.body)})'
            case hir.NamedLet():
                return f'(let {expr.name} ' \
                    f'{self._print_bindings(expr.bindings)} {seq(expr.body)})'
            case hir.Begin():
                return f'(begin {seq(expr.body)})'
            case hir.Cond():
                clauses = [f'({p(c.test)} {seq(c.body)})' for c in expr.clauses]
                if expr.else_clause is not None:
                    clauses.append(
                        '(else' +
                        ''.join(' ' + p(e) for e in expr.else_clause) + ')')
                return '(cond' + ''.join(' ' + c for c in clauses) + ')'
            case hir.And():
                return '(and' + ''.join(' ' + p(e) for e in expr.body) + ')'
            case hir.Or():
                return '(or' + ''.join(' ' + p(e) for e in expr.body) + ')'
            case hir.Quasiquoted():
                return f'(quasiquoted {expr.depth} {p(expr.body)})'
            case _:
                raise TypeError(f'Unknown HIR expression: {expr!r}')

    def _print_bindings(self, bindings: list[hir.Binding]) -> str:
        return '(' + ' '.join(
            f'({b.name} {self._print_hir(b.expr)})' for b in bindings) + ')'

    def _print_mir(self, expr: mir.Expr, level: int) -> str:
        indent = ' ' * (level * MIR_INDENT)
        p = lambda e: self._print_mir(e, 0)
        nested = lambda e: self._print_mir(e, level + 1)

        match expr:
            case mir.Var():
                out = expr.name
            case mir.Val():
                out = str(expr.value)
            case mir.Quote():
                out = "'" + str(expr.value)
            case mir.Let():
                out = f'(let (({expr.name} {p(expr.value)}))\n' \
                    f'{nested(expr.body)})'
            case mir.Lambda():
                params = format_params(expr.params, expr.rest)
                out = f'(λ {params}\n{nested(expr.body)})'
            case mir.App():
                parts = [p(expr.operator)] + [p(e) for e in expr.operands]
                out = '(' + ' '.join(parts) + ')'
            case mir.If():
                out = f'(if {p(expr.test)}\n{nested(expr.consequent)}'
                if expr.alternative is not None:
                    out += f'\n{nested(expr.alternative)}'
                out += ')'
            case mir.Set():
                out = f'(set! {expr.name}\n{nested(expr.value)})'
            case _:
                raise TypeError(f'Unknown MIR expression: {expr!r}')

        return indent + out
