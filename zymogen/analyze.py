import logging

from . import hir
from .exceptions import AnalysisError, AnalysisErrorKind
from .sexpr import (
    Bool, Integer, Keyword, Keywords, List, Nil, Pair, Sexp, SexpType, String,
    Symbol,
)


logger = logging.getLogger(__name__)

CONS = 'cons'
APPEND = 'append'


class Analyzer:
    """
    Turns parsed s-expressions into HIR trees. Special forms are recognized by
    the keyword at the head of a list; any other list is a procedure call.
    """

    def __init__(self, source: (None | str) = None):
        self.source = source

    def analyze(self, sexp: Sexp) -> hir.Expression:
        expr = self._analyze(sexp)
        logger.debug('Analyzed: %s', expr)
        return expr

    def analyze_sequence(self, exprs, form=None) -> list[hir.Expression]:
        if isinstance(exprs, List):
            exprs = self._elements(exprs)

        if len(exprs) == 0:
            raise self._error(AnalysisErrorKind.EMPTY_LIST, form=form)

        return [self._analyze(e) for e in exprs]

    def _error(self, kind, *, msg=None, form=None, expected=None, actual=None):
        return AnalysisError(kind, msg=msg, form=form,
                             expected=expected, actual=actual,
                             source=self.source)

    def _wrong_type(self, form, expected: SexpType):
        return self._error(AnalysisErrorKind.WRONG_TYPE, form=form,
                           expected=expected, actual=form.ty())

    def _elements(self, form: List) -> list[Sexp]:
        if not form.is_proper():
            raise self._error(AnalysisErrorKind.MESSAGE,
                              msg='Improper list in expression', form=form)
        return form.to_list()

    def _require(self, form, args, n):
        "make sure there are at least n sub-forms after the head of form"
        if len(args) < n:
            raise self._error(AnalysisErrorKind.ARITY, form=form)

    def _identifier(self, form) -> str:
        if not isinstance(form, Symbol):
            raise self._wrong_type(form, SexpType.IDENTIFIER)
        return form.name

    def _analyze(self, sexp: Sexp) -> hir.Expression:
        match sexp:
            case Bool() | Integer() | String() | Keyword():
                return hir.Literal(sexp)
            case Symbol():
                return hir.Variable(sexp.name)
            case Nil():
                raise self._error(AnalysisErrorKind.MESSAGE,
                                  msg='Cannot evaluate empty list',
                                  form=sexp)
            case Pair():
                return self._analyze_list(sexp)
            case _:
                assert False, f'Unknown s-expression type: {sexp!r}'

    def _analyze_list(self, form: Pair) -> hir.Expression:
        head, *args = self._elements(form)

        if not isinstance(head, Keyword):
            return self._analyze_call(form, head, args)

        match head.keyword:
            case Keywords.LAMBDA:
                self._require(form, args, 1)
                return self._analyze_lambda(form, args[0], args[1:])
            case Keywords.LET:
                return self._analyze_let(form, args)
            case Keywords.LET_STAR:
                return self._analyze_let_star(form, args)
            case Keywords.LETREC:
                return self._analyze_letrec(form, args)
            case Keywords.IF:
                return self._analyze_if(form, args)
            case Keywords.COND:
                return self._analyze_cond(form, args)
            case Keywords.DEFINE:
                return self._analyze_define(form, args)
            case Keywords.SET:
                return self._analyze_assignment(form, args)
            case Keywords.BEGIN:
                return hir.Begin(self.analyze_sequence(args, form))
            case Keywords.AND:
                return hir.And([self._analyze(e) for e in args])
            case Keywords.OR:
                return hir.Or([self._analyze(e) for e in args])
            case Keywords.DELAY:
                # a thunk that evaluates the body when called
                body = self.analyze_sequence(args, form)
                return hir.Lambda([], None, body)
            case Keywords.QUOTE:
                self._require(form, args, 1)
                self._no_extra(form, args, 1)
                return self._quote(args[0])
            case Keywords.QUASIQUOTE:
                self._require(form, args, 1)
                self._no_extra(form, args, 1)
                return hir.Quasiquoted(1, self._quasiquote(args[0], 1))
            case Keywords.UNQUOTE | Keywords.UNQUOTE_SPLICING:
                raise self._error(
                    AnalysisErrorKind.MESSAGE,
                    msg=f'{head.name} outside of quasiquote', form=form)
            case Keywords.CASE | Keywords.DO:
                raise self._error(
                    AnalysisErrorKind.MESSAGE,
                    msg=f'Unsupported special form: {head.name}', form=form)
            case Keywords.ELSE | Keywords.DOT:
                raise self._error(
                    AnalysisErrorKind.MESSAGE,
                    msg=f'Misplaced keyword: {head.name}', form=form)
            case _:
                assert False, f'Unhandled keyword: {head.keyword}'

    def _no_extra(self, form, args, n):
        if len(args) > n:
            raise self._error(
                AnalysisErrorKind.MESSAGE,
                msg=f'Too many sub-forms (expected {n}, got {len(args)})',
                form=form)

    def _analyze_call(self, form, head, args) -> hir.Call:
        operator = self._analyze(head)
        if not isinstance(operator, (hir.Variable, hir.Call, hir.Lambda)):
            raise self._error(AnalysisErrorKind.MESSAGE,
                              msg=f'Invalid procedure: {head}', form=form)

        for arg in args:
            if isinstance(arg, Keyword) and arg.is_(Keywords.DOT):
                raise self._error(AnalysisErrorKind.MESSAGE,
                                  msg='Unexpected dot in procedure call',
                                  form=arg)

        # zero operands is a valid call, unlike other sequences
        operands = [self._analyze(arg) for arg in args]
        return hir.Call(operator, operands)

    def _analyze_params(self, params: Sexp) -> tuple[list[str], (None | str)]:
        match params:
            case Nil():
                return [], None
            case Symbol():
                return [], params.name
            case Pair():
                names = []
                rest = None
                elements, tail = params.split_improper_tail()
                if tail is not None:
                    # built programmatically as (a b . c)
                    rest = self._identifier(tail)

                elements = iter(elements)
                for param in elements:
                    if isinstance(param, Keyword) and param.is_(Keywords.DOT):
                        rest_param = next(elements, None)
                        if rest_param is None:
                            raise self._error(AnalysisErrorKind.ARITY,
                                              form=params)
                        rest = self._identifier(rest_param)
                        if next(elements, None) is not None:
                            raise self._error(
                                AnalysisErrorKind.MESSAGE,
                                msg='Only one rest parameter allowed after dot',
                                form=params)
                        break
                    names.append(self._identifier(param))

                return names, rest
            case _:
                raise self._wrong_type(params, SexpType.IDENTIFIER)

    def _analyze_lambda(self, form, params, body) -> hir.Lambda:
        names, rest = self._analyze_params(params)
        body = self.analyze_sequence(body, form)
        return hir.Lambda(names, rest, body)

    def _analyze_bindings(self, bindings: Sexp) -> list[hir.Binding]:
        if not isinstance(bindings, List):
            raise self._wrong_type(bindings, SexpType.LIST)

        result = []
        for binding in self._elements(bindings):
            if not isinstance(binding, Pair) or \
               not binding.is_proper() or \
               len(binding) != 2 or \
               not isinstance(binding[0], Symbol):
                logger.debug('Skipping malformed binding: %s', binding)
                continue

            name, expr = binding.to_list()
            result.append(hir.Binding(name.name, self._analyze(expr)))

        return result

    def _analyze_named_let(self, form, args) -> hir.NamedLet:
        self._require(form, args, 2)
        name = self._identifier(args[0])
        bindings = self._analyze_bindings(args[1])
        body = self.analyze_sequence(args[2:], form)
        return hir.NamedLet(name, bindings, body)

    def _analyze_let(self, form, args) -> hir.Expression:
        self._require(form, args, 1)
        if isinstance(args[0], Symbol):
            return self._analyze_named_let(form, args)

        bindings = self._analyze_bindings(args[0])
        body = self.analyze_sequence(args[1:], form)
        return hir.Let(bindings, body)

    def _analyze_let_star(self, form, args) -> hir.Expression:
        self._require(form, args, 1)
        if isinstance(args[0], Symbol):
            return self._analyze_named_let(form, args)

        bindings = self._analyze_bindings(args[0])
        body = self.analyze_sequence(args[1:], form)
        if len(bindings) <= 1:
            return hir.Let(bindings, body)

        # each binding sees the ones before it
        expr = hir.Let([bindings[-1]], body)
        for binding in reversed(bindings[:-1]):
            expr = hir.Let([binding], [expr])
        return expr

    def _analyze_letrec(self, form, args) -> hir.Expression:
        self._require(form, args, 1)
        if isinstance(args[0], Symbol):
            return self._analyze_named_let(form, args)

        bindings = self._analyze_bindings(args[0])
        body = self.analyze_sequence(args[1:], form)
        return hir.LetRec(bindings, body)

    def _analyze_if(self, form, args) -> hir.If:
        self._require(form, args, 2)
        self._no_extra(form, args, 3)

        test = self._analyze(args[0])
        consequent = self._analyze(args[1])
        alternative = None
        if len(args) == 3:
            alternative = self._analyze(args[2])

        return hir.If(test, consequent, alternative)

    def _analyze_cond(self, form, args) -> hir.Cond:
        clauses = []
        else_clause = None
        for clause in args:
            if not isinstance(clause, Pair):
                break

            test, *body = self._elements(clause)
            if isinstance(test, Keyword) and test.is_(Keywords.ELSE):
                # an empty else body is allowed and evaluates to #f
                else_clause = [self._analyze(e) for e in body]
                break

            clauses.append(hir.CondClause(
                self._analyze(test),
                self.analyze_sequence(body, clause)))

        return hir.Cond(clauses, else_clause)

    def _analyze_define(self, form, args) -> hir.Assignment:
        self._require(form, args, 1)
        target = args[0]

        match target:
            case Pair():
                # (define (f . params) body...) is (set! f (lambda params body...))
                name = self._identifier(target.car)
                value = self._analyze_lambda(form, target.cdr, args[1:])
                return hir.Assignment(name, value)
            case Symbol():
                self._require(form, args, 2)
                self._no_extra(form, args, 2)
                return hir.Assignment(target.name, self._analyze(args[1]))
            case _:
                raise self._wrong_type(target, SexpType.IDENTIFIER)

    def _analyze_assignment(self, form, args) -> hir.Assignment:
        self._require(form, args, 2)
        self._no_extra(form, args, 2)
        name = self._identifier(args[0])
        return hir.Assignment(name, self._analyze(args[1]))

    def _split_dotted(self, form: Pair) -> tuple[list[Sexp], (None | Sexp)]:
        """
        Split a list into its proper elements and its dotted tail, if any. The
        tail is either written with the dot marker or, for lists built in code,
        is the final non-list cdr.
        """
        elements, tail = form.split_improper_tail()
        for i, e in enumerate(elements):
            if isinstance(e, Keyword) and e.is_(Keywords.DOT):
                if i == 0 or i != len(elements) - 2 or tail is not None:
                    raise self._error(AnalysisErrorKind.MESSAGE,
                                      msg='Malformed dotted list', form=form)
                return elements[:i], elements[i + 1]

        return elements, tail

    def _cons(self, car: hir.Expression, cdr: hir.Expression) -> hir.Call:
        return hir.Call(hir.Variable(CONS), [car, cdr])

    def _quote(self, datum: Sexp) -> hir.Expression:
        "quoted lists are rebuilt at runtime with calls to cons"
        if not isinstance(datum, Pair):
            return hir.Quotation(datum)

        elements, tail = self._split_dotted(datum)
        if tail is None:
            result = hir.Quotation(Nil())
        else:
            result = self._quote(tail)

        for e in reversed(elements):
            result = self._cons(self._quote(e), result)

        return result

    def _is_form(self, datum, keyword: Keywords) -> bool:
        return isinstance(datum, Pair) and \
            isinstance(datum.car, Keyword) and \
            datum.car.is_(keyword)

    def _single_operand(self, datum: Pair) -> Sexp:
        args = self._elements(datum.cdr) if isinstance(datum.cdr, List) else None
        if args is None or len(args) != 1:
            raise self._error(
                AnalysisErrorKind.MESSAGE,
                msg=f'{datum.car.name} takes exactly one operand', form=datum)
        return args[0]

    def _quasiquote(self, datum: Sexp, depth: int) -> hir.Expression:
        if not isinstance(datum, Pair):
            return hir.Quotation(datum)

        if self._is_form(datum, Keywords.UNQUOTE):
            operand = self._single_operand(datum)
            if depth == 1:
                return self._analyze(operand)
            return self._cons(hir.Quotation(datum.car),
                              self._quasiquote(datum.cdr, depth - 1))

        if self._is_form(datum, Keywords.UNQUOTE_SPLICING):
            self._single_operand(datum)
            if depth == 1:
                raise self._error(
                    AnalysisErrorKind.MESSAGE,
                    msg='unquote-splicing outside of a list', form=datum)
            return self._cons(hir.Quotation(datum.car),
                              self._quasiquote(datum.cdr, depth - 1))

        if self._is_form(datum, Keywords.QUASIQUOTE):
            self._single_operand(datum)
            return self._cons(hir.Quotation(datum.car),
                              self._quasiquote(datum.cdr, depth + 1))

        elements, tail = self._split_dotted(datum)
        if tail is None:
            result = hir.Quotation(Nil())
        else:
            result = self._quasiquote(tail, depth)

        for e in reversed(elements):
            if depth == 1 and self._is_form(e, Keywords.UNQUOTE_SPLICING):
                spliced = self._analyze(self._single_operand(e))
                result = hir.Call(hir.Variable(APPEND), [spliced, result])
            else:
                result = self._cons(self._quasiquote(e, depth), result)

        return result


def analyze(sexp: Sexp, *, source=None) -> hir.Expression:
    return Analyzer(source).analyze(sexp)


def analyze_sequence(exprs, *, source=None) -> list[hir.Expression]:
    return Analyzer(source).analyze_sequence(exprs)
