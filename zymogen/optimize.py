import logging

from . import mir


logger = logging.getLogger(__name__)


def side_effects(expr: mir.Expr, *, calls=False) -> bool:
    """
    Return True if evaluating expr might have a side effect. Assignments are
    the only primitive side effect, and are reported even inside lambda
    bodies. With calls=True every application that is evaluated along with
    expr is also assumed to have one, since the called procedure is not known
    here. Applications inside a lambda body only run when the lambda is
    called, so they do not count.
    """
    stack = [(expr, False)]
    while stack:
        e, in_lambda = stack.pop()
        if isinstance(e, mir.Set):
            return True
        if calls and not in_lambda and isinstance(e, mir.App):
            return True

        in_lambda = in_lambda or isinstance(e, mir.Lambda)
        stack.extend((child, in_lambda) for child in mir.children(e))
    return False


def referenced_variables(expr: mir.Expr) -> set[str]:
    "every name that is read or assigned anywhere in expr"
    names = set()
    for e in mir.walk(expr):
        if isinstance(e, (mir.Var, mir.Set)):
            names.add(e.name)
    return names


def bound_variables(expr: mir.Expr) -> set[str]:
    "every name introduced by a let or lambda anywhere in expr"
    names = set()
    for e in mir.walk(expr):
        match e:
            case mir.Let():
                names.add(e.name)
            case mir.Lambda():
                names.update(e.params)
                if e.rest is not None:
                    names.add(e.rest)
    return names


def _lambda_bound(expr: mir.Lambda) -> set[str]:
    bound = set(expr.params)
    if expr.rest is not None:
        bound.add(expr.rest)
    return bound


def free_variables(expr: mir.Expr) -> set[str]:
    match expr:
        case mir.Var():
            return {expr.name}
        case mir.Val() | mir.Quote():
            return set()
        case mir.Let():
            return free_variables(expr.value) | \
                (free_variables(expr.body) - {expr.name})
        case mir.Lambda():
            return free_variables(expr.body) - _lambda_bound(expr)
        case mir.Set():
            return {expr.name} | free_variables(expr.value)
        case mir.App() | mir.If():
            result = set()
            for child in mir.children(expr):
                result |= free_variables(child)
            return result
        case _:
            assert False, f'Unknown MIR expression: {expr!r}'


def assigned_variables(expr: mir.Expr) -> set[str]:
    "free variables of expr that are the target of a set! inside it"
    match expr:
        case mir.Var() | mir.Val() | mir.Quote():
            return set()
        case mir.Let():
            return assigned_variables(expr.value) | \
                (assigned_variables(expr.body) - {expr.name})
        case mir.Lambda():
            return assigned_variables(expr.body) - _lambda_bound(expr)
        case mir.Set():
            return {expr.name} | assigned_variables(expr.value)
        case mir.App() | mir.If():
            result = set()
            for child in mir.children(expr):
                result |= assigned_variables(child)
            return result
        case _:
            assert False, f'Unknown MIR expression: {expr!r}'


def captured_variables(expr: mir.Expr) -> set[str]:
    "free variables of expr that are referenced from inside a nested lambda"
    match expr:
        case mir.Var() | mir.Val() | mir.Quote():
            return set()
        case mir.Let():
            return captured_variables(expr.value) | \
                (captured_variables(expr.body) - {expr.name})
        case mir.Lambda():
            return free_variables(expr)
        case mir.Set():
            return captured_variables(expr.value)
        case mir.App() | mir.If():
            result = set()
            for child in mir.children(expr):
                result |= captured_variables(child)
            return result
        case _:
            assert False, f'Unknown MIR expression: {expr!r}'


def eliminate_dead_bindings(expr: mir.Expr) -> mir.Expr:
    """
    Remove let bindings whose variable is never used in the body and whose
    bound expression has no side effects.
    """
    match expr:
        case mir.Var() | mir.Val() | mir.Quote():
            return expr
        case mir.Let():
            value = eliminate_dead_bindings(expr.value)
            body = eliminate_dead_bindings(expr.body)
            if expr.name not in free_variables(body) and \
               not side_effects(value, calls=True):
                logger.debug('Eliminating dead binding: %s', expr.name)
                return body
            return mir.Let(expr.name, value, body)
        case mir.Lambda():
            return mir.Lambda(expr.params, expr.rest,
                              eliminate_dead_bindings(expr.body))
        case mir.App():
            return mir.App(eliminate_dead_bindings(expr.operator),
                           [eliminate_dead_bindings(e) for e in expr.operands])
        case mir.If():
            alternative = expr.alternative
            if alternative is not None:
                alternative = eliminate_dead_bindings(alternative)
            return mir.If(eliminate_dead_bindings(expr.test),
                          eliminate_dead_bindings(expr.consequent),
                          alternative)
        case mir.Set():
            return mir.Set(expr.name, eliminate_dead_bindings(expr.value))
        case _:
            assert False, f'Unknown MIR expression: {expr!r}'
