"""
Mid-level intermediate representation.

A small expression language used for ANF normalization and bytecode
generation. Cons lists no longer exist at this level; they are built by
applications of cons.
"""

from enum import Enum

from .sexpr import Bool, Integer, Keyword, Nil, Sexp, String, Symbol


class ValueKind(Enum):
    STRING = 'string'
    BOOLEAN = 'boolean'
    INTEGER = 'integer'
    SYMBOL = 'symbol'
    NIL = 'nil'


class Value:
    def __init__(self, kind: ValueKind, value=None):
        self.kind = kind
        self.value = value

    @staticmethod
    def string(s: str):
        return Value(ValueKind.STRING, s)

    @staticmethod
    def boolean(b: bool):
        return Value(ValueKind.BOOLEAN, b)

    @staticmethod
    def integer(n: int):
        return Value(ValueKind.INTEGER, n)

    @staticmethod
    def symbol(name: str):
        return Value(ValueKind.SYMBOL, name)

    @staticmethod
    def nil():
        return Value(ValueKind.NIL)

    @staticmethod
    def from_sexp(sexp: Sexp) -> 'Value':
        match sexp:
            case Bool():
                return Value.boolean(sexp.value)
            case Integer():
                return Value.integer(int(sexp))
            case String():
                return Value.string(sexp.value)
            case Symbol():
                return Value.symbol(sexp.name)
            case Keyword():
                return Value.symbol(sexp.name)
            case Nil():
                return Value.nil()
            case _:
                raise ValueError(f'No atomic value for: {sexp!r}')

    def __eq__(self, other):
        if not isinstance(other, Value):
            return False
        # compare kinds first so that 1 and #t are different values
        return self.kind == other.kind and self.value == other.value

    def __hash__(self):
        return hash((self.kind, self.value))

    def __repr__(self):
        return f'<Value {self.kind.value} {self}>'

    def __str__(self):
        match self.kind:
            case ValueKind.STRING:
                return f'"{self.value}"'
            case ValueKind.BOOLEAN:
                return '#t' if self.value else '#f'
            case ValueKind.NIL:
                return '()'
            case _:
                return str(self.value)


TRUE = Value.boolean(True)
FALSE = Value.boolean(False)


class Expr:
    _fields = ()

    def is_atomic(self) -> bool:
        return False

    def __eq__(self, other):
        if type(self) != type(other):
            return False
        return all(getattr(self, f) == getattr(other, f) for f in self._fields)

    def __hash__(self):
        return hash((type(self).__name__, str(self)))

    def __repr__(self):
        return f'<{type(self).__name__} {self}>'

    def __str__(self):
        from .print import Printer # avoid circular import
        return Printer(self).print()


class Var(Expr):
    _fields = ('name',)

    def __init__(self, name: str):
        assert isinstance(name, str)
        self.name = name

    def is_atomic(self):
        return True


class Val(Expr):
    _fields = ('value',)

    def __init__(self, value: Value):
        assert isinstance(value, Value)
        self.value = value

    def is_atomic(self):
        return True


class Quote(Expr):
    _fields = ('value',)

    def __init__(self, value: Value):
        assert isinstance(value, Value)
        self.value = value

    def is_atomic(self):
        return True


class Let(Expr):
    "a single binding, to mirror A-normal form"

    _fields = ('name', 'value', 'body')

    def __init__(self, name: str, value: Expr, body: Expr):
        self.name = name
        self.value = value
        self.body = body


class Lambda(Expr):
    _fields = ('params', 'rest', 'body')

    def __init__(self, params: list[str], rest: (None | str), body: Expr):
        self.params = params
        self.rest = rest
        self.body = body


class App(Expr):
    _fields = ('operator', 'operands')

    def __init__(self, operator: Expr, operands: list[Expr]):
        self.operator = operator
        self.operands = operands


class If(Expr):
    _fields = ('test', 'consequent', 'alternative')

    def __init__(self, test: Expr, consequent: Expr,
                 alternative: (None | Expr) = None):
        self.test = test
        self.consequent = consequent
        self.alternative = alternative


class Set(Expr):
    _fields = ('name', 'value')

    def __init__(self, name: str, value: Expr):
        self.name = name
        self.value = value


def is_atomic(expr: Expr) -> bool:
    return expr.is_atomic()


def children(expr: Expr) -> list[Expr]:
    "direct sub-expressions of expr, in evaluation order"
    match expr:
        case Let():
            return [expr.value, expr.body]
        case Lambda():
            return [expr.body]
        case App():
            return [*expr.operands, expr.operator]
        case If():
            kids = [expr.test, expr.consequent]
            if expr.alternative is not None:
                kids.append(expr.alternative)
            return kids
        case Set():
            return [expr.value]
        case _:
            return []


def walk(expr: Expr):
    "yield expr and all of its sub-expressions, without recursion"
    stack = [expr]
    while stack:
        cur = stack.pop()
        yield cur
        stack.extend(reversed(children(cur)))
