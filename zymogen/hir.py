"""
High-level intermediate representation.

The analyzer produces these trees directly from parsed s-expressions. They stay
close to the surface syntax: primitive forms carry the core semantics of the
language, while derived forms are sugar that the desugarer rewrites into
primitives on the way down to MIR.
"""

from .sexpr import Sexp


class Expression:
    _fields = ()

    def is_primitive(self) -> bool:
        raise NotImplementedError

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


class Primitive(Expression):
    def is_primitive(self):
        return True


class Derived(Expression):
    def is_primitive(self):
        return False


class Binding:
    def __init__(self, name: str, expr: Expression):
        self.name = name
        self.expr = expr

    def __eq__(self, other):
        if not isinstance(other, Binding):
            return False
        return self.name == other.name and self.expr == other.expr

    def __repr__(self):
        return f'<Binding {self.name} {self.expr}>'


class CondClause:
    def __init__(self, test: Expression, body: list[Expression]):
        self.test = test
        self.body = body

    def __eq__(self, other):
        if not isinstance(other, CondClause):
            return False
        return self.test == other.test and self.body == other.body

    def __repr__(self):
        return f'<CondClause {self.test}>'


# primitive forms

class Literal(Primitive):
    _fields = ('value',)

    def __init__(self, value: Sexp):
        self.value = value


class Variable(Primitive):
    _fields = ('name',)

    def __init__(self, name: str):
        self.name = name


class Quotation(Primitive):
    _fields = ('value',)

    def __init__(self, value: Sexp):
        self.value = value


class Call(Primitive):
    _fields = ('operator', 'operands')

    def __init__(self, operator: Expression, operands: list[Expression]):
        self.operator = operator
        self.operands = operands


class Lambda(Primitive):
    _fields = ('params', 'rest', 'body')

    def __init__(self, params: list[str], rest: (None | str),
                 body: list[Expression]):
        assert len(body) > 0
        self.params = params
        self.rest = rest
        self.body = body


class If(Primitive):
    _fields = ('test', 'consequent', 'alternative')

    def __init__(self, test: Expression, consequent: Expression,
                 alternative: (None | Expression) = None):
        self.test = test
        self.consequent = consequent
        self.alternative = alternative


class Assignment(Primitive):
    _fields = ('name', 'value')

    def __init__(self, name: str, value: Expression):
        self.name = name
        self.value = value


# derived forms

class Let(Derived):
    _fields = ('bindings', 'body')

    def __init__(self, bindings: list[Binding], body: list[Expression]):
        self.bindings = bindings
        self.body = body


class LetRec(Derived):
    _fields = ('bindings', 'body')

    def __init__(self, bindings: list[Binding], body: list[Expression]):
        self.bindings = bindings
        self.body = body


class NamedLet(Derived):
    _fields = ('name', 'bindings', 'body')

    def __init__(self, name: str, bindings: list[Binding],
                 body: list[Expression]):
        self.name = name
        self.bindings = bindings
        self.body = body


class Begin(Derived):
    _fields = ('body',)

    def __init__(self, body: list[Expression]):
        assert len(body) > 0
        self.body = body


class Cond(Derived):
    _fields = ('clauses', 'else_clause')

    def __init__(self, clauses: list[CondClause],
                 else_clause: (None | list[Expression]) = None):
        self.clauses = clauses
        self.else_clause = else_clause


class And(Derived):
    _fields = ('body',)

    def __init__(self, body: list[Expression]):
        self.body = body


class Or(Derived):
    _fields = ('body',)

    def __init__(self, body: list[Expression]):
        self.body = body


class Quasiquoted(Derived):
    "a quasiquote form, already expanded into calls by the analyzer"

    _fields = ('depth', 'body')

    def __init__(self, depth: int, body: Expression):
        self.depth = depth
        self.body = body
