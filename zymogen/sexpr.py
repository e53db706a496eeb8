from enum import Enum


INT64_MIN = -2 ** 63
INT64_MAX = 2 ** 63 - 1


class SexpType(Enum):
    BOOLEAN = 'boolean'
    INTEGER = 'integer'
    IDENTIFIER = 'identifier'
    LITERAL = 'literal'
    KEYWORD = 'keyword'
    LIST = 'list'


class Keywords(Enum):
    QUOTE = 'quote'
    LAMBDA = 'lambda'
    IF = 'if'
    SET = 'set!'
    BEGIN = 'begin'
    COND = 'cond'
    AND = 'and'
    OR = 'or'
    CASE = 'case'
    LET = 'let'
    LET_STAR = 'let*'
    LETREC = 'letrec'
    DO = 'do'
    DELAY = 'delay'
    QUASIQUOTE = 'quasiquote'
    ELSE = 'else'
    DEFINE = 'define'
    UNQUOTE = 'unquote'
    UNQUOTE_SPLICING = 'unquote-splicing'
    DOT = '.'

    @classmethod
    def from_name(cls, name: str) -> 'Keywords | None':
        if name == 'set':
            return cls.SET
        if name == '.':
            # only the lexer's dot token produces the dot keyword
            return None
        try:
            return cls(name)
        except ValueError:
            return None


class Sexp:
    sexp_type: SexpType = None

    def __init__(self):
        self.line = None
        self.column = None

    def at(self, line, column):
        self.line = line
        self.column = column
        return self

    def ty(self) -> SexpType:
        return self.sexp_type

    def __str__(self):
        from .print import Printer # avoid circular import
        return Printer(self).print()


class Bool(Sexp):
    sexp_type = SexpType.BOOLEAN

    def __init__(self, value: bool):
        if not isinstance(value, bool):
            raise TypeError('Invalid boolean value')

        super().__init__()
        self.value = value

    def __bool__(self):
        return self.value

    def __repr__(self):
        return f'<Bool {str(self.value).lower()}>'

    def __hash__(self):
        return hash(self.value)

    def __eq__(self, other):
        if not isinstance(other, Bool):
            return False
        return self.value == other.value


class Integer(Sexp, int):
    sexp_type = SexpType.INTEGER

    def __new__(cls, n, *args, **kwargs):
        assert INT64_MIN <= n <= INT64_MAX, \
            f'Integer out of 64-bit range: {n}'
        return int.__new__(cls, n, *args, **kwargs)

    def __init__(self, n):
        super().__init__()

    def __eq__(self, other):
        if isinstance(other, Bool):
            return False
        return int.__eq__(self, other)

    def __hash__(self):
        return int.__hash__(self)

    def __repr__(self):
        return f'<Integer {int(self)}>'


class String(Sexp):
    sexp_type = SexpType.LITERAL

    def __init__(self, value: str):
        assert isinstance(value, str)
        super().__init__()
        self.value = value

    def __hash__(self):
        return hash(self.value)

    def __eq__(self, other):
        if not isinstance(other, String):
            return False
        return self.value == other.value

    def __len__(self):
        return len(self.value)

    def __repr__(self):
        return f'<String {self}>'


class Symbol(Sexp):
    sexp_type = SexpType.IDENTIFIER

    def __init__(self, name: str):
        assert isinstance(name, str)
        super().__init__()
        self.name = name

    def __eq__(self, other):
        if not isinstance(other, Symbol):
            return False
        return self.name == other.name

    def __hash__(self):
        return hash(self.name)

    def __repr__(self):
        return f'<Symbol {self.name}>'


class Keyword(Sexp):
    sexp_type = SexpType.KEYWORD

    def __init__(self, keyword: Keywords):
        assert isinstance(keyword, Keywords)
        super().__init__()
        self.keyword = keyword

    @property
    def name(self):
        return self.keyword.value

    def is_(self, keyword: Keywords):
        return self.keyword == keyword

    def __eq__(self, other):
        if not isinstance(other, Keyword):
            return False
        return self.keyword == other.keyword

    def __hash__(self):
        return hash(self.keyword)

    def __repr__(self):
        return f'<Keyword {self.keyword.value}>'


class List(Sexp):
    sexp_type = SexpType.LIST

    @staticmethod
    def from_list(ls, *, after_dot=None):
        if ls == [] and after_dot is None:
            return Nil()
        elif ls == []:
            return after_dot
        else:
            return Pair.from_list(ls, after_dot=after_dot)

    def to_list(self) -> list:
        raise NotImplementedError

    def split_improper_tail(self):
        raise NotImplementedError

    def is_proper(self) -> bool:
        raise NotImplementedError


class Nil(List):
    _instance = None

    def __new__(klass, *args, **kwargs):
        if not isinstance(klass._instance, klass):
            klass._instance = object.__new__(klass, *args, **kwargs)
            klass._instance.line = None
            klass._instance.column = None
        return klass._instance

    def __init__(self):
        # shared singleton; it never carries a source position.
        pass

    def at(self, line, column):
        return self

    def __repr__(self):
        return '<Nil>'

    def __iter__(self):
        return iter(())

    def __len__(self):
        return 0

    def __bool__(self):
        # we need this because otherwise python considers Nil() to be a false
        # value, since its __len__ is zero. we'd like to be able to write
        # `form or default` only when form is None.
        return True

    def __eq__(self, other):
        return isinstance(other, Nil)

    def __hash__(self):
        return hash(())

    def is_proper(self):
        return True

    def to_list(self):
        return []

    def split_improper_tail(self):
        return [], None


class Pair(List):
    class Iterator:
        def __init__(self, start):
            self.cur = start

        def __iter__(self):
            return self

        def __next__(self):
            if not isinstance(self.cur, Pair):
                raise StopIteration

            value = self.cur.car
            self.cur = self.cur.cdr
            return value

    def __init__(self, car: Sexp, cdr: Sexp):
        if not isinstance(car, Sexp):
            raise TypeError(f'Invalid value type for car: {car!r}')
        if not isinstance(cdr, Sexp):
            raise TypeError(f'Invalid value type for cdr: {cdr!r}')

        super().__init__()
        self.car = car
        self.cdr = cdr

    def __repr__(self):
        return str(self)

    def __len__(self) -> int:
        length = 0
        cur = self
        while isinstance(cur, Pair):
            length += 1
            cur = cur.cdr

        if not isinstance(cur, Nil):
            raise ValueError('Cannot calculate the length of an improper list')

        return length

    def __iter__(self):
        if not self.is_proper():
            raise ValueError('Cannot iterate over an improper list')
        return Pair.Iterator(self)

    def __getitem__(self, index):
        if not isinstance(index, int):
            raise TypeError('Only integer indices are supported')

        if index < 0:
            raise IndexError('Negative indices not supported')

        cur = self
        while isinstance(cur, Pair):
            if index == 0:
                return cur.car
            index -= 1
            cur = cur.cdr

        raise IndexError('List index out of range')

    def __eq__(self, other):
        # iterative, so that long lists don't run into the recursion limit
        # along their spine.
        a, b = self, other
        while isinstance(a, Pair):
            if not isinstance(b, Pair):
                return False
            if a.car != b.car:
                return False
            a, b = a.cdr, b.cdr
        return a == b

    def __hash__(self):
        return hash(tuple(self.split_improper_tail()[0]))

    def is_proper(self) -> bool:
        cur = self
        while isinstance(cur, Pair):
            cur = cur.cdr
        return isinstance(cur, Nil)

    def to_list(self) -> list:
        proper, tail = self.split_improper_tail()
        if tail is not None:
            raise ValueError('Not a proper list')
        return proper

    def split_improper_tail(self):
        cur = self
        proper = []
        while isinstance(cur, Pair):
            proper.append(cur.car)
            cur = cur.cdr
        if isinstance(cur, Nil):
            return proper, None
        else:
            return proper, cur

    @staticmethod
    def from_list(l: list, *, after_dot=None):
        assert isinstance(l, list)
        if l == []:
            return Nil() if after_dot is None else after_dot

        # build back to front; avoids mutating already linked cells.
        cur = Nil() if after_dot is None else after_dot
        for elem in reversed(l):
            cur = Pair(elem, cur)
        return cur


def cons(car: Sexp, cdr: Sexp) -> Pair:
    return Pair(car, cdr)
