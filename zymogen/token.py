from enum import Enum


class TokenKind(Enum):
    LEFT_PAREN = 'left-paren'
    RIGHT_PAREN = 'right-paren'
    QUOTE = 'quote'
    QUASIQUOTE = 'quasiquote'
    UNQUOTE = 'unquote'
    UNQUOTE_SPLICING = 'unquote-splicing'
    DOT = 'dot'
    BOOLEAN = 'boolean'
    INTEGER = 'integer'
    STRING = 'string'
    IDENTIFIER = 'identifier'
    EOF = 'eof'


class Token:
    def __init__(self, kind: TokenKind, line: int, column: int, value=None):
        self.kind = kind
        self.line = line
        self.column = column
        self.value = value

    def __eq__(self, other):
        if not isinstance(other, Token):
            return False
        return (self.kind, self.line, self.column, self.value) == \
            (other.kind, other.line, other.column, other.value)

    def __hash__(self):
        return hash((self.kind, self.line, self.column, self.value))

    def __repr__(self):
        if self.value is None:
            return f'<Token {self.kind.value} {self.line}:{self.column}>'
        return f'<Token {self.kind.value} {self.value!r} {self.line}:{self.column}>'

    def describe(self):
        "short human-readable description, used in error messages."
        match self.kind:
            case TokenKind.LEFT_PAREN:
                return "'('"
            case TokenKind.RIGHT_PAREN:
                return "')'"
            case TokenKind.QUOTE:
                return "quote (')"
            case TokenKind.QUASIQUOTE:
                return 'quasiquote (`)'
            case TokenKind.UNQUOTE:
                return 'unquote (,)'
            case TokenKind.UNQUOTE_SPLICING:
                return 'unquote-splicing (,@)'
            case TokenKind.DOT:
                return 'dot (.)'
            case TokenKind.EOF:
                return 'end of input'
            case _:
                return f'{self.kind.value} {self.value!r}'
