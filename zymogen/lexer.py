import logging

from .exceptions import LexError, LexErrorKind
from .sexpr import INT64_MAX
from .token import Token, TokenKind


logger = logging.getLogger(__name__)

IDENTIFIER_PUNCTUATION = '~!@#$%^&*-_+=|?.<>/'

BOOLEANS = {
    '#t': True,
    'true': True,
    '#f': False,
    'false': False,
}

SIMPLE_TOKENS = {
    '(': TokenKind.LEFT_PAREN,
    ')': TokenKind.RIGHT_PAREN,
    "'": TokenKind.QUOTE,
    '`': TokenKind.QUASIQUOTE,
    '.': TokenKind.DOT,
}


def is_identifier_char(ch: str) -> bool:
    return ch.isalnum() or ch in IDENTIFIER_PUNCTUATION


class Lexer:
    def __init__(self, text: str):
        assert isinstance(text, str)

        self.text = text
        self.idx = 0
        self.line = 0
        self.column = 0

    def _peek(self, offset=0):
        idx = self.idx + offset
        if idx >= len(self.text):
            return None
        return self.text[idx]

    def _consume(self):
        ch = self._peek()
        if ch is None:
            return None

        self.idx += 1
        if ch == '\n':
            self.line += 1
            self.column = 0
        else:
            self.column += 1

        return ch

    def _consume_while(self, pred) -> str:
        start = self.idx
        while (ch := self._peek()) is not None and pred(ch):
            self._consume()
        return self.text[start:self.idx]

    def _skip_whitespace_and_comments(self):
        while True:
            self._consume_while(str.isspace)
            if self._peek() != ';':
                break
            self._consume_while(lambda ch: ch != '\n')

    def _read_string(self, line, column) -> Token:
        self._consume() # opening quote
        value = self._consume_while(lambda ch: ch != '"')
        if self._consume() is None:
            raise LexError(LexErrorKind.UNBALANCED, line, column)

        return Token(TokenKind.STRING, line, column, value)

    def _read_number(self, line, column) -> Token:
        digits = self._consume_while(str.isdecimal)
        n = int(digits)
        if n > INT64_MAX:
            raise LexError(LexErrorKind.INVALID, line, column,
                           msg=f'Integer literal out of 64-bit range: {digits}')

        return Token(TokenKind.INTEGER, line, column, n)

    def _read_identifier(self, line, column) -> Token:
        name = self._consume_while(is_identifier_char)
        if name == '':
            raise LexError(LexErrorKind.EOF, self.line, self.column)

        if name in BOOLEANS:
            return Token(TokenKind.BOOLEAN, line, column, BOOLEANS[name])

        return Token(TokenKind.IDENTIFIER, line, column, name)

    def next_token(self) -> Token:
        self._skip_whitespace_and_comments()

        line, column = self.line, self.column
        ch = self._peek()
        if ch is None:
            return Token(TokenKind.EOF, line, column)

        if ch in SIMPLE_TOKENS:
            self._consume()
            return Token(SIMPLE_TOKENS[ch], line, column)

        if ch == ',':
            self._consume()
            if self._peek() == '@':
                self._consume()
                return Token(TokenKind.UNQUOTE_SPLICING, line, column)
            return Token(TokenKind.UNQUOTE, line, column)

        if ch == '"':
            return self._read_string(line, column)

        if ch.isdecimal():
            return self._read_number(line, column)

        if is_identifier_char(ch):
            return self._read_identifier(line, column)

        raise LexError(LexErrorKind.INVALID, line, column, char=ch)

    def lex(self) -> list[Token]:
        """
        Read all tokens up to the end of input and return them as a python
        list. The final EOF token is not included.
        """
        tokens = []
        while True:
            token = self.next_token()
            if token.kind == TokenKind.EOF:
                break
            tokens.append(token)

        return tokens


def lex(text: str) -> list[Token]:
    try:
        tokens = Lexer(text).lex()
    except LexError as e:
        raise e.with_source(text)

    logger.debug('Tokens: %s', tokens)
    return tokens
