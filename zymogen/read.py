import logging

from .exceptions import LexError, ParseError, ParseErrorKind
from .lexer import Lexer
from .sexpr import Bool, Integer, Keyword, Keywords, List, Sexp, String, Symbol
from .token import Token, TokenKind


logger = logging.getLogger(__name__)

SIGILS = {
    TokenKind.QUOTE: Keywords.QUOTE,
    TokenKind.QUASIQUOTE: Keywords.QUASIQUOTE,
    TokenKind.UNQUOTE: Keywords.UNQUOTE,
    TokenKind.UNQUOTE_SPLICING: Keywords.UNQUOTE_SPLICING,
}


def classify_identifier(name: str) -> Sexp:
    "turn an identifier into a keyword if it is one of the reserved words."
    keyword = Keywords.from_name(name)
    if keyword is None:
        return Symbol(name)
    return Keyword(keyword)


class Parser:
    def __init__(self, text: str):
        self.text = text
        self._lexer = Lexer(text)
        self._peek = None

    def _peek_token(self) -> Token:
        if self._peek is None:
            self._peek = self._lexer.next_token()
        return self._peek

    def _consume(self) -> Token:
        token = self._peek_token()
        self._peek = None
        return token

    def _expect(self, kind: TokenKind) -> Token:
        token = self._consume()
        if token.kind != kind:
            raise ParseError(
                ParseErrorKind.EXPECTED_TOKEN, token.line, token.column,
                expected=kind.value, actual=token.describe())
        return token

    def parse(self) -> list[Sexp]:
        """
        Parse all expressions in the input and return them as a python list.
        """
        forms = []
        while True:
            form = self.parse_expr()
            if form is None:
                break
            forms.append(form)
        return forms

    def parse_expr(self) -> (None | Sexp):
        """
        Return None at the end of input, otherwise parse one expression and
        return it.
        """
        token = self._consume()

        match token.kind:
            case TokenKind.EOF:
                return None

            case TokenKind.LEFT_PAREN:
                value = self.parse_list(token)

            case TokenKind.RIGHT_PAREN:
                raise ParseError(ParseErrorKind.UNBALANCED,
                                 token.line, token.column)

            case TokenKind.DOT:
                raise ParseError(ParseErrorKind.UNBALANCED,
                                 token.line, token.column,
                                 msg='Unexpected dot (.)')

            case (TokenKind.QUOTE | TokenKind.QUASIQUOTE |
                  TokenKind.UNQUOTE | TokenKind.UNQUOTE_SPLICING):
                value = self._parse_sigil(token)

            case TokenKind.BOOLEAN:
                value = Bool(token.value)

            case TokenKind.INTEGER:
                value = Integer(token.value)

            case TokenKind.STRING:
                value = String(token.value)

            case TokenKind.IDENTIFIER:
                value = classify_identifier(token.value)

            case _:
                assert False, f'Unhandled token kind: {token.kind}'

        return value.at(token.line, token.column)

    def _parse_sigil(self, token: Token) -> Sexp:
        keyword = SIGILS[token.kind]
        next_token = self._peek_token()
        if next_token.kind in (TokenKind.EOF, TokenKind.RIGHT_PAREN):
            raise ParseError(ParseErrorKind.UNBALANCED,
                             token.line, token.column,
                             msg=f'Missing expression after {keyword.value}')

        operand = self.parse_expr()
        head = Keyword(keyword).at(token.line, token.column)
        return List.from_list([head, operand])

    def parse_list(self, start: Token) -> List:
        """
        Parse the elements of a list up to the matching close paren. The
        opening paren has already been consumed. A dot inside the list is kept
        as a keyword marker element.
        """
        elements = []
        while True:
            token = self._peek_token()
            match token.kind:
                case TokenKind.RIGHT_PAREN:
                    self._expect(TokenKind.RIGHT_PAREN)
                    break
                case TokenKind.EOF:
                    raise ParseError(ParseErrorKind.EOF,
                                     start.line, start.column)
                case TokenKind.DOT:
                    self._consume()
                    elements.append(
                        Keyword(Keywords.DOT).at(token.line, token.column))
                case _:
                    elements.append(self.parse_expr())

        return List.from_list(elements)


def parse(text: str) -> list[Sexp]:
    try:
        forms = Parser(text).parse()
    except (LexError, ParseError) as e:
        raise e.with_source(text)

    for form in forms:
        logger.debug('Parsed: %s', form)

    return forms
