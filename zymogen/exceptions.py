from enum import Enum

from .config import Config
from .snippet import format_snippet, show_snippet


class ZymogenError(Exception):
    """
    Base class for all errors reported by the compiler pipeline. Errors know
    their (0-based) source position when available, and render a snippet of
    the source with a caret under the offending character once the source text
    has been attached to them.
    """

    def __init__(self, msg, *, line=None, column=None, source=None):
        super().__init__(msg)
        self.msg = msg
        self.line = line
        self.column = column
        self.source = source

    def __repr__(self):
        return self.msg

    def __str__(self):
        return self.format()

    def has_position(self):
        return self.line is not None and self.column is not None

    def with_source(self, source: str):
        if self.source is None:
            self.source = source
        return self

    def format(self, *, snippet=True, color=False) -> str:
        if not self.has_position():
            return self.msg

        text = f'{self.msg} (line {self.line + 1}, column {self.column + 1})'
        if snippet and self.source is not None:
            text += '\n' + format_snippet(
                self.source, self.line, self.column,
                pre_lines=Config().snippet_lines,
                color=color)
        return text

    def print_snippet(self, file=None):
        if self.source is None or not self.has_position():
            return

        show_snippet(self.source, self.line, self.column,
                     pre_lines=Config().snippet_lines, file=file)


class LexErrorKind(Enum):
    EOF = 'eof'
    INVALID = 'invalid'
    UNBALANCED = 'unbalanced'


class LexError(ZymogenError):
    def __init__(self, kind: LexErrorKind, line, column, *, char=None,
                 msg=None, source=None):
        self.kind = kind
        self.char = char

        if msg is None:
            if kind == LexErrorKind.INVALID:
                msg = f'Invalid character: {char!r}'
            elif kind == LexErrorKind.UNBALANCED:
                msg = 'Unterminated string literal'
            else:
                msg = 'Unexpected end of input'

        super().__init__(msg, line=line, column=column, source=source)


class ParseErrorKind(Enum):
    EOF = 'eof'
    UNBALANCED = 'unbalanced'
    EXPECTED_TOKEN = 'expected-token'


class ParseError(ZymogenError):
    def __init__(self, kind: ParseErrorKind, line, column, *, msg=None,
                 expected=None, actual=None, source=None):
        self.kind = kind
        self.expected = expected
        self.actual = actual

        if msg is None:
            if kind == ParseErrorKind.EOF:
                msg = 'List not closed'
            elif kind == ParseErrorKind.EXPECTED_TOKEN:
                msg = f'Expected {expected}, got {actual}'
            else:
                msg = 'Unbalanced parentheses'

        super().__init__(msg, line=line, column=column, source=source)


class AnalysisErrorKind(Enum):
    WRONG_TYPE = 'wrong-type'
    ARITY = 'arity'
    EMPTY_LIST = 'empty-list'
    MESSAGE = 'message'


class AnalysisError(ZymogenError):
    def __init__(self, kind: AnalysisErrorKind, *, msg=None, form=None,
                 expected=None, actual=None, source=None):
        self.kind = kind
        self.form = form
        self.expected = expected
        self.actual = actual

        if msg is None:
            if kind == AnalysisErrorKind.WRONG_TYPE:
                msg = f'Expected {expected.value}, got {actual.value}'
            elif kind == AnalysisErrorKind.ARITY:
                msg = 'Missing required sub-form'
            elif kind == AnalysisErrorKind.EMPTY_LIST:
                msg = 'Empty sequence'
            else:
                msg = 'Analysis error'

        line = getattr(form, 'line', None)
        column = getattr(form, 'column', None)
        super().__init__(msg, line=line, column=column, source=source)

    def format(self, *, snippet=True, color=False) -> str:
        text = super().format(snippet=snippet, color=color)
        if self.form is not None and not self.has_position():
            text += f' in: {self.form}'
        return text


class CompileError(ZymogenError):
    pass
