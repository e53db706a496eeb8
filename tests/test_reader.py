import unittest

from zymogen.exceptions import LexError, ParseError, ParseErrorKind
from zymogen.read import Parser, parse
from zymogen.sexpr import (
    Bool, Integer, Keyword, Keywords, List, Nil, Pair, String, Symbol,
)

i0 = Integer(0)
i1 = Integer(1)
i2 = Integer(2)
i3 = Integer(3)

DOT = Keyword(Keywords.DOT)
QUOTE = Keyword(Keywords.QUOTE)


def L(*items):
    return List.from_list(list(items))


class TestReader(unittest.TestCase):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.addTypeEqualityFunc(Pair, self._compare_lists)
        self.addTypeEqualityFunc(String, self._compare_strings)

    def _compare_strings(self, s1, s2, msg=None):
        if s1.value == s2.value:
            return
        if msg is None:
            msg = f'String comparison failed: {s1} != {s2}'
        raise self.failureException(msg)

    def _compare_lists(self, l1, l2, msg=None):
        if l1 == l2:
            return
        if msg is None:
            msg = f'List comparison failed: {l1} != {l2}'
        raise self.failureException(msg)

    def _read(self, text):
        forms = parse(text)
        self.assertEqual(1, len(forms))
        return forms[0]

    def _test(self, text, expected):
        value = self._read(text)
        self.assertEqual(expected, value)
        return value

    def test_integer(self):
        v = self._test('100', Integer(100))
        self.assertEqual(0, v.line)
        self.assertEqual(0, v.column)

    def test_booleans(self):
        self._test('#t', Bool(True))
        self._test('true', Bool(True))
        self._test('#f', Bool(False))
        self._test('false', Bool(False))

    def test_string(self):
        self._test('"foo bar"', String('foo bar'))

    def test_identifier(self):
        self._test('foo', Symbol('foo'))

    def test_keywords(self):
        for name, keyword in [('lambda', Keywords.LAMBDA),
                              ('if', Keywords.IF),
                              ('let*', Keywords.LET_STAR),
                              ('letrec', Keywords.LETREC),
                              ('set!', Keywords.SET),
                              ('set', Keywords.SET),
                              ('else', Keywords.ELSE),
                              ('unquote-splicing', Keywords.UNQUOTE_SPLICING)]:
            self._test(name, Keyword(keyword))

    def test_not_a_keyword(self):
        self._test('lambdas', Symbol('lambdas'))
        self._test('Lambda', Symbol('Lambda'))

    def test_empty_list(self):
        self._test('()', Nil())

    def test_lambda(self):
        v = self._test('(lambda (x) y)', L(
            Keyword(Keywords.LAMBDA),
            L(Symbol('x')),
            Symbol('y')))
        self.assertEqual(3, len(v))

    def test_nested_lists(self):
        self._test('(lambda (x y) (cons x y))', L(
            Keyword(Keywords.LAMBDA),
            L(Symbol('x'), Symbol('y')),
            L(Symbol('cons'), Symbol('x'), Symbol('y'))))

    def test_let_with_quasiquote(self):
        text = '(let ((x 0) (y 0))\n    (lambda () `(cons ,x y)))'
        self._test(text, L(
            Keyword(Keywords.LET),
            L(L(Symbol('x'), i0), L(Symbol('y'), i0)),
            L(Keyword(Keywords.LAMBDA),
              Nil(),
              L(Keyword(Keywords.QUASIQUOTE),
                L(Symbol('cons'),
                  L(Keyword(Keywords.UNQUOTE), Symbol('x')),
                  Symbol('y'))))))

    def test_quote(self):
        self._test("'foo", L(QUOTE, Symbol('foo')))

    def test_quote_list(self):
        self._test("'(1 2)", L(QUOTE, L(i1, i2)))

    def test_quote_keyword_form(self):
        self._test('(quote foo)', L(QUOTE, Symbol('foo')))

    def test_unquote_splicing(self):
        self._test(',@foo', L(Keyword(Keywords.UNQUOTE_SPLICING),
                              Symbol('foo')))

    def test_nested_quotes(self):
        self._test("''a", L(QUOTE, L(QUOTE, Symbol('a'))))

    def test_dot_is_kept_as_marker(self):
        self._test('(1 . 2)', L(i1, DOT, i2))

    def test_dotted_params(self):
        self._test('(x y . z)', L(Symbol('x'), Symbol('y'), DOT, Symbol('z')))

    def test_positions(self):
        v = self._read('(a\n (b 1))')
        self.assertEqual((0, 0), (v.line, v.column))
        a, inner = v.to_list()
        self.assertEqual((0, 1), (a.line, a.column))
        self.assertEqual((1, 1), (inner.line, inner.column))
        b, one = inner.to_list()
        self.assertEqual((1, 2), (b.line, b.column))
        self.assertEqual((1, 4), (one.line, one.column))

    def test_multiple_forms(self):
        forms = parse('1 (a) "b"')
        self.assertEqual([i1, L(Symbol('a')), String('b')], forms)

    def test_parse_expr_one_at_a_time(self):
        parser = Parser('1 2')
        self.assertEqual(i1, parser.parse_expr())
        self.assertEqual(i2, parser.parse_expr())
        self.assertIsNone(parser.parse_expr())
        self.assertIsNone(parser.parse_expr())

    def test_empty_input(self):
        self.assertEqual([], parse(''))
        self.assertEqual([], parse('  ; nothing here\n'))

    def test_cramped(self):
        self._test("(1(2'3))", L(i1, L(i2, L(QUOTE, i3))))

    def test_large_list(self):
        n = 5000
        text = '(' + ' '.join('1' for _ in range(n)) + ')'
        expected = Nil()
        for _ in range(n):
            expected = Pair(i1, expected)
        self._test(text, expected)

    def test_list_not_closed1(self):
        with self.assertRaises(ParseError) as cm:
            parse('(')
        self.assertEqual(ParseErrorKind.EOF, cm.exception.kind)

    def test_list_not_closed2(self):
        with self.assertRaises(ParseError) as cm:
            parse('(foo (1) 2')
        self.assertEqual(ParseErrorKind.EOF, cm.exception.kind)
        self.assertEqual(0, cm.exception.line)
        self.assertEqual(0, cm.exception.column)

    def test_not_opened(self):
        with self.assertRaises(ParseError) as cm:
            parse(')')
        self.assertEqual(ParseErrorKind.UNBALANCED, cm.exception.kind)

    def test_lone_dot(self):
        with self.assertRaises(ParseError) as cm:
            parse('.')
        self.assertEqual(ParseErrorKind.UNBALANCED, cm.exception.kind)

    def test_quote_at_end_of_input(self):
        with self.assertRaises(ParseError) as cm:
            parse("(a) '")
        self.assertEqual(ParseErrorKind.UNBALANCED, cm.exception.kind)
        self.assertEqual(4, cm.exception.column)

    def test_quote_before_close_paren(self):
        with self.assertRaises(ParseError) as cm:
            parse("(a ')")
        self.assertEqual(ParseErrorKind.UNBALANCED, cm.exception.kind)

    def test_unquote_at_end_of_input(self):
        for text in [',', ',@', '`']:
            with self.assertRaises(ParseError):
                parse(text)

    def test_lex_errors_propagate(self):
        with self.assertRaises(LexError):
            parse('(a "b')

    def test_error_message(self):
        text = '(foo\n  bar))'
        with self.assertRaises(ParseError) as cm:
            parse(text)

        e = cm.exception
        self.assertEqual(1, e.line)
        self.assertEqual(6, e.column)
        self.assertEqual(text, e.source)
        self.assertEqual(
            'Unbalanced parentheses (line 2, column 7)\n'
            '|1| (foo\n'
            '|2|   bar))\n'
            '          ^',
            str(e))


if __name__ == '__main__':
    unittest.main()
