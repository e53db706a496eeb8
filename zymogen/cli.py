#!/usr/bin/env python3

import argparse
import logging
import sys

from . import repl
from .config import Config
from .exceptions import AnalysisError, CompileError, LexError, ParseError
from .lexer import lex
from .read import parse
from .utils import analyze_source, compile_source, expand_source, normalize_source
from .version import __version__


def read_input(args) -> str:
    if args.expr is not None:
        return args.expr

    if args.input is None or args.input == '-':
        return sys.stdin.read()

    with open(args.input) as f:
        return f.read()


def add_input_arguments(parser: argparse.ArgumentParser):
    parser.add_argument(
        'input', nargs='?', default=None,
        help='The source file to process. Reads from standard input if not '
        'specified, or if "-" is given.')

    parser.add_argument(
        '--expr', '-e', metavar='EXPR', default=None,
        help='Process the given expression instead of reading a file.')


def run_lex(args):
    for token in lex(read_input(args)):
        print(f'{token.line}:{token.column}\t{token.describe()}')


def run_parse(args):
    for form in parse(read_input(args)):
        print(form)


def run_analyze(args):
    for expr in analyze_source(read_input(args)):
        print(expr)


def run_expand(args):
    for expr in expand_source(read_input(args)):
        print(expr)


def run_normalize(args):
    for expr in normalize_source(read_input(args), optimize=args.optimize):
        print(expr)


def run_compile(args):
    program = compile_source(read_input(args), optimize=args.optimize)
    print(program.listing())


def configure_stage_parser(parser, func, description, *, optimize=False):
    parser.description = description
    add_input_arguments(parser)
    if optimize:
        parser.add_argument(
            '--optimize', '-O', action='store_true', default=None,
            help='Eliminate dead let bindings after normalization.')
    parser.set_defaults(func=func)


def main():
    parser = argparse.ArgumentParser(description='Zymogen Scheme Compiler')

    parser.add_argument(
        '--version', '-V', action='store_true',
        help='Show version and exit.')

    parser.add_argument(
        '--debug', '-d', action='store_true', default=False,
        help='Log the output of each compilation stage.')

    subparsers = parser.add_subparsers(help='Zymogen commands')

    configure_stage_parser(
        subparsers.add_parser('lex'), run_lex,
        'Print the tokens in the input.')

    configure_stage_parser(
        subparsers.add_parser('parse'), run_parse,
        'Print the s-expressions in the input.')

    configure_stage_parser(
        subparsers.add_parser('analyze'), run_analyze,
        'Print the analyzed form of each expression in the input.')

    configure_stage_parser(
        subparsers.add_parser('expand'), run_expand,
        'Print each expression in the input after desugaring.')

    configure_stage_parser(
        subparsers.add_parser('normalize'), run_normalize,
        'Print each expression in the input in A-normal form.',
        optimize=True)

    configure_stage_parser(
        subparsers.add_parser('compile'), run_compile,
        'Compile the input and print the resulting bytecode.',
        optimize=True)

    repl_parser = subparsers.add_parser('repl')
    repl.configure_argparse(repl_parser)

    args = parser.parse_args()

    if args.version:
        print(f'Zymogen Version: v{__version__}')
        sys.exit(0)

    if args.debug or Config().debug:
        logging.basicConfig(level=logging.DEBUG)

    if not hasattr(args, 'func'):
        # no sub-command specified. default to repl.
        args = parser.parse_args(['repl'])

    try:
        args.func(args)
    except (LexError, ParseError) as e:
        print(f'Read error: {e.format(snippet=False)}', file=sys.stderr)
        e.print_snippet()
        sys.exit(1)
    except AnalysisError as e:
        print(f'Analysis error: {e.format(snippet=False)}', file=sys.stderr)
        e.print_snippet()
        sys.exit(1)
    except CompileError as e:
        print(f'Compile error: {e}', file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f'Error reading input: {e}', file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
