import atexit
import argparse
import readline
import sys

from .analyze import Analyzer
from .bytecode import Context
from .config import Config
from .desugar import desugar
from .exceptions import (
    AnalysisError, CompileError, LexError, LexErrorKind, ParseError,
)
from .lexer import Lexer
from .normalize import normalize
from .optimize import eliminate_dead_bindings
from .read import parse
from .symtab import Symtab
from .token import TokenKind


STAGES = ['parse', 'analyze', 'expand', 'normalize', 'compile']


def configure_argparse(parser: argparse.ArgumentParser):
    parser.description = 'Run a Zymogen REPL'
    parser.add_argument(
        '--show', '-s', choices=STAGES, default='compile',
        help='The compilation stage whose output is printed for each '
        'input. Defaults to "compile".')
    parser.set_defaults(func=main)


def read_history(filename):
    try:
        readline.read_history_file(filename)
    except FileNotFoundError:
        pass


def write_history(filename):
    readline.write_history_file(filename)


def is_complete(text: str) -> bool:
    """
    Return True if text can be handed to the parser, that is, if all lists
    and string literals in it are closed. Extra close parens count as complete,
    so that the parser gets to report them.
    """
    lexer = Lexer(text)
    depth = 0
    while True:
        try:
            token = lexer.next_token()
        except LexError as e:
            if e.kind == LexErrorKind.UNBALANCED:
                return False
            return True

        match token.kind:
            case TokenKind.EOF:
                return depth <= 0
            case TokenKind.LEFT_PAREN:
                depth += 1
            case TokenKind.RIGHT_PAREN:
                depth -= 1


def read_input() -> (None | str):
    "read lines until the input is balanced; return None on end of input"
    lines = []
    prompt = '> '
    while True:
        try:
            line = input(prompt)
        except EOFError:
            print()
            return None
        except KeyboardInterrupt:
            print()
            if lines:
                # abandon the current input
                lines = []
                prompt = '> '
                continue
            return None

        lines.append(line)
        text = '\n'.join(lines)
        if is_complete(text):
            return text
        prompt = '. '


class Repl:
    def __init__(self, show='compile', *, optimize=False):
        self.show = show
        self.optimize = optimize

        # names and gensyms persist across inputs
        self.symtab = Symtab()

    def process(self, text: str) -> list[str]:
        "run text through the pipeline, returning what should be printed"
        analyzer = Analyzer(source=text)
        output = []
        for form in parse(text):
            if self.show == 'parse':
                output.append(str(form))
                continue

            expr = analyzer.analyze(form)
            if self.show == 'analyze':
                output.append(str(expr))
                continue

            expr = desugar(expr)
            if self.show == 'expand':
                output.append(str(expr))
                continue

            expr = normalize(expr, self.symtab)
            if self.optimize:
                expr = eliminate_dead_bindings(expr)
            if self.show == 'normalize':
                output.append(str(expr))
                continue

            context = Context(self.symtab)
            context.compile(expr)
            for i, op in enumerate(context.code):
                output.append(f'{i: >4}  {op}')
            for i, const in enumerate(context.constants):
                output.append(f'   [{i}] {const}')

        return output

    def run(self):
        while True:
            text = read_input()
            if text is None:
                break

            if text.strip() == '':
                continue

            try:
                output = self.process(text)
            except (LexError, ParseError) as e:
                print(f'Read error: {e.format(snippet=False)}', file=sys.stderr)
                e.print_snippet()
                continue
            except AnalysisError as e:
                print(f'Analysis error: {e.format(snippet=False)}',
                      file=sys.stderr)
                e.print_snippet()
                continue
            except CompileError as e:
                print(f'Compile error: {e}', file=sys.stderr)
                continue

            for line in output:
                print(line)


def main(args):
    config = Config()

    readline.set_auto_history(True)
    read_history(config.history_file)
    atexit.register(write_history, config.history_file)

    readline.parse_and_bind('set blink-matching-paren on')

    print(f'Zymogen v{config.version}. Press Ctrl-D to exit.')
    Repl(args.show, optimize=config.optimize).run()
