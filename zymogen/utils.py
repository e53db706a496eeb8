from .analyze import Analyzer
from .bytecode import compile_program
from .config import Config
from .desugar import desugar
from .normalize import normalize
from .optimize import eliminate_dead_bindings
from .program import Program
from .read import parse
from .symtab import Symtab


def analyze_source(text: str):
    analyzer = Analyzer(source=text)
    return [analyzer.analyze(form) for form in parse(text)]


def expand_source(text: str):
    "parse, analyze and desugar all forms in text"
    return [desugar(expr) for expr in analyze_source(text)]


def normalize_source(text: str, symtab: (None | Symtab) = None, *,
                     optimize=None):
    if symtab is None:
        symtab = Symtab()
    if optimize is None:
        optimize = Config().optimize

    result = []
    for expr in expand_source(text):
        expr = normalize(expr, symtab)
        if optimize:
            expr = eliminate_dead_bindings(expr)
        result.append(expr)

    return result


def compile_source(text: str, *, optimize=None) -> Program:
    symtab = Symtab()
    exprs = normalize_source(text, symtab, optimize=optimize)
    return compile_program(exprs, symtab)
