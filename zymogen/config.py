import os
from pathlib import Path

from .version import __version__


true_values = ['true', 't', 'yes', 'y', '1']

DEFAULT_SNIPPET_LINES = 3


class Config:
    def __init__(self):
        self.debug = os.environ.get('ZYMOGEN_DEBUG', '').lower() in true_values
        self.optimize = os.environ.get('ZYMOGEN_OPTIMIZE', '').lower() in true_values

        try:
            self.snippet_lines = int(
                os.environ.get('ZYMOGEN_SNIPPET_LINES', DEFAULT_SNIPPET_LINES))
        except ValueError:
            self.snippet_lines = DEFAULT_SNIPPET_LINES

        self.history_file = Path('~/.zymogen-repl-history').expanduser()
        self.version = __version__
