import sys
import subprocess


def is_stdout_tty():
    return sys.stdout.isatty()


def is_stderr_tty():
    return sys.stderr.isatty()


class ColorCodes(object):
    def __init__(self):
        self.red = ''
        self.bold = ''
        self.reset = ''

        if not is_stdout_tty() or not is_stderr_tty():
            return

        try:
            self.red = subprocess.check_output(['tput', 'setaf', '1']).decode()
            self.bold = subprocess.check_output(['tput', 'bold']).decode()
            self.reset = subprocess.check_output(['tput', 'sgr0']).decode()
        except (OSError, subprocess.CalledProcessError):
            pass


_cc = None


def color_codes():
    global _cc
    if _cc is None:
        _cc = ColorCodes()
    return _cc


def split_lines(text):
    "split text into lines, keeping a final empty line if text ends in one."
    return text.split('\n')


def format_snippet(text: str, line: int, column: int, *,
                   pre_lines=3, color=False) -> str:
    """
    Render the source lines leading up to the given (0-based) line, followed by
    a caret under the given (0-based) column. Something like:

        |1| (define (f x)
        |2|   (g x)))
                    ^
    """
    lines = split_lines(text)
    if line >= len(lines):
        # position just past the last line (e.g. end-of-input)
        lines += [''] * (line - len(lines) + 1)

    first_line = max(0, line - pre_lines)
    max_line_number_size = len(str(line + 1))

    mark_start = mark_end = ''
    if color:
        cc = color_codes()
        mark_start = cc.red + cc.bold
        mark_end = cc.reset

    output = []
    for line_no in range(first_line, line + 1):
        prefix = f'|{line_no + 1: >{max_line_number_size}}| '
        output.append(f'{prefix}{lines[line_no]}')

    indent = ' ' * (max_line_number_size + 3 + column)
    output.append(f'{indent}{mark_start}^{mark_end}')

    return '\n'.join(output)


def show_snippet(text, line, column, *, pre_lines=3, file=None):
    file = file or sys.stderr
    print(format_snippet(text, line, column,
                         pre_lines=pre_lines,
                         color=file.isatty()),
          file=file)
