class Program:
    """This class is what compile_program returns. It contains the top-level
    code, the constant pool shared by all the procedures in the program, and
    the symbol table the program was compiled with.
    """

    def __init__(self, code: list, constants: list, *,
                 frame_size: int = 0, symtab=None):
        self.code = code
        self.constants = constants
        self.frame_size = frame_size
        self.symtab = symtab

    def procedures(self):
        "yield (index, procedure) for every compiled lambda in the pool"
        from .bytecode import Procedure # avoid circular import
        for i, const in enumerate(self.constants):
            if isinstance(const, Procedure):
                yield i, const

    def listing(self) -> str:
        lines = []
        lines.append(f'; frame size: {self.frame_size}')
        lines += self._format_code(self.code)

        lines.append('')
        lines.append('; constants')
        for i, const in enumerate(self.constants):
            lines.append(f'{i: >4}: {const}')

        for i, proc in self.procedures():
            lines.append('')
            lines.append(f'; procedure {i}: {proc.nparams} param(s)'
                         f'{" + rest" if proc.rest else ""}, '
                         f'captured: {" ".join(proc.captured) or "-"}, '
                         f'frame size: {proc.frame_size}')
            lines += self._format_code(proc.code)

        return '\n'.join(lines)

    def _format_code(self, code):
        return [f'{i: >4}  {op}' for i, op in enumerate(code)]

    def __str__(self):
        return self.listing()
