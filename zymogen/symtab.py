class Symtab:
    """
    Interns names into small integer handles and mints fresh names that are
    guaranteed not to clash with anything interned before them.
    """

    def __init__(self):
        self.interned_names = []
        self.name_numbers = {}
        self.gensym_counter = 0

    def intern(self, name: str) -> int:
        assert isinstance(name, str)

        symnum = self.name_numbers.get(name)
        if symnum is None:
            self.interned_names.append(name)
            symnum = len(self.interned_names) - 1
            self.name_numbers[name] = symnum

        return symnum

    def lookup(self, name: str) -> (None | int):
        return self.name_numbers.get(name)

    def find_by_number(self, symnum: int) -> (None | str):
        if 0 <= symnum < len(self.interned_names):
            return self.interned_names[symnum]
        else:
            return None

    def gensym(self) -> str:
        name = f'$g{self.gensym_counter}'
        i = 0
        while name in self.name_numbers:
            name = f'$g{self.gensym_counter}~{i}'
            i += 1

        self.gensym_counter += 1
        self.intern(name)
        return name

    def __contains__(self, name):
        return name in self.name_numbers

    def __len__(self):
        return len(self.interned_names)
