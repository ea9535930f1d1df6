class SymmetryOperationError(ValueError):
    """A symmetry instruction such as ``-x+1/2,y,-z`` could not be parsed."""
    pass


class SymmetryCodeError(ValueError):
    """A symmetry code such as ``2_655`` is malformed or unknown."""
    pass


class StructureError(Exception):
    """Base class of errors raised while building or modifying structures."""
    pass


class UnknownAtomLabelError(StructureError, KeyError):
    def __str__(self):
        return str(self.args[0]) if self.args else ""


class DummyAtomError(StructureError):
    """The atom_site entry is a placeholder and not a real atom."""
    pass
