from .base import BaseFilter, InvalidModeError
from .filters import AtomLabelFilter, DisorderFilter, HydrogenFilter
from .fixers import BondGenerator, IsolatedHydrogenFixer
from .grow import SymmetryGrower, combine_sym_op_label
