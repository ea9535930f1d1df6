from .errors import (
    DummyAtomError,
    StructureError,
    SymmetryCodeError,
    SymmetryOperationError,
    UnknownAtomLabelError,
)
from .transforms import (
    adp_to_matrix,
    calc_fract_to_cart_matrix,
    matrix_to_adp,
    u_cif_to_u_cart,
)
from .unitcell import UnitCell
from .position import BasePosition, CartPosition, FractPosition, position_from_cif
from .adp import UAnisoADP, UIsoADP, adp_from_cif
from .symmetry import CellSymmetry, SymmetryOperation, format_translation_as_fraction
