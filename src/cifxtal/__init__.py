import logging

from .cif import CIF, CifBlock, CifLoop, parse_value
from .xtal import (
    CartPosition,
    CellSymmetry,
    FractPosition,
    SymmetryOperation,
    UAnisoADP,
    UIsoADP,
    UnitCell,
)
from .structure import Atom, Bond, CrystalStructure, HBond
from .modifiers import (
    AtomLabelFilter,
    BondGenerator,
    DisorderFilter,
    HydrogenFilter,
    IsolatedHydrogenFixer,
    SymmetryGrower,
)


LOGGER = logging.getLogger(__name__)
