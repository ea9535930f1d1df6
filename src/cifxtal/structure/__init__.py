from ..xtal.errors import DummyAtomError, StructureError, UnknownAtomLabelError
from .bonds import Bond, HBond, create_bonds, create_hbonds, validate_bonds, validate_hbonds
from .connectivity import ConnectedGroup, calc_connected_groups
from .crystal import Atom, CrystalStructure, infer_element_from_label
