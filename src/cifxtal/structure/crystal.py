"""Atoms and the crystal structure assembled from a CIF data block."""

import logging
import re

from ..xtal.adp import adp_from_cif
from ..xtal.errors import DummyAtomError, StructureError, UnknownAtomLabelError
from ..xtal.position import CALC_FLAG_KEYS, position_from_cif
from ..xtal.symmetry import CellSymmetry, SymmetryOperation
from ..xtal.unitcell import UnitCell
from .bonds import check_bonds, create_bonds, create_hbonds
from .connectivity import calc_connected_groups


logger = logging.getLogger(__name__)

LABEL_KEYS = ["_atom_site_label", "_atom_site.label"]
TYPE_SYMBOL_KEYS = ["_atom_site_type_symbol", "_atom_site.type_symbol"]
DISORDER_GROUP_KEYS = ["_atom_site_disorder_group", "_atom_site.disorder_group"]
INVALID_VALUES = (".", "?")

TWO_LETTER_ELEMENTS = (
    "HE", "LI", "BE", "NE", "NA", "MG", "AL", "SI", "CL", "AR",
    "CA", "SC", "TI", "CR", "MN", "FE", "CO", "NI", "CU", "ZN",
    "GA", "GE", "AS", "SE", "BR", "KR", "RB", "SR", "ZR", "NB",
    "MO", "TC", "RU", "RH", "PD", "AG", "CD", "IN", "SN", "SB",
    "TE", "XE", "CS", "BA", "LA", "CE", "PR", "ND", "PM", "SM",
    "EU", "GD", "TB", "DY", "HO", "ER", "TM", "YB", "LU", "HF",
    "TA", "RE", "OS", "IR", "PT", "AU", "HG", "TL", "PB", "BI",
    "PO", "AT", "RN", "FR", "RA", "AC", "TH", "PA", "NP", "PU",
    "AM", "CM",
)
RE_TWO_LETTER_ELEMENT = re.compile("^(%s)" % "|".join(TWO_LETTER_ELEMENTS))
RE_ONE_LETTER_ELEMENT = re.compile(r"^(H|B|C|N|O|F|P|S|K|V|Y|I|W|U|D)")


def infer_element_from_label(label):
    """Guess the element symbol from an atom label such as ``Cl1A``.

    Two-letter symbols take precedence, so ``CO1`` is cobalt.

    Raises:
        StructureError: No element symbol starts the label.
    """
    if not isinstance(label, str) or not label:
        raise StructureError(f"Invalid atom label: {label!r}")
    upper_label = label.upper()
    match = RE_TWO_LETTER_ELEMENT.match(upper_label)
    if match:
        return match.group(1)[0] + match.group(1)[1].lower()
    match = RE_ONE_LETTER_ELEMENT.match(upper_label)
    if match:
        return match.group(1)
    raise StructureError(f"Could not infer element type from atom label: {label}")


def _disorder_group(value, label):
    if value in INVALID_VALUES:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(
            f"Could not read disorder group {value!r} of atom {label}, using 0"
        )
        return 0


class Atom:
    """An atom of the asymmetric unit (or a symmetry generated copy)."""

    def __init__(self, label, atom_type, position, adp=None, disorder_group=0):
        self.label = str(label)
        self.atom_type = atom_type
        self.position = position
        self.adp = adp
        self.disorder_group = disorder_group

    def __repr__(self):
        return f"Atom({self.label!r}, {self.atom_type!r}, {self.position!r})"

    def copy(self, **changes):
        """Return a new Atom, replacing the attributes given in `changes`."""
        attributes = dict(
            label=self.label,
            atom_type=self.atom_type,
            position=self.position.copy(),
            adp=self.adp.copy() if self.adp is not None else None,
            disorder_group=self.disorder_group,
        )
        attributes.update(changes)
        return Atom(**attributes)

    @classmethod
    def from_cif(cls, cif_block, atom_index=None, atom_label=None):
        """Create the atom in row `atom_index` (or labelled `atom_label`)
        of the atom_site loop.

        Raises:
            DummyAtomError: The row describes a placeholder atom.
        """
        atom_site = cif_block.get("_atom_site")

        if atom_index is None:
            if atom_label is None:
                raise ValueError("either atom_index or atom_label need to be provided")
            label_map = atom_site.get_value_index_map(LABEL_KEYS)
            if atom_label not in label_map:
                raise UnknownAtomLabelError(
                    f"No atom with label {atom_label} in the atom_site loop"
                )
            atom_index = label_map[atom_label]

        label = str(atom_site.get_index(LABEL_KEYS, atom_index))
        if label in INVALID_VALUES:
            raise DummyAtomError("Dummy atom: Invalid label")
        if "@" in label:
            raise StructureError(
                f"Atom label {label} contains '@', which marks symmetry generated atoms"
            )

        calc_flag = str(atom_site.get_index(CALC_FLAG_KEYS, atom_index, "")).lower()
        if calc_flag == "dum":
            raise DummyAtomError("Dummy atom: calc_flag is dum")

        atom_type = atom_site.get_index(TYPE_SYMBOL_KEYS, atom_index, None)
        if atom_type is None:
            atom_type = infer_element_from_label(label)
        if atom_type in INVALID_VALUES:
            raise DummyAtomError("Dummy atom: Invalid atom type")

        position = position_from_cif(cif_block, atom_index)
        adp = adp_from_cif(cif_block, atom_index)
        disorder_group = _disorder_group(
            atom_site.get_index(DISORDER_GROUP_KEYS, atom_index, "."), label
        )
        return cls(label, str(atom_type), position, adp, disorder_group)


class CrystalStructure:

    """Unit cell, atoms, bonds, H-bonds and symmetry of a crystal.

    The connected groups are derived on construction. Instances are not
    modified after construction, modifiers create new ones.
    """

    def __init__(self, cell, atoms, bonds=None, h_bonds=None, symmetry=None):
        self.cell = cell
        self.atoms = list(atoms)
        self.bonds = list(bonds) if bonds is not None else []
        self.h_bonds = list(h_bonds) if h_bonds is not None else []
        if symmetry is None:
            symmetry = CellSymmetry("Unknown", 0, [SymmetryOperation("x,y,z")])
        self.symmetry = symmetry
        self.connected_groups = calc_connected_groups(
            self.atoms, self.bonds, self.h_bonds
        )

    def __repr__(self):
        return (
            f"CrystalStructure(atoms={len(self.atoms)}, bonds={len(self.bonds)}, "
            f"h_bonds={len(self.h_bonds)}, symmetry={self.symmetry.space_group_name!r})"
        )

    @classmethod
    def from_cif(cls, cif_block):
        """Build the structure from a parsed CIF data block.

        Dummy atoms are skipped. Missing bond or H-bond loops give empty
        lists, while bonds referring to unknown atoms or symmetry
        operations raise a StructureError listing all of them.
        """
        cell = UnitCell.from_cif(cif_block)

        atom_site = cif_block.get("_atom_site")
        atoms = []
        for index in range(len(atom_site.get(LABEL_KEYS))):
            try:
                atoms.append(Atom.from_cif(cif_block, index))
            except DummyAtomError as e:
                logger.debug(f"Skipping atom {index} of the atom_site loop: {e}")

        if not atoms:
            raise StructureError("The cif file contains no valid atoms.")

        atom_labels = set(atom.label for atom in atoms)
        bonds = create_bonds(cif_block, atom_labels)
        h_bonds = create_hbonds(cif_block, atom_labels)
        symmetry = CellSymmetry.from_cif(cif_block)
        check_bonds(bonds, h_bonds, atoms, symmetry)

        return cls(cell, atoms, bonds, h_bonds, symmetry)

    @property
    def atom_labels(self):
        return [atom.label for atom in self.atoms]

    def get_atom_by_label(self, atom_label):
        """Return the atom labelled `atom_label`.

        Raises:
            UnknownAtomLabelError: No such atom.
        """
        for atom in self.atoms:
            if atom.label == atom_label:
                return atom
        raise UnknownAtomLabelError(
            f"Could not find atom with label: {atom_label}, available are: "
            + ", ".join(self.atom_labels)
        )
