"""Covalent and hydrogen bonds read from the geom loops of a CIF."""

import logging
import math
import re

from ..xtal.errors import StructureError, SymmetryCodeError


logger = logging.getLogger(__name__)

RE_CENTROID_LABEL = re.compile(r"^(Cg|Cnt|CG|CNT)")

BOND_LABEL_1_KEYS = ["_geom_bond_atom_site_label_1", "_geom_bond.atom_site_label_1"]
BOND_LABEL_2_KEYS = ["_geom_bond_atom_site_label_2", "_geom_bond.atom_site_label_2"]
BOND_DISTANCE_KEYS = ["_geom_bond_distance", "_geom_bond.distance"]
BOND_DISTANCE_SU_KEYS = ["_geom_bond_distance_su", "_geom_bond.distance_su"]
BOND_SYMMETRY_1_KEYS = ["_geom_bond_site_symmetry_1", "_geom_bond.site_symmetry_1"]
BOND_SYMMETRY_2_KEYS = ["_geom_bond_site_symmetry_2", "_geom_bond.site_symmetry_2"]

HBOND_DONOR_KEYS = ["_geom_hbond_atom_site_label_D", "_geom_hbond.atom_site_label_d"]
HBOND_HYDROGEN_KEYS = ["_geom_hbond_atom_site_label_H", "_geom_hbond.atom_site_label_h"]
HBOND_ACCEPTOR_KEYS = ["_geom_hbond_atom_site_label_A", "_geom_hbond.atom_site_label_a"]
HBOND_SYMMETRY_KEYS = ["_geom_hbond_site_symmetry_A", "_geom_hbond.site_symmetry_a"]


def _hbond_keys(item):
    return [f"_geom_hbond_{item}", f"_geom_hbond.{item.lower()}"]


def _normalise_symmetry(code):
    code = str(code).strip()
    if code in ("?", ""):
        return "."
    return code


def _number_or_nan(value):
    if isinstance(value, (int, float)):
        return value
    return math.nan


def is_symmetry_code(code):
    """True if `code` refers to a position outside the asymmetric unit."""
    return code is not None and code != "."


def is_centroid_label(label):
    return RE_CENTROID_LABEL.match(str(label)) is not None


def _labels_are_usable(labels, atom_labels):
    if any(str(label) == "?" for label in labels):
        return False
    return all(
        not is_centroid_label(label) or str(label) in atom_labels for label in labels
    )


class Bond:
    """Bond between two atoms, the second possibly at a symmetry position."""

    def __init__(
        self,
        atom1_label,
        atom2_label,
        bond_length=None,
        bond_length_su=None,
        atom2_site_symmetry=None,
    ):
        self.atom1_label = atom1_label
        self.atom2_label = atom2_label
        self.bond_length = bond_length
        self.bond_length_su = bond_length_su
        self.atom2_site_symmetry = atom2_site_symmetry

    def __repr__(self):
        return (
            f"Bond({self.atom1_label!r}, {self.atom2_label!r}, "
            f"{self.bond_length!r}, symmetry={self.atom2_site_symmetry!r})"
        )

    @property
    def labels(self):
        return (self.atom1_label, self.atom2_label)

    def copy(self, **changes):
        attributes = dict(vars(self))
        attributes.update(changes)
        return Bond(**attributes)

    @classmethod
    def from_cif(cls, cif_block, index):
        bond_loop = cif_block.get("_geom_bond")
        symmetry_2 = _normalise_symmetry(
            bond_loop.get_index(BOND_SYMMETRY_2_KEYS, index, ".")
        )
        symmetry_1 = bond_loop.get_index(BOND_SYMMETRY_1_KEYS, index, None)
        if symmetry_1 is not None and _normalise_symmetry(symmetry_1) == symmetry_2:
            symmetry_2 = "."

        return cls(
            str(bond_loop.get_index(BOND_LABEL_1_KEYS, index)),
            str(bond_loop.get_index(BOND_LABEL_2_KEYS, index)),
            _number_or_nan(bond_loop.get_index(BOND_DISTANCE_KEYS, index, math.nan)),
            _number_or_nan(bond_loop.get_index(BOND_DISTANCE_SU_KEYS, index, math.nan)),
            symmetry_2,
        )


class HBond:
    """Hydrogen bond D-H...A, the acceptor possibly at a symmetry position."""

    def __init__(
        self,
        donor_atom_label,
        hydrogen_atom_label,
        acceptor_atom_label,
        donor_hydrogen_distance=math.nan,
        donor_hydrogen_distance_su=math.nan,
        acceptor_hydrogen_distance=math.nan,
        acceptor_hydrogen_distance_su=math.nan,
        donor_acceptor_distance=math.nan,
        donor_acceptor_distance_su=math.nan,
        hbond_angle=math.nan,
        hbond_angle_su=math.nan,
        acceptor_atom_symmetry=None,
    ):
        self.donor_atom_label = donor_atom_label
        self.hydrogen_atom_label = hydrogen_atom_label
        self.acceptor_atom_label = acceptor_atom_label
        self.donor_hydrogen_distance = donor_hydrogen_distance
        self.donor_hydrogen_distance_su = donor_hydrogen_distance_su
        self.acceptor_hydrogen_distance = acceptor_hydrogen_distance
        self.acceptor_hydrogen_distance_su = acceptor_hydrogen_distance_su
        self.donor_acceptor_distance = donor_acceptor_distance
        self.donor_acceptor_distance_su = donor_acceptor_distance_su
        self.hbond_angle = hbond_angle
        self.hbond_angle_su = hbond_angle_su
        self.acceptor_atom_symmetry = acceptor_atom_symmetry

    def __repr__(self):
        return (
            f"HBond({self.donor_atom_label!r}, {self.hydrogen_atom_label!r}, "
            f"{self.acceptor_atom_label!r}, symmetry={self.acceptor_atom_symmetry!r})"
        )

    @property
    def labels(self):
        return (self.donor_atom_label, self.hydrogen_atom_label, self.acceptor_atom_label)

    def copy(self, **changes):
        attributes = dict(vars(self))
        attributes.update(changes)
        return HBond(**attributes)

    @classmethod
    def from_cif(cls, cif_block, index):
        hbond_loop = cif_block.get("_geom_hbond")

        def value(item):
            return _number_or_nan(hbond_loop.get_index(_hbond_keys(item), index, math.nan))

        return cls(
            str(hbond_loop.get_index(HBOND_DONOR_KEYS, index)),
            str(hbond_loop.get_index(HBOND_HYDROGEN_KEYS, index)),
            str(hbond_loop.get_index(HBOND_ACCEPTOR_KEYS, index)),
            value("distance_DH"),
            value("distance_DH_su"),
            value("distance_HA"),
            value("distance_HA_su"),
            value("distance_DA"),
            value("distance_DA_su"),
            value("angle_DHA"),
            value("angle_DHA_su"),
            _normalise_symmetry(hbond_loop.get_index(HBOND_SYMMETRY_KEYS, index, ".")),
        )


def create_bonds(cif_block, atom_labels):
    """Bonds of the _geom_bond loop, an empty list if there is none.

    Rows with '?' labels or with centroid labels that are not part of
    `atom_labels` are skipped.
    """
    bond_loop = cif_block.get("_geom_bond", None)
    if bond_loop is None:
        logger.warning("No _geom_bond loop found in CIF block, structure has no bonds")
        return []

    bonds = []
    for i in range(len(bond_loop.get(BOND_LABEL_1_KEYS))):
        labels = (
            bond_loop.get_index(BOND_LABEL_1_KEYS, i),
            bond_loop.get_index(BOND_LABEL_2_KEYS, i),
        )
        if _labels_are_usable(labels, atom_labels):
            bonds.append(Bond.from_cif(cif_block, i))
    return bonds


def create_hbonds(cif_block, atom_labels):
    """H-bonds of the _geom_hbond loop, an empty list if there is none."""
    hbond_loop = cif_block.get("_geom_hbond", None)
    if hbond_loop is None:
        logger.warning(
            "No _geom_hbond loop found in CIF block, structure has no H-bonds"
        )
        return []

    hbonds = []
    for i in range(len(hbond_loop.get(HBOND_DONOR_KEYS))):
        labels = (
            hbond_loop.get_index(HBOND_DONOR_KEYS, i, "?"),
            hbond_loop.get_index(HBOND_HYDROGEN_KEYS, i, "?"),
            hbond_loop.get_index(HBOND_ACCEPTOR_KEYS, i, "?"),
        )
        if _labels_are_usable(labels, atom_labels):
            hbonds.append(HBond.from_cif(cif_block, i))
    return hbonds


class ValidationResult:
    """Collects problems found while checking bonds against a structure."""

    def __init__(self):
        self.atom_label_errors = []
        self.symmetry_errors = []

    def is_valid(self):
        return not self.atom_label_errors and not self.symmetry_errors

    def report(self, atoms, symmetry):
        lines = []
        if self.atom_label_errors:
            lines.append("Unknown atom label(s). Known labels are ")
            lines.append(", ".join(atom.label for atom in atoms))
            lines.extend(self.atom_label_errors)
        if self.symmetry_errors:
            lines.append(
                "Unknown symmetry ID(s) or String format. Expected format is "
                "<id>_abc. Known IDs are:"
            )
            lines.append(", ".join(symmetry.operation_ids))
            lines.extend(self.symmetry_errors)
        return "\n".join(lines)


def _check_symmetry(symmetry, code, description, result):
    if not is_symmetry_code(code):
        return
    try:
        symmetry.parse_position_code(code)
    except SymmetryCodeError:
        result.symmetry_errors.append(
            f"Invalid symmetry in {description}, invalid symmetry operation: {code}"
        )


def validate_bonds(bonds, atoms, symmetry):
    result = ValidationResult()
    atom_labels = set(atom.label for atom in atoms)
    for bond in bonds:
        description = f"bond: {bond.atom1_label} - {bond.atom2_label}"
        missing = [label for label in bond.labels if label not in atom_labels]
        if missing:
            result.atom_label_errors.append(
                f"Non-existent atoms in {description}, "
                f"non-existent atom(s): {', '.join(missing)}"
            )
        _check_symmetry(symmetry, bond.atom2_site_symmetry, description, result)
    return result


def validate_hbonds(hbonds, atoms, symmetry):
    result = ValidationResult()
    atom_labels = set(atom.label for atom in atoms)
    for hbond in hbonds:
        description = "H-bond: " + " - ".join(hbond.labels)
        missing = [label for label in hbond.labels if label not in atom_labels]
        if missing:
            result.atom_label_errors.append(
                f"Non-existent atoms in {description}, "
                f"non-existent atom(s): {', '.join(missing)}"
            )
        _check_symmetry(symmetry, hbond.acceptor_atom_symmetry, description, result)
    return result


def check_bonds(bonds, hbonds, atoms, symmetry):
    """Raise a StructureError listing every invalid bond and H-bond."""
    reports = []
    for result in (
        validate_bonds(bonds, atoms, symmetry),
        validate_hbonds(hbonds, atoms, symmetry),
    ):
        if not result.is_valid():
            reports.append(result.report(atoms, symmetry))
    if reports:
        raise StructureError(
            "There were errors in the bond or H-bond creation\n" + "\n".join(reports)
        )
