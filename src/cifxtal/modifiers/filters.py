"""Modifiers removing hydrogens, disorder groups or selected atoms."""

from ..structure.crystal import CrystalStructure
from ..xtal.adp import UAnisoADP
from .base import BaseFilter


def _rebuild(structure, atoms, bonds, h_bonds):
    return CrystalStructure(structure.cell, atoms, bonds, h_bonds, structure.symmetry)


def _filter_by_labels(structure, removed_labels):
    """Drop atoms in `removed_labels` together with their bonds and H-bonds."""
    atoms = [atom for atom in structure.atoms if atom.label not in removed_labels]
    bonds = [
        bond
        for bond in structure.bonds
        if not any(label in removed_labels for label in bond.labels)
    ]
    h_bonds = [
        h_bond
        for h_bond in structure.h_bonds
        if not any(label in removed_labels for label in h_bond.labels)
    ]
    return atoms, bonds, h_bonds


class HydrogenFilter(BaseFilter):
    """Show hydrogens not at all, without ADPs or with their ADPs."""

    NONE = "none"
    CONSTANT = "constant"
    ANISOTROPIC = "anisotropic"

    MODES = (NONE, CONSTANT, ANISOTROPIC)
    PREFERRED_FALLBACK_ORDER = (ANISOTROPIC, CONSTANT, NONE)

    def __init__(self, mode=NONE):
        super().__init__(mode)

    def apply(self, structure):
        self.ensure_valid_mode(structure)

        if self.mode == self.NONE:
            hydrogen_labels = set(
                atom.label for atom in structure.atoms if atom.atom_type == "H"
            )
            atoms, bonds, h_bonds = _filter_by_labels(structure, hydrogen_labels)
            atoms = [atom.copy() for atom in atoms]
        elif self.mode == self.CONSTANT:
            atoms = [
                atom.copy(adp=None) if atom.atom_type == "H" else atom.copy()
                for atom in structure.atoms
            ]
            bonds, h_bonds = structure.bonds, structure.h_bonds
        else:
            atoms = [atom.copy() for atom in structure.atoms]
            bonds, h_bonds = structure.bonds, structure.h_bonds

        return _rebuild(structure, atoms, bonds, h_bonds)

    def get_applicable_modes(self, structure):
        modes = [self.NONE]
        hydrogens = [atom for atom in structure.atoms if atom.atom_type == "H"]
        if not hydrogens:
            return modes
        modes.append(self.CONSTANT)
        if any(isinstance(atom.adp, UAnisoADP) for atom in hydrogens):
            modes.append(self.ANISOTROPIC)
        return modes


class DisorderFilter(BaseFilter):
    """Show all atoms, only disorder group 1 or only the groups above 1."""

    ALL = "all"
    GROUP1 = "group1"
    GROUP2 = "group2"

    MODES = (ALL, GROUP1, GROUP2)
    PREFERRED_FALLBACK_ORDER = (ALL, GROUP1, GROUP2)

    def __init__(self, mode=ALL):
        super().__init__(mode)

    def _is_removed(self, atom):
        if self.mode == self.GROUP1:
            return atom.disorder_group > 1
        if self.mode == self.GROUP2:
            return atom.disorder_group == 1
        return False

    def apply(self, structure):
        self.ensure_valid_mode(structure)
        removed_labels = set(
            atom.label for atom in structure.atoms if self._is_removed(atom)
        )
        return _rebuild(structure, *_filter_by_labels(structure, removed_labels))

    def get_applicable_modes(self, structure):
        modes = [self.ALL]
        groups = set(atom.disorder_group for atom in structure.atoms)
        if 1 in groups:
            modes.append(self.GROUP1)
        if any(group > 1 for group in groups):
            modes.append(self.GROUP2)
        return modes


class AtomLabelFilter(BaseFilter):
    """Remove a configurable set of atoms and everything bonded to them."""

    ON = "on"
    OFF = "off"

    MODES = (ON, OFF)

    def __init__(self, filtered_labels=(), mode=OFF):
        super().__init__(mode)
        self.filtered_labels = set(filtered_labels)

    def set_filtered_labels(self, labels):
        self.filtered_labels = set(labels)

    def apply(self, structure):
        if self.mode == self.OFF:
            return _rebuild(structure, structure.atoms, structure.bonds, structure.h_bonds)
        return _rebuild(structure, *_filter_by_labels(structure, self.filtered_labels))

    def get_applicable_modes(self, structure):
        return list(self.MODES)
