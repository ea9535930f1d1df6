"""Completing fragments and H-bond partners by symmetry."""

from ..structure.bonds import Bond, HBond, is_symmetry_code
from ..structure.crystal import CrystalStructure
from ..xtal.errors import StructureError
from .base import BaseFilter


def combine_sym_op_label(atom_label, sym_op):
    """Label of the copy of `atom_label` generated by symmetry code `sym_op`."""
    if not is_symmetry_code(sym_op):
        return atom_label
    return f"{atom_label}@{sym_op}"


class _GrowthState:
    def __init__(self, structure):
        self.atoms = list(structure.atoms)
        self.bonds = list(structure.bonds)
        self.h_bonds = list(structure.h_bonds)
        self.labels = set(atom.label for atom in structure.atoms)

    def add_bond(self, bond):
        if not any(
            existing.labels == bond.labels
            and existing.atom2_site_symmetry == bond.atom2_site_symmetry
            for existing in self.bonds
        ):
            self.bonds.append(bond)

    def add_h_bond(self, h_bond):
        if not any(
            existing.labels == h_bond.labels
            and existing.acceptor_atom_symmetry == h_bond.acceptor_atom_symmetry
            for existing in self.h_bonds
        ):
            self.h_bonds.append(h_bond)


class SymmetryGrower(BaseFilter):

    """Add the symmetry equivalent fragments that bonds and H-bonds point to.

    Modes are named ``bonds-<x>-hbonds-<y>``: ``yes`` grows the atoms
    referenced by that kind of bond, ``no`` does not, and ``none`` means
    the structure has no such bonds to symmetry positions.
    """

    BONDS_YES_HBONDS_YES = "bonds-yes-hbonds-yes"
    BONDS_YES_HBONDS_NO = "bonds-yes-hbonds-no"
    BONDS_YES_HBONDS_NONE = "bonds-yes-hbonds-none"
    BONDS_NO_HBONDS_YES = "bonds-no-hbonds-yes"
    BONDS_NO_HBONDS_NO = "bonds-no-hbonds-no"
    BONDS_NO_HBONDS_NONE = "bonds-no-hbonds-none"
    BONDS_NONE_HBONDS_YES = "bonds-none-hbonds-yes"
    BONDS_NONE_HBONDS_NO = "bonds-none-hbonds-no"
    BONDS_NONE_HBONDS_NONE = "bonds-none-hbonds-none"

    MODES = (
        BONDS_YES_HBONDS_YES,
        BONDS_YES_HBONDS_NO,
        BONDS_YES_HBONDS_NONE,
        BONDS_NO_HBONDS_YES,
        BONDS_NO_HBONDS_NO,
        BONDS_NO_HBONDS_NONE,
        BONDS_NONE_HBONDS_YES,
        BONDS_NONE_HBONDS_NO,
        BONDS_NONE_HBONDS_NONE,
    )
    PREFERRED_FALLBACK_ORDER = (
        BONDS_NO_HBONDS_NO,
        BONDS_NO_HBONDS_NONE,
        BONDS_NONE_HBONDS_NO,
    )

    def __init__(self, mode=BONDS_NO_HBONDS_NO):
        super().__init__(mode)

    @staticmethod
    def find_growable_atoms(structure):
        """(label, symmetry code) pairs of atoms referenced across symmetry.

        Returns:
            tuple[list, list]: Pairs from bonds and pairs from H-bonds.
        """
        bond_atoms = [
            (bond.atom2_label, bond.atom2_site_symmetry)
            for bond in structure.bonds
            if is_symmetry_code(bond.atom2_site_symmetry)
        ]
        h_bond_atoms = [
            (h_bond.acceptor_atom_label, h_bond.acceptor_atom_symmetry)
            for h_bond in structure.h_bonds
            if is_symmetry_code(h_bond.acceptor_atom_symmetry)
        ]
        return bond_atoms, h_bond_atoms

    @staticmethod
    def _find_group(structure, atom_label):
        for group in structure.connected_groups:
            if any(atom.label == atom_label for atom in group.atoms):
                return group
        raise StructureError(
            f"Atom {atom_label} is not in any connected group of the structure"
        )

    def grow_atom_array(self, structure, atoms_to_grow, growth_state):
        """Add the symmetry copy of the group of each (label, code) pair.

        Pairs whose copy already exists are skipped.
        """
        for atom_label, sym_op in atoms_to_grow:
            if combine_sym_op_label(atom_label, sym_op) in growth_state.labels:
                continue

            group = self._find_group(structure, atom_label)
            for atom in structure.symmetry.apply_symmetry(sym_op, group.atoms):
                atom.label = combine_sym_op_label(atom.label, sym_op)
                growth_state.labels.add(atom.label)
                growth_state.atoms.append(atom)

            for bond in group.bonds:
                if is_symmetry_code(bond.atom2_site_symmetry):
                    continue
                growth_state.add_bond(
                    bond.copy(
                        atom1_label=combine_sym_op_label(bond.atom1_label, sym_op),
                        atom2_label=combine_sym_op_label(bond.atom2_label, sym_op),
                        atom2_site_symmetry=".",
                    )
                )
            for h_bond in group.h_bonds:
                if is_symmetry_code(h_bond.acceptor_atom_symmetry):
                    continue
                growth_state.add_h_bond(
                    h_bond.copy(
                        donor_atom_label=combine_sym_op_label(
                            h_bond.donor_atom_label, sym_op
                        ),
                        hydrogen_atom_label=combine_sym_op_label(
                            h_bond.hydrogen_atom_label, sym_op
                        ),
                        acceptor_atom_label=combine_sym_op_label(
                            h_bond.acceptor_atom_label, sym_op
                        ),
                        acceptor_atom_symmetry=".",
                    )
                )
        return growth_state

    def apply(self, structure):
        self.ensure_valid_mode(structure)
        bond_atoms, h_bond_atoms = self.find_growable_atoms(structure)
        growth_state = _GrowthState(structure)

        if self.mode.startswith("bonds-yes"):
            self.grow_atom_array(structure, bond_atoms, growth_state)
        if self.mode.endswith("hbonds-yes"):
            self.grow_atom_array(structure, h_bond_atoms, growth_state)

        for bond in structure.bonds:
            if not is_symmetry_code(bond.atom2_site_symmetry):
                continue
            symm_label = combine_sym_op_label(bond.atom2_label, bond.atom2_site_symmetry)
            if symm_label in growth_state.labels:
                growth_state.add_bond(
                    Bond(
                        bond.atom1_label,
                        symm_label,
                        bond.bond_length,
                        bond.bond_length_su,
                        ".",
                    )
                )
        for h_bond in structure.h_bonds:
            if not is_symmetry_code(h_bond.acceptor_atom_symmetry):
                continue
            symm_label = combine_sym_op_label(
                h_bond.acceptor_atom_label, h_bond.acceptor_atom_symmetry
            )
            if symm_label in growth_state.labels:
                growth_state.add_h_bond(
                    h_bond.copy(acceptor_atom_label=symm_label, acceptor_atom_symmetry=".")
                )

        return CrystalStructure(
            structure.cell,
            growth_state.atoms,
            growth_state.bonds,
            growth_state.h_bonds,
            structure.symmetry,
        )

    def get_applicable_modes(self, structure):
        bond_atoms, h_bond_atoms = self.find_growable_atoms(structure)
        if not bond_atoms and not h_bond_atoms:
            return [self.BONDS_NONE_HBONDS_NONE]
        if not bond_atoms:
            return [self.BONDS_NONE_HBONDS_YES, self.BONDS_NONE_HBONDS_NO]
        if not h_bond_atoms:
            return [self.BONDS_YES_HBONDS_NONE, self.BONDS_NO_HBONDS_NONE]
        return [
            self.BONDS_YES_HBONDS_YES,
            self.BONDS_YES_HBONDS_NO,
            self.BONDS_NO_HBONDS_YES,
            self.BONDS_NO_HBONDS_NO,
        ]
