"""Modifiers that complete the bonding of a structure from atom distances."""

import logging

import numpy as np

from ..structure.bonds import Bond
from ..structure.crystal import infer_element_from_label
from ..structure.elements import DEFAULT_ELEMENT_PROPERTIES
from ..xtal.errors import StructureError
from .base import BaseFilter
from .filters import _rebuild


logger = logging.getLogger(__name__)

MIN_BOND_DISTANCE = 0.0001


def _cartesian_coords(structure):
    return np.array(
        [atom.position.to_cartesian(structure.cell).coords for atom in structure.atoms],
        float,
    ).reshape(-1, 3)


def _disorder_compatible(atom1, atom2):
    return (
        atom1.disorder_group == atom2.disorder_group
        or atom1.disorder_group == 0
        or atom2.disorder_group == 0
    )


class BondGenerator(BaseFilter):

    """Derive bonds from the sum of covalent radii of atom pairs.

    A pair is bonded if its distance is at most the radii sum times
    `tolerance_factor`. Modes:
        keep: leave the bonds read from the CIF untouched
        add: add generated bonds to the existing ones
        replace: use only generated bonds
        create: generate bonds for a structure without any
        ignore: do not generate bonds for a structure without any
    """

    KEEP = "keep"
    ADD = "add"
    REPLACE = "replace"
    CREATE = "create"
    IGNORE = "ignore"

    MODES = (KEEP, ADD, REPLACE, CREATE, IGNORE)
    PREFERRED_FALLBACK_ORDER = (KEEP, ADD, REPLACE, CREATE, IGNORE)

    def __init__(self, element_properties=None, tolerance_factor=1.3, mode=KEEP):
        super().__init__(mode)
        if element_properties is None:
            element_properties = DEFAULT_ELEMENT_PROPERTIES
        self.element_properties = element_properties
        self.tolerance_factor = tolerance_factor

    def _radius(self, element):
        radius = self.element_properties.get(element, {}).get("radius")
        if not radius:
            raise StructureError(f"Missing radius for element {element}")
        return radius

    def get_max_bond_distance(self, element1, element2):
        """Longest distance in A at which the two elements count as bonded.

        Raises:
            StructureError: No radius is known for one of the elements.
        """
        return (self._radius(element1) + self._radius(element2)) * self.tolerance_factor

    def _element_of(self, atom_type):
        if atom_type in self.element_properties:
            return atom_type
        try:
            return infer_element_from_label(atom_type)
        except StructureError as e:
            raise StructureError(f"Missing radius for element {atom_type}") from e

    def generate_bonds(self, structure):
        """Return bonds for all atom pairs closer than their maximum bond
        distance.

        Pairs with a hydrogen are skipped if either atom is already part of
        a bond of the structure.
        """
        atoms = structure.atoms
        elements = {}
        for atom in atoms:
            if atom.atom_type not in elements:
                elements[atom.atom_type] = self._element_of(atom.atom_type)

        coords = _cartesian_coords(structure)
        distances = np.linalg.norm(coords[:, np.newaxis, :] - coords[np.newaxis, :, :], axis=-1)
        bonded_labels = set()
        for bond in structure.bonds:
            bonded_labels.update(bond.labels)

        generated = []
        for i, atom1 in enumerate(atoms):
            for j in range(i + 1, len(atoms)):
                atom2 = atoms[j]
                if "H" in (atom1.atom_type, atom2.atom_type) and (
                    atom1.label in bonded_labels or atom2.label in bonded_labels
                ):
                    continue
                distance = float(distances[i, j])
                max_distance = self.get_max_bond_distance(
                    elements[atom1.atom_type], elements[atom2.atom_type]
                )
                if MIN_BOND_DISTANCE < distance <= max_distance:
                    generated.append(Bond(atom1.label, atom2.label, distance, None, "."))
        logger.debug(f"Generated {len(generated)} bonds from atom distances")
        return generated

    def apply(self, structure):
        self.ensure_valid_mode(structure)

        if self.mode == self.KEEP:
            return structure
        elif self.mode == self.ADD:
            bonds = list(structure.bonds) + self.generate_bonds(structure)
        elif self.mode in (self.REPLACE, self.CREATE):
            bonds = self.generate_bonds(structure)
        else:
            bonds = list(structure.bonds)
        return _rebuild(structure, structure.atoms, bonds, structure.h_bonds)

    def get_applicable_modes(self, structure):
        if structure.bonds:
            return [self.KEEP, self.ADD, self.REPLACE]
        return [self.CREATE, self.IGNORE]


class IsolatedHydrogenFixer(BaseFilter):

    """Bond hydrogens without any bond to the closest fitting atom listed
    before them in the atom list, or failing that, after them.
    """

    ON = "on"
    OFF = "off"

    MODES = (ON, OFF)
    PREFERRED_FALLBACK_ORDER = (ON, OFF)

    def __init__(self, mode=OFF, max_bond_distance=1.1):
        super().__init__(mode)
        self.max_bond_distance = max_bond_distance

    @staticmethod
    def find_isolated_hydrogen_atoms(structure):
        """Return (index, atom) of hydrogens forming a connected group of
        their own.
        """
        index_of = {atom.label: index for index, atom in enumerate(structure.atoms)}
        isolated = []
        for group in structure.connected_groups:
            if len(group.atoms) == 1 and group.atoms[0].atom_type == "H":
                atom = group.atoms[0]
                isolated.append((index_of[atom.label], atom))
        return isolated

    def _find_partner_bond(self, structure, index, hydrogen):
        atoms = structure.atoms
        h_coords = hydrogen.position.to_cartesian(structure.cell).coords
        candidates = atoms[:index][::-1] + atoms[index + 1:]
        for partner in candidates:
            if partner.atom_type == "H" or not _disorder_compatible(partner, hydrogen):
                continue
            partner_coords = partner.position.to_cartesian(structure.cell).coords
            distance = float(np.linalg.norm(h_coords - partner_coords))
            if distance <= self.max_bond_distance:
                return Bond(partner.label, hydrogen.label, distance, None, ".")
        return None

    def apply(self, structure):
        self.ensure_valid_mode(structure)
        if self.mode == self.OFF:
            return structure

        new_bonds = []
        for index, hydrogen in self.find_isolated_hydrogen_atoms(structure):
            bond = self._find_partner_bond(structure, index, hydrogen)
            if bond is None:
                logger.info(f"No bonding partner found for isolated hydrogen {hydrogen.label}")
                continue
            new_bonds.append(bond)

        if not new_bonds:
            return structure
        return _rebuild(
            structure, structure.atoms, list(structure.bonds) + new_bonds, structure.h_bonds
        )

    def get_applicable_modes(self, structure):
        if not structure.bonds:
            return [self.OFF]
        if self.find_isolated_hydrogen_atoms(structure):
            return [self.ON]
        return [self.OFF]
