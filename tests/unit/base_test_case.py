"""
Additional utilities for unit-testing with mock data
"""

from cifxtal.utils.mock_utils import BaseTestRunner


class UnitBase(BaseTestRunner):

    @staticmethod
    def _labels(structure):
        return sorted(atom.label for atom in structure.atoms)

    @staticmethod
    def _bond_labels(bonds):
        return sorted(
            (bond.atom1_label, bond.atom2_label, bond.atom2_site_symmetry)
            for bond in bonds
        )
