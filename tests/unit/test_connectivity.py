import unittest

import pytest

from cifxtal.structure import (
    Atom,
    Bond,
    HBond,
    UnknownAtomLabelError,
    calc_connected_groups,
)
from cifxtal.xtal import FractPosition


def make_atoms(*labels):
    return [Atom(label, label[0], FractPosition(0.0, 0.0, 0.0)) for label in labels]


class TestConnectedGroups(unittest.TestCase):

    def test_groups(self):
        atoms = make_atoms("C1", "O1", "N1", "P1", "F1")
        bonds = [
            Bond("C1", "O1", atom2_site_symmetry="."),
            Bond("O1", "N1"),
            Bond("P1", "F1", atom2_site_symmetry="2_555"),
        ]
        groups = calc_connected_groups(atoms, bonds, [])
        labels = sorted(sorted(group.labels) for group in groups)
        assert labels == [["C1", "N1", "O1"], ["F1"], ["P1"]]
        big_group = next(group for group in groups if len(group.atoms) == 3)
        assert len(big_group.bonds) == 2

    def test_every_atom_in_one_group(self):
        atoms = make_atoms("C1", "C2", "C3", "C4", "C5", "C6")
        bonds = [Bond("C1", "C2"), Bond("C3", "C4"), Bond("C5", "C6"), Bond("C2", "C3")]
        h_bonds = [HBond("C4", "C5", "C6")]
        groups = calc_connected_groups(atoms, bonds, h_bonds)
        assert len(groups) == 1
        group = groups[0]
        assert sorted(group.labels) == ["C1", "C2", "C3", "C4", "C5", "C6"]
        assert len(group.bonds) == 4
        assert len(group.h_bonds) == 1

    def test_symmetry_h_bond_does_not_connect(self):
        atoms = make_atoms("N1", "H1", "O1")
        h_bonds = [HBond("N1", "H1", "O1", acceptor_atom_symmetry="3_666")]
        groups = calc_connected_groups(atoms, [], h_bonds)
        assert len(groups) == 3
        assert all(group.h_bonds == [] for group in groups)

    def test_unknown_atom(self):
        atoms = make_atoms("C1")
        with pytest.raises(UnknownAtomLabelError):
            calc_connected_groups(atoms, [Bond("C1", "C2")], [])
