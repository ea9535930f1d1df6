"""
Tests for growing symmetry equivalent fragments
"""

import pytest

from cifxtal.modifiers import SymmetryGrower, combine_sym_op_label
from cifxtal.utils.mock_utils import DDL2_CIF, MOLECULE_CIF

from .base_test_case import UnitBase


class TestSymmetryGrower(UnitBase):

    def test_combine_label(self):
        assert combine_sym_op_label("C1", "2_655") == "C1@2_655"
        assert combine_sym_op_label("C1", ".") == "C1"
        assert combine_sym_op_label("C1", None) == "C1"

    def test_find_growable_atoms(self):
        structure = self._load_structure(MOLECULE_CIF)
        bond_atoms, h_bond_atoms = SymmetryGrower.find_growable_atoms(structure)
        assert bond_atoms == [("C1", "2_655")]
        assert h_bond_atoms == [("O1", "3_666")]

    def test_applicable_modes(self):
        structure = self._load_structure(MOLECULE_CIF)
        assert SymmetryGrower().get_applicable_modes(structure) == [
            "bonds-yes-hbonds-yes",
            "bonds-yes-hbonds-no",
            "bonds-no-hbonds-yes",
            "bonds-no-hbonds-no",
        ]
        ddl2 = self._load_structure(DDL2_CIF)
        assert SymmetryGrower().get_applicable_modes(ddl2) == ["bonds-none-hbonds-none"]

    def test_no_growth(self):
        structure = self._load_structure(MOLECULE_CIF)
        grown = SymmetryGrower().apply(structure)
        assert self._labels(grown) == self._labels(structure)
        assert len(grown.bonds) == 4
        assert len(grown.h_bonds) == 1

    def test_grow_bonds(self):
        structure = self._load_structure(MOLECULE_CIF)
        grown = SymmetryGrower(SymmetryGrower.BONDS_YES_HBONDS_NO).apply(structure)
        assert self._labels(grown) == [
            "C1",
            "C1@2_655",
            "H1",
            "H1@2_655",
            "N1",
            "N1@2_655",
            "O1",
            "O1@2_655",
            "P1",
        ]
        assert ("C1@2_655", "O1@2_655", ".") in self._bond_labels(grown.bonds)
        assert ("P1", "C1@2_655", ".") in self._bond_labels(grown.bonds)
        assert len(grown.bonds) == 8
        assert len(grown.h_bonds) == 1

        c1 = grown.get_atom_by_label("C1@2_655")
        assert list(c1.position) == pytest.approx([0.9, 0.7, 0.2])
        assert c1.adp.as_list() == pytest.approx(
            [0.020, 0.025, 0.030, -0.001, 0.002, -0.003]
        )
        groups = sorted(sorted(group.labels) for group in grown.connected_groups)
        assert groups == [
            ["C1", "H1", "N1", "O1"],
            ["C1@2_655", "H1@2_655", "N1@2_655", "O1@2_655", "P1"],
        ]

    def test_grow_h_bonds(self):
        structure = self._load_structure(MOLECULE_CIF)
        grown = SymmetryGrower("bonds_no_hbonds_yes").apply(structure)
        assert len(grown.atoms) == 9
        assert "O1@3_666" in grown.atom_labels
        h_bond_labels = sorted(h_bond.labels for h_bond in grown.h_bonds)
        assert ("N1", "H1", "O1@3_666") in h_bond_labels
        assert len(grown.h_bonds) == 2
        assert len(grown.bonds) == 7

    def test_grow_both(self):
        structure = self._load_structure(MOLECULE_CIF)
        grown = SymmetryGrower(SymmetryGrower.BONDS_YES_HBONDS_YES).apply(structure)
        assert len(grown.atoms) == 13
        assert len(grown.bonds) == 11
        assert len(grown.h_bonds) == 2

    def test_growth_is_idempotent(self):
        structure = self._load_structure(MOLECULE_CIF)
        grower = SymmetryGrower(SymmetryGrower.BONDS_YES_HBONDS_YES)
        grown = grower.apply(structure)
        grown_again = grower.apply(grown)
        assert self._labels(grown_again) == self._labels(grown)
        assert len(grown_again.bonds) == len(grown.bonds)
        assert len(grown_again.h_bonds) == len(grown.h_bonds)

    def test_fallback_mode(self):
        structure = self._load_structure(DDL2_CIF)
        grower = SymmetryGrower(SymmetryGrower.BONDS_YES_HBONDS_YES)
        with self.assertLogs("cifxtal.modifiers.base", level="WARNING"):
            grown = grower.apply(structure)
        assert grower.mode == SymmetryGrower.BONDS_NONE_HBONDS_NONE
        assert self._labels(grown) == ["Fe1", "O1"]
