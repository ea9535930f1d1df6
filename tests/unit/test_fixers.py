"""
Tests for bond generation and the isolated hydrogen fixer
"""

import pytest

from cifxtal.modifiers import BondGenerator, IsolatedHydrogenFixer, InvalidModeError
from cifxtal.utils.mock_utils import DDL2_CIF, DISORDER_CIF, MOLECULE_CIF
from cifxtal.xtal import StructureError

from .base_test_case import UnitBase


ISOLATED_H_CIF = """\
data_isolated
_cell_length_a 10
_cell_length_b 10
_cell_length_c 10
_cell_angle_alpha 90
_cell_angle_beta 90
_cell_angle_gamma 90

loop_
_atom_site_label
_atom_site_type_symbol
_atom_site_fract_x
_atom_site_fract_y
_atom_site_fract_z
_atom_site_disorder_group
H0 H 0.80 0.80 0.90 .
C1 C 0.10 0.10 0.10 .
H1A H 0.20 0.10 0.10 .
O1 O 0.50 0.50 0.50 .
H1B H 0.10 0.20 0.10 .
N1 N 0.80 0.80 0.80 .
C2B C 0.30 0.30 0.50 2
C2A C 0.30 0.30 0.30 1
H3 H 0.30 0.30 0.40 2

loop_
_geom_bond_atom_site_label_1
_geom_bond_atom_site_label_2
_geom_bond_distance
C1 O1 1.50
"""


class TestBondGenerator(UnitBase):

    def test_max_bond_distance(self):
        generator = BondGenerator()
        assert generator.mode == BondGenerator.KEEP
        assert generator.tolerance_factor == pytest.approx(1.3)
        assert generator.get_max_bond_distance("C", "O") == pytest.approx((0.76 + 0.66) * 1.3)
        with pytest.raises(StructureError, match="Missing radius for element Xx"):
            generator.get_max_bond_distance("C", "Xx")

    def test_applicable_modes(self):
        generator = BondGenerator()
        with_bonds = self._load_structure(DISORDER_CIF)
        assert generator.get_applicable_modes(with_bonds) == ["keep", "add", "replace"]
        without_bonds = self._load_structure(DDL2_CIF)
        assert generator.get_applicable_modes(without_bonds) == ["create", "ignore"]

    def test_keep(self):
        structure = self._load_structure(DISORDER_CIF)
        assert BondGenerator().apply(structure) is structure

    def test_replace(self):
        structure = self._load_structure(DISORDER_CIF)
        generated = BondGenerator(mode="replace").apply(structure)
        assert self._bond_labels(generated.bonds) == [
            ("C1", "C2A", "."),
            ("C1", "C2B", "."),
            ("C2A", "C2B", "."),
            ("C2A", "Cl3", "."),
            ("C2B", "Cl3", "."),
        ]
        c1_c2a = next(bond for bond in generated.bonds if bond.labels == ("C1", "C2A"))
        assert c1_c2a.bond_length == pytest.approx(1.1**0.5)
        assert c1_c2a.bond_length_su is None
        assert len(structure.bonds) == 2

    def test_add_skips_bonded_hydrogens(self):
        structure = self._load_structure(ISOLATED_H_CIF)
        generated = BondGenerator(mode=BondGenerator.ADD).apply(structure)
        assert self._bond_labels(generated.bonds) == [
            ("C1", "O1", "."),
            ("C2A", "H3", "."),
            ("C2B", "H3", "."),
            ("H0", "N1", "."),
        ]

    def test_create_falls_back_from_keep(self):
        structure = self._load_structure(DDL2_CIF)
        generator = BondGenerator()
        generated = generator.apply(structure)
        assert generator.mode == BondGenerator.CREATE
        assert len(generated.bonds) == 1
        bond = generated.bonds[0]
        assert bond.labels == ("Fe1", "O1")
        assert bond.bond_length == pytest.approx(1.5)
        assert bond.atom2_site_symmetry == "."
        assert len(generated.connected_groups) == 1

    def test_ignore(self):
        structure = self._load_structure(DDL2_CIF)
        generated = BondGenerator(mode="ignore").apply(structure)
        assert generated.bonds == []
        assert generated is not structure

    def test_tolerance_and_custom_radii(self):
        structure = self._load_structure(DDL2_CIF)
        strict = BondGenerator(tolerance_factor=0.5, mode="create")
        assert strict.apply(structure).bonds == []

        incomplete = BondGenerator({"Fe": {"radius": 1.32}}, mode="create")
        with pytest.raises(StructureError, match="Missing radius"):
            incomplete.apply(structure)

    def test_invalid_mode(self):
        with pytest.raises(InvalidModeError):
            BondGenerator(mode="sometimes")


class TestIsolatedHydrogenFixer(UnitBase):

    def test_applicable_modes(self):
        fixer = IsolatedHydrogenFixer()
        assert fixer.mode == IsolatedHydrogenFixer.OFF
        assert fixer.max_bond_distance == pytest.approx(1.1)
        assert fixer.get_applicable_modes(self._load_structure(ISOLATED_H_CIF)) == ["on"]
        assert fixer.get_applicable_modes(self._load_structure(MOLECULE_CIF)) == ["off"]
        assert fixer.get_applicable_modes(self._load_structure(DDL2_CIF)) == ["off"]

    def test_find_isolated_hydrogens(self):
        structure = self._load_structure(ISOLATED_H_CIF)
        isolated = IsolatedHydrogenFixer.find_isolated_hydrogen_atoms(structure)
        assert sorted((index, atom.label) for index, atom in isolated) == [
            (0, "H0"),
            (2, "H1A"),
            (4, "H1B"),
            (8, "H3"),
        ]

    def test_on(self):
        structure = self._load_structure(ISOLATED_H_CIF)
        fixed = IsolatedHydrogenFixer(IsolatedHydrogenFixer.ON).apply(structure)
        assert self._bond_labels(fixed.bonds) == [
            ("C1", "H1A", "."),
            ("C1", "H1B", "."),
            ("C1", "O1", "."),
            ("C2B", "H3", "."),
            ("N1", "H0", "."),
        ]
        new_bond = next(bond for bond in fixed.bonds if bond.labels == ("C1", "H1A"))
        assert new_bond.bond_length == pytest.approx(1.0)
        assert IsolatedHydrogenFixer.find_isolated_hydrogen_atoms(fixed) == []

    def test_off_switches_on_for_isolated_hydrogens(self):
        structure = self._load_structure(ISOLATED_H_CIF)
        fixer = IsolatedHydrogenFixer()
        fixed = fixer.apply(structure)
        assert fixer.mode == IsolatedHydrogenFixer.ON
        assert len(fixed.bonds) == 5

    def test_off(self):
        structure = self._load_structure(MOLECULE_CIF)
        assert IsolatedHydrogenFixer().apply(structure) is structure

    def test_no_partner_in_range(self):
        structure = self._load_structure(ISOLATED_H_CIF)
        fixer = IsolatedHydrogenFixer(IsolatedHydrogenFixer.ON, max_bond_distance=0.9)
        assert fixer.apply(structure) is structure
