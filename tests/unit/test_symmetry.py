import unittest

import numpy as np
import pytest

from cifxtal.cif import CIF
from cifxtal.structure import Atom
from cifxtal.utils.mock_utils import DDL2_CIF, DISORDER_CIF, MOLECULE_CIF
from cifxtal.xtal import (
    CartPosition,
    CellSymmetry,
    FractPosition,
    SymmetryCodeError,
    SymmetryOperation,
    SymmetryOperationError,
    UAnisoADP,
    UIsoADP,
    format_translation_as_fraction,
)


class TestSymmetryOperation(unittest.TestCase):

    def test_apply_to_point(self):
        op = SymmetryOperation("-x+1/2,y,-z")
        assert op.apply_to_point([0.2, 0.3, 0.4]) == pytest.approx([0.3, 0.3, -0.4])

    def test_parse_components(self):
        op = SymmetryOperation("x-y, x, z+0.25")
        assert op.rot_matrix == pytest.approx(
            np.array([[1, -1, 0], [1, 0, 0], [0, 0, 1]])
        )
        assert op.trans_vector == pytest.approx([0, 0, 0.25])

        op = SymmetryOperation("1/2+X,-Y+1/2,2*z-1")
        assert op.rot_matrix == pytest.approx(np.diag([1, -1, 2]))
        assert op.trans_vector == pytest.approx([0.5, 0.5, -1])

    def test_identity(self):
        assert SymmetryOperation("x,y,z").is_identity()
        assert not SymmetryOperation("x,y,z+1/2").is_identity()
        assert not SymmetryOperation("-x,-y,-z").is_identity()

    def test_invalid_instructions(self):
        with pytest.raises(SymmetryOperationError, match="exactly three components"):
            SymmetryOperation("x,y")
        with pytest.raises(SymmetryOperationError):
            SymmetryOperation("x,y,q")
        with pytest.raises(SymmetryOperationError):
            SymmetryOperation("x,y z,z")

    def test_to_symmetry_string(self):
        op = SymmetryOperation("-x+1/2,y,-z")
        assert op.to_symmetry_string() == "1/2-x,y,-z"
        assert op.to_symmetry_string([1, 0, 0]) == "3/2-x,y,-z"
        assert SymmetryOperation("x-y,x,z+1/3").to_symmetry_string() == "x-y,x,1/3+z"
        assert SymmetryOperation("x,y,z").to_symmetry_string([0, -1, 0]) == "x,-1+y,z"

    def test_decimal_translation_string(self):
        assert SymmetryOperation("x+0.123,y,z").to_symmetry_string() == "0.123+x,y,z"
        assert SymmetryOperation("x,y,z-0.123").to_symmetry_string() == "x,y,-0.123+z"

    def test_copy(self):
        op = SymmetryOperation("-x,y,-z")
        other = op.copy()
        other.trans_vector[0] = 0.5
        assert op.trans_vector[0] == 0

    def test_apply_to_atom(self):
        atom = Atom(
            "C1",
            "C",
            FractPosition(0.1, 0.2, 0.3),
            UAnisoADP(0.020, 0.025, 0.030, 0.001, 0.002, 0.003),
        )
        new_atom = SymmetryOperation("-x,y+1/2,-z+1/2").apply_to_atom(atom, [1, 0, 0])
        assert isinstance(new_atom.position, FractPosition)
        assert list(new_atom.position) == pytest.approx([0.9, 0.7, 0.2])
        assert new_atom.adp.as_list() == pytest.approx(
            [0.020, 0.025, 0.030, -0.001, 0.002, -0.003]
        )
        assert list(atom.position) == pytest.approx([0.1, 0.2, 0.3])
        assert atom.adp.u12 == pytest.approx(0.001)

    def test_isotropic_adp_is_kept(self):
        atom = Atom("H1", "H", FractPosition(0.1, 0.2, 0.3), UIsoADP(0.04))
        new_atom = SymmetryOperation("-x,-y,-z").apply_to_atom(atom)
        assert new_atom.adp.uiso == pytest.approx(0.04)
        assert new_atom.adp is not atom.adp

    def test_cartesian_atom_is_rejected(self):
        atom = Atom("Fe1", "Fe", CartPosition(1.0, 2.0, 3.0))
        with pytest.raises(TypeError):
            SymmetryOperation("-x,-y,-z").apply_to_atom(atom)


class TestFormatTranslation(unittest.TestCase):

    def test_fractions(self):
        assert format_translation_as_fraction(0.0) == ""
        assert format_translation_as_fraction(0.001) == ""
        assert format_translation_as_fraction(0.5) == "1/2"
        assert format_translation_as_fraction(-0.25) == "-1/4"
        assert format_translation_as_fraction(0.3333) == "1/3"
        assert format_translation_as_fraction(5 / 6) == "5/6"
        assert format_translation_as_fraction(2.0) == "2"
        assert format_translation_as_fraction(0.4) == "0.4"


class TestCellSymmetry(unittest.TestCase):

    def setUp(self):
        self.symmetry = CellSymmetry.from_cif(CIF(MOLECULE_CIF).get_block())

    def test_from_cif(self):
        assert self.symmetry.space_group_name == "P 21/c"
        assert self.symmetry.space_group_number == 14
        assert len(self.symmetry) == 4
        assert self.symmetry.identity_sym_op_id == "1"

    def test_parse_position_code(self):
        op, translation = self.symmetry.parse_position_code("2_655")
        assert op.to_symmetry_string() == "-x,1/2+y,1/2-z"
        assert list(translation) == [1, 0, 0]
        _, translation = self.symmetry.parse_position_code("3_456")
        assert list(translation) == [-1, 0, 1]
        op, translation = self.symmetry.parse_position_code("3")
        assert list(translation) == [0, 0, 0]
        assert op.to_symmetry_string() == "-x,-y,-z"

    def test_invalid_codes(self):
        with pytest.raises(SymmetryCodeError, match="Invalid symmetry operation ID"):
            self.symmetry.parse_position_code("7_555")
        with pytest.raises(SymmetryCodeError, match="Invalid translation"):
            self.symmetry.parse_position_code("2_65")
        with pytest.raises(SymmetryCodeError):
            self.symmetry.parse_position_code("2_6a5")

    def test_apply_symmetry(self):
        atom = Atom("P1", "P", FractPosition(0.7, 0.7, 0.7))
        moved = self.symmetry.apply_symmetry("2_655", atom)
        assert list(moved.position) == pytest.approx([0.3, 1.2, -0.2])
        moved = self.symmetry.apply_symmetry("1_555", [atom])
        assert isinstance(moved, list)
        assert list(moved[0].position) == pytest.approx([0.7, 0.7, 0.7])

    def test_equivalent_positions(self):
        positions = self.symmetry.generate_equivalent_positions([0.1, 0.2, 0.3])
        assert len(positions) == 4
        assert positions[2] == pytest.approx([-0.1, -0.2, -0.3])

    def test_scalar_operation(self):
        symmetry = CellSymmetry.from_cif(CIF(DDL2_CIF).get_block())
        assert symmetry.space_group_name == "P 1"
        assert symmetry.space_group_number == 0
        assert len(symmetry) == 1
        assert symmetry.identity_sym_op_id == "1"

    def test_p1_fallback(self):
        with self.assertLogs("cifxtal.xtal.symmetry", level="WARNING"):
            symmetry = CellSymmetry.from_cif(CIF(DISORDER_CIF).get_block())
        assert symmetry.space_group_name == "Unknown"
        assert len(symmetry) == 1
        assert symmetry.symmetry_operations[0].is_identity()

    def test_custom_loop_name(self):
        block = CIF(
            "data_x\nloop_\n_symmetry_equiv_pos_site_id\n_symmetry_equiv_pos_as_xyz\n"
            "a x,y,z\nb -x,-y,-z\n"
        ).get_block()
        symmetry = CellSymmetry.from_cif(block)
        op, _ = symmetry.parse_position_code("b_555")
        assert op.to_symmetry_string() == "-x,-y,-z"
