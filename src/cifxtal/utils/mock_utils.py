"""
Utilities for writing unit tests with small mock CIF files.
"""

import tempfile
import unittest
import os.path as op
import os

from cifxtal.cif import CIF
from cifxtal.structure import CrystalStructure

MOLECULE_CIF = """\
data_molecule
_audit_creation_method 'hand written'  # comment after a value
_cell_length_a 10.0(1)
_cell_length_b 12.0
_cell_length_c 15.0
_cell_angle_alpha 90
_cell_angle_beta 100.0(2)
_cell_angle_gamma 90
_symmetry_space_group_name_H-M 'P 21/c'
_space_group_IT_number 14

# symmetry
loop_
_space_group_symop_id
_space_group_symop_operation_xyz
1 x,y,z
2 -x,y+1/2,-z+1/2
3 -x,-y,-z
4 x,-y+1/2,z+1/2

loop_
_atom_site_label
_atom_site_type_symbol
_atom_site_fract_x
_atom_site_fract_y
_atom_site_fract_z
_atom_site_U_iso_or_equiv
_atom_site_adp_type
_atom_site_disorder_group
C1 C 0.1000(2) 0.2000(3) 0.3000(4) 0.025(1) Uani .
O1 O 0.2000 0.3000 0.4000 0.030 Uani .
N1 N 0.3000 0.2500 0.3500 0.028 Uani .
H1 H 0.3500 0.2000 0.3000 0.040 Uiso .
P1 P 0.7000 0.7000 0.7000 0.020 Uiso .

loop_
_atom_site_aniso_label
_atom_site_aniso_U_11
_atom_site_aniso_U_22
_atom_site_aniso_U_33
_atom_site_aniso_U_12
_atom_site_aniso_U_13
_atom_site_aniso_U_23
C1 0.020 0.025 0.030 0.001 0.002 0.003
O1 0.030 0.030 0.030 0.000 0.000 0.000
N1 0.025 0.028 0.031 -0.001 0.004 0.002

loop_
_geom_bond_atom_site_label_1
_geom_bond_atom_site_label_2
_geom_bond_distance
_geom_bond_site_symmetry_2
_geom_bond_publ_flag
C1 O1 1.234(2) . ?
O1 N1 1.350(3) . ?
N1 H1 0.88 . ?
P1 C1 1.800(5) 2_655 ?

loop_
_geom_hbond_atom_site_label_D
_geom_hbond_atom_site_label_H
_geom_hbond_atom_site_label_A
_geom_hbond_distance_DH
_geom_hbond_distance_HA
_geom_hbond_distance_DA
_geom_hbond_angle_DHA
_geom_hbond_site_symmetry_A
N1 H1 O1 0.88 2.05(2) 2.900(3) 162(2) 3_666
"""

MULTI_BLOCK_CIF = """\
data_a
_k 1
_text
;
data_inner
still text
;

data_b
_k 2
"""

DISORDER_CIF = """\
data_disorder
_cell_length_a 5.0
_cell_length_b 6.0
_cell_length_c 7.0
_cell_angle_alpha 90
_cell_angle_beta 90
_cell_angle_gamma 90

loop_
_atom_site_label
_atom_site_fract_x
_atom_site_fract_y
_atom_site_fract_z
_atom_site_U_iso_or_equiv
_atom_site_disorder_group
C1 0.1000 0.1000 0.1000 0.020 .
C2A 0.2000 0.2000 0.2000 0.020 1
C2B 0.2500 0.2000 0.2000 0.020 2
Cl3 0.4000 0.4000 0.4000 0.030 .
C9 . . . . .

loop_
_geom_bond_atom_site_label_1
_geom_bond_atom_site_label_2
_geom_bond_distance
C1 C2A 1.50(1)
C1 C2B 1.52(1)
"""

DDL2_CIF = """\
data_ddl2
_cell.length_a 8.0
_cell.length_b 8.0
_cell.length_c 8.0
_cell.angle_alpha 90
_cell.angle_beta 90
_cell.angle_gamma 120
_space_group.name_H-M_alt 'P 1'
_space_group_symop.operation_xyz x,y,z

loop_
_atom_site.label
_atom_site.type_symbol
_atom_site.Cartn_x
_atom_site.Cartn_y
_atom_site.Cartn_z
_atom_site.B_iso_or_equiv
Fe1 Fe 1.0 2.0 3.0 1.5
O1 O 2.5 2.0 3.0 2.0
"""


class TemporaryDirectoryManager:
    """
    Context manager for running a test in a temporary directory
    """

    def __init__(self, dirname=None):
        if dirname is None:
            dirname = tempfile.mkdtemp("cifxtal")
        self._dirname = dirname
        self._cwd = os.getcwd()

    def __enter__(self):
        os.chdir(self._dirname)
        return self._dirname

    def __exit__(self, exc_type, exc_value, exc_tb):
        os.chdir(self._cwd)


class BaseTestRunner(unittest.TestCase):

    def setUp(self):
        tmp_dir = tempfile.mkdtemp("cifxtal")
        self._cwd = os.getcwd()
        os.chdir(tmp_dir)

    def tearDown(self):
        os.chdir(self._cwd)

    def _run_in_tmpdir(self, dirname=None):
        return TemporaryDirectoryManager(dirname)

    def _load_block(self, cif_str, index=0, split_su=True):
        return CIF(cif_str, split_su=split_su).get_block(index)

    def _load_structure(self, cif_str, index=0):
        return CrystalStructure.from_cif(self._load_block(cif_str, index))

    def _write_tmp_cif(self, cif_str, suffix=""):
        fname = op.abspath(f"tmp{suffix}.cif")
        with open(fname, "w", encoding="utf-8") as cif_out:
            cif_out.write(cif_str)
        return fname
